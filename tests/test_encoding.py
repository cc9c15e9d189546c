import json

import pytest

from ajax_transport.config import ContentType
from ajax_transport.encoding import (
    encode,
    fold_query,
    form_encode,
    is_form_payload,
    json_encode,
    url_decode,
    url_encode,
)
from ajax_transport.exceptions import EncodingError
from ajax_transport.forms import FormData, HTMLForm


def test_url_encode_joins_pairs_in_order():
    assert url_encode({"a": 1, "b": 2}) == "a=1&b=2"


def test_url_encode_percent_encodes_keys_and_values():
    assert url_encode({"full name": "a b&c=d"}) == "full%20name=a%20b%26c%3Dd"


@pytest.mark.parametrize("data", [None, {}])
def test_url_encode_empty_data(data):
    assert url_encode(data) == ""


def test_url_encode_scalars():
    assert url_encode({"yes": True, "no": False, "none": None, "n": 1.5}) == "yes=true&no=false&none=&n=1.5"


def test_url_encode_flattens_with_brackets():
    encoded = url_encode({"a": {"b": 1}, "c": ["x", "y"]})

    assert encoded == "a%5Bb%5D=1&c%5B0%5D=x&c%5B1%5D=y"


def test_url_encode_form_data_pairs():
    form = FormData([("tag", "a"), ("tag", "b")])

    assert url_encode(form) == "tag=a&tag=b"


def test_url_encode_rejects_other_types():
    with pytest.raises(EncodingError):
        url_encode(42)


@pytest.mark.parametrize(
    "mapping",
    [
        {"a": "1", "b": "2"},
        {"q": "café & crème", "empty": ""},
        {"user": {"name": "ada", "roles": ["admin", "dev"]}},
        {"0": "zero", "1": "one"},
    ],
)
def test_url_decode_inverts_url_encode(mapping):
    assert url_decode(url_encode(mapping)) == mapping


def test_url_decode_returns_strings_for_scalars():
    assert url_decode(url_encode({"a": 1, "b": True})) == {"a": "1", "b": "true"}


def test_url_decode_keeps_malformed_bracket_keys():
    assert url_decode("a%5Bb=1") == {"a[b": "1"}


def test_json_encode_is_compact_and_parses_back():
    value = {"name": "ada", "tags": ["x", 1, None], "nested": {"ok": True}}

    encoded = json_encode(value)

    assert encoded == '{"name":"ada","tags":["x",1,null],"nested":{"ok":true}}'
    assert json.loads(encoded) == value


def test_json_encode_rejects_cycles():
    cyclic: dict = {}
    cyclic["self"] = cyclic

    with pytest.raises(EncodingError):
        json_encode(cyclic)


@pytest.mark.parametrize("value", [{"when": object()}, {"n": float("nan")}, {1, 2}])
def test_json_encode_rejects_unserializable_values(value):
    with pytest.raises(EncodingError):
        json_encode(value)


def test_form_encode_passes_form_data_through():
    form = FormData([("a", "1")])

    assert form_encode(form) is form


def test_form_encode_builds_from_mapping_in_order():
    form = form_encode({"b": "2", "a": 1, "tags": ["x", "y"]})

    assert list(form) == [("b", "2"), ("a", "1"), ("tags", "x"), ("tags", "y")]


def test_form_encode_extracts_html_form_fields():
    form = form_encode(HTMLForm('<form><input name="q" value="hi"></form>'))

    assert list(form) == [("q", "hi")]


def test_form_encode_rejects_other_types():
    with pytest.raises(EncodingError):
        form_encode("a=1")


def test_encode_dispatches_on_content_type():
    assert encode({"a": 1}, ContentType.URLENCODED) == "a=1"
    assert encode({"a": 1}, ContentType.JSON) == '{"a":1}'
    assert isinstance(encode({"a": 1}, ContentType.FORM), FormData)


def test_is_form_payload():
    assert is_form_payload(FormData())
    assert is_form_payload(HTMLForm("<form></form>"))
    assert not is_form_payload({"a": 1})


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("/x", "/x?a=1&b=2"),
        ("/x?q=1", "/x?q=1&a=1&b=2"),
        ("/x?", "/x?a=1&b=2"),
        ("/x#top", "/x?a=1&b=2#top"),
    ],
)
def test_fold_query(url, expected):
    assert fold_query(url, "a=1&b=2") == expected


def test_fold_query_ignores_empty_query():
    assert fold_query("/x", "") == "/x"
