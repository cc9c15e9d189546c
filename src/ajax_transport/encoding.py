"""Payload encoders for the three recognized wire formats.

URL-encoded payloads flatten nested data with a bracket convention:
``{"a": {"b": 1}, "c": [1, 2]}`` becomes ``a[b]=1&c[0]=1&c[1]=2`` with the
brackets percent-encoded. `url_decode` reverses it; keys must not contain
brackets themselves for the round trip to hold.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any, Union
from urllib.parse import parse_qsl, quote

from .config import ContentType
from .exceptions import EncodingError
from .files import FileHandle
from .forms import FormData, HTMLForm

WirePayload = Union[str, FormData]

_BRACKETS = re.compile(r"\[([^\[\]]*)\]")


def is_form_payload(data: Any) -> bool:
    """Whether `data` forces multipart encoding."""

    return isinstance(data, (FormData, HTMLForm))


def encode(data: Any, content_type: ContentType) -> WirePayload:
    if content_type is ContentType.URLENCODED:
        return url_encode(data)
    if content_type is ContentType.JSON:
        return json_encode(data)
    if content_type is ContentType.FORM:
        return form_encode(data)
    raise EncodingError(f"Unsupported content type: {content_type!r}")


def url_encode(data: Any) -> str:
    """Encode `data` as ``key=value&key=value``."""

    if data is None:
        return ""
    if isinstance(data, str):
        return data
    if isinstance(data, HTMLForm):
        data = data.to_form_data()
    pairs: list[tuple[str, str]] = []
    if isinstance(data, FormData):
        for name, value in data:
            pairs.append((name, _scalar(value)))
    elif isinstance(data, Mapping):
        for key, value in data.items():
            _flatten(str(key), value, pairs)
    else:
        raise EncodingError(
            f"Cannot URL-encode {type(data).__name__}; expected a mapping or form data"
        )
    return "&".join(f"{quote(key, safe='')}={quote(value, safe='')}" for key, value in pairs)


def _flatten(prefix: str, value: Any, pairs: list[tuple[str, str]]) -> None:
    if isinstance(value, Mapping):
        for key, item in value.items():
            _flatten(f"{prefix}[{key}]", item, pairs)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _flatten(f"{prefix}[{index}]", item, pairs)
    else:
        pairs.append((prefix, _scalar(value)))


def _scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, FileHandle):
        return value.name
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def url_decode(query: str) -> dict[str, Any]:
    """Decode a query string produced by `url_encode`; values come back as strings."""

    result: dict[str, Any] = {}
    for key, value in parse_qsl(query.lstrip("?"), keep_blank_values=True):
        base, _, rest = key.partition("[")
        path = _BRACKETS.findall("[" + rest) if rest else []
        if not base or (rest and "".join(f"[{p}]" for p in path) != "[" + rest):
            result[key] = value
            continue
        if not path:
            result[base] = value
            continue
        target = result
        for part in [base, *path[:-1]]:
            node = target.get(part)
            if not isinstance(node, dict):
                node = target[part] = {}
            target = node
        target[path[-1]] = value
    return {key: _listify(value) for key, value in result.items()}


def _listify(node: Any) -> Any:
    if not isinstance(node, dict):
        return node
    converted = {key: _listify(value) for key, value in node.items()}
    if converted and set(converted) == {str(i) for i in range(len(converted))}:
        return [converted[str(i)] for i in range(len(converted))]
    return converted


def json_encode(data: Any) -> str:
    try:
        return json.dumps(data, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError, RecursionError) as exc:
        raise EncodingError(f"Cannot JSON-encode payload: {exc}", details=str(exc)) from exc


def form_encode(data: Any) -> FormData:
    if isinstance(data, FormData):
        return data
    if isinstance(data, HTMLForm):
        return data.to_form_data()
    if data is None:
        return FormData()
    if isinstance(data, Mapping):
        return FormData.from_mapping(data)
    raise EncodingError(
        "`data` must be a mapping, FormData or HTMLForm for multipart encoding"
    )


def fold_query(url: str, query: str) -> str:
    """Append `query` to `url`, keeping any fragment at the end."""

    if not query:
        return url
    base, hash_mark, fragment = url.partition("#")
    if base.endswith(("?", "&")):
        separator = ""
    else:
        separator = "&" if "?" in base else "?"
    return f"{base}{separator}{query}{hash_mark}{fragment}"
