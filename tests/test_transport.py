import pytest
import requests

from ajax_transport.config import ContentType
from ajax_transport.exceptions import ResponseRejected, TransportError
from ajax_transport.forms import FormData
from ajax_transport.http import build_response, ensure_success, parse_header_block
from ajax_transport.transports.base import OutgoingRequest
from ajax_transport.transports.session import SessionTransport, _UploadStream


def _ignore(loaded, total):  # pragma: no cover - helper
    pass


def test_upload_stream_reports_each_chunk():
    seen: list[tuple[int, int]] = []
    stream = _UploadStream(b"0123456789", 4, lambda loaded, total: seen.append((loaded, total)))

    assert len(stream) == 10
    assert b"".join(stream) == b"0123456789"
    assert seen == [(4, 10), (8, 10), (10, 10)]


def test_parse_header_block_splits_on_first_separator():
    raw = "Content-Type: text/plain\r\nLocation: http://x/y: z\r\n\r\nbroken line\r\nSet-Cookie: a=1\r\nset-cookie: b=2"

    assert parse_header_block(raw) == {
        "content-type": "text/plain",
        "location": "http://x/y: z",
        "set-cookie": "a=1, b=2",
    }


def test_build_response_and_classification():
    ok = build_response(204, "", "")
    missing = build_response(404, '{"error": "gone"}', "Content-Type: application/json")

    assert ensure_success(ok) is ok
    assert ok.body == ""
    with pytest.raises(ResponseRejected) as excinfo:
        ensure_success(missing)
    assert excinfo.value.response is missing
    assert missing.body == {"error": "gone"}


def test_session_transport_wraps_request_exceptions():
    class ExplodingSession:
        def request(self, *args, **kwargs):  # pragma: no cover - helper
            raise requests.exceptions.SSLError("CERTIFICATE_VERIFY_FAILED")

        def close(self):  # pragma: no cover - helper
            pass

    transport = SessionTransport(ExplodingSession())
    request = OutgoingRequest(method="GET", url="https://api.test/", headers={})

    with pytest.raises(TransportError) as excinfo:
        transport.send(request, on_upload=_ignore, on_download=_ignore)

    assert "CERTIFICATE_VERIFY_FAILED" in str(excinfo.value)


def test_session_transport_serializes_form_data():
    captured: dict[str, object] = {}

    class CapturingSession:
        def request(self, **kwargs):
            captured.update(kwargs)
            raise requests.exceptions.ConnectionError("stop")

        def close(self):  # pragma: no cover - helper
            pass

    transport = SessionTransport(CapturingSession())
    request = OutgoingRequest(
        method="POST",
        url="https://api.test/upload",
        headers={"content-type": "text/plain"},
        body=FormData([("kind", "note")]),
        content_type=ContentType.FORM,
    )

    with pytest.raises(TransportError):
        transport.send(request, on_upload=_ignore, on_download=_ignore)

    headers = captured["headers"]
    assert "content-type" not in headers
    assert headers["Content-Type"].startswith("multipart/form-data; boundary=")
    assert b'name="kind"' in b"".join(captured["data"])
    assert captured["stream"] is True
