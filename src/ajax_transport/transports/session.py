"""`requests`-backed transport with byte-level progress reporting."""

from __future__ import annotations

import codecs
import logging
from collections.abc import Iterator, MutableMapping

import requests
from requests.utils import _parse_content_type_header
from urllib3 import encode_multipart_formdata

from ..exceptions import TransportError
from ..forms import FormData
from .base import Completion, OutgoingRequest, ProgressListener, Transport

logger = logging.getLogger(__name__)


class _UploadStream:
    """Sized iterable body; reports progress as each chunk is consumed."""

    def __init__(self, payload: bytes, chunk_size: int, listener: ProgressListener) -> None:
        self._payload = payload
        self._chunk_size = chunk_size
        self._listener = listener

    def __len__(self) -> int:
        return len(self._payload)

    def __iter__(self) -> Iterator[bytes]:
        total = len(self._payload)
        sent = 0
        for start in range(0, total, self._chunk_size):
            chunk = self._payload[start : start + self._chunk_size]
            yield chunk
            sent += len(chunk)
            self._listener(sent, total)


class SessionTransport(Transport):
    """Send requests through a `requests.Session`."""

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        verify: bool | str = True,
        chunk_size: int = 8192,
    ) -> None:
        self._session = session or requests.Session()
        self._verify = verify
        self._chunk_size = chunk_size

    def send(
        self,
        request: OutgoingRequest,
        *,
        on_upload: ProgressListener,
        on_download: ProgressListener,
    ) -> Completion:
        headers = dict(request.headers)
        payload = self._serialize(request.body, headers)
        data = _UploadStream(payload, self._chunk_size, on_upload) if payload else None
        try:
            response = self._session.request(
                method=request.method,
                url=request.url,
                headers=headers,
                data=data,
                stream=True,
                verify=self._verify,
            )
            try:
                text = self._download(response, on_download)
            finally:
                response.close()
        except requests.RequestException as exc:
            reason = str(exc).strip() or exc.__class__.__name__
            logger.warning("Transport failure for %s %s: %s", request.method, request.url, reason)
            raise TransportError(f"Failed to complete request: {reason}", details=reason) from exc

        raw_headers = "\r\n".join(f"{name}: {value}" for name, value in response.headers.items())
        return Completion(status_code=response.status_code, text=text, raw_headers=raw_headers)

    def close(self) -> None:
        self._session.close()

    @staticmethod
    def _serialize(body: str | FormData | None, headers: MutableMapping[str, str]) -> bytes:
        if body is None:
            return b""
        if isinstance(body, FormData):
            for name in [key for key in headers if key.lower() == "content-type"]:
                del headers[name]
            payload, content_type = encode_multipart_formdata(body.to_fields())
            headers["Content-Type"] = content_type
            return payload
        return body.encode("utf-8")

    def _download(self, response: requests.Response, listener: ProgressListener) -> str:
        try:
            total = int(response.headers.get("Content-Length") or 0)
        except ValueError:
            total = 0
        received = 0
        chunks: list[bytes] = []
        for chunk in response.iter_content(chunk_size=self._chunk_size):
            if not chunk:
                continue
            chunks.append(chunk)
            received += len(chunk)
            if total:
                listener(received, total)
        if not total:
            listener(received, received)
        return b"".join(chunks).decode(_declared_charset(response), errors="replace")


def _declared_charset(response: requests.Response) -> str:
    """Charset named in Content-Type, else UTF-8 (as browsers decode responseText)."""

    _, params = _parse_content_type_header(response.headers.get("Content-Type") or "")
    charset = str(params.get("charset") or "").strip("'\" ")
    if not charset:
        return "utf-8"
    try:
        return codecs.lookup(charset).name
    except LookupError:
        logger.debug("Unknown response charset %r; decoding as UTF-8", charset)
        return "utf-8"
