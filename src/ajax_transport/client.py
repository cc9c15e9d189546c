"""High-level AJAX client: validate, encode, send, classify."""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from typing import Any, Union
from urllib.parse import urljoin, urlparse

import requests
import urllib3
from urllib3.exceptions import InsecureRequestWarning

from .config import ClientConfig, ContentType, RequestConfig
from .encoding import encode, fold_query, form_encode, is_form_payload, url_encode
from .files import FileHandle, FilePicker, FileSelector
from .forms import FormData
from .http import Response, build_response, ensure_success
from .progress import ProgressRelay
from .transports.base import OutgoingRequest, Transport
from .transports.session import SessionTransport
from .validation import validate, validate_file_options

logger = logging.getLogger(__name__)

Options = Union[Mapping[str, Any], RequestConfig]


class AjaxClient:
    """Issue requests and resolve them as futures of `Response`.

    Malformed options and unencodable payloads raise immediately, before
    anything is sent. Everything after that settles the returned future: a
    2xx `Response` as its result, `ResponseRejected` for other statuses and
    `TransportError` when no status was obtained.
    """

    def __init__(
        self,
        *,
        base_url: str | None = None,
        verify_ssl: bool | str = True,
        default_headers: Mapping[str, str] | None = None,
        transport: Transport | None = None,
        session: requests.Session | None = None,
        file_picker: FilePicker | None = None,
        max_workers: int | None = None,
        chunk_size: int = 8192,
    ) -> None:
        self.config = ClientConfig(
            base_url=base_url,
            verify_ssl=verify_ssl,
            default_headers=default_headers,
            max_workers=max_workers,
            chunk_size=chunk_size,
        )
        self._suppress_insecure_warning_if_needed()
        self._transport = transport or SessionTransport(
            session, verify=verify_ssl, chunk_size=chunk_size
        )
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ajax")
        self._selector = FileSelector(file_picker)

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> AjaxClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - passthrough
        self.close()

    # Public API --------------------------------------------------------------
    def request(self, options: Options) -> Future[Response]:
        config = validate(options)
        outgoing = self.prepare(config)
        return self._executor.submit(self._execute, outgoing, config)

    def get(self, options: Options) -> Future[Response]:
        return self.request(_with_method(options, "GET"))

    def post(self, options: Options) -> Future[Response]:
        return self.request(_with_method(options, "POST"))

    def transport(self, options: Options) -> Future[Response]:
        """Ask the user for files, then POST them as multipart form data.

        Selected files go under ``file_field_name``; extra ``data`` fields are
        appended after them and ``before_send_hook`` sees the files right
        before sending.
        """

        config = validate(options)
        selection = self._selector.select_files(
            accept=config.accept_filter, multiple=config.allow_multiple_files
        )
        return self._executor.submit(self._upload, selection, config)

    def select_files(self, options: Options | None = None) -> Future[list[FileHandle]]:
        accept, multiple = validate_file_options(options)
        return self._selector.select_files(accept=accept, multiple=multiple)

    def prepare(self, config: RequestConfig) -> OutgoingRequest:
        """Encode a validated config into the request that will be sent."""

        headers: MutableMapping[str, str] = self.config.resolved_headers()
        headers.update(config.headers)

        if config.method == "GET":
            return OutgoingRequest(
                method=config.method,
                url=fold_query(config.url, url_encode(config.data)),
                headers=headers,
            )

        content_type = self._effective_content_type(config)
        data = {} if config.data is None else config.data
        body = encode(data, content_type)
        for name in [key for key in headers if key.lower() == "content-type"]:
            del headers[name]
        if content_type is not ContentType.FORM:
            headers["Content-Type"] = content_type.value
        return OutgoingRequest(
            method=config.method,
            url=config.url,
            headers=headers,
            body=body,
            content_type=content_type,
        )

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        self._selector.close()
        self._transport.close()

    # Internal helpers -------------------------------------------------------
    @staticmethod
    def _effective_content_type(config: RequestConfig) -> ContentType:
        if is_form_payload(config.data):
            return ContentType.FORM
        return config.content_type or ContentType.JSON

    def _execute(self, outgoing: OutgoingRequest, config: RequestConfig) -> Response:
        relay = ProgressRelay(config.progress_callback, config.upload_ratio)
        outgoing = replace(outgoing, url=self._resolve_url(outgoing.url))
        content_type = outgoing.content_type.name if outgoing.content_type else "none"
        logger.info("AJAX request %s %s (content_type=%s)", outgoing.method, outgoing.url, content_type)
        completion = self._transport.send(
            outgoing, on_upload=relay.on_upload, on_download=relay.on_download
        )
        response = build_response(completion.status_code, completion.text, completion.raw_headers)
        logger.info("AJAX response %s %s -> %s", outgoing.method, outgoing.url, response.status_code)
        return ensure_success(response)

    def _upload(self, selection: Future[list[FileHandle]], config: RequestConfig) -> Response:
        files = selection.result()
        form = FormData()
        for handle in files:
            form.append(config.file_field_name, handle)
        if config.data is not None:
            form.extend(form_encode(config.data))
        if config.before_send_hook is not None:
            config.before_send_hook(files)
        upload = replace(config, method="POST", data=form, content_type=ContentType.FORM)
        return self._execute(self.prepare(upload), upload)

    def _resolve_url(self, url: str) -> str:
        if not self.config.base_url or urlparse(url).scheme:
            return url
        return urljoin(self.config.base_url, url)

    def _suppress_insecure_warning_if_needed(self) -> None:
        if isinstance(self.config.verify_ssl, bool) and not self.config.verify_ssl:
            urllib3.disable_warnings(InsecureRequestWarning)


def _with_method(options: Options, method: str) -> Any:
    if isinstance(options, RequestConfig):
        return replace(options, method=method)
    if isinstance(options, Mapping):
        return {**options, "method": method}
    return options
