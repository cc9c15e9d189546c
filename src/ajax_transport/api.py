"""Module-level shortcuts backed by one shared `AjaxClient`."""

from __future__ import annotations

import threading
from concurrent.futures import Future

from .client import AjaxClient, Options
from .files import FileHandle
from .http import Response

_lock = threading.Lock()
_shared_client: AjaxClient | None = None


def _client() -> AjaxClient:
    global _shared_client
    with _lock:
        if _shared_client is None:
            _shared_client = AjaxClient()
        return _shared_client


def request(options: Options) -> Future[Response]:
    return _client().request(options)


def get(options: Options) -> Future[Response]:
    return _client().get(options)


def post(options: Options) -> Future[Response]:
    return _client().post(options)


def transport(options: Options) -> Future[Response]:
    return _client().transport(options)


def select_files(options: Options | None = None) -> Future[list[FileHandle]]:
    return _client().select_files(options)


def reset(client: AjaxClient | None = None) -> None:
    """Replace (or drop) the shared client, closing the previous one."""

    global _shared_client
    with _lock:
        previous, _shared_client = _shared_client, client
    if previous is not None:
        previous.close()
