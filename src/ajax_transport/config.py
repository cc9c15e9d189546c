"""Configuration helpers for the AJAX transport."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

IDENTIFICATION_HEADER = ("X-Requested-With", "XMLHttpRequest")

DEFAULT_UPLOAD_RATIO = 90
DEFAULT_ACCEPT_FILTER = "*/*"
DEFAULT_FILE_FIELD_NAME = "files"


class ContentType(str, Enum):
    """Wire encodings recognized for request bodies."""

    URLENCODED = "application/x-www-form-urlencoded; charset=utf-8"
    FORM = "multipart/form-data"
    JSON = "application/json; charset=utf-8"


def noop_progress(percentage: int) -> None:
    """Default progress callback."""


@dataclass(frozen=True, slots=True)
class RequestConfig:
    """Normalized request description produced by `validate`."""

    url: str
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    data: Any | None = None
    content_type: ContentType | None = None
    progress_callback: Callable[[int], None] = noop_progress
    upload_ratio: int = DEFAULT_UPLOAD_RATIO
    accept_filter: str = DEFAULT_ACCEPT_FILTER
    allow_multiple_files: bool = False
    file_field_name: str = DEFAULT_FILE_FIELD_NAME
    before_send_hook: Callable[[Any], None] | None = None


@dataclass(slots=True)
class ClientConfig:
    """Typed configuration for `AjaxClient`."""

    base_url: str | None = None
    verify_ssl: bool | str = True
    default_headers: Mapping[str, str] | None = None
    max_workers: int | None = None
    chunk_size: int = 8192

    def resolved_headers(self) -> dict[str, str]:
        name, value = IDENTIFICATION_HEADER
        headers: dict[str, str] = {name: value}
        if self.default_headers:
            headers.update(self.default_headers)
        return headers
