"""Turn loosely-typed request options into a `RequestConfig`."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields
from numbers import Real
from types import MappingProxyType
from typing import Any

from .config import (
    DEFAULT_ACCEPT_FILTER,
    DEFAULT_FILE_FIELD_NAME,
    DEFAULT_UPLOAD_RATIO,
    ContentType,
    RequestConfig,
    noop_progress,
)
from .exceptions import ValidationError

_FIELD_NAMES = tuple(f.name for f in fields(RequestConfig))


def validate(options: Mapping[str, Any] | RequestConfig) -> RequestConfig:
    """Return a fully-defaulted `RequestConfig` or raise `ValidationError`.

    Fields are checked in declaration order, so the first offending field is
    the one reported. Passing an already validated config yields an equal
    config.
    """

    if isinstance(options, RequestConfig):
        options = {name: getattr(options, name) for name in _FIELD_NAMES}
    elif not isinstance(options, Mapping):
        raise ValidationError("options", "Request options must be a mapping")

    url = options.get("url")
    if not isinstance(url, str) or not url:
        raise ValidationError("url", "`url` must be a non-empty string")

    method = options.get("method")
    if method is not None and not isinstance(method, str):
        raise ValidationError("method", "`method` must be a string or None")
    method = (method or "GET").upper()

    headers = options.get("headers")
    if headers is not None and not isinstance(headers, Mapping):
        raise ValidationError("headers", "`headers` must be a mapping or None")
    headers = MappingProxyType({str(k): str(v) for k, v in (headers or {}).items()})

    content_type = _check_content_type(options.get("content_type"))

    progress = options.get("progress_callback")
    if progress is not None and not callable(progress):
        raise ValidationError("progress_callback", "`progress_callback` must be callable or None")

    ratio = options.get("upload_ratio")
    if ratio is not None:
        if isinstance(ratio, bool) or not isinstance(ratio, Real):
            raise ValidationError("upload_ratio", "`upload_ratio` must be a number")
        if not 0 <= ratio <= 100:
            raise ValidationError("upload_ratio", "`upload_ratio` must be in a 0-100 interval")
        if ratio != int(ratio):
            raise ValidationError("upload_ratio", "`upload_ratio` must be a whole number")
        ratio = int(ratio)
    else:
        ratio = DEFAULT_UPLOAD_RATIO

    accept = options.get("accept_filter")
    if accept is not None and not isinstance(accept, str):
        raise ValidationError(
            "accept_filter", "`accept_filter` must be a string with a list of allowed mime-types"
        )

    multiple = options.get("allow_multiple_files")
    if multiple is not None and not isinstance(multiple, bool):
        raise ValidationError("allow_multiple_files", "`allow_multiple_files` must be True or False")

    field_name = options.get("file_field_name")
    if field_name is not None and not isinstance(field_name, str):
        raise ValidationError("file_field_name", "`file_field_name` must be a string")

    hook = options.get("before_send_hook")
    if hook is not None and not callable(hook):
        raise ValidationError("before_send_hook", "`before_send_hook` must be callable or None")

    for key in options:
        if key not in _FIELD_NAMES:
            raise ValidationError(key, f"Unknown request option `{key}`")

    return RequestConfig(
        url=url,
        method=method,
        headers=headers,
        data=options.get("data"),
        content_type=content_type,
        progress_callback=progress or noop_progress,
        upload_ratio=ratio,
        accept_filter=accept or DEFAULT_ACCEPT_FILTER,
        allow_multiple_files=multiple or False,
        file_field_name=field_name or DEFAULT_FILE_FIELD_NAME,
        before_send_hook=hook,
    )


def _check_content_type(value: Any) -> ContentType | None:
    if value is None or isinstance(value, ContentType):
        return value
    if isinstance(value, str):
        for member in ContentType:
            if member.value == value:
                return member
    raise ValidationError(
        "content_type", "`content_type` must be taken from the `ContentType` table"
    )


def validate_file_options(options: Mapping[str, Any] | RequestConfig | None) -> tuple[str, bool]:
    """Return ``(accept_filter, allow_multiple_files)`` for a file selection."""

    if isinstance(options, RequestConfig):
        return options.accept_filter, options.allow_multiple_files
    options = options or {}
    if not isinstance(options, Mapping):
        raise ValidationError("options", "File selection options must be a mapping")
    accept = options.get("accept_filter")
    if accept is not None and not isinstance(accept, str):
        raise ValidationError(
            "accept_filter", "`accept_filter` must be a string with a list of allowed mime-types"
        )
    multiple = options.get("allow_multiple_files")
    if multiple is not None and not isinstance(multiple, bool):
        raise ValidationError("allow_multiple_files", "`allow_multiple_files` must be True or False")
    return accept or DEFAULT_ACCEPT_FILTER, multiple or False
