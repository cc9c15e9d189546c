"""Custom exception hierarchy for the AJAX transport."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from .http import Response


class AjaxError(RuntimeError):
    """Base error for AJAX transport failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ValidationError(AjaxError):
    """Raised when a request configuration is malformed."""

    def __init__(self, field: str, message: str | None = None) -> None:
        super().__init__(message or f"Invalid `{field}` value", details=field)
        self.field = field


class EncodingError(AjaxError):
    """Raised when a payload cannot be converted to the chosen wire format."""


class TransportError(AjaxError):
    """Raised when the transport fails before a status code is obtained."""


class ResponseRejected(AjaxError):
    """Carries a non-2xx response; the server answered, the request was not accepted."""

    def __init__(self, response: Response) -> None:
        super().__init__(
            f"Request rejected with status {response.status_code}",
            status_code=response.status_code,
            details=response.body,
        )
        self.response = response
