"""Client-side request transport with blended progress reporting."""
from .api import get, post, request, select_files, transport
from .client import AjaxClient
from .config import ClientConfig, ContentType, RequestConfig
from .exceptions import AjaxError, EncodingError, ResponseRejected, TransportError, ValidationError
from .files import FileHandle, FileSelector
from .forms import FormData, HTMLForm
from .http import Response
from .validation import validate

__all__ = [
    "AjaxClient",
    "AjaxError",
    "ClientConfig",
    "ContentType",
    "EncodingError",
    "FileHandle",
    "FileSelector",
    "FormData",
    "HTMLForm",
    "RequestConfig",
    "Response",
    "ResponseRejected",
    "TransportError",
    "ValidationError",
    "get",
    "post",
    "request",
    "select_files",
    "transport",
    "validate",
]
