"""Base abstractions for transports."""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Union

from ..config import ContentType
from ..forms import FormData

ProgressListener = Callable[[int, int], None]


@dataclass(frozen=True, slots=True)
class OutgoingRequest:
    """An encoded request, ready to be sent."""

    method: str
    url: str
    headers: Mapping[str, str]
    body: Union[str, FormData, None] = None
    content_type: ContentType | None = None


@dataclass(frozen=True, slots=True)
class Completion:
    """What the transport saw once the exchange finished."""

    status_code: int
    text: str
    raw_headers: str


class Transport(ABC):
    """Interface each transport must implement."""

    @abstractmethod
    def send(
        self,
        request: OutgoingRequest,
        *,
        on_upload: ProgressListener,
        on_download: ProgressListener,
    ) -> Completion:
        """Send `request`, reporting ``(loaded, total)`` byte counts per phase.

        Multipart bodies are serialized here, including the boundary
        ``Content-Type`` header. Failures before a status code is known raise
        `TransportError`.
        """

    def close(self) -> None:
        """Release pooled resources."""
