"""Transports able to carry a prepared request over the wire."""
from .base import Completion, OutgoingRequest, ProgressListener, Transport
from .session import SessionTransport

__all__ = ["Completion", "OutgoingRequest", "ProgressListener", "SessionTransport", "Transport"]
