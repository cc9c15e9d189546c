"""Response envelope and completion parsing."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from .exceptions import ResponseRejected


@dataclass(frozen=True, slots=True)
class Response:
    """Classified outcome of a completed exchange."""

    body: Any
    status_code: int
    headers: Mapping[str, str]

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def parse_header_block(raw: str) -> dict[str, str]:
    """Parse a ``name: value`` per line block; repeated names are comma-joined.

    Names are lowercased, matching what browsers report.
    """

    headers: dict[str, str] = {}
    for line in raw.splitlines():
        name, separator, value = line.partition(": ")
        name = name.strip().lower()
        if not separator or not name:
            continue
        value = value.strip()
        headers[name] = f"{headers[name]}, {value}" if name in headers else value
    return headers


def parse_body(text: str) -> Any:
    """Return parsed JSON, or the raw text when it is not JSON."""

    try:
        return json.loads(text)
    except ValueError:
        return text


def build_response(status_code: int, text: str, raw_headers: str) -> Response:
    return Response(
        body=parse_body(text),
        status_code=status_code,
        headers=MappingProxyType(parse_header_block(raw_headers)),
    )


def ensure_success(response: Response) -> Response:
    """Raise `ResponseRejected` if the response signals a failure."""

    if response.ok:
        return response
    raise ResponseRejected(response)
