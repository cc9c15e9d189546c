"""Blend upload and download progress into one 0-100 scale.

With an upload ratio of 80 the bar fills to 80% once the body is sent and
the remaining 20% tracks the response download::

    [############ 80% ############    20%   ]
                upload             download
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from enum import Enum

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"


def blend(phase: Phase, loaded: int, total: int, upload_ratio: int) -> int:
    """Map a phase's byte counts onto the shared percentage scale.

    Upload values stay within ``[0, upload_ratio]`` and download values
    within ``[upload_ratio, 100]``. A ``total`` of zero counts as complete.
    """

    if total <= 0:
        raw = 100
    else:
        raw = min(100, max(0, math.floor(loaded / total * 100 + 0.5)))
    if phase is Phase.UPLOAD:
        blended = math.ceil(raw * upload_ratio / 100)
    else:
        blended = math.ceil(raw * (100 - upload_ratio) / 100 + upload_ratio)
    return min(100, max(0, int(blended)))


class ProgressRelay:
    """Two progress subscriptions feeding one callback through `blend`."""

    def __init__(self, callback: Callable[[int], None], upload_ratio: int) -> None:
        self._callback = callback
        self._upload_ratio = upload_ratio

    def on_upload(self, loaded: int, total: int) -> None:
        self._emit(Phase.UPLOAD, loaded, total)

    def on_download(self, loaded: int, total: int) -> None:
        self._emit(Phase.DOWNLOAD, loaded, total)

    def _emit(self, phase: Phase, loaded: int, total: int) -> None:
        percentage = blend(phase, loaded, total, self._upload_ratio)
        logger.debug("Progress %s %d/%d -> %d%%", phase.value, loaded, total, percentage)
        self._callback(percentage)
