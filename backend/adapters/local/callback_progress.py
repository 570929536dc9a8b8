"""Progress adapters for in-process consumers: plain callbacks and fan-out."""

import logging
from typing import Callable, Iterable, Optional

from models import ProgressSnapshot, StageDetail
from ports.progress import ProgressPort

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, ProgressSnapshot, Optional[StageDetail]], None]


class CallbackProgressAdapter(ProgressPort):
    """Wraps a ``(stage, snapshot, detail)`` callable."""

    def __init__(self, callback: ProgressCallback):
        self._callback = callback

    def report(
        self,
        stage: str,
        progress: ProgressSnapshot,
        detail: Optional[StageDetail] = None,
    ) -> None:
        self._callback(stage, progress, detail)


class CompositeProgressAdapter(ProgressPort):
    """Forwards every update to each adapter, in order."""

    def __init__(self, adapters: Iterable[ProgressPort]):
        self._adapters = list(adapters)

    def report(
        self,
        stage: str,
        progress: ProgressSnapshot,
        detail: Optional[StageDetail] = None,
    ) -> None:
        for adapter in self._adapters:
            adapter.report(stage, progress, detail)
