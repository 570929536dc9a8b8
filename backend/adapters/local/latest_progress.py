"""LatestProgressAdapter: polling accessor over the most recent snapshot."""

import threading
from typing import Optional

from models import ProgressSnapshot, StageDetail
from ports.progress import ProgressPort


class LatestProgressAdapter(ProgressPort):
    """Keeps the last update so another thread (e.g. an HTTP poll) can read it.

    Snapshots are immutable, so handing them out needs no copying.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._stage: Optional[str] = None
        self._snapshot = ProgressSnapshot()
        self._detail: Optional[StageDetail] = None

    def report(
        self,
        stage: str,
        progress: ProgressSnapshot,
        detail: Optional[StageDetail] = None,
    ) -> None:
        with self._lock:
            # keep the last detail while the stage is unchanged
            if detail is not None:
                self._detail = detail
            elif stage != self._stage:
                self._detail = None
            self._stage = stage
            self._snapshot = progress

    def latest(self) -> tuple[Optional[str], ProgressSnapshot, Optional[StageDetail]]:
        with self._lock:
            return self._stage, self._snapshot, self._detail
