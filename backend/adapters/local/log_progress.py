"""LogProgressAdapter: reports progress via logging."""

import logging
from typing import Optional

from models import ProgressSnapshot, StageDetail
from ports.progress import ProgressPort

logger = logging.getLogger(__name__)


class LogProgressAdapter(ProgressPort):
    def __init__(self, label: Optional[str] = None):
        self._label = label
        self._last: dict[str, int] = {}

    def report(
        self,
        stage: str,
        progress: ProgressSnapshot,
        detail: Optional[StageDetail] = None,
    ) -> None:
        percent = int(getattr(progress, stage, 0.0) * 100)
        # ffmpeg emits many updates per percent; only log when the figure moves
        if detail is None and self._last.get(stage) == percent:
            return
        self._last[stage] = percent

        msg = f"[{self._label}] {stage}" if self._label else stage
        msg += f" {percent}%"
        if detail:
            parts = [f"{k}={v}" for k, v in detail.model_dump(exclude_none=True).items()]
            if parts:
                msg += " - " + ", ".join(parts)
        logger.info(msg)
