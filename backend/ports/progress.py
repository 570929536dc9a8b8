"""ProgressPort: abstract interface for reporting pipeline progress."""

from abc import ABC, abstractmethod
from typing import Optional

from models import ProgressSnapshot, StageDetail


class ProgressPort(ABC):
    @abstractmethod
    def report(
        self,
        stage: str,
        progress: ProgressSnapshot,
        detail: Optional[StageDetail] = None,
    ) -> None:
        """Report progress. stage: converting, transcribing, analyzing.

        Called synchronously by the coordinator for every update, in order.
        """
