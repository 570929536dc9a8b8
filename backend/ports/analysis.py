"""AnalysisPort: abstract interface for transcript-to-minutes analysis."""

from abc import ABC, abstractmethod


class AnalysisPort(ABC):
    @abstractmethod
    def analyze(self, transcript: str, model: str) -> str:
        """Segment a transcript into topics. Returns the raw JSON payload."""

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether a credential is available, so a request may be attempted."""
