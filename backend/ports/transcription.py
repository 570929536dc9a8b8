"""TranscriptionPort: abstract interface for speech-to-text services."""

from abc import ABC, abstractmethod

from domain.models import AudioBlob


class TranscriptionPort(ABC):
    @abstractmethod
    def transcribe(self, audio: AudioBlob, model: str, language: str = "auto") -> str:
        """Transcribe normalized audio. Returns plain transcript text."""

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether a credential is available, so a request may be attempted."""
