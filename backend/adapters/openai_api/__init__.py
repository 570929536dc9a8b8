"""OpenAI adapters for transcription (Whisper) and minutes analysis (chat completions)."""

from .transcription import OpenAITranscriptionAdapter
from .analysis import OpenAIAnalysisAdapter

__all__ = ["OpenAITranscriptionAdapter", "OpenAIAnalysisAdapter"]
