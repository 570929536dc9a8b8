"""OpenAITranscriptionAdapter: speech-to-text through the OpenAI audio API."""

import logging
from typing import Optional

from openai import OpenAI

from domain.models import AudioBlob
from ports.transcription import TranscriptionPort

logger = logging.getLogger(__name__)

AUTO_LANGUAGE = "auto"


class OpenAITranscriptionAdapter(TranscriptionPort):
    def __init__(
        self,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        client: Optional[OpenAI] = None,
    ):
        self._api_key = api_key
        self._base_url = base_url
        self._client = client

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self._api_key, base_url=self._base_url)
        return self._client

    def transcribe(self, audio: AudioBlob, model: str, language: str = AUTO_LANGUAGE) -> str:
        params = {
            "model": model,
            "file": (audio.filename, audio.data, audio.mime_type),
        }
        # The service detects the language itself when none is given.
        if language and language != AUTO_LANGUAGE:
            params["language"] = language

        logger.info(f"Transcribing {audio.size} bytes with {model} (language={language or AUTO_LANGUAGE})")
        transcription = self._get_client().audio.transcriptions.create(**params)
        text = transcription.text
        logger.info(f"Transcription complete: {len(text)} characters")
        return text

    def is_configured(self) -> bool:
        return bool(self._api_key) or self._client is not None
