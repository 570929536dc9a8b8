"""OpenAIAnalysisAdapter: segments a transcript into minutes with a chat model.

The model is asked for a JSON object; parsing and validation of that payload
happen in mappers.parse_minutes so malformed responses surface uniformly.
"""

import logging
from typing import Optional

from openai import OpenAI

from ports.analysis import AnalysisPort

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a meeting minutes expert. Analyze the transcription and segment it "
    "into topics, identifying action items and key points. Support both English "
    "and Spanish content, and write the minutes in the language of the meeting."
)

USER_PROMPT = (
    "Please analyze this meeting transcription and return a JSON object with a "
    '"topics" array. Each topic must have a "title" string, a "keyPoints" array '
    'of strings and an "actionItems" array of strings (empty if there are none).'
    "\n\nTranscription:\n{transcript}"
)


class OpenAIAnalysisAdapter(AnalysisPort):
    def __init__(
        self,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        client: Optional[OpenAI] = None,
        temperature: float = 0.2,
    ):
        self._api_key = api_key
        self._base_url = base_url
        self._client = client
        self._temperature = temperature

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self._api_key, base_url=self._base_url)
        return self._client

    def analyze(self, transcript: str, model: str) -> str:
        logger.info(f"Analyzing {len(transcript)} characters of transcript with {model}")
        response = self._get_client().chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": USER_PROMPT.format(transcript=transcript)},
            ],
            response_format={"type": "json_object"},
            temperature=self._temperature,
        )
        content = response.choices[0].message.content
        return content or ""

    def is_configured(self) -> bool:
        return bool(self._api_key) or self._client is not None
