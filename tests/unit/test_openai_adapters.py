"""
Tests for the OpenAI transcription and analysis adapters with an injected client.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

from adapters.openai_api import OpenAIAnalysisAdapter, OpenAITranscriptionAdapter
from domain.models import AudioBlob


def _transcription_client(text="Hola a todos"):
    client = MagicMock()
    client.audio.transcriptions.create.return_value = SimpleNamespace(text=text)
    return client


def _chat_client(content):
    client = MagicMock()
    message = SimpleNamespace(content=content)
    client.chat.completions.create.return_value = SimpleNamespace(choices=[SimpleNamespace(message=message)])
    return client


class TestOpenAITranscriptionAdapter:
    def test_uploads_wav_without_language_hint(self):
        client = _transcription_client()
        adapter = OpenAITranscriptionAdapter(api_key=None, client=client)
        audio = AudioBlob(data=b"RIFF")

        text = adapter.transcribe(audio, "whisper-1", "auto")

        assert text == "Hola a todos"
        kwargs = client.audio.transcriptions.create.call_args.kwargs
        assert kwargs["model"] == "whisper-1"
        assert kwargs["file"] == ("output.wav", b"RIFF", "audio/wav")
        assert "language" not in kwargs

    def test_passes_explicit_language(self):
        client = _transcription_client()
        adapter = OpenAITranscriptionAdapter(api_key="sk-test", client=client)

        adapter.transcribe(AudioBlob(data=b"RIFF"), "whisper-1", "es")

        assert client.audio.transcriptions.create.call_args.kwargs["language"] == "es"

    def test_is_configured(self):
        assert OpenAITranscriptionAdapter(api_key="sk-test").is_configured()
        assert not OpenAITranscriptionAdapter(api_key=None).is_configured()
        assert not OpenAITranscriptionAdapter(api_key="").is_configured()


class TestOpenAIAnalysisAdapter:
    def test_requests_json_object(self):
        client = _chat_client('{"topics": []}')
        adapter = OpenAIAnalysisAdapter(api_key="sk-test", client=client)

        payload = adapter.analyze("We discussed the budget.", "gpt-4o")

        assert payload == '{"topics": []}'
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["response_format"] == {"type": "json_object"}
        system, user = kwargs["messages"]
        assert system["role"] == "system"
        assert "Spanish" in system["content"]
        assert user["content"].endswith("We discussed the budget.")
        assert "keyPoints" in user["content"] and "actionItems" in user["content"]

    def test_empty_content_becomes_empty_string(self):
        adapter = OpenAIAnalysisAdapter(api_key="sk-test", client=_chat_client(None))

        assert adapter.analyze("text", "gpt-4o") == ""

    def test_is_configured(self):
        assert OpenAIAnalysisAdapter(api_key=None, client=MagicMock()).is_configured()
        assert not OpenAIAnalysisAdapter(api_key=None).is_configured()
