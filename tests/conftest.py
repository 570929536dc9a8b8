"""
Pytest fixtures for Echo Minutes tests.
"""

import pytest

from domain.models import AudioInput
from fakes import EngineFactory, FakeAnalysis, FakeTranscription, RecordingProgress, make_coordinator


@pytest.fixture
def progress():
    return RecordingProgress()


@pytest.fixture
def engines():
    return EngineFactory()


@pytest.fixture
def transcription():
    return FakeTranscription()


@pytest.fixture
def analysis():
    return FakeAnalysis()


@pytest.fixture
def coordinator(engines, transcription, analysis, progress):
    return make_coordinator(engines, transcription, analysis, progress)


@pytest.fixture
def audio_input():
    return AudioInput(filename="meeting.mp3", data=b"ID3 fake mp3 bytes")
