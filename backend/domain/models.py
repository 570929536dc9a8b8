"""Framework-agnostic domain models for Echo Minutes.

Pipeline stages and states, the audio payloads passed between stages, and the
mutable progress record owned by the coordinator. Pydantic DTOs (snapshots,
minutes document) live in models.py, with mappers at the boundary.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class Stage(str, Enum):
    """One of the three sequential processing phases."""
    CONVERTING = "converting"
    TRANSCRIBING = "transcribing"
    ANALYZING = "analyzing"


STAGES = (Stage.CONVERTING, Stage.TRANSCRIBING, Stage.ANALYZING)


class PipelineState(str, Enum):
    IDLE = "idle"
    CONVERTING = "converting"
    TRANSCRIBING = "transcribing"
    ANALYZING = "analyzing"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


class EngineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


@dataclass
class AudioInput:
    """A recording handed to the pipeline, held in memory."""
    filename: str
    data: bytes

    @property
    def extension(self) -> str:
        return Path(self.filename).suffix.lower()

    @classmethod
    def from_path(cls, path: str) -> "AudioInput":
        with open(path, "rb") as f:
            return cls(filename=Path(path).name, data=f.read())


@dataclass
class AudioBlob:
    """Normalized audio produced by the converting stage (16 kHz mono PCM WAV)."""
    data: bytes
    filename: str = "output.wav"
    mime_type: str = "audio/wav"

    @property
    def size(self) -> int:
        return len(self.data)


def clamp_fraction(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


@dataclass
class ProgressRecord:
    """Three-slot completion record for a single pipeline run.

    Slots only move forward: an update below the current value is ignored.
    """
    converting: float = 0.0
    transcribing: float = 0.0
    analyzing: float = 0.0

    def get(self, stage: Stage) -> float:
        return getattr(self, Stage(stage).value)

    def update(self, stage: Stage, value: float) -> float:
        name = Stage(stage).value
        current = getattr(self, name)
        updated = max(current, clamp_fraction(value))
        setattr(self, name, updated)
        return updated

    def complete(self, stage: Stage) -> None:
        setattr(self, Stage(stage).value, 1.0)

    def as_dict(self) -> dict[str, float]:
        return {s.value: getattr(self, s.value) for s in STAGES}
