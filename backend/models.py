from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class StageDetail(BaseModel):
    """Informational metadata attached to a progress update."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    bitrate: Optional[str] = None
    sample_rate: Optional[str] = Field(default=None, alias="sampleRate")
    duration: Optional[str] = None
    size: Optional[str] = None
    format: Optional[str] = None
    stage: Optional[str] = None


class ProgressSnapshot(BaseModel):
    """Immutable copy of the three-slot progress record."""
    model_config = ConfigDict(frozen=True)

    converting: float = Field(default=0.0, ge=0.0, le=1.0)
    transcribing: float = Field(default=0.0, ge=0.0, le=1.0)
    analyzing: float = Field(default=0.0, ge=0.0, le=1.0)


class Topic(BaseModel):
    """One segment of the meeting with its key points and action items."""
    model_config = ConfigDict(populate_by_name=True)

    title: str
    key_points: List[str] = Field(default_factory=list, alias="keyPoints")
    action_items: List[str] = Field(default_factory=list, alias="actionItems")


class MinutesDocument(BaseModel):
    topics: List[Topic]


class MeetingDetails(BaseModel):
    """Client-supplied metadata shown on the rendered minutes."""
    model_config = ConfigDict(populate_by_name=True)

    client_name: str = Field(default="", alias="clientName")
    meeting_title: str = Field(default="", alias="meetingTitle")
    date: Optional[str] = None


class PipelineResult(BaseModel):
    """Final output of a run: raw transcript plus structured minutes."""
    transcript: str
    minutes: MinutesDocument
    meeting: Optional[MeetingDetails] = None


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class JobCreatedResponse(BaseModel):
    job_id: str
    status: JobStatus = JobStatus.PENDING


class JobStatusResponse(BaseModel):
    """Polling view over a minutes job."""
    job_id: str
    status: JobStatus
    stage: Optional[str] = None
    progress: ProgressSnapshot = ProgressSnapshot()
    detail: Optional[StageDetail] = None
    result: Optional[PipelineResult] = None
    markdown: Optional[str] = None
    error: Optional[str] = None
