"""HTTP surface for Echo Minutes.

Upload a recording to start a minutes job, poll it for progress, cancel it.
Each job gets its own PipelineCoordinator; progress is exposed through a
LatestProgressAdapter that the poll endpoint reads.
"""

import logging
import threading
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile

from adapters.local.callback_progress import CompositeProgressAdapter
from adapters.local.latest_progress import LatestProgressAdapter
from adapters.local.log_progress import LogProgressAdapter
from config import DEFAULT_MAX_FINISHED_JOBS, Config, create_coordinator, get_config
from domain.errors import ConfigurationError, OperationCancelled
from domain.models import AudioInput
from models import (
    JobCreatedResponse,
    JobStatus,
    JobStatusResponse,
    MeetingDetails,
    PipelineResult,
)
from ports.job_queue import JobQueuePort
from ports.progress import ProgressPort
from post_processing import render_markdown
from use_cases.generate_minutes import GenerateMinutesUseCase
from use_cases.pipeline import PipelineCoordinator

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".mp3", ".wav", ".m4a", ".ogg", ".flac", ".webm", ".mp4"}

CoordinatorFactory = Callable[[ProgressPort], PipelineCoordinator]


@dataclass
class MinutesJob:
    job_id: str
    coordinator: PipelineCoordinator
    progress: LatestProgressAdapter


class JobRegistry:
    """Jobs by id in submission order. Only the newest finished jobs are kept."""

    def __init__(self, max_finished: int = DEFAULT_MAX_FINISHED_JOBS):
        self._jobs: dict[str, MinutesJob] = {}
        self._max_finished = max_finished
        self._lock = threading.Lock()

    def add(self, job: MinutesJob) -> None:
        with self._lock:
            self._jobs[job.job_id] = job

    def get(self, job_id: str) -> Optional[MinutesJob]:
        with self._lock:
            return self._jobs.get(job_id)

    def evict(self, is_finished: Callable[[MinutesJob], bool]) -> list[MinutesJob]:
        """Remove the oldest finished jobs beyond the limit and return them."""
        with self._lock:
            finished = [job_id for job_id, job in self._jobs.items() if is_finished(job)]
            excess = finished[:max(0, len(finished) - self._max_finished)]
            return [self._jobs.pop(job_id) for job_id in excess]

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)


def _job_status(queue: JobQueuePort, job: MinutesJob) -> tuple[JobStatus, Optional[str]]:
    raw = queue.status(job.job_id)
    if raw == "failed":
        error = queue.error(job.job_id)
        if isinstance(error, OperationCancelled):
            return JobStatus.CANCELLED, None
        return JobStatus.FAILED, str(error) if error else "Unknown error"
    if raw == "completed":
        return JobStatus.COMPLETED, None
    if job.coordinator.cancelled:
        return JobStatus.CANCELLED, None
    if raw == "running":
        return JobStatus.RUNNING, None
    return JobStatus.PENDING, None


def create_app(
    cfg: Optional[Config] = None,
    coordinator_factory: Optional[CoordinatorFactory] = None,
    job_queue: Optional[JobQueuePort] = None,
) -> FastAPI:
    cfg = cfg or get_config()
    if coordinator_factory is None:
        coordinator_factory = lambda progress: create_coordinator(progress, cfg)
    if job_queue is None:
        from adapters.local.thread_job import ThreadJobAdapter
        job_queue = ThreadJobAdapter(max_workers=cfg.job_workers)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        job_queue.shutdown()

    app = FastAPI(title="Echo Minutes", version="0.1.0", lifespan=lifespan)
    registry = JobRegistry(max_finished=cfg.max_finished_jobs)
    app.state.jobs = registry
    app.state.job_queue = job_queue

    @app.get("/health")
    def health():
        return {"status": "ok", "configured": cfg.openai_api_key is not None}

    @app.post("/v1/minutes", response_model=JobCreatedResponse, status_code=202)
    async def create_minutes(
        file: UploadFile = File(...),
        client_name: str = Form(""),
        meeting_title: str = Form(""),
        date: Optional[str] = Form(None),
    ):
        try:
            cfg.validate()
        except ConfigurationError as e:
            raise HTTPException(status_code=503, detail=str(e))

        filename = file.filename or ""
        extension = Path(filename).suffix.lower()
        if extension not in SUPPORTED_EXTENSIONS:
            raise HTTPException(status_code=400, detail=f"Unsupported audio type: {extension or 'none'}")

        data = await file.read()
        if not data:
            raise HTTPException(status_code=400, detail="Uploaded file is empty")
        if len(data) > cfg.max_upload_mb * 1024 * 1024:
            raise HTTPException(status_code=413, detail=f"File exceeds {cfg.max_upload_mb} MB")

        meeting = MeetingDetails(client_name=client_name, meeting_title=meeting_title, date=date)
        latest = LatestProgressAdapter()
        coordinator = coordinator_factory(CompositeProgressAdapter([LogProgressAdapter(filename), latest]))
        use_case = GenerateMinutesUseCase(coordinator)

        job_id = job_queue.submit(
            use_case.execute, AudioInput(filename=filename, data=data), meeting, cfg.job_timeout
        )
        job = MinutesJob(job_id=job_id, coordinator=coordinator, progress=latest)
        status, _ = _job_status(job_queue, job)
        registry.add(job)
        for old in registry.evict(lambda entry: job_queue.status(entry.job_id) in ("completed", "failed")):
            job_queue.forget(old.job_id)
            logger.debug(f"[{old.job_id}] Evicted finished job")
        logger.info(f"[{job_id}] Accepted {filename} ({len(data)} bytes)")
        return JobCreatedResponse(job_id=job_id, status=status)

    @app.get("/v1/minutes/{job_id}", response_model=JobStatusResponse)
    def get_minutes(job_id: str):
        job = registry.get(job_id)
        if job is None:
            raise HTTPException(status_code=404, detail=f"Unknown job: {job_id}")

        status, error = _job_status(job_queue, job)
        stage, snapshot, detail = job.progress.latest()
        result: Optional[PipelineResult] = None
        markdown = None
        if status == JobStatus.COMPLETED:
            result = job_queue.result(job_id)
            markdown = render_markdown(result) if result else None

        return JobStatusResponse(
            job_id=job_id,
            status=status,
            stage=stage,
            progress=snapshot,
            detail=detail,
            result=result,
            markdown=markdown,
            error=error,
        )

    @app.delete("/v1/minutes/{job_id}", response_model=JobStatusResponse)
    def cancel_minutes(job_id: str):
        job = registry.get(job_id)
        if job is None:
            raise HTTPException(status_code=404, detail=f"Unknown job: {job_id}")
        job.coordinator.cancel()
        logger.info(f"[{job_id}] Cancel requested")
        status, _ = _job_status(job_queue, job)
        stage, snapshot, _ = job.progress.latest()
        return JobStatusResponse(job_id=job_id, status=status, stage=stage, progress=snapshot)

    return app
