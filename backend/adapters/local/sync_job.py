"""SyncJobAdapter: runs jobs inline."""

import uuid
import logging
from typing import Any, Optional

from ports.job_queue import JobQueuePort

logger = logging.getLogger(__name__)


class SyncJobAdapter(JobQueuePort):
    """Executes jobs synchronously. No queue, no background processing."""

    def __init__(self):
        self._results: dict[str, Any] = {}
        self._errors: dict[str, BaseException] = {}

    def submit(self, func: Any, *args, **kwargs) -> str:
        job_id = uuid.uuid4().hex[:12]
        try:
            self._results[job_id] = func(*args, **kwargs)
        except Exception as e:
            logger.info(f"Job {job_id} failed: {e}")
            self._errors[job_id] = e
        return job_id

    def status(self, job_id: str) -> str:
        if job_id in self._errors:
            return "failed"
        return "completed" if job_id in self._results else "unknown"

    def result(self, job_id: str) -> Optional[Any]:
        return self._results.get(job_id)

    def error(self, job_id: str) -> Optional[BaseException]:
        return self._errors.get(job_id)

    def forget(self, job_id: str) -> None:
        self._results.pop(job_id, None)
        self._errors.pop(job_id, None)
