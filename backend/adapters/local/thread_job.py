"""ThreadJobAdapter: runs jobs on a thread pool so requests return immediately."""

import uuid
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Optional

from ports.job_queue import JobQueuePort

logger = logging.getLogger(__name__)


class ThreadJobAdapter(JobQueuePort):
    def __init__(self, max_workers: int = 2):
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="minutes-job")
        self._futures: dict[str, Future] = {}

    def submit(self, func: Any, *args, **kwargs) -> str:
        job_id = uuid.uuid4().hex[:12]
        self._futures[job_id] = self._pool.submit(func, *args, **kwargs)
        logger.info(f"Submitted job {job_id}")
        return job_id

    def status(self, job_id: str) -> str:
        future = self._futures.get(job_id)
        if future is None:
            return "unknown"
        if future.running():
            return "running"
        if not future.done():
            return "pending"
        if future.cancelled():
            return "failed"
        return "failed" if future.exception() is not None else "completed"

    def result(self, job_id: str) -> Optional[Any]:
        future = self._futures.get(job_id)
        if future is None or not future.done() or future.cancelled() or future.exception() is not None:
            return None
        return future.result()

    def error(self, job_id: str) -> Optional[BaseException]:
        future = self._futures.get(job_id)
        if future is None or not future.done() or future.cancelled():
            return None
        return future.exception()

    def forget(self, job_id: str) -> None:
        self._futures.pop(job_id, None)

    def shutdown(self) -> None:
        self._pool.shutdown(wait=False, cancel_futures=True)
