"""JobQueuePort: abstract interface for job submission and tracking."""

from abc import ABC, abstractmethod
from typing import Any, Optional


class JobQueuePort(ABC):
    @abstractmethod
    def submit(self, func: Any, *args, **kwargs) -> str:
        """Submit a callable for execution. Returns job ID."""

    @abstractmethod
    def status(self, job_id: str) -> str:
        """Return job status: 'pending', 'running', 'completed', 'failed', 'unknown'."""

    @abstractmethod
    def result(self, job_id: str) -> Optional[Any]:
        """Return job result if completed, None otherwise."""

    @abstractmethod
    def error(self, job_id: str) -> Optional[BaseException]:
        """Return the exception a failed job raised, None otherwise."""

    @abstractmethod
    def forget(self, job_id: str) -> None:
        """Drop the result or error kept for a finished job."""

    def shutdown(self) -> None:
        """Stop accepting jobs and release workers. No-op by default."""
