"""In-memory job progress tracker polled by the status surface."""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, Optional, Protocol

from ..logging import get_logger
from ..models import GenerationJob, JobStatus


class JobStore(Protocol):
    """Append-only progress log keyed by job id."""

    def create(self, job_id: str) -> GenerationJob:
        ...

    def append(
        self,
        job_id: str,
        message: str,
        progress: Optional[int] = None,
        step: Optional[str] = None,
    ) -> None:
        ...

    def set_status(self, job_id: str, status: JobStatus) -> None:
        ...

    def read(self, job_id: str) -> Optional[GenerationJob]:
        ...


class InMemoryJobStore:
    """Keeps every job for the lifetime of the process.

    Progress and step are stored as given; callers keep them monotonic.
    Once a job reaches COMPLETED or FAILED its status, progress and step
    are frozen, but further log lines are still accepted.
    """

    def __init__(self, *, now: Callable[[], datetime] = datetime.now) -> None:
        self._jobs: Dict[str, GenerationJob] = {}
        self._lock = threading.Lock()
        self._now = now
        self.logger = get_logger("jobs")

    def create(self, job_id: str) -> GenerationJob:
        with self._lock:
            job = GenerationJob(id=job_id)
            self._jobs[job_id] = job
            return replace(job, log=list(job.log))

    def append(
        self,
        job_id: str,
        message: str,
        progress: Optional[int] = None,
        step: Optional[str] = None,
    ) -> None:
        line = f"[{self._now().strftime('%H:%M:%S')}] {message}"
        with self._lock:
            job = self._jobs.setdefault(job_id, GenerationJob(id=job_id))
            job.log.append(line)
            if not job.status.is_terminal:
                if progress is not None:
                    job.progress_percent = max(0, min(100, int(progress)))
                if step is not None:
                    job.current_step = step
        self.logger.info("[job %s] %s", job_id, message)

    def set_status(self, job_id: str, status: JobStatus) -> None:
        with self._lock:
            job = self._jobs.setdefault(job_id, GenerationJob(id=job_id))
            if job.status.is_terminal:
                self.logger.debug(
                    "[job %s] ignoring %s after terminal %s", job_id, status.value, job.status.value
                )
                return
            job.status = status

    def read(self, job_id: str) -> Optional[GenerationJob]:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            return replace(job, log=list(job.log))


__all__ = ["InMemoryJobStore", "JobStore"]
