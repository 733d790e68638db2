"""Lightweight background job orchestration utilities."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock, Thread
from typing import Any, Callable, Dict, Iterable, Optional
from uuid import uuid4

from ..logging_config import get_logger

__all__ = [
    "Job",
    "enqueue",
    "get_job",
    "list_jobs",
    "set_async_execution",
    "clear_jobs",
]

logger = get_logger(__name__)


@dataclass
class Job:
    """Simple in-memory representation of a background job."""

    id: str
    name: str
    status: str
    created_at: datetime
    max_attempts: int = 1
    attempts: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "attempts": self.attempts,
            "max_attempts": self.max_attempts,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "error": self.error,
            "metadata": self.metadata,
        }


_JOBS: Dict[str, Job] = {}
_LOCK = Lock()
_MAX_JOBS = 100
_RUN_ASYNC = True


def set_async_execution(enabled: bool) -> None:
    """Configure whether jobs run in threads (True) or synchronously (False)."""

    global _RUN_ASYNC
    _RUN_ASYNC = enabled


def clear_jobs() -> None:
    """Remove all tracked jobs (useful for tests)."""

    with _LOCK:
        _JOBS.clear()


def _store_job(job: Job) -> None:
    with _LOCK:
        _JOBS[job.id] = job
        if len(_JOBS) > _MAX_JOBS:
            # Prune oldest jobs to keep memory bounded.
            for job_id in sorted(_JOBS, key=lambda key: _JOBS[key].created_at)[
                : len(_JOBS) - _MAX_JOBS
            ]:
                _JOBS.pop(job_id, None)


def _snapshot_jobs() -> Iterable[Job]:
    with _LOCK:
        return list(_JOBS.values())


def enqueue(
    name: str,
    target: Callable[..., Any],
    *,
    metadata: Optional[Dict[str, Any]] = None,
    max_attempts: int = 1,
    retry_delay: float = 0.0,
    **kwargs: Any,
) -> Job:
    """Schedule ``target`` for execution and return the tracked job.

    ``target`` is retried up to ``max_attempts`` times. A job that keeps
    failing ends in status "failed"; its error never reaches the caller.
    """

    job = Job(
        id=uuid4().hex,
        name=name,
        status="queued",
        created_at=datetime.now(timezone.utc),
        max_attempts=max(1, max_attempts),
        metadata=metadata or {},
    )
    _store_job(job)

    def runner() -> None:
        job.status = "running"
        job.started_at = datetime.now(timezone.utc)
        try:
            while True:
                job.attempts += 1
                try:
                    target(**kwargs)
                except Exception as exc:
                    job.error = str(exc)
                    if job.attempts >= job.max_attempts:
                        job.status = "failed"
                        logger.error(
                            "Job %s failed after %d attempt(s): %s",
                            job.name,
                            job.attempts,
                            exc,
                            exc_info=True,
                            extra={"job_id": job.id, **job.metadata},
                        )
                        return
                    logger.warning(
                        "Job %s attempt %d/%d failed, retrying",
                        job.name,
                        job.attempts,
                        job.max_attempts,
                        extra={"job_id": job.id, "error": str(exc)},
                    )
                    if retry_delay > 0 and _RUN_ASYNC:
                        time.sleep(retry_delay)
                else:
                    job.status = "succeeded"
                    job.error = None
                    return
        finally:
            job.finished_at = datetime.now(timezone.utc)

    if _RUN_ASYNC:
        thread = Thread(target=runner, name=f"HabitBlitzJob-{job.id}", daemon=True)
        thread.start()
    else:
        runner()

    return job


def get_job(job_id: str) -> Optional[Job]:
    """Return a tracked job by id."""

    with _LOCK:
        return _JOBS.get(job_id)


def list_jobs(*, name: Optional[str] = None) -> list[Job]:
    """Return tracked jobs, newest first, optionally filtered by name."""

    jobs = [job for job in _snapshot_jobs() if name is None or job.name == name]
    return sorted(jobs, key=lambda job: job.created_at, reverse=True)
