"""Background harvest jobs with pollable status.

Jobs live in memory only and disappear with the process; there is no
eviction. Each job is written by the single thread that runs it, while any
number of request handlers read it.
"""

from __future__ import annotations

import dataclasses
import secrets
import threading
from threading import Lock
from typing import Any, Callable, Dict, Optional

from .errors import HarvestError
from .logging_utils import _harvest_event
from .models import HarvestResult, Job, JobStatus
from .utils import log_exception, log_line, now_utc

JobRunner = Callable[[str, str], HarvestResult]


class JobStore:
    """Thread-safe mapping of job id to an immutable :class:`Job` snapshot."""

    def __init__(self) -> None:
        self._jobs: Dict[str, Job] = {}
        self._lock = Lock()

    def add(self, job: Job) -> None:
        with self._lock:
            if job.id in self._jobs:
                raise KeyError(f"Duplicate job id {job.id}")
            self._jobs[job.id] = job

    def get(self, job_id: str) -> Optional[Job]:
        with self._lock:
            return self._jobs.get(job_id)

    def replace(self, job_id: str, **changes: Any) -> Job:
        """Swap in a copy of the job with ``changes`` applied."""

        with self._lock:
            updated = dataclasses.replace(self._jobs[job_id], **changes)
            self._jobs[job_id] = updated
            return updated

    def __contains__(self, job_id: object) -> bool:
        with self._lock:
            return job_id in self._jobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)


def _new_job_id() -> str:
    return secrets.token_hex(8)


def _error_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class JobManager:
    """Run one harvest per job on a background thread.

    ``runner(target_id, job_id)`` does the actual work and returns the
    result; ``thread_factory`` defaults to :class:`threading.Thread` and is
    swapped for a synchronous stub in tests.
    """

    def __init__(
        self,
        runner: JobRunner,
        *,
        store: Optional[JobStore] = None,
        thread_factory: Callable[..., Any] = threading.Thread,
    ) -> None:
        self._runner = runner
        self.store = store if store is not None else JobStore()
        self._thread_factory = thread_factory

    def enqueue(self, target_id: str) -> str:
        """Register a pending job and start it; returns immediately."""

        job_id = _new_job_id()
        while job_id in self.store:
            job_id = _new_job_id()
        self.store.add(Job(id=job_id, target_id=target_id, created_at=now_utc()))
        _harvest_event("job", step="enqueued", job_id=job_id, target_id=target_id)

        thread = self._thread_factory(
            target=self._execute, args=(job_id,), name=f"harvest-{job_id}", daemon=True
        )
        thread.start()
        return job_id

    def get_job(self, job_id: str) -> Optional[Job]:
        return self.store.get(job_id)

    def _execute(self, job_id: str) -> None:
        job = self.store.replace(job_id, status=JobStatus.RUNNING)
        log_line(f"[Job {job_id}] Starting harvest for {job.target_id}")
        try:
            result = self._runner(job.target_id, job_id)
        except Exception as exc:  # noqa: BLE001
            message = _error_message(exc)
            if isinstance(exc, HarvestError):
                log_line(f"[Job {job_id}] Error: {message}")
            else:
                log_exception(f"[Job {job_id}] Unexpected error: {message}")
            self.store.replace(
                job_id,
                status=JobStatus.ERROR,
                error_message=message,
                result=None,
                finished_at=now_utc(),
            )
            _harvest_event(
                "error",
                phase="job",
                job_id=job_id,
                error_code=getattr(exc, "error_code", None),
                error=message,
            )
            return

        self.store.replace(
            job_id, status=JobStatus.DONE, result=result, finished_at=now_utc()
        )
        log_line(f"[Job {job_id}] Complete! Found {result.count} reviews.")
        _harvest_event("job", step="done", job_id=job_id, count=result.count)


__all__ = ["JobManager", "JobStore", "JobRunner"]
