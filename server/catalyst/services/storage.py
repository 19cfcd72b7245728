"""In-memory job store. Jobs live only as long as the process."""

import threading
from typing import Any

from catalyst.models.job import Job, JobStatus, utcnow


class JobStore:
    """Thread-safe in-memory store of ``Job`` records.

    Insertion order is preserved, which is what gives the queue its FIFO
    dispatch order. Reads hand out deep copies so callers can never mutate
    a stored record.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, Job] = {}
        self._lock = threading.Lock()

    def create_job(self, job: Job) -> None:
        with self._lock:
            self._jobs[job.id] = job

    def get_job(self, job_id: str) -> Job | None:
        with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy(deep=True) if job else None

    def update_job(self, job_id: str, **changes: Any) -> bool:
        """Apply field changes and refresh ``updated_at``. Unknown ids are a no-op."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return False
            changes.setdefault("updated_at", utcnow())
            self._jobs[job_id] = job.model_copy(update=changes)
            return True

    def delete_job(self, job_id: str) -> None:
        with self._lock:
            self._jobs.pop(job_id, None)

    def list_jobs(self) -> list[str]:
        with self._lock:
            return list(self._jobs.keys())

    def first_pending(self) -> Job | None:
        """Oldest job still waiting to run."""
        with self._lock:
            for job in self._jobs.values():
                if job.status == "pending":
                    return job.model_copy(deep=True)
            return None

    def count(self, status: JobStatus | None = None) -> int:
        with self._lock:
            if status is None:
                return len(self._jobs)
            return sum(1 for j in self._jobs.values() if j.status == status)

    def snapshot(self) -> list[Job]:
        with self._lock:
            return [j.model_copy(deep=True) for j in self._jobs.values()]
