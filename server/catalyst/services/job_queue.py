"""Background job queue for long-running AI generation work.

Jobs run strictly one at a time, in creation order. Callers get a job id
back immediately and poll ``get_job`` for progress. Failures inside a job
are recorded on the job and never stop the dispatcher.

Queue state is only mutated between awaits, so the single event loop
thread makes each mutation atomic without extra locking.
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

from catalyst.config import Settings, settings
from catalyst.models.job import (
    PAYLOAD_MODELS,
    CodeGenerationPayload,
    CodeModificationPayload,
    Job,
    JobPayload,
    JobResult,
    JobStatus,
    JobType,
    utcnow,
)
from catalyst.services.code_generator import CodeGenerator
from catalyst.services.code_modification_service import CodeModificationService
from catalyst.services.storage import JobStore

logger = logging.getLogger(__name__)

# Progress phases: planning, then a linear ramp over files, then done.
PLANNING_PROGRESS = 20
RAMP_SPAN = 60
# Large change sets report progress with a short pause between files
LARGE_JOB_FILES = 10
GENERATION_STEP_DELAY = 0.05
MODIFICATION_STEP_DELAY = 0.1


class JobQueue:
    """Single-flight FIFO queue with poll-based progress."""

    def __init__(
        self,
        generator: CodeGenerator,
        modifier: CodeModificationService,
        config: Settings = settings,
        store: JobStore | None = None,
    ) -> None:
        self._generator = generator
        self._modifier = modifier
        self._config = config
        self._store = store or JobStore()
        self._busy = False
        self._wakeup = asyncio.Event()
        self._tasks: list[asyncio.Task[None]] = []
        self._handlers: dict[str, Callable[[Job], Awaitable[None]]] = {
            "code_generation": self._process_code_generation,
            "code_modification": self._process_code_modification,
        }

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def store(self) -> JobStore:
        return self._store

    # ── Public API ───────────────────────────────────────────────────────

    def create_job(self, job_type: JobType, payload: JobPayload | dict[str, Any]) -> str:
        """Queue a job and return its id without waiting for it to run."""
        model = PAYLOAD_MODELS[job_type]
        if not isinstance(payload, model):
            payload = model.model_validate(payload if isinstance(payload, dict) else payload.model_dump())

        job_id = f"job_{uuid.uuid4().hex}"
        self._store.create_job(Job(id=job_id, type=job_type, payload=payload))
        logger.info("Queued %s job %s", job_type, job_id)

        self._wakeup.set()
        return job_id

    def get_job(self, job_id: str) -> Job | None:
        return self._store.get_job(job_id)

    def update_progress(self, job_id: str, progress: int, status: JobStatus | None = None) -> None:
        """Raise a job's progress. Values are clamped to [0, 100] and never go down."""
        job = self._store.get_job(job_id)
        if job is None:
            return

        changes: dict[str, Any] = {"progress": max(job.progress, min(100, max(0, int(progress))))}
        if status is not None:
            changes["status"] = status
        self._store.update_job(job_id, **changes)

    def complete_job(self, job_id: str, result: JobResult) -> None:
        if self._store.update_job(job_id, status="completed", progress=100, result=result, error=None):
            logger.info("Job %s completed", job_id)

    def fail_job(self, job_id: str, error: str) -> None:
        if self._store.update_job(job_id, status="failed", error=error, result=None):
            logger.warning("Job %s failed: %s", job_id, error)

    # ── Dispatch ─────────────────────────────────────────────────────────

    async def process_next(self) -> bool:
        """Run the oldest pending job to completion.

        Returns False without doing anything when a job is already running
        or nothing is pending.
        """
        if self._busy:
            return False

        job = self._store.first_pending()
        if job is None:
            return False

        self._busy = True
        try:
            self._store.update_job(job.id, status="processing")
            logger.info("Processing %s job %s", job.type, job.id)
            await self._execute(job)
        except asyncio.CancelledError:
            self.fail_job(job.id, "Job was cancelled")
            raise
        except Exception as e:
            logger.exception("Job %s crashed in dispatch", job.id)
            self.fail_job(job.id, str(e) or "Unknown error")
        finally:
            self._busy = False
        return True

    async def drain(self) -> int:
        """Process pending jobs until none are left. Returns how many ran."""
        processed = 0
        while await self.process_next():
            processed += 1
        return processed

    async def run(self) -> None:
        """Dispatcher loop: sleep until a job is queued, then drain."""
        while True:
            await self._wakeup.wait()
            self._wakeup.clear()
            try:
                await self.drain()
            except Exception:
                logger.exception("Job dispatcher error")

    async def _execute(self, job: Job) -> None:
        handler = self._handlers[job.type]
        timeout = self._config.job_timeout_seconds
        if timeout <= 0:
            await handler(job)
            return

        try:
            await asyncio.wait_for(handler(job), timeout)
        except asyncio.TimeoutError:
            self.fail_job(job.id, f"Job timed out after {timeout:g} seconds")

    # ── Work functions ───────────────────────────────────────────────────

    async def _report_file_progress(self, job_id: str, file_count: int, delay: float) -> None:
        for i in range(file_count):
            self.update_progress(job_id, PLANNING_PROGRESS + (i * RAMP_SPAN) // file_count)
            if file_count > LARGE_JOB_FILES:
                await asyncio.sleep(delay)

    async def _process_code_generation(self, job: Job) -> None:
        payload = job.payload
        assert isinstance(payload, CodeGenerationPayload)
        try:
            self.update_progress(job.id, PLANNING_PROGRESS)
            result = await self._generator.generate_project_code(payload)
            await self._report_file_progress(job.id, len(result.files), GENERATION_STEP_DELAY)
            self.complete_job(job.id, result)
        except Exception as e:
            logger.exception("Code generation failed for job %s", job.id)
            self.fail_job(job.id, str(e) or "Code generation failed")

    async def _process_code_modification(self, job: Job) -> None:
        payload = job.payload
        assert isinstance(payload, CodeModificationPayload)
        try:
            self.update_progress(job.id, PLANNING_PROGRESS)
            result = await self._modifier.analyze_and_modify_code(payload)
            await self._report_file_progress(job.id, len(result.changes), MODIFICATION_STEP_DELAY)
            self.complete_job(job.id, result)
        except Exception as e:
            logger.exception("Code modification failed for job %s", job.id)
            self.fail_job(job.id, str(e) or "Code modification failed")

    # ── Retention ────────────────────────────────────────────────────────

    def cleanup(self, now: datetime | None = None) -> int:
        """Drop jobs idle past the retention window. Running jobs are kept."""
        cutoff = (now or utcnow()) - self._config.job_retention
        removed = 0
        for job in self._store.snapshot():
            if job.status != "processing" and job.updated_at < cutoff:
                self._store.delete_job(job.id)
                removed += 1
        if removed:
            logger.info("Cleaned up %d expired jobs", removed)
        return removed

    async def run_cleanup(self) -> None:
        interval = self._config.job_cleanup_interval.total_seconds()
        while True:
            await asyncio.sleep(interval)
            try:
                self.cleanup()
            except Exception:
                logger.exception("Job cleanup failed")

    # ── Lifecycle ────────────────────────────────────────────────────────

    def start(self) -> None:
        """Start the dispatcher and cleanup loops on the running event loop."""
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self.run(), name="job-dispatcher"),
            asyncio.create_task(self.run_cleanup(), name="job-cleanup"),
        ]
        if self._store.count("pending"):
            self._wakeup.set()

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
