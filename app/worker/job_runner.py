from typing import Any, Protocol

from app.database.models import JobRecord
from app.database.repositories.job_repository import JobRepository
from app.logging.logger import Log
from app.queue.job_queue import ProgressReporter
from app.queue.models import backoff_delay_ms


class JobHandler(Protocol):
    def process(self, job: JobRecord, progress: ProgressReporter) -> dict[str, Any]: ...


class JobRunner:
    """Run one claimed job, catch exceptions, and apply retry logic."""

    def __init__(
        self,
        handlers: dict[str, JobHandler],
        job_repo: JobRepository,
    ) -> None:
        self._handlers = handlers
        self._job_repo = job_repo

    @property
    def kinds(self) -> list[str]:
        return list(self._handlers)

    def run(self, job: JobRecord) -> None:
        """Execute a single job with error handling."""
        Log.info(f"Running {job.kind} job {job.id} (attempt {job.attempts}/{job.max_attempts})")
        try:
            handler = self._handlers.get(job.kind)
            if handler is None:
                raise ValueError(f"No handler registered for job kind '{job.kind}'")
            result = handler.process(job, ProgressReporter(self._job_repo, job))
            self._job_repo.mark_completed(job, result)
            Log.info(f"Job {job.id} completed successfully")
        except Exception as exc:
            self._handle_failure(job, exc)

    def _handle_failure(self, job: JobRecord, exc: Exception) -> None:
        """Fail permanently when attempts are used up, otherwise back off and retry."""
        Log.error(f"Job {job.id} failed: {type(exc).__name__}: {exc}")
        error = str(exc) or type(exc).__name__
        if job.attempts >= job.max_attempts:
            self._job_repo.mark_failed(job, error)
            Log.error(f"Job {job.id} permanently failed after {job.attempts} attempts")
            return
        delay_ms = backoff_delay_ms(job.backoff_type, job.backoff_delay_ms, job.attempts)
        self._job_repo.schedule_retry(job.id, error, delay_ms)
        Log.warning(
            f"Job {job.id} will be retried in {delay_ms} ms "
            f"(attempt {job.attempts + 1}/{job.max_attempts})"
        )
