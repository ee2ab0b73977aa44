from typing import Any

from app.config.settings import Settings
from app.database.models import JobRecord
from app.database.repositories.job_repository import JobRepository
from app.logging.logger import Log
from app.queue.models import BackoffType, JobKind, JobState, JobStatus, RetryPolicy


class ProgressReporter:
    """Progress handle given to the worker that holds a job.

    Values outside 0..100 are clamped. A value lower than one already reported
    in the same attempt is ignored, so progress never goes backwards.
    """

    def __init__(self, job_repo: JobRepository, job: JobRecord) -> None:
        self._job_repo = job_repo
        self._job = job
        self._last = 0

    @property
    def job_id(self) -> int:
        return self._job.id

    @property
    def current(self) -> int:
        return self._last

    def report(self, percent: int) -> None:
        value = max(0, min(100, int(percent)))
        if value <= self._last:
            return
        if not self._job_repo.update_progress(self._job.id, self._job.attempts, value):
            Log.warning(
                f"Job {self._job.id} progress {value}% ignored: "
                f"attempt {self._job.attempts} is no longer active"
            )
            return
        self._last = value
        self._job.progress = value
        Log.debug(f"Job {self._job.id} progress {value}%")


class JobQueue:
    """Producer and poller side of the asset job queue."""

    def __init__(self, job_repo: JobRepository, settings: Settings) -> None:
        self._job_repo = job_repo
        self._default_policy = RetryPolicy(
            max_attempts=settings.max_job_attempts,
            backoff_type=BackoffType.EXPONENTIAL,
            backoff_delay_ms=settings.job_backoff_delay_ms,
        )

    @property
    def default_policy(self) -> RetryPolicy:
        return self._default_policy

    def enqueue(
        self,
        kind: JobKind | str,
        payload: dict[str, Any],
        policy: RetryPolicy | None = None,
    ) -> int:
        """Persist a waiting job and return its id without waiting for it to run."""
        kind_value = JobKind(kind).value
        job_id = self._job_repo.enqueue(kind_value, payload, policy or self._default_policy)
        Log.info(f"Enqueued {kind_value} job {job_id}")
        return job_id

    def get_status(self, job_id: int) -> JobStatus | None:
        """Snapshot of a job, or None when the id is unknown or was purged."""
        job = self._job_repo.find_by_id(job_id)
        if job is None:
            return None
        return JobStatus(
            id=job.id,
            kind=job.kind,
            state=job.state,
            progress=job.progress,
            result=job.result if job.state == JobState.COMPLETED.value else None,
            attempts=job.attempts,
            error_message=job.error_message,
            timestamp=job.created_at,
        )

    def purge_finished(self, older_than_seconds: int) -> int:
        purged = self._job_repo.purge_finished(older_than_seconds)
        Log.info(f"Purged {purged} finished jobs older than {older_than_seconds}s")
        return purged
