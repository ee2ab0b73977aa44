import threading
from collections.abc import Iterable

from app.database.connection import get_connection
from app.database.models import JobRecord
from app.database.repositories.job_repository import JobRepository
from app.logging.logger import Log
from app.worker.job_runner import JobRunner


class Worker:
    """Poll loop for one worker slot: wait -> claim -> dispatch.

    The slot only claims jobs of ``kinds`` and runs at most one job at a time.
    """

    def __init__(
        self,
        job_repo: JobRepository,
        job_runner: JobRunner,
        kinds: Iterable[str],
        poll_interval_seconds: float,
        stop_event: threading.Event | None = None,
    ) -> None:
        self._job_repo = job_repo
        self._job_runner = job_runner
        self._kinds = list(kinds)
        self._poll_interval = poll_interval_seconds
        self._stop_event = stop_event or threading.Event()

    @property
    def kinds(self) -> list[str]:
        return list(self._kinds)

    def stop(self) -> None:
        self._stop_event.set()

    def run(self, max_jobs: int | None = None) -> None:
        """Main poll loop. Runs until stopped or interrupted.

        If max_jobs is set, stop after processing that many jobs (for testing).
        """
        Log.info(f"Worker started, polling for {', '.join(self._kinds)} jobs")
        jobs_done = 0
        try:
            while not self._stop_event.is_set():
                if max_jobs is not None and jobs_done >= max_jobs:
                    break
                job = self._try_claim_job()
                if job:
                    self._dispatch(job)
                    jobs_done += 1
                else:
                    Log.debug("No jobs available, sleeping")
                    self._stop_event.wait(self._poll_interval)
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")
        Log.info(f"Worker stopped after {jobs_done} jobs")

    def _dispatch(self, job: JobRecord) -> None:
        """Run one job. Errors escaping the runner must not end the loop."""
        try:
            self._job_runner.run(job)
        except Exception as exc:
            Log.error(f"Job {job.id} dispatch failed: {exc}")

    def _try_claim_job(self) -> JobRecord | None:
        """Attempt to claim the next due job. Gracefully handle DB errors."""
        try:
            with get_connection() as conn:
                return self._job_repo.claim_next_job(conn, self._kinds)
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return None
