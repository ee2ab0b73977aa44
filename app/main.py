import threading
from pathlib import Path

from app.config.settings import Settings
from app.database.connection import apply_schema, close_pool, init_pool
from app.database.repositories.asset_repository import AssetRepository
from app.database.repositories.job_repository import JobRepository
from app.logging.logger import Log
from app.pipeline.maintenance import CleanupHandler, SoftDeleteHandler
from app.pipeline.processor import build_pipeline
from app.queue.models import MEDIA_JOB_KINDS, JobKind
from app.storage.locator import StorageLocator
from app.worker.job_runner import JobHandler, JobRunner
from app.worker.pool import WorkerPool, slot_plan
from app.worker.worker import Worker


def build_job_runner(settings: Settings, job_repo: JobRepository) -> JobRunner:
    """Wire every job kind to its handler."""
    asset_repo = AssetRepository()
    locator = StorageLocator(Path(settings.storage_root), settings.default_storage_tier)
    pipeline = build_pipeline(settings, asset_repo, locator=locator)
    handlers: dict[str, JobHandler] = {kind.value: pipeline for kind in MEDIA_JOB_KINDS}
    handlers[JobKind.CLEANUP.value] = CleanupHandler()
    handlers[JobKind.SOFT_DELETE.value] = SoftDeleteHandler(asset_repo)
    return JobRunner(handlers, job_repo)


def main() -> None:
    """Entry point: initialize pool -> schema -> build dependencies -> start worker pool."""
    settings = Settings()
    Log.configure(settings.log_level)
    plan = slot_plan(settings)
    init_pool(settings, max_size=max(len(plan) + 1, 2))

    try:
        apply_schema()
        job_repo = JobRepository()
        released = job_repo.release_stale_jobs(settings.stale_job_seconds)
        if released:
            Log.warning(f"Released {released} stale active jobs")
        job_runner = build_job_runner(settings, job_repo)

        def make_worker(kinds: list[str], stop_event: threading.Event) -> Worker:
            return Worker(
                job_repo,
                job_runner,
                kinds,
                settings.job_poll_interval_seconds,
                stop_event=stop_event,
            )

        WorkerPool(plan, make_worker).run()
    finally:
        close_pool()


if __name__ == "__main__":
    main()
