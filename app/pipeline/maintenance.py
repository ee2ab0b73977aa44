from pathlib import Path
from typing import Any

from app.database.models import JobRecord
from app.database.repositories.asset_repository import AssetRepository
from app.logging.logger import Log
from app.pipeline.models import AssetIdsPayload, FileListPayload
from app.queue.job_queue import ProgressReporter


class CleanupHandler:
    """Deletes leftover files. A file that cannot be removed is logged and skipped."""

    def process(self, job: JobRecord, progress: ProgressReporter) -> dict[str, Any]:
        files = FileListPayload.from_dict(job.payload).files
        deleted: list[str] = []
        failed: dict[str, str] = {}
        for index, name in enumerate(files, start=1):
            try:
                Path(name).unlink()
                deleted.append(name)
                Log.info(f"Cleanup job {job.id} deleted {name}")
            except OSError as exc:
                failed[name] = str(exc)
                Log.warning(f"Cleanup job {job.id} failed to delete {name}: {exc}")
            progress.report(index * 100 // len(files))
        return {"deleted_count": len(deleted), "deleted": deleted, "failed": failed}


class SoftDeleteHandler:
    """Marks a batch of assets as deleted and reports every id that did not change."""

    def __init__(self, asset_repo: AssetRepository) -> None:
        self._asset_repo = asset_repo

    def process(self, job: JobRecord, progress: ProgressReporter) -> dict[str, Any]:
        asset_ids = AssetIdsPayload.from_dict(job.payload).asset_ids
        result = self._asset_repo.soft_delete(asset_ids)
        if result.missing:
            Log.warning(f"Soft delete job {job.id}: assets not found {result.missing}")
        if result.failed:
            Log.error(f"Soft delete job {job.id}: failed for {sorted(result.failed)}")
        Log.info(f"Soft delete job {job.id} deleted {len(result.deleted)} assets")
        progress.report(100)
        return {
            "deleted": result.deleted,
            "missing": result.missing,
            "failed": {str(k): v for k, v in result.failed.items()},
        }
