from pathlib import Path
from typing import Any

from app.config.settings import Settings
from app.database.models import JobRecord
from app.database.repositories.asset_repository import AssetRepository
from app.logging.logger import Log
from app.pipeline.pipeline import PipelineContext, PipelineStage, PipelineStep
from app.pipeline.steps import (
    DONE_PROGRESS,
    ClassifyStep,
    GeneratePreviewStep,
    PersistAssetStep,
    ReceiveStep,
)
from app.preview.registry import PreviewGeneratorRegistry
from app.queue.job_queue import ProgressReporter
from app.storage.locator import StorageLocator


class AssetPipeline:
    """Runs one media job through its stages.

    Pipeline: receive -> classify -> generate preview -> persist.
    Any exception propagates to the job runner, which retries or fails the job.
    """

    def __init__(self, steps: list[PipelineStep]) -> None:
        self._steps = steps

    def process(self, job: JobRecord, progress: ProgressReporter) -> dict[str, Any]:
        Log.info(f"Processing {job.kind} job {job.id} (attempt {job.attempts})")
        context = PipelineContext(job_id=job.id, raw_payload=job.payload, progress=progress)
        for step in self._steps:
            context = step.run(context)

        if context.asset is None or context.tier is None:
            raise RuntimeError(f"Pipeline for job {job.id} finished without an asset")
        context.stage = PipelineStage.DONE
        progress.report(DONE_PROGRESS)
        return {"asset_id": context.asset.id, "storage_tier": context.tier.value}


def build_pipeline(
    settings: Settings,
    asset_repo: AssetRepository,
    locator: StorageLocator | None = None,
    registry: PreviewGeneratorRegistry | None = None,
) -> AssetPipeline:
    """Build an AssetPipeline with all required collaborators."""
    locator = locator or StorageLocator(
        Path(settings.storage_root), settings.default_storage_tier
    )
    registry = registry or PreviewGeneratorRegistry.from_settings(settings)
    return AssetPipeline(
        steps=[
            ReceiveStep(),
            ClassifyStep(registry),
            GeneratePreviewStep(locator),
            PersistAssetStep(asset_repo),
        ]
    )
