from collections.abc import Callable
from datetime import date

import psycopg

from app.database.models import AssetRecord, NewAsset
from app.database.repositories.asset_repository import AssetRepository
from app.logging.logger import Log
from app.pipeline.classifier import classify_media_type
from app.pipeline.exceptions import JobPayloadError, PersistenceError, SourceFileMissingError
from app.pipeline.models import AssetJobPayload
from app.pipeline.pipeline import PipelineContext, PipelineStage, PipelineStep
from app.preview.registry import PreviewGeneratorRegistry
from app.storage.exceptions import UnsupportedStorageTierError
from app.storage.locator import StorageLocator

RECEIVED_PROGRESS = 20
PREVIEW_PROGRESS = 60
DONE_PROGRESS = 100

# User-supplied fields may not replace these.
RESERVED_FIELDS = frozenset({"asset_code", "category"})


def build_asset_metadata(
    payload: AssetJobPayload,
    asset: AssetRecord,
    today: Callable[[], date] = date.today,
) -> dict[str, str]:
    """Metadata attached to every processed asset. Empty values are dropped later."""
    metadata: dict[str, str] = {
        "title": payload.file.original_name,
        "keywords": ", ".join(payload.keywords),
        "description": payload.description or "",
        "creation_date": payload.creation_date or today().isoformat(),
    }
    for name, value in payload.fields.items():
        if name not in RESERVED_FIELDS:
            metadata[name] = value
    metadata["asset_code"] = str(asset.id)
    metadata["category"] = payload.file.mime_type
    return metadata


class ReceiveStep(PipelineStep):
    def run(self, context: PipelineContext) -> PipelineContext:
        context.payload = AssetJobPayload.from_dict(context.raw_payload)
        context.stage = PipelineStage.RECEIVED
        Log.info(
            f"Job {context.job_id} received {context.payload.file.original_name} "
            f"({context.payload.file.mime_type}, {context.payload.file.size} bytes)"
        )
        context.progress.report(RECEIVED_PROGRESS)
        return context


class ClassifyStep(PipelineStep):
    def __init__(self, registry: PreviewGeneratorRegistry) -> None:
        self._registry = registry

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.payload is None:
            raise ValueError("PipelineContext.payload must be set before classification")
        context.kind = classify_media_type(context.payload.file.mime_type)
        context.generator = self._registry.for_kind(context.kind)
        context.stage = PipelineStage.CLASSIFIED
        Log.info(f"Job {context.job_id} classified as {context.kind.value}")
        return context


class GeneratePreviewStep(PipelineStep):
    def __init__(self, locator: StorageLocator) -> None:
        self._locator = locator

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.payload is None or context.generator is None:
            raise ValueError("PipelineContext must be classified before preview generation")
        uploaded = context.payload.file
        try:
            context.tier = self._locator.select_tier(context.payload.storage_tier)
        except UnsupportedStorageTierError as exc:
            raise JobPayloadError(str(exc)) from exc

        source = uploaded.path
        if not source.is_file():
            raise SourceFileMissingError(f"Source file not found: {source}")
        try:
            context.relative_path = self._locator.relative_path(context.tier, source)
        except ValueError as exc:
            raise JobPayloadError(
                f"{source} is outside storage tier {context.tier.value}"
            ) from exc
        context.source_path = source

        thumbnails_dir = self._locator.thumbnails_dir(context.tier)
        context.preview_filename = context.generator.generate(
            source,
            thumbnails_dir,
            uploaded.original_name,
            uploaded.mime_type,
        )
        context.preview_relative_path = self._locator.relative_path(
            context.tier, thumbnails_dir / context.preview_filename
        )
        context.stage = PipelineStage.PREVIEW_GENERATED
        Log.info(f"Job {context.job_id} preview written: {context.preview_relative_path}")
        context.progress.report(PREVIEW_PROGRESS)
        return context


class PersistAssetStep(PipelineStep):
    def __init__(self, asset_repo: AssetRepository) -> None:
        self._asset_repo = asset_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.payload is None or context.tier is None or not context.preview_filename:
            raise ValueError("PipelineContext must have a preview before persisting")
        payload = context.payload
        attrs = NewAsset(
            filename=payload.file.original_name,
            stored_filename=payload.file.stored_filename,
            file_type=payload.file.mime_type,
            file_size=payload.file.size,
            path=context.relative_path,
            storage_tier=context.tier.value,
            create_by=payload.user_id,
            thumbnail=context.preview_relative_path,
            keywords=list(payload.keywords),
            group_id=payload.group_id,
            source_job_id=context.job_id,
        )

        def metadata_for(asset: AssetRecord) -> dict[str, str]:
            context.metadata = build_asset_metadata(payload, asset)
            return context.metadata

        try:
            context.asset = self._asset_repo.create_asset_with_metadata(attrs, metadata_for)
        except psycopg.Error as exc:
            # The preview already on disk is left for the cleanup job.
            raise PersistenceError(
                f"Persisting asset for job {context.job_id} failed: {exc}"
            ) from exc
        context.stage = PipelineStage.PERSISTED
        Log.info(f"Job {context.job_id} persisted asset {context.asset.id}")
        return context
