from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from app.database.models import AssetRecord
from app.pipeline.models import AssetJobPayload
from app.preview.base import BasePreviewGenerator
from app.queue.job_queue import ProgressReporter
from app.queue.models import JobKind
from app.storage.locator import StorageTier


class PipelineStage(str, Enum):
    RECEIVED = "received"
    CLASSIFIED = "classified"
    PREVIEW_GENERATED = "preview_generated"
    PERSISTED = "persisted"
    DONE = "done"


@dataclass(slots=True)
class PipelineContext:
    job_id: int
    raw_payload: dict[str, Any]
    progress: ProgressReporter
    stage: PipelineStage | None = None
    payload: AssetJobPayload | None = None
    kind: JobKind | None = None
    generator: BasePreviewGenerator | None = None
    tier: StorageTier | None = None
    source_path: Path | None = None
    relative_path: str = ""
    preview_filename: str = ""
    preview_relative_path: str = ""
    metadata: dict[str, str] = field(default_factory=dict)
    asset: AssetRecord | None = None


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
