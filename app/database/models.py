from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class JobRecord:
    """Represents a row from the asset_jobs table."""

    id: int
    kind: str
    state: str
    attempts: int
    max_attempts: int = 3
    payload: dict[str, Any] = field(default_factory=dict)
    progress: int = 0
    backoff_type: str = "exponential"
    backoff_delay_ms: int = 5000
    remove_on_complete: bool = False
    remove_on_fail: bool = False
    result: dict[str, Any] | None = None
    error_message: str | None = None
    available_at: datetime | None = None
    locked_at: datetime | None = None
    finished_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class AssetRecord:
    """Represents a row from the assets table."""

    id: int
    filename: str
    stored_filename: str
    file_type: str
    file_size: int | None
    path: str
    storage_tier: str
    create_by: int
    thumbnail: str | None = None
    keywords: list[str] = field(default_factory=list)
    status: str = "active"
    group_id: int | None = None
    source_job_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class MetadataFieldRecord:
    """Represents a row from the metadata_fields table."""

    id: int
    name: str
    type: str = "text"
    options: str | None = None


@dataclass
class AssetMetadataRecord:
    """Represents a row from asset_metadata joined with its field name."""

    id: int
    asset_id: int
    field_id: int
    field_name: str
    value: str
    updated_at: datetime | None = None


@dataclass
class NewAsset:
    """Column values for inserting an assets row."""

    filename: str
    stored_filename: str
    file_type: str
    file_size: int | None
    path: str
    storage_tier: str
    create_by: int
    thumbnail: str | None = None
    keywords: list[str] = field(default_factory=list)
    status: str = "active"
    group_id: int | None = None
    source_job_id: int | None = None


@dataclass
class SoftDeleteResult:
    """Outcome of a bulk soft delete, one entry per requested id."""

    deleted: list[int] = field(default_factory=list)
    missing: list[int] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)
