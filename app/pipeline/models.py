from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from app.pipeline.exceptions import JobPayloadError


def parse_keywords(raw: str | Iterable[str] | None) -> list[str]:
    """Split a comma-separated string (or flatten a list) into trimmed keywords."""
    if raw is None:
        return []
    items = raw.split(",") if isinstance(raw, str) else [str(item) for item in raw]
    keywords: list[str] = []
    for item in items:
        keyword = item.strip()
        if keyword and keyword not in keywords:
            keywords.append(keyword)
    return keywords


@dataclass(frozen=True)
class UploadedFile:
    """A received upload as handed over by the web tier."""

    original_name: str
    stored_path: str
    mime_type: str
    size: int
    checksum: str | None = None

    @property
    def path(self) -> Path:
        return Path(self.stored_path)

    @property
    def stored_filename(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class AssetJobPayload:
    """Serialized into asset_jobs.payload for image/video/document jobs."""

    file: UploadedFile
    user_id: int
    group_id: int | None = None
    storage_tier: str | None = None
    keywords: list[str] = field(default_factory=list)
    description: str | None = None
    creation_date: str | None = None
    fields: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AssetJobPayload":
        """Rebuild a payload from JSON.

        Raises:
            JobPayloadError: if required keys are missing or mistyped.
        """
        try:
            raw_file = data["file"]
            uploaded = UploadedFile(
                original_name=str(raw_file["original_name"]),
                stored_path=str(raw_file["stored_path"]),
                mime_type=str(raw_file.get("mime_type") or ""),
                size=int(raw_file["size"]),
                checksum=raw_file.get("checksum"),
            )
            group_id = data.get("group_id")
            raw_fields = data.get("fields") or {}
            if not isinstance(raw_fields, dict):
                raise TypeError("fields must be an object")
            return cls(
                file=uploaded,
                user_id=int(data["user_id"]),
                group_id=int(group_id) if group_id is not None else None,
                storage_tier=data.get("storage_tier"),
                keywords=parse_keywords(data.get("keywords")),
                description=data.get("description"),
                creation_date=data.get("creation_date"),
                fields={str(k): str(v) for k, v in raw_fields.items() if v is not None},
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise JobPayloadError(f"invalid asset job payload: {exc!r}") from exc


@dataclass(frozen=True)
class FileListPayload:
    """Payload of cleanup jobs."""

    files: list[str]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileListPayload":
        files = data.get("files")
        if not isinstance(files, list):
            raise JobPayloadError("cleanup payload must contain a 'files' list")
        return cls(files=[str(f) for f in files])


@dataclass(frozen=True)
class AssetIdsPayload:
    """Payload of soft-delete jobs."""

    asset_ids: list[int]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AssetIdsPayload":
        ids = data.get("asset_ids")
        if not isinstance(ids, list):
            raise JobPayloadError("soft delete payload must contain an 'asset_ids' list")
        try:
            return cls(asset_ids=[int(i) for i in ids])
        except (TypeError, ValueError) as exc:
            raise JobPayloadError(f"invalid asset id in {ids!r}") from exc
