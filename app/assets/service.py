import mimetypes
import shutil
import unicodedata
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import quote

from app.access.base import AccessChecker
from app.access.exceptions import AccessDeniedError
from app.access.group_access_checker import GroupAccessChecker
from app.config.settings import Settings
from app.database.models import AssetRecord, MetadataFieldRecord
from app.database.repositories.asset_repository import AssetRepository
from app.database.repositories.group_membership_repository import GroupMembershipRepository
from app.database.repositories.job_repository import JobRepository
from app.logging.logger import Log
from app.pipeline.classifier import classify_media_type
from app.pipeline.models import AssetJobPayload, UploadedFile, parse_keywords
from app.queue.job_queue import JobQueue
from app.queue.models import JobKind, RetryPolicy
from app.storage.exceptions import ChecksumMismatchError, UnsupportedStorageTierError
from app.storage.filenames import unique_stored_filename
from app.storage.hasher import ContentHasher
from app.storage.locator import StorageLocator, StorageTier, parse_tier

NOT_FOUND: dict[str, str] = {"error": "not found"}

# Maintenance jobs run once; their handlers report per-item failures instead.
MAINTENANCE_POLICY = RetryPolicy(max_attempts=1)


@dataclass(frozen=True)
class IncomingFile:
    """A file the web tier has already written to a temporary path."""

    temp_path: Path
    original_name: str
    mime_type: str
    size: int
    checksum: str | None = None


@dataclass(frozen=True)
class UploadReceipt:
    job_id: int
    filename: str
    checksum: str

    def to_dict(self) -> dict[str, Any]:
        return {"job_id": self.job_id, "filename": self.filename, "checksum": self.checksum}


@dataclass(frozen=True)
class AssetFile:
    """What a web handler needs to stream an asset file."""

    path: Path
    content_type: str
    content_disposition: str


def content_disposition(filename: str, disposition: str = "inline") -> str:
    """Header value with an ASCII fallback and an RFC 5987 ``filename*``."""
    fallback = (
        unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    )
    fallback = fallback.replace("\\", "_").replace('"', "_").strip() or "download"
    encoded = quote(filename, safe="")
    return f"{disposition}; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"


class AssetService:
    """Entry points the HTTP layer calls for uploads, job polling and file access."""

    def __init__(
        self,
        job_queue: JobQueue,
        asset_repo: AssetRepository,
        access_checker: AccessChecker,
        locator: StorageLocator,
        hasher: ContentHasher | None = None,
    ) -> None:
        self._job_queue = job_queue
        self._asset_repo = asset_repo
        self._access_checker = access_checker
        self._locator = locator
        self._hasher = hasher or ContentHasher()

    def submit_uploads(
        self,
        files: list[IncomingFile],
        user_id: int,
        group_id: int | None = None,
        storage_tier: StorageTier | str | None = None,
        keywords: str | Iterable[str] | None = None,
        description: str | None = None,
        creation_date: str | None = None,
        fields: Mapping[str, str] | None = None,
    ) -> list[UploadReceipt]:
        """Verify, store and enqueue a batch of uploads.

        Every file is checked before anything is enqueued. If one file fails
        its checksum, all temp files of the batch are deleted and nothing is
        queued.

        Raises:
            ChecksumMismatchError: if a client digest differs from the received bytes.
            AccessDeniedError: if the user may not upload into ``group_id``.
            UnsupportedStorageTierError: if ``storage_tier`` is unknown.
        """
        if group_id is not None and not self._access_checker.can_upload_to_group(
            group_id, user_id
        ):
            self._discard(files)
            raise AccessDeniedError(f"User {user_id} may not upload to group {group_id}")

        try:
            tier = self._locator.select_tier(parse_tier(storage_tier))
        except UnsupportedStorageTierError:
            self._discard(files)
            raise
        checksums = self._verify_all(files)
        keyword_list = parse_keywords(keywords)

        receipts: list[UploadReceipt] = []
        for incoming, checksum in zip(files, checksums):
            stored_path = self._store(incoming, tier)
            payload = AssetJobPayload(
                file=UploadedFile(
                    original_name=incoming.original_name,
                    stored_path=str(stored_path),
                    mime_type=incoming.mime_type,
                    size=incoming.size,
                    checksum=checksum,
                ),
                user_id=user_id,
                group_id=group_id,
                storage_tier=tier.value,
                keywords=keyword_list,
                description=description,
                creation_date=creation_date,
                fields=dict(fields or {}),
            )
            kind = classify_media_type(incoming.mime_type)
            job_id = self._job_queue.enqueue(kind, payload.to_dict())
            receipts.append(UploadReceipt(job_id, stored_path.name, checksum))
            Log.info(
                f"Upload {incoming.original_name} stored as {stored_path.name}, "
                f"queued as {kind.value} job {job_id}"
            )
        return receipts

    def get_job_status(self, job_id: int | str) -> dict[str, Any]:
        """``{id, state, progress, result, timestamp}`` or ``{"error": "not found"}``."""
        try:
            numeric_id = int(job_id)
        except (TypeError, ValueError):
            return dict(NOT_FOUND)
        status = self._job_queue.get_status(numeric_id)
        if status is None:
            return dict(NOT_FOUND)
        return status.to_dict()

    def open_asset_file(
        self,
        asset_id: int,
        user_id: int,
        variant: str = "thumb",
    ) -> AssetFile | None:
        """Locate the preview (``thumb``) or original file of an asset.

        Returns None when the asset, its preview or the file on disk is missing.

        Raises:
            AccessDeniedError: if the user cannot access the asset.
            ValueError: if ``variant`` is not ``thumb`` or ``original``.
        """
        if variant not in ("thumb", "original"):
            raise ValueError(f"Unknown file variant '{variant}'")
        asset = self._asset_repo.find_by_id(asset_id)
        if asset is None or asset.status == "deleted":
            return None
        if not self._access_checker.can_access(asset_id, user_id):
            raise AccessDeniedError(f"User {user_id} may not access asset {asset_id}")

        relative = asset.thumbnail if variant == "thumb" else asset.path
        if not relative:
            return None
        path = self._locator.full_path(StorageTier(asset.storage_tier), relative)
        if not path.is_file():
            Log.warning(f"Asset {asset_id} {variant} file missing on disk: {path}")
            return None

        if variant == "original":
            content_type = asset.file_type or "application/octet-stream"
            filename = asset.filename
        else:
            content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
            filename = path.name
        return AssetFile(path, content_type, content_disposition(filename))

    def list_assets(self, user_id: int) -> list[AssetRecord]:
        group_ids = self._access_checker.group_ids_for(user_id)
        return self._asset_repo.find_all_owned_by_or_accessible_to(user_id, group_ids)

    def save_metadata(
        self,
        asset_id: int,
        user_id: int,
        values: Mapping[str, str | None],
    ) -> None:
        """Raises AccessDeniedError or AssetNotFoundError."""
        if not self._access_checker.can_access(asset_id, user_id):
            raise AccessDeniedError(f"User {user_id} may not edit asset {asset_id}")
        self._asset_repo.upsert_metadata(asset_id, values)

    def list_metadata_fields(self) -> list[MetadataFieldRecord]:
        return self._asset_repo.list_metadata_fields()

    def request_soft_delete(self, asset_ids: Iterable[int]) -> int:
        return self._job_queue.enqueue(
            JobKind.SOFT_DELETE,
            {"asset_ids": [int(asset_id) for asset_id in asset_ids]},
            MAINTENANCE_POLICY,
        )

    def request_cleanup(self, paths: Iterable[str | Path]) -> int:
        return self._job_queue.enqueue(
            JobKind.CLEANUP,
            {"files": [str(path) for path in paths]},
            MAINTENANCE_POLICY,
        )

    def _verify_all(self, files: list[IncomingFile]) -> list[str]:
        checksums: list[str] = []
        for incoming in files:
            try:
                if incoming.checksum:
                    digest = self._hasher.verify_file(
                        incoming.temp_path, incoming.checksum, incoming.original_name
                    )
                else:
                    digest = self._hasher.digest_file(incoming.temp_path)
            except ChecksumMismatchError as exc:
                Log.warning(f"Rejected upload batch: {exc}")
                self._discard(files)
                raise
            checksums.append(digest)
        return checksums

    def _store(self, incoming: IncomingFile, tier: StorageTier) -> Path:
        uploads_dir = self._locator.uploads_dir(tier)
        destination = uploads_dir / unique_stored_filename(incoming.original_name)
        while destination.exists():
            destination = uploads_dir / unique_stored_filename(incoming.original_name)
        shutil.move(str(incoming.temp_path), destination)
        return destination

    def _discard(self, files: list[IncomingFile]) -> None:
        for incoming in files:
            try:
                incoming.temp_path.unlink(missing_ok=True)
            except OSError as exc:
                Log.warning(f"Could not delete temp file {incoming.temp_path}: {exc}")


def build_asset_service(settings: Settings) -> AssetService:
    """Build an AssetService for the web tier. The connection pool must be initialized."""
    asset_repo = AssetRepository()
    return AssetService(
        job_queue=JobQueue(JobRepository(), settings),
        asset_repo=asset_repo,
        access_checker=GroupAccessChecker(asset_repo, GroupMembershipRepository()),
        locator=StorageLocator(Path(settings.storage_root), settings.default_storage_tier),
    )
