from collections.abc import Callable, Iterable, Mapping
from typing import Any

import psycopg
from psycopg.rows import dict_row

from app.database.connection import get_connection
from app.database.models import (
    AssetMetadataRecord,
    AssetRecord,
    MetadataFieldRecord,
    NewAsset,
    SoftDeleteResult,
)
from app.logging.logger import Log
from app.pipeline.exceptions import AssetNotFoundError

TITLE_FIELD = "title"

# Types for fields created on demand; anything unlisted becomes "text".
FIELD_TYPES: dict[str, str] = {
    "creation_date": "date",
}

_ASSET_COLUMNS = """
    id, filename, stored_filename, thumbnail, file_type, file_size, path,
    storage_tier, keywords, status, create_by, group_id, source_job_id,
    created_at, updated_at
"""


def _row_to_asset(row: dict[str, Any]) -> AssetRecord:
    return AssetRecord(
        id=row["id"],
        filename=row["filename"],
        stored_filename=row["stored_filename"],
        file_type=row["file_type"],
        file_size=row["file_size"],
        path=row["path"],
        storage_tier=row["storage_tier"],
        create_by=row["create_by"],
        thumbnail=row["thumbnail"],
        keywords=list(row["keywords"] or []),
        status=row["status"],
        group_id=row["group_id"],
        source_job_id=row["source_job_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _non_empty(values: Mapping[str, str | None]) -> dict[str, str]:
    cleaned: dict[str, str] = {}
    for name, value in values.items():
        if not name or value is None:
            continue
        text = str(value).strip()
        if text:
            cleaned[name] = text
    return cleaned


class AssetRepository:
    """Database operations for assets, metadata_fields and asset_metadata."""

    def create_asset(self, attrs: NewAsset) -> AssetRecord:
        """Insert one assets row and return it."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                asset = self._insert_asset(cur, attrs)
            conn.commit()
        return asset

    def create_asset_with_metadata(
        self,
        attrs: NewAsset,
        metadata_for: Callable[[AssetRecord], Mapping[str, str | None]],
    ) -> AssetRecord:
        """Insert an asset and its metadata in one transaction.

        ``metadata_for`` receives the inserted row so values may refer to the
        generated id. When ``attrs.source_job_id`` was already persisted, the
        existing row is returned and its metadata re-upserted.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                asset = self._insert_asset(cur, attrs)
                values = _non_empty(metadata_for(asset))
                self._upsert_metadata(cur, asset.id, values)
                if TITLE_FIELD in values:
                    asset.filename = values[TITLE_FIELD]
            conn.commit()
        return asset

    def find_by_id(self, asset_id: int) -> AssetRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_ASSET_COLUMNS} FROM assets WHERE id = %s",
                    (asset_id,),
                )
                row = cur.fetchone()
        if row is None:
            return None
        return _row_to_asset(row)

    def find_by_source_job(self, job_id: int) -> AssetRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_ASSET_COLUMNS} FROM assets WHERE source_job_id = %s",
                    (job_id,),
                )
                row = cur.fetchone()
        if row is None:
            return None
        return _row_to_asset(row)

    def find_all_owned_by_or_accessible_to(
        self,
        user_id: int,
        group_ids: Iterable[int],
        include_deleted: bool = False,
    ) -> list[AssetRecord]:
        """Assets created by ``user_id`` plus assets of any of ``group_ids``, newest first."""
        statuses = ["active", "deleted"] if include_deleted else ["active"]
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_ASSET_COLUMNS}
                    FROM assets
                    WHERE (create_by = %s OR group_id = ANY(%s))
                      AND status = ANY(%s)
                    ORDER BY created_at DESC, id DESC
                    """,
                    (user_id, list(group_ids), statuses),
                )
                rows = cur.fetchall()
        return [_row_to_asset(row) for row in rows]

    def upsert_metadata(self, asset_id: int, values: Mapping[str, str | None]) -> None:
        """Create or overwrite one value per field name for an asset.

        Missing fields are created on demand. Empty values are skipped. A
        ``title`` value also renames the asset.

        Raises:
            AssetNotFoundError: if no asset with this ID exists.
        """
        cleaned = _non_empty(values)
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute("SELECT id FROM assets WHERE id = %s", (asset_id,))
                if cur.fetchone() is None:
                    raise AssetNotFoundError(f"Asset {asset_id} not found")
                self._upsert_metadata(cur, asset_id, cleaned)
            conn.commit()
        Log.info(f"Saved {len(cleaned)} metadata values for asset {asset_id}")

    def find_metadata(self, asset_id: int) -> list[AssetMetadataRecord]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT am.id, am.asset_id, am.field_id, mf.name AS field_name,
                           am.value, am.updated_at
                    FROM asset_metadata am
                    JOIN metadata_fields mf ON mf.id = am.field_id
                    WHERE am.asset_id = %s
                    ORDER BY mf.name
                    """,
                    (asset_id,),
                )
                rows = cur.fetchall()
        return [
            AssetMetadataRecord(
                id=row["id"],
                asset_id=row["asset_id"],
                field_id=row["field_id"],
                field_name=row["field_name"],
                value=row["value"],
                updated_at=row["updated_at"],
            )
            for row in rows
        ]

    def list_metadata_fields(self) -> list[MetadataFieldRecord]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute("SELECT id, name, type, options FROM metadata_fields ORDER BY name")
                rows = cur.fetchall()
        return [
            MetadataFieldRecord(
                id=row["id"], name=row["name"], type=row["type"], options=row["options"]
            )
            for row in rows
        ]

    def soft_delete(self, asset_ids: Iterable[int]) -> SoftDeleteResult:
        """Set status=deleted per id. Each id runs in its own transaction block.

        A failing id is recorded in ``failed`` and does not undo the others.
        """
        result = SoftDeleteResult()
        with get_connection() as conn:
            for asset_id in asset_ids:
                try:
                    with conn.transaction():
                        cur = conn.execute(
                            """
                            UPDATE assets
                            SET status = 'deleted', updated_at = NOW()
                            WHERE id = %s
                            """,
                            (asset_id,),
                        )
                        if cur.rowcount == 0:
                            result.missing.append(asset_id)
                        else:
                            result.deleted.append(asset_id)
                except psycopg.Error as exc:
                    Log.error(f"Soft delete of asset {asset_id} failed: {exc}")
                    result.failed[asset_id] = str(exc)
            conn.commit()
        return result

    def _insert_asset(self, cur: psycopg.Cursor[Any], attrs: NewAsset) -> AssetRecord:
        cur.execute(
            f"""
            INSERT INTO assets
            (filename, stored_filename, thumbnail, file_type, file_size, path,
             storage_tier, keywords, status, create_by, group_id, source_job_id)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (source_job_id) DO UPDATE
                SET source_job_id = EXCLUDED.source_job_id
            RETURNING {_ASSET_COLUMNS}
            """,
            (
                attrs.filename,
                attrs.stored_filename,
                attrs.thumbnail,
                attrs.file_type,
                attrs.file_size,
                attrs.path,
                attrs.storage_tier,
                list(attrs.keywords),
                attrs.status,
                attrs.create_by,
                attrs.group_id,
                attrs.source_job_id,
            ),
        )
        row = cur.fetchone()
        if row is None:
            raise RuntimeError("INSERT INTO assets returned no row")
        return _row_to_asset(row)

    def _upsert_metadata(
        self,
        cur: psycopg.Cursor[Any],
        asset_id: int,
        values: Mapping[str, str],
    ) -> None:
        for name, value in values.items():
            field_id = self._ensure_field(cur, name)
            cur.execute(
                """
                INSERT INTO asset_metadata (asset_id, field_id, value)
                VALUES (%s, %s, %s)
                ON CONFLICT (asset_id, field_id) DO UPDATE
                    SET value = EXCLUDED.value, updated_at = NOW()
                """,
                (asset_id, field_id, value),
            )
        if TITLE_FIELD in values:
            cur.execute(
                "UPDATE assets SET filename = %s, updated_at = NOW() WHERE id = %s",
                (values[TITLE_FIELD], asset_id),
            )

    def _ensure_field(self, cur: psycopg.Cursor[Any], name: str) -> int:
        # The UNIQUE(name) constraint settles concurrent creation.
        cur.execute(
            """
            INSERT INTO metadata_fields (name, type)
            VALUES (%s, %s)
            ON CONFLICT (name) DO NOTHING
            """,
            (name, FIELD_TYPES.get(name, "text")),
        )
        cur.execute("SELECT id FROM metadata_fields WHERE name = %s", (name,))
        row = cur.fetchone()
        if row is None:
            raise RuntimeError(f"metadata field '{name}' vanished after insert")
        return int(row["id"])
