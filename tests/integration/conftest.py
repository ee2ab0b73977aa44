import os
import uuid
from collections.abc import Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from app.config.settings import Settings
from app.database.connection import apply_schema, close_pool, get_connection, init_pool
from app.database.repositories.job_repository import JobRepository
from app.queue.models import RetryPolicy
from app.storage.locator import StorageLocator

# Delete order respects foreign keys.
_CLEANUP_ORDER = ("asset_jobs", "assets", "group_members")


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "dam_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        apply_schema()
    except Exception as e:
        close_pool()
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a disposable database"
        )
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup(integration_pool: None) -> Generator[list[tuple[str, int]], None, None]:
    cleanup: list[tuple[str, int]] = []
    yield cleanup
    if not cleanup:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            for table in _CLEANUP_ORDER:
                for name, row_id in cleanup:
                    if name == table:
                        cur.execute(f"DELETE FROM {table} WHERE id = %s", (row_id,))
        conn.commit()


@pytest.fixture
def job_kind() -> str:
    """A kind no other test or worker claims."""
    return f"test-{uuid.uuid4().hex[:12]}"


@pytest.fixture
def enqueue_job(
    integration_pool: None,
    integration_cleanup: list[tuple[str, int]],
):  # type: ignore[no-untyped-def]
    repo = JobRepository()

    def enqueue(
        kind: str,
        payload: dict[str, Any] | None = None,
        policy: RetryPolicy | None = None,
    ) -> int:
        job_id = repo.enqueue(kind, payload or {}, policy or RetryPolicy())
        integration_cleanup.append(("asset_jobs", job_id))
        return job_id

    return enqueue


@pytest.fixture
def storage_locator(tmp_path: Path) -> StorageLocator:
    return StorageLocator(tmp_path / "storage")
