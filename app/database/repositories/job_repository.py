from collections.abc import Iterable
from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from app.database.connection import get_connection
from app.database.models import JobRecord
from app.queue.models import BackoffType, RetryPolicy

_JOB_COLUMNS = """
    id, kind, payload, state, progress, attempts, max_attempts,
    backoff_type, backoff_delay_ms, remove_on_complete, remove_on_fail,
    result, error_message, available_at, locked_at, finished_at,
    created_at, updated_at
"""


def _row_to_job(row: dict[str, Any]) -> JobRecord:
    return JobRecord(
        id=row["id"],
        kind=row["kind"],
        state=row["state"],
        attempts=row["attempts"],
        max_attempts=row["max_attempts"],
        payload=row["payload"] or {},
        progress=row["progress"],
        backoff_type=row["backoff_type"],
        backoff_delay_ms=row["backoff_delay_ms"],
        remove_on_complete=row["remove_on_complete"],
        remove_on_fail=row["remove_on_fail"],
        result=row["result"],
        error_message=row["error_message"],
        available_at=row["available_at"],
        locked_at=row["locked_at"],
        finished_at=row["finished_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class JobRepository:
    """Database operations for the asset_jobs table.

    The table is the durable queue. ``attempts`` counts started attempts: it is
    incremented when a worker claims the job, so a claimed job's ``attempts``
    is also the number of the attempt it is running.
    """

    def enqueue(self, kind: str, payload: dict[str, Any], policy: RetryPolicy) -> int:
        """Insert a waiting job and return its id."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO asset_jobs
                    (kind, payload, state, max_attempts, backoff_type,
                     backoff_delay_ms, remove_on_complete, remove_on_fail)
                    VALUES (%s, %s, 'waiting', %s, %s, %s, %s, %s)
                    RETURNING id
                    """,
                    (
                        kind,
                        Jsonb(payload),
                        policy.max_attempts,
                        BackoffType(policy.backoff_type).value,
                        policy.backoff_delay_ms,
                        policy.remove_on_complete,
                        policy.remove_on_fail,
                    ),
                )
                row = cur.fetchone()
            conn.commit()
        if row is None:
            raise RuntimeError("INSERT INTO asset_jobs returned no id")
        return int(row[0])

    def claim_next_job(
        self,
        conn: psycopg.Connection[Any],
        kinds: Iterable[str],
    ) -> JobRecord | None:
        """Claim the oldest due job of the given kinds using SKIP LOCKED."""
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                f"""
                SELECT {_JOB_COLUMNS}
                FROM asset_jobs
                WHERE state = 'waiting'
                  AND kind = ANY(%s)
                  AND available_at <= NOW()
                  AND attempts < max_attempts
                ORDER BY created_at, id
                LIMIT 1
                FOR UPDATE SKIP LOCKED
                """,
                (list(kinds),),
            )
            row = cur.fetchone()

        if row is None:
            conn.commit()
            return None

        conn.execute(
            """
            UPDATE asset_jobs
            SET state = 'active', attempts = attempts + 1, progress = 0,
                locked_at = NOW(), updated_at = NOW()
            WHERE id = %s
            """,
            (row["id"],),
        )
        conn.commit()

        job = _row_to_job(row)
        job.state = "active"
        job.attempts += 1
        job.progress = 0
        return job

    def update_progress(self, job_id: int, attempt: int, percent: int) -> bool:
        """Raise progress for the running attempt. Never lowers the stored value.

        Returns False when the job is no longer active in that attempt.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE asset_jobs
                    SET progress = GREATEST(progress, %s), updated_at = NOW()
                    WHERE id = %s AND state = 'active' AND attempts = %s
                    """,
                    (percent, job_id, attempt),
                )
                updated = cur.rowcount > 0
            conn.commit()
        return updated

    def mark_completed(self, job: JobRecord, result: dict[str, Any]) -> None:
        """Mark a job as completed with its result, or drop it if configured."""
        with get_connection() as conn:
            if job.remove_on_complete:
                conn.execute("DELETE FROM asset_jobs WHERE id = %s", (job.id,))
            else:
                conn.execute(
                    """
                    UPDATE asset_jobs
                    SET state = 'completed', progress = 100, result = %s,
                        error_message = NULL, finished_at = NOW(), updated_at = NOW()
                    WHERE id = %s
                    """,
                    (Jsonb(result), job.id),
                )
            conn.commit()

    def mark_failed(self, job: JobRecord, error: str) -> None:
        """Mark a job as permanently failed, or drop it if configured."""
        with get_connection() as conn:
            if job.remove_on_fail:
                conn.execute("DELETE FROM asset_jobs WHERE id = %s", (job.id,))
            else:
                conn.execute(
                    """
                    UPDATE asset_jobs
                    SET state = 'failed', error_message = %s,
                        finished_at = NOW(), updated_at = NOW()
                    WHERE id = %s
                    """,
                    (error, job.id),
                )
            conn.commit()

    def schedule_retry(self, job_id: int, error: str, delay_ms: int) -> None:
        """Return a job to waiting, due again after ``delay_ms``."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE asset_jobs
                SET state = 'waiting', error_message = %s, locked_at = NULL,
                    available_at = NOW() + make_interval(secs => %s),
                    updated_at = NOW()
                WHERE id = %s
                """,
                (error, delay_ms / 1000.0, job_id),
            )
            conn.commit()

    def release_stale_jobs(self, stale_after_seconds: int) -> int:
        """Requeue active jobs whose worker vanished. Returns how many were released.

        Jobs that already used up their attempts are failed instead.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE asset_jobs
                    SET state = CASE WHEN attempts < max_attempts
                                     THEN 'waiting' ELSE 'failed' END,
                        error_message = 'worker lost while job was active',
                        locked_at = NULL,
                        finished_at = CASE WHEN attempts < max_attempts
                                           THEN NULL ELSE NOW() END,
                        updated_at = NOW()
                    WHERE state = 'active'
                      AND locked_at < NOW() - make_interval(secs => %s)
                    """,
                    (stale_after_seconds,),
                )
                released = cur.rowcount
            conn.commit()
        return released

    def purge_finished(self, older_than_seconds: int) -> int:
        """Delete completed and failed jobs that finished before the cutoff."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    DELETE FROM asset_jobs
                    WHERE state IN ('completed', 'failed')
                      AND finished_at < NOW() - make_interval(secs => %s)
                    """,
                    (older_than_seconds,),
                )
                purged = cur.rowcount
            conn.commit()
        return purged

    def find_by_id(self, job_id: int) -> JobRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_JOB_COLUMNS} FROM asset_jobs WHERE id = %s",
                    (job_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return _row_to_job(row)
