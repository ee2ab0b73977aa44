from datetime import datetime, timezone

import pytest

from app.queue.models import BackoffType, JobStatus, RetryPolicy, backoff_delay_ms


class TestBackoffDelay:
    def test_exponential_doubles_per_failure(self) -> None:
        delays = [backoff_delay_ms("exponential", 5000, attempt) for attempt in (1, 2, 3)]
        assert delays == [5000, 10000, 20000]

    def test_fixed_keeps_base_delay(self) -> None:
        assert backoff_delay_ms("fixed", 5000, 3) == 5000

    def test_attempt_is_one_based(self) -> None:
        with pytest.raises(ValueError):
            backoff_delay_ms("exponential", 5000, 0)


class TestRetryPolicy:
    def test_defaults(self) -> None:
        policy = RetryPolicy()
        assert policy.max_attempts == 3
        assert policy.backoff_type is BackoffType.EXPONENTIAL
        assert policy.backoff_delay_ms == 5000
        assert policy.remove_on_complete is False
        assert policy.remove_on_fail is False

    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError, match="max_attempts"):
            RetryPolicy(max_attempts=0)

    def test_rejects_negative_delay(self) -> None:
        with pytest.raises(ValueError, match="backoff_delay_ms"):
            RetryPolicy(backoff_delay_ms=-1)


class TestJobStatus:
    def test_to_dict_shape(self) -> None:
        created = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        status = JobStatus(
            id=7,
            kind="image",
            state="completed",
            progress=100,
            result={"asset_id": 3},
            attempts=1,
            error_message=None,
            timestamp=created,
        )

        assert status.to_dict() == {
            "id": 7,
            "state": "completed",
            "progress": 100,
            "result": {"asset_id": 3},
            "timestamp": created.isoformat(),
        }

    def test_missing_timestamp_is_none(self) -> None:
        status = JobStatus(7, "image", "waiting", 0, None, 0, None, None)
        assert status.to_dict()["timestamp"] is None
