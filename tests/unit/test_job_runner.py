from unittest.mock import MagicMock

from app.database.models import JobRecord
from app.queue.job_queue import ProgressReporter
from app.worker.job_runner import JobRunner


def _make_runner() -> tuple[JobRunner, MagicMock, MagicMock]:
    """Create a JobRunner with a mocked image handler and repository."""
    mock_handler = MagicMock()
    mock_handler.process.return_value = {"asset_id": 5}
    mock_repo = MagicMock()
    runner = JobRunner({"image": mock_handler}, mock_repo)
    return runner, mock_handler, mock_repo


def _make_job(
    attempts: int = 1,
    max_attempts: int = 3,
    kind: str = "image",
    backoff_type: str = "exponential",
) -> JobRecord:
    return JobRecord(
        id=1,
        kind=kind,
        state="active",
        attempts=attempts,
        max_attempts=max_attempts,
        backoff_type=backoff_type,
        backoff_delay_ms=5000,
    )


class TestSuccessfulProcessing:
    def test_calls_handler_with_progress_reporter(self) -> None:
        runner, mock_handler, _repo = _make_runner()
        job = _make_job()

        runner.run(job)

        args = mock_handler.process.call_args.args
        assert args[0] is job
        assert isinstance(args[1], ProgressReporter)
        assert args[1].job_id == 1

    def test_marks_job_completed_with_result(self) -> None:
        runner, _handler, mock_repo = _make_runner()
        job = _make_job()

        runner.run(job)

        mock_repo.mark_completed.assert_called_once_with(job, {"asset_id": 5})

    def test_kinds_lists_registered_handlers(self) -> None:
        runner, _handler, _repo = _make_runner()
        assert runner.kinds == ["image"]


class TestFailureBelowMax:
    def test_schedules_retry_with_exponential_delay(self) -> None:
        runner, mock_handler, mock_repo = _make_runner()
        mock_handler.process.side_effect = Exception("boom")

        runner.run(_make_job(attempts=2))

        mock_repo.schedule_retry.assert_called_once_with(1, "boom", 10000)
        mock_repo.mark_failed.assert_not_called()

    def test_fixed_backoff(self) -> None:
        runner, mock_handler, mock_repo = _make_runner()
        mock_handler.process.side_effect = Exception("boom")

        runner.run(_make_job(attempts=2, backoff_type="fixed"))

        mock_repo.schedule_retry.assert_called_once_with(1, "boom", 5000)

    def test_does_not_mark_completed(self) -> None:
        runner, mock_handler, mock_repo = _make_runner()
        mock_handler.process.side_effect = Exception("boom")

        runner.run(_make_job(attempts=1))

        mock_repo.mark_completed.assert_not_called()

    def test_empty_message_uses_exception_name(self) -> None:
        runner, mock_handler, mock_repo = _make_runner()
        mock_handler.process.side_effect = RuntimeError()

        runner.run(_make_job(attempts=1))

        mock_repo.schedule_retry.assert_called_once_with(1, "RuntimeError", 5000)


class TestFailureAtMax:
    def test_marks_failed(self) -> None:
        runner, mock_handler, mock_repo = _make_runner()
        mock_handler.process.side_effect = Exception("boom")
        job = _make_job(attempts=3, max_attempts=3)

        runner.run(job)

        mock_repo.mark_failed.assert_called_once_with(job, "boom")
        mock_repo.schedule_retry.assert_not_called()

    def test_single_attempt_policy_fails_immediately(self) -> None:
        runner, mock_handler, mock_repo = _make_runner()
        mock_handler.process.side_effect = Exception("boom")
        job = _make_job(attempts=1, max_attempts=1)

        runner.run(job)

        mock_repo.mark_failed.assert_called_once_with(job, "boom")


class TestUnknownKind:
    def test_job_without_handler_is_retried_then_failed(self) -> None:
        runner, mock_handler, mock_repo = _make_runner()
        job = _make_job(kind="audio", attempts=3, max_attempts=3)

        runner.run(job)

        mock_handler.process.assert_not_called()
        error = mock_repo.mark_failed.call_args.args[1]
        assert "audio" in error
