from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class JobKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    DOCUMENT = "document"
    CLEANUP = "cleanup"
    SOFT_DELETE = "soft_delete"


MEDIA_JOB_KINDS: frozenset[JobKind] = frozenset(
    {JobKind.IMAGE, JobKind.VIDEO, JobKind.DOCUMENT}
)
MAINTENANCE_JOB_KINDS: frozenset[JobKind] = frozenset(
    {JobKind.CLEANUP, JobKind.SOFT_DELETE}
)


class JobState(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class BackoffType(str, Enum):
    EXPONENTIAL = "exponential"
    FIXED = "fixed"


@dataclass(frozen=True)
class RetryPolicy:
    """How often a job may run and how long to wait between attempts.

    Terminal jobs are retained unless the matching ``remove_on_*`` flag is set.
    """

    max_attempts: int = 3
    backoff_type: BackoffType = BackoffType.EXPONENTIAL
    backoff_delay_ms: int = 5000
    remove_on_complete: bool = False
    remove_on_fail: bool = False

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff_delay_ms < 0:
            raise ValueError("backoff_delay_ms must not be negative")


def backoff_delay_ms(backoff_type: str, base_delay_ms: int, failed_attempt: int) -> int:
    """Delay before the next attempt after ``failed_attempt`` (1-based) failed.

    Exponential backoff doubles the base delay for every further failure:
    5000, 10000, 20000, ... for a 5000 ms base.
    """
    if failed_attempt < 1:
        raise ValueError("failed_attempt is 1-based")
    if backoff_type == BackoffType.FIXED.value:
        return base_delay_ms
    return base_delay_ms * 2 ** (failed_attempt - 1)


@dataclass(frozen=True)
class JobStatus:
    """Read-only snapshot returned to pollers."""

    id: int
    kind: str
    state: str
    progress: int
    result: dict[str, Any] | None
    attempts: int
    error_message: str | None
    timestamp: datetime | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "state": self.state,
            "progress": self.progress,
            "result": self.result,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
