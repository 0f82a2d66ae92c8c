"""
In-memory sync state: progress, checkpoints and run results.

None of this is persisted; checkpoints live for the lifetime of the orchestrator
and exist to resume a run that was stopped or paused.
"""

from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional

DEFAULT_CHECKPOINT_HISTORY = 10


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class SyncOutcome(str, Enum):
    COMPLETED = "completed"
    ABORTED = "aborted"
    PAUSED = "paused"
    ALREADY_RUNNING = "already_running"
    FAILED = "failed"


@dataclass(frozen=True)
class Checkpoint:
    """Progress counters captured after a batch settles."""

    created_at: datetime
    processed: int
    successful: int
    failed: int
    skipped: int
    batch_number: int
    last_processed_code: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "created_at": self.created_at.isoformat(),
            "processed": self.processed,
            "successful": self.successful,
            "failed": self.failed,
            "skipped": self.skipped,
            "batch_number": self.batch_number,
            "last_processed_code": self.last_processed_code,
        }


@dataclass
class SyncProgress:
    """Live progress of the current (or last) sync run."""

    running: bool = False
    total: int = 0
    processed: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    current_batch: Optional[int] = None
    total_batches: Optional[int] = None
    current_item: Optional[str] = None
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    checkpoints: deque = field(default_factory=lambda: deque(maxlen=DEFAULT_CHECKPOINT_HISTORY))
    estimated_seconds_remaining: Optional[float] = None
    credentials: list = field(default_factory=list)

    @property
    def percent_complete(self) -> float:
        if self.total == 0:
            return 0.0
        return min(100.0, round(self.processed / self.total * 100, 1))

    @property
    def error_rate(self) -> float:
        """Failed items as a percentage of processed items."""
        if self.processed == 0:
            return 0.0
        return self.failed / self.processed * 100

    @property
    def last_checkpoint(self) -> Optional[Checkpoint]:
        return self.checkpoints[-1] if self.checkpoints else None

    def snapshot(self) -> "SyncProgress":
        """Independent copy safe to hand to observers."""
        return replace(
            self,
            checkpoints=deque(self.checkpoints, maxlen=self.checkpoints.maxlen),
            credentials=[dict(c) for c in self.credentials],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "running": self.running,
            "total": self.total,
            "processed": self.processed,
            "successful": self.successful,
            "failed": self.failed,
            "skipped": self.skipped,
            "percent_complete": self.percent_complete,
            "current_batch": self.current_batch,
            "total_batches": self.total_batches,
            "current_item": self.current_item,
            "last_error": self.last_error,
            "last_error_at": _iso(self.last_error_at),
            "started_at": _iso(self.started_at),
            "ended_at": _iso(self.ended_at),
            "estimated_seconds_remaining": self.estimated_seconds_remaining,
            "checkpoints": [c.to_dict() for c in self.checkpoints],
            "credentials": [dict(c) for c in self.credentials],
        }


@dataclass(frozen=True)
class ItemError:
    code: str
    error: str
    retryable: bool
    category: str = "fatal"

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "error": self.error, "retryable": self.retryable, "category": self.category}


@dataclass(frozen=True)
class SyncStats:
    total: int = 0
    processed: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at is None or self.ended_at is None:
            return None
        return (self.ended_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "processed": self.processed,
            "successful": self.successful,
            "failed": self.failed,
            "skipped": self.skipped,
            "started_at": _iso(self.started_at),
            "ended_at": _iso(self.ended_at),
            "duration_seconds": self.duration_seconds,
        }


@dataclass(frozen=True)
class SyncResult:
    """Structured outcome of SyncOrchestrator.start()."""

    success: bool
    message: str
    outcome: SyncOutcome
    stats: SyncStats = field(default_factory=SyncStats)
    errors: tuple[ItemError, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "outcome": self.outcome.value,
            "stats": self.stats.to_dict(),
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass(frozen=True)
class ControlResult:
    """Outcome of a control call that does not run a sync (stop, add/remove credential)."""

    success: bool
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "message": self.message}
