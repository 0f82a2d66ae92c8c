"""Simple in-memory metrics for sync runs.

These metrics are process-local and reset on restart. The orchestrator records
one entry per run name; the health monitor and the CLI read the summary.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Optional


@dataclass
class SyncRunMetrics:
    """Metrics for a single sync run."""

    run_name: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    outcome: Optional[str] = None
    processed: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    duration_seconds: float = 0.0


@dataclass
class MetricsStore:
    """Thread-safe store for sync run metrics."""

    _lock: Lock = field(default_factory=Lock)
    _last_runs: dict = field(default_factory=dict)  # run_name -> SyncRunMetrics
    _total_runs: dict = field(default_factory=dict)  # run_name -> count
    _total_failures: dict = field(default_factory=dict)  # run_name -> count

    def record_start(self, run_name: str) -> None:
        """Record the start of a sync run."""
        with self._lock:
            self._last_runs[run_name] = SyncRunMetrics(
                run_name=run_name,
                started_at=datetime.now(timezone.utc),
            )

    def record_complete(
        self,
        run_name: str,
        outcome: str,
        processed: int,
        successful: int,
        failed: int,
        skipped: int = 0,
    ) -> None:
        """Record the end of a sync run, whatever its outcome."""
        with self._lock:
            now = datetime.now(timezone.utc)

            metrics = self._last_runs.get(run_name)
            if metrics is None:
                # Run wasn't recorded starting, create a completed record
                metrics = SyncRunMetrics(run_name=run_name, started_at=now)
                self._last_runs[run_name] = metrics

            metrics.completed_at = now
            metrics.outcome = outcome
            metrics.processed = processed
            metrics.successful = successful
            metrics.failed = failed
            metrics.skipped = skipped
            metrics.duration_seconds = (now - metrics.started_at).total_seconds()

            self._total_runs[run_name] = self._total_runs.get(run_name, 0) + 1
            if failed > successful:
                self._total_failures[run_name] = self._total_failures.get(run_name, 0) + 1

    def get_last_run(self, run_name: str) -> Optional[SyncRunMetrics]:
        """Get metrics for the last run."""
        with self._lock:
            return self._last_runs.get(run_name)

    def get_summary(self) -> dict:
        """Get a summary of every run name seen by this store."""
        with self._lock:
            result = {}
            for run_name, metrics in self._last_runs.items():
                attempted = metrics.successful + metrics.failed
                result[run_name] = {
                    "last_run": {
                        "started_at": metrics.started_at.isoformat(),
                        "completed_at": metrics.completed_at.isoformat() if metrics.completed_at else None,
                        "outcome": metrics.outcome,
                        "processed": metrics.processed,
                        "successful": metrics.successful,
                        "failed": metrics.failed,
                        "skipped": metrics.skipped,
                        "duration_seconds": round(metrics.duration_seconds, 1),
                        "success_rate": round(metrics.successful / attempted * 100, 1) if attempted > 0 else 0,
                    },
                    "total_runs": self._total_runs.get(run_name, 0),
                    "total_failures": self._total_failures.get(run_name, 0),
                }
            return result


# Global metrics store
sync_metrics = MetricsStore()
