"""
Tests for the in-memory sync run metrics.
"""

from occsync.core.metrics import MetricsStore, SyncRunMetrics, sync_metrics


class TestMetricsStore:
    """Tests for MetricsStore."""

    def test_record_start_creates_metrics(self):
        store = MetricsStore()

        store.record_start("occupation_sync")

        metrics = store.get_last_run("occupation_sync")
        assert isinstance(metrics, SyncRunMetrics)
        assert metrics.completed_at is None

    def test_record_complete_with_start(self):
        store = MetricsStore()
        store.record_start("occupation_sync")

        store.record_complete("occupation_sync", outcome="completed", processed=10, successful=8, failed=1, skipped=1)

        metrics = store.get_last_run("occupation_sync")
        assert metrics.outcome == "completed"
        assert metrics.processed == 10
        assert metrics.skipped == 1
        assert metrics.duration_seconds >= 0

    def test_record_complete_without_start(self):
        store = MetricsStore()

        store.record_complete("occupation_sync", outcome="failed", processed=0, successful=0, failed=0)

        assert store.get_last_run("occupation_sync").outcome == "failed"

    def test_get_last_run_returns_none_for_unknown(self):
        assert MetricsStore().get_last_run("nope") is None

    def test_summary_counts_runs_and_failures(self):
        store = MetricsStore()
        store.record_start("occupation_sync")
        store.record_complete("occupation_sync", outcome="completed", processed=4, successful=3, failed=1)
        store.record_start("occupation_sync")
        store.record_complete("occupation_sync", outcome="completed", processed=4, successful=1, failed=3)

        summary = store.get_summary()["occupation_sync"]

        assert summary["total_runs"] == 2
        assert summary["total_failures"] == 1
        assert summary["last_run"]["success_rate"] == 25.0

    def test_global_metrics_store_exists(self):
        assert isinstance(sync_metrics, MetricsStore)
