"""
Tests for the health monitor.

Tests cover:
1. Component scoring (database, credentials, upstream API, sync)
2. Alert creation, deduplication and resolution
3. Bounded automatic recovery
4. Monitor loop lifecycle
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from occsync.core.events import EventType
from occsync.core.typing import utc_now
from occsync.models.health import AlertLevel, ComponentHealth, HealthStatus
from occsync.services.credential_pool import CredentialPool
from occsync.services.health_monitor import (
    CREDENTIALS,
    DATABASE,
    SYNC,
    UPSTREAM_API,
    HealthConfig,
    HealthMonitor,
    status_for_score,
)

from conftest import KEY_A, KEY_B, FakeStatsClient, make_items


def fast_config(**overrides) -> HealthConfig:
    values = dict(check_interval=60.0, error_threshold=3, recovery_attempts=2, recovery_delay=0.0)
    values.update(overrides)
    return HealthConfig(**values)


@pytest.fixture
def monitor(datastore, pool, make_orchestrator):
    monitor = HealthMonitor(fast_config())
    monitor.register_datastore(datastore)
    monitor.register_credential_pool(pool)
    monitor.register_orchestrator(make_orchestrator(make_items(3), pool=pool))
    return monitor


class TestStatusForScore:
    """Tests for mapping an overall score to a status."""

    @pytest.mark.parametrize(
        "score, status",
        [
            (100, HealthStatus.HEALTHY),
            (90, HealthStatus.HEALTHY),
            (85, HealthStatus.DEGRADED),
            (60, HealthStatus.WARNING),
            (49, HealthStatus.CRITICAL),
        ],
    )
    def test_tiers(self, score, status):
        assert status_for_score(score) is status


@pytest.mark.asyncio
class TestComponentScoring:
    """Tests for the individual component checks."""

    async def test_nothing_registered_is_unknown(self):
        health = await HealthMonitor(fast_config()).check_now()

        assert {c.status for c in health.components.values()} == {HealthStatus.UNKNOWN}
        assert health.score == 50

    async def test_healthy_system(self, monitor):
        for _ in range(5):
            monitor.record_api_call(True, 120.0)

        health = await monitor.check_now()

        assert health.score == 100
        assert health.status is HealthStatus.HEALTHY
        assert health.alerts == ()
        assert health.recommendations == ("System is healthy, no action required",)
        assert "response_time_ms" in health.components[DATABASE].details

    async def test_open_breaker_skips_probe(self, monitor, datastore):
        for _ in range(3):
            datastore.breaker.record_failure()
        datastore.ping = AsyncMock(return_value=1.0)

        health = await monitor.check_now()

        database = health.components[DATABASE]
        assert database.status is HealthStatus.WARNING
        assert database.score == 40
        datastore.ping.assert_not_awaited()

    async def test_failed_probe_is_critical(self, monitor, datastore):
        datastore.ping = AsyncMock(side_effect=Exception("could not connect to server"))

        health = await monitor.check_now()

        assert health.components[DATABASE].status is HealthStatus.CRITICAL
        assert health.components[DATABASE].score == 0
        assert any(a.message == "Database connection failed" for a in health.alerts)

    async def test_recent_failures_degrade_database(self, monitor, datastore):
        datastore.breaker.record_failure()

        health = await monitor.check_now()

        assert health.components[DATABASE].status is HealthStatus.DEGRADED
        assert health.components[DATABASE].score == 70

    async def test_all_credentials_blocked(self):
        pool = CredentialPool([KEY_A], daily_quota=500)
        pool.record_rate_limited(pool.acquire(), cooldown_minutes=60)
        monitor = HealthMonitor(fast_config())
        monitor.register_credential_pool(pool)

        health = await monitor.check_now()

        credentials = health.components[CREDENTIALS]
        assert credentials.status is HealthStatus.CRITICAL
        assert credentials.score == 0
        assert health.alerts[0].level is AlertLevel.CRITICAL

    async def test_some_credentials_blocked(self, pool):
        pool.record_rate_limited(pool.acquire(), cooldown_minutes=60)
        monitor = HealthMonitor(fast_config())
        monitor.register_credential_pool(pool)

        health = await monitor.check_now()

        assert health.components[CREDENTIALS].status is HealthStatus.DEGRADED
        assert health.components[CREDENTIALS].score == 50

    async def test_low_remaining_requests(self):
        monitor = HealthMonitor(fast_config())
        monitor.register_credential_pool(CredentialPool([KEY_A], daily_quota=50))

        health = await monitor.check_now()

        assert health.components[CREDENTIALS].status is HealthStatus.WARNING
        assert health.components[CREDENTIALS].score == 60

    @pytest.mark.parametrize(
        "failures, status, score",
        [
            (3, HealthStatus.CRITICAL, 70),
            (1, HealthStatus.WARNING, 80),
            (0, HealthStatus.HEALTHY, 100),
        ],
    )
    async def test_upstream_error_rate(self, failures, status, score):
        monitor = HealthMonitor(fast_config())
        for i in range(10):
            monitor.record_api_call(i >= failures, 100.0)

        health = await monitor.check_now()

        assert health.components[UPSTREAM_API].status is status
        assert health.components[UPSTREAM_API].score == score

    async def test_slow_upstream_is_degraded(self):
        monitor = HealthMonitor(fast_config())
        for _ in range(4):
            monitor.record_api_call(True, 3000.0)

        health = await monitor.check_now()

        assert health.components[UPSTREAM_API].status is HealthStatus.DEGRADED
        assert health.components[UPSTREAM_API].score == 70

    async def test_api_calls_tracked_from_client_events(self, pool):
        client = FakeStatsClient(pool)
        monitor = HealthMonitor(fast_config())
        monitor.register_api_client(client)

        await client.events.emit(EventType.API_CALL, success=False, latency_ms=50.0)
        await client.events.emit(EventType.API_CALL, success=True, latency_ms=50.0)

        health = await monitor.check_now()
        assert health.components[UPSTREAM_API].details["calls"] == 2
        assert health.components[UPSTREAM_API].details["failed"] == 1

    async def test_sync_last_error_degrades(self, pool, make_orchestrator):
        orchestrator = make_orchestrator(make_items(2), pool=pool)
        orchestrator.client.failures[make_items(1)[0].code] = ValueError("bad payload")
        monitor = HealthMonitor(fast_config())
        monitor.register_orchestrator(orchestrator)

        await orchestrator.start()
        health = await monitor.check_now()

        sync = health.components[SYNC]
        assert sync.status is HealthStatus.DEGRADED
        assert sync.details["error_categories"] == {"fatal": 1}

    async def test_failing_check_is_critical(self, monitor):
        monitor._check_credentials = AsyncMock(side_effect=RuntimeError("boom"))

        health = await monitor.check_now()

        assert health.components[CREDENTIALS].status is HealthStatus.CRITICAL
        assert health.components[CREDENTIALS].score == 0


@pytest.mark.asyncio
class TestAlerts:
    """Tests for alert lifecycle."""

    async def test_alert_not_duplicated(self, monitor, datastore):
        for _ in range(3):
            datastore.breaker.record_failure()

        await monitor.check_now()
        await monitor.check_now()

        alerts = monitor.get_active_alerts()
        assert len(alerts) == 1
        assert alerts[0].component == DATABASE

    async def test_alert_resolved_when_condition_clears(self, monitor, datastore):
        resolved = []
        monitor.events.subscribe(resolved.append, {EventType.ALERT_RESOLVED})
        for _ in range(3):
            datastore.breaker.record_failure()
        await monitor.check_now()

        datastore.breaker.reset()
        await monitor.check_now()

        assert monitor.get_active_alerts() == []
        assert [e.payload["message"] for e in resolved] == ["Datastore circuit breaker is open"]

    async def test_alert_events_published(self, monitor, datastore):
        raised, updates = [], []
        monitor.events.subscribe(raised.append, {EventType.ALERT})
        monitor.events.subscribe(updates.append, {EventType.HEALTH_UPDATE})
        datastore.ping = AsyncMock(side_effect=Exception("connection refused"))

        await monitor.check_now()

        assert [e.payload["component"] for e in raised] == [DATABASE]
        assert len(updates) == 1
        assert "components" in updates[0].payload

    async def test_manual_resolve(self, monitor, datastore):
        datastore.ping = AsyncMock(side_effect=Exception("connection refused"))
        await monitor.check_now()

        assert monitor.resolve_alert(DATABASE, "Database connection failed") is True
        assert monitor.resolve_alert(DATABASE, "Database connection failed") is False
        assert monitor.get_active_alerts() == []

    async def test_history_is_bounded(self):
        monitor = HealthMonitor(fast_config(history_size=3))

        for _ in range(5):
            await monitor.check_now()

        assert len(monitor.get_history()) == 3
        assert len(monitor.get_history(limit=2)) == 2


@pytest.mark.asyncio
class TestRecovery:
    """Tests for automatic recovery of critical components."""

    async def test_database_reconnect(self, monitor, datastore):
        datastore.breaker.record_failure()
        datastore.ping = AsyncMock(side_effect=Exception("connection refused"))
        for _ in range(3):
            await monitor.check_now()

        datastore.ping = AsyncMock(return_value=2.0)
        await monitor.wait_for_recoveries()

        actions = monitor.get_recovery_actions()
        assert len(actions) == 1
        assert actions[0].component == DATABASE
        assert actions[0].action == "reconnect"
        assert actions[0].successful is True
        assert datastore.breaker.failure_count == 0

    async def test_database_reconnect_through_open_breaker(self, monitor, datastore, monkeypatch):
        """Recovery reaches a restored database even after the outage opened the breaker."""
        run = datastore._run
        outage = {"down": True}

        def flaky_run(operation):
            if outage["down"]:
                raise OperationalError("SELECT 1", {}, Exception("could not connect to server"))
            return run(operation)

        monkeypatch.setattr(datastore, "_run", flaky_run)
        for _ in range(3):
            await monitor.check_now()
        assert datastore.breaker.is_open

        outage["down"] = False
        await monitor.wait_for_recoveries()

        action = monitor.get_recovery_actions()[0]
        assert action.successful is True
        assert datastore.breaker.is_open is False
        assert datastore.breaker.failure_count == 0
        health = await monitor.check_now()
        assert health.components[DATABASE].status is HealthStatus.HEALTHY

    async def test_database_reconnect_gives_up(self, monitor, datastore):
        datastore.ping = AsyncMock(side_effect=Exception("connection refused"))
        for _ in range(3):
            await monitor.check_now()

        await monitor.wait_for_recoveries()

        action = monitor.get_recovery_actions()[0]
        assert action.successful is False
        # Three critical checks, then recovery_attempts probes
        assert datastore.ping.await_count == 3 + 2

    async def test_no_recovery_below_threshold(self, monitor, datastore):
        datastore.ping = AsyncMock(side_effect=Exception("connection refused"))
        for _ in range(2):
            await monitor.check_now()

        await monitor.wait_for_recoveries()

        assert monitor.get_recovery_actions() == []

    async def test_single_recovery_at_a_time(self, monitor, datastore):
        datastore.ping = AsyncMock(side_effect=Exception("connection refused"))
        for _ in range(6):
            await monitor.check_now()

        await monitor.wait_for_recoveries()

        assert len([a for a in monitor.get_recovery_actions() if a.component == DATABASE]) == 1

    async def test_auto_recovery_disabled(self, datastore):
        monitor = HealthMonitor(fast_config(auto_recovery=False))
        monitor.register_datastore(datastore)
        datastore.ping = AsyncMock(side_effect=Exception("connection refused"))
        for _ in range(4):
            await monitor.check_now()

        await monitor.wait_for_recoveries()

        assert monitor.get_recovery_actions() == []

    async def test_credentials_still_blocked(self):
        pool = CredentialPool([KEY_A], daily_quota=500)
        pool.record_rate_limited(pool.acquire(), cooldown_minutes=60)
        monitor = HealthMonitor(fast_config())
        monitor.register_credential_pool(pool)
        recoveries = []
        monitor.events.subscribe(recoveries.append, {EventType.RECOVERY})

        for _ in range(3):
            await monitor.check_now()
        await monitor.wait_for_recoveries()

        action = monitor.get_recovery_actions()[0]
        assert action.action == "release_blocks"
        assert action.successful is False
        assert recoveries[0].payload["component"] == CREDENTIALS

    async def test_credentials_released_after_cooldown(self):
        pool = CredentialPool([KEY_A, KEY_B], daily_quota=500)
        for _ in range(2):
            pool.record_rate_limited(pool.acquire(), cooldown_minutes=60)
        for credential in pool._credentials.values():
            credential.block_until = utc_now() - timedelta(minutes=1)
        monitor = HealthMonitor(fast_config())
        monitor.register_credential_pool(pool)

        action = await monitor._recover_credentials()

        assert action.successful is True
        assert pool.summary()["active"] == 2
        assert all(not c["blocked"] for c in pool.status_snapshot())

    async def test_sync_restart(self, monitor):
        orchestrator = monitor._orchestrator
        critical = (ComponentHealth(HealthStatus.CRITICAL, 0, "High sync error rate"), [])
        monitor._check_sync = AsyncMock(return_value=critical)

        for _ in range(3):
            await monitor.check_now()
        await monitor.wait_for_recoveries()

        action = monitor.get_recovery_actions()[0]
        assert action.component == SYNC
        assert action.action == "restart"
        assert action.successful is True
        progress = orchestrator.get_progress()
        assert progress.running is False
        assert progress.processed == 3


@pytest.mark.asyncio
class TestLifecycle:
    """Tests for start/stop of the periodic loop."""

    async def test_start_runs_first_check(self, monitor):
        updates = []
        monitor.events.subscribe(updates.append, {EventType.HEALTH_UPDATE})

        await monitor.start()
        await monitor.start()
        assert monitor.is_running is True

        # Let the loop run its first check
        await asyncio.sleep(0.05)

        await monitor.stop()

        assert monitor.is_running is False
        assert len(updates) == 1

    async def test_stop_ends_restarted_sync(self, pool, make_orchestrator):
        orchestrator = make_orchestrator(make_items(9), pool=pool, client=FakeStatsClient(pool, delay=0.05))
        monitor = HealthMonitor(fast_config())
        monitor.register_orchestrator(orchestrator)
        critical = (ComponentHealth(HealthStatus.CRITICAL, 0, "High sync error rate"), [])
        monitor._check_sync = AsyncMock(return_value=critical)

        for _ in range(3):
            await monitor.check_now()
        # Let recovery restart the sync
        await asyncio.sleep(0.02)
        await monitor.stop()

        assert orchestrator.is_running is False
        assert orchestrator.get_progress().processed < 9

    async def test_stop_cancels_subscriptions(self, pool):
        client = FakeStatsClient(pool)
        monitor = HealthMonitor(fast_config())
        monitor.register_api_client(client)

        await monitor.stop()
        await client.events.emit(EventType.API_CALL, success=False, latency_ms=1.0)

        assert (await monitor.check_now()).components[UPSTREAM_API].status is HealthStatus.UNKNOWN
