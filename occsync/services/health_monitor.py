"""
Health monitor for the sync core.

Scores four components on every check:

    database      probe query round trip plus the datastore circuit breaker
    credentials   share of usable credentials and requests left today
    upstream_api  error rate and average latency over the last N upstream calls
    sync          error rate of the active run

Each component maps its signal to a 0-100 score and a HealthStatus using the
thresholds in core/health_thresholds.py. The overall score is the plain mean.

Threshold crossings raise Alerts, unique per (component, message) while
unresolved, and resolved as soon as the condition clears. A component that stays
critical for error_threshold consecutive checks gets one bounded recovery attempt;
the outcome is recorded whether it worked or not, and a component is never
recovered twice at the same time.

Usage:
    monitor = HealthMonitor(HealthConfig.from_settings())
    monitor.register_credential_pool(pool)
    monitor.register_datastore(datastore)
    monitor.register_api_client(client)
    monitor.register_orchestrator(orchestrator)
    await monitor.start()
"""

import asyncio
from collections import Counter, deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import structlog

from occsync.core.config import Settings, settings as default_settings
from occsync.core.errors import capture_message
from occsync.core.events import EventBus, EventType, SyncEvent, Subscription
from occsync.core.health_thresholds import HealthThresholds, check_threshold
from occsync.models.health import (
    Alert,
    AlertLevel,
    ComponentHealth,
    HealthStatus,
    RecoveryAction,
    SystemHealth,
)

logger = structlog.get_logger(__name__)

DATABASE = "database"
CREDENTIALS = "credentials"
UPSTREAM_API = "upstream_api"
SYNC = "sync"
COMPONENTS = (DATABASE, CREDENTIALS, UPSTREAM_API, SYNC)

MAX_ALERTS = 100
MAX_RECOVERY_ACTIONS = 100
API_CALL_WINDOW = 100


@dataclass
class HealthConfig:
    check_interval: float = 60.0
    history_size: int = 100
    error_threshold: int = 3
    recovery_attempts: int = 3
    recovery_delay: float = 5.0
    auto_recovery: bool = True

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "HealthConfig":
        config = config or default_settings
        return cls(
            check_interval=config.HEALTH_CHECK_INTERVAL,
            history_size=config.HEALTH_HISTORY_SIZE,
            error_threshold=config.HEALTH_ERROR_THRESHOLD,
            recovery_attempts=config.HEALTH_RECOVERY_ATTEMPTS,
            recovery_delay=config.HEALTH_RECOVERY_DELAY,
        )


def status_for_score(score: float) -> HealthStatus:
    if score < HealthThresholds.SCORE_CRITICAL_BELOW:
        return HealthStatus.CRITICAL
    if score < HealthThresholds.SCORE_WARNING_BELOW:
        return HealthStatus.WARNING
    if score < HealthThresholds.SCORE_DEGRADED_BELOW:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY


# (level, stable alert message) pairs describing the conditions currently true
Conditions = list[tuple[AlertLevel, str]]


class HealthMonitor:
    def __init__(self, config: Optional[HealthConfig] = None, events: Optional[EventBus] = None):
        self.config = config or HealthConfig()
        self.events = events if events is not None else EventBus()

        self._pool = None
        self._datastore = None
        self._orchestrator = None
        self._subscriptions: list[Subscription] = []

        self._api_calls: deque[tuple[bool, float]] = deque(maxlen=API_CALL_WINDOW)
        self._item_errors: Counter = Counter()
        self._history: deque[SystemHealth] = deque(maxlen=self.config.history_size)
        self._alerts: list[Alert] = []
        self._critical_streak: dict[str, int] = {name: 0 for name in COMPONENTS}
        self._recovering: set[str] = set()
        self._recovery_tasks: set[asyncio.Task] = set()
        self._restart_tasks: set[asyncio.Task] = set()
        self._recovery_actions: deque[RecoveryAction] = deque(maxlen=MAX_RECOVERY_ACTIONS)
        self._task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_credential_pool(self, pool) -> None:
        self._pool = pool

    def register_datastore(self, datastore) -> None:
        self._datastore = datastore

    def register_api_client(self, client) -> None:
        """Track latency and error rate from the client's api_call events."""

        def on_api_call(event: SyncEvent) -> None:
            self.record_api_call(bool(event.payload.get("success")), float(event.payload.get("latency_ms", 0.0)))

        self._subscriptions.append(client.events.subscribe(on_api_call, {EventType.API_CALL}))

    def register_orchestrator(self, orchestrator) -> None:
        self._orchestrator = orchestrator

        def on_item_error(event: SyncEvent) -> None:
            self._item_errors[event.payload.get("category", "fatal")] += 1

        self._subscriptions.append(orchestrator.events.subscribe(on_item_error, {EventType.ITEM_ERROR}))

    def record_api_call(self, success: bool, latency_ms: float) -> None:
        self._api_calls.append((success, latency_ms))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._monitor_loop(), name="health-monitor")
        logger.info("health monitor started", interval=self.config.check_interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        pending = list(self._recovery_tasks)
        for t in pending:
            t.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        # A sync restarted by recovery is owned by the monitor and ends with it
        restarts = list(self._restart_tasks)
        if restarts:
            if self._orchestrator is not None and self._orchestrator.is_running:
                await self._orchestrator.stop()
            for t in restarts:
                if not t.done():
                    t.cancel()
            await asyncio.gather(*restarts, return_exceptions=True)

        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()
        logger.info("health monitor stopped")

    async def _monitor_loop(self) -> None:
        while True:
            try:
                await self.check_now()
                await asyncio.sleep(self.config.check_interval)
            except asyncio.CancelledError:
                logger.info("health monitor loop cancelled")
                break
            except Exception as e:
                logger.error("health check cycle failed", error=str(e))
                await asyncio.sleep(self.config.check_interval)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    async def check_now(self) -> SystemHealth:
        """Score every component, update alerts, and schedule recovery if needed."""
        checks: dict[str, Callable[[], Awaitable[tuple[ComponentHealth, Conditions]]]] = {
            DATABASE: self._check_database,
            CREDENTIALS: self._check_credentials,
            UPSTREAM_API: self._check_upstream_api,
            SYNC: self._check_sync,
        }

        components: dict[str, ComponentHealth] = {}
        for name, check in checks.items():
            try:
                health, conditions = await check()
            except Exception as e:
                logger.error("component health check failed", component=name, error=str(e))
                health = ComponentHealth(HealthStatus.CRITICAL, 0, f"Health check failed: {e}")
                conditions = [(AlertLevel.CRITICAL, "Health check failed")]
            components[name] = health
            await self._sync_alerts(name, conditions)

        score = round(sum(c.score for c in components.values()) / len(components))
        health = SystemHealth(
            score=score,
            status=status_for_score(score),
            components=components,
            alerts=tuple(self.get_active_alerts()),
            recommendations=tuple(self._recommendations(components)),
        )
        self._history.append(health)

        logger.info(
            "health check complete",
            score=health.score,
            status=health.status.value,
            **{name: c.status.value for name, c in components.items()},
        )
        await self.events.emit(EventType.HEALTH_UPDATE, **health.to_dict())

        self._schedule_recovery(components)
        return health

    async def _check_database(self) -> tuple[ComponentHealth, Conditions]:
        if self._datastore is None:
            return ComponentHealth(HealthStatus.UNKNOWN, 50, "Datastore not registered"), []

        breaker = self._datastore.breaker
        details: dict[str, Any] = {"circuit": breaker.snapshot()}

        if breaker.is_open:
            remaining = breaker.remaining_cooldown()
            details["retry_in_seconds"] = round(remaining, 1)
            return (
                ComponentHealth(HealthStatus.WARNING, 40, f"Circuit breaker is open, retry in {remaining:.0f}s", details),
                [(AlertLevel.WARNING, "Datastore circuit breaker is open")],
            )

        prior_failures = breaker.failure_count
        try:
            latency_ms = await self._datastore.ping()
        except Exception as e:
            details["error"] = str(e)
            return (
                ComponentHealth(HealthStatus.CRITICAL, 0, f"Database probe failed: {e}", details),
                [(AlertLevel.CRITICAL, "Database connection failed")],
            )

        details["response_time_ms"] = round(latency_ms, 1)
        details["prior_consecutive_failures"] = prior_failures

        if prior_failures > 0:
            return (
                ComponentHealth(
                    HealthStatus.DEGRADED, 70, f"Database recovered after {prior_failures} consecutive failures", details
                ),
                [],
            )
        if check_threshold(latency_ms, HealthThresholds.DB_PROBE_MS) != "ok":
            return (
                ComponentHealth(HealthStatus.DEGRADED, 80, f"Database response time is high: {latency_ms:.0f}ms", details),
                [(AlertLevel.WARNING, "Database response time is high")],
            )
        return ComponentHealth(HealthStatus.HEALTHY, 100, "Database is healthy", details), []

    async def _check_credentials(self) -> tuple[ComponentHealth, Conditions]:
        if self._pool is None:
            return ComponentHealth(HealthStatus.UNKNOWN, 50, "Credential pool not registered"), []

        summary = self._pool.summary()
        total, active, blocked, remaining = (
            summary["total"],
            summary["active"],
            summary["blocked"],
            summary["remaining"],
        )
        details = dict(summary)

        if active == 0:
            message = "No API credentials configured" if total == 0 else "All API credentials are blocked"
            return (
                ComponentHealth(HealthStatus.CRITICAL, 0, message, details),
                [(AlertLevel.CRITICAL, "No active API credentials")],
            )
        if blocked > 0:
            score = round(max(30, 100 - blocked / total * 100))
            return (
                ComponentHealth(HealthStatus.DEGRADED, score, f"{blocked} of {total} API credentials are blocked", details),
                [(AlertLevel.WARNING, "Some API credentials are blocked")],
            )
        if remaining < HealthThresholds.CREDENTIAL_LOW_REMAINING:
            return (
                ComponentHealth(HealthStatus.WARNING, 60, f"Low API requests remaining: {remaining}", details),
                [(AlertLevel.WARNING, "Low API requests remaining")],
            )
        return ComponentHealth(HealthStatus.HEALTHY, 100, f"{active} API credentials active", details), []

    async def _check_upstream_api(self) -> tuple[ComponentHealth, Conditions]:
        calls = list(self._api_calls)
        if not calls:
            return ComponentHealth(HealthStatus.UNKNOWN, 50, "No upstream API calls recorded yet"), []

        failed = sum(1 for success, _ in calls if not success)
        error_rate = failed / len(calls) * 100
        average_ms = sum(latency for _, latency in calls) / len(calls)
        details = {
            "calls": len(calls),
            "failed": failed,
            "error_rate": round(error_rate, 1),
            "average_response_time_ms": round(average_ms, 1),
        }

        level = check_threshold(error_rate, HealthThresholds.API_ERROR_RATE)
        if level == "critical":
            return (
                ComponentHealth(
                    HealthStatus.CRITICAL,
                    round(max(0, 100 - error_rate)),
                    f"High upstream API error rate: {error_rate:.1f}%",
                    details,
                ),
                [(AlertLevel.ERROR, "High upstream API error rate")],
            )
        if level == "warning":
            return (
                ComponentHealth(
                    HealthStatus.WARNING,
                    round(max(50, 100 - error_rate * 2)),
                    f"Elevated upstream API error rate: {error_rate:.1f}%",
                    details,
                ),
                [(AlertLevel.WARNING, "Elevated upstream API error rate")],
            )
        latency_threshold = HealthThresholds.API_AVG_LATENCY_MS.warning
        if average_ms >= latency_threshold:
            return (
                ComponentHealth(
                    HealthStatus.DEGRADED,
                    round(max(60, 100 - average_ms / latency_threshold * 20)),
                    f"Slow upstream API responses: {average_ms:.0f}ms average",
                    details,
                ),
                [(AlertLevel.WARNING, "Slow upstream API responses")],
            )
        return ComponentHealth(HealthStatus.HEALTHY, 100, "Upstream API is healthy", details), []

    async def _check_sync(self) -> tuple[ComponentHealth, Conditions]:
        if self._orchestrator is None:
            return ComponentHealth(HealthStatus.UNKNOWN, 50, "Sync orchestrator not registered"), []

        progress = self._orchestrator.get_progress()
        error_rate = progress.error_rate
        details = {
            "running": progress.running,
            "processed": progress.processed,
            "total": progress.total,
            "percent_complete": progress.percent_complete,
            "error_rate": round(error_rate, 1),
            "estimated_seconds_remaining": progress.estimated_seconds_remaining,
            "error_categories": dict(self._item_errors),
        }

        level = check_threshold(error_rate, HealthThresholds.SYNC_ERROR_RATE) if progress.running else "ok"
        if level == "critical":
            return (
                ComponentHealth(
                    HealthStatus.CRITICAL,
                    round(max(0, 100 - error_rate)),
                    f"High sync error rate: {error_rate:.1f}%",
                    details,
                ),
                [(AlertLevel.ERROR, "High sync error rate")],
            )
        if level == "warning":
            return (
                ComponentHealth(
                    HealthStatus.WARNING,
                    round(max(50, 100 - error_rate * 2)),
                    f"Elevated sync error rate: {error_rate:.1f}%",
                    details,
                ),
                [(AlertLevel.WARNING, "Elevated sync error rate")],
            )
        if progress.last_error:
            details["last_error"] = progress.last_error
            return ComponentHealth(HealthStatus.DEGRADED, 70, f"Last sync error: {progress.last_error}", details), []

        message = "Sync is running" if progress.running else "Sync is idle"
        return ComponentHealth(HealthStatus.HEALTHY, 100, message, details), []

    def _recommendations(self, components: dict[str, ComponentHealth]) -> list[str]:
        recommendations: list[str] = []
        database = components[DATABASE].status
        credentials = components[CREDENTIALS].status
        upstream = components[UPSTREAM_API].status
        sync = components[SYNC].status

        if database is HealthStatus.CRITICAL:
            recommendations.append("Check the database connection settings and make sure the database is running")
        elif database is HealthStatus.WARNING:
            recommendations.append("Database calls are failing fast; wait for the circuit breaker cooldown")

        if credentials is HealthStatus.CRITICAL:
            recommendations.append("Add API credentials or wait for the daily quota reset")
        elif credentials in (HealthStatus.WARNING, HealthStatus.DEGRADED):
            recommendations.append("Consider adding API credentials to spread the load")

        if upstream in (HealthStatus.CRITICAL, HealthStatus.WARNING):
            recommendations.append("Check the upstream API status and review recent error messages")

        if sync is HealthStatus.CRITICAL:
            recommendations.append("Review sync errors and consider restarting the sync")
        elif sync is HealthStatus.WARNING:
            recommendations.append("Watch the sync for a rising error rate")

        if not recommendations:
            recommendations.append("System is healthy, no action required")
        return recommendations

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    async def _sync_alerts(self, component: str, conditions: Conditions) -> None:
        """Open alerts for new conditions and resolve the ones that cleared."""
        active = {a.key: a for a in self._alerts if not a.resolved and a.component == component}
        wanted = {(component, message): level for level, message in conditions}

        for key, alert in active.items():
            if key not in wanted:
                alert.resolve()
                logger.info("alert resolved", component=component, message=alert.message)
                await self.events.emit(EventType.ALERT_RESOLVED, **alert.to_dict())

        for key, level in wanted.items():
            if key in active:
                continue
            alert = Alert(level=level, component=component, message=key[1])
            self._alerts.append(alert)
            logger.warning("alert raised", component=component, level=level.value, message=alert.message)
            if level is AlertLevel.CRITICAL:
                capture_message(f"Health alert: {alert.message}", level="error", context={"component": component})
            await self.events.emit(EventType.ALERT, **alert.to_dict())

        if len(self._alerts) > MAX_ALERTS:
            # Drop the oldest resolved alerts first
            resolved = [a for a in self._alerts if a.resolved]
            excess = len(self._alerts) - MAX_ALERTS
            drop = {id(a) for a in resolved[:excess]}
            self._alerts = [a for a in self._alerts if id(a) not in drop][-MAX_ALERTS:]

    def get_active_alerts(self) -> list[Alert]:
        return [a for a in self._alerts if not a.resolved]

    def resolve_alert(self, component: str, message: str) -> bool:
        for alert in self._alerts:
            if not alert.resolved and alert.key == (component, message):
                alert.resolve()
                return True
        return False

    def get_history(self, limit: Optional[int] = None) -> list[SystemHealth]:
        history = list(self._history)
        return history[-limit:] if limit else history

    def get_recovery_actions(self) -> list[RecoveryAction]:
        return list(self._recovery_actions)

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    def _schedule_recovery(self, components: dict[str, ComponentHealth]) -> None:
        for name, health in components.items():
            if health.status is HealthStatus.CRITICAL:
                self._critical_streak[name] += 1
            else:
                self._critical_streak[name] = 0

            if not self.config.auto_recovery or name in self._recovering:
                continue
            if self._critical_streak[name] < self.config.error_threshold:
                continue

            recover = self._recovery_handler(name)
            if recover is None:
                continue

            logger.warning("starting recovery", component=name, consecutive_critical=self._critical_streak[name])
            self._recovering.add(name)
            task = asyncio.create_task(self._run_recovery(name, recover), name=f"recover-{name}")
            self._recovery_tasks.add(task)
            task.add_done_callback(self._recovery_tasks.discard)

    def _recovery_handler(self, component: str) -> Optional[Callable[[], Awaitable[RecoveryAction]]]:
        if component == DATABASE and self._datastore is not None:
            return self._recover_database
        if component == CREDENTIALS and self._pool is not None:
            return self._recover_credentials
        if component == SYNC and self._orchestrator is not None:
            return self._recover_sync
        return None

    async def _run_recovery(self, component: str, recover: Callable[[], Awaitable[RecoveryAction]]) -> None:
        try:
            action = await recover()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            action = RecoveryAction(component=component, action="recovery", successful=False, details=str(e))
        finally:
            self._recovering.discard(component)
            self._critical_streak[component] = 0

        self._recovery_actions.append(action)
        log = logger.info if action.successful else logger.error
        log("recovery finished", component=component, action=action.action, successful=action.successful)
        if not action.successful:
            capture_message(
                f"Recovery failed for {component}: {action.details}",
                level="error",
                context={"component": component, "action": action.action},
            )
        await self.events.emit(EventType.RECOVERY, **action.to_dict())

    async def _recover_database(self) -> RecoveryAction:
        last_error = ""
        for attempt in range(1, self.config.recovery_attempts + 1):
            try:
                latency_ms = await self._datastore.ping(bypass_breaker=True)
            except Exception as e:
                last_error = str(e)
                logger.warning("database reconnect attempt failed", attempt=attempt, error=last_error)
                if attempt < self.config.recovery_attempts:
                    await asyncio.sleep(self.config.recovery_delay)
                continue

            self._datastore.breaker.reset()
            return RecoveryAction(
                component=DATABASE,
                action="reconnect",
                successful=True,
                details=f"Database reachable after {attempt} attempt(s), {latency_ms:.0f}ms",
            )

        return RecoveryAction(
            component=DATABASE,
            action="reconnect",
            successful=False,
            details=f"Database unreachable after {self.config.recovery_attempts} attempts: {last_error}",
        )

    async def _recover_credentials(self) -> RecoveryAction:
        released = self._pool.release_expired_blocks()
        summary = self._pool.summary()
        return RecoveryAction(
            component=CREDENTIALS,
            action="release_blocks",
            successful=summary["active"] > 0,
            details=f"Released {released} expired block(s); {summary['active']} of {summary['total']} active",
        )

    async def _recover_sync(self) -> RecoveryAction:
        orchestrator = self._orchestrator
        if orchestrator.is_running:
            await orchestrator.stop()
        await asyncio.sleep(self.config.recovery_delay)

        task = asyncio.create_task(orchestrator.start(force_restart=True), name="sync-restart")
        self._restart_tasks.add(task)
        task.add_done_callback(self._restart_tasks.discard)
        return RecoveryAction(
            component=SYNC,
            action="restart",
            successful=True,
            details="Sync stopped and restarted from the beginning",
        )

    async def wait_for_recoveries(self) -> None:
        """Wait until every scheduled recovery (and any sync it restarted) has finished."""
        while self._recovery_tasks or self._restart_tasks:
            await asyncio.gather(*self._recovery_tasks, *self._restart_tasks, return_exceptions=True)
