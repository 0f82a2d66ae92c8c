"""
Wiring for the sync core and the control surface external callers use.

build_runtime() creates one of each component from Settings and shares a single
EventBus between them, so one subscription sees progress, errors, checkpoints,
alerts and recovery events:

    runtime = build_runtime()
    runtime.events.subscribe(print_event)
    result = await runtime.start()
    await runtime.aclose()
"""

from dataclasses import dataclass
from typing import Optional

import httpx
from sqlalchemy.engine import Engine

from occsync.core.circuit_breaker import CircuitBreaker
from occsync.core.config import Settings, is_valid_api_key, load_api_keys, settings as default_settings
from occsync.core.errors import capture_exception, init_sentry
from occsync.core.events import EventBus
from occsync.core.logging_config import get_logger
from occsync.db import create_db_engine
from occsync.models.health import SystemHealth
from occsync.models.occupation import WorkItem
from occsync.models.sync import ControlResult, SyncOutcome, SyncProgress, SyncResult
from occsync.services.bls_client import BLSClient
from occsync.services.credential_pool import CredentialPool
from occsync.services.datastore import ResilientDataStore
from occsync.services.health_monitor import HealthConfig, HealthMonitor
from occsync.services.sync_orchestrator import SyncConfig, SyncOrchestrator

logger = get_logger(__name__)


@dataclass
class SyncRuntime:
    settings: Settings
    events: EventBus
    pool: CredentialPool
    client: BLSClient
    datastore: ResilientDataStore
    orchestrator: SyncOrchestrator
    monitor: HealthMonitor
    _ready: bool = False

    async def prepare(self) -> None:
        """Create tables and check configured credentials. Runs once per runtime."""
        if self._ready:
            return
        await self.datastore.create_tables()
        if self.settings.BLS_VALIDATE_KEYS:
            removed = await self.pool.validate_all()
            if removed:
                logger.warning("invalid credentials removed at startup", removed=removed)
        self._ready = True

    async def start(self, force_restart: bool = False) -> SyncResult:
        try:
            await self.prepare()
        except Exception as e:
            logger.error("sync preparation failed", error=str(e))
            capture_exception(e, context={"component": "sync", "stage": "prepare"})
            return SyncResult(success=False, message=f"Sync failed: {e}", outcome=SyncOutcome.FAILED)
        return await self.orchestrator.start(force_restart=force_restart)

    async def stop(self) -> ControlResult:
        return await self.orchestrator.stop()

    async def add_credential(self, secret: str) -> ControlResult:
        secret = (secret or "").strip()
        if not is_valid_api_key(secret):
            return ControlResult(success=False, message="Invalid API key format: expected 32 alphanumeric characters")
        if secret in self.pool:
            return ControlResult(success=False, message="API key is already in the pool")

        added = await self.pool.add_credential(secret, validate=self.settings.BLS_VALIDATE_KEYS)
        if not added:
            return ControlResult(success=False, message="API key was rejected by the upstream API")
        if self.pool.is_validating:
            return ControlResult(success=True, message="API key queued until credential validation completes")
        return ControlResult(success=True, message=f"API key added ({len(self.pool)} in pool)")

    def remove_credential(self, secret: str) -> ControlResult:
        if self.pool.remove_credential((secret or "").strip()):
            return ControlResult(success=True, message=f"API key removed ({len(self.pool)} in pool)")
        return ControlResult(success=False, message="API key not found")

    def get_progress(self) -> SyncProgress:
        return self.orchestrator.get_progress()

    async def check_health(self) -> SystemHealth:
        return await self.monitor.check_now()

    async def aclose(self) -> None:
        if self.orchestrator.is_running:
            await self.orchestrator.stop()
        await self.monitor.stop()
        await self.client.aclose()


def build_runtime(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    api_keys: Optional[list[str]] = None,
    sync_config: Optional[SyncConfig] = None,
    work_items: Optional[list[WorkItem]] = None,
) -> SyncRuntime:
    """
    Build every component from settings.

    Args:
        settings: Defaults to the module-level settings
        engine: Existing engine (tests pass an in-memory SQLite engine)
        http_client: Existing httpx client (tests pass one with a MockTransport)
        api_keys: Credentials to start with; defaults to BLS_API_KEY* from the environment
        sync_config: Orchestrator settings; defaults to SyncConfig.from_settings
        work_items: Occupations to sync; defaults to the full standard list
    """
    config = settings or default_settings

    if config.SENTRY_DSN:
        init_sentry(config.SENTRY_DSN, environment=config.ENVIRONMENT)

    events = EventBus()
    pool = CredentialPool(
        load_api_keys() if api_keys is None else api_keys,
        daily_quota=config.BLS_DAILY_QUOTA,
    )
    client = BLSClient(
        pool,
        base_url=config.BLS_API_BASE_URL,
        timeout=config.BLS_REQUEST_TIMEOUT,
        validation_timeout=config.BLS_VALIDATION_TIMEOUT,
        rate_limit_cooldown_minutes=config.BLS_RATE_LIMIT_COOLDOWN_MINUTES,
        rate_limit_retry_delay=config.BLS_RATE_LIMIT_RETRY_DELAY,
        http_client=http_client,
        events=events,
    )
    if config.BLS_VALIDATE_KEYS:
        pool.validator = client.validate_key

    datastore = ResilientDataStore(
        engine or create_db_engine(config=config),
        breaker=CircuitBreaker(
            name="datastore",
            failure_threshold=config.DB_CIRCUIT_THRESHOLD,
            recovery_timeout=config.DB_CIRCUIT_COOLDOWN,
        ),
        max_retries=config.DB_RETRY_ATTEMPTS,
        base_delay=config.DB_BASE_RETRY_DELAY,
    )
    orchestrator = SyncOrchestrator(
        pool,
        client,
        datastore,
        config=sync_config or SyncConfig.from_settings(config),
        work_items=work_items,
        events=events,
    )

    monitor = HealthMonitor(HealthConfig.from_settings(config), events=events)
    monitor.register_credential_pool(pool)
    monitor.register_datastore(datastore)
    monitor.register_api_client(client)
    monitor.register_orchestrator(orchestrator)

    logger.info(
        "sync runtime built",
        credentials=len(pool),
        batch_size=orchestrator.config.batch_size,
        max_concurrent=orchestrator.config.max_concurrent,
        serverless=config.is_serverless,
    )
    return SyncRuntime(
        settings=config,
        events=events,
        pool=pool,
        client=client,
        datastore=datastore,
        orchestrator=orchestrator,
        monitor=monitor,
    )
