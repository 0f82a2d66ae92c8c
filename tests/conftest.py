"""
Test fixtures for occsync tests.

Provides an in-memory database, a datastore client over it, credential pools,
a mocked BLS API and an upstream stand-in for orchestrator runs.
"""

import asyncio
import json
import pytest
from typing import Callable, Generator, Iterable, Optional
from sqlmodel import Session, SQLModel, create_engine
from sqlalchemy.pool import StaticPool

import httpx

from occsync.core.circuit_breaker import CircuitBreaker
from occsync.core.events import EventBus
from occsync.core.exceptions import CredentialsExhaustedError
from occsync.core.metrics import MetricsStore
from occsync.models.occupation import WorkItem
from occsync.services.bls_client import BLSClient, OccupationStats
from occsync.services.credential_pool import CredentialPool
from occsync.services.datastore import ResilientDataStore
from occsync.services.sync_orchestrator import SyncConfig, SyncOrchestrator

# Use in-memory SQLite for unit tests (fast, isolated)
TEST_DATABASE_URL = "sqlite:///:memory:"

# 32 alphanumeric characters, the BLS registration key format
KEY_A = "A" * 32
KEY_B = "B" * 32
KEY_C = "C" * 32

BLS_URL = "https://bls.test/publicAPI/v2/timeseries/data/"


@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine with in-memory SQLite."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def test_session(test_engine) -> Generator[Session, None, None]:
    """Provide a test database session."""
    with Session(test_engine) as session:
        yield session


@pytest.fixture
def breaker() -> CircuitBreaker:
    return CircuitBreaker(name="test-db", failure_threshold=3, recovery_timeout=30.0)


@pytest.fixture
def datastore(test_engine, breaker) -> ResilientDataStore:
    """Datastore client with fast retries."""
    return ResilientDataStore(test_engine, breaker=breaker, max_retries=2, base_delay=0.0)


@pytest.fixture
def pool() -> CredentialPool:
    return CredentialPool([KEY_A, KEY_B], daily_quota=500)


# ============================================
# Mocked BLS API
# ============================================


def bls_success(value: str = "1,234") -> dict:
    return {
        "status": "REQUEST_SUCCEEDED",
        "message": [],
        "Results": {"series": [{"seriesID": "X", "data": [{"year": "2024", "period": "A01", "value": value}]}]},
    }


def bls_failure(*messages: str) -> dict:
    return {"status": "REQUEST_NOT_PROCESSED", "message": list(messages), "Results": {}}


def make_transport(handler: Callable[[dict], httpx.Response]) -> httpx.MockTransport:
    """MockTransport whose handler receives the decoded JSON request body."""

    def dispatch(request: httpx.Request) -> httpx.Response:
        return handler(json.loads(request.content))

    return httpx.MockTransport(dispatch)


@pytest.fixture
def make_bls_client():
    """Factory for BLSClient instances backed by a MockTransport."""
    def factory(
        pool: CredentialPool,
        handler: Callable[[dict], httpx.Response],
        events: Optional[EventBus] = None,
    ) -> BLSClient:
        http_client = httpx.AsyncClient(transport=make_transport(handler))
        return BLSClient(
            pool,
            base_url=BLS_URL,
            timeout=5.0,
            validation_timeout=1.0,
            rate_limit_cooldown_minutes=60,
            rate_limit_retry_delay=0.0,
            http_client=http_client,
            events=events,
            end_year=2024,
        )

    return factory


# ============================================
# Orchestrator helpers
# ============================================


class FakeStatsClient:
    """
    Upstream stand-in for orchestrator tests.

    Draws two requests per item from the pool like the real client. Codes in
    `failures` raise the mapped error; codes in `stats` return the mapped stats.
    """

    def __init__(self, pool: CredentialPool, failures: Optional[dict] = None, stats: Optional[dict] = None, delay: float = 0.0):
        self.pool = pool
        self.failures = failures or {}
        self.stats = stats or {}
        self.delay = delay
        self.events = EventBus()
        self.calls: list[str] = []

    async def fetch_occupation_stats(self, code: str) -> OccupationStats:
        self.calls.append(code)
        for _ in range(2):
            if self.pool.acquire() is None:
                raise CredentialsExhaustedError("All API credentials are exhausted", retry_after=3600.0)
        if self.delay:
            await asyncio.sleep(self.delay)
        failure = self.failures.get(code)
        if failure is not None:
            raise failure
        if code in self.stats:
            return self.stats[code]
        return OccupationStats(code=code, employment=1000, median_wage=50000.0)


def make_items(count: int, start: int = 1) -> list[WorkItem]:
    return [WorkItem(code=f"11-{start + i:04d}", title=f"Test Occupation {start + i}") for i in range(count)]


@pytest.fixture
def fast_sync_config() -> Callable[..., SyncConfig]:
    def factory(**overrides) -> SyncConfig:
        values = dict(
            max_concurrent=2,
            batch_size=3,
            retry_attempts=1,
            base_retry_delay=0.0,
            max_retry_delay=0.01,
            health_check_interval=60.0,
            progress_update_interval=60.0,
        )
        values.update(overrides)
        return SyncConfig(**values)

    return factory


@pytest.fixture
def make_orchestrator(datastore, fast_sync_config):
    def factory(
        items: Iterable[WorkItem],
        pool: Optional[CredentialPool] = None,
        client=None,
        config: Optional[SyncConfig] = None,
        **kwargs,
    ) -> SyncOrchestrator:
        if pool is None:
            pool = CredentialPool([KEY_A, KEY_B], daily_quota=500)
        return SyncOrchestrator(
            pool,
            client or FakeStatsClient(pool),
            datastore,
            config=config or fast_sync_config(),
            work_items=list(items),
            metrics=MetricsStore(),
            **kwargs,
        )

    return factory
