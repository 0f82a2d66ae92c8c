"""
Datastore access guarded by a circuit breaker and a retry policy.

Every operation is a callable taking a SQLModel Session. The session is committed
when the callable returns, so one statement and a multi-step transaction are
handled the same way. Transient failures (connection drops, lock contention,
connection limits) are retried with the delays from classify_database_error;
anything else propagates at once. Failures that survive the retries count
against the breaker, and an open breaker rejects calls until its cooldown ends.
"""

import time
from typing import Any, Callable, Iterable, Optional, TypeVar

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, select, text
import structlog

from occsync.core.circuit_breaker import CircuitBreaker
from occsync.core.config import settings
from occsync.core.exceptions import CircuitOpenError, RetryableError, classify_database_error
from occsync.core.retry import with_retry
from occsync.core.typing import col, utc_now
from occsync.models.occupation import UPSERT_FIELDS, Occupation

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, RetryableError)


class ResilientDataStore:
    def __init__(
        self,
        engine: Engine,
        breaker: Optional[CircuitBreaker] = None,
        max_retries: int = settings.DB_RETRY_ATTEMPTS,
        base_delay: float = settings.DB_BASE_RETRY_DELAY,
        max_delay: Optional[float] = None,
    ):
        self.engine = engine
        self.breaker = breaker or CircuitBreaker(
            name="datastore",
            failure_threshold=settings.DB_CIRCUIT_THRESHOLD,
            recovery_timeout=settings.DB_CIRCUIT_COOLDOWN,
        )
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay

    def _run(self, operation: Callable[[Session], T]) -> T:
        with Session(self.engine, expire_on_commit=False) as session:
            try:
                result = operation(session)
                session.commit()
                return result
            except Exception as e:
                retryable = classify_database_error(e)
                if retryable is not None and retryable is not e:
                    raise retryable from e
                raise

    async def execute(
        self,
        operation: Callable[[Session], T],
        name: Optional[str] = None,
        max_retries: Optional[int] = None,
    ) -> T:
        """
        Run a datastore operation with breaker protection and retries.

        Args:
            operation: Callable receiving an open Session; its return value is returned
            name: Operation name for logs
            max_retries: Override the client's retry count (0 for probes)

        Raises:
            CircuitOpenError: breaker open; retry_after is the remaining cooldown
        """
        op_name = name or getattr(operation, "__name__", "operation")

        if not self.breaker.allow_request():
            remaining = self.breaker.remaining_cooldown()
            raise CircuitOpenError(
                f"Datastore circuit is open, retry in {remaining:.0f}s",
                retry_after=remaining,
            )

        async def attempt() -> T:
            return self._run(operation)

        try:
            result = await with_retry(
                attempt,
                max_retries=self.max_retries if max_retries is None else max_retries,
                base_delay=self.base_delay,
                max_delay=self.max_delay,
                retry_if=_is_retryable,
                operation_name=f"db.{op_name}",
            )
        except Exception as e:
            self.breaker.record_failure()
            logger.error(
                "datastore operation failed",
                operation=op_name,
                error=str(e),
                consecutive_failures=self.breaker.failure_count,
            )
            raise

        self.breaker.record_success()
        return result

    # ------------------------------------------------------------------
    # Occupation records
    # ------------------------------------------------------------------

    async def upsert_occupation(self, record: Occupation) -> Occupation:
        """Insert or update by occ_code; fields left as None keep their stored value."""

        def upsert(session: Session) -> Occupation:
            return _upsert_one(session, record)

        return await self.execute(upsert, name="upsert_occupation")

    async def upsert_many(self, records: Iterable[Occupation]) -> int:
        """Upsert several records in one transaction. Returns the number written."""
        batch = list(records)

        def upsert_all(session: Session) -> int:
            for record in batch:
                _upsert_one(session, record)
            return len(batch)

        return await self.execute(upsert_all, name="upsert_many")

    async def get_occupation(self, code: str) -> Optional[Occupation]:
        def fetch(session: Session) -> Optional[Occupation]:
            return session.exec(select(Occupation).where(Occupation.occ_code == code)).first()

        return await self.execute(fetch, name="get_occupation")

    async def count_occupations(self) -> int:
        def count(session: Session) -> int:
            return session.exec(select(func.count()).select_from(Occupation)).one()

        return await self.execute(count, name="count_occupations")

    async def count_scored(self) -> int:
        def count(session: Session) -> int:
            query = select(func.count()).select_from(Occupation).where(col(Occupation.risk_score).is_not(None))
            return session.exec(query).one()

        return await self.execute(count, name="count_scored")

    async def create_tables(self) -> None:
        def create(session: Session) -> None:
            SQLModel.metadata.create_all(session.connection())

        await self.execute(create, name="create_tables")

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def ping(self, bypass_breaker: bool = False) -> float:
        """
        Run SELECT 1 once (no retries). Returns the round trip in milliseconds.

        Args:
            bypass_breaker: Run even while the breaker is open, without recording
                the outcome on it. Recovery uses this to find out whether a datastore
                the breaker gave up on is reachable again.
        """
        started = time.perf_counter()

        def probe(session: Session) -> Any:
            return session.execute(text("SELECT 1")).scalar()

        if bypass_breaker:
            self._run(probe)
        else:
            await self.execute(probe, name="ping", max_retries=0)
        return (time.perf_counter() - started) * 1000

    async def status(self) -> dict[str, Any]:
        """Connection, breaker and table summary for health reporting."""
        info: dict[str, Any] = {"circuit": self.breaker.snapshot()}
        try:
            latency_ms = await self.ping()
        except Exception as e:
            info.update(connected=False, error=str(e))
            return info

        info.update(connected=True, response_time_ms=round(latency_ms, 1))
        try:
            total = await self.count_occupations()
            scored = await self.count_scored()
        except Exception as e:
            logger.warning("datastore status query failed", error=str(e))
            info.update(tables_ready=False, error=str(e))
            return info

        info.update(
            tables_ready=True,
            total=total,
            scored=scored,
            completion_rate=round(scored / total * 100, 1) if total else 0.0,
        )
        return info


def _upsert_one(session: Session, record: Occupation) -> Occupation:
    existing = session.exec(select(Occupation).where(Occupation.occ_code == record.occ_code)).first()
    if existing is None:
        row = Occupation(occ_code=record.occ_code, **{name: getattr(record, name) for name in UPSERT_FIELDS})
    else:
        row = existing
        for name in UPSERT_FIELDS:
            value = getattr(record, name)
            if value is not None:
                setattr(row, name, value)
        row.updated_at = utc_now()
    session.add(row)
    session.flush()
    return row
