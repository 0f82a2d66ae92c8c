"""
Pool of upstream API credentials, each with its own daily request quota.

Selection sticks with the current credential until it is exhausted or blocked,
then moves round-robin to the next usable one. Daily resets are applied lazily:
every public call first compares each credential's last reset date with today.

Usage:
    pool = CredentialPool(load_api_keys(), daily_quota=500, validator=client.validate_key)
    await pool.validate_all()

    credential = pool.acquire()  # select + count one request
    if credential is None:
        ...  # every credential is exhausted or blocked
"""

import asyncio
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from threading import RLock
from typing import Awaitable, Callable, Iterable, Optional

import structlog

from occsync.core.typing import utc_now

logger = structlog.get_logger(__name__)

DEFAULT_DAILY_QUOTA = 500
DEFAULT_COOLDOWN_MINUTES = 60

# Returns False only when the upstream service explicitly rejects the secret
CredentialValidator = Callable[[str], Awaitable[bool]]


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _next_reset() -> datetime:
    return datetime.combine(_today() + timedelta(days=1), time.min, tzinfo=timezone.utc)


@dataclass
class Credential:
    """One upstream API key and its usage for the current day."""

    secret: str
    requests_used: int = 0
    last_reset_date: date = field(default_factory=_today)
    blocked: bool = False
    block_until: Optional[datetime] = None

    @property
    def preview(self) -> str:
        return f"{self.secret[:8]}..."

    def is_blocked(self, now: datetime) -> bool:
        """Blocked and the block has not yet expired."""
        return self.blocked and (self.block_until is None or self.block_until > now)

    def __repr__(self) -> str:
        return f"Credential({self.preview}, used={self.requests_used}, blocked={self.blocked})"


class CredentialPool:
    def __init__(
        self,
        secrets: Iterable[str] = (),
        daily_quota: int = DEFAULT_DAILY_QUOTA,
        validator: Optional[CredentialValidator] = None,
    ):
        self.daily_quota = daily_quota
        self.validator = validator
        self._credentials: dict[str, Credential] = {}
        self._current_index = 0
        self._lock = RLock()
        self._validating = False
        self._pending: list[str] = []

        for secret in secrets:
            if secret and secret not in self._credentials:
                self._credentials[secret] = Credential(secret=secret)

        logger.info("credential pool initialized", credentials=len(self._credentials), daily_quota=daily_quota)

    def __len__(self) -> int:
        with self._lock:
            return len(self._credentials)

    def __contains__(self, secret: object) -> bool:
        with self._lock:
            return secret in self._credentials

    @property
    def total_daily_capacity(self) -> int:
        return len(self) * self.daily_quota

    @property
    def is_validating(self) -> bool:
        return self._validating

    # ------------------------------------------------------------------
    # Selection and usage
    # ------------------------------------------------------------------

    def _apply_daily_reset(self) -> None:
        """Must be called while holding self._lock."""
        today = _today()
        for credential in self._credentials.values():
            if credential.last_reset_date != today:
                credential.requests_used = 0
                credential.last_reset_date = today
                credential.blocked = False
                credential.block_until = None
                logger.info("credential quota reset", credential=credential.preview)

    def select_credential(self) -> Optional[Credential]:
        """
        Pick the next usable credential without counting a request.

        Returns:
            A credential with quota left, or None when all are exhausted or blocked
        """
        with self._lock:
            self._apply_daily_reset()
            credentials = list(self._credentials.values())
            if not credentials:
                return None

            count = len(credentials)
            for offset in range(count):
                index = (self._current_index + offset) % count
                credential = credentials[index]
                if not credential.blocked and credential.requests_used < self.daily_quota:
                    self._current_index = index
                    return credential

            # Second pass: blocks whose cooldown has run out
            now = utc_now()
            for index, credential in enumerate(credentials):
                if credential.blocked and credential.block_until is not None and credential.block_until <= now:
                    credential.blocked = False
                    credential.block_until = None
                    logger.info("credential unblocked after cooldown", credential=credential.preview)
                    if credential.requests_used < self.daily_quota:
                        self._current_index = index
                        return credential

            return None

    def record_use(self, credential: Credential) -> None:
        """Count one request against a credential."""
        with self._lock:
            self._apply_daily_reset()
            credential.requests_used += 1
            if credential.requests_used > self.daily_quota and not credential.blocked:
                credential.blocked = True
                credential.block_until = _next_reset()
                logger.warning(
                    "credential over daily quota, blocked until reset",
                    credential=credential.preview,
                    used=credential.requests_used,
                )

    def acquire(self) -> Optional[Credential]:
        """Select a credential and count the request in one step."""
        with self._lock:
            credential = self.select_credential()
            if credential is not None:
                self.record_use(credential)
            return credential

    def record_rate_limited(self, credential: Credential, cooldown_minutes: float = DEFAULT_COOLDOWN_MINUTES) -> None:
        """Block a credential after the upstream API signalled a rate limit."""
        with self._lock:
            credential.blocked = True
            credential.block_until = utc_now() + timedelta(minutes=cooldown_minutes)
        logger.warning(
            "credential rate limited",
            credential=credential.preview,
            cooldown_minutes=cooldown_minutes,
        )

    def release_expired_blocks(self) -> int:
        """Unblock every credential whose cooldown has passed. Returns how many were released."""
        released = 0
        with self._lock:
            self._apply_daily_reset()
            now = utc_now()
            for credential in self._credentials.values():
                if credential.blocked and credential.block_until is not None and credential.block_until <= now:
                    credential.blocked = False
                    credential.block_until = None
                    released += 1
        if released:
            logger.info("expired credential blocks released", released=released)
        return released

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def remaining_capacity(self) -> int:
        """Requests left today across credentials that are not currently blocked."""
        with self._lock:
            self._apply_daily_reset()
            now = utc_now()
            return sum(
                max(0, self.daily_quota - c.requests_used)
                for c in self._credentials.values()
                if not c.is_blocked(now)
            )

    def status_snapshot(self) -> list[dict]:
        with self._lock:
            self._apply_daily_reset()
            return [
                {
                    "preview": c.preview,
                    "used": c.requests_used,
                    "remaining": max(0, self.daily_quota - c.requests_used),
                    "blocked": c.blocked,
                    "block_until": c.block_until.isoformat() if c.block_until else None,
                }
                for c in self._credentials.values()
            ]

    def summary(self) -> dict:
        """Counts used by the health monitor."""
        with self._lock:
            self._apply_daily_reset()
            now = utc_now()
            total = len(self._credentials)
            blocked = sum(1 for c in self._credentials.values() if c.is_blocked(now))
            return {
                "total": total,
                "active": total - blocked,
                "blocked": blocked,
                "remaining": self.remaining_capacity(),
            }

    def seconds_until_reset(self) -> float:
        return max(0.0, (_next_reset() - utc_now()).total_seconds())

    # ------------------------------------------------------------------
    # Membership and validation
    # ------------------------------------------------------------------

    async def _is_acceptable(self, secret: str) -> bool:
        if self.validator is None:
            return True
        try:
            return await self.validator(secret)
        except Exception as e:
            # Not evidence the key is bad; keep it
            logger.warning(
                "credential validation inconclusive, keeping credential",
                credential=f"{secret[:8]}...",
                error=str(e),
            )
            return True

    async def add_credential(self, secret: str, validate: bool = True) -> bool:
        """
        Add a credential to the pool.

        While validate_all() is running the secret is queued and added once that
        pass finishes.

        Returns:
            False if the secret is already present or was rejected by the validator
        """
        secret = secret.strip()
        if not secret:
            return False

        with self._lock:
            if secret in self._credentials:
                return False
            if self._validating:
                if secret not in self._pending:
                    self._pending.append(secret)
                logger.info("credential queued until validation completes", credential=f"{secret[:8]}...")
                return True

        if validate and not await self._is_acceptable(secret):
            logger.warning("credential rejected by upstream", credential=f"{secret[:8]}...")
            return False

        with self._lock:
            if secret in self._credentials:
                return False
            self._credentials[secret] = Credential(secret=secret)
        logger.info("credential added", credential=f"{secret[:8]}...")
        return True

    def remove_credential(self, secret: str) -> bool:
        with self._lock:
            credential = self._credentials.pop(secret, None)
            if credential is None:
                return False
            if self._current_index >= len(self._credentials):
                self._current_index = 0
        logger.info("credential removed", credential=credential.preview)
        return True

    async def validate_all(self) -> list[str]:
        """
        Check every credential against the upstream API.

        Credentials the upstream explicitly reports as invalid are removed;
        credentials whose check fails for any other reason are kept.

        Returns:
            Previews of the removed credentials
        """
        if self.validator is None:
            return []

        with self._lock:
            if self._validating:
                return []
            self._validating = True
            secrets = list(self._credentials)

        removed: list[str] = []
        try:
            results = await asyncio.gather(*(self._is_acceptable(s) for s in secrets))
            for secret, acceptable in zip(secrets, results):
                if not acceptable and self.remove_credential(secret):
                    removed.append(f"{secret[:8]}...")
        finally:
            with self._lock:
                self._validating = False
                pending, self._pending = self._pending, []

        for secret in pending:
            await self.add_credential(secret)

        logger.info(
            "credential validation complete",
            checked=len(secrets),
            removed=len(removed),
            queued_added=len(pending),
            remaining=len(self),
        )
        return removed
