from datetime import datetime, timezone
from enum import Enum
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable, Dict, Optional
import logging

logger = logging.getLogger(__name__)

# (name, old_state, new_state) - return value is ignored
StateChangeCallback = Callable[[str, str, str], Any]


class CircuitState(Enum):
    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject requests
    HALF_OPEN = "half_open"  # Cooldown elapsed, probing


@dataclass
class CircuitBreaker:
    """
    Consecutive-failure circuit breaker guarding a single dependency.

    Each instance owns its own state; share the instance (not a registry) with
    every caller that talks to the same dependency.
    """

    name: str
    failure_threshold: int = 5
    recovery_timeout: float = 30.0  # seconds
    half_open_max_calls: int = 1
    on_state_change: Optional[StateChangeCallback] = None

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _failure_count: int = field(default=0, init=False)
    _success_count: int = field(default=0, init=False)
    _last_failure_time: datetime | None = field(default=None, init=False)
    _half_open_calls: int = field(default=0, init=False)
    _lock: Lock = field(default_factory=Lock, init=False)

    @property
    def state(self) -> CircuitState:
        """Return current state. Use allow_request() for state transitions."""
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def last_failure_time(self) -> datetime | None:
        return self._last_failure_time

    @property
    def is_open(self) -> bool:
        """True while requests are being rejected (cooldown not yet elapsed)."""
        with self._lock:
            return self._state == CircuitState.OPEN and self._remaining_cooldown() > 0

    def _notify(self, old_state: CircuitState) -> None:
        if self.on_state_change is None:
            return
        try:
            self.on_state_change(self.name, old_state.value, self._state.value)
        except Exception as e:
            logger.error(f"Circuit breaker notification failed: {e}")

    def _remaining_cooldown(self) -> float:
        """Must be called while holding self._lock."""
        if self._state != CircuitState.OPEN or self._last_failure_time is None:
            return 0.0
        elapsed = (datetime.now(timezone.utc) - self._last_failure_time).total_seconds()
        return max(0.0, self.recovery_timeout - elapsed)

    def _check_recovery_transition(self) -> Optional[CircuitState]:
        """Move OPEN -> HALF_OPEN once the cooldown has elapsed.

        Must be called while holding self._lock.
        Returns the previous state if a transition happened.
        """
        if self._state == CircuitState.OPEN and self._remaining_cooldown() <= 0:
            old_state = self._state
            self._state = CircuitState.HALF_OPEN
            self._half_open_calls = 0
            self._success_count = 0
            logger.info(f"Circuit {self.name}: OPEN -> HALF_OPEN")
            return old_state
        return None

    def remaining_cooldown(self) -> float:
        """Seconds until the next request will be let through as a probe."""
        with self._lock:
            return self._remaining_cooldown()

    def record_success(self) -> None:
        old_state = None
        with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                self._success_count += 1
                if self._success_count >= self.half_open_max_calls:
                    old_state = self._state
                    self._state = CircuitState.CLOSED
                    self._failure_count = 0
                    self._success_count = 0
                    logger.info(f"Circuit {self.name}: HALF_OPEN -> CLOSED")
            else:
                self._failure_count = 0
        if old_state is not None:
            self._notify(old_state)

    def record_failure(self) -> None:
        old_state = None
        with self._lock:
            self._failure_count += 1
            self._last_failure_time = datetime.now(timezone.utc)

            if self._state == CircuitState.HALF_OPEN:
                old_state = self._state
                self._state = CircuitState.OPEN
                logger.warning(f"Circuit {self.name}: HALF_OPEN -> OPEN (probe failed)")
            elif self._state == CircuitState.CLOSED and self._failure_count >= self.failure_threshold:
                old_state = self._state
                self._state = CircuitState.OPEN
                logger.warning(
                    f"Circuit {self.name}: CLOSED -> OPEN ({self._failure_count} consecutive failures)"
                )
        if old_state is not None:
            self._notify(old_state)

    def allow_request(self) -> bool:
        with self._lock:
            old_state = self._check_recovery_transition()

            if self._state == CircuitState.CLOSED:
                result = True
            elif self._state == CircuitState.OPEN:
                result = False
            else:  # HALF_OPEN
                self._half_open_calls += 1
                result = self._half_open_calls <= self.half_open_max_calls
        if old_state is not None:
            self._notify(old_state)
        return result

    def reset(self) -> None:
        """Force the breaker closed (used after a successful manual recovery)."""
        with self._lock:
            old_state = self._state
            self._state = CircuitState.CLOSED
            self._failure_count = 0
            self._success_count = 0
            self._half_open_calls = 0
        if old_state != CircuitState.CLOSED:
            logger.info(f"Circuit {self.name}: {old_state.value.upper()} -> CLOSED (reset)")
            self._notify(old_state)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "name": self.name,
                "state": self._state.value,
                "failure_count": self._failure_count,
                "last_failure_at": self._last_failure_time.isoformat() if self._last_failure_time else None,
                "remaining_cooldown": round(self._remaining_cooldown(), 1),
            }
