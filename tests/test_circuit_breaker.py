"""
Tests for circuit breaker functionality.

Tests cover:
1. State transitions (CLOSED -> OPEN -> HALF_OPEN -> CLOSED)
2. Core methods (record_success, record_failure, allow_request)
3. Remaining cooldown reporting
4. Independent instances and state change callbacks
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from occsync.core.circuit_breaker import CircuitBreaker, CircuitState


def open_breaker(threshold: int = 3, cooldown: float = 30.0) -> CircuitBreaker:
    cb = CircuitBreaker(name="test", failure_threshold=threshold, recovery_timeout=cooldown)
    for _ in range(threshold):
        cb.record_failure()
    return cb


def age_last_failure(cb: CircuitBreaker, seconds: float) -> None:
    cb._last_failure_time = datetime.now(timezone.utc) - timedelta(seconds=seconds)


class TestCircuitState:
    """Tests for CircuitState enum."""

    def test_circuit_states_exist(self):
        """Verify all expected circuit states are defined."""
        assert CircuitState.CLOSED.value == "closed"
        assert CircuitState.OPEN.value == "open"
        assert CircuitState.HALF_OPEN.value == "half_open"


class TestCircuitBreakerInitialization:
    """Tests for CircuitBreaker initialization."""

    def test_default_initialization(self):
        """Test that CircuitBreaker initializes with correct defaults."""
        cb = CircuitBreaker(name="test")

        assert cb.name == "test"
        assert cb.failure_threshold == 5
        assert cb.recovery_timeout == 30.0
        assert cb.half_open_max_calls == 1
        assert cb.state == CircuitState.CLOSED
        assert cb.failure_count == 0
        assert cb.last_failure_time is None

    def test_instances_do_not_share_state(self):
        """Two breakers for two dependencies are independent."""
        a = CircuitBreaker(name="a", failure_threshold=1)
        b = CircuitBreaker(name="b", failure_threshold=1)

        a.record_failure()

        assert a.state == CircuitState.OPEN
        assert b.state == CircuitState.CLOSED


class TestFailureCounting:
    """Tests for record_failure / record_success."""

    def test_opens_at_threshold(self):
        cb = CircuitBreaker(name="test", failure_threshold=3)

        cb.record_failure()
        cb.record_failure()
        assert cb.state == CircuitState.CLOSED

        cb.record_failure()
        assert cb.state == CircuitState.OPEN
        assert cb.is_open

    def test_success_resets_consecutive_count(self):
        cb = CircuitBreaker(name="test", failure_threshold=3)

        cb.record_failure()
        cb.record_failure()
        cb.record_success()
        cb.record_failure()

        assert cb.failure_count == 1
        assert cb.state == CircuitState.CLOSED


class TestRecovery:
    """Tests for cooldown, half-open probing and closing."""

    def test_rejects_during_cooldown(self):
        cb = open_breaker()

        assert cb.allow_request() is False

    def test_remaining_cooldown_after_ten_seconds(self):
        """Threshold 3, cooldown 30s: ten seconds after opening about 20s remain."""
        cb = open_breaker(threshold=3, cooldown=30.0)
        age_last_failure(cb, 10)

        assert cb.allow_request() is False
        assert 19.0 <= cb.remaining_cooldown() <= 20.0

    def test_allows_probe_after_cooldown(self):
        """At t+31s the next call is let through as a half-open probe."""
        cb = open_breaker(threshold=3, cooldown=30.0)
        age_last_failure(cb, 31)

        assert cb.allow_request() is True
        assert cb.state == CircuitState.HALF_OPEN
        assert cb.remaining_cooldown() == 0.0

    def test_only_one_probe_in_half_open(self):
        cb = open_breaker()
        age_last_failure(cb, 31)

        assert cb.allow_request() is True
        assert cb.allow_request() is False

    def test_successful_probe_closes(self):
        cb = open_breaker()
        age_last_failure(cb, 31)
        cb.allow_request()

        cb.record_success()

        assert cb.state == CircuitState.CLOSED
        assert cb.failure_count == 0

    def test_failed_probe_reopens(self):
        cb = open_breaker()
        age_last_failure(cb, 31)
        cb.allow_request()

        cb.record_failure()

        assert cb.state == CircuitState.OPEN
        assert cb.allow_request() is False

    def test_reset_forces_closed(self):
        cb = open_breaker()

        cb.reset()

        assert cb.state == CircuitState.CLOSED
        assert cb.allow_request() is True


class TestStateChangeCallback:
    """Tests for the per-instance on_state_change callback."""

    def test_called_on_open_and_close(self):
        callback = MagicMock()
        cb = CircuitBreaker(name="db", failure_threshold=1, on_state_change=callback)

        cb.record_failure()
        callback.assert_called_with("db", "closed", "open")

        cb.reset()
        callback.assert_called_with("db", "open", "closed")

    def test_callback_errors_are_contained(self):
        callback = MagicMock(side_effect=RuntimeError("observer down"))
        cb = CircuitBreaker(name="db", failure_threshold=1, on_state_change=callback)

        cb.record_failure()

        assert cb.state == CircuitState.OPEN

    def test_snapshot(self):
        cb = open_breaker(threshold=2)
        snapshot = cb.snapshot()

        assert snapshot["name"] == "test"
        assert snapshot["state"] == "open"
        assert snapshot["failure_count"] == 2
        assert snapshot["remaining_cooldown"] > 0
