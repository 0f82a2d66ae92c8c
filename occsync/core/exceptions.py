"""
Error taxonomy for the sync core.

Every failure the orchestrator sees is mapped to an ErrorCategory by the
classification functions in this module. The substring matching is heuristic:
upstream and database drivers mostly report problems as free-form text, so the
phrases below are the only place that text is interpreted.

Usage:
    from occsync.core.exceptions import classify_error

    category = classify_error(exc)
    if category.retryable:
        ...
"""

from enum import Enum
from typing import Optional

import httpx
from sqlalchemy.exc import DisconnectionError, InterfaceError

__all__ = [
    "OccSyncError",
    "RetryableError",
    "RateLimitError",
    "CredentialsExhaustedError",
    "UpstreamNetworkError",
    "CircuitOpenError",
    "InvalidCredentialError",
    "UpstreamError",
    "RecordValidationError",
    "ErrorCategory",
    "classify_error",
    "classify_message",
    "classify_database_error",
    "is_retryable",
]


class OccSyncError(Exception):
    """Base class for errors raised by occsync."""


class RetryableError(OccSyncError):
    """
    An error worth another attempt.

    Attributes:
        retry_after: Suggested wait in seconds. When set, it replaces the
            exponential backoff delay computed by with_retry.
    """

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class RateLimitError(RetryableError):
    """Upstream API refused the request because a credential hit its limit."""

    def __init__(self, message: str, retry_after: Optional[float] = None, status_code: Optional[int] = None):
        super().__init__(message, retry_after=retry_after)
        self.status_code = status_code


class CredentialsExhaustedError(RetryableError):
    """No credential in the pool has quota left until the next daily reset."""


class UpstreamNetworkError(RetryableError):
    """The upstream API could not be reached (timeout, DNS, connection reset)."""


class CircuitOpenError(RetryableError):
    """The datastore circuit breaker is open; retry_after is the remaining cooldown."""


class InvalidCredentialError(OccSyncError):
    """Upstream API explicitly rejected a credential. The credential is removed."""


class UpstreamError(OccSyncError):
    """Upstream API answered with a failure that is not worth retrying."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RecordValidationError(OccSyncError):
    """A derived record failed shape validation before being written."""

    def __init__(self, code: str, errors: list[str]):
        super().__init__(f"Validation failed for {code}: {', '.join(errors)}")
        self.code = code
        self.errors = errors


class ErrorCategory(str, Enum):
    TRANSIENT = "transient"
    NETWORK = "network"
    RATE_LIMIT = "rate_limit"
    QUOTA_EXHAUSTED = "quota_exhausted"
    INVALID_CREDENTIAL = "invalid_credential"
    CIRCUIT_OPEN = "circuit_open"
    VALIDATION = "validation"
    FATAL = "fatal"

    @property
    def retryable(self) -> bool:
        """Whether a later attempt of the same work item can succeed."""
        return self not in (ErrorCategory.VALIDATION, ErrorCategory.FATAL)


# ============================================
# Phrase tables
# ============================================

RATE_LIMIT_PHRASES = (
    "rate limit",
    "limit exceeded",
    "too many requests",
    "daily threshold",
    "quota exceeded",
)

INVALID_KEY_PHRASES = (
    "invalid key",
    "invalid api key",
    "invalid registration key",
    "key provided by the user is invalid",
)

NETWORK_PHRASES = (
    "network",
    "timeout",
    "timed out",
    "connection",
    "socket",
    "fetch failed",
)

DB_CONNECTION_PHRASES = (
    "connection",
    "timeout",
    "timed out",
    "socket",
    "network",
    "server closed",
    "other side closed",
    "ssl syscall",
    "could not connect",
    "broken pipe",
    "reset by peer",
)

DB_LOCK_PHRASES = (
    "deadlock",
    "lock timeout",
    "lock wait timeout",
    "could not obtain lock",
    "database is locked",
)

DB_BUSY_PHRASES = ("too many connections", "rate limit")

# Suggested waits for retryable database errors, in seconds
DB_CONNECTION_RETRY_DELAY = 0.2
DB_LOCK_RETRY_DELAY = 1.0
DB_BUSY_RETRY_DELAY = 5.0


def _contains_any(text: str, phrases: tuple[str, ...]) -> bool:
    return any(phrase in text for phrase in phrases)


def classify_message(message: str) -> ErrorCategory:
    """
    Classify free-form upstream error text.

    Rate-limit phrases win over invalid-key phrases, which win over network phrases.
    Anything unrecognized is FATAL.
    """
    text = message.lower()
    if _contains_any(text, RATE_LIMIT_PHRASES):
        return ErrorCategory.RATE_LIMIT
    if _contains_any(text, INVALID_KEY_PHRASES):
        return ErrorCategory.INVALID_CREDENTIAL
    if _contains_any(text, NETWORK_PHRASES):
        return ErrorCategory.NETWORK
    return ErrorCategory.FATAL


def classify_error(error: BaseException) -> ErrorCategory:
    """
    Map any exception raised while syncing an item to an ErrorCategory.

    Typed errors are classified by type; HTTP status codes 429 and 403 mean
    rate limiting; everything else falls back to classify_message.
    """
    if isinstance(error, CircuitOpenError):
        return ErrorCategory.CIRCUIT_OPEN
    if isinstance(error, CredentialsExhaustedError):
        return ErrorCategory.QUOTA_EXHAUSTED
    if isinstance(error, RateLimitError):
        return ErrorCategory.RATE_LIMIT
    if isinstance(error, InvalidCredentialError):
        return ErrorCategory.INVALID_CREDENTIAL
    if isinstance(error, RecordValidationError):
        return ErrorCategory.VALIDATION
    if isinstance(error, (UpstreamNetworkError, httpx.TransportError, TimeoutError, ConnectionError)):
        return ErrorCategory.NETWORK

    status_code = getattr(error, "status_code", None)
    if status_code in (429, 403):
        return ErrorCategory.RATE_LIMIT

    category = classify_message(str(error))
    if category is ErrorCategory.FATAL and type(error) is RetryableError:
        return ErrorCategory.TRANSIENT
    return category


def is_retryable(error: BaseException) -> bool:
    return classify_error(error).retryable


def classify_database_error(error: BaseException) -> Optional[RetryableError]:
    """
    Decide whether a database error deserves another attempt.

    Returns:
        A RetryableError carrying the suggested delay, or None when the error
        should propagate immediately (permissions, schema, constraint violations).
    """
    if isinstance(error, RetryableError):
        return error

    text = str(error).lower()
    # Busy and lock phrases are checked before connection phrases: "too many
    # connections" contains "connection" and "lock wait timeout" contains "timeout"
    if _contains_any(text, DB_BUSY_PHRASES):
        return RetryableError(f"Database busy: {error}", retry_after=DB_BUSY_RETRY_DELAY)
    if _contains_any(text, DB_LOCK_PHRASES):
        return RetryableError(f"Database lock error: {error}", retry_after=DB_LOCK_RETRY_DELAY)
    if isinstance(error, (DisconnectionError, InterfaceError)) or _contains_any(text, DB_CONNECTION_PHRASES):
        return RetryableError(f"Database connection error: {error}", retry_after=DB_CONNECTION_RETRY_DELAY)
    return None
