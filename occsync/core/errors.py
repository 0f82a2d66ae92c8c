"""
Error reporting with optional Sentry integration.

Everything is logged through structlog; when a Sentry DSN is configured and
sentry-sdk is installed, the same events are forwarded to Sentry.

Usage:
    # Capture an exception
    capture_exception(exc, context={"batch": 4})

    # Capture a message (non-exception event)
    capture_message("All credentials blocked", level="warning")
"""

from typing import Optional, Any, Dict
from datetime import datetime, timezone
import logging
import os

import structlog

logger = structlog.get_logger(__name__)

__all__ = [
    "init_sentry",
    "capture_exception",
    "capture_message",
    "is_sentry_enabled",
]

_sentry_initialized: bool = False


def init_sentry(
    dsn: str,
    environment: str = "production",
    release: Optional[str] = None,
) -> bool:
    """
    Initialize Sentry SDK for error tracking.

    Args:
        dsn: Sentry DSN (from project settings)
        environment: Environment name (production, staging, development)
        release: Release version (defaults to GIT_COMMIT_SHA)

    Returns:
        True if initialization successful, False otherwise
    """
    global _sentry_initialized

    if not dsn:
        logger.info("Sentry disabled (no DSN provided)")
        return False

    try:
        import sentry_sdk
        from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
        from sentry_sdk.integrations.logging import LoggingIntegration

        sentry_sdk.init(
            dsn=dsn,
            environment=environment,
            release=release or os.environ.get("GIT_COMMIT_SHA"),
            integrations=[
                SqlalchemyIntegration(),
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            ],
            ignore_errors=[KeyboardInterrupt, SystemExit],
        )
    except ImportError:
        logger.warning("Sentry SDK not installed, error tracking disabled")
        return False
    except Exception as e:
        logger.error("Failed to initialize Sentry", error=str(e))
        return False

    _sentry_initialized = True
    logger.info("Sentry initialized", environment=environment)
    return True


def is_sentry_enabled() -> bool:
    """Check if Sentry is initialized and available."""
    return _sentry_initialized


def capture_exception(
    exc: BaseException,
    context: Optional[Dict[str, Any]] = None,
    level: str = "error",
    tags: Optional[Dict[str, str]] = None,
) -> Optional[str]:
    """
    Capture an exception with Sentry and structured logging.

    Args:
        exc: Exception to capture
        context: Additional context dict (e.g., {"code": "15-1252"})
        level: Severity level (debug, info, warning, error, fatal)
        tags: Additional tags for filtering in Sentry

    Returns:
        Sentry event ID or None if not sent
    """
    enriched_context = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "error_type": type(exc).__name__,
        **(context or {}),
    }

    logger.error("Exception captured", exc_info=exc, **enriched_context)

    if _sentry_initialized:
        try:
            import sentry_sdk

            with sentry_sdk.new_scope() as scope:
                for key, value in enriched_context.items():
                    if value is not None:
                        scope.set_extra(key, value)
                for key, value in (tags or {}).items():
                    scope.set_tag(key, value)
                scope.level = level
                return sentry_sdk.capture_exception(exc)
        except Exception as e:
            logger.warning("Failed to send exception to Sentry", error=str(e))

    return None


def capture_message(
    message: str,
    level: str = "info",
    context: Optional[Dict[str, Any]] = None,
    tags: Optional[Dict[str, str]] = None,
) -> Optional[str]:
    """
    Capture a message with Sentry (for non-exception events).

    Used for health alerts and recovery outcomes.

    Returns:
        Sentry event ID or None if not sent
    """
    enriched_context = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **(context or {}),
    }

    log_func = getattr(logger, level, logger.info)
    log_func(message, **enriched_context)

    if _sentry_initialized:
        try:
            import sentry_sdk

            with sentry_sdk.new_scope() as scope:
                for key, value in enriched_context.items():
                    if value is not None:
                        scope.set_extra(key, value)
                for key, value in (tags or {}).items():
                    scope.set_tag(key, value)
                scope.level = level
                return sentry_sdk.capture_message(message, level=level)
        except Exception as e:
            logger.warning("Failed to send message to Sentry", error=str(e))

    return None
