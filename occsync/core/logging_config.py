"""
Logging setup for sync processes.

Every event carries service="occsync" plus anything bound with
structlog.contextvars.bind_contextvars (a run id, a batch number). The renderer
is picked once per process:

    LOG_FORMAT=json      one JSON object per line
    LOG_FORMAT=console   aligned key=value lines
    unset                json when OCCSYNC_ENV=production or on Railway, console otherwise

LOG_LEVEL filters structlog events and the standard library loggers that httpx
and SQLAlchemy write to. Those libraries never go below WARNING.

    from occsync.core.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("checkpoint saved", batch=3, processed=150)
"""

import logging
import os
import sys
from typing import Any, Mapping, MutableMapping, Optional

import structlog

SERVICE_NAME = "occsync"

# Libraries whose per-request logging drowns out sync progress
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "sqlalchemy.engine")


def add_service(logger: Any, method_name: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def wants_json(env: Optional[Mapping[str, str]] = None) -> bool:
    """Decide the renderer from LOG_FORMAT, falling back to the deployment environment."""
    env = os.environ if env is None else env
    fmt = env.get("LOG_FORMAT", "").strip().lower()
    if fmt in ("json", "console"):
        return fmt == "json"
    return env.get("OCCSYNC_ENV", "").strip().lower() == "production" or "RAILWAY_ENVIRONMENT" in env


def resolve_level(name: Optional[str] = None) -> int:
    """Map a level name to its number; unknown names mean INFO."""
    name = (name or os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def build_processors(json_output: bool) -> list[Any]:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        add_service,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_output:
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return processors


def configure_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """
    (Re)configure structlog and the standard library root logger.

    Args:
        level: Level name; defaults to LOG_LEVEL, then INFO
        json_output: Force JSON or console rendering; defaults to wants_json()
    """
    numeric = resolve_level(level)
    if json_output is None:
        json_output = wants_json()

    structlog.configure(
        processors=build_processors(json_output),
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric, logging.WARNING))


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


configure_logging()
