from typing import Optional

from sqlmodel import create_engine, SQLModel
from sqlalchemy import event
from sqlalchemy.engine import Engine
import logging

from occsync.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None


def create_db_engine(database_url: Optional[str] = None, config: Optional[Settings] = None) -> Engine:
    """
    Build an engine with the pool limits the datastore client relies on.

    PostgreSQL gets pool sizing, connect timeout and TCP keepalives; SQLite
    (local runs and tests) gets the defaults plus cross-thread access.
    """
    config = config or default_settings
    url = database_url or config.DATABASE_URL

    if url.startswith("sqlite"):
        return create_engine(url, echo=False, connect_args={"check_same_thread": False})

    engine = create_engine(
        url,
        echo=False,
        pool_size=config.DB_POOL_SIZE,
        max_overflow=config.DB_MAX_OVERFLOW,
        pool_pre_ping=True,  # Verify connections before use
        pool_recycle=config.DB_POOL_RECYCLE,
        pool_timeout=config.DB_POOL_TIMEOUT,
        connect_args={
            "connect_timeout": config.DB_CONNECT_TIMEOUT,
            "keepalives": 1,
            "keepalives_idle": 30,
            "keepalives_interval": 10,
            "keepalives_count": 5,
        },
    )

    statement_timeout = config.DB_STATEMENT_TIMEOUT

    @event.listens_for(engine, "connect")
    def set_statement_timeout(dbapi_connection, connection_record):
        """Cap query time so a stuck statement cannot hold a worker forever."""
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute(f"SET statement_timeout = '{statement_timeout}'")
        except Exception as e:
            logger.warning(f"Could not set statement timeout: {e}")
        finally:
            cursor.close()

    return engine


def get_engine() -> Engine:
    """Process-wide engine built from settings on first use."""
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def create_db_and_tables(engine: Optional[Engine] = None) -> None:
    # Registers the table on SQLModel.metadata
    from occsync.models.occupation import Occupation  # noqa: F401

    SQLModel.metadata.create_all(engine or get_engine())
