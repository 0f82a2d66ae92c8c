import os
import re
from typing import Mapping, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()

# BLS registration keys are 32 alphanumeric characters
API_KEY_PATTERN = re.compile(r"^[a-zA-Z0-9]{32}$")
API_KEY_ENV_PREFIX = "BLS_API_KEY"


class Settings(BaseSettings):
    PROJECT_NAME: str = "occsync"

    # Database
    DATABASE_URL: str = "sqlite:///./occsync.db"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 30  # Seconds before an idle connection is replaced
    DB_CONNECT_TIMEOUT: int = 3
    DB_STATEMENT_TIMEOUT: str = "30s"
    DB_RETRY_ATTEMPTS: int = 5
    DB_BASE_RETRY_DELAY: float = 0.1
    DB_CIRCUIT_THRESHOLD: int = 5
    DB_CIRCUIT_COOLDOWN: float = 30.0

    # Upstream statistics API
    BLS_API_BASE_URL: str = "https://api.bls.gov/publicAPI/v2/timeseries/data/"
    BLS_DAILY_QUOTA: int = 500
    BLS_REQUEST_TIMEOUT: float = 30.0
    BLS_VALIDATION_TIMEOUT: float = 5.0
    BLS_RATE_LIMIT_COOLDOWN_MINUTES: int = 60
    BLS_RATE_LIMIT_RETRY_DELAY: float = 2.0
    BLS_VALIDATE_KEYS: bool = True

    # Sync orchestrator
    SYNC_MAX_CONCURRENT: int = 5
    SYNC_BATCH_SIZE: int = 50
    SYNC_RETRY_ATTEMPTS: int = 3
    SYNC_BASE_RETRY_DELAY: float = 1.0
    SYNC_MAX_RETRY_DELAY: float = 30.0
    SYNC_VALIDATE_DATA: bool = True
    SYNC_HEALTH_CHECK_INTERVAL: float = 60.0
    SYNC_PROGRESS_INTERVAL: float = 1.0
    SYNC_RESUME_FROM_CHECKPOINT: bool = True
    SYNC_CHECKPOINT_HISTORY: int = 10

    # Health monitor
    HEALTH_CHECK_INTERVAL: float = 60.0
    HEALTH_HISTORY_SIZE: int = 100
    HEALTH_ERROR_THRESHOLD: int = 3
    HEALTH_RECOVERY_ATTEMPTS: int = 3
    HEALTH_RECOVERY_DELAY: float = 5.0

    # Error tracking (optional)
    SENTRY_DSN: str = ""
    ENVIRONMENT: str = "development"

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")

    @property
    def is_serverless(self) -> bool:
        return is_serverless_runtime()


def is_serverless_runtime(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Detect short-lived function runtimes where smaller batches are safer."""
    env = os.environ if environ is None else environ
    return bool(env.get("VERCEL") or env.get("AWS_LAMBDA_FUNCTION_NAME") or env.get("SERVERLESS"))


def is_valid_api_key(key: str) -> bool:
    return bool(API_KEY_PATTERN.match(key))


def load_api_keys(environ: Optional[Mapping[str, str]] = None) -> list[str]:
    """
    Collect upstream API keys from the environment.

    Reads BLS_API_KEY plus any BLS_API_KEY_* variable (BLS_API_KEY_2, BLS_API_KEY_BACKUP...).
    Values that are not 32 alphanumeric characters are ignored, as are duplicates.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Keys in a stable order: BLS_API_KEY first, then the suffixed variables sorted by name
    """
    env = os.environ if environ is None else environ

    names = sorted(name for name in env if name.startswith(f"{API_KEY_ENV_PREFIX}_"))
    if API_KEY_ENV_PREFIX in env:
        names.insert(0, API_KEY_ENV_PREFIX)

    keys: list[str] = []
    for name in names:
        value = (env.get(name) or "").strip()
        if value and is_valid_api_key(value) and value not in keys:
            keys.append(value)
    return keys


settings = Settings()
