"""
Centralized health threshold configuration.

Each monitored component maps its raw signal onto these thresholds; the overall
score is mapped onto the score tiers at the bottom. All values are tunable via
environment variables.

Usage:
    from occsync.core.health_thresholds import HealthThresholds, check_threshold

    status = check_threshold(
        value=error_rate_percent,
        threshold=HealthThresholds.API_ERROR_RATE,
    )
    # Returns: "ok", "warning", or "critical"
"""

from dataclasses import dataclass
from typing import Literal
import os

__all__ = [
    "Threshold",
    "HealthThresholds",
    "check_threshold",
    "ThresholdStatus",
]

ThresholdStatus = Literal["ok", "warning", "critical"]


@dataclass(frozen=True)
class Threshold:
    """
    Health threshold with warning and critical levels.

    Attributes:
        warning: Value at which to warn (degraded)
        critical: Value at which to alert (unhealthy)
        unit: Human-readable unit for display
        name: Optional name for logging
    """

    warning: float
    critical: float
    unit: str = ""
    name: str = ""

    def __str__(self) -> str:
        return f"{self.name or 'threshold'}: warn={self.warning}{self.unit}, crit={self.critical}{self.unit}"


def check_threshold(value: float, threshold: Threshold) -> ThresholdStatus:
    """
    Check if value exceeds threshold.

    Args:
        value: Current metric value
        threshold: Threshold to check against

    Returns:
        "ok" if below warning
        "warning" if at/above warning but below critical
        "critical" if at/above critical
    """
    if value >= threshold.critical:
        return "critical"
    elif value >= threshold.warning:
        return "warning"
    return "ok"


def _env_float(key: str, default: float) -> float:
    """Get float from environment or return default."""
    try:
        return float(os.environ.get(key, default))
    except (TypeError, ValueError):
        return default


class HealthThresholds:
    """
    Centralized health thresholds for the sync core.

    All thresholds can be overridden via environment variables:
        THRESHOLD_API_ERROR_WARN=5
        THRESHOLD_API_ERROR_CRIT=20
    """

    # ==========================================================================
    # Upstream API Thresholds
    # ==========================================================================

    API_ERROR_RATE = Threshold(
        warning=_env_float("THRESHOLD_API_ERROR_WARN", 5.0),
        critical=_env_float("THRESHOLD_API_ERROR_CRIT", 20.0),
        unit="%",
        name="api_error_rate",
    )
    """Upstream error rate over the rolling window: 5% warn, 20% critical"""

    API_AVG_LATENCY_MS = Threshold(
        warning=_env_float("THRESHOLD_API_LATENCY_WARN", 2000.0),
        critical=_env_float("THRESHOLD_API_LATENCY_CRIT", 10000.0),
        unit="ms",
        name="api_avg_latency",
    )
    """Average upstream latency: above 2s the API is reported degraded"""

    # ==========================================================================
    # Sync Thresholds
    # ==========================================================================

    SYNC_ERROR_RATE = Threshold(
        warning=_env_float("THRESHOLD_SYNC_ERROR_WARN", 5.0),
        critical=_env_float("THRESHOLD_SYNC_ERROR_CRIT", 20.0),
        unit="%",
        name="sync_error_rate",
    )
    """Failed items as a share of processed items in the active run"""

    SYNC_LOW_CAPACITY = _env_float("THRESHOLD_SYNC_LOW_CAPACITY", 10)
    """Remaining requests below which a running sync publishes a health warning"""

    # ==========================================================================
    # Database Thresholds
    # ==========================================================================

    DB_PROBE_MS = Threshold(
        warning=_env_float("THRESHOLD_DB_PROBE_WARN", 1000.0),
        critical=_env_float("THRESHOLD_DB_PROBE_CRIT", 5000.0),
        unit="ms",
        name="db_probe_time",
    )
    """SELECT 1 round trip: above 1s the datastore is reported degraded"""

    # ==========================================================================
    # Credential Thresholds
    # ==========================================================================

    CREDENTIAL_LOW_REMAINING = _env_float("THRESHOLD_CREDENTIAL_LOW_REMAINING", 100)
    """Requests left across all credentials before a warning is raised"""

    # ==========================================================================
    # Overall Score Tiers
    # ==========================================================================

    SCORE_CRITICAL_BELOW = _env_float("THRESHOLD_SCORE_CRITICAL", 50)
    SCORE_WARNING_BELOW = _env_float("THRESHOLD_SCORE_WARNING", 70)
    SCORE_DEGRADED_BELOW = _env_float("THRESHOLD_SCORE_DEGRADED", 90)
