"""Health records produced by the health monitor."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from occsync.core.typing import utc_now


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    WARNING = "warning"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


class AlertLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass(frozen=True)
class ComponentHealth:
    status: HealthStatus
    score: int
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    checked_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "score": self.score,
            "message": self.message,
            "details": self.details,
            "checked_at": self.checked_at.isoformat(),
        }


@dataclass
class Alert:
    """A threshold crossing. Unresolved alerts are unique per (component, message)."""

    level: AlertLevel
    component: str
    message: str
    created_at: datetime = field(default_factory=utc_now)
    resolved: bool = False
    resolved_at: Optional[datetime] = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.component, self.message)

    def resolve(self) -> None:
        if not self.resolved:
            self.resolved = True
            self.resolved_at = utc_now()

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level.value,
            "component": self.component,
            "message": self.message,
            "created_at": self.created_at.isoformat(),
            "resolved": self.resolved,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
        }


@dataclass(frozen=True)
class SystemHealth:
    """Point-in-time aggregate of every component. Never mutated after creation."""

    score: int
    status: HealthStatus
    components: dict[str, ComponentHealth]
    alerts: tuple[Alert, ...] = ()
    recommendations: tuple[str, ...] = ()
    checked_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "status": self.status.value,
            "checked_at": self.checked_at.isoformat(),
            "components": {name: c.to_dict() for name, c in self.components.items()},
            "alerts": [a.to_dict() for a in self.alerts],
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class RecoveryAction:
    component: str
    action: str
    successful: bool
    details: str = ""
    started_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "component": self.component,
            "action": self.action,
            "successful": self.successful,
            "details": self.details,
            "started_at": self.started_at.isoformat(),
        }
