from .occupation import Occupation, WorkItem, validate_occupation
from .sync import Checkpoint, ControlResult, ItemError, SyncOutcome, SyncProgress, SyncResult, SyncStats
from .health import Alert, AlertLevel, ComponentHealth, HealthStatus, RecoveryAction, SystemHealth

__all__ = [
    "Occupation",
    "WorkItem",
    "validate_occupation",
    "Checkpoint",
    "ControlResult",
    "ItemError",
    "SyncOutcome",
    "SyncProgress",
    "SyncResult",
    "SyncStats",
    "Alert",
    "AlertLevel",
    "ComponentHealth",
    "HealthStatus",
    "RecoveryAction",
    "SystemHealth",
]
