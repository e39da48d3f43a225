"""Activity logging for tenant lifecycle events."""

from tenant_db.core.audit.models import ActivityLog
from tenant_db.core.audit.schemas import (
    ActivityAction,
    ActivityCategory,
    ActivityLogParams,
    ActivitySeverity,
)
from tenant_db.core.audit.service import ActivityLogger


__all__ = [
    "ActivityAction",
    "ActivityCategory",
    "ActivityLog",
    "ActivityLogParams",
    "ActivityLogger",
    "ActivitySeverity",
]
