"""Typed activity log payloads.

Each event family has its own metadata model, discriminated by the
``event`` field, so malformed audit data fails validation at the call
site instead of landing in the table.
"""

from enum import StrEnum
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field


class ActivitySeverity(StrEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ActivityCategory(StrEnum):
    TENANT = "tenant"
    MIGRATION = "migration"
    SYSTEM = "system"


class ActivityAction(StrEnum):
    TENANT_CREATED = "tenant.created"
    TENANT_PROVISIONED = "tenant.provisioned"
    TENANT_STATUS_CHANGED = "tenant.status_changed"
    TENANT_DELETED = "tenant.deleted"
    TENANT_PURGED = "tenant.purged"
    MIGRATION_STARTED = "migration.started"
    MIGRATION_EXECUTED = "migration.executed"
    MIGRATION_FAILED = "migration.failed"
    SYSTEM_ERROR = "system.error"
    SYSTEM_CRITICAL_ERROR = "system.critical_error"


# ============================================================
# Metadata payloads
# ============================================================


class TenantCreatedMetadata(BaseModel):
    event: Literal["tenant.created"] = "tenant.created"
    slug: str
    organization_id: str
    tier: str
    attributes: dict[str, Any] | None = None


class TenantProvisionedMetadata(BaseModel):
    event: Literal["tenant.provisioned"] = "tenant.provisioned"
    database_name: str
    duration_ms: int


class TenantStatusChangedMetadata(BaseModel):
    event: Literal["tenant.status_changed"] = "tenant.status_changed"
    previous_status: str
    status: str


class TenantDeletedMetadata(BaseModel):
    event: Literal["tenant.deleted"] = "tenant.deleted"
    slug: str
    user_id: str | None = None
    permanent: bool = False
    database_name: str | None = None


class MigrationMetadata(BaseModel):
    event: Literal["migration"] = "migration"
    migration_name: str
    duration_ms: int | None = None
    error: str | None = None


class SystemErrorMetadata(BaseModel):
    event: Literal["system.error"] = "system.error"
    error_type: str
    error_message: str
    stack_trace: str | None = None
    context: dict[str, str] = Field(default_factory=dict)


ActivityMetadata = Annotated[
    TenantCreatedMetadata
    | TenantProvisionedMetadata
    | TenantStatusChangedMetadata
    | TenantDeletedMetadata
    | MigrationMetadata
    | SystemErrorMetadata,
    Field(discriminator="event"),
]


class ActivityLogParams(BaseModel):
    """Parameters for one activity log entry."""

    tenant_id: UUID | None = None
    action: ActivityAction
    category: ActivityCategory
    severity: ActivitySeverity = ActivitySeverity.INFO
    description: str
    metadata: ActivityMetadata | None = None
