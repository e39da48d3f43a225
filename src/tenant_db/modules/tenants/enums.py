"""Enumerations for tenant catalog records."""

from enum import StrEnum


class TenantStatus(StrEnum):
    """Lifecycle states of a tenant."""

    PROVISIONING = "provisioning"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    FAILED = "failed"
    DELETED = "deleted"


class TenantTier(StrEnum):
    """Service tier a tenant is provisioned on."""

    SHARED = "shared"
    DEDICATED = "dedicated"
    ENTERPRISE = "enterprise"


class DatabaseHostStatus(StrEnum):
    """Availability of a database host for new tenants."""

    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    FULL = "full"
    INACTIVE = "inactive"


class MigrationStatus(StrEnum):
    """Outcome of a tenant migration run."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
