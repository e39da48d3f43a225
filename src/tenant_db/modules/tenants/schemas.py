"""Pydantic schemas for tenant lifecycle operations."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr

from tenant_db.core.constants import (
    DEFAULT_MIGRATION_CONCURRENCY,
    MAX_NAME_LENGTH,
    MAX_SLUG_LENGTH,
)
from tenant_db.modules.tenants.enums import TenantStatus, TenantTier


# ============================================================
# Provisioning
# ============================================================


class ProvisionTenantParams(BaseModel):
    """Input for provisioning a new tenant.

    The slug is checked against the slug pattern by the manager so that
    an invalid slug surfaces as InvalidSlugError, not a pydantic error.
    """

    organization_id: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1, max_length=MAX_SLUG_LENGTH)
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    tier: TenantTier = TenantTier.SHARED
    database_host_id: UUID | None = None
    owner_id: str | None = None
    metadata: dict[str, Any] | None = None


class ProvisioningDetails(BaseModel):
    """Informational progress of a provisioning job.

    Stored on the tenant row in the camelCase shape the job producers
    and dashboards read.
    """

    model_config = ConfigDict(populate_by_name=True)

    job_id: str | None = Field(None, alias="jobId")
    progress: int = 0
    current_step: str = Field("queued", alias="currentStep")
    started_at: datetime | None = Field(None, alias="startedAt")
    error: str | None = None

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ============================================================
# Tenant records
# ============================================================


class TenantRecord(BaseModel):
    """Catalog tenant row without its sealed secret."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: str
    slug: str
    name: str
    database_name: str
    database_host_id: UUID
    host: str
    port: int
    region: str | None = None
    tier: TenantTier
    status: TenantStatus
    provisioned_at: datetime | None = None
    provisioning_details: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = Field(
        None,
        validation_alias=AliasChoices("metadata_", "metadata"),
    )
    deleted_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DecryptedTenant(TenantRecord):
    """Tenant record carrying its decrypted connection string.

    This is what the distributed cache holds. The connection string is a
    SecretStr so it never appears in reprs or default dumps.
    """

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    connection_string: SecretStr

    def to_cache(self) -> dict[str, Any]:
        """Dump for caching, including the plaintext connection string."""
        data = self.model_dump(mode="json", by_alias=False)
        data["connection_string"] = self.connection_string.get_secret_value()
        return data


# ============================================================
# Health checks
# ============================================================


class HealthCheckResult(BaseModel):
    """Health of one tenant database, reported as data."""

    tenant_id: str
    slug: str
    status: Literal["healthy", "unhealthy"]
    can_connect: bool
    database_exists: bool
    extensions: list[str] | None = None
    schema_version: str | None = None
    error: str | None = None

    @property
    def healthy(self) -> bool:
        return self.status == "healthy"


# ============================================================
# Migrations
# ============================================================


class MigrationResult(BaseModel):
    """Outcome of migrating one tenant."""

    tenant_id: UUID
    slug: str
    success: bool
    duration_ms: int
    error: str | None = None


class MigrateAllOptions(BaseModel):
    """Fan-out options for migrating every active tenant."""

    parallel: bool = True
    max_concurrency: int = Field(DEFAULT_MIGRATION_CONCURRENCY, ge=1)
    continue_on_error: bool = False
