"""Catalog database models for tenants and the hosts they live on."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from tenant_db.core.constants import (
    DEFAULT_POSTGRES_PORT,
    NAME_COLUMN_LENGTH,
    SLUG_COLUMN_LENGTH,
)
from tenant_db.core.database.base import Base, TimestampMixin, UUIDMixin
from tenant_db.modules.tenants.enums import (
    DatabaseHostStatus,
    TenantStatus,
    TenantTier,
)


class Organization(Base):
    """External organization identity.

    Owned by the authentication system; the catalog only renames rows
    here when a tenant is soft deleted, to release the slug.
    """

    __tablename__ = "organization"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(String(NAME_COLUMN_LENGTH), nullable=False)
    slug: Mapped[str] = mapped_column(
        String(SLUG_COLUMN_LENGTH),
        nullable=False,
        unique=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, slug={self.slug})>"


class DatabaseHost(Base, UUIDMixin, TimestampMixin):
    """A PostgreSQL server that tenant databases can be placed on.

    Attributes:
        name: Unique host name (e.g., "postgres-br-primary")
        host: Hostname or IP address
        port: Native PostgreSQL port
        region: Free-form region label
        is_default: Whether new tenants land here when no host is given
        capabilities: Feature flags, e.g. {"features": ["pgbouncer"]}
    """

    __tablename__ = "database_host"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    host: Mapped[str] = mapped_column(String(255), nullable=False)
    port: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=DEFAULT_POSTGRES_PORT,
    )
    region: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    tier: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=TenantTier.SHARED.value,
    )
    max_tenants: Mapped[int] = mapped_column(Integer, nullable=False, default=70)
    current_tenants: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=DatabaseHostStatus.ACTIVE.value,
        index=True,
    )
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    capabilities: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    last_health_check: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<DatabaseHost(id={self.id}, host={self.host}:{self.port})>"


class Tenant(Base, UUIDMixin, TimestampMixin):
    """One customer organization's isolated database and its metadata.

    The connection string is never stored in plaintext: ciphertext,
    nonce and authentication tag live in three columns.
    """

    __tablename__ = "tenant"

    organization_id: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        unique=True,
        index=True,
    )
    slug: Mapped[str] = mapped_column(
        String(SLUG_COLUMN_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(NAME_COLUMN_LENGTH), nullable=False)

    # Database
    database_name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    connection_string_encrypted: Mapped[str] = mapped_column(Text, nullable=False)
    connection_string_iv: Mapped[str] = mapped_column(String(64), nullable=False)
    connection_string_tag: Mapped[str] = mapped_column(String(64), nullable=False)

    # Host (denormalized copy of the host row)
    database_host_id: Mapped[UUID] = mapped_column(
        ForeignKey("database_host.id"),
        nullable=False,
        index=True,
    )
    host: Mapped[str] = mapped_column(String(255), nullable=False)
    port: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=DEFAULT_POSTGRES_PORT,
    )
    region: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)

    tier: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=TenantTier.SHARED.value,
    )
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=TenantStatus.PROVISIONING.value,
        index=True,
    )
    provisioned_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    provisioning_details: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB,
        nullable=True,
    )
    metadata_: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata",  # Column name in database
        JSONB,
        nullable=True,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, slug={self.slug}, status={self.status})>"


class TenantMetric(Base, UUIDMixin, TimestampMixin):
    """Aggregated usage metrics for one tenant over a period."""

    __tablename__ = "tenant_metric"

    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenant.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    message_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    conversation_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    contact_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    user_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    channel_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    database_size_mb: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    period_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    period_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class MigrationLog(Base, UUIDMixin):
    """One schema migration run against one tenant database."""

    __tablename__ = "migration_log"

    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenant.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    migration_name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    execution_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
