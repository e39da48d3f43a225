"""Catalog access for tenant, host and migration records.

The catalog is the single source of truth for lifecycle state. Every
method runs in its own short transaction so callers never hold catalog
connections across tenant database work.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tenant_db.core.errors import DuplicateSlugError, TenantNotFoundError
from tenant_db.modules.tenants.enums import TenantStatus
from tenant_db.modules.tenants.models import DatabaseHost, Tenant
from tenant_db.modules.tenants.repos import (
    DatabaseHostRepository,
    MigrationLogRepository,
    OrganizationRepository,
    TenantRepository,
)
from tenant_db.modules.tenants.utils import deleted_slug_prefix, soft_deleted_names


log = structlog.get_logger()


class TenantCatalog:
    """Catalog operations used by the lifecycle manager."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    # ============================================================
    # Lookups
    # ============================================================

    async def get_tenant_by_organization(self, organization_id: str) -> Tenant | None:
        async with self.session_factory() as session:
            return await TenantRepository(session).get_by_organization(organization_id)

    async def get_tenant_by_slug(self, slug: str) -> Tenant | None:
        async with self.session_factory() as session:
            return await TenantRepository(session).get_by_slug(slug)

    async def get_tenant_by_id(self, tenant_id: UUID) -> Tenant | None:
        async with self.session_factory() as session:
            return await TenantRepository(session).get_by_id(tenant_id)

    async def list_tenants(self, status: TenantStatus | None = None) -> list[Tenant]:
        async with self.session_factory() as session:
            return await TenantRepository(session).list_all(
                status.value if status else None
            )

    async def get_latest_deleted_by_slug(self, slug: str) -> Tenant | None:
        """Find a soft-deleted tenant by the slug it had before deletion."""
        async with self.session_factory() as session:
            return await TenantRepository(session).get_latest_deleted(deleted_slug_prefix(slug))

    async def get_host(self, host_id: UUID) -> DatabaseHost | None:
        async with self.session_factory() as session:
            return await DatabaseHostRepository(session).get_by_id(host_id)

    async def get_default_host(self) -> DatabaseHost | None:
        async with self.session_factory() as session:
            return await DatabaseHostRepository(session).get_default()

    # ============================================================
    # Mutations
    # ============================================================

    async def create_tenant(self, tenant: Tenant) -> Tenant:
        """Insert a tenant row.

        The unique constraint on slug is the final arbiter for concurrent
        creations with the same slug.

        Raises:
            DuplicateSlugError: If the slug (or organization) is already taken
        """
        async with self.session_factory() as session:
            try:
                created = await TenantRepository(session).create(tenant)
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                log.info("tenant_insert_conflict", slug=tenant.slug, error=str(e.orig))
                raise DuplicateSlugError(tenant.slug) from e
            return created

    async def update_tenant(self, tenant_id: UUID, **values: Any) -> Tenant:
        """Update columns of a tenant.

        Raises:
            TenantNotFoundError: If the tenant does not exist
        """
        async with self.session_factory() as session:
            tenant = await TenantRepository(session).update(tenant_id, **values)
            if tenant is None:
                await session.rollback()
                raise TenantNotFoundError(str(tenant_id))
            await session.commit()
            return tenant

    async def soft_delete_tenant(
        self,
        tenant: Tenant,
        deleted_at: datetime | None = None,
    ) -> Tenant:
        """Mark a tenant deleted and release its slug.

        The organization and the tenant are renamed with a
        ``-deleted-{epoch_ms}`` suffix and the status is flipped in one
        transaction, so a failure leaves both untouched.

        Args:
            tenant: Tenant to delete
            deleted_at: Deletion time (defaults to now)

        Returns:
            The updated tenant
        """
        deleted_at = deleted_at or datetime.now(UTC)
        slug, name = soft_deleted_names(tenant.slug, tenant.name, deleted_at)

        async with self.session_factory() as session:
            await OrganizationRepository(session).rename(tenant.organization_id, slug, name)
            updated = await TenantRepository(session).update(
                tenant.id,
                slug=slug,
                name=name,
                status=TenantStatus.DELETED.value,
                deleted_at=deleted_at,
            )
            if updated is None:
                await session.rollback()
                raise TenantNotFoundError(str(tenant.id))
            await session.commit()
            return updated

    async def delete_tenant(self, tenant_id: UUID) -> bool:
        """Remove a tenant row and, by cascade, its dependent rows."""
        async with self.session_factory() as session:
            deleted = await TenantRepository(session).delete(tenant_id)
            await session.commit()
            return deleted

    async def record_migration(
        self,
        tenant_id: UUID,
        migration_name: str,
        status: str,
        started_at: datetime,
        execution_time_ms: int | None = None,
        error: str | None = None,
    ) -> None:
        """Write a migration log row."""
        async with self.session_factory() as session:
            await MigrationLogRepository(session).create(
                tenant_id=tenant_id,
                migration_name=migration_name,
                status=status,
                started_at=started_at,
                completed_at=datetime.now(UTC),
                execution_time_ms=execution_time_ms,
                error=error,
            )
            await session.commit()
