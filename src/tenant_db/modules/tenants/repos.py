"""Repositories for catalog database operations."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tenant_db.modules.tenants.models import (
    DatabaseHost,
    MigrationLog,
    Organization,
    Tenant,
)


class TenantRepository:
    """Repository for Tenant database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, tenant: Tenant) -> Tenant:
        """Create a new tenant.

        Args:
            tenant: Tenant instance to create

        Returns:
            The created tenant with ID populated
        """
        self.session.add(tenant)
        await self.session.flush()
        await self.session.refresh(tenant)
        return tenant

    async def get_by_id(self, tenant_id: UUID) -> Tenant | None:
        result = await self.session.execute(select(Tenant).where(Tenant.id == tenant_id))
        return result.scalar_one_or_none()

    async def get_by_slug(self, slug: str) -> Tenant | None:
        result = await self.session.execute(select(Tenant).where(Tenant.slug == slug))
        return result.scalar_one_or_none()

    async def get_by_organization(self, organization_id: str) -> Tenant | None:
        result = await self.session.execute(
            select(Tenant).where(Tenant.organization_id == organization_id)
        )
        return result.scalar_one_or_none()

    async def list_all(self, status: str | None = None) -> list[Tenant]:
        """List tenants, optionally filtered by status.

        Args:
            status: Only return tenants in this status

        Returns:
            Tenants ordered by creation time
        """
        stmt = select(Tenant).order_by(Tenant.created_at)
        if status:
            stmt = stmt.where(Tenant.status == status)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_latest_deleted(self, slug_prefix: str) -> Tenant | None:
        """Most recently soft-deleted tenant whose slug starts with the prefix."""
        result = await self.session.execute(
            select(Tenant)
            .where(
                Tenant.status == "deleted",
                Tenant.slug.startswith(slug_prefix, autoescape=True),
            )
            .order_by(Tenant.deleted_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def update(self, tenant_id: UUID, **values: Any) -> Tenant | None:
        """Update columns of one tenant.

        Args:
            tenant_id: The tenant's UUID
            **values: Column values to set

        Returns:
            The updated tenant, or None if it does not exist
        """
        await self.session.execute(
            update(Tenant).where(Tenant.id == tenant_id).values(**values)
        )
        await self.session.flush()
        return await self.refresh(tenant_id)

    async def refresh(self, tenant_id: UUID) -> Tenant | None:
        result = await self.session.execute(
            select(Tenant)
            .where(Tenant.id == tenant_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def delete(self, tenant_id: UUID) -> bool:
        """Delete a tenant row.

        Dependent activity log, metric and migration log rows are removed
        by the database through ON DELETE CASCADE.

        Returns:
            True if a row was deleted
        """
        result = await self.session.execute(delete(Tenant).where(Tenant.id == tenant_id))
        return result.rowcount > 0


class OrganizationRepository:
    """Repository for the external organization table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def rename(self, organization_id: str, slug: str, name: str) -> bool:
        """Rename an organization's slug and name.

        Returns:
            True if the organization exists
        """
        result = await self.session.execute(
            update(Organization)
            .where(Organization.id == organization_id)
            .values(slug=slug, name=name)
        )
        return result.rowcount > 0


class DatabaseHostRepository:
    """Repository for DatabaseHost database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, host_id: UUID) -> DatabaseHost | None:
        result = await self.session.execute(
            select(DatabaseHost).where(DatabaseHost.id == host_id)
        )
        return result.scalar_one_or_none()

    async def get_default(self) -> DatabaseHost | None:
        result = await self.session.execute(
            select(DatabaseHost).where(DatabaseHost.is_default.is_(True)).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str) -> DatabaseHost | None:
        result = await self.session.execute(
            select(DatabaseHost).where(DatabaseHost.name == name)
        )
        return result.scalar_one_or_none()

    async def create(self, host: DatabaseHost) -> DatabaseHost:
        self.session.add(host)
        await self.session.flush()
        await self.session.refresh(host)
        return host


class MigrationLogRepository:
    """Repository for MigrationLog rows."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(
        self,
        tenant_id: UUID,
        migration_name: str,
        status: str,
        started_at: datetime,
        completed_at: datetime | None = None,
        execution_time_ms: int | None = None,
        error: str | None = None,
    ) -> MigrationLog:
        entry = MigrationLog(
            tenant_id=tenant_id,
            migration_name=migration_name,
            status=status,
            started_at=started_at,
            completed_at=completed_at,
            execution_time_ms=execution_time_ms,
            error=error,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry
