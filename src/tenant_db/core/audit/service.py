"""Activity logger for the tenant lifecycle audit trail.

Auditing is best effort: a failed insert is reported on the process log
and swallowed, so it can never abort the operation being audited.
"""

import traceback
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tenant_db.core.audit.models import ActivityLog
from tenant_db.core.audit.schemas import (
    ActivityAction,
    ActivityCategory,
    ActivityLogParams,
    ActivitySeverity,
    MigrationMetadata,
    SystemErrorMetadata,
    TenantCreatedMetadata,
    TenantDeletedMetadata,
    TenantProvisionedMetadata,
    TenantStatusChangedMetadata,
)


log = structlog.get_logger()


class ActivityLogger:
    """Writes activity log entries to the catalog database.

    Every entry is written in its own short transaction, independent of
    any transaction the caller may have open.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the logger.

        Args:
            session_factory: Catalog session factory
        """
        self.session_factory = session_factory

    async def log(self, params: ActivityLogParams) -> None:
        """Insert one activity log entry.

        Args:
            params: Entry to record
        """
        try:
            entry = ActivityLog(
                tenant_id=params.tenant_id,
                action=params.action.value,
                category=params.category.value,
                severity=params.severity.value,
                description=params.description,
                metadata_=(
                    params.metadata.model_dump(mode="json", exclude_none=True)
                    if params.metadata
                    else None
                ),
            )
            async with self.session_factory() as session:
                session.add(entry)
                await session.commit()
        except Exception as e:
            log.error(
                "activity_log_failed",
                action=params.action.value,
                tenant_id=str(params.tenant_id) if params.tenant_id else None,
                error=str(e),
            )

    async def log_tenant_created(
        self,
        tenant_id: UUID,
        slug: str,
        organization_id: str,
        tier: str,
        attributes: dict[str, Any] | None = None,
    ) -> None:
        await self.log(
            ActivityLogParams(
                tenant_id=tenant_id,
                action=ActivityAction.TENANT_CREATED,
                category=ActivityCategory.TENANT,
                description=f"Tenant {slug} created",
                metadata=TenantCreatedMetadata(
                    slug=slug,
                    organization_id=organization_id,
                    tier=tier,
                    attributes=attributes,
                ),
            )
        )

    async def log_tenant_provisioned(
        self,
        tenant_id: UUID,
        database_name: str,
        duration_ms: int,
    ) -> None:
        await self.log(
            ActivityLogParams(
                tenant_id=tenant_id,
                action=ActivityAction.TENANT_PROVISIONED,
                category=ActivityCategory.TENANT,
                description=f"Tenant database {database_name} provisioned successfully",
                metadata=TenantProvisionedMetadata(
                    database_name=database_name,
                    duration_ms=duration_ms,
                ),
            )
        )

    async def log_tenant_status_changed(
        self,
        tenant_id: UUID,
        slug: str,
        previous_status: str,
        status: str,
    ) -> None:
        await self.log(
            ActivityLogParams(
                tenant_id=tenant_id,
                action=ActivityAction.TENANT_STATUS_CHANGED,
                category=ActivityCategory.TENANT,
                description=f"Tenant {slug} status changed from {previous_status} to {status}",
                metadata=TenantStatusChangedMetadata(
                    previous_status=previous_status,
                    status=status,
                ),
            )
        )

    async def log_tenant_deleted(
        self,
        tenant_id: UUID,
        slug: str,
        user_id: str | None = None,
    ) -> None:
        """Log a soft delete, attributed to the user when known."""
        await self.log(
            ActivityLogParams(
                tenant_id=tenant_id,
                action=ActivityAction.TENANT_DELETED,
                category=ActivityCategory.TENANT,
                severity=ActivitySeverity.WARNING,
                description=f"Tenant {slug} soft deleted",
                metadata=TenantDeletedMetadata(slug=slug, user_id=user_id),
            )
        )

    async def log_tenant_purged(
        self,
        tenant_id: UUID,
        slug: str,
        database_name: str,
    ) -> None:
        """Log a permanent deletion.

        Must be written before the tenant row is removed, otherwise the
        foreign key on activity_log.tenant_id rejects the insert.
        """
        await self.log(
            ActivityLogParams(
                tenant_id=tenant_id,
                action=ActivityAction.TENANT_PURGED,
                category=ActivityCategory.TENANT,
                severity=ActivitySeverity.WARNING,
                description=f"Tenant {slug} permanently deleted",
                metadata=TenantDeletedMetadata(
                    slug=slug,
                    permanent=True,
                    database_name=database_name,
                ),
            )
        )

    async def log_migration_started(self, tenant_id: UUID, migration_name: str) -> None:
        await self.log(
            ActivityLogParams(
                tenant_id=tenant_id,
                action=ActivityAction.MIGRATION_STARTED,
                category=ActivityCategory.MIGRATION,
                description=f"Migration {migration_name} started",
                metadata=MigrationMetadata(migration_name=migration_name),
            )
        )

    async def log_migration_executed(
        self,
        tenant_id: UUID,
        migration_name: str,
        duration_ms: int,
    ) -> None:
        await self.log(
            ActivityLogParams(
                tenant_id=tenant_id,
                action=ActivityAction.MIGRATION_EXECUTED,
                category=ActivityCategory.MIGRATION,
                description=f"Migration {migration_name} executed successfully",
                metadata=MigrationMetadata(
                    migration_name=migration_name,
                    duration_ms=duration_ms,
                ),
            )
        )

    async def log_migration_failed(
        self,
        tenant_id: UUID,
        migration_name: str,
        error: str,
    ) -> None:
        await self.log(
            ActivityLogParams(
                tenant_id=tenant_id,
                action=ActivityAction.MIGRATION_FAILED,
                category=ActivityCategory.MIGRATION,
                severity=ActivitySeverity.ERROR,
                description=f"Migration {migration_name} failed: {error}",
                metadata=MigrationMetadata(migration_name=migration_name, error=error),
            )
        )

    async def log_system_error(
        self,
        error: BaseException,
        tenant_id: UUID | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        await self._log_error(
            ActivityAction.SYSTEM_ERROR,
            ActivitySeverity.ERROR,
            error,
            tenant_id,
            context,
        )

    async def log_critical_error(
        self,
        error: BaseException,
        tenant_id: UUID | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        await self._log_error(
            ActivityAction.SYSTEM_CRITICAL_ERROR,
            ActivitySeverity.CRITICAL,
            error,
            tenant_id,
            context,
        )

    async def _log_error(
        self,
        action: ActivityAction,
        severity: ActivitySeverity,
        error: BaseException,
        tenant_id: UUID | None,
        context: dict[str, Any] | None,
    ) -> None:
        stack = "".join(traceback.format_exception(error)) if error.__traceback__ else None
        await self.log(
            ActivityLogParams(
                tenant_id=tenant_id,
                action=action,
                category=ActivityCategory.SYSTEM,
                severity=severity,
                description=str(error) or type(error).__name__,
                metadata=SystemErrorMetadata(
                    error_type=type(error).__name__,
                    error_message=str(error),
                    stack_trace=stack,
                    context={k: str(v) for k, v in (context or {}).items()},
                ),
            )
        )
