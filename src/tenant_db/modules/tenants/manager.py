"""Tenant lifecycle orchestration.

The manager composes the catalog, credential vault, both cache tiers,
the activity logger, the provisioning queue, the schema migrator and the
time-series configurator. It never exits the process: every failure is
raised as a TenantDBError subclass (or the originating error) for the
caller to handle.
"""

import asyncio
import time
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

import redis.asyncio as redis
import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from tenant_db.config import Settings
from tenant_db.core.audit import ActivityLogger
from tenant_db.core.cache import (
    ClientCache,
    TenantCache,
    close_redis_pool,
    create_redis_client,
)
from tenant_db.core.constants import (
    ALL_MIGRATIONS,
    DEFAULT_MIGRATION_CONCURRENCY,
    MAINTENANCE_DATABASE,
    REQUIRED_EXTENSIONS,
)
from tenant_db.core.crypto import CredentialVault, EncryptedSecret
from tenant_db.core.database import (
    EngineFactory,
    create_catalog_engine,
    create_session_factory,
)
from tenant_db.core.errors import (
    DatabaseHostNotFoundError,
    DecryptionError,
    DuplicateSlugError,
    InvalidDatabaseNameError,
    InvalidSlugError,
    InvalidStatusTransitionError,
    TenantNotActiveError,
    TenantNotFoundError,
)
from tenant_db.core.jobs.registry import ProvisioningQueue, close_arq_pool, init_arq_pool
from tenant_db.core.jobs.schemas import ProvisionTenantJob
from tenant_db.modules.tenants import health
from tenant_db.modules.tenants.catalog import TenantCatalog
from tenant_db.modules.tenants.enums import MigrationStatus, TenantStatus
from tenant_db.modules.tenants.lifecycle import (
    can_purge,
    ensure_status_change,
    ensure_transition,
)
from tenant_db.modules.tenants.migrator import SchemaMigrator, migrate_tenants
from tenant_db.modules.tenants.models import DatabaseHost, Tenant
from tenant_db.modules.tenants.schemas import (
    DecryptedTenant,
    HealthCheckResult,
    MigrateAllOptions,
    MigrationResult,
    ProvisioningDetails,
    ProvisionTenantParams,
    TenantRecord,
)
from tenant_db.modules.tenants.seed import seed_tenant_defaults
from tenant_db.modules.tenants.timescale import TimeSeriesConfigurator
from tenant_db.modules.tenants.utils import (
    build_connection_string,
    generate_database_name,
    has_pooler,
    is_valid_database_name,
    is_valid_slug,
    quote_identifier,
    with_port,
)


log = structlog.get_logger()

# Provisioning can only be completed from these states.
COMPLETABLE_STATUSES = frozenset({TenantStatus.PROVISIONING, TenantStatus.FAILED})


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class TenantLifecycleManager:
    """Creates, routes to, migrates, monitors and destroys tenant databases.

    Example:
        manager = await TenantLifecycleManager.create(get_settings())
        try:
            engine = await manager.get_connection(organization_id)
            async with engine.connect() as conn:
                ...
        finally:
            await manager.close()
    """

    def __init__(
        self,
        settings: Settings,
        catalog: TenantCatalog,
        vault: CredentialVault,
        tenant_cache: TenantCache,
        client_cache: ClientCache,
        activity: ActivityLogger,
        queue: ProvisioningQueue,
        migrator: SchemaMigrator,
        timescale: TimeSeriesConfigurator | None = None,
        engines: EngineFactory | None = None,
        catalog_engine: AsyncEngine | None = None,
        redis_client: redis.Redis | None = None,  # type: ignore[type-arg]
        owns_connections: bool = False,
    ) -> None:
        self.settings = settings
        self.catalog = catalog
        self.vault = vault
        self.tenant_cache = tenant_cache
        self.client_cache = client_cache
        self.activity = activity
        self.queue = queue
        self.migrator = migrator
        self.timescale = timescale or TimeSeriesConfigurator()
        self.engines = engines or EngineFactory()
        self.catalog_engine = catalog_engine
        self.redis = redis_client
        self.owns_connections = owns_connections

    @classmethod
    async def create(cls, settings: Settings) -> "TenantLifecycleManager":
        """Build a manager with real connections from settings.

        Connections created here are released by close().
        """
        catalog_engine = create_catalog_engine(settings)
        session_factory = create_session_factory(catalog_engine)
        redis_url = str(settings.redis_url)
        redis_client = create_redis_client(redis_url)
        await init_arq_pool(redis_url)
        engines = EngineFactory()

        return cls(
            settings=settings,
            catalog=TenantCatalog(session_factory),
            vault=CredentialVault(settings.encryption_key),
            tenant_cache=TenantCache(redis_client, settings.tenant_cache_ttl_seconds),
            client_cache=ClientCache(
                engines.pooled,
                max_entries=settings.client_cache_max_entries,
                ttl_seconds=settings.client_cache_ttl_seconds,
            ),
            activity=ActivityLogger(session_factory),
            queue=ProvisioningQueue(settings.queue_tenant_provisioning),
            migrator=SchemaMigrator(settings.tenant_migrations_path),
            engines=engines,
            catalog_engine=catalog_engine,
            redis_client=redis_client,
            owns_connections=True,
        )

    async def close(self) -> None:
        """Dispose cached tenant engines and, if owned, shared connections."""
        await self.client_cache.close()
        if not self.owns_connections:
            return
        await close_arq_pool()
        if self.redis is not None:
            await self.redis.aclose()
        await close_redis_pool()
        if self.catalog_engine is not None:
            await self.catalog_engine.dispose()

    # ============================================================
    # Lookups
    # ============================================================

    def _decrypt(self, tenant: Tenant) -> DecryptedTenant:
        plaintext = self.vault.decrypt(
            EncryptedSecret(
                ciphertext=tenant.connection_string_encrypted,
                iv=tenant.connection_string_iv,
                tag=tenant.connection_string_tag,
            )
        )
        record = TenantRecord.model_validate(tenant)
        return DecryptedTenant(**record.model_dump(), connection_string=plaintext)

    async def get_tenant_by_organization(self, organization_id: str) -> DecryptedTenant | None:
        tenant = await self.catalog.get_tenant_by_organization(organization_id)
        return self._decrypt(tenant) if tenant else None

    async def get_tenant_by_slug(self, slug: str) -> DecryptedTenant | None:
        tenant = await self.catalog.get_tenant_by_slug(slug)
        return self._decrypt(tenant) if tenant else None

    async def get_tenant_by_id(self, tenant_id: UUID) -> DecryptedTenant | None:
        tenant = await self.catalog.get_tenant_by_id(tenant_id)
        return self._decrypt(tenant) if tenant else None

    async def find_tenant(self, identifier: str) -> TenantRecord | None:
        """Look a tenant up by slug or id without decrypting its secret.

        A soft-deleted tenant is also found by the slug it had before
        deletion; the most recently deleted match wins.
        """
        tenant = await self.catalog.get_tenant_by_slug(identifier)
        if tenant is None:
            try:
                tenant_id = UUID(identifier)
            except ValueError:
                tenant_id = None
            if tenant_id is not None:
                tenant = await self.catalog.get_tenant_by_id(tenant_id)
        if tenant is None:
            tenant = await self.catalog.get_latest_deleted_by_slug(identifier)
        return TenantRecord.model_validate(tenant) if tenant else None

    async def list_tenants(self, status: TenantStatus | None = None) -> list[TenantRecord]:
        """List catalog tenants without decrypting their secrets."""
        tenants = await self.catalog.list_tenants(status)
        return [TenantRecord.model_validate(t) for t in tenants]

    async def _require_tenant(self, organization_id: str) -> Tenant:
        tenant = await self.catalog.get_tenant_by_organization(organization_id)
        if tenant is None:
            raise TenantNotFoundError(organization_id)
        return tenant

    async def _require_tenant_by_id(self, tenant_id: UUID) -> Tenant:
        tenant = await self.catalog.get_tenant_by_id(tenant_id)
        if tenant is None:
            raise TenantNotFoundError(str(tenant_id))
        return tenant

    async def _resolve_host(self, host_id: UUID | None) -> DatabaseHost:
        if host_id is not None:
            host = await self.catalog.get_host(host_id)
            if host is None:
                raise DatabaseHostNotFoundError(str(host_id))
            return host
        host = await self.catalog.get_default_host()
        if host is None:
            raise DatabaseHostNotFoundError()
        return host

    def _admin_connection_string(self, host: str, port: int) -> str:
        return build_connection_string(
            host=host,
            port=port,
            database=MAINTENANCE_DATABASE,
            user=self.settings.postgres_user,
            password=self.settings.postgres_password,
        )

    async def _native_port(self, tenant: Tenant) -> int:
        """Port of the tenant's server itself, bypassing any pooling proxy."""
        host = await self.catalog.get_host(tenant.database_host_id)
        return host.port if host else tenant.port

    # ============================================================
    # Provisioning
    # ============================================================

    async def provision_async(self, params: ProvisionTenantParams) -> TenantRecord:
        """Register a tenant and enqueue its physical provisioning.

        Returns as soon as the job is enqueued. The tenant stays in
        ``provisioning`` until a worker runs complete_tenant_provisioning().

        Args:
            params: Provisioning parameters

        Returns:
            The inserted tenant record

        Raises:
            InvalidSlugError: If the slug is malformed
            InvalidDatabaseNameError: If the organization id yields an unusable database name
            DuplicateSlugError: If a live tenant already holds the slug
            DatabaseHostNotFoundError: If the requested or default host is missing
        """
        if not is_valid_slug(params.slug):
            raise InvalidSlugError(params.slug)

        database_name = generate_database_name(params.organization_id)
        if not is_valid_database_name(database_name):
            raise InvalidDatabaseNameError(database_name)

        existing = await self.catalog.get_tenant_by_slug(params.slug)
        if existing is not None and existing.status != TenantStatus.DELETED:
            raise DuplicateSlugError(params.slug, status=existing.status)

        host = await self._resolve_host(params.database_host_id)
        port = self.settings.pooler_port if has_pooler(host.capabilities) else host.port

        sealed = self.vault.encrypt(
            build_connection_string(
                host=host.host,
                port=port,
                database=database_name,
                user=self.settings.postgres_user,
                password=self.settings.postgres_password,
            )
        )

        tenant = await self.catalog.create_tenant(
            Tenant(
                organization_id=params.organization_id,
                slug=params.slug,
                name=params.name,
                database_name=database_name,
                connection_string_encrypted=sealed.ciphertext,
                connection_string_iv=sealed.iv,
                connection_string_tag=sealed.tag,
                database_host_id=host.id,
                host=host.host,
                port=port,
                region=host.region,
                tier=params.tier.value,
                status=TenantStatus.PROVISIONING.value,
                metadata_=params.metadata,
            )
        )
        log.info(
            "tenant_created",
            tenant_id=str(tenant.id),
            slug=tenant.slug,
            organization_id=tenant.organization_id,
            database_name=database_name,
            host=host.host,
        )
        await self.activity.log_tenant_created(
            tenant.id,
            tenant.slug,
            tenant.organization_id,
            params.tier.value,
            params.metadata,
        )

        try:
            job_id = await self.queue.add(
                ProvisionTenantJob(
                    organization_id=params.organization_id,
                    organization_name=params.name,
                    organization_slug=params.slug,
                    owner_id=params.owner_id or "",
                )
            )
        except Exception as e:
            await self._mark_failed(tenant, e, step="enqueue")
            raise

        details = ProvisioningDetails(
            job_id=job_id,
            progress=0,
            current_step="queued",
            started_at=datetime.now(UTC),
        )
        tenant = await self.catalog.update_tenant(
            tenant.id,
            provisioning_details=details.to_json(),
        )
        return TenantRecord.model_validate(tenant)

    async def complete_tenant_provisioning(self, organization_id: str) -> TenantRecord:
        """Create, migrate, partition and seed a tenant database, then activate it.

        Idempotent: an already active tenant is returned unchanged, and
        every physical step tolerates having run before, so a ``failed``
        tenant can simply be retried.

        Args:
            organization_id: Owning organization

        Returns:
            The active tenant record

        Raises:
            TenantNotFoundError: If no tenant exists for the organization
            InvalidStatusTransitionError: If the tenant is suspended or deleted
        """
        started = time.monotonic()
        tenant = await self._require_tenant(organization_id)

        if tenant.status == TenantStatus.ACTIVE:
            log.info("tenant_already_active", tenant_id=str(tenant.id), slug=tenant.slug)
            return TenantRecord.model_validate(tenant)

        if tenant.status not in COMPLETABLE_STATUSES:
            raise InvalidStatusTransitionError(tenant.status, TenantStatus.ACTIVE.value)

        log.info(
            "tenant_provisioning_started",
            tenant_id=str(tenant.id),
            slug=tenant.slug,
            database_name=tenant.database_name,
        )

        try:
            host = await self.catalog.get_host(tenant.database_host_id)
            if host is None:
                raise DatabaseHostNotFoundError(str(tenant.database_host_id))

            await self._create_database(host, tenant.database_name)

            connection_string = self._decrypt(tenant).connection_string.get_secret_value()
            engine = self.engines.migration(with_port(connection_string, host.port))
            try:
                async with engine.begin() as conn:
                    for extension in REQUIRED_EXTENSIONS:
                        await conn.execute(text(f"CREATE EXTENSION IF NOT EXISTS {extension}"))

                async with engine.begin() as conn:
                    await self.migrator.upgrade(conn)

                await self.timescale.setup(engine)

                async with engine.begin() as conn:
                    await seed_tenant_defaults(conn, tenant.organization_id)
            finally:
                await engine.dispose()

            tenant = await self.catalog.update_tenant(
                tenant.id,
                status=TenantStatus.ACTIVE.value,
                provisioned_at=datetime.now(UTC),
            )
        except Exception as e:
            await self._mark_failed(tenant, e, step="provisioning")
            raise

        await self.tenant_cache.invalidate(organization_id)

        duration_ms = _elapsed_ms(started)
        await self.activity.log_tenant_provisioned(tenant.id, tenant.database_name, duration_ms)
        log.info(
            "tenant_provisioned",
            tenant_id=str(tenant.id),
            slug=tenant.slug,
            duration_ms=duration_ms,
        )
        return TenantRecord.model_validate(tenant)

    async def _create_database(self, host: DatabaseHost, database_name: str) -> None:
        """Create the physical database unless it already exists."""
        engine = self.engines.admin(self._admin_connection_string(host.host, host.port))
        try:
            async with engine.connect() as conn:
                exists = await conn.scalar(
                    text("SELECT 1 FROM pg_database WHERE datname = :name"),
                    {"name": database_name},
                )
                if exists:
                    log.info("tenant_database_exists", database_name=database_name)
                    return
                await conn.execute(text(f"CREATE DATABASE {quote_identifier(database_name)}"))
                log.info("tenant_database_created", database_name=database_name, host=host.host)
        finally:
            await engine.dispose()

    async def _mark_failed(self, tenant: Tenant, error: BaseException, step: str) -> None:
        """Flip a tenant to failed and write a critical audit entry.

        Never raises, so the original error reaches the caller.
        """
        log.error(
            "tenant_provisioning_failed",
            tenant_id=str(tenant.id),
            slug=tenant.slug,
            step=step,
            error=str(error),
        )
        try:
            await self.catalog.update_tenant(tenant.id, status=TenantStatus.FAILED.value)
        except Exception as e:
            log.error("tenant_mark_failed_failed", tenant_id=str(tenant.id), error=str(e))
        await self.tenant_cache.invalidate(tenant.organization_id)
        await self.activity.log_critical_error(
            error,
            tenant_id=tenant.id,
            context={
                "slug": tenant.slug,
                "organization_id": tenant.organization_id,
                "step": step,
            },
        )

    async def update_provisioning_details(
        self,
        organization_id: str,
        current_step: str,
        progress: int,
        error: str | None = None,
    ) -> None:
        """Record informational job progress on the tenant row."""
        tenant = await self._require_tenant(organization_id)
        details = dict(tenant.provisioning_details or {})
        details.update({"currentStep": current_step, "progress": progress})
        if error is not None:
            details["error"] = error
        else:
            details.pop("error", None)
        await self.catalog.update_tenant(tenant.id, provisioning_details=details)

    # ============================================================
    # Routing
    # ============================================================

    async def get_connection(self, organization_id: str) -> AsyncEngine:
        """Resolve the pooled engine for an active tenant.

        The decrypted record is read cache-first; the catalog is queried
        and the secret decrypted only on a miss. Engines are shared per
        connection string.

        Raises:
            TenantNotFoundError: If no tenant exists for the organization
            TenantNotActiveError: If the tenant is not active
        """
        tenant = await self.tenant_cache.get(organization_id)
        if tenant is None:
            row = await self._require_tenant(organization_id)
            tenant = self._decrypt(row)
            await self.tenant_cache.set(tenant)

        if tenant.status != TenantStatus.ACTIVE:
            raise TenantNotActiveError(tenant.slug, tenant.status.value)

        return await self.client_cache.get_or_create(
            tenant.connection_string.get_secret_value()
        )

    async def get_direct_connection(self, organization_id: str) -> AsyncEngine:
        """Create an unpooled, uncached engine on the server's native port.

        Intended for one-off administrative work. The caller owns the
        engine and must dispose it.

        Raises:
            TenantNotFoundError: If no tenant exists for the organization
        """
        tenant = await self._require_tenant(organization_id)
        connection_string = self._decrypt(tenant).connection_string.get_secret_value()
        port = await self._native_port(tenant)
        return self.engines.migration(with_port(connection_string, port))

    # ============================================================
    # Migrations
    # ============================================================

    async def migrate_tenant(self, tenant_id: UUID) -> None:
        """Apply pending migrations to one tenant database.

        Raises:
            TenantNotFoundError: If the tenant does not exist
            MigrationError: If the migration fails
        """
        tenant = await self._require_tenant_by_id(tenant_id)
        await self.activity.log_migration_started(tenant.id, ALL_MIGRATIONS)
        log.info("tenant_migration_started", tenant_id=str(tenant.id), slug=tenant.slug)

        started_at = datetime.now(UTC)
        started = time.monotonic()
        try:
            connection_string = self._decrypt(tenant).connection_string.get_secret_value()
            port = await self._native_port(tenant)
            await self.migrator.upgrade_engine(
                self.engines.migration(with_port(connection_string, port))
            )
        except Exception as e:
            duration_ms = _elapsed_ms(started)
            log.error(
                "tenant_migration_failed",
                tenant_id=str(tenant.id),
                slug=tenant.slug,
                error=str(e),
            )
            await self.activity.log_migration_failed(tenant.id, ALL_MIGRATIONS, str(e))
            await self._record_migration(
                tenant, MigrationStatus.FAILED, started_at, duration_ms, str(e)
            )
            raise

        duration_ms = _elapsed_ms(started)
        await self.activity.log_migration_executed(tenant.id, ALL_MIGRATIONS, duration_ms)
        await self._record_migration(tenant, MigrationStatus.COMPLETED, started_at, duration_ms)
        log.info(
            "tenant_migration_executed",
            tenant_id=str(tenant.id),
            slug=tenant.slug,
            duration_ms=duration_ms,
        )

    async def _record_migration(
        self,
        tenant: Tenant,
        status: MigrationStatus,
        started_at: datetime,
        duration_ms: int,
        error: str | None = None,
    ) -> None:
        try:
            await self.catalog.record_migration(
                tenant_id=tenant.id,
                migration_name=ALL_MIGRATIONS,
                status=status.value,
                started_at=started_at,
                execution_time_ms=duration_ms,
                error=error,
            )
        except Exception as e:
            log.warning("migration_log_failed", tenant_id=str(tenant.id), error=str(e))

    async def migrate_all(
        self,
        parallel: bool = True,
        max_concurrency: int = DEFAULT_MIGRATION_CONCURRENCY,
        continue_on_error: bool = False,
    ) -> list[MigrationResult]:
        """Migrate every active tenant.

        Args:
            parallel: Migrate in concurrent chunks instead of one by one
            max_concurrency: Chunk size in parallel mode
            continue_on_error: In sequential mode, keep going after a failure

        Returns:
            One result per attempted tenant

        Raises:
            Exception: The first failure, in sequential mode without continue_on_error
        """
        options = MigrateAllOptions(
            parallel=parallel,
            max_concurrency=max_concurrency,
            continue_on_error=continue_on_error,
        )
        tenants = await self.catalog.list_tenants(TenantStatus.ACTIVE)
        log.info(
            "migrate_all_started",
            tenants=len(tenants),
            parallel=options.parallel,
            max_concurrency=options.max_concurrency,
            continue_on_error=options.continue_on_error,
        )

        async def migrate_one(tenant: Tenant) -> None:
            await self.migrate_tenant(tenant.id)

        results = await migrate_tenants(tenants, migrate_one, options)
        log.info(
            "migrate_all_complete",
            succeeded=sum(1 for r in results if r.success),
            failed=sum(1 for r in results if not r.success),
        )
        return results

    # ============================================================
    # Status changes and deletion
    # ============================================================

    async def update_tenant_status(
        self,
        tenant_id: UUID,
        status: TenantStatus | str,
    ) -> TenantRecord:
        """Move a tenant along the lifecycle graph.

        A move to ``deleted`` goes through delete_tenant() so the slug is
        released. The cache entry is invalidated before this returns.

        Raises:
            TenantNotFoundError: If the tenant does not exist
            InvalidStatusTransitionError: If the move is not allowed
        """
        target = TenantStatus(status)
        tenant = await self._require_tenant_by_id(tenant_id)
        ensure_status_change(tenant.status, target)

        if target == TenantStatus.DELETED:
            return await self.delete_tenant(tenant.organization_id)

        previous = tenant.status
        values: dict[str, Any] = {"status": target.value}
        if target == TenantStatus.ACTIVE and tenant.provisioned_at is None:
            values["provisioned_at"] = datetime.now(UTC)

        try:
            tenant = await self.catalog.update_tenant(tenant.id, **values)
        finally:
            await self.tenant_cache.invalidate(tenant.organization_id)

        await self.activity.log_tenant_status_changed(
            tenant.id, tenant.slug, previous, target.value
        )
        log.info(
            "tenant_status_changed",
            tenant_id=str(tenant.id),
            organization_id=tenant.organization_id,
            previous_status=previous,
            status=target.value,
        )
        return TenantRecord.model_validate(tenant)

    async def delete_tenant(
        self,
        organization_id: str,
        user_id: str | None = None,
    ) -> TenantRecord:
        """Soft delete a tenant.

        The organization and tenant slugs and names are renamed away so the
        slug can be reused. The physical database is left in place.

        Raises:
            TenantNotFoundError: If no tenant exists for the organization
            InvalidStatusTransitionError: If the tenant cannot be deleted
        """
        tenant = await self._require_tenant(organization_id)
        ensure_transition(tenant.status, TenantStatus.DELETED)

        await self.tenant_cache.invalidate(organization_id)
        original_slug = tenant.slug
        deleted = await self.catalog.soft_delete_tenant(tenant)

        await self.activity.log_tenant_deleted(deleted.id, original_slug, user_id)
        log.warning(
            "tenant_soft_deleted",
            tenant_id=str(deleted.id),
            slug=original_slug,
            renamed_to=deleted.slug,
            user_id=user_id,
        )
        return TenantRecord.model_validate(deleted)

    async def purge_tenant(self, organization_id: str) -> None:
        """Permanently destroy a soft-deleted tenant.

        Terminates open connections, drops the physical database and
        deletes the catalog row (dependent rows cascade). The audit entry
        is written first, while the row it references still exists.

        Raises:
            TenantNotFoundError: If no tenant exists for the organization
            InvalidStatusTransitionError: If the tenant is not deleted
        """
        tenant = await self._require_tenant(organization_id)
        if not can_purge(tenant.status):
            raise InvalidStatusTransitionError(tenant.status, "purged")

        await self.tenant_cache.invalidate(organization_id)
        await self.activity.log_tenant_purged(tenant.id, tenant.slug, tenant.database_name)
        log.warning(
            "tenant_purge_started",
            tenant_id=str(tenant.id),
            database_name=tenant.database_name,
        )

        try:
            connection_string = self._decrypt(tenant).connection_string.get_secret_value()
        except DecryptionError:
            log.warning("tenant_purge_secret_unreadable", tenant_id=str(tenant.id))
        else:
            await self.client_cache.discard(connection_string)

        host = await self.catalog.get_host(tenant.database_host_id)
        host_name, port = (host.host, host.port) if host else (tenant.host, tenant.port)
        engine = self.engines.admin(self._admin_connection_string(host_name, port))
        try:
            async with engine.connect() as conn:
                await conn.execute(
                    text(
                        "SELECT pg_terminate_backend(pid) FROM pg_stat_activity "
                        "WHERE datname = :name AND pid <> pg_backend_pid()"
                    ),
                    {"name": tenant.database_name},
                )
                await conn.execute(
                    text(f"DROP DATABASE IF EXISTS {quote_identifier(tenant.database_name)}")
                )
        finally:
            await engine.dispose()

        await self.catalog.delete_tenant(tenant.id)
        log.warning(
            "tenant_purged",
            tenant_id=str(tenant.id),
            database_name=tenant.database_name,
        )

    # ============================================================
    # Health
    # ============================================================

    async def check_tenant_health(self, tenant_id: UUID) -> HealthCheckResult:
        """Check that a tenant database accepts connections.

        Never raises: every failure is reported in the result.
        """
        try:
            tenant = await self.catalog.get_tenant_by_id(tenant_id)
        except Exception as e:
            return HealthCheckResult(
                tenant_id=str(tenant_id),
                slug="unknown",
                status="unhealthy",
                can_connect=False,
                database_exists=False,
                error=str(e),
            )

        if tenant is None:
            return HealthCheckResult(
                tenant_id=str(tenant_id),
                slug="unknown",
                status="unhealthy",
                can_connect=False,
                database_exists=False,
                error="Tenant not found",
            )

        try:
            connection_string = self._decrypt(tenant).connection_string.get_secret_value()
            engine = self.engines.migration(connection_string)
            try:
                await health.ping(engine)
                extensions = await health.list_extensions(engine)
            finally:
                await engine.dispose()
        except Exception as e:
            log.warning("tenant_health_check_failed", tenant_id=str(tenant.id), error=str(e))
            return HealthCheckResult(
                tenant_id=str(tenant.id),
                slug=tenant.slug,
                status="unhealthy",
                can_connect=False,
                database_exists=False,
                error=str(e),
            )

        schema_version = (tenant.metadata_ or {}).get("schemaVersion")
        return HealthCheckResult(
            tenant_id=str(tenant.id),
            slug=tenant.slug,
            status="healthy",
            can_connect=True,
            database_exists=True,
            extensions=extensions,
            schema_version=schema_version if isinstance(schema_version, str) else None,
        )

    async def check_all_tenants_health(self) -> list[HealthCheckResult]:
        """Check every catalog tenant concurrently, whatever its status."""
        tenants = await self.catalog.list_tenants()
        return list(
            await asyncio.gather(*(self.check_tenant_health(t.id) for t in tenants))
        )
