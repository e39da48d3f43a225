"""Tests for migrating tenant databases through the manager."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.engine import make_url

from tenant_db.core.constants import ALL_MIGRATIONS
from tenant_db.core.errors import MigrationError, TenantNotFoundError
from tenant_db.modules.tenants.enums import TenantStatus
from tests.factories.tenant import make_tenant


@pytest.fixture
def pooled_host(catalog):
    return catalog.add_host(
        name="postgres-pooled", port=5432, capabilities={"features": ["pgbouncer"]}
    )


class TestMigrateTenant:
    """Tests for migrate_tenant."""

    @pytest.mark.asyncio
    async def test_success(self, manager, catalog, vault, pooled_host, migrator, activity):
        """Verify migrations run on the native port and are recorded."""
        tenant = catalog.add_tenant(make_tenant(vault, pooled_host, port=6432))

        await manager.migrate_tenant(tenant.id)

        (engine,) = migrator.upgrade_engine.await_args.args
        assert engine.kind == "migration"
        assert make_url(engine.url).port == 5432
        activity.log_migration_started.assert_awaited_once_with(tenant.id, ALL_MIGRATIONS)
        activity.log_migration_executed.assert_awaited_once()
        activity.log_migration_failed.assert_not_awaited()
        (record,) = catalog.migrations
        assert record["tenant_id"] == tenant.id
        assert record["migration_name"] == ALL_MIGRATIONS
        assert record["status"] == "completed"
        assert record["error"] is None

    @pytest.mark.asyncio
    async def test_failure(self, manager, catalog, vault, pooled_host, migrator, activity):
        tenant = catalog.add_tenant(make_tenant(vault, pooled_host))
        migrator.upgrade_engine.side_effect = MigrationError("relation already exists")

        with pytest.raises(MigrationError):
            await manager.migrate_tenant(tenant.id)

        activity.log_migration_failed.assert_awaited_once_with(
            tenant.id, ALL_MIGRATIONS, "relation already exists"
        )
        activity.log_migration_executed.assert_not_awaited()
        (record,) = catalog.migrations
        assert record["status"] == "failed"
        assert record["error"] == "relation already exists"

    @pytest.mark.asyncio
    async def test_migration_log_failure_is_ignored(self, manager, catalog, vault, pooled_host):
        tenant = catalog.add_tenant(make_tenant(vault, pooled_host))
        catalog.record_migration = AsyncMock(side_effect=RuntimeError("catalog down"))

        await manager.migrate_tenant(tenant.id)

    @pytest.mark.asyncio
    async def test_unknown_tenant(self, manager):
        with pytest.raises(TenantNotFoundError):
            await manager.migrate_tenant(uuid4())


class TestMigrateAll:
    """Tests for migrate_all."""

    @pytest.mark.asyncio
    async def test_only_active_tenants(self, manager, catalog, vault, pooled_host, migrator):
        active = [catalog.add_tenant(make_tenant(vault, pooled_host)) for _ in range(2)]
        for status in (TenantStatus.SUSPENDED, TenantStatus.PROVISIONING, TenantStatus.DELETED):
            catalog.add_tenant(make_tenant(vault, pooled_host, status=status))

        results = await manager.migrate_all()

        assert {r.tenant_id for r in results} == {t.id for t in active}
        assert all(r.success for r in results)
        assert migrator.upgrade_engine.await_count == 2

    @pytest.mark.asyncio
    async def test_parallel_failure_is_reported(
        self, manager, catalog, vault, pooled_host, migrator
    ):
        good = catalog.add_tenant(make_tenant(vault, pooled_host))
        bad = catalog.add_tenant(make_tenant(vault, pooled_host))
        bad_database = bad.database_name

        async def upgrade(engine):
            if make_url(engine.url).database == bad_database:
                raise MigrationError("boom")

        migrator.upgrade_engine.side_effect = upgrade

        results = {r.tenant_id: r for r in await manager.migrate_all(parallel=True)}

        assert results[good.id].success
        assert not results[bad.id].success
        assert "boom" in results[bad.id].error

    @pytest.mark.asyncio
    async def test_sequential_stops_on_failure(
        self, manager, catalog, vault, pooled_host, migrator
    ):
        catalog.add_tenant(make_tenant(vault, pooled_host))
        migrator.upgrade_engine.side_effect = MigrationError("boom")

        with pytest.raises(MigrationError):
            await manager.migrate_all(parallel=False)

    @pytest.mark.asyncio
    async def test_no_active_tenants(self, manager):
        assert await manager.migrate_all() == []
