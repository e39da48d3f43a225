"""Tests for tenant connection routing and status changes."""

from uuid import uuid4

import pytest
from sqlalchemy.engine import make_url

from tenant_db.core.errors import (
    InvalidStatusTransitionError,
    TenantNotActiveError,
    TenantNotFoundError,
)
from tenant_db.modules.tenants.enums import TenantStatus
from tenant_db.modules.tenants.utils import build_connection_string
from tests.factories.tenant import make_tenant, reseal


@pytest.fixture
def add_tenant(catalog, vault):
    """Add a tenant on the default host with the given status."""

    def add(status: TenantStatus = TenantStatus.ACTIVE, **overrides):
        host = next(h for h in catalog.hosts.values() if h.is_default)
        return catalog.add_tenant(make_tenant(vault, host, status=status, **overrides))

    return add


class TestGetConnection:
    """Tests for get_connection."""

    @pytest.mark.asyncio
    async def test_returns_pooled_engine(self, manager, add_tenant, engines):
        tenant = add_tenant()

        engine = await manager.get_connection(tenant.organization_id)

        assert engine.kind == "pooled"
        assert make_url(engine.url).database == tenant.database_name

    @pytest.mark.asyncio
    async def test_engine_is_reused(self, manager, add_tenant, engines):
        tenant = add_tenant()

        first = await manager.get_connection(tenant.organization_id)
        second = await manager.get_connection(tenant.organization_id)

        assert first is second
        assert len(engines.of_kind("pooled")) == 1

    @pytest.mark.asyncio
    async def test_fills_tenant_cache(self, manager, add_tenant, fake_redis):
        """Verify a miss writes the decrypted record back to Redis."""
        tenant = add_tenant()

        await manager.get_connection(tenant.organization_id)

        assert f"tenant:{tenant.organization_id}:metadata" in fake_redis.store

    @pytest.mark.asyncio
    async def test_cache_hit_skips_catalog(self, manager, add_tenant, catalog):
        """Verify a cached record is served without the catalog."""
        tenant = add_tenant()
        await manager.get_connection(tenant.organization_id)
        catalog.tenants.clear()

        engine = await manager.get_connection(tenant.organization_id)

        assert make_url(engine.url).database == tenant.database_name

    @pytest.mark.asyncio
    async def test_works_without_redis(self, manager, add_tenant, fake_redis):
        """Verify an unreachable cache falls back to the catalog."""
        fake_redis.fail = True
        tenant = add_tenant()

        engine = await manager.get_connection(tenant.organization_id)

        assert engine.kind == "pooled"

    @pytest.mark.asyncio
    async def test_unknown_organization(self, manager):
        with pytest.raises(TenantNotFoundError):
            await manager.get_connection("no-such-org")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status",
        [TenantStatus.PROVISIONING, TenantStatus.SUSPENDED, TenantStatus.FAILED],
    )
    async def test_not_active(self, manager, add_tenant, status):
        """Verify the error carries the current status."""
        tenant = add_tenant(status=status)

        with pytest.raises(TenantNotActiveError) as exc_info:
            await manager.get_connection(tenant.organization_id)

        assert exc_info.value.status == status.value
        assert status.value in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_new_credentials_after_invalidation(
        self, manager, add_tenant, catalog, vault, tenant_cache
    ):
        """Verify a changed connection string never reuses the old pool."""
        tenant = add_tenant(password="old-pw")
        old_engine = await manager.get_connection(tenant.organization_id)

        host = await catalog.get_host(tenant.database_host_id)
        reseal(
            tenant,
            vault,
            build_connection_string(
                host.host, host.port, tenant.database_name, "postgres", "new-pw"
            ),
        )
        await tenant_cache.invalidate(tenant.organization_id)

        new_engine = await manager.get_connection(tenant.organization_id)

        assert new_engine is not old_engine
        assert make_url(new_engine.url).password == "new-pw"


class TestGetDirectConnection:
    """Tests for get_direct_connection."""

    @pytest.mark.asyncio
    async def test_bypasses_pooler_and_cache(self, manager, catalog, vault, client_cache, engines):
        host = catalog.add_host(
            name="postgres-pooled", port=5432, capabilities={"features": ["pgbouncer"]}
        )
        tenant = catalog.add_tenant(make_tenant(vault, host, port=6432))

        engine = await manager.get_direct_connection(tenant.organization_id)

        assert engine.kind == "migration"
        assert make_url(engine.url).port == 5432
        assert client_cache.size == 0

    @pytest.mark.asyncio
    async def test_returns_fresh_engine_each_time(self, manager, add_tenant):
        tenant = add_tenant(status=TenantStatus.SUSPENDED)

        first = await manager.get_direct_connection(tenant.organization_id)
        second = await manager.get_direct_connection(tenant.organization_id)

        assert first is not second


class TestUpdateTenantStatus:
    """Tests for update_tenant_status."""

    @pytest.mark.asyncio
    async def test_suspend_invalidates_cache(self, manager, add_tenant, fake_redis, activity):
        """Verify a suspension is visible to the next lookup."""
        tenant = add_tenant()
        await manager.get_connection(tenant.organization_id)

        record = await manager.update_tenant_status(tenant.id, TenantStatus.SUSPENDED)

        assert record.status == TenantStatus.SUSPENDED
        assert f"tenant:{tenant.organization_id}:metadata" not in fake_redis.store
        with pytest.raises(TenantNotActiveError):
            await manager.get_connection(tenant.organization_id)
        activity.log_tenant_status_changed.assert_awaited_once_with(
            tenant.id, tenant.slug, "active", "suspended"
        )

    @pytest.mark.asyncio
    async def test_reactivate(self, manager, add_tenant):
        tenant = add_tenant(status=TenantStatus.SUSPENDED)

        record = await manager.update_tenant_status(tenant.id, "active")

        assert record.status == TenantStatus.ACTIVE
        assert record.provisioned_at is not None

    @pytest.mark.asyncio
    async def test_deleted_cannot_be_reactivated(self, manager, add_tenant):
        tenant = add_tenant(status=TenantStatus.DELETED)

        with pytest.raises(InvalidStatusTransitionError):
            await manager.update_tenant_status(tenant.id, TenantStatus.ACTIVE)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [TenantStatus.PROVISIONING, TenantStatus.FAILED])
    async def test_unprovisioned_cannot_be_activated(self, manager, add_tenant, catalog, status):
        """Verify a tenant without a finished database is never marked active."""
        tenant = add_tenant(status=status, provisioned_at=None)

        with pytest.raises(InvalidStatusTransitionError):
            await manager.update_tenant_status(tenant.id, TenantStatus.ACTIVE)

        stored = catalog.tenants[tenant.id]
        assert stored.status == status
        assert stored.provisioned_at is None

    @pytest.mark.asyncio
    async def test_no_return_to_provisioning(self, manager, add_tenant):
        tenant = add_tenant()

        with pytest.raises(InvalidStatusTransitionError):
            await manager.update_tenant_status(tenant.id, TenantStatus.PROVISIONING)

    @pytest.mark.asyncio
    async def test_deleted_goes_through_soft_delete(self, manager, add_tenant):
        """Verify a move to deleted releases the slug."""
        tenant = add_tenant(slug="acme-corp")

        record = await manager.update_tenant_status(tenant.id, TenantStatus.DELETED)

        assert record.status == TenantStatus.DELETED
        assert record.slug.startswith("acme-corp-deleted-")

    @pytest.mark.asyncio
    async def test_unknown_tenant(self, manager):
        with pytest.raises(TenantNotFoundError):
            await manager.update_tenant_status(uuid4(), TenantStatus.SUSPENDED)
