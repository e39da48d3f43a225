"""Tests for soft deletion and purging."""

import pytest
from sqlalchemy.engine import make_url

from tenant_db.core.errors import (
    InvalidStatusTransitionError,
    TenantNotActiveError,
    TenantNotFoundError,
)
from tenant_db.modules.tenants.enums import TenantStatus
from tests.factories.tenant import ProvisionTenantParamsFactory, make_tenant


@pytest.fixture
def tenant(catalog, vault):
    host = next(h for h in catalog.hosts.values() if h.is_default)
    return catalog.add_tenant(make_tenant(vault, host, slug="acme-corp"))


class TestDeleteTenant:
    """Tests for soft deletion."""

    @pytest.mark.asyncio
    async def test_renames_and_marks_deleted(self, manager, tenant):
        record = await manager.delete_tenant(tenant.organization_id)

        assert record.status == TenantStatus.DELETED
        assert record.slug.startswith("acme-corp-deleted-")
        assert record.name.endswith("(deleted)")
        assert record.deleted_at is not None

    @pytest.mark.asyncio
    async def test_database_is_kept(self, manager, tenant, engines):
        await manager.delete_tenant(tenant.organization_id)

        assert engines.of_kind("admin") == []

    @pytest.mark.asyncio
    async def test_routing_stops(self, manager, tenant):
        """Verify a cached tenant is not served after deletion."""
        await manager.get_connection(tenant.organization_id)

        await manager.delete_tenant(tenant.organization_id)

        with pytest.raises(TenantNotActiveError) as exc_info:
            await manager.get_connection(tenant.organization_id)
        assert exc_info.value.status == "deleted"

    @pytest.mark.asyncio
    async def test_slug_can_be_reused(self, manager, tenant):
        await manager.delete_tenant(tenant.organization_id)

        record = await manager.provision_async(
            ProvisionTenantParamsFactory.build(slug="acme-corp")
        )

        assert record.slug == "acme-corp"
        assert record.status == TenantStatus.PROVISIONING

    @pytest.mark.asyncio
    async def test_logs_original_slug(self, manager, tenant, activity):
        await manager.delete_tenant(tenant.organization_id, user_id="user-42")

        activity.log_tenant_deleted.assert_awaited_once_with(tenant.id, "acme-corp", "user-42")

    @pytest.mark.asyncio
    async def test_cannot_delete_twice(self, manager, tenant):
        await manager.delete_tenant(tenant.organization_id)

        with pytest.raises(InvalidStatusTransitionError):
            await manager.delete_tenant(tenant.organization_id)

    @pytest.mark.asyncio
    async def test_provisioning_tenant_cannot_be_deleted(self, manager, catalog, vault):
        host = next(h for h in catalog.hosts.values() if h.is_default)
        pending = catalog.add_tenant(make_tenant(vault, host, status=TenantStatus.PROVISIONING))

        with pytest.raises(InvalidStatusTransitionError):
            await manager.delete_tenant(pending.organization_id)

    @pytest.mark.asyncio
    async def test_unknown_organization(self, manager):
        with pytest.raises(TenantNotFoundError):
            await manager.delete_tenant("no-such-org")


class TestPurgeTenant:
    """Tests for permanent destruction."""

    @pytest.mark.asyncio
    async def test_requires_soft_delete(self, manager, tenant, catalog, engines):
        with pytest.raises(InvalidStatusTransitionError):
            await manager.purge_tenant(tenant.organization_id)

        assert tenant.id in catalog.tenants
        assert engines.of_kind("admin") == []

    @pytest.mark.asyncio
    async def test_drops_database_and_row(self, manager, tenant, catalog, engines):
        await manager.delete_tenant(tenant.organization_id)

        await manager.purge_tenant(tenant.organization_id)

        (admin,) = engines.of_kind("admin")
        assert make_url(admin.url).database == "postgres"
        assert "pg_terminate_backend" in admin.statements[0]
        assert admin.params[0] == {"name": tenant.database_name}
        assert admin.statements[1] == f'DROP DATABASE IF EXISTS "{tenant.database_name}"'
        assert admin.disposed
        assert tenant.id not in catalog.tenants
        assert await manager.get_tenant_by_slug("acme-corp") is None

    @pytest.mark.asyncio
    async def test_audit_entry_written_before_row_removed(
        self, manager, tenant, catalog, activity
    ):
        await manager.delete_tenant(tenant.organization_id)
        seen = []
        activity.log_tenant_purged.side_effect = (
            lambda tenant_id, *args: seen.append(tenant_id in catalog.tenants)
        )

        await manager.purge_tenant(tenant.organization_id)

        assert seen == [True]
        activity.log_tenant_purged.assert_awaited_once_with(
            tenant.id, tenant.slug, tenant.database_name
        )

    @pytest.mark.asyncio
    async def test_disposes_pooled_engine(self, manager, tenant, client_cache):
        engine = await manager.get_connection(tenant.organization_id)
        await manager.delete_tenant(tenant.organization_id)

        await manager.purge_tenant(tenant.organization_id)

        assert engine.disposed
        assert client_cache.size == 0

    @pytest.mark.asyncio
    async def test_drop_failure_keeps_row(self, manager, tenant, catalog, engines):
        """Verify the catalog row survives if the database cannot be dropped."""
        await manager.delete_tenant(tenant.organization_id)
        original_admin = engines.admin

        def failing_admin(connection_string):
            engine = original_admin(connection_string)
            engine.fail_on = "DROP DATABASE"
            return engine

        engines.admin = failing_admin

        with pytest.raises(RuntimeError):
            await manager.purge_tenant(tenant.organization_id)

        assert tenant.id in catalog.tenants


class TestFindTenant:
    """Tests for find_tenant, the lookup behind operator commands."""

    @pytest.mark.asyncio
    async def test_by_slug_and_id(self, manager, tenant):
        by_slug = await manager.find_tenant("acme-corp")
        by_id = await manager.find_tenant(str(tenant.id))

        assert by_slug.id == tenant.id
        assert by_id.id == tenant.id

    @pytest.mark.asyncio
    async def test_unknown(self, manager, tenant):
        assert await manager.find_tenant("missing") is None

    @pytest.mark.asyncio
    async def test_deleted_tenant_found_by_original_slug(self, manager, tenant):
        await manager.delete_tenant(tenant.organization_id)

        record = await manager.find_tenant("acme-corp")

        assert record.id == tenant.id
        assert record.status == TenantStatus.DELETED
        assert record.slug.startswith("acme-corp-deleted-")

    @pytest.mark.asyncio
    async def test_live_tenant_wins_over_deleted(self, manager, tenant, catalog, vault):
        """Verify a reused slug resolves to the live tenant, not the deleted one."""
        await manager.delete_tenant(tenant.organization_id)
        host = next(h for h in catalog.hosts.values() if h.is_default)
        live = catalog.add_tenant(make_tenant(vault, host, slug="acme-corp"))

        record = await manager.find_tenant("acme-corp")

        assert record.id == live.id

    @pytest.mark.asyncio
    async def test_prefix_of_another_slug_not_matched(self, manager, tenant):
        await manager.delete_tenant(tenant.organization_id)

        assert await manager.find_tenant("acme") is None

    @pytest.mark.asyncio
    async def test_unreadable_secret_can_still_be_purged(self, manager, tenant, catalog):
        """Verify a tenant whose secret fails to decrypt is found and purged."""
        await manager.delete_tenant(tenant.organization_id)
        tenant.connection_string_tag = "00" * 16

        record = await manager.find_tenant("acme-corp")
        await manager.purge_tenant(record.organization_id)

        assert tenant.id not in catalog.tenants
