"""Tests for tenant schema migrations and the migration fan-out."""

import asyncio
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from tenant_db.config import DEFAULT_TENANT_MIGRATIONS_PATH
from tenant_db.core.errors import MigrationError
from tenant_db.modules.tenants.migrator import SchemaMigrator, migrate_tenants
from tenant_db.modules.tenants.models import Tenant
from tenant_db.modules.tenants.schemas import MigrateAllOptions
from tests.fakes import FakeEngine


def make_tenants(count: int) -> list[Tenant]:
    return [Tenant(id=uuid4(), slug=f"tenant-{i}") for i in range(count)]


def failing_on(*slugs: str):
    """A migrate_one that fails for the given slugs."""
    calls: list[str] = []

    async def migrate_one(tenant: Tenant) -> None:
        calls.append(tenant.slug)
        if tenant.slug in slugs:
            raise MigrationError(f"{tenant.slug} broke")

    return migrate_one, calls


class TestSchemaMigrator:
    """Tests for SchemaMigrator."""

    def test_head_revision_of_packaged_scripts(self):
        """Verify the packaged tenant scripts resolve to a single head."""
        migrator = SchemaMigrator(DEFAULT_TENANT_MIGRATIONS_PATH)

        assert migrator.head_revision() == "0001"

    @pytest.mark.asyncio
    async def test_upgrade_wraps_errors(self):
        """Verify Alembic failures surface as MigrationError."""
        conn = AsyncMock()
        conn.run_sync.side_effect = RuntimeError("relation already exists")

        with pytest.raises(MigrationError) as exc_info:
            await SchemaMigrator(DEFAULT_TENANT_MIGRATIONS_PATH).upgrade(conn)

        assert "relation already exists" in str(exc_info.value)
        assert exc_info.value.details == {"revision": "head"}

    @pytest.mark.asyncio
    async def test_upgrade_engine_disposes(self):
        """Verify the dedicated engine is released after the upgrade."""
        engine = FakeEngine("postgresql://postgres:pw@db:5432/org_1", "migration")

        await SchemaMigrator(DEFAULT_TENANT_MIGRATIONS_PATH).upgrade_engine(engine)

        assert engine.disposed is True

    @pytest.mark.asyncio
    async def test_upgrade_engine_disposes_on_failure(self):
        engine = FakeEngine("postgresql://postgres:pw@db:5432/org_1", "migration")
        engine.fail_times = 1

        with pytest.raises(ConnectionRefusedError):
            await SchemaMigrator(DEFAULT_TENANT_MIGRATIONS_PATH).upgrade_engine(engine)

        assert engine.disposed is True


class TestMigrateTenantsSequential:
    """Tests for sequential fan-out."""

    @pytest.mark.asyncio
    async def test_all_succeed(self):
        tenants = make_tenants(3)
        migrate_one, calls = failing_on()

        results = await migrate_tenants(tenants, migrate_one, MigrateAllOptions(parallel=False))

        assert calls == ["tenant-0", "tenant-1", "tenant-2"]
        assert all(r.success for r in results)
        assert [r.tenant_id for r in results] == [t.id for t in tenants]

    @pytest.mark.asyncio
    async def test_stops_on_first_failure(self):
        """Verify the first failure is re-raised and later tenants are skipped."""
        migrate_one, calls = failing_on("tenant-1")

        with pytest.raises(MigrationError):
            await migrate_tenants(
                make_tenants(3), migrate_one, MigrateAllOptions(parallel=False)
            )

        assert calls == ["tenant-0", "tenant-1"]

    @pytest.mark.asyncio
    async def test_continue_on_error(self):
        """Verify failures are recorded and the run carries on."""
        migrate_one, calls = failing_on("tenant-1")

        results = await migrate_tenants(
            make_tenants(3),
            migrate_one,
            MigrateAllOptions(parallel=False, continue_on_error=True),
        )

        assert calls == ["tenant-0", "tenant-1", "tenant-2"]
        assert [r.success for r in results] == [True, False, True]
        assert results[1].error == "tenant-1 broke"


class TestMigrateTenantsParallel:
    """Tests for chunked parallel fan-out."""

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded_by_chunk(self):
        """Verify no more than max_concurrency migrations run at once."""
        running = 0
        peak = 0

        async def migrate_one(tenant: Tenant) -> None:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

        results = await migrate_tenants(
            make_tenants(7), migrate_one, MigrateAllOptions(max_concurrency=3)
        )

        assert peak == 3
        assert len(results) == 7
        assert all(r.success for r in results)

    @pytest.mark.asyncio
    async def test_failures_are_recorded_not_raised(self):
        """Verify one failure does not abort its chunk or later chunks."""
        migrate_one, calls = failing_on("tenant-0", "tenant-3")

        results = await migrate_tenants(
            make_tenants(5), migrate_one, MigrateAllOptions(max_concurrency=2)
        )

        assert sorted(calls) == [f"tenant-{i}" for i in range(5)]
        failed = [r for r in results if not r.success]
        assert [r.slug for r in failed] == ["tenant-0", "tenant-3"]
        assert all(r.duration_ms == 0 for r in failed)

    @pytest.mark.asyncio
    async def test_no_tenants(self):
        migrate_one, _ = failing_on()

        assert await migrate_tenants([], migrate_one, MigrateAllOptions()) == []
