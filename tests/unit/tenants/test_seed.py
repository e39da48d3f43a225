"""Tests for tenant default data seeding."""

import pytest

from tenant_db.core.errors import SeedError
from tenant_db.modules.tenants.seed import (
    DEFAULT_DEPARTMENT,
    DEFAULT_ENDINGS,
    DEFAULT_TAGS,
    seed_tenant_defaults,
)
from tests.fakes import FakeEngine


class TestSeedTenantDefaults:
    """Tests for seed_tenant_defaults."""

    @pytest.mark.asyncio
    async def test_inserts_department_tags_and_endings(self):
        engine = FakeEngine("postgresql://postgres:pw@db:5432/org_1", "migration")

        async with engine.begin() as conn:
            await seed_tenant_defaults(conn, "org-1")

        assert len(engine.statements) == 3
        assert all("ON CONFLICT" in s and "DO NOTHING" in s for s in engine.statements)

        department, tags, endings = engine.params
        assert department == {"organization_id": "org-1", "name": DEFAULT_DEPARTMENT}
        assert [t["name"] for t in tags] == [name for name, _ in DEFAULT_TAGS]
        assert [e["title"] for e in endings] == list(DEFAULT_ENDINGS)
        assert {row["organization_id"] for row in [*tags, *endings]} == {"org-1"}

    @pytest.mark.asyncio
    async def test_failure_raises_seed_error(self):
        engine = FakeEngine("postgresql://postgres:pw@db:5432/org_1", "migration")
        engine.fail_on = "INSERT INTO tag"

        with pytest.raises(SeedError) as exc_info:
            async with engine.begin() as conn:
                await seed_tenant_defaults(conn, "org-1")

        assert exc_info.value.details == {"organization_id": "org-1"}
