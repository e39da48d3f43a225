"""Tests for TenantCatalog transaction handling."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from tenant_db.core.constants import (
    DELETED_TIMESTAMP_DIGITS,
    MAX_NAME_LENGTH,
    MAX_SLUG_LENGTH,
    NAME_COLUMN_LENGTH,
    SLUG_COLUMN_LENGTH,
)
from tenant_db.core.errors import DuplicateSlugError, TenantNotFoundError
from tenant_db.modules.tenants.catalog import TenantCatalog
from tenant_db.modules.tenants.enums import TenantStatus


@pytest.fixture
def mock_session() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def catalog(mock_session: AsyncMock) -> TenantCatalog:
    session_factory = MagicMock()
    session_factory.return_value.__aenter__.return_value = mock_session
    return TenantCatalog(session_factory)


@pytest.fixture
def tenant_repo():
    with patch("tenant_db.modules.tenants.catalog.TenantRepository") as repo_cls:
        repo = MagicMock()
        repo_cls.return_value = repo
        yield repo


class TestCreateTenant:
    """Tests for create_tenant."""

    @pytest.mark.asyncio
    async def test_commits(self, catalog, mock_session, tenant_repo) -> None:
        tenant = MagicMock(slug="acme-corp")
        tenant_repo.create = AsyncMock(return_value=tenant)

        result = await catalog.create_tenant(tenant)

        assert result is tenant
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unique_violation_is_duplicate_slug(
        self, catalog, mock_session, tenant_repo
    ) -> None:
        """Verify a concurrent insert with the same slug surfaces as DuplicateSlugError."""
        tenant_repo.create = AsyncMock(
            side_effect=IntegrityError("INSERT", {}, Exception("duplicate key value"))
        )

        with pytest.raises(DuplicateSlugError) as exc_info:
            await catalog.create_tenant(MagicMock(slug="acme-corp"))

        assert exc_info.value.details["slug"] == "acme-corp"
        mock_session.rollback.assert_awaited_once()
        mock_session.commit.assert_not_awaited()


class TestUpdateTenant:
    """Tests for update_tenant."""

    @pytest.mark.asyncio
    async def test_missing_row(self, catalog, mock_session, tenant_repo) -> None:
        tenant_repo.update = AsyncMock(return_value=None)

        with pytest.raises(TenantNotFoundError):
            await catalog.update_tenant(uuid4(), status="active")

        mock_session.rollback.assert_awaited_once()
        mock_session.commit.assert_not_awaited()


class TestSoftDeleteTenant:
    """Tests for soft_delete_tenant."""

    @pytest.mark.asyncio
    async def test_renames_in_one_transaction(self, catalog, mock_session, tenant_repo) -> None:
        """Verify organization rename and tenant update share one commit."""
        tenant = MagicMock(id=uuid4(), organization_id="org-1", slug="acme-corp")
        tenant.name = "Acme"
        tenant_repo.update = AsyncMock(return_value=tenant)
        deleted_at = datetime(2025, 12, 1, tzinfo=UTC)
        expected_slug = f"acme-corp-deleted-{int(deleted_at.timestamp() * 1000)}"

        with patch("tenant_db.modules.tenants.catalog.OrganizationRepository") as org_cls:
            org_cls.return_value.rename = AsyncMock(return_value=True)
            await catalog.soft_delete_tenant(tenant, deleted_at=deleted_at)

        org_cls.return_value.rename.assert_awaited_once_with(
            "org-1", expected_slug, "Acme (deleted)"
        )
        tenant_repo.update.assert_awaited_once_with(
            tenant.id,
            slug=expected_slug,
            name="Acme (deleted)",
            status=TenantStatus.DELETED.value,
            deleted_at=deleted_at,
        )
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_max_length_rename_fits_columns(self, catalog, tenant_repo) -> None:
        """Verify the longest accepted slug and name still fit once renamed."""
        tenant = MagicMock(id=uuid4(), organization_id="org-1", slug="a" * MAX_SLUG_LENGTH)
        tenant.name = "n" * MAX_NAME_LENGTH
        tenant_repo.update = AsyncMock(return_value=tenant)
        deleted_at = datetime(2286, 11, 20, tzinfo=UTC)

        with patch("tenant_db.modules.tenants.catalog.OrganizationRepository") as org_cls:
            org_cls.return_value.rename = AsyncMock(return_value=True)
            await catalog.soft_delete_tenant(tenant, deleted_at=deleted_at)

        renamed = tenant_repo.update.await_args.kwargs
        assert len(str(int(deleted_at.timestamp() * 1000))) == DELETED_TIMESTAMP_DIGITS
        assert len(renamed["slug"]) == SLUG_COLUMN_LENGTH
        assert len(renamed["name"]) == NAME_COLUMN_LENGTH
