"""Utility functions for tenantctl commands."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar
from uuid import UUID

import typer


if TYPE_CHECKING:
    from tenant_db.modules.tenants.manager import TenantLifecycleManager
    from tenant_db.modules.tenants.schemas import TenantRecord


T = TypeVar("T")

TRUE_VALUES = frozenset({"true", "1", "yes", "y", "on"})
FALSE_VALUES = frozenset({"false", "0", "no", "n", "off"})


async def get_manager() -> "TenantLifecycleManager":
    """Build a lifecycle manager from environment settings."""
    from tenant_db.config import get_settings
    from tenant_db.core.logging import configure_logging
    from tenant_db.modules.tenants.manager import TenantLifecycleManager

    settings = get_settings()
    configure_logging(settings)
    return await TenantLifecycleManager.create(settings)


def run_with_manager(action: Callable[["TenantLifecycleManager"], Awaitable[T]]) -> T:
    """Run an async action against a fresh manager, closing it afterwards."""

    async def runner() -> T:
        manager = await get_manager()
        try:
            return await action(manager)
        finally:
            await manager.close()

    return asyncio.run(runner())


def parse_uuid(value: str) -> UUID | None:
    """Parse a UUID, returning None if the value is not one."""
    try:
        return UUID(value)
    except ValueError:
        return None


async def resolve_tenant(
    manager: "TenantLifecycleManager", identifier: str
) -> "TenantRecord | None":
    """Find a tenant by slug or id.

    A soft-deleted tenant also resolves by its original slug. The sealed
    secret is not opened, so a tenant with an unreadable secret can
    still be purged.
    """
    return await manager.find_tenant(identifier)


def parse_bool(value: str) -> bool:
    """Parse a textual boolean flag value such as ``--parallel=false``.

    Raises:
        typer.BadParameter: If the value is not a recognised boolean
    """
    normalized = value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise typer.BadParameter(f"Expected true or false, got '{value}'")
