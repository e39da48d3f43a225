"""Schema migrations for tenant databases.

Tenant schemas are versioned with Alembic. An upgrade runs on a
migration-mode engine (one unpooled connection, no prepared statements)
and is handed to Alembic through ``connection.run_sync``.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from pathlib import Path

import structlog
from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from tenant_db.core.errors import MigrationError
from tenant_db.modules.tenants.models import Tenant
from tenant_db.modules.tenants.schemas import MigrateAllOptions, MigrationResult


log = structlog.get_logger()


class SchemaMigrator:
    """Applies pending tenant migrations.

    Example:
        migrator = SchemaMigrator(settings.tenant_migrations_path)
        async with engine.begin() as conn:
            await migrator.upgrade(conn)
    """

    def __init__(self, script_location: Path | str) -> None:
        """Initialize the migrator.

        Args:
            script_location: Alembic script directory for tenant databases
        """
        self.script_location = Path(script_location)

    def _config(self, connection: Connection | None = None) -> Config:
        config = Config()
        config.set_main_option("script_location", str(self.script_location))
        if connection is not None:
            config.attributes["connection"] = connection
        return config

    def head_revision(self) -> str | None:
        """Latest revision in the tenant script directory."""
        return ScriptDirectory.from_config(self._config()).get_current_head()

    async def upgrade(self, conn: AsyncConnection, revision: str = "head") -> None:
        """Upgrade one tenant database to ``revision``.

        Args:
            conn: Open connection to the tenant database (caller commits)
            revision: Target revision

        Raises:
            MigrationError: If Alembic fails
        """
        try:
            await conn.run_sync(self._run_upgrade, revision)
        except Exception as e:
            raise MigrationError(
                f"Tenant migration failed: {e}",
                details={"revision": revision},
            ) from e

    def _run_upgrade(self, connection: Connection, revision: str) -> None:
        command.upgrade(self._config(connection), revision)

    async def upgrade_engine(self, engine: AsyncEngine, revision: str = "head") -> None:
        """Upgrade through a dedicated engine and dispose it afterwards."""
        try:
            async with engine.begin() as conn:
                await self.upgrade(conn, revision)
        finally:
            await engine.dispose()


MigrateOne = Callable[[Tenant], Awaitable[None]]


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


async def migrate_tenants(
    tenants: list[Tenant],
    migrate_one: MigrateOne,
    options: MigrateAllOptions,
) -> list[MigrationResult]:
    """Fan migrations out over a set of tenants.

    Sequential mode runs one tenant at a time and re-raises the first
    failure unless ``continue_on_error`` is set. Parallel mode works in
    chunks of ``max_concurrency``: every member of a chunk settles before
    the next chunk starts, and failures are always recorded rather than
    raised.

    Args:
        tenants: Tenants to migrate
        migrate_one: Migrates a single tenant, raising on failure
        options: Fan-out options

    Returns:
        One result per attempted tenant
    """
    results: list[MigrationResult] = []

    if not options.parallel:
        for tenant in tenants:
            started = time.monotonic()
            try:
                await migrate_one(tenant)
            except Exception as e:
                results.append(
                    MigrationResult(
                        tenant_id=tenant.id,
                        slug=tenant.slug,
                        success=False,
                        duration_ms=_elapsed_ms(started),
                        error=str(e),
                    )
                )
                if not options.continue_on_error:
                    raise
                continue
            results.append(
                MigrationResult(
                    tenant_id=tenant.id,
                    slug=tenant.slug,
                    success=True,
                    duration_ms=_elapsed_ms(started),
                )
            )
        return results

    async def timed(tenant: Tenant) -> int:
        started = time.monotonic()
        await migrate_one(tenant)
        return _elapsed_ms(started)

    size = options.max_concurrency
    for i in range(0, len(tenants), size):
        chunk = tenants[i : i + size]
        outcomes = await asyncio.gather(
            *(timed(tenant) for tenant in chunk),
            return_exceptions=True,
        )
        for tenant, outcome in zip(chunk, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                results.append(
                    MigrationResult(
                        tenant_id=tenant.id,
                        slug=tenant.slug,
                        success=False,
                        duration_ms=0,
                        error=str(outcome),
                    )
                )
            else:
                results.append(
                    MigrationResult(
                        tenant_id=tenant.id,
                        slug=tenant.slug,
                        success=True,
                        duration_ms=outcome,
                    )
                )
        log.debug("migration_chunk_settled", chunk_start=i, chunk_size=len(chunk))

    return results
