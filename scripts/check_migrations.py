#!/usr/bin/env python
"""
Verify that the catalog models match the catalog database schema.
Fails CI if model changes are not captured in a migration.

Run against a catalog database upgraded to head:
    alembic upgrade head && python scripts/check_migrations.py
"""

import asyncio
import sys
from typing import Any


# Add src to path for imports
sys.path.insert(0, "src")

from alembic.autogenerate import compare_metadata
from alembic.migration import MigrationContext
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from tenant_db.config import get_settings
from tenant_db.core.audit.models import ActivityLog  # noqa: F401
from tenant_db.core.database.base import Base
from tenant_db.modules.tenants import models  # noqa: F401


def _diff(connection: Connection) -> list[Any]:
    context = MigrationContext.configure(connection)
    return compare_metadata(context, Base.metadata)


async def pending_changes() -> list[Any]:
    """Differences between the models and the migrated catalog schema."""
    engine = create_async_engine(
        get_settings().async_database_url_direct,
        poolclass=pool.NullPool,
    )
    try:
        async with engine.connect() as connection:
            return await connection.run_sync(_diff)
    finally:
        await engine.dispose()


def main() -> int:
    """Check if migrations are in sync with models."""
    print("Checking if catalog migrations are in sync with models...")

    try:
        changes = asyncio.run(pending_changes())
    except Exception as e:
        print(f"❌ Could not inspect the catalog database: {e}")
        return 1

    if changes:
        print("❌ Pending model changes not captured in migrations:")
        for change in changes:
            print(f"  {change}")
        return 1

    print("✅ Models and migrations are in sync")
    return 0


if __name__ == "__main__":
    sys.exit(main())
