#!/usr/bin/env python
"""
Register database hosts in the catalog for development.
"""

import argparse
import asyncio
import sys


# Add src to path for imports
sys.path.insert(0, "src")

from tenant_db.config import get_settings
from tenant_db.core.database import create_catalog_engine, create_session_factory
from tenant_db.modules.tenants.models import DatabaseHost
from tenant_db.modules.tenants.repos import DatabaseHostRepository


async def seed_host(
    name: str,
    host: str,
    port: int,
    region: str,
    pgbouncer: bool,
) -> None:
    """Create the default database host if it does not exist."""
    engine = create_catalog_engine(get_settings())
    session_factory = create_session_factory(engine)

    try:
        async with session_factory() as session:
            repo = DatabaseHostRepository(session)

            existing = await repo.get_by_name(name)
            if existing:
                print(f"Database host already exists: {existing.name} ({existing.id})")
                return

            features = ["timescaledb"]
            if pgbouncer:
                features.append("pgbouncer")

            created = await repo.create(
                DatabaseHost(
                    name=name,
                    host=host,
                    port=port,
                    region=region,
                    is_default=await repo.get_default() is None,
                    capabilities={"features": features},
                )
            )
            await session.commit()
            print(f"Created database host: {created.name} ({created.id})")
            if created.is_default:
                print("Marked as default host for new tenants")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Register a tenant database host")
    parser.add_argument("--name", default="postgres-local", help="Unique host name")
    parser.add_argument("--host", default="localhost", help="Hostname or IP address")
    parser.add_argument("--port", type=int, default=5432, help="Native PostgreSQL port")
    parser.add_argument("--region", default="local", help="Region label")
    parser.add_argument(
        "--pgbouncer",
        action="store_true",
        help="Route tenant connections through the pooler port",
    )
    args = parser.parse_args()

    asyncio.run(seed_host(args.name, args.host, args.port, args.region, args.pgbouncer))
