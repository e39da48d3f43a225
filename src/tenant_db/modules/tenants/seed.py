"""Default reference data for new tenant databases.

Every insert is ``ON CONFLICT DO NOTHING`` against the
``(organization_id, name|title)`` unique constraints, so seeding can run
any number of times.
"""

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from tenant_db.core.errors import SeedError


log = structlog.get_logger()


DEFAULT_DEPARTMENT = "Geral"

DEFAULT_TAGS: tuple[tuple[str, str], ...] = (
    ("Aguardando retorno", "#22c55e"),
    ("Interno", "#991b1b"),
    ("Novo", "#3b82f6"),
)

DEFAULT_ENDINGS: tuple[str, ...] = (
    "Dúvida",
    "Engano",
    "Pendente",
    "Rejeitado",
    "Resolvido",
)


async def seed_tenant_defaults(conn: AsyncConnection, organization_id: str) -> None:
    """Create the default department, tags and endings.

    Args:
        conn: Open connection to the tenant database (caller commits)
        organization_id: Owning organization

    Raises:
        SeedError: If any insert fails
    """
    try:
        await conn.execute(
            text(
                "INSERT INTO department (organization_id, name, is_default, is_active) "
                "VALUES (:organization_id, :name, true, true) "
                "ON CONFLICT (organization_id, name) DO NOTHING"
            ),
            {"organization_id": organization_id, "name": DEFAULT_DEPARTMENT},
        )
        await conn.execute(
            text(
                "INSERT INTO tag (organization_id, name, color) "
                "VALUES (:organization_id, :name, :color) "
                "ON CONFLICT (organization_id, name) DO NOTHING"
            ),
            [
                {"organization_id": organization_id, "name": name, "color": color}
                for name, color in DEFAULT_TAGS
            ],
        )
        await conn.execute(
            text(
                "INSERT INTO ending (organization_id, title, rating_behavior) "
                "VALUES (:organization_id, :title, 'default') "
                "ON CONFLICT (organization_id, title) DO NOTHING"
            ),
            [{"organization_id": organization_id, "title": title} for title in DEFAULT_ENDINGS],
        )
    except Exception as e:
        log.error("tenant_seed_failed", organization_id=organization_id, error=str(e))
        raise SeedError(
            f"Failed to seed tenant defaults: {e}",
            details={"organization_id": organization_id},
        ) from e

    log.info(
        "tenant_seed_complete",
        organization_id=organization_id,
        tags=len(DEFAULT_TAGS),
        endings=len(DEFAULT_ENDINGS),
    )
