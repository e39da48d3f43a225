"""Liveness checks for tenant databases."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine
from tenacity import retry, stop_after_attempt, wait_fixed

from tenant_db.core.constants import HEALTH_CHECK_ATTEMPTS, HEALTH_CHECK_DELAY_SECONDS


@retry(
    stop=stop_after_attempt(HEALTH_CHECK_ATTEMPTS),
    wait=wait_fixed(HEALTH_CHECK_DELAY_SECONDS),
    reraise=True,
)
async def ping(engine: AsyncEngine) -> None:
    """Run ``SELECT 1``, retrying a few times with a fixed delay."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def list_extensions(engine: AsyncEngine) -> list[str]:
    """Names of installed extensions, excluding the built-in plpgsql."""
    async with engine.connect() as conn:
        result = await conn.execute(
            text(
                "SELECT extname FROM pg_extension "
                "WHERE extname != 'plpgsql' ORDER BY extname"
            )
        )
        return [row.extname for row in result]
