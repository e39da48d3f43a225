"""Async session management for the shared catalog database."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tenant_db.config import Settings


def create_catalog_engine(settings: Settings, direct: bool = False) -> AsyncEngine:
    """Create the engine for the catalog database.

    The catalog is reached through a small shared pool. The direct URL
    bypasses the pooling proxy and is used for administrative work.

    Args:
        settings: Application settings
        direct: Use the direct (non-proxied) catalog URL

    Returns:
        Configured async engine
    """
    url = settings.async_database_url_direct if direct else settings.async_database_url
    return create_async_engine(
        url,
        pool_size=settings.catalog_pool_size,
        max_overflow=settings.catalog_max_overflow,
        echo=settings.database_echo,
        pool_pre_ping=True,  # Verify connections before use
        connect_args={"statement_cache_size": 0},
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to an engine.

    Objects stay usable after commit, so records can be returned from
    short-lived sessions.
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
