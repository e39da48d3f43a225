"""Engine presets for tenant databases.

Three kinds of engines are used against tenant databases:

- pooled: request-time access, small pool, no prepared statements so that
  transaction-mode pooling proxies accept the traffic
- admin: one unpooled autocommit connection for CREATE/DROP DATABASE and
  backend termination, which cannot run inside a transaction
- migration: one unpooled connection without prepared statements, used
  for schema migrations, extensions and seeding
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from tenant_db.core.constants import COMMAND_TIMEOUT_SECONDS, CONNECT_TIMEOUT_SECONDS


POOLED_POOL_SIZE = 3
POOLED_RECYCLE_SECONDS = 300


def to_async_url(connection_string: str) -> str:
    """Convert a plain PostgreSQL URL to the asyncpg driver.

    Prepared statement caching is switched off at the dialect level as well.
    """
    url = make_url(connection_string).set(drivername="postgresql+asyncpg")
    url = url.update_query_dict({"prepared_statement_cache_size": "0"})
    return url.render_as_string(hide_password=False)


def _connect_args(prepared_statements: bool = False) -> dict[str, object]:
    args: dict[str, object] = {
        "timeout": CONNECT_TIMEOUT_SECONDS,
        "command_timeout": COMMAND_TIMEOUT_SECONDS,
    }
    if not prepared_statements:
        args["statement_cache_size"] = 0
    return args


def create_pooled_engine(connection_string: str) -> AsyncEngine:
    """Create a pooled engine for request-time tenant access."""
    return create_async_engine(
        to_async_url(connection_string),
        pool_size=POOLED_POOL_SIZE,
        max_overflow=0,
        pool_recycle=POOLED_RECYCLE_SECONDS,
        pool_pre_ping=True,
        connect_args=_connect_args(),
    )


def create_admin_engine(connection_string: str) -> AsyncEngine:
    """Create a single-connection autocommit engine for administrative SQL."""
    return create_async_engine(
        to_async_url(connection_string),
        poolclass=NullPool,
        isolation_level="AUTOCOMMIT",
        connect_args=_connect_args(prepared_statements=True),
    )


def create_migration_engine(connection_string: str) -> AsyncEngine:
    """Create a single-connection engine for migrations, seeding and health checks."""
    return create_async_engine(
        to_async_url(connection_string),
        poolclass=NullPool,
        connect_args=_connect_args(),
    )


class EngineFactory:
    """Creates tenant engines by preset.

    Collaborators receive an instance instead of calling the module
    functions, so tests can substitute fakes.
    """

    def pooled(self, connection_string: str) -> AsyncEngine:
        return create_pooled_engine(connection_string)

    def admin(self, connection_string: str) -> AsyncEngine:
        return create_admin_engine(connection_string)

    def migration(self, connection_string: str) -> AsyncEngine:
        return create_migration_engine(connection_string)
