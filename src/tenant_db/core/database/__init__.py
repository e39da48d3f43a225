"""Database layer - catalog sessions, base models, and tenant engine presets."""

from tenant_db.core.database.base import Base, TimestampMixin, UUIDMixin
from tenant_db.core.database.clients import (
    EngineFactory,
    create_admin_engine,
    create_migration_engine,
    create_pooled_engine,
    to_async_url,
)
from tenant_db.core.database.session import create_catalog_engine, create_session_factory


__all__ = [
    "Base",
    "EngineFactory",
    "TimestampMixin",
    "UUIDMixin",
    "create_admin_engine",
    "create_catalog_engine",
    "create_migration_engine",
    "create_pooled_engine",
    "create_session_factory",
    "to_async_url",
]
