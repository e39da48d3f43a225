"""Naming and connection-descriptor helpers for tenant databases."""

import re
from datetime import datetime

from sqlalchemy.engine import URL, make_url

from tenant_db.core.constants import (
    DATABASE_NAME_PATTERN,
    DATABASE_NAME_PREFIX,
    DELETED_NAME_SUFFIX,
    DELETED_SLUG_INFIX,
    MAX_DATABASE_NAME_LENGTH,
    MAX_SLUG_LENGTH,
    POOLER_FEATURE,
    SLUG_PATTERN,
)


_slug_re = re.compile(SLUG_PATTERN)
_database_name_re = re.compile(DATABASE_NAME_PATTERN)


def is_valid_slug(slug: str) -> bool:
    """Check a slug: lowercase alphanumerics separated by single hyphens."""
    return len(slug) <= MAX_SLUG_LENGTH and _slug_re.fullmatch(slug) is not None


def generate_slug(name: str) -> str:
    """Derive a slug from a display name.

    Example:
        generate_slug("Acme Corp!")  # "acme-corp"
    """
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug[:MAX_SLUG_LENGTH].rstrip("-")


def generate_database_name(organization_id: str) -> str:
    """Derive the physical database name from an organization id.

    Deterministic, so the same organization always maps to the same
    database.
    """
    return f"{DATABASE_NAME_PREFIX}{organization_id.replace('-', '')}".lower()


def is_valid_database_name(name: str) -> bool:
    return (
        len(name) <= MAX_DATABASE_NAME_LENGTH
        and _database_name_re.fullmatch(name) is not None
    )


def quote_identifier(name: str) -> str:
    """Quote a database name for DDL.

    Raises:
        ValueError: If the name is not a valid database name
    """
    if not is_valid_database_name(name):
        raise ValueError(f"Invalid database name: {name}")
    return f'"{name}"'


def build_connection_string(
    host: str,
    port: int,
    database: str,
    user: str,
    password: str,
) -> str:
    """Build a plain postgresql:// connection string."""
    url = URL.create(
        "postgresql",
        username=user,
        password=password,
        host=host,
        port=port,
        database=database,
    )
    return url.render_as_string(hide_password=False)


def with_port(connection_string: str, port: int) -> str:
    """Rewrite the port of a connection string."""
    return make_url(connection_string).set(port=port).render_as_string(hide_password=False)


def with_database(connection_string: str, database: str) -> str:
    """Point a connection string at another database on the same server."""
    return (
        make_url(connection_string)
        .set(database=database)
        .render_as_string(hide_password=False)
    )


def has_pooler(capabilities: dict | None) -> bool:
    """Whether a host advertises a pooling proxy in its capabilities."""
    if not capabilities:
        return False
    return POOLER_FEATURE in (capabilities.get("features") or [])


def deleted_slug_prefix(slug: str) -> str:
    """Prefix shared by every slug a soft delete of ``slug`` can produce."""
    return f"{slug}{DELETED_SLUG_INFIX}"


def soft_deleted_names(slug: str, name: str, deleted_at: datetime) -> tuple[str, str]:
    """Slug and name a tenant is renamed to when soft deleted.

    Example:
        soft_deleted_names("acme", "Acme", at)  # ("acme-deleted-1764547200000", "Acme (deleted)")
    """
    timestamp_ms = int(deleted_at.timestamp() * 1000)
    return f"{deleted_slug_prefix(slug)}{timestamp_ms}", f"{name}{DELETED_NAME_SUFFIX}"
