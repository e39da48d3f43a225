"""Alembic script directories shipped with the package."""
