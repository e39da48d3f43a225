"""tenant-db - database-per-tenant lifecycle management."""

__version__ = "0.1.0"
