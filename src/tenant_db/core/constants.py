"""Application-wide constants.

This module defines constants used throughout the package
to avoid magic numbers and ensure consistency.
"""

# Slugs and identifiers
SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"
SLUG_COLUMN_LENGTH = 100
NAME_COLUMN_LENGTH = 255

# Soft delete renames slug to "{slug}-deleted-{epoch_ms}" and name to "{name} (deleted)"
DELETED_SLUG_INFIX = "-deleted-"
DELETED_NAME_SUFFIX = " (deleted)"
DELETED_TIMESTAMP_DIGITS = 13

# Leave room for the soft-delete rename within the column widths
MAX_SLUG_LENGTH = SLUG_COLUMN_LENGTH - len(DELETED_SLUG_INFIX) - DELETED_TIMESTAMP_DIGITS
MAX_NAME_LENGTH = NAME_COLUMN_LENGTH - len(DELETED_NAME_SUFFIX)
MAX_DATABASE_NAME_LENGTH = 63
DATABASE_NAME_PATTERN = r"^[a-z_][a-z0-9_]*$"
DATABASE_NAME_PREFIX = "org_"

# Postgres
MAINTENANCE_DATABASE = "postgres"
DEFAULT_POSTGRES_PORT = 5432
DEFAULT_POOLER_PORT = 6432
POOLER_FEATURE = "pgbouncer"
CONNECT_TIMEOUT_SECONDS = 10
COMMAND_TIMEOUT_SECONDS = 60
REQUIRED_EXTENSIONS = ("timescaledb", "vector", "dblink")

# Encryption (AES-256-GCM)
ENCRYPTION_KEY_BYTES = 32
GCM_NONCE_BYTES = 12
GCM_TAG_BYTES = 16

# Tier 1: distributed tenant metadata cache
TENANT_CACHE_PREFIX = "tenant:"
TENANT_CACHE_TTL_SECONDS = 300  # 5 minutes

# Tier 2: local engine cache
CLIENT_CACHE_MAX_ENTRIES = 100
CLIENT_CACHE_TTL_SECONDS = 1800  # 30 minutes

# Provisioning job
PROVISION_JOB_NAME = "provision-tenant"
PROVISION_JOB_ATTEMPTS = 3
PROVISION_JOB_BACKOFF_MS = 2000
PROVISION_JOB_KEEP_COMPLETED = 100
PROVISION_JOB_KEEP_COMPLETED_AGE_SECONDS = 86400  # 24 hours
PROVISION_JOB_KEEP_FAILED = 500
PROVISIONING_EVENTS_CHANNEL = "tenant:provisioning"

# Health checks
HEALTH_CHECK_ATTEMPTS = 3
HEALTH_CHECK_DELAY_SECONDS = 0.5

# Migrations
DEFAULT_MIGRATION_CONCURRENCY = 5
ALL_MIGRATIONS = "all"
