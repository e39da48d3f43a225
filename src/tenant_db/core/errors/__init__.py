"""Error types for tenant database management."""

from tenant_db.core.errors.exceptions import (
    ConfigurationError,
    DatabaseHostNotFoundError,
    DecryptionError,
    DuplicateSlugError,
    InvalidDatabaseNameError,
    InvalidSlugError,
    InvalidStatusTransitionError,
    MigrationError,
    ProvisioningError,
    SeedError,
    TenantDBError,
    TenantNotActiveError,
    TenantNotFoundError,
    TimeSeriesSetupError,
    ValidationError,
)


__all__ = [
    "ConfigurationError",
    "DatabaseHostNotFoundError",
    "DecryptionError",
    "DuplicateSlugError",
    "InvalidDatabaseNameError",
    "InvalidSlugError",
    "InvalidStatusTransitionError",
    "MigrationError",
    "ProvisioningError",
    "SeedError",
    "TenantDBError",
    "TenantNotActiveError",
    "TenantNotFoundError",
    "TimeSeriesSetupError",
    "ValidationError",
]
