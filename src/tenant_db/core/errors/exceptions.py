"""Domain exceptions for tenant database management.

Every error raised by this package inherits from TenantDBError so callers
can catch the whole family, while each "not found" or invalid-state path
maps to its own subclass.
"""

from typing import Any


class TenantDBError(Exception):
    """Base exception for all tenant database errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code
        details: Additional error details
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(TenantDBError):
    """Raised when required configuration is missing or invalid.

    This is fatal: retrying with the same environment cannot succeed.
    """

    message = "Invalid configuration"
    error_code = "configuration_error"


# ============================================================
# Validation errors (raised before any side effect)
# ============================================================


class ValidationError(TenantDBError):
    """Raised when input data fails validation."""

    message = "Validation error"
    error_code = "validation_error"


class InvalidSlugError(ValidationError):
    """Raised when a slug does not match the slug pattern.

    Example:
        raise InvalidSlugError(details={"slug": "Acme Corp"})
    """

    message = "Invalid slug"
    error_code = "invalid_slug"

    def __init__(self, slug: str, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        details["slug"] = slug
        super().__init__(message=f"Invalid slug: {slug}", details=details, **kwargs)


class InvalidDatabaseNameError(ValidationError):
    """Raised when an organization id does not map to a usable database name."""

    message = "Invalid database name"
    error_code = "invalid_database_name"

    def __init__(self, database_name: str, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        details["database_name"] = database_name
        super().__init__(
            message=f"Invalid database name: {database_name}", details=details, **kwargs
        )


class DuplicateSlugError(ValidationError):
    """Raised when a non-deleted tenant already holds the slug."""

    message = "Slug already in use"
    error_code = "duplicate_slug"

    def __init__(self, slug: str, status: str | None = None, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        details["slug"] = slug
        message = f"Tenant with slug '{slug}' already exists"
        if status:
            details["status"] = status
            message = f"{message} (status: {status})"
        super().__init__(message=message, details=details, **kwargs)


class DatabaseHostNotFoundError(ValidationError):
    """Raised when the requested (or default) database host does not exist."""

    message = "Database host not found"
    error_code = "database_host_not_found"

    def __init__(self, host_id: str | None = None, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        if host_id:
            details["host_id"] = host_id
            message = f"Database host not found: {host_id}"
        else:
            message = "No default database host found"
        super().__init__(message=message, details=details, **kwargs)


class InvalidStatusTransitionError(ValidationError):
    """Raised when a status change is not an edge of the lifecycle graph."""

    message = "Invalid tenant status transition"
    error_code = "invalid_status_transition"

    def __init__(self, current: str, target: str, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        details.update({"current": current, "target": target})
        super().__init__(
            message=f"Cannot change tenant status from '{current}' to '{target}'",
            details=details,
            **kwargs,
        )


# ============================================================
# Lookup errors
# ============================================================


class TenantNotFoundError(TenantDBError):
    """Raised when no catalog row exists for the identifier."""

    message = "Tenant not found"
    error_code = "tenant_not_found"

    def __init__(self, identifier: str, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        details["identifier"] = identifier
        super().__init__(
            message=f"Tenant not found: {identifier}", details=details, **kwargs
        )


class TenantNotActiveError(TenantDBError):
    """Raised when a tenant exists but is not in the active state.

    The current status is part of the message and is exposed as
    ``status`` so callers can tell a suspension from an in-flight
    provisioning.
    """

    message = "Tenant is not active"
    error_code = "tenant_not_active"

    def __init__(self, slug: str, status: str, **kwargs: Any) -> None:
        self.status = status
        details = kwargs.pop("details", {})
        details.update({"slug": slug, "status": status})
        super().__init__(
            message=f"Tenant is not active: {slug} (status: {status})",
            details=details,
            **kwargs,
        )


# ============================================================
# Provisioning errors
# ============================================================


class ProvisioningError(TenantDBError):
    """Raised when physical provisioning of a tenant database fails."""

    message = "Tenant provisioning failed"
    error_code = "provisioning_failed"


class TimeSeriesSetupError(ProvisioningError):
    """Raised when hypertable, compression or retention setup fails."""

    message = "Failed to set up time-series partitioning"
    error_code = "timeseries_setup_failed"


class SeedError(ProvisioningError):
    """Raised when seeding tenant default data fails."""

    message = "Failed to seed tenant defaults"
    error_code = "seed_failed"


class MigrationError(TenantDBError):
    """Raised when applying schema migrations to a tenant fails."""

    message = "Tenant migration failed"
    error_code = "migration_failed"


# ============================================================
# Security errors
# ============================================================


class DecryptionError(TenantDBError):
    """Raised when a secret cannot be decrypted (wrong key or tampered data)."""

    message = "Decryption failed. Invalid key or corrupted data."
    error_code = "decryption_failed"
