"""Application configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import PostgresDsn, RedisDsn, ValidationError, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tenant_db.core.constants import (
    CLIENT_CACHE_MAX_ENTRIES,
    CLIENT_CACHE_TTL_SECONDS,
    DEFAULT_POOLER_PORT,
    ENCRYPTION_KEY_BYTES,
    TENANT_CACHE_TTL_SECONDS,
)
from tenant_db.core.errors import ConfigurationError


DEFAULT_TENANT_MIGRATIONS_PATH = Path(__file__).parent / "migrations" / "tenant"


def _to_async_url(url: str) -> str:
    return url.replace("postgresql://", "postgresql+asyncpg://", 1)


class Settings(BaseSettings):
    """Settings loaded from environment variables.

    Every connection setting is required. A process that starts without
    them cannot do anything useful, so absence is treated as fatal.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = "development"  # development, staging, production
    log_level: str = "INFO"

    # Catalog database
    database_url: PostgresDsn
    database_url_direct: PostgresDsn
    catalog_pool_size: int = 5
    catalog_max_overflow: int = 5
    database_echo: bool = False

    # Administrative credentials for tenant database hosts
    postgres_user: str
    postgres_password: str
    pooler_port: int = DEFAULT_POOLER_PORT

    # Redis (distributed cache + job queue)
    redis_url: RedisDsn
    queue_tenant_provisioning: str

    # Credential vault
    encryption_key: str

    # Tenant migrations (Alembic script directory)
    tenant_migrations_path: Path = DEFAULT_TENANT_MIGRATIONS_PATH

    # Caches
    tenant_cache_ttl_seconds: int = TENANT_CACHE_TTL_SECONDS
    client_cache_max_entries: int = CLIENT_CACHE_MAX_ENTRIES
    client_cache_ttl_seconds: int = CLIENT_CACHE_TTL_SECONDS

    @field_validator("encryption_key")
    @classmethod
    def validate_encryption_key(cls, v: str) -> str:
        """Validate that the encryption key is 32 bytes of hex.

        Raises:
            ValueError: If the key is not valid hex or has the wrong length
        """
        try:
            key = bytes.fromhex(v)
        except ValueError as e:
            raise ValueError("ENCRYPTION_KEY must be hex encoded") from e
        if len(key) != ENCRYPTION_KEY_BYTES:
            raise ValueError(
                f"ENCRYPTION_KEY must be {ENCRYPTION_KEY_BYTES} bytes "
                f"({ENCRYPTION_KEY_BYTES * 2} hex characters). "
                "Generate one with: python -c 'import secrets; print(secrets.token_hex(32))'"
            )
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url(self) -> str:
        """Catalog URL for the asyncpg driver (pooled access)."""
        return _to_async_url(str(self.database_url))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url_direct(self) -> str:
        """Catalog URL for the asyncpg driver (direct access)."""
        return _to_async_url(str(self.database_url_direct))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Raises:
        ConfigurationError: If a required variable is missing or invalid
    """
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as e:
        missing = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise ConfigurationError(
            "Invalid or missing configuration",
            details={"fields": missing},
        ) from e
