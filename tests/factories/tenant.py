"""Factories for tenant test data."""

from typing import Any
from uuid import UUID, uuid4

from polyfactory.factories.pydantic_factory import ModelFactory

from tenant_db.core.crypto import CredentialVault
from tenant_db.modules.tenants.enums import TenantStatus, TenantTier
from tenant_db.modules.tenants.models import DatabaseHost, Tenant
from tenant_db.modules.tenants.schemas import ProvisionTenantParams
from tenant_db.modules.tenants.utils import build_connection_string, generate_database_name


class ProvisionTenantParamsFactory(ModelFactory[ProvisionTenantParams]):
    """Factory for generating provisioning requests."""

    __model__ = ProvisionTenantParams

    @classmethod
    def organization_id(cls) -> str:
        return str(uuid4())

    @classmethod
    def name(cls) -> str:
        """Generate a company name."""
        return f"{cls.__faker__.company()} {cls.__faker__.company_suffix()}"

    @classmethod
    def slug(cls) -> str:
        """Generate a valid slug."""
        return f"{cls.__faker__.slug()}-{uuid4().hex[:6]}"

    @classmethod
    def tier(cls) -> TenantTier:
        return TenantTier.SHARED

    @classmethod
    def database_host_id(cls) -> UUID | None:
        return None

    @classmethod
    def owner_id(cls) -> str | None:
        return None

    @classmethod
    def metadata(cls) -> dict[str, Any] | None:
        return None


def make_tenant(
    vault: CredentialVault,
    host: DatabaseHost,
    status: TenantStatus = TenantStatus.ACTIVE,
    slug: str | None = None,
    password: str = "tenant-pw",
    **overrides: Any,
) -> Tenant:
    """Build a tenant row with a sealed connection string."""
    organization_id = overrides.pop("organization_id", str(uuid4()))
    database_name = generate_database_name(organization_id)
    port = overrides.pop("port", host.port)
    sealed = vault.encrypt(
        build_connection_string(
            host=host.host,
            port=port,
            database=database_name,
            user="postgres",
            password=password,
        )
    )
    values: dict[str, Any] = {
        "id": uuid4(),
        "organization_id": organization_id,
        "slug": slug or f"tenant-{uuid4().hex[:8]}",
        "name": "Test Tenant",
        "database_name": database_name,
        "connection_string_encrypted": sealed.ciphertext,
        "connection_string_iv": sealed.iv,
        "connection_string_tag": sealed.tag,
        "database_host_id": host.id,
        "host": host.host,
        "port": port,
        "region": host.region,
        "tier": TenantTier.SHARED.value,
        "status": status.value,
        "metadata_": None,
    }
    values.update(overrides)
    return Tenant(**values)


def reseal(tenant: Tenant, vault: CredentialVault, connection_string: str) -> None:
    """Replace a tenant's sealed connection string in place."""
    sealed = vault.encrypt(connection_string)
    tenant.connection_string_encrypted = sealed.ciphertext
    tenant.connection_string_iv = sealed.iv
    tenant.connection_string_tag = sealed.tag
