"""Background job processing with ARQ.

Provides the provision-tenant job contract:
- ProvisioningQueue for producers
- provision_tenant task and worker settings for consumers
"""

from tenant_db.core.jobs.registry import (
    ProvisioningQueue,
    close_arq_pool,
    enqueue,
    get_arq_pool,
    init_arq_pool,
)
from tenant_db.core.jobs.schemas import (
    PROVISION_TENANT_JOB_OPTIONS,
    JobOptions,
    ProvisionTenantJob,
)


__all__ = [
    "PROVISION_TENANT_JOB_OPTIONS",
    "JobOptions",
    "ProvisionTenantJob",
    "ProvisioningQueue",
    "close_arq_pool",
    "enqueue",
    "get_arq_pool",
    "init_arq_pool",
]
