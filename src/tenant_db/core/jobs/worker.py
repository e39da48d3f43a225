"""ARQ worker configuration for the provisioning queue.

Settings are read at start-up rather than import time, so the worker is
built from a function instead of a module-level settings class.

Run the worker with:
    tenantctl worker
"""

from typing import Any

import structlog
from arq import func
from arq.worker import run_worker

from tenant_db.config import Settings
from tenant_db.core.constants import (
    PROVISION_JOB_ATTEMPTS,
    PROVISION_JOB_KEEP_COMPLETED_AGE_SECONDS,
    PROVISION_JOB_NAME,
)
from tenant_db.core.jobs.tasks import provision_tenant
from tenant_db.core.jobs.utils import get_redis_settings


async def startup(ctx: dict[str, Any]) -> None:
    """Create the lifecycle manager shared by all jobs.

    Args:
        ctx: Worker context dict (shared across all jobs)
    """
    # Imported here: the manager module imports the jobs package.
    from tenant_db.modules.tenants.manager import TenantLifecycleManager

    settings: Settings = ctx["settings"]
    log = structlog.get_logger()
    log.info("worker_startup", environment=settings.environment)

    ctx["tenant_manager"] = await TenantLifecycleManager.create(settings)

    log.info("worker_startup_complete", queue=settings.queue_tenant_provisioning)


async def shutdown(ctx: dict[str, Any]) -> None:
    """Release the lifecycle manager's connections.

    Args:
        ctx: Worker context dict
    """
    log = structlog.get_logger()
    log.info("worker_shutdown")

    manager = ctx.get("tenant_manager")
    if manager is not None:
        await manager.close()

    log.info("worker_shutdown_complete")


def worker_settings(settings: Settings) -> dict[str, Any]:
    """Build ARQ worker settings.

    Args:
        settings: Application settings

    Returns:
        Keyword arguments for arq's Worker
    """
    return {
        "functions": [func(provision_tenant, name=PROVISION_JOB_NAME)],
        "queue_name": settings.queue_tenant_provisioning,
        "redis_settings": get_redis_settings(str(settings.redis_url)),
        "on_startup": startup,
        "on_shutdown": shutdown,
        "ctx": {"settings": settings},
        "max_jobs": 10,  # Maximum concurrent jobs
        "job_timeout": 600,  # 10 minutes per job
        "keep_result": PROVISION_JOB_KEEP_COMPLETED_AGE_SECONDS,
        "retry_jobs": True,
        "max_tries": PROVISION_JOB_ATTEMPTS,
    }


def run(settings: Settings) -> None:
    """Run the worker until interrupted."""
    run_worker(worker_settings(settings))  # type: ignore[arg-type]
