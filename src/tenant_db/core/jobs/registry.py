"""Job registry and enqueueing utilities.

Provides a single ARQ pool per process and the producer side of the
provisioning queue.
"""

from datetime import timedelta
from typing import Any
from uuid import uuid4

import structlog
from arq import ArqRedis, create_pool

from tenant_db.core.constants import PROVISION_JOB_NAME
from tenant_db.core.jobs.schemas import (
    PROVISION_TENANT_JOB_OPTIONS,
    JobOptions,
    ProvisionTenantJob,
)
from tenant_db.core.jobs.utils import get_redis_settings


log = structlog.get_logger()


class ArqPoolHolder:
    """Holder for the ARQ connection pool.

    Uses a class attribute to manage module-level state without
    global statements.
    """

    pool: ArqRedis | None = None


async def init_arq_pool(redis_url: str) -> ArqRedis:
    """Initialize the ARQ connection pool.

    Args:
        redis_url: Redis connection URL

    Returns:
        ARQ Redis pool
    """
    if ArqPoolHolder.pool is None:
        ArqPoolHolder.pool = await create_pool(get_redis_settings(redis_url))
    return ArqPoolHolder.pool


async def get_arq_pool() -> ArqRedis:
    """Get the ARQ connection pool.

    Raises:
        RuntimeError: If pool not initialized
    """
    if ArqPoolHolder.pool is None:
        raise RuntimeError("ARQ pool not initialized. Call init_arq_pool() first.")
    return ArqPoolHolder.pool


async def close_arq_pool() -> None:
    """Close the ARQ connection pool."""
    if ArqPoolHolder.pool is not None:
        await ArqPoolHolder.pool.close()
        ArqPoolHolder.pool = None


async def enqueue(
    job_name: str,
    *args: Any,
    _defer_by: timedelta | None = None,
    _job_id: str | None = None,
    _queue_name: str | None = None,
    **kwargs: Any,
) -> Any:
    """Enqueue a background job.

    Args:
        job_name: Name of the job function to run
        *args: Positional arguments for the job
        _defer_by: Delay execution by this duration
        _job_id: Custom job ID (for deduplication)
        _queue_name: Queue to enqueue on
        **kwargs: Keyword arguments for the job

    Returns:
        Job instance, or None if a job with the same ID already exists
    """
    pool = await get_arq_pool()
    return await pool.enqueue_job(
        job_name,
        *args,
        _defer_by=_defer_by,
        _job_id=_job_id,
        _queue_name=_queue_name,
        **kwargs,
    )


class ProvisioningQueue:
    """Producer for the provision-tenant job.

    The retry and retention policy travels with each job, so the worker
    applies exactly what the producer asked for.
    """

    def __init__(
        self,
        queue_name: str,
        options: JobOptions = PROVISION_TENANT_JOB_OPTIONS,
    ) -> None:
        self.queue_name = queue_name
        self.options = options

    async def add(self, job: ProvisionTenantJob) -> str:
        """Enqueue one provisioning job.

        Args:
            job: Job payload

        Returns:
            The job ID

        Raises:
            RuntimeError: If the queue rejected the job
        """
        job_id = uuid4().hex
        enqueued = await enqueue(
            PROVISION_JOB_NAME,
            job.model_dump(),
            options=self.options.model_dump(),
            _job_id=job_id,
            _queue_name=self.queue_name,
        )
        if enqueued is None:
            raise RuntimeError(f"Job {job_id} was not enqueued")
        log.info(
            "provisioning_job_enqueued",
            job_id=job_id,
            queue=self.queue_name,
            organization_id=job.organization_id,
        )
        return job_id
