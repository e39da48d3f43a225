"""Worker side of the provision-tenant job."""

import json
from datetime import UTC, datetime
from typing import Any

import structlog
from arq import Retry

from tenant_db.core.constants import PROVISION_JOB_NAME, PROVISIONING_EVENTS_CHANNEL
from tenant_db.core.errors import ConfigurationError
from tenant_db.core.jobs.retention import record_outcome
from tenant_db.core.jobs.schemas import (
    PROVISION_TENANT_JOB_OPTIONS,
    JobOptions,
    ProvisionTenantJob,
)


log = structlog.get_logger()


async def _report(
    ctx: dict[str, Any],
    job: ProvisionTenantJob,
    step: str,
    progress: int,
    error: str | None = None,
) -> None:
    """Publish a progress event and store it on the tenant row.

    Progress is informational, so failures here are logged and ignored.
    """
    event = {
        "jobId": ctx.get("job_id"),
        "organizationId": job.organization_id,
        "step": step,
        "progress": progress,
        "attempt": ctx.get("job_try", 1),
        "timestamp": datetime.now(UTC).isoformat(),
    }
    if error is not None:
        event["error"] = error

    try:
        await ctx["redis"].publish(PROVISIONING_EVENTS_CHANNEL, json.dumps(event))
    except Exception as e:
        log.warning("provisioning_event_publish_failed", step=step, error=str(e))

    try:
        await ctx["tenant_manager"].update_provisioning_details(
            job.organization_id,
            current_step=step,
            progress=progress,
            error=error,
        )
    except Exception as e:
        log.warning("provisioning_details_update_failed", step=step, error=str(e))


async def provision_tenant(
    ctx: dict[str, Any],
    payload: dict[str, Any],
    options: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Complete the physical provisioning of one tenant.

    Failed attempts are retried with the job's backoff until its attempts
    are used up; the last failure is raised so ARQ records the job as
    failed. Configuration errors are never retried.

    Args:
        ctx: Worker context (redis, tenant_manager, job_id, job_try)
        payload: ProvisionTenantJob fields
        options: JobOptions fields chosen by the producer

    Returns:
        Tenant ID and final status
    """
    job = ProvisionTenantJob.model_validate(payload)
    job_options = JobOptions.model_validate(options) if options else PROVISION_TENANT_JOB_OPTIONS
    job_id = ctx.get("job_id", "")
    attempt = ctx.get("job_try", 1)

    log.info(
        "provisioning_job_started",
        job_id=job_id,
        organization_id=job.organization_id,
        slug=job.organization_slug,
        attempt=attempt,
        max_attempts=job_options.attempts,
    )
    await _report(ctx, job, "provisioning", 10)

    try:
        tenant = await ctx["tenant_manager"].complete_tenant_provisioning(job.organization_id)
    except ConfigurationError:
        await record_outcome(
            ctx["redis"], PROVISION_JOB_NAME, job_id, "failed", job_options.remove_on_fail
        )
        raise
    except Exception as e:
        if attempt < job_options.attempts:
            delay = job_options.backoff.delay_seconds(attempt)
            log.warning(
                "provisioning_job_retrying",
                job_id=job_id,
                organization_id=job.organization_id,
                attempt=attempt,
                retry_in_seconds=delay,
                error=str(e),
            )
            await _report(ctx, job, "retrying", 0, error=str(e))
            raise Retry(defer=delay) from e

        log.error(
            "provisioning_job_failed",
            job_id=job_id,
            organization_id=job.organization_id,
            attempts=attempt,
            error=str(e),
        )
        await _report(ctx, job, "failed", 0, error=str(e))
        await record_outcome(
            ctx["redis"], PROVISION_JOB_NAME, job_id, "failed", job_options.remove_on_fail
        )
        raise

    await _report(ctx, job, "completed", 100)
    await record_outcome(
        ctx["redis"], PROVISION_JOB_NAME, job_id, "completed", job_options.remove_on_complete
    )
    log.info(
        "provisioning_job_complete",
        job_id=job_id,
        tenant_id=str(tenant.id),
        slug=tenant.slug,
    )
    return {"tenant_id": str(tenant.id), "status": tenant.status.value}
