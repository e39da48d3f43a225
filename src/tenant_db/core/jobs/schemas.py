"""Job payloads and queue options."""

from typing import Literal

from pydantic import BaseModel, Field

from tenant_db.core.constants import (
    PROVISION_JOB_ATTEMPTS,
    PROVISION_JOB_BACKOFF_MS,
    PROVISION_JOB_KEEP_COMPLETED,
    PROVISION_JOB_KEEP_COMPLETED_AGE_SECONDS,
    PROVISION_JOB_KEEP_FAILED,
)


class BackoffOptions(BaseModel):
    """Delay between attempts, in milliseconds."""

    type: Literal["exponential", "fixed"] = "exponential"
    delay: int = Field(PROVISION_JOB_BACKOFF_MS, ge=0)

    def delay_seconds(self, attempt: int) -> float:
        """Delay before the attempt following ``attempt`` (1-indexed).

        Example:
            BackoffOptions(delay=2000).delay_seconds(2)  # 4.0
        """
        if self.type == "fixed":
            return self.delay / 1000
        return self.delay * 2 ** (attempt - 1) / 1000


class RetentionOptions(BaseModel):
    """How many stored job results to keep, and for how long (seconds)."""

    count: int = Field(..., ge=0)
    age: int | None = None


class JobOptions(BaseModel):
    """Retry and retention policy attached to an enqueued job."""

    attempts: int = Field(PROVISION_JOB_ATTEMPTS, ge=1)
    backoff: BackoffOptions = Field(default_factory=BackoffOptions)
    remove_on_complete: RetentionOptions = Field(
        default_factory=lambda: RetentionOptions(
            count=PROVISION_JOB_KEEP_COMPLETED,
            age=PROVISION_JOB_KEEP_COMPLETED_AGE_SECONDS,
        )
    )
    remove_on_fail: RetentionOptions = Field(
        default_factory=lambda: RetentionOptions(count=PROVISION_JOB_KEEP_FAILED)
    )


class ProvisionTenantJob(BaseModel):
    """Payload of the provision-tenant job."""

    organization_id: str
    organization_name: str
    organization_slug: str
    owner_id: str = ""


PROVISION_TENANT_JOB_OPTIONS = JobOptions()
