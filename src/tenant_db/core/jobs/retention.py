"""Bounded retention of stored job results.

ARQ expires results by age only. Count limits are kept with one sorted
set per job name and outcome: the oldest results beyond the limit are
deleted together with their result keys.
"""

import time

from arq import ArqRedis
from arq.constants import result_key_prefix

from tenant_db.core.jobs.schemas import RetentionOptions


def retention_key(job_name: str, outcome: str) -> str:
    return f"arq:retention:{job_name}:{outcome}"


async def record_outcome(
    redis: ArqRedis,
    job_name: str,
    job_id: str,
    outcome: str,
    retention: RetentionOptions,
) -> int:
    """Track a finished job and trim the oldest beyond ``retention.count``.

    Args:
        redis: ARQ Redis connection
        job_name: Job function name
        job_id: ID of the finished job
        outcome: "completed" or "failed"
        retention: Retention policy for this outcome

    Returns:
        Number of job results removed
    """
    key = retention_key(job_name, outcome)
    await redis.zadd(key, {job_id: time.time()})

    excess = await redis.zcard(key) - retention.count
    if excess <= 0:
        return 0

    popped = await redis.zpopmin(key, excess)
    job_ids = [
        member.decode() if isinstance(member, bytes) else member for member, _ in popped
    ]
    if job_ids:
        await redis.delete(*(result_key_prefix + jid for jid in job_ids))
    return len(job_ids)
