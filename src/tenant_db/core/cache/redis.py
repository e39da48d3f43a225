"""Redis client configuration and connection management.

One connection pool per process, shared by the tenant metadata cache
and the provisioning progress publisher.
"""

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool


# Connection pool for efficient connection reuse
_pool: ConnectionPool | None = None


def get_pool(redis_url: str) -> ConnectionPool:
    """Get or create the Redis connection pool.

    Args:
        redis_url: Redis connection URL

    Returns:
        The process-wide connection pool
    """
    global _pool
    if _pool is None:
        _pool = ConnectionPool.from_url(
            redis_url,
            max_connections=50,
            decode_responses=True,
        )
    return _pool


def create_redis_client(redis_url: str) -> redis.Redis:  # type: ignore[type-arg]
    """Create a Redis client bound to the shared pool."""
    return redis.Redis(connection_pool=get_pool(redis_url))


async def close_redis_pool() -> None:
    """Close the Redis connection pool.

    Call this during process shutdown.
    """
    global _pool
    if _pool is not None:
        await _pool.disconnect()
        _pool = None
