"""Helpers for ARQ configuration."""

from arq.connections import RedisSettings


def get_redis_settings(redis_url: str) -> RedisSettings:
    """Build ARQ Redis settings from a redis:// URL.

    Args:
        redis_url: Redis connection URL (host, port, password and db)

    Returns:
        ARQ RedisSettings instance
    """
    return RedisSettings.from_dsn(redis_url)
