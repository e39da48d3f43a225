"""Distributed cache for decrypted tenant records (tier 1).

Keys are ``tenant:{organization_id}:metadata`` with a fixed TTL. Redis
is an optimization here, never a dependency: every Redis failure is
logged and treated as a miss or a no-op.
"""

import json
from typing import Any

import redis.asyncio as redis
import structlog

from tenant_db.core.constants import TENANT_CACHE_PREFIX, TENANT_CACHE_TTL_SECONDS
from tenant_db.modules.tenants.schemas import DecryptedTenant


log = structlog.get_logger()


class TenantCache:
    """Redis-backed cache of tenant records keyed by organization."""

    def __init__(
        self,
        client: redis.Redis,  # type: ignore[type-arg]
        ttl_seconds: int = TENANT_CACHE_TTL_SECONDS,
        prefix: str = TENANT_CACHE_PREFIX,
    ) -> None:
        """Initialize the cache.

        Args:
            client: Redis client (decode_responses enabled)
            ttl_seconds: Lifetime of each entry
            prefix: Key prefix shared by all tenant entries
        """
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    def _key(self, organization_id: str) -> str:
        return f"{self.prefix}{organization_id}:metadata"

    @property
    def _pattern(self) -> str:
        return f"{self.prefix}*:metadata"

    async def get(self, organization_id: str) -> DecryptedTenant | None:
        """Get a cached tenant.

        Returns:
            The cached record, or None on a miss or any Redis error
        """
        try:
            cached = await self.client.get(self._key(organization_id))
            if not cached:
                return None
            return DecryptedTenant.model_validate_json(cached)
        except Exception as e:
            log.warning(
                "tenant_cache_get_failed",
                organization_id=organization_id,
                error=str(e),
            )
            return None

    async def set(self, tenant: DecryptedTenant) -> None:
        """Cache a tenant record under its organization."""
        try:
            await self.client.setex(
                self._key(tenant.organization_id),
                self.ttl_seconds,
                json.dumps(tenant.to_cache()),
            )
        except Exception as e:
            log.warning(
                "tenant_cache_set_failed",
                organization_id=tenant.organization_id,
                error=str(e),
            )

    async def invalidate(self, organization_id: str) -> None:
        """Drop the cached record for one organization."""
        try:
            await self.client.delete(self._key(organization_id))
        except Exception as e:
            log.warning(
                "tenant_cache_invalidate_failed",
                organization_id=organization_id,
                error=str(e),
            )

    async def invalidate_all(self) -> int:
        """Drop every cached tenant record.

        Returns:
            Number of keys removed (0 on error)
        """
        try:
            keys = [key async for key in self.client.scan_iter(match=self._pattern)]
            if not keys:
                return 0
            return await self.client.delete(*keys)
        except Exception as e:
            log.warning("tenant_cache_invalidate_all_failed", error=str(e))
            return 0

    async def get_stats(self) -> dict[str, Any]:
        """Key count and Redis memory usage, for monitoring."""
        try:
            keys = [key async for key in self.client.scan_iter(match=self._pattern)]
            info = await self.client.info("memory")
            return {
                "total_keys": len(keys),
                "memory_used": str(info.get("used_memory_human", "unknown")),
            }
        except Exception as e:
            log.warning("tenant_cache_stats_failed", error=str(e))
            return {"total_keys": 0, "memory_used": "unknown"}
