"""Two-tier tenant caching.

Provides:
- Redis client connection management
- TenantCache: distributed cache of decrypted tenant records
- ClientCache: bounded local cache of pooled tenant engines
"""

from tenant_db.core.cache.client_cache import ClientCache
from tenant_db.core.cache.redis import close_redis_pool, create_redis_client, get_pool
from tenant_db.core.cache.tenant_cache import TenantCache


__all__ = [
    "ClientCache",
    "TenantCache",
    "close_redis_pool",
    "create_redis_client",
    "get_pool",
]
