"""Process-local cache of pooled tenant engines (tier 2).

Each engine owns a real connection pool, so the cache is bounded: at
most ``max_entries`` engines, least recently used first out, and an idle
TTL that is refreshed on every access. Engines leaving the cache are
disposed so their connections are closed.
"""

import asyncio
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine

from tenant_db.core.constants import CLIENT_CACHE_MAX_ENTRIES, CLIENT_CACHE_TTL_SECONDS


log = structlog.get_logger()


@dataclass
class CachedEngine:
    """An engine with its idle deadline."""

    engine: AsyncEngine
    expires_at: float

    @property
    def is_expired(self) -> bool:
        return time.monotonic() > self.expires_at


class ClientCache:
    """LRU cache of AsyncEngine keyed by decrypted connection string.

    Two tenants sharing identical credentials share one engine.

    Example:
        cache = ClientCache(create_pooled_engine)
        engine = await cache.get_or_create(connection_string)
    """

    def __init__(
        self,
        engine_factory: Callable[[str], AsyncEngine],
        max_entries: int = CLIENT_CACHE_MAX_ENTRIES,
        ttl_seconds: float = CLIENT_CACHE_TTL_SECONDS,
    ) -> None:
        """Initialize the cache.

        Args:
            engine_factory: Creates a pooled engine for a connection string
            max_entries: Maximum number of cached engines
            ttl_seconds: Idle lifetime, refreshed on access
        """
        self.engine_factory = engine_factory
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._entries: OrderedDict[str, CachedEngine] = OrderedDict()
        self._lock = asyncio.Lock()

    async def get_or_create(self, connection_string: str) -> AsyncEngine:
        """Return the cached engine for a connection string, creating it if needed.

        The lookup, creation and insertion happen under one lock, so
        concurrent callers never build two engines for the same key.
        """
        async with self._lock:
            await self._purge_expired()

            entry = self._entries.get(connection_string)
            if entry is not None:
                entry.expires_at = time.monotonic() + self.ttl_seconds
                self._entries.move_to_end(connection_string)
                return entry.engine

            engine = self.engine_factory(connection_string)
            self._entries[connection_string] = CachedEngine(
                engine=engine,
                expires_at=time.monotonic() + self.ttl_seconds,
            )
            while len(self._entries) > self.max_entries:
                _, evicted = self._entries.popitem(last=False)
                await self._dispose(evicted.engine, reason="evicted")
            return engine

    async def discard(self, connection_string: str) -> bool:
        """Remove and dispose one engine.

        Returns:
            True if an engine was cached for the key
        """
        async with self._lock:
            entry = self._entries.pop(connection_string, None)
            if entry is None:
                return False
            await self._dispose(entry.engine, reason="discarded")
            return True

    async def close(self) -> None:
        """Dispose every cached engine."""
        async with self._lock:
            while self._entries:
                _, entry = self._entries.popitem(last=False)
                await self._dispose(entry.engine, reason="closed")

    @property
    def size(self) -> int:
        return len(self._entries)

    def __contains__(self, connection_string: object) -> bool:
        return connection_string in self._entries

    async def _purge_expired(self) -> None:
        """Drop idle entries (caller must hold the lock)."""
        expired = [key for key, entry in self._entries.items() if entry.is_expired]
        for key in expired:
            entry = self._entries.pop(key)
            await self._dispose(entry.engine, reason="expired")

    async def _dispose(self, engine: AsyncEngine, reason: str) -> None:
        try:
            await engine.dispose()
        except Exception as e:
            log.warning("tenant_engine_dispose_failed", reason=reason, error=str(e))
        else:
            log.debug("tenant_engine_disposed", reason=reason)
