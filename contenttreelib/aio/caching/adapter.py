"""
Caching plugin registry for ContentTreeLib.

Plugin metadata changes only when plugins are installed or removed, yet
the engine consults it after every structural change. This wrapper keeps
registry answers in a TTL cache so reconciliation stays cheap.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

from cachetools import TTLCache

from ..core import PluginInfo, PluginRegistry


class CachingPluginRegistry(PluginRegistry):
    """
    Optional caching layer for any plugin registry.

    Concurrent lookups of the same key share one in-flight request
    through a Future, so a burst of reconciliations after a bulk clone
    does not fan out into duplicate registry calls.

    Example:
        registry = CachingPluginRegistry(StaticPluginRegistry(plugins), ttl=60)
        engine = ContentTreeEngine(store, registry, translator)
    """

    def __init__(
        self,
        base_registry: PluginRegistry,
        max_size: int = 1000,
        ttl: float = 300.0  # 5 minutes
    ):
        """
        Initialize caching registry.

        Args:
            base_registry: The underlying registry to wrap
            max_size: Maximum number of entries in cache
            ttl: Time-to-live for cache entries in seconds
        """
        self._registry = base_registry
        self._cache = TTLCache(maxsize=max_size, ttl=ttl)
        self._lookups_in_progress: Dict[Any, asyncio.Future] = {}

        # Statistics
        self.cache_hits = 0
        self.cache_misses = 0
        self.concurrent_waits = 0

    async def list_extensions(self) -> List[str]:
        return list(await self._cached(('extensions',), self._registry.list_extensions))

    async def schemas_for_plugin(self, plugin: str) -> List[str]:
        return list(await self._cached(
            ('schemas', plugin), lambda: self._registry.schemas_for_plugin(plugin)
        ))

    async def target_type_of_schema(self, schema: str) -> Optional[str]:
        return await self._cached(
            ('target', schema), lambda: self._registry.target_type_of_schema(schema)
        )

    async def get_plugin(self, name: str) -> Optional[PluginInfo]:
        return await self._cached(('plugin', name), lambda: self._registry.get_plugin(name))

    async def _cached(self, cache_key: Any, fetch: Callable[[], Awaitable[Any]]) -> Any:
        """
        Resolve a key through the cache.

        1. Join a lookup already in progress for the key
        2. Serve from the cache
        3. Otherwise fetch, cache and share the result
        """
        if cache_key in self._lookups_in_progress:
            self.concurrent_waits += 1
            return await asyncio.shield(self._lookups_in_progress[cache_key])

        if cache_key in self._cache:
            self.cache_hits += 1
            return self._cache[cache_key]

        self.cache_misses += 1
        future = asyncio.get_running_loop().create_future()
        self._lookups_in_progress[cache_key] = future
        try:
            result = await fetch()
            self._cache[cache_key] = result
            future.set_result(result)
            return result
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved so an unawaited failure is not reported by the loop
            future.exception()
            raise
        finally:
            del self._lookups_in_progress[cache_key]

    def get_cache_stats(self) -> dict:
        """
        Get cache statistics for monitoring and debugging.
        """
        total_requests = self.cache_hits + self.cache_misses
        hit_rate = self.cache_hits / total_requests if total_requests > 0 else 0

        return {
            'cache_hits': self.cache_hits,
            'cache_misses': self.cache_misses,
            'hit_rate': hit_rate,
            'concurrent_waits': self.concurrent_waits,
            'cache_size': len(self._cache),
            'max_size': self._cache.maxsize,
            'ttl': self._cache.ttl
        }

    def clear_cache(self) -> None:
        """
        Clear all cached entries.
        """
        self._cache.clear()
        self.cache_hits = 0
        self.cache_misses = 0
        self.concurrent_waits = 0
