"""In-memory caching service with TTL support."""

import threading
from typing import Any, Optional

from cachetools import TTLCache

from dotafantasy import config

CACHE_TYPES = ("wikitext", "parse", "stratz")


class CacheService:
    """Thread-safe in-memory cache of provider responses, one store per provider call type."""

    def __init__(self, ttl: Optional[int] = None) -> None:
        """Initialize cache stores.

        Args:
            ttl: Seconds an entry stays valid (default: CACHE_TTL_SECONDS)
        """
        ttl = config.CACHE_TTL_SECONDS if ttl is None else ttl

        # Raw page wikitext (Liquipedia action=query)
        self._wikitext_cache: TTLCache = TTLCache(maxsize=500, ttl=ttl)
        # Rendered/parsed results (Liquipedia action=parse, page images)
        self._parse_cache: TTLCache = TTLCache(maxsize=500, ttl=ttl)
        # GraphQL responses
        self._stratz_cache: TTLCache = TTLCache(maxsize=200, ttl=ttl)

        # Lock for thread safety
        self._lock = threading.RLock()

    def _get_cache(self, cache_type: str) -> TTLCache:
        """Get the appropriate cache based on type."""
        caches = {
            "wikitext": self._wikitext_cache,
            "parse": self._parse_cache,
            "stratz": self._stratz_cache,
        }
        if cache_type not in caches:
            raise ValueError(f"Unknown cache type: {cache_type}")
        return caches[cache_type]

    def get(self, key: str, cache_type: str = "wikitext") -> Optional[Any]:
        """Get a value from the cache.

        Args:
            key: The cache key
            cache_type: Type of cache (wikitext, parse, stratz)

        Returns:
            Cached value or None if not found/expired
        """
        with self._lock:
            return self._get_cache(cache_type).get(key)

    def set(self, key: str, value: Any, cache_type: str = "wikitext") -> None:
        """Set a value in the cache."""
        with self._lock:
            self._get_cache(cache_type)[key] = value

    def delete(self, key: str, cache_type: str = "wikitext") -> bool:
        """Delete a value from the cache.

        Returns:
            True if key was deleted, False if not found
        """
        with self._lock:
            cache = self._get_cache(cache_type)
            if key in cache:
                del cache[key]
                return True
            return False

    def clear(self, cache_type: Optional[str] = None) -> None:
        """Clear cache(s).

        Args:
            cache_type: Type of cache to clear, or None to clear all
        """
        with self._lock:
            if cache_type:
                self._get_cache(cache_type).clear()
            else:
                for name in CACHE_TYPES:
                    self._get_cache(name).clear()

    def stats(self) -> dict[str, dict[str, int]]:
        """Get cache statistics.

        Returns:
            Dictionary with size and maxsize for each cache type
        """
        with self._lock:
            return {
                name: {
                    "size": len(self._get_cache(name)),
                    "maxsize": self._get_cache(name).maxsize,
                }
                for name in CACHE_TYPES
            }


# Global cache instance
_cache_service: Optional[CacheService] = None
_cache_lock = threading.Lock()


def get_cache_service() -> CacheService:
    """Get the global cache service instance."""
    global _cache_service
    with _cache_lock:
        if _cache_service is None:
            _cache_service = CacheService()
        return _cache_service
