"""
Services for the Dota Fantasy backend.

The importer and the background import service are imported from their
modules directly (dotafantasy.services.importer, .import_service) since
they depend on the provider clients, which depend on the cache service.
"""

from dotafantasy.services.cache import CacheService, get_cache_service

__all__ = ["CacheService", "get_cache_service"]
