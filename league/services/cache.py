"""
Caching utilities for data feed responses.

Keeps parsed feed payloads for a short while so that loading several views in
a row does not refetch every file.
"""
from django.core.cache import caches
import hashlib
import json
import logging

from league.conf import get_setting

logger = logging.getLogger(__name__)


class ResponseCache:
    """
    Caching for feed responses on top of the Django cache framework.

    Keys are deterministic per source, identifier and data mode, so demo and
    live payloads never collide.
    """

    def __init__(self, cache_name=None):
        """
        Args:
            cache_name: Name of cache backend from settings.CACHES
                (default: the ``CACHE_ALIAS`` league setting)
        """
        self._cache_name = cache_name

    @property
    def cache_name(self):
        return self._cache_name or get_setting("CACHE_ALIAS")

    @property
    def cache(self):
        return caches[self.cache_name]

    def get_cache_key(self, source, identifier, **kwargs):
        """
        Generate deterministic cache key from source and identifier.

        Examples:
            get_cache_key('feed', 'data/matches.json', mode='demo')
            # Returns: 'feed:data/matches.json:abc123...'
        """
        key_data = {
            'source': source,
            'identifier': identifier,
            **kwargs
        }

        key_string = json.dumps(key_data, sort_keys=True)
        key_hash = hashlib.md5(key_string.encode()).hexdigest()[:12]

        return f"{source}:{identifier}:{key_hash}"

    def get_ttl(self):
        return get_setting("FEED_CACHE_SECONDS")

    def get(self, source, identifier, **kwargs):
        """Returns the cached payload or None on a miss."""
        key = self.get_cache_key(source, identifier, **kwargs)
        data = self.cache.get(key)

        if data is not None:
            logger.debug(f"Cache HIT: {key}")
        else:
            logger.debug(f"Cache MISS: {key}")

        return data

    def set(self, source, identifier, data, ttl=None, **kwargs):
        key = self.get_cache_key(source, identifier, **kwargs)
        cache_ttl = ttl if ttl is not None else self.get_ttl()

        self.cache.set(key, data, cache_ttl)
        logger.debug(f"Cached {key} for {cache_ttl}s (backend: {self.cache_name})")

    def invalidate(self, source, identifier, **kwargs):
        """
        Manually invalidate specific cache entry.

        Returns:
            bool: True if key existed and was deleted
        """
        key = self.get_cache_key(source, identifier, **kwargs)
        result = self.cache.delete(key)

        if result:
            logger.info(f"Invalidated cache: {key}")
        else:
            logger.debug(f"Cache key not found: {key}")

        return bool(result)


response_cache = ResponseCache()
