"""
Catalog Cache
=============
Tenant-keyed cache of field catalogs with LRU eviction and TTL.

Catalogs depend only on a tenant's flow definitions, so the caller owns
invalidation: whoever changes a tenant's flows must call ``invalidate``.
"""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Dict, List, Optional

from config.settings import settings
from models.flows import KnownField

logger = logging.getLogger(__name__)


@dataclass
class CatalogEntry:
    """A cached catalog with its expiry time"""
    catalog: List[KnownField]
    expires_at: float
    hits: int = 0

    @property
    def is_expired(self) -> bool:
        return time.time() > self.expires_at


class CatalogCache:
    """
    Thread-safe LRU cache of field catalogs keyed by tenant id.
    Disabled caches store nothing and always miss.
    """

    def __init__(
        self,
        enabled: Optional[bool] = None,
        max_size: Optional[int] = None,
        ttl_seconds: Optional[int] = None,
    ):
        self._enabled = settings.cache.enable_cache if enabled is None else enabled
        self._max_size = max_size or settings.cache.max_cache_size
        self._ttl = settings.cache.cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._entries: "OrderedDict[str, CatalogEntry]" = OrderedDict()
        self._lock = Lock()
        self._stats = {
            'hits': 0,
            'misses': 0,
            'evictions': 0,
            'expirations': 0
        }

    @property
    def enabled(self) -> bool:
        return self._enabled

    def get(self, tenant_id: str) -> Optional[List[KnownField]]:
        """Cached catalog for a tenant, or None"""
        if not self._enabled:
            return None

        with self._lock:
            entry = self._entries.get(tenant_id)
            if entry is None:
                self._stats['misses'] += 1
                return None

            if entry.is_expired:
                del self._entries[tenant_id]
                self._stats['expirations'] += 1
                self._stats['misses'] += 1
                logger.debug(f"Catalog for tenant '{tenant_id}' expired")
                return None

            self._entries.move_to_end(tenant_id)
            self._stats['hits'] += 1
            entry.hits += 1
            return entry.catalog

    def put(self, tenant_id: str, catalog: List[KnownField], ttl_seconds: Optional[int] = None) -> None:
        """Store a tenant's catalog, evicting the least recently used tenants when full"""
        if not self._enabled:
            return

        ttl = self._ttl if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._entries.pop(tenant_id, None)
            while len(self._entries) >= self._max_size:
                evicted, _ = self._entries.popitem(last=False)
                self._stats['evictions'] += 1
                logger.debug(f"Evicted catalog for tenant '{evicted}'")
            self._entries[tenant_id] = CatalogEntry(catalog=list(catalog), expires_at=time.time() + ttl)

        logger.info(f"Cached catalog for tenant '{tenant_id}' ({len(catalog)} fields)")

    def get_or_build(self, tenant_id: str, factory: Callable[[], List[KnownField]]) -> List[KnownField]:
        """Get the tenant's catalog or build and cache it"""
        catalog = self.get(tenant_id)
        if catalog is not None:
            return catalog
        catalog = factory()
        self.put(tenant_id, catalog)
        return catalog

    def invalidate(self, tenant_id: str) -> bool:
        """Drop a tenant's catalog after its flow definitions changed"""
        with self._lock:
            removed = self._entries.pop(tenant_id, None) is not None
        if removed:
            logger.info(f"Invalidated catalog for tenant '{tenant_id}'")
        return removed

    def clear(self) -> int:
        """Drop every cached catalog, return how many were dropped"""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    @property
    def stats(self) -> Dict[str, Any]:
        """Get cache statistics"""
        with self._lock:
            total_requests = self._stats['hits'] + self._stats['misses']
            return {
                'enabled': self._enabled,
                **self._stats,
                'size': len(self._entries),
                'max_size': self._max_size,
                'ttl_seconds': self._ttl,
                'hit_rate': self._stats['hits'] / total_requests if total_requests > 0 else 0.0,
            }


# Singleton instance
_catalog_cache: Optional[CatalogCache] = None


def get_catalog_cache() -> CatalogCache:
    """Get the catalog cache instance"""
    global _catalog_cache
    if _catalog_cache is None:
        _catalog_cache = CatalogCache()
    return _catalog_cache
