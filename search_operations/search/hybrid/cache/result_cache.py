"""
Hybrid Result Cache

This module provides the two-tier response cache used by the hybrid query
engine: a bounded in-process LRU tier and an optional external key-value
tier. Both tiers enforce the same TTL, and the cache is best-effort: store
failures are logged and never reach the caller. Responses are copied on the
way in and out, so callers never share objects with the cache.
"""

import copy
import json
import time
import asyncio
import hashlib
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ....config.hybrid import HybridQueryConfig
from ....config.validation import HybridSearchRequest
from ....core.base import HybridSearchResponse
from .kv_store import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 100


def build_cache_key(
    request: HybridSearchRequest,
    config: HybridQueryConfig,
    limit: int
) -> str:
    """
    Derive a deterministic cache key for a request under a configuration.

    The fusion settings are part of the key, so changing the algorithm or
    weights makes previously cached responses unreachable.

    Args:
        request: Validated search request
        config: Active engine configuration
        limit: Effective result limit for the request

    Returns:
        Hex SHA-256 digest of the canonical JSON of the cache-relevant fields
    """
    cache_data = {
        "query": request.query,
        "tenant_id": request.tenant_id,
        "filters": request.filters,
        "search_strategy": request.search_strategy.value,
        "limit": limit,
        "config": {
            "fusion_algorithm": config.fusion_algorithm.value,
            "vector_weight": config.vector_weight,
            "keyword_weight": config.keyword_weight,
            "rrf_constant": config.rrf_constant,
        },
    }
    canonical = json.dumps(cache_data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass
class CacheEntry:
    """A cached response and its absolute expiry time (epoch seconds)."""
    response: HybridSearchResponse
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def to_json(self) -> str:
        return json.dumps(
            {"expires_at": self.expires_at, "response": self.response.to_dict()},
            default=str,
        )

    @classmethod
    def from_json(cls, payload: str) -> "CacheEntry":
        data = json.loads(payload)
        return cls(
            response=HybridSearchResponse.from_dict(data["response"]),
            expires_at=float(data["expires_at"]),
        )


class HybridResultCache:
    """
    Two-tier cache of hybrid search responses.

    The in-process tier is an LRU map: a hit moves the key to the most
    recent end and inserts beyond `max_entries` evict the least recently used
    key. Entries from the external tier are promoted into the in-process tier
    with their original expiry.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        kv_store: Optional[KeyValueStore] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the result cache.

        Args:
            max_entries: Slot budget of the in-process tier
            kv_store: Optional external key-value tier
            clock: Time source in epoch seconds
        """
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")

        self.max_entries = max_entries
        self.kv_store = kv_store
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = asyncio.Lock()

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._store_errors = 0

        logger.info(
            f"HybridResultCache initialized - "
            f"max_entries: {max_entries}, "
            f"external_store: {type(kv_store).__name__ if kv_store else 'none'}"
        )

    @property
    def size(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Optional[HybridSearchResponse]:
        """
        Look up a response.

        Returns:
            The cached response, or None on miss, expiry or store failure
        """
        now = self._clock()

        async with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                if entry.is_expired(now):
                    del self._entries[key]
                    logger.debug(f"Expired in-process cache entry removed: {key[:12]}")
                else:
                    self._entries.move_to_end(key)
                    self._hits += 1
                    return copy.deepcopy(entry.response)

        entry = await self._get_external(key, now)
        if entry is None:
            async with self._lock:
                self._misses += 1
            return None

        async with self._lock:
            self._insert(key, entry)
            self._hits += 1
        return copy.deepcopy(entry.response)

    async def put(self, key: str, response: HybridSearchResponse, ttl_seconds: int) -> None:
        """Store a response in both tiers for `ttl_seconds`."""
        if ttl_seconds <= 0:
            logger.warning(f"Refusing to cache with non-positive TTL: {ttl_seconds}")
            return

        entry = CacheEntry(
            response=copy.deepcopy(response),
            expires_at=self._clock() + ttl_seconds
        )

        if self.kv_store is not None:
            try:
                await self.kv_store.put(key, entry.to_json(), ttl_seconds)
            except Exception as e:
                self._store_errors += 1
                logger.error(f"External cache write failed for key {key[:12]}: {str(e)}")

        async with self._lock:
            self._insert(key, entry)

    async def clear_local(self) -> int:
        """Empty the in-process tier only, leaving the shared external tier intact."""
        async with self._lock:
            cleared = len(self._entries)
            self._entries.clear()
        return cleared

    async def clear(self) -> None:
        """Empty the in-process tier and, where supported, the external tier."""
        cleared = await self.clear_local()

        if self.kv_store is not None:
            try:
                await self.kv_store.clear()
            except Exception as e:
                self._store_errors += 1
                logger.error(f"External cache clear failed: {str(e)}")

        logger.info(f"Hybrid result cache cleared - in-process entries removed: {cleared}")

    async def resize(self, max_entries: int) -> None:
        """Change the in-process slot budget, evicting LRU entries if it shrinks."""
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")

        async with self._lock:
            self.max_entries = max_entries
            self._evict_overflow()

    def _insert(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry
        self._entries.move_to_end(key)
        self._evict_overflow()

    def _evict_overflow(self) -> None:
        while len(self._entries) > self.max_entries:
            evicted_key, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug(f"Evicted least recently used cache entry: {evicted_key[:12]}")

    async def _get_external(self, key: str, now: float) -> Optional[CacheEntry]:
        if self.kv_store is None:
            return None

        try:
            payload = await self.kv_store.get(key)
        except Exception as e:
            self._store_errors += 1
            logger.error(f"External cache read failed for key {key[:12]}: {str(e)}")
            return None

        if not payload:
            return None

        try:
            entry = CacheEntry.from_json(payload)
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Discarding undecodable cache entry {key[:12]}: {str(e)}")
            return None

        if entry.is_expired(now):
            logger.debug(f"External cache entry expired: {key[:12]}")
            return None
        return entry

    def get_stats(self) -> Dict[str, Any]:
        lookups = self._hits + self._misses
        return {
            "size": len(self._entries),
            "max_entries": self.max_entries,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / lookups if lookups else 0.0,
            "evictions": self._evictions,
            "store_errors": self._store_errors,
        }
