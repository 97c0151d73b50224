"""
Result Cache Module

This module provides the two-tier response cache for hybrid search and the
external key-value store it can write through to.
"""

from .kv_store import KeyValueStore, RedisKeyValueStore
from .result_cache import CacheEntry, HybridResultCache, build_cache_key

__all__ = [
    "KeyValueStore",
    "RedisKeyValueStore",
    "CacheEntry",
    "HybridResultCache",
    "build_cache_key",
]
