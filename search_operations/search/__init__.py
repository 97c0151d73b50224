"""
Search Implementations Module

This module contains the hybrid search implementation with result fusion,
fault tolerance, caching and statistics.
"""

from .hybrid import (
    HybridQueryEngine,
    create_hybrid_query_engine,
    get_default_hybrid_query_config,
    fuse_results,
    analyze_query,
    prepare_search_query,
    HybridResultCache,
    KeyValueStore,
    RedisKeyValueStore,
    HybridSearchMetrics,
    HybridSearchStats,
    SearchStatus,
    FallbackManager,
)

__all__ = [
    "HybridQueryEngine",
    "create_hybrid_query_engine",
    "get_default_hybrid_query_config",
    "fuse_results",
    "analyze_query",
    "prepare_search_query",
    "HybridResultCache",
    "KeyValueStore",
    "RedisKeyValueStore",
    "HybridSearchMetrics",
    "HybridSearchStats",
    "SearchStatus",
    "FallbackManager",
]
