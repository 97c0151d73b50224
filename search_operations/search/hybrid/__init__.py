"""
Hybrid Search Module

This module provides the hybrid query engine combining semantic vector search
with full-text keyword search, with result fusion, vector-only degradation,
result caching and running statistics.
"""

from .core.engine import (
    HybridQueryEngine,
    create_hybrid_query_engine,
    get_default_hybrid_query_config,
)
from .core.fusion import fuse_results
from .core.query import analyze_query, prepare_search_query
from .cache import HybridResultCache, KeyValueStore, RedisKeyValueStore
from .utils.metrics import HybridSearchMetrics, HybridSearchStats, SearchStatus
from .resilience import FallbackManager

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
