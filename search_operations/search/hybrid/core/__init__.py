"""
Hybrid Search Core Module

This module provides the core functionality for hybrid search operations,
including the query engine, query preparation and analysis, and result fusion.
"""

from .engine import (
    HybridQueryEngine,
    create_hybrid_query_engine,
    get_default_hybrid_query_config,
)
from .fusion import (
    calculate_adaptive_score,
    calculate_fusion_score,
    calculate_rrf_score,
    calculate_weighted_score,
    fuse_results,
)
from .query import (
    QueryAnalysis,
    QueryFeatures,
    analyze_query,
    analyze_query_complexity,
    detect_query_intent,
    prepare_search_query,
)

__all__ = [
    "HybridQueryEngine",
    "create_hybrid_query_engine",
    "get_default_hybrid_query_config",
    "calculate_adaptive_score",
    "calculate_fusion_score",
    "calculate_rrf_score",
    "calculate_weighted_score",
    "fuse_results",
    "QueryAnalysis",
    "QueryFeatures",
    "analyze_query",
    "analyze_query_complexity",
    "detect_query_intent",
    "prepare_search_query",
]
