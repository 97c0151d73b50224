"""
Utilities Module

This module provides utility classes and functions for hybrid search
operations, including metrics tracking and request validation.
"""

from .metrics import (
    SearchStatus,
    HybridSearchMetrics,
    HybridSearchStats,
    HybridSearchStatsTracker,
)
from .validation import (
    build_search_request,
    resolve_search_strategy,
    resolve_result_limit,
)

__all__ = [
    "SearchStatus",
    "HybridSearchMetrics",
    "HybridSearchStats",
    "HybridSearchStatsTracker",
    "build_search_request",
    "resolve_search_strategy",
    "resolve_result_limit",
]
