"""
Core Search Operations Module

This module provides the core types for hybrid retrieval: result and
response types, backend interfaces, and exceptions.
"""

from .base import (
    RawSearchResult,
    RawKeywordResult,
    FusedResult,
    SearchResponseMetadata,
    HybridSearchResponse,
    VectorSearchService,
    KeywordSearchService,
)
from .search_ops_exceptions import (
    SearchError,
    InvalidSearchParametersError,
    EmbeddingGenerationError,
    SearchTimeoutError,
    HybridSearchError,
    VectorSearchError,
    KeywordSearchError,
    FusionError,
)

__all__ = [
    # Results
    "RawSearchResult",
    "RawKeywordResult",
    "FusedResult",
    "SearchResponseMetadata",
    "HybridSearchResponse",

    # Backend interfaces
    "VectorSearchService",
    "KeywordSearchService",

    # Exceptions
    "SearchError",
    "InvalidSearchParametersError",
    "EmbeddingGenerationError",
    "SearchTimeoutError",
    "HybridSearchError",
    "VectorSearchError",
    "KeywordSearchError",
    "FusionError",
]
