"""
Search Operations Module

This module provides hybrid retrieval over a vector backend and a keyword
backend:
- Parallel or sequential backend invocation under a time budget
- Weighted, Reciprocal Rank and adaptive result fusion
- Vector-only degradation when keyword search fails
- Two-tier result caching (in-process LRU and Redis)
- Query preparation and analysis
- Running search statistics and health checks
"""

__version__ = "0.1.0"

# Core exports
from .core import (
    RawSearchResult,
    RawKeywordResult,
    FusedResult,
    SearchResponseMetadata,
    HybridSearchResponse,
    VectorSearchService,
    KeywordSearchService,
    SearchError,
    InvalidSearchParametersError,
    EmbeddingGenerationError,
    SearchTimeoutError,
    HybridSearchError,
    VectorSearchError,
    KeywordSearchError,
    FusionError,
)

# Configuration exports
from .config import (
    SearchStrategy,
    FusionAlgorithm,
    ResultSource,
    QueryType,
    QueryIntent,
    HybridQueryConfig,
    HybridSearchRequest,
)

# Provider exports
from .providers import (
    EmbeddingProvider,
    EmbeddingResult,
    RpcKeywordSearchService,
    MilvusVectorSearchService,
)

# Search implementation exports
from .search import (
    HybridQueryEngine,
    create_hybrid_query_engine,
    get_default_hybrid_query_config,
    HybridResultCache,
    KeyValueStore,
    RedisKeyValueStore,
    HybridSearchMetrics,
    HybridSearchStats,
)

__all__ = [
    "__version__",

    # Core
    "RawSearchResult",
    "RawKeywordResult",
    "FusedResult",
    "SearchResponseMetadata",
    "HybridSearchResponse",
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

    # Configuration
    "SearchStrategy",
    "FusionAlgorithm",
    "ResultSource",
    "QueryType",
    "QueryIntent",
    "HybridQueryConfig",
    "HybridSearchRequest",

    # Providers
    "EmbeddingProvider",
    "EmbeddingResult",
    "RpcKeywordSearchService",
    "MilvusVectorSearchService",

    # Search implementation
    "HybridQueryEngine",
    "create_hybrid_query_engine",
    "get_default_hybrid_query_config",
    "HybridResultCache",
    "KeyValueStore",
    "RedisKeyValueStore",
    "HybridSearchMetrics",
    "HybridSearchStats",
]
