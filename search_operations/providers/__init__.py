"""
Providers Module

This module provides interfaces and implementations for external providers:
embedding generation and the vector and keyword retrieval backends.
"""

from .embedding import (
    EmbeddingProvider,
    EmbeddingResult
)

from .keyword import RpcKeywordSearchService

from .milvus_vector import (
    MilvusVectorSearchService,
    build_filter_expression,
    normalize_vector,
)

__all__ = [
    # Base interfaces
    "EmbeddingProvider",
    "EmbeddingResult",

    # Keyword backend
    "RpcKeywordSearchService",

    # Vector backend
    "MilvusVectorSearchService",
    "build_filter_expression",
    "normalize_vector",
]
