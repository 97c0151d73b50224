"""
Search Operations Exceptions

This module defines custom exceptions for hybrid retrieval operations,
providing clear error handling and reporting for search-related issues.
"""

from retrieval_ops_exceptions import OperationTimeoutError, QueryError


class SearchError(QueryError):
    """Base exception for all search-related errors"""
    pass


class InvalidSearchParametersError(SearchError):
    """Raised when search parameters are invalid"""
    pass


class EmbeddingGenerationError(SearchError):
    """Raised when embedding generation fails"""
    pass


class SearchTimeoutError(SearchError, OperationTimeoutError):
    """Raised when a search operation times out"""
    pass


class HybridSearchError(SearchError):
    """Raised when hybrid search fails"""
    pass


class VectorSearchError(SearchError):
    """Raised when the vector search backend fails"""
    pass


class KeywordSearchError(SearchError):
    """Raised when the keyword search backend fails"""
    pass


class FusionError(SearchError):
    """Raised when result fusion fails or produces an inconsistent result"""
    pass
