"""
Retrieval Operations Exceptions

This module defines the root exceptions for the retrieval_ops package
to provide clear error handling and reporting.
"""

class RetrievalOpsError(Exception):
    """Base exception for all retrieval_ops errors"""
    pass


class ConfigurationError(RetrievalOpsError):
    """Raised when configuration is invalid or missing"""
    pass


class QueryError(RetrievalOpsError):
    """Raised when a query operation fails"""
    pass


class CacheStoreError(RetrievalOpsError):
    """Raised when an external cache store operation fails"""
    pass


class OperationTimeoutError(RetrievalOpsError):
    """Raised when an operation times out"""
    pass
