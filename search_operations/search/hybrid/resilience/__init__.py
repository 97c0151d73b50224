"""
Resilience Module

This module provides the degrade-or-fail policy for the retrieval backends
used by hybrid search.
"""

from .fallback import (
    BackendOutcome,
    FallbackManager,
    execute_keyword_search,
    execute_vector_search,
)

__all__ = [
    "BackendOutcome",
    "FallbackManager",
    "execute_keyword_search",
    "execute_vector_search",
]
