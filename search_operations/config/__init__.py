"""
Search Configuration Module

This module provides configuration classes for hybrid search,
including enums, the engine configuration and request validation models.
"""

from .base import (
    SearchStrategy,
    FusionAlgorithm,
    ResultSource,
    QueryType,
    QueryIntent,
)
from .hybrid import HybridQueryConfig
from .validation import HybridSearchRequest

__all__ = [
    # Enums
    "SearchStrategy",
    "FusionAlgorithm",
    "ResultSource",
    "QueryType",
    "QueryIntent",

    # Engine config
    "HybridQueryConfig",

    # Validation
    "HybridSearchRequest",
]
