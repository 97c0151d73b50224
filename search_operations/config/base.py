"""
Base Search Configuration

This module defines the enums shared by hybrid search configuration,
requests and responses.
"""

from enum import Enum


class SearchStrategy(str, Enum):
    """Enumeration of request-level search strategies"""
    AUTO = "auto"        # Engine decides (resolves to hybrid)
    VECTOR = "vector"    # Dense vector search only
    KEYWORD = "keyword"  # Full-text keyword search only
    HYBRID = "hybrid"    # Vector + keyword, fused


class FusionAlgorithm(str, Enum):
    """Enumeration of supported fusion algorithms"""
    RRF = "rrf"            # Reciprocal Rank Fusion
    WEIGHTED = "weighted"  # Weighted score fusion
    ADAPTIVE = "adaptive"  # Fixed blend of weighted and RRF


class ResultSource(str, Enum):
    """Retrieval path that produced a result"""
    VECTOR = "vector"
    KEYWORD = "keyword"


class QueryType(str, Enum):
    """Detected query type"""
    SEMANTIC = "semantic"
    KEYWORD = "keyword"
    MIXED = "mixed"


class QueryIntent(str, Enum):
    """Detected query intent"""
    SEARCH = "search"
    QUESTION = "question"
    COMMAND = "command"
    FILTER = "filter"
