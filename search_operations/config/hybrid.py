"""
Hybrid Query Configuration

This module defines the process-wide configuration of the hybrid query
engine: fusion weights and algorithm, backend caps, timeouts and caching.
"""

from dataclasses import dataclass, asdict, replace
from typing import Any, Dict

from retrieval_ops_exceptions import ConfigurationError

from .base import FusionAlgorithm


@dataclass(frozen=True)
class HybridQueryConfig:
    """
    Configuration for the hybrid query engine.

    Instances are immutable; runtime changes go through `updated()`, which
    returns a new validated instance so a bad update never replaces a good
    configuration.

    Attributes:
        vector_weight: Weight for vector similarity scores (0-1)
        keyword_weight: Weight for keyword scores (0-1), need not sum to 1 with vector_weight
        max_vector_results: Maximum results requested from the vector backend
        max_keyword_results: Maximum results requested from the keyword backend
        final_result_limit: Number of results returned when the request gives no limit
        fusion_algorithm: Ranking fusion method
        rrf_constant: RRF k constant
        search_timeout: Bound on the combined backend wait, in seconds
        enable_parallel_search: Run vector and keyword searches concurrently
        cache_results: Enable result caching
        cache_ttl: Cache TTL in seconds
        enable_query_analysis: Attach query type and complexity to responses
        keyword_threshold: Keyword-signal threshold used by query analysis (0-1)
        memory_cache_size: Slot budget of the in-process cache tier
    """
    vector_weight: float = 0.7
    keyword_weight: float = 0.3
    max_vector_results: int = 50
    max_keyword_results: int = 50
    final_result_limit: int = 20
    fusion_algorithm: FusionAlgorithm = FusionAlgorithm.ADAPTIVE
    rrf_constant: float = 60.0
    search_timeout: float = 10.0
    enable_parallel_search: bool = True
    cache_results: bool = True
    cache_ttl: int = 300
    enable_query_analysis: bool = True
    keyword_threshold: float = 0.5
    memory_cache_size: int = 100

    def __post_init__(self):
        """Validate configuration after initialization"""
        try:
            algorithm = FusionAlgorithm(self.fusion_algorithm)
        except ValueError as e:
            raise ConfigurationError(
                f"Unknown fusion algorithm: {self.fusion_algorithm!r}"
            ) from e
        object.__setattr__(self, "fusion_algorithm", algorithm)

        for name in ("vector_weight", "keyword_weight", "keyword_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be between 0 and 1, got {value}")

        for name in (
            "max_vector_results",
            "max_keyword_results",
            "final_result_limit",
            "memory_cache_size",
        ):
            value = getattr(self, name)
            if value < 1:
                raise ConfigurationError(f"{name} must be at least 1, got {value}")

        if self.final_result_limit > 100:
            raise ConfigurationError(
                f"final_result_limit must not exceed 100, got {self.final_result_limit}"
            )
        if self.rrf_constant <= 0:
            raise ConfigurationError(f"rrf_constant must be positive, got {self.rrf_constant}")
        if self.search_timeout <= 0:
            raise ConfigurationError(f"search_timeout must be positive, got {self.search_timeout}")
        if self.cache_ttl <= 0:
            raise ConfigurationError(f"cache_ttl must be positive, got {self.cache_ttl}")

    def updated(self, **changes: Any) -> "HybridQueryConfig":
        """
        Return a copy with the given fields replaced.

        Raises:
            ConfigurationError: If a field is unknown or a value is out of range
        """
        unknown = set(changes) - set(self.__dataclass_fields__)
        if unknown:
            raise ConfigurationError(f"Unknown configuration fields: {sorted(unknown)}")
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["fusion_algorithm"] = self.fusion_algorithm.value
        return data
