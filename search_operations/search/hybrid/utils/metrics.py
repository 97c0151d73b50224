"""
Metrics Module

This module provides metrics tracking for hybrid search operations:
status enumerations, per-request metrics, and a running-aggregate
statistics tracker whose memory use does not grow with request volume.
"""

import time
import asyncio
import logging
from enum import Enum
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Optional

from ....config.base import SearchStrategy

logger = logging.getLogger(__name__)


class SearchStatus(Enum):
    """
    Enumeration of search operation states.

    Used to track the final status of search operations and of each
    backend invocation for monitoring and observability purposes.
    """
    SUCCESS = "success"
    FAILURE = "failure"
    TIMEOUT = "timeout"
    DEGRADED = "degraded"
    SKIPPED = "skipped"


@dataclass
class HybridSearchMetrics:
    """
    Metrics for a single hybrid search request.

    Attributes:
        query_hash: Hash of the query for identification
        tenant_id: Tenant the request was scoped to
        search_strategy: Strategy used for the request
        vector_search_time_ms: Time taken by the vector backend
        keyword_search_time_ms: Time taken by the keyword backend
        fusion_time_ms: Time taken for result fusion
        total_time_ms: Total end-to-end time
        vector_results: Number of results from the vector backend
        keyword_results: Number of results from the keyword backend
        results_count: Number of results returned
        top_fusion_score: Fusion score of the best result (0 when empty)
        status: Final status of the search operation
        error_message: Error message if search failed
        cache_hit: Whether the response came from the result cache
        timestamp: Unix timestamp when search was initiated
    """
    query_hash: str
    tenant_id: str = ""
    search_strategy: str = SearchStrategy.HYBRID.value
    vector_search_time_ms: float = 0.0
    keyword_search_time_ms: float = 0.0
    fusion_time_ms: float = 0.0
    total_time_ms: float = 0.0
    vector_results: int = 0
    keyword_results: int = 0
    results_count: int = 0
    top_fusion_score: float = 0.0
    status: SearchStatus = SearchStatus.SUCCESS
    error_message: Optional[str] = None
    cache_hit: bool = False
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert metrics to dictionary format.

        Returns:
            Dictionary representation of metrics
        """
        return {
            "query_hash": self.query_hash,
            "tenant_id": self.tenant_id,
            "search_strategy": self.search_strategy,
            "vector_search_time_ms": round(self.vector_search_time_ms, 2),
            "keyword_search_time_ms": round(self.keyword_search_time_ms, 2),
            "fusion_time_ms": round(self.fusion_time_ms, 2),
            "total_time_ms": round(self.total_time_ms, 2),
            "vector_results": self.vector_results,
            "keyword_results": self.keyword_results,
            "results_count": self.results_count,
            "top_fusion_score": self.top_fusion_score,
            "status": self.status.value,
            "error_message": self.error_message,
            "cache_hit": self.cache_hit,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class HybridSearchStats:
    """
    Point-in-time snapshot of hybrid search statistics.

    `total_searches` counts every successful request, cache hits included.
    The per-stage averages only cover requests that actually ran the
    backends (`executed_searches`).
    """
    total_searches: int = 0
    average_processing_time_ms: float = 0.0
    average_result_count: float = 0.0
    cache_hit_rate: float = 0.0
    vector_only_searches: int = 0
    keyword_only_searches: int = 0
    hybrid_searches: int = 0
    executed_searches: int = 0
    average_vector_time_ms: float = 0.0
    average_keyword_time_ms: float = 0.0
    average_fusion_time_ms: float = 0.0
    average_fusion_score: float = 0.0
    degraded_searches: int = 0
    failed_searches: int = 0
    cache_size: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def running_mean(current: float, count: int, sample: float) -> float:
    """Incremental mean: (current * count + sample) / (count + 1)"""
    return (current * count + sample) / (count + 1)


class HybridSearchStatsTracker:
    """
    Concurrency-safe running aggregates for hybrid search.

    Every update is a running-mean step, so no per-request history is kept.
    Mutations are serialized through an asyncio lock.
    """

    def __init__(self):
        self._lock = asyncio.Lock()
        self._reset_values()

    def _reset_values(self) -> None:
        self._total = 0
        self._avg_processing_ms = 0.0
        self._avg_result_count = 0.0
        self._cache_hit_rate = 0.0
        self._strategy_counts = {
            SearchStrategy.VECTOR: 0,
            SearchStrategy.KEYWORD: 0,
            SearchStrategy.HYBRID: 0,
        }
        self._executed = 0
        self._avg_vector_ms = 0.0
        self._avg_keyword_ms = 0.0
        self._avg_fusion_ms = 0.0
        self._avg_fusion_score = 0.0
        self._degraded = 0
        self._failed = 0

    async def record(self, metrics: HybridSearchMetrics) -> None:
        """
        Fold one completed request into the aggregates.

        Failed and timed-out requests only increment the failure counter.
        """
        async with self._lock:
            if metrics.status in (SearchStatus.FAILURE, SearchStatus.TIMEOUT):
                self._failed += 1
                return

            n = self._total
            self._avg_processing_ms = running_mean(self._avg_processing_ms, n, metrics.total_time_ms)
            self._avg_result_count = running_mean(self._avg_result_count, n, metrics.results_count)
            self._cache_hit_rate = running_mean(self._cache_hit_rate, n, 1.0 if metrics.cache_hit else 0.0)
            self._total = n + 1

            strategy = SearchStrategy(metrics.search_strategy)
            if strategy in self._strategy_counts:
                self._strategy_counts[strategy] += 1

            if metrics.cache_hit:
                return

            m = self._executed
            self._avg_vector_ms = running_mean(self._avg_vector_ms, m, metrics.vector_search_time_ms)
            self._avg_keyword_ms = running_mean(self._avg_keyword_ms, m, metrics.keyword_search_time_ms)
            self._avg_fusion_ms = running_mean(self._avg_fusion_ms, m, metrics.fusion_time_ms)
            self._avg_fusion_score = running_mean(self._avg_fusion_score, m, metrics.top_fusion_score)
            self._executed = m + 1

            if metrics.status == SearchStatus.DEGRADED:
                self._degraded += 1

    async def snapshot(self, cache_size: int = 0) -> HybridSearchStats:
        async with self._lock:
            return HybridSearchStats(
                total_searches=self._total,
                average_processing_time_ms=self._avg_processing_ms,
                average_result_count=self._avg_result_count,
                cache_hit_rate=self._cache_hit_rate,
                vector_only_searches=self._strategy_counts[SearchStrategy.VECTOR],
                keyword_only_searches=self._strategy_counts[SearchStrategy.KEYWORD],
                hybrid_searches=self._strategy_counts[SearchStrategy.HYBRID],
                executed_searches=self._executed,
                average_vector_time_ms=self._avg_vector_ms,
                average_keyword_time_ms=self._avg_keyword_ms,
                average_fusion_time_ms=self._avg_fusion_ms,
                average_fusion_score=self._avg_fusion_score,
                degraded_searches=self._degraded,
                failed_searches=self._failed,
                cache_size=cache_size,
            )

    async def reset(self) -> None:
        async with self._lock:
            self._reset_values()
        logger.info("Hybrid search statistics reset")
