"""
Fallback Module

This module runs the two retrieval backends and reports each invocation as
an explicit outcome. The vector path is the primary signal and its failure
is fatal; the keyword path degrades to an empty result list so hybrid search
can continue vector-only.
"""

import time
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar

from ....config.base import ResultSource
from ....core.base import (
    KeywordSearchService,
    RawKeywordResult,
    RawSearchResult,
    VectorSearchService,
)
from ....core.search_ops_exceptions import (
    HybridSearchError,
    SearchError,
    SearchTimeoutError,
)
from ..utils.metrics import SearchStatus

logger = logging.getLogger(__name__)

T = TypeVar("T", RawSearchResult, RawKeywordResult)


@dataclass
class BackendOutcome(Generic[T]):
    """
    Outcome of one backend invocation.

    Attributes:
        source: Which retrieval path this outcome belongs to
        status: SUCCESS, DEGRADED (failed or timed out, results empty) or SKIPPED
        results: Backend results, best first
        elapsed_ms: Wall-clock time spent in the backend
        error: Description of the failure when degraded
    """
    source: ResultSource
    status: SearchStatus
    results: List[T] = field(default_factory=list)
    elapsed_ms: float = 0.0
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.status == SearchStatus.DEGRADED

    @classmethod
    def skipped(cls, source: ResultSource) -> "BackendOutcome[T]":
        return cls(source=source, status=SearchStatus.SKIPPED)


async def execute_vector_search(
    service: VectorSearchService,
    query: str,
    tenant_id: str,
    filters: Dict[str, Any],
    limit: int,
    timeout: float
) -> BackendOutcome[RawSearchResult]:
    """
    Run the vector search.

    Raises:
        SearchTimeoutError: If the backend does not answer within `timeout`
        HybridSearchError: If the backend fails
    """
    start = time.perf_counter()
    try:
        results = await asyncio.wait_for(
            service.search(query, tenant_id, filters, limit),
            timeout=timeout
        )
    except asyncio.TimeoutError as e:
        logger.error(f"Vector search timed out after {timeout:.2f}s for tenant {tenant_id}")
        raise SearchTimeoutError(
            f"Vector search timed out after {timeout:.2f} seconds"
        ) from e
    except SearchError as e:
        logger.error(f"Vector search failed with SearchError: {str(e)}")
        raise HybridSearchError(f"Vector search failed: {str(e)}") from e
    except Exception as e:
        logger.error(f"Vector search failed with unexpected error: {str(e)}")
        raise HybridSearchError(f"Vector search failed: {str(e)}") from e

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.debug(f"Vector search returned {len(results)} results in {elapsed_ms:.2f}ms")
    return BackendOutcome(
        source=ResultSource.VECTOR,
        status=SearchStatus.SUCCESS,
        results=list(results),
        elapsed_ms=elapsed_ms,
    )


async def execute_keyword_search(
    service: KeywordSearchService,
    prepared_query: str,
    tenant_id: str,
    filters: Dict[str, Any],
    limit: int,
    timeout: float
) -> BackendOutcome[RawKeywordResult]:
    """
    Run the keyword search, degrading on any failure.

    Never raises for backend errors or timeouts; cancellation still
    propagates.
    """
    start = time.perf_counter()

    if timeout <= 0:
        logger.warning("No time left for keyword search, continuing vector-only")
        return BackendOutcome(
            source=ResultSource.KEYWORD,
            status=SearchStatus.DEGRADED,
            error="search timeout exhausted before keyword search",
        )

    try:
        results = await asyncio.wait_for(
            service.search(prepared_query, tenant_id, filters, limit),
            timeout=timeout
        )
    except asyncio.TimeoutError:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.warning(
            f"Keyword search timed out after {timeout:.2f}s, "
            f"falling back to vector-only results"
        )
        return BackendOutcome(
            source=ResultSource.KEYWORD,
            status=SearchStatus.DEGRADED,
            elapsed_ms=elapsed_ms,
            error=f"timed out after {timeout:.2f} seconds",
        )
    except Exception as e:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.warning(
            f"Keyword search failed: {str(e)}, falling back to vector-only results"
        )
        return BackendOutcome(
            source=ResultSource.KEYWORD,
            status=SearchStatus.DEGRADED,
            elapsed_ms=elapsed_ms,
            error=str(e),
        )

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.debug(f"Keyword search returned {len(results)} results in {elapsed_ms:.2f}ms")
    return BackendOutcome(
        source=ResultSource.KEYWORD,
        status=SearchStatus.SUCCESS,
        results=list(results),
        elapsed_ms=elapsed_ms,
    )


class FallbackManager:
    """
    Tracks how often hybrid search runs in degraded mode.
    """

    def __init__(self):
        self.fallback_count = 0
        self.total_operations = 0

    def observe(self, keyword_outcome: BackendOutcome) -> None:
        if keyword_outcome.status == SearchStatus.SKIPPED:
            return
        self.total_operations += 1
        if keyword_outcome.degraded:
            self.fallback_count += 1
            logger.warning(
                f"Operating in degraded mode - "
                f"fallback rate: {self.get_fallback_rate():.2%}"
            )

    def get_fallback_rate(self) -> float:
        """
        Get the rate of degraded keyword invocations.

        Returns:
            Fallback rate as a float between 0 and 1
        """
        if self.total_operations == 0:
            return 0.0
        return self.fallback_count / self.total_operations

    def get_stats(self) -> dict:
        return {
            "fallback_count": self.fallback_count,
            "total_operations": self.total_operations,
            "fallback_rate": self.get_fallback_rate(),
        }
