"""
Hybrid Query Engine

This module provides the hybrid query engine: it combines semantic vector
search with full-text keyword search for one tenant, fuses the two ranked
lists, and serves repeated requests from a two-tier result cache while
keeping running statistics.
"""

import time
import asyncio
import logging
from dataclasses import replace
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from ....config.base import ResultSource, SearchStrategy
from ....config.hybrid import HybridQueryConfig
from ....config.validation import HybridSearchRequest
from ....core.base import (
    HybridSearchResponse,
    KeywordSearchService,
    RawKeywordResult,
    RawSearchResult,
    SearchResponseMetadata,
    VectorSearchService,
)
from ....core.search_ops_exceptions import (
    HybridSearchError,
    InvalidSearchParametersError,
    SearchError,
    SearchTimeoutError,
)
from ..cache.kv_store import KeyValueStore
from ..cache.result_cache import HybridResultCache, build_cache_key
from ..resilience.fallback import (
    BackendOutcome,
    FallbackManager,
    execute_keyword_search,
    execute_vector_search,
)
from ..utils.metrics import (
    HybridSearchMetrics,
    HybridSearchStats,
    HybridSearchStatsTracker,
    SearchStatus,
)
from ..utils.validation import (
    build_search_request,
    resolve_result_limit,
    resolve_search_strategy,
)
from .fusion import fuse_results
from .query import analyze_query, prepare_search_query

logger = logging.getLogger(__name__)

HEALTH_CHECK_QUERY = "health check test"
HEALTH_CHECK_TENANT = "test"

SearchRequestLike = Union[HybridSearchRequest, Mapping[str, Any]]


class HybridQueryEngine:
    """
    Hybrid vector + keyword query engine.

    Features:
    - Parallel or sequential backend invocation under one timeout budget
    - Weighted, RRF and adaptive result fusion with provenance
    - Vector-only degradation when the keyword backend fails
    - Two-tier result caching keyed by request and fusion configuration
    - Running statistics and a synthetic health check

    The engine owns its configuration, cache and statistics; create one per
    host application and pass it to its consumers.
    """

    def __init__(
        self,
        vector_search: VectorSearchService,
        keyword_search: KeywordSearchService,
        config: Optional[HybridQueryConfig] = None,
        kv_store: Optional[KeyValueStore] = None,
        cache: Optional[HybridResultCache] = None,
        metrics_callback: Optional[Callable[[HybridSearchMetrics], None]] = None
    ):
        """
        Initialize the hybrid query engine.

        Args:
            vector_search: Semantic search backend
            keyword_search: Full-text search backend
            config: Engine configuration (defaults if not provided)
            kv_store: Optional external cache tier, ignored when `cache` is given
            cache: Pre-built result cache
            metrics_callback: Optional callback receiving per-request metrics
        """
        self._vector_search = vector_search
        self._keyword_search = keyword_search
        self._config = config or HybridQueryConfig()
        self._cache = cache or HybridResultCache(
            max_entries=self._config.memory_cache_size,
            kv_store=kv_store
        )
        self._stats = HybridSearchStatsTracker()
        self._fallback = FallbackManager()
        self.metrics_callback = metrics_callback

        logger.info(
            f"HybridQueryEngine initialized - "
            f"fusion: {self._config.fusion_algorithm.value}, "
            f"weights: (vector={self._config.vector_weight}, keyword={self._config.keyword_weight}), "
            f"parallel: {self._config.enable_parallel_search}, "
            f"caching: {self._config.cache_results}"
        )

    async def search(self, request: SearchRequestLike) -> HybridSearchResponse:
        """
        Perform a hybrid search.

        Args:
            request: HybridSearchRequest or a mapping of its fields

        Returns:
            HybridSearchResponse with fused results and metadata

        Raises:
            InvalidSearchParametersError: If the request is malformed
            SearchTimeoutError: If the vector search times out
            HybridSearchError: If the vector search fails
            FusionError: If fusion fails
        """
        return await self._search(request, use_cache=True)

    async def _search(self, request: SearchRequestLike, use_cache: bool) -> HybridSearchResponse:
        start = time.perf_counter()
        config = self._config
        metrics = HybridSearchMetrics(query_hash="")

        try:
            search_request = build_search_request(request)
            strategy = resolve_search_strategy(search_request.search_strategy)
            limit = resolve_result_limit(search_request, config)

            metrics.query_hash = str(hash(search_request.query))
            metrics.tenant_id = search_request.tenant_id
            metrics.search_strategy = strategy.value

            cache_key = None
            if use_cache and config.cache_results:
                cache_key = build_cache_key(search_request, config, limit)
                cached = await self._cache.get(cache_key)
                if cached is not None:
                    response = self._serve_cached(cached, start, metrics)
                    logger.debug(
                        f"Cache hit - tenant: {search_request.tenant_id}, "
                        f"results: {len(response.results)}"
                    )
                    return self._shape_response(response, search_request)

            response = await self._execute(search_request, strategy, limit, config, start, metrics)

            if cache_key is not None and not response.metadata.degraded:
                await self._cache.put(cache_key, response, config.cache_ttl)

            return self._shape_response(response, search_request)

        except InvalidSearchParametersError as e:
            metrics.status = SearchStatus.FAILURE
            metrics.error_message = str(e)
            logger.error(f"Invalid search parameters: {str(e)}")
            raise

        except SearchError as e:
            if isinstance(e, SearchTimeoutError):
                metrics.status = SearchStatus.TIMEOUT
            else:
                metrics.status = SearchStatus.FAILURE
            metrics.error_message = str(e)
            logger.error(f"Hybrid search failed: {str(e)}")
            raise

        except Exception as e:
            metrics.status = SearchStatus.FAILURE
            metrics.error_message = str(e)
            error_msg = f"Hybrid search failed: {str(e)}"
            logger.error(error_msg, exc_info=True)
            raise HybridSearchError(error_msg) from e

        finally:
            metrics.total_time_ms = (time.perf_counter() - start) * 1000
            await self._stats.record(metrics)

            if self.metrics_callback:
                try:
                    self.metrics_callback(metrics)
                except Exception as e:
                    logger.error(f"Metrics callback failed: {str(e)}")

    async def _execute(
        self,
        request: HybridSearchRequest,
        strategy: SearchStrategy,
        limit: int,
        config: HybridQueryConfig,
        start: float,
        metrics: HybridSearchMetrics
    ) -> HybridSearchResponse:
        analysis = None
        if config.enable_query_analysis:
            analysis = analyze_query(request.query, config.keyword_threshold)

        prepared_query = prepare_search_query(request.query)

        vector_outcome, keyword_outcome = await self._run_backends(
            request, prepared_query, strategy, config
        )
        self._fallback.observe(keyword_outcome)

        fusion_start = time.perf_counter()
        fused = fuse_results(vector_outcome.results, keyword_outcome.results, limit, config)
        fusion_time_ms = (time.perf_counter() - fusion_start) * 1000

        metrics.vector_search_time_ms = vector_outcome.elapsed_ms
        metrics.keyword_search_time_ms = keyword_outcome.elapsed_ms
        metrics.fusion_time_ms = fusion_time_ms
        metrics.vector_results = len(vector_outcome.results)
        metrics.keyword_results = len(keyword_outcome.results)
        metrics.results_count = len(fused)
        metrics.top_fusion_score = fused[0].fusion_score if fused else 0.0
        if keyword_outcome.degraded:
            metrics.status = SearchStatus.DEGRADED
            metrics.error_message = keyword_outcome.error

        processing_time_ms = (time.perf_counter() - start) * 1000
        response = HybridSearchResponse(
            results=fused,
            metadata=SearchResponseMetadata(
                total_results=len(fused),
                search_strategy=strategy.value,
                processing_time_ms=processing_time_ms,
                vector_results=len(vector_outcome.results),
                keyword_results=len(keyword_outcome.results),
                fused_results=len(fused),
                vector_search_time_ms=self._stage_time(vector_outcome),
                keyword_search_time_ms=self._stage_time(keyword_outcome),
                fusion_time_ms=fusion_time_ms,
                query_type=analysis.type.value if analysis else None,
                query_complexity=analysis.complexity if analysis else None,
                degraded=keyword_outcome.degraded,
            ),
        )

        logger.info(
            f"Hybrid search completed - tenant: {request.tenant_id}, "
            f"strategy: {strategy.value}, results: {len(fused)}, "
            f"vector: {vector_outcome.elapsed_ms:.2f}ms, "
            f"keyword: {keyword_outcome.elapsed_ms:.2f}ms, "
            f"fusion: {fusion_time_ms:.2f}ms, "
            f"degraded: {keyword_outcome.degraded}"
        )
        return response

    async def _run_backends(
        self,
        request: HybridSearchRequest,
        prepared_query: str,
        strategy: SearchStrategy,
        config: HybridQueryConfig
    ) -> Tuple[BackendOutcome[RawSearchResult], BackendOutcome[RawKeywordResult]]:
        """
        Invoke the backends the strategy needs.

        Parallel mode runs both as tasks that share the timeout budget; if the
        vector search fails the keyword task is cancelled. Sequential mode runs
        vector first and gives keyword whatever budget remains.
        """
        run_vector = strategy in (SearchStrategy.VECTOR, SearchStrategy.HYBRID)
        run_keyword = strategy in (SearchStrategy.KEYWORD, SearchStrategy.HYBRID)
        timeout = config.search_timeout

        def vector_call(budget: float):
            return execute_vector_search(
                self._vector_search,
                request.query,
                request.tenant_id,
                request.filters,
                config.max_vector_results,
                budget
            )

        def keyword_call(budget: float):
            return execute_keyword_search(
                self._keyword_search,
                prepared_query,
                request.tenant_id,
                request.filters,
                config.max_keyword_results,
                budget
            )

        skipped_vector = BackendOutcome.skipped(ResultSource.VECTOR)
        skipped_keyword = BackendOutcome.skipped(ResultSource.KEYWORD)

        if run_vector and not run_keyword:
            return await vector_call(timeout), skipped_keyword
        if run_keyword and not run_vector:
            return skipped_vector, await keyword_call(timeout)

        if not config.enable_parallel_search:
            started = time.perf_counter()
            vector_outcome = await vector_call(timeout)
            remaining = timeout - (time.perf_counter() - started)
            keyword_outcome = await keyword_call(remaining)
            return vector_outcome, keyword_outcome

        vector_task = asyncio.ensure_future(vector_call(timeout))
        keyword_task = asyncio.ensure_future(keyword_call(timeout))
        try:
            vector_outcome = await vector_task
        except BaseException:
            keyword_task.cancel()
            await asyncio.gather(keyword_task, return_exceptions=True)
            raise
        keyword_outcome = await keyword_task
        return vector_outcome, keyword_outcome

    @staticmethod
    def _stage_time(outcome: BackendOutcome) -> Optional[float]:
        if outcome.status == SearchStatus.SKIPPED:
            return None
        return outcome.elapsed_ms

    def _serve_cached(
        self,
        cached: HybridSearchResponse,
        start: float,
        metrics: HybridSearchMetrics
    ) -> HybridSearchResponse:
        processing_time_ms = (time.perf_counter() - start) * 1000
        metrics.cache_hit = True
        metrics.results_count = len(cached.results)
        metrics.vector_results = cached.metadata.vector_results
        metrics.keyword_results = cached.metadata.keyword_results
        metrics.top_fusion_score = cached.results[0].fusion_score if cached.results else 0.0
        return HybridSearchResponse(
            results=list(cached.results),
            metadata=replace(
                cached.metadata,
                processing_time_ms=processing_time_ms,
                cache_hit=True,
            ),
        )

    @staticmethod
    def _shape_response(
        response: HybridSearchResponse,
        request: HybridSearchRequest
    ) -> HybridSearchResponse:
        if request.include_metadata:
            return response
        return HybridSearchResponse(
            results=[r.without_metadata() for r in response.results],
            metadata=response.metadata,
        )

    async def get_stats(self) -> HybridSearchStats:
        """
        Get a point-in-time snapshot of search statistics.

        Returns:
            HybridSearchStats including the current in-process cache size
        """
        return await self._stats.snapshot(cache_size=self._cache.size)

    @property
    def cache(self) -> HybridResultCache:
        return self._cache

    async def reset_stats(self) -> None:
        await self._stats.reset()

    def get_fallback_stats(self) -> Dict[str, Any]:
        return self._fallback.get_stats()

    def get_cache_stats(self) -> Dict[str, Any]:
        return self._cache.get_stats()

    async def health_check(self) -> bool:
        """
        Run a small canned query through the full pipeline.

        The query bypasses the result cache so the backends are always called.

        Returns:
            True if the search succeeded, False otherwise (never raises)
        """
        try:
            await self._search(
                HybridSearchRequest(
                    query=HEALTH_CHECK_QUERY,
                    tenant_id=HEALTH_CHECK_TENANT,
                    limit=1,
                ),
                use_cache=False
            )
            return True
        except Exception as e:
            logger.error(f"Hybrid query engine health check failed: {str(e)}")
            return False

    async def update_config(self, **changes: Any) -> HybridQueryConfig:
        """
        Update the engine configuration at runtime.

        The new configuration is validated as a whole; on error the current
        configuration stays in effect. Requests already in flight keep the
        configuration they started with.

        Returns:
            The new configuration

        Raises:
            ConfigurationError: If a field is unknown or a value is invalid
        """
        new_config = self._config.updated(**changes)
        if new_config.memory_cache_size != self._cache.max_entries:
            await self._cache.resize(new_config.memory_cache_size)
        self._config = new_config
        logger.info(f"Hybrid query configuration updated: {sorted(changes)}")
        return new_config

    def get_config(self) -> HybridQueryConfig:
        return self._config

    async def clear_cache(self) -> None:
        """Empty both cache tiers, including entries shared with other engines."""
        await self._cache.clear()

    async def close(self) -> None:
        """Gracefully shutdown the engine."""
        logger.info("Shutting down HybridQueryEngine...")

        stats = await self.get_stats()
        logger.info(f"Final statistics: {stats.to_dict()}")

        await self._cache.clear_local()
        if self._cache.kv_store is not None:
            await self._cache.kv_store.close()

        logger.info("HybridQueryEngine shutdown complete")


def get_default_hybrid_query_config() -> HybridQueryConfig:
    """Default hybrid query configuration."""
    return HybridQueryConfig()


def create_hybrid_query_engine(
    vector_search: VectorSearchService,
    keyword_search: KeywordSearchService,
    config: Optional[HybridQueryConfig] = None,
    kv_store: Optional[KeyValueStore] = None,
    metrics_callback: Optional[Callable[[HybridSearchMetrics], None]] = None
) -> HybridQueryEngine:
    """Factory function to create a hybrid query engine."""
    return HybridQueryEngine(
        vector_search=vector_search,
        keyword_search=keyword_search,
        config=config or get_default_hybrid_query_config(),
        kv_store=kv_store,
        metrics_callback=metrics_callback,
    )
