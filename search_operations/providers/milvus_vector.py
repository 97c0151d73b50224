"""
Milvus Vector Search Provider

This module provides a VectorSearchService backed by a Milvus collection.
Queries are embedded with an EmbeddingProvider, normalized to unit length,
and searched with a tenant filter expression. Transient backend failures
are retried with exponential backoff.
"""

import json
import time
import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

import numpy as np
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..core.base import RawSearchResult, VectorSearchService
from ..core.search_ops_exceptions import EmbeddingGenerationError, VectorSearchError
from .embedding import EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_PARAMS = {"metric_type": "COSINE", "params": {"ef": 64}}


def build_filter_expression(
    tenant_id: str,
    filters: Optional[Dict[str, Any]] = None,
    tenant_field: str = "business_id"
) -> str:
    """
    Build a Milvus boolean expression scoping the search to one tenant.

    Scalar filter values become equality terms and list values become `in`
    terms. Other values are not expressible and are skipped.

    Args:
        tenant_id: Tenant the search is scoped to
        filters: Additional field filters
        tenant_field: Scalar field holding the tenant id

    Returns:
        Expression string, e.g. 'business_id == "acme" and lang == "en"'
    """
    terms = [f"{tenant_field} == {json.dumps(tenant_id)}"]

    for field_name, value in (filters or {}).items():
        if isinstance(value, bool):
            terms.append(f"{field_name} == {str(value).lower()}")
        elif isinstance(value, (str, int, float)):
            terms.append(f"{field_name} == {json.dumps(value)}")
        elif isinstance(value, (list, tuple)) and value:
            terms.append(f"{field_name} in {json.dumps(list(value))}")
        else:
            logger.debug(f"Skipping filter {field_name!r}: unsupported value {value!r}")

    return " and ".join(terms)


def normalize_vector(vector: Sequence[float]) -> List[float]:
    """Normalize a vector to unit length; zero vectors are returned unchanged."""
    np_vector = np.asarray(vector, dtype=np.float32)
    norm = np.linalg.norm(np_vector)
    if norm == 0:
        return np_vector.tolist()
    return (np_vector / norm).tolist()


def _default_collection_factory(name: str, using: str) -> Any:
    from pymilvus import Collection

    return Collection(name=name, using=using)


class MilvusVectorSearchService(VectorSearchService):
    """
    Semantic search over a Milvus collection.

    The collection is expected to hold a dense vector field, a content field
    and a scalar tenant field. Similarity is taken from the hit distance, so
    the collection should use an inner-product or cosine metric.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        collection_name: str,
        vector_field: str = "embedding",
        content_field: str = "content",
        tenant_field: str = "business_id",
        output_fields: Optional[List[str]] = None,
        search_params: Optional[Dict[str, Any]] = None,
        using: str = "default",
        collection_factory: Optional[Callable[[str, str], Any]] = None,
        max_attempts: int = 3,
        min_wait: float = 0.5,
        max_wait: float = 4.0,
        retry_exceptions: Tuple[Type[BaseException], ...] = (ConnectionError, TimeoutError, OSError)
    ):
        """
        Initialize the Milvus vector search service.

        Args:
            embedding_provider: Provider used to embed query text
            collection_name: Milvus collection to search
            vector_field: Dense vector field name
            content_field: Field holding the chunk text
            tenant_field: Scalar field holding the tenant id
            output_fields: Extra fields returned as result metadata
            search_params: Milvus search params (metric type and index params)
            using: Connection alias
            collection_factory: Callable (name, alias) -> collection, pymilvus Collection by default
            max_attempts: Attempts per search including the first
            min_wait: Minimum backoff between attempts in seconds
            max_wait: Maximum backoff between attempts in seconds
            retry_exceptions: Exception types treated as transient
        """
        self._embedding_provider = embedding_provider
        self.collection_name = collection_name
        self.vector_field = vector_field
        self.content_field = content_field
        self.tenant_field = tenant_field
        self.output_fields = output_fields or []
        self.search_params = search_params or dict(DEFAULT_SEARCH_PARAMS)
        self.using = using
        self._collection_factory = collection_factory or _default_collection_factory
        self._collection = None
        self.max_attempts = max_attempts
        self.min_wait = min_wait
        self.max_wait = max_wait
        self.retry_exceptions = retry_exceptions

        logger.info(
            f"MilvusVectorSearchService initialized - "
            f"collection: {collection_name}, vector_field: {vector_field}, "
            f"model: {embedding_provider.get_model_name()}"
        )

    def _get_collection(self) -> Any:
        if self._collection is None:
            self._collection = self._collection_factory(self.collection_name, self.using)
        return self._collection

    async def _embed(self, query: str) -> List[float]:
        try:
            result = await self._embedding_provider.generate_embedding(query)
        except EmbeddingGenerationError:
            raise
        except Exception as e:
            raise EmbeddingGenerationError(f"Failed to generate embedding: {str(e)}") from e
        return normalize_vector(result.embedding)

    async def search(
        self,
        query: str,
        tenant_id: str,
        filters: Dict[str, Any],
        limit: int
    ) -> List[RawSearchResult]:
        start_time = time.time()
        query_vector = await self._embed(query)
        expr = build_filter_expression(tenant_id, filters, self.tenant_field)

        search_kwargs = {
            "data": [query_vector],
            "anns_field": self.vector_field,
            "param": self.search_params,
            "limit": limit,
            "expr": expr,
            "output_fields": [self.content_field, *self.output_fields],
        }

        loop = asyncio.get_running_loop()
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=self.min_wait, min=self.min_wait, max=self.max_wait),
                retry=retry_if_exception_type(self.retry_exceptions),
                reraise=True,
            ):
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        logger.warning(
                            f"Retrying Milvus search on {self.collection_name} "
                            f"(attempt {attempt.retry_state.attempt_number}/{self.max_attempts})"
                        )
                    hits = await loop.run_in_executor(None, self._perform_search, search_kwargs)
        except Exception as e:
            raise VectorSearchError(f"Milvus search failed: {str(e)}") from e

        results = [self._to_result(hit) for hit in hits]
        logger.debug(
            f"Milvus search returned {len(results)} results in "
            f"{(time.time() - start_time) * 1000:.2f}ms"
        )
        return results

    def _perform_search(self, search_kwargs: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Run the blocking pymilvus search and flatten hits to dictionaries."""
        collection = self._get_collection()
        search_results = collection.search(**search_kwargs)

        results = []
        for hits in search_results:
            for hit in hits:
                result = {"id": hit.id, "distance": hit.distance}
                for field_name in search_kwargs["output_fields"]:
                    result[field_name] = hit.entity.get(field_name)
                results.append(result)
        return results

    def _to_result(self, hit: Dict[str, Any]) -> RawSearchResult:
        metadata = {
            name: value
            for name, value in hit.items()
            if name not in ("id", "distance", self.content_field)
        }
        return RawSearchResult(
            id=str(hit["id"]),
            content=hit.get(self.content_field) or "",
            similarity=float(hit["distance"]),
            metadata=metadata,
        )
