"""
Base Search Types

This module defines the result types exchanged between the hybrid engine and
its backends, and the abstract backend interfaces the engine consumes.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Tuple

from ..config.base import ResultSource
from .search_ops_exceptions import FusionError


@dataclass
class RawSearchResult:
    """
    Result returned by the vector backend.

    `similarity` is expected in [0, 1] but not enforced. `embedding` is
    optional and never written to the result cache.
    """
    id: str
    content: str
    similarity: float
    metadata: Dict[str, Any] = field(default_factory=dict)
    embedding: Optional[List[float]] = None


@dataclass
class RawKeywordResult:
    """Result returned by the keyword backend; `rank` is 1-based within its list."""
    id: str
    content: str
    score: float
    rank: int
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FusedResult:
    """
    A single ranked result with fusion scores and provenance.

    A score or rank left as None means that source did not return this id;
    this is distinct from a genuine score of 0.
    """
    id: str
    content: str
    similarity: float
    fusion_score: float
    sources: Tuple[ResultSource, ...]
    metadata: Dict[str, Any] = field(default_factory=dict)
    vector_score: Optional[float] = None
    keyword_score: Optional[float] = None
    vector_rank: Optional[int] = None
    keyword_rank: Optional[int] = None
    query_relevance: Optional[float] = None
    content_type: Optional[str] = None
    embedding: Optional[List[float]] = None

    def __post_init__(self):
        """Enforce the provenance invariant"""
        sources = tuple(ResultSource(s) for s in self.sources)
        object.__setattr__(self, "sources", sources)

        if not sources:
            raise FusionError(f"Result {self.id!r} has no sources")
        if len(set(sources)) != len(sources):
            raise FusionError(f"Result {self.id!r} lists a source twice: {sources}")
        if (ResultSource.VECTOR in sources) != (self.vector_rank is not None):
            raise FusionError(
                f"Result {self.id!r}: vector source and vector_rank disagree"
            )
        if (ResultSource.KEYWORD in sources) != (self.keyword_rank is not None):
            raise FusionError(
                f"Result {self.id!r}: keyword source and keyword_rank disagree"
            )

    def without_metadata(self) -> "FusedResult":
        return FusedResult(**{**self._fields(), "metadata": {}})

    def _fields(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}

    def to_dict(self, include_embedding: bool = False) -> Dict[str, Any]:
        data = self._fields()
        data["sources"] = [s.value for s in self.sources]
        data["metadata"] = dict(self.metadata)
        if not include_embedding:
            data.pop("embedding")
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FusedResult":
        values = dict(data)
        values["sources"] = tuple(values.get("sources", ()))
        return cls(**values)


@dataclass
class SearchResponseMetadata:
    """
    Metadata describing how a hybrid search response was produced.

    Attributes:
        total_results: Number of results in the response
        search_strategy: Strategy actually used (auto resolves to hybrid)
        processing_time_ms: End-to-end time for this request
        vector_results: Raw result count from the vector backend
        keyword_results: Raw result count from the keyword backend (0 when degraded)
        fused_results: Result count after fusion and truncation
        vector_search_time_ms: Time spent in the vector backend
        keyword_search_time_ms: Time spent in the keyword backend
        fusion_time_ms: Time spent fusing
        query_type: Detected query type, when query analysis is enabled
        query_complexity: Query complexity (0-1), when query analysis is enabled
        degraded: True when the keyword path failed and results are vector-only
        cache_hit: True when the response was served from the result cache
    """
    total_results: int
    search_strategy: str
    processing_time_ms: float
    vector_results: int = 0
    keyword_results: int = 0
    fused_results: int = 0
    vector_search_time_ms: Optional[float] = None
    keyword_search_time_ms: Optional[float] = None
    fusion_time_ms: Optional[float] = None
    query_type: Optional[str] = None
    query_complexity: Optional[float] = None
    degraded: bool = False
    cache_hit: bool = False

    @property
    def per_stage_timings(self) -> Dict[str, Optional[float]]:
        return {
            "vector_search_ms": self.vector_search_time_ms,
            "keyword_search_ms": self.keyword_search_time_ms,
            "fusion_ms": self.fusion_time_ms,
        }


@dataclass
class HybridSearchResponse:
    """Ranked results plus metadata for one hybrid search request."""
    results: List[FusedResult]
    metadata: SearchResponseMetadata

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "metadata": asdict(self.metadata),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HybridSearchResponse":
        return cls(
            results=[FusedResult.from_dict(r) for r in data["results"]],
            metadata=SearchResponseMetadata(**data["metadata"]),
        )

    @classmethod
    def from_json(cls, payload: str) -> "HybridSearchResponse":
        return cls.from_dict(json.loads(payload))


class VectorSearchService(ABC):
    """
    Semantic search backend.

    Implementations must scope results to `tenant_id` and surface failures as
    exceptions; the engine treats any failure here as fatal for the request.
    """

    @abstractmethod
    async def search(
        self,
        query: str,
        tenant_id: str,
        filters: Dict[str, Any],
        limit: int
    ) -> List[RawSearchResult]:
        """
        Run a similarity search.

        Args:
            query: Raw query text
            tenant_id: Tenant scope
            filters: Opaque filters from the request
            limit: Maximum number of results

        Returns:
            Results ordered best first
        """
        pass


class KeywordSearchService(ABC):
    """
    Full-text search backend.

    Failures may be raised freely; the engine degrades to vector-only results.
    """

    @abstractmethod
    async def search(
        self,
        prepared_query: str,
        tenant_id: str,
        filters: Dict[str, Any],
        limit: int
    ) -> List[RawKeywordResult]:
        """
        Run a keyword search.

        Args:
            prepared_query: Query already converted to the backend's syntax
            tenant_id: Tenant scope
            filters: Opaque filters from the request
            limit: Maximum number of results

        Returns:
            Results ordered best first
        """
        pass
