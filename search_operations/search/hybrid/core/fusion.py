"""
Result Fusion Module

This module merges the vector and keyword result lists into a single ranked,
deduplicated list. Three scoring policies are available: weighted score
fusion, Reciprocal Rank Fusion (RRF) and an adaptive blend of the two.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Generic, List, Optional, Sequence, TypeVar, Union

from ....config.base import FusionAlgorithm, ResultSource
from ....config.hybrid import HybridQueryConfig
from ....core.base import FusedResult, RawKeywordResult, RawSearchResult
from ....core.search_ops_exceptions import FusionError

logger = logging.getLogger(__name__)

ADAPTIVE_WEIGHTED_SHARE = 0.7
ADAPTIVE_RRF_SHARE = 0.3

R = TypeVar("R", RawSearchResult, RawKeywordResult)


@dataclass(frozen=True)
class RankedEntry(Generic[R]):
    """A backend result with its 1-based position in its own list"""
    result: R
    rank: int


def index_by_id(results: Sequence[R]) -> Dict[str, RankedEntry[R]]:
    """
    Map result ids to their first occurrence and original 1-based rank.

    Later duplicates within the same list are ignored so an id keeps its best
    position. Insertion order follows the input list.
    """
    indexed: Dict[str, RankedEntry[R]] = {}
    for rank, result in enumerate(results, start=1):
        if result.id in indexed:
            logger.debug(f"Ignoring duplicate id {result.id!r} at rank {rank}")
            continue
        indexed[result.id] = RankedEntry(result=result, rank=rank)
    return indexed


def calculate_weighted_score(
    vector_score: Optional[float],
    keyword_score: Optional[float],
    vector_weight: float,
    keyword_weight: float
) -> float:
    """
    Weighted combination of per-source scores.

    Each score is clamped to 1 so that keyword scores from the backend cannot
    exceed the vector similarity scale. A missing source contributes 0.
    """
    normalized_vector = min(vector_score, 1.0) if vector_score is not None else 0.0
    normalized_keyword = min(keyword_score, 1.0) if keyword_score is not None else 0.0
    return normalized_vector * vector_weight + normalized_keyword * keyword_weight


def calculate_rrf_score(
    vector_rank: Optional[int],
    keyword_rank: Optional[int],
    k: float = 60
) -> float:
    """
    Reciprocal Rank Fusion score.

    Formula: RRF_score(d) = sum over present sources of 1 / (k + rank(d)),
    where rank is the position in the source's own list.
    """
    score = 0.0
    if vector_rank is not None:
        score += 1.0 / (k + vector_rank)
    if keyword_rank is not None:
        score += 1.0 / (k + keyword_rank)
    return score


def calculate_adaptive_score(
    vector_score: Optional[float],
    keyword_score: Optional[float],
    vector_rank: Optional[int],
    keyword_rank: Optional[int],
    config: HybridQueryConfig
) -> float:
    """Fixed 70/30 blend of the weighted and RRF scores."""
    weighted = calculate_weighted_score(
        vector_score, keyword_score, config.vector_weight, config.keyword_weight
    )
    rrf = calculate_rrf_score(vector_rank, keyword_rank, config.rrf_constant)
    return weighted * ADAPTIVE_WEIGHTED_SHARE + rrf * ADAPTIVE_RRF_SHARE


def calculate_fusion_score(
    vector_score: Optional[float],
    keyword_score: Optional[float],
    vector_rank: Optional[int],
    keyword_rank: Optional[int],
    config: HybridQueryConfig
) -> float:
    """Dispatch to the configured fusion algorithm."""
    algorithm = config.fusion_algorithm

    if algorithm == FusionAlgorithm.RRF:
        return calculate_rrf_score(vector_rank, keyword_rank, config.rrf_constant)
    if algorithm == FusionAlgorithm.WEIGHTED:
        return calculate_weighted_score(
            vector_score, keyword_score, config.vector_weight, config.keyword_weight
        )
    if algorithm == FusionAlgorithm.ADAPTIVE:
        return calculate_adaptive_score(
            vector_score, keyword_score, vector_rank, keyword_rank, config
        )
    raise FusionError(f"Unsupported fusion algorithm: {algorithm!r}")


def _build_fused_result(
    doc_id: str,
    vector_entry: Optional[RankedEntry[RawSearchResult]],
    keyword_entry: Optional[RankedEntry[RawKeywordResult]],
    config: HybridQueryConfig
) -> FusedResult:
    sources = []
    if vector_entry is not None:
        sources.append(ResultSource.VECTOR)
    if keyword_entry is not None:
        sources.append(ResultSource.KEYWORD)

    vector_score = vector_entry.result.similarity if vector_entry else None
    keyword_score = keyword_entry.result.score if keyword_entry else None
    vector_rank = vector_entry.rank if vector_entry else None
    keyword_rank = keyword_entry.rank if keyword_entry else None

    fusion_score = calculate_fusion_score(
        vector_score, keyword_score, vector_rank, keyword_rank, config
    )

    # Vector record wins for display fields when both sources matched
    base: Union[RawSearchResult, RawKeywordResult]
    if vector_entry is not None:
        base = vector_entry.result
        similarity = vector_entry.result.similarity
        embedding = vector_entry.result.embedding
    else:
        base = keyword_entry.result
        similarity = keyword_entry.result.score
        embedding = None

    metadata = dict(base.metadata or {})
    content_type = metadata.get("nodeType") or metadata.get("content_type")

    return FusedResult(
        id=doc_id,
        content=base.content,
        similarity=similarity,
        fusion_score=fusion_score,
        sources=tuple(sources),
        metadata=metadata,
        vector_score=vector_score,
        keyword_score=keyword_score,
        vector_rank=vector_rank,
        keyword_rank=keyword_rank,
        query_relevance=fusion_score,
        content_type=content_type,
        embedding=embedding,
    )


def fuse_results(
    vector_results: Sequence[RawSearchResult],
    keyword_results: Sequence[RawKeywordResult],
    limit: int,
    config: HybridQueryConfig
) -> List[FusedResult]:
    """
    Fuse vector and keyword results into one ranked list.

    Candidates are the union of ids from both lists (exact id equality),
    enumerated as vector ids in order followed by keyword-only ids in order.
    The sort is stable, so equal scores keep that enumeration order and the
    output is deterministic for a given pair of inputs.

    Args:
        vector_results: Vector backend results, best first
        keyword_results: Keyword backend results, best first
        limit: Maximum number of results to return
        config: Active configuration (algorithm, weights, RRF constant)

    Returns:
        At most `limit` fused results, sorted by descending fusion score
    """
    if limit < 1:
        raise FusionError(f"Fusion limit must be positive, got {limit}")

    vector_map = index_by_id(vector_results)
    keyword_map = index_by_id(keyword_results)

    candidate_ids = list(vector_map)
    candidate_ids.extend(doc_id for doc_id in keyword_map if doc_id not in vector_map)

    fused = [
        _build_fused_result(
            doc_id,
            vector_map.get(doc_id),
            keyword_map.get(doc_id),
            config
        )
        for doc_id in candidate_ids
    ]
    fused.sort(key=lambda r: r.fusion_score, reverse=True)

    logger.debug(
        f"Fusion completed - algorithm: {config.fusion_algorithm.value}, "
        f"vector_results: {len(vector_results)}, "
        f"keyword_results: {len(keyword_results)}, "
        f"unique_docs: {len(fused)}, limit: {limit}"
    )

    return fused[:limit]
