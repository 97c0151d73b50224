"""
Tests for result fusion
"""

import pytest

from search_operations import (
    FusedResult,
    FusionError,
    HybridQueryConfig,
    RawKeywordResult,
    RawSearchResult,
    ResultSource,
)
from search_operations.search.hybrid.core.fusion import (
    calculate_adaptive_score,
    calculate_fusion_score,
    calculate_rrf_score,
    calculate_weighted_score,
    fuse_results,
)


def vec(doc_id, similarity, **metadata):
    return RawSearchResult(id=doc_id, content=f"{doc_id} text", similarity=similarity, metadata=metadata)


def kw(doc_id, score, rank, **metadata):
    return RawKeywordResult(id=doc_id, content=f"{doc_id} kw text", score=score, rank=rank, metadata=metadata)


class TestScoreFunctions:
    """Per-algorithm scoring"""

    def test_weighted_score_clamps_each_source(self):
        assert calculate_weighted_score(1.4, 2.0, 0.7, 0.3) == pytest.approx(1.0)

    def test_weighted_score_missing_source_contributes_zero(self):
        assert calculate_weighted_score(None, 0.5, 0.7, 0.3) == pytest.approx(0.15)
        assert calculate_weighted_score(0.5, None, 0.7, 0.3) == pytest.approx(0.35)

    def test_rrf_score_sums_present_sources(self):
        assert calculate_rrf_score(1, 3, k=60) == pytest.approx(1 / 61 + 1 / 63)
        assert calculate_rrf_score(None, 2, k=60) == pytest.approx(1 / 62)

    def test_rrf_score_decreases_with_rank(self):
        scores = [calculate_rrf_score(rank, None) for rank in range(1, 20)]
        assert scores == sorted(scores, reverse=True)

    def test_adaptive_blends_weighted_and_rrf(self):
        config = HybridQueryConfig()
        weighted = calculate_weighted_score(0.9, 0.8, 0.7, 0.3)
        rrf = calculate_rrf_score(1, 1, 60)

        score = calculate_adaptive_score(0.9, 0.8, 1, 1, config)

        assert score == pytest.approx(0.7 * weighted + 0.3 * rrf)

    def test_dispatch_follows_config(self):
        rrf_config = HybridQueryConfig(fusion_algorithm="rrf", rrf_constant=10)
        assert calculate_fusion_score(0.9, None, 1, None, rrf_config) == pytest.approx(1 / 11)


class TestFuseResults:
    """Merging and ranking"""

    def test_weighted_example_ordering(self, vector_results, keyword_results, weighted_config):
        fused = fuse_results(vector_results, keyword_results, 10, weighted_config)

        assert [r.id for r in fused] == ["a", "b", "c"]
        assert [r.fusion_score for r in fused] == pytest.approx([0.63, 0.59, 0.09])

    def test_provenance_is_recorded(self, vector_results, keyword_results, weighted_config):
        fused = {r.id: r for r in fuse_results(vector_results, keyword_results, 10, weighted_config)}

        assert fused["a"].sources == (ResultSource.VECTOR,)
        assert fused["a"].vector_rank == 1 and fused["a"].keyword_rank is None
        assert fused["b"].sources == (ResultSource.VECTOR, ResultSource.KEYWORD)
        assert (fused["b"].vector_rank, fused["b"].keyword_rank) == (2, 1)
        assert fused["c"].sources == (ResultSource.KEYWORD,)
        assert fused["c"].vector_score is None and fused["c"].keyword_score == 0.3

    def test_vector_record_wins_display_fields(self, vector_results, keyword_results, weighted_config):
        fused = {r.id: r for r in fuse_results(vector_results, keyword_results, 10, weighted_config)}

        assert fused["b"].content == "beta chunk"
        assert fused["b"].similarity == 0.5
        assert fused["c"].content == "gamma chunk"
        assert fused["c"].similarity == 0.3
        assert fused["c"].content_type == "doc"

    def test_no_duplicate_ids(self):
        vector = [vec("x", 0.9), vec("y", 0.8), vec("x", 0.1)]
        keyword = [kw("y", 0.7, 1), kw("z", 0.6, 2), kw("z", 0.5, 3)]

        fused = fuse_results(vector, keyword, 10, HybridQueryConfig())

        ids = [r.id for r in fused]
        assert sorted(ids) == ["x", "y", "z"]
        by_id = {r.id: r for r in fused}
        assert by_id["x"].vector_rank == 1
        assert by_id["z"].keyword_rank == 2

    def test_output_sorted_and_truncated(self):
        vector = [vec(f"v{i}", 1.0 - i * 0.05) for i in range(10)]
        keyword = [kw(f"k{i}", 0.9 - i * 0.05, i + 1) for i in range(10)]

        fused = fuse_results(vector, keyword, 5, HybridQueryConfig())

        assert len(fused) == 5
        scores = [r.fusion_score for r in fused]
        assert scores == sorted(scores, reverse=True)

    def test_fewer_candidates_than_limit(self, vector_results, keyword_results):
        assert len(fuse_results(vector_results, keyword_results, 100, HybridQueryConfig())) == 3

    def test_deterministic_with_ties(self):
        config = HybridQueryConfig(fusion_algorithm="rrf")
        vector = [vec("a", 0.5), vec("b", 0.5)]
        keyword = [kw("c", 0.5, 1), kw("d", 0.5, 2)]

        first = fuse_results(vector, keyword, 10, config)
        second = fuse_results(vector, keyword, 10, config)

        assert first == second
        # a and c tie at 1/61; vector candidates enumerate first
        assert [r.id for r in first] == ["a", "c", "b", "d"]

    def test_rrf_rewards_agreement(self):
        config = HybridQueryConfig(fusion_algorithm="rrf")
        vector = [vec("solo", 0.99), vec("both", 0.2)]
        keyword = [kw("both", 0.1, 1)]

        fused = fuse_results(vector, keyword, 10, config)

        assert fused[0].id == "both"

    def test_empty_inputs(self):
        assert fuse_results([], [], 10, HybridQueryConfig()) == []

    def test_vector_only_input(self, vector_results):
        fused = fuse_results(vector_results, [], 10, HybridQueryConfig())

        assert [r.id for r in fused] == ["a", "b"]
        assert all(r.sources == (ResultSource.VECTOR,) for r in fused)

    def test_invalid_limit(self, vector_results, keyword_results):
        with pytest.raises(FusionError):
            fuse_results(vector_results, keyword_results, 0, HybridQueryConfig())

    def test_every_result_satisfies_provenance(self, vector_results, keyword_results):
        for algorithm in ("weighted", "rrf", "adaptive"):
            config = HybridQueryConfig(fusion_algorithm=algorithm)
            for result in fuse_results(vector_results, keyword_results, 10, config):
                assert result.sources
                assert (ResultSource.VECTOR in result.sources) == (result.vector_rank is not None)
                assert (ResultSource.KEYWORD in result.sources) == (result.keyword_rank is not None)


class TestFusedResult:
    """Fused result invariants"""

    def test_rejects_empty_sources(self):
        with pytest.raises(FusionError):
            FusedResult(id="a", content="", similarity=0.1, fusion_score=0.1, sources=())

    def test_rejects_rank_without_source(self):
        with pytest.raises(FusionError):
            FusedResult(
                id="a", content="", similarity=0.1, fusion_score=0.1,
                sources=("vector",), vector_rank=1, keyword_rank=2,
            )

    def test_dict_round_trip(self):
        result = FusedResult(
            id="a", content="text", similarity=0.4, fusion_score=0.3,
            sources=("vector", "keyword"), metadata={"tags": ["x"]},
            vector_score=0.4, keyword_score=0.2, vector_rank=1, keyword_rank=3,
        )

        assert FusedResult.from_dict(result.to_dict()) == result
