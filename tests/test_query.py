"""
Tests for query preparation and analysis
"""

import pytest

from search_operations import QueryIntent, QueryType, SearchStrategy
from search_operations.search.hybrid.core.query import (
    analyze_query,
    analyze_query_complexity,
    detect_query_intent,
    prepare_search_query,
)


class TestPrepareSearchQuery:
    """Keyword expression preparation"""

    def test_tokens_become_or_prefix_matches(self):
        assert prepare_search_query("the cat sat") == "the:* | cat:* | sat:*"

    def test_short_tokens_fall_back_to_raw_query(self):
        assert prepare_search_query("ab cd") == "ab cd"

    def test_punctuation_replaced_and_short_tokens_dropped(self):
        assert prepare_search_query("C++ is fun!") == "fun:*"

    def test_punctuation_splits_tokens(self):
        assert prepare_search_query("hello-world, foo.bar") == "hello:* | world:* | foo:* | bar:*"

    def test_whitespace_collapsed(self):
        assert prepare_search_query("  quarterly \t\n  report  ") == "quarterly:* | report:*"

    def test_unicode_letters_are_word_characters(self):
        assert prepare_search_query("café résumé") == "café:* | résumé:*"

    def test_punctuation_only_query_is_returned_unchanged(self):
        assert prepare_search_query("?!") == "?!"

    def test_underscore_is_kept_inside_tokens(self):
        assert prepare_search_query("user_id lookup") == "user_id:* | lookup:*"


class TestQueryComplexity:
    """Complexity scoring"""

    def test_empty_query(self):
        assert analyze_query_complexity("") == 0.0

    def test_single_short_word(self):
        assert analyze_query_complexity("hello") == pytest.approx(0.1)

    def test_question_with_long_word(self):
        # 3 words (0.3) + question (0.2) + 1/3 long words (0.0333)
        assert analyze_query_complexity("What is vectorization?") == pytest.approx(0.3 + 0.2 + 0.1 / 3)

    def test_operators_add_weight(self):
        assert analyze_query_complexity("foo -bar") == pytest.approx(0.5)

    def test_score_is_capped(self):
        query = " ".join(["extraordinarily"] * 30) + ' "exact" ?'
        assert analyze_query_complexity(query) <= 1.0


class TestQueryIntent:
    """Intent detection"""

    @pytest.mark.parametrize(
        "query,intent",
        [
            ("how do I reset my password?", QueryIntent.QUESTION),
            ("Which plan fits a small team", QueryIntent.QUESTION),
            ("find invoices from march", QueryIntent.SEARCH),
            ("status:open -draft", QueryIntent.FILTER),
            ("filter by owner", QueryIntent.FILTER),
            ("reset password", QueryIntent.COMMAND),
        ],
    )
    def test_detects_intent(self, query, intent):
        assert detect_query_intent(query) == intent


class TestAnalyzeQuery:
    """Query type classification"""

    def test_identifier_is_keyword_query(self):
        analysis = analyze_query("INV-2024")

        assert analysis.type == QueryType.KEYWORD
        assert analysis.suggested_strategy == SearchStrategy.KEYWORD
        assert analysis.keyword_signal == 1.0
        assert analysis.features.has_specific_terms

    def test_natural_language_is_semantic_query(self):
        analysis = analyze_query("how do teams usually plan their quarterly goals")

        assert analysis.type == QueryType.SEMANTIC
        assert analysis.suggested_strategy == SearchStrategy.VECTOR
        assert analysis.intent == QueryIntent.QUESTION
        assert analysis.features.has_natural_language

    def test_natural_language_with_codes_is_mixed(self):
        analysis = analyze_query("show Q3 roadmap for ACME team")

        assert analysis.type == QueryType.MIXED
        assert analysis.suggested_strategy == SearchStrategy.HYBRID
        assert analysis.confidence == 0.5

    def test_threshold_controls_keyword_classification(self):
        # "budget" alone only signals shortness (1/3)
        assert analyze_query("budget", keyword_threshold=0.3).type == QueryType.KEYWORD
        assert analyze_query("budget", keyword_threshold=0.5).type == QueryType.MIXED

    def test_complexity_matches_standalone_scoring(self):
        query = "What is vectorization?"
        assert analyze_query(query).complexity == analyze_query_complexity(query)
