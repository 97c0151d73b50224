"""
Query Processing Module

This module turns free-text queries into keyword-backend expressions and
provides lightweight query analysis (complexity, intent and type detection)
reported alongside hybrid search responses.
"""

import re
import logging
from dataclasses import dataclass
from typing import List

from ....config.base import QueryIntent, QueryType, SearchStrategy

logger = logging.getLogger(__name__)

MIN_KEYWORD_TOKEN_LENGTH = 3
PREFIX_MATCH_SUFFIX = ":*"
OR_OPERATOR = " | "

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")
_OPERATORS = re.compile(r'["+\-*]')
_QUESTION_START = re.compile(r"^(what|how|why|when|where|who|which)\b")
_SEARCH_START = re.compile(r"^(find|search|show|list|get)\b")
_SPECIFIC_TERM = re.compile(r"\d|[A-Z]{2,}|\w+[_-]\w+")

QUESTION_WORDS = {"what", "how", "why", "when", "where", "who", "which", "can", "does", "is"}


def prepare_search_query(query: str) -> str:
    """
    Convert a free-text query into a PostgreSQL tsquery expression.

    Punctuation is replaced by spaces, whitespace is collapsed, and tokens of
    two characters or fewer are dropped. Each surviving token becomes a prefix
    match and the terms are OR'ed, favouring recall over precision.

    Args:
        query: Raw query text

    Returns:
        Prepared query, or the raw query unchanged when no token survives

    Example:
        >>> prepare_search_query("the cat sat")
        'the:* | cat:* | sat:*'
        >>> prepare_search_query("ab cd")
        'ab cd'
    """
    normalized = _WHITESPACE.sub(" ", _NON_WORD.sub(" ", query)).strip()
    words = [w for w in normalized.split(" ") if len(w) >= MIN_KEYWORD_TOKEN_LENGTH]

    if not words:
        logger.debug(f"No keyword tokens survived preprocessing, using raw query: {query!r}")
        return query

    return OR_OPERATOR.join(f"{word}{PREFIX_MATCH_SUFFIX}" for word in words)


def analyze_query_complexity(query: str) -> float:
    """
    Score query complexity on a 0-1 scale.

    Word count contributes up to 0.4, a question mark 0.2, search operators
    0.3 and the share of long words (more than 6 characters) up to 0.1.
    """
    words = query.split()
    if not words:
        return 0.0

    complexity = min(len(words) / 10, 0.4)
    complexity += 0.2 if "?" in query else 0.0
    complexity += 0.3 if _OPERATORS.search(query) else 0.0
    complexity += sum(1 for w in words if len(w) > 6) / len(words) * 0.1

    return min(complexity, 1.0)


def detect_query_intent(query: str) -> QueryIntent:
    """Classify a query as a question, search, filter or command."""
    lowered = query.lower().strip()

    if "?" in lowered or _QUESTION_START.search(lowered):
        return QueryIntent.QUESTION
    if _SEARCH_START.search(lowered):
        return QueryIntent.SEARCH
    if _OPERATORS.search(query) or "filter" in lowered:
        return QueryIntent.FILTER
    return QueryIntent.COMMAND


@dataclass(frozen=True)
class QueryFeatures:
    """Surface features extracted from a query"""
    has_question_words: bool
    has_specific_terms: bool
    has_natural_language: bool
    word_count: int
    has_operators: bool


@dataclass(frozen=True)
class QueryAnalysis:
    """
    Result of query analysis.

    Attributes:
        type: Detected query type
        complexity: Complexity score (0-1)
        intent: Detected intent
        suggested_strategy: Strategy that best suits the detected type
        confidence: Confidence in the type decision (0-1)
        keyword_signal: Share of keyword-style evidence in the query (0-1)
        features: Extracted surface features
    """
    type: QueryType
    complexity: float
    intent: QueryIntent
    suggested_strategy: SearchStrategy
    confidence: float
    keyword_signal: float
    features: QueryFeatures


def extract_query_features(query: str) -> QueryFeatures:
    words: List[str] = query.split()
    lowered = [w.lower().strip("?,.!") for w in words]
    has_question_words = "?" in query or any(w in QUESTION_WORDS for w in lowered)

    return QueryFeatures(
        has_question_words=has_question_words,
        has_specific_terms=bool(_SPECIFIC_TERM.search(query)),
        has_natural_language=len(words) >= 4 or has_question_words,
        word_count=len(words),
        has_operators=bool(_OPERATORS.search(query)),
    )


def analyze_query(query: str, keyword_threshold: float = 0.5) -> QueryAnalysis:
    """
    Analyze a query and classify it as semantic, keyword or mixed.

    The keyword signal averages three indicators: specific terms (ids, codes,
    acronyms), search operators, and shortness (three words or fewer). A
    query whose signal reaches `keyword_threshold` and that does not read as
    natural language is a keyword query; natural language without specific
    terms is semantic; anything else is mixed.

    Args:
        query: Raw query text
        keyword_threshold: Signal level at which a query counts as keyword-style

    Returns:
        QueryAnalysis with type, suggested strategy and features
    """
    features = extract_query_features(query)

    indicators = [
        features.has_specific_terms,
        features.has_operators,
        0 < features.word_count <= 3,
    ]
    keyword_signal = sum(indicators) / len(indicators)

    if keyword_signal >= keyword_threshold and not features.has_natural_language:
        query_type = QueryType.KEYWORD
        strategy = SearchStrategy.KEYWORD
        confidence = keyword_signal
    elif features.has_natural_language and not features.has_specific_terms:
        query_type = QueryType.SEMANTIC
        strategy = SearchStrategy.VECTOR
        confidence = 1.0 - keyword_signal
    else:
        query_type = QueryType.MIXED
        strategy = SearchStrategy.HYBRID
        confidence = 0.5

    analysis = QueryAnalysis(
        type=query_type,
        complexity=analyze_query_complexity(query),
        intent=detect_query_intent(query),
        suggested_strategy=strategy,
        confidence=round(confidence, 4),
        keyword_signal=round(keyword_signal, 4),
        features=features,
    )

    logger.debug(
        f"Query analyzed - type: {analysis.type.value}, "
        f"complexity: {analysis.complexity:.2f}, "
        f"intent: {analysis.intent.value}"
    )
    return analysis
