"""
Validation Module

This module provides request validation and normalization utilities for
hybrid search operations. Every check here runs before any backend call.
"""

import logging
from typing import Any, Mapping, Union

from pydantic import ValidationError

from ....config.base import SearchStrategy
from ....config.hybrid import HybridQueryConfig
from ....config.validation import HybridSearchRequest
from ....core.search_ops_exceptions import InvalidSearchParametersError

logger = logging.getLogger(__name__)


def build_search_request(
    request: Union[HybridSearchRequest, Mapping[str, Any]]
) -> HybridSearchRequest:
    """
    Validate a search request.

    Args:
        request: A request model, or a mapping of request fields

    Returns:
        Validated HybridSearchRequest

    Raises:
        InvalidSearchParametersError: If any field is missing or invalid
    """
    if isinstance(request, HybridSearchRequest):
        return request

    if not isinstance(request, Mapping):
        raise InvalidSearchParametersError(
            f"Search request must be a mapping or HybridSearchRequest, got {type(request).__name__}"
        )

    try:
        return HybridSearchRequest(**request)
    except ValidationError as e:
        messages = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'request'}: {err['msg']}"
            for err in e.errors()
        )
        logger.debug(f"Rejected search request: {messages}")
        raise InvalidSearchParametersError(f"Invalid search request: {messages}") from e


def resolve_search_strategy(strategy: SearchStrategy) -> SearchStrategy:
    """Resolve AUTO to the concrete strategy the engine runs."""
    if strategy == SearchStrategy.AUTO:
        return SearchStrategy.HYBRID
    return strategy


def resolve_result_limit(request: HybridSearchRequest, config: HybridQueryConfig) -> int:
    """Use the request limit when given, otherwise the configured default."""
    return request.limit if request.limit is not None else config.final_result_limit
