"""
RPC Keyword Search Provider

This module provides a KeywordSearchService backed by a database full-text
search function invoked over RPC. The function receives the prepared
prefix-match expression and returns rows ordered by text rank.
"""

import logging
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from ..core.base import KeywordSearchService, RawKeywordResult
from ..core.search_ops_exceptions import KeywordSearchError

logger = logging.getLogger(__name__)

KEYWORD_SEARCH_FUNCTION = "keyword_search"

RpcCallable = Callable[[str, Dict[str, Any]], Awaitable[Any]]


def _timestamp(value: Any) -> Optional[str]:
    """Render date and datetime values as ISO-8601 strings."""
    if isinstance(value, date):
        return value.isoformat()
    return value


class RpcKeywordSearchService(KeywordSearchService):
    """
    Keyword search over a `keyword_search(search_query, business_id,
    max_results, filters)` database function.

    The RPC callable may return either the row list itself or a mapping with
    `data` and `error` keys.
    """

    def __init__(self, rpc: RpcCallable, function_name: str = KEYWORD_SEARCH_FUNCTION):
        """
        Initialize the keyword search service.

        Args:
            rpc: Async callable taking (function_name, params)
            function_name: Name of the full-text search function
        """
        self._rpc = rpc
        self._function_name = function_name

    async def search(
        self,
        prepared_query: str,
        tenant_id: str,
        filters: Dict[str, Any],
        limit: int
    ) -> List[RawKeywordResult]:
        params = {
            "search_query": prepared_query,
            "business_id": tenant_id,
            "max_results": limit,
            "filters": filters or {},
        }

        try:
            response = await self._rpc(self._function_name, params)
        except Exception as e:
            raise KeywordSearchError(f"Keyword search RPC failed: {str(e)}") from e

        rows = self._extract_rows(response)
        logger.debug(f"Keyword search RPC returned {len(rows)} rows for tenant {tenant_id}")
        return [self._to_result(row, index) for index, row in enumerate(rows)]

    @staticmethod
    def _extract_rows(response: Any) -> List[Mapping[str, Any]]:
        if response is None:
            return []
        if isinstance(response, Mapping):
            error = response.get("error")
            if error:
                message = error.get("message", error) if isinstance(error, Mapping) else error
                raise KeywordSearchError(f"Keyword search failed: {message}")
            return list(response.get("data") or [])
        return list(response)

    @staticmethod
    def _to_result(row: Mapping[str, Any], index: int) -> RawKeywordResult:
        row_metadata = row.get("metadata") or {}
        return RawKeywordResult(
            id=str(row["id"]),
            content=row.get("content") or "",
            score=float(row.get("rank") or 0),
            rank=index + 1,
            metadata={
                "nodeType": row_metadata.get("nodeType", "unknown"),
                "tags": row_metadata.get("tags", []),
                "createdAt": _timestamp(row.get("created_at")),
                "updatedAt": _timestamp(row.get("updated_at")),
                "businessId": row.get("business_id"),
            },
        )
