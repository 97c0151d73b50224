"""
Pytest Configuration and Fixtures
"""

import asyncio
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest

from search_operations import (
    HybridQueryConfig,
    KeywordSearchService,
    KeyValueStore,
    RawKeywordResult,
    RawSearchResult,
    VectorSearchService,
)


class FakeVectorSearch(VectorSearchService):
    """In-memory vector backend recording every call"""

    def __init__(
        self,
        results: Optional[List[RawSearchResult]] = None,
        delay: float = 0.0,
        error: Optional[Exception] = None
    ):
        self.results = results or []
        self.delay = delay
        self.error = error
        self.calls: List[Dict[str, Any]] = []
        self.cancelled = False

    async def search(self, query, tenant_id, filters, limit):
        self.calls.append(
            {"query": query, "tenant_id": tenant_id, "filters": filters, "limit": limit}
        )
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return list(self.results[:limit])


class FakeKeywordSearch(KeywordSearchService):
    """In-memory keyword backend recording every call"""

    def __init__(
        self,
        results: Optional[List[RawKeywordResult]] = None,
        delay: float = 0.0,
        error: Optional[Exception] = None
    ):
        self.results = results or []
        self.delay = delay
        self.error = error
        self.calls: List[Dict[str, Any]] = []
        self.cancelled = False

    async def search(self, prepared_query, tenant_id, filters, limit):
        self.calls.append(
            {"query": prepared_query, "tenant_id": tenant_id, "filters": filters, "limit": limit}
        )
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return list(self.results[:limit])


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed external cache tier; TTLs are recorded, not enforced"""

    def __init__(self, fail: bool = False):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.fail = fail
        self.closed = False

    async def get(self, key):
        if self.fail:
            raise ConnectionError("store unavailable")
        return self.data.get(key)

    async def put(self, key, value, ttl_seconds):
        if self.fail:
            raise ConnectionError("store unavailable")
        self.data[key] = value
        self.ttls[key] = ttl_seconds

    async def delete(self, key):
        self.data.pop(key, None)

    async def clear(self):
        if self.fail:
            raise ConnectionError("store unavailable")
        self.data.clear()

    async def close(self):
        self.closed = True


class FakeClock:
    """Manually advanced epoch clock"""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def vector_results():
    """Vector backend results for the documented a/b/c scenario"""
    return [
        RawSearchResult(id="a", content="alpha chunk", similarity=0.9, metadata={"nodeType": "note"}),
        RawSearchResult(id="b", content="beta chunk", similarity=0.5, metadata={"nodeType": "task"}),
    ]


@pytest.fixture
def keyword_results():
    """Keyword backend results for the documented a/b/c scenario"""
    return [
        RawKeywordResult(id="b", content="beta chunk (kw)", score=0.8, rank=1, metadata={"nodeType": "task"}),
        RawKeywordResult(id="c", content="gamma chunk", score=0.3, rank=2, metadata={"nodeType": "doc"}),
    ]


@pytest.fixture
def weighted_config():
    return HybridQueryConfig(fusion_algorithm="weighted")


@pytest.fixture
def fake_vector(vector_results):
    return FakeVectorSearch(vector_results)


@pytest.fixture
def fake_keyword(keyword_results):
    return FakeKeywordSearch(keyword_results)


@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mock_redis_client():
    """Mock Redis client"""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.setex = AsyncMock(return_value=True)
    redis.delete = AsyncMock(return_value=1)
    return redis
