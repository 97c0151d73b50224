"""
Tests for the hybrid result cache
"""

from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis

from retrieval_ops_exceptions import CacheStoreError
from search_operations import (
    FusedResult,
    HybridQueryConfig,
    HybridSearchRequest,
    HybridSearchResponse,
    SearchResponseMetadata,
)
from search_operations.search.hybrid.cache import (
    CacheEntry,
    HybridResultCache,
    RedisKeyValueStore,
    build_cache_key,
)

from conftest import InMemoryKeyValueStore


def make_response(doc_id: str = "a") -> HybridSearchResponse:
    result = FusedResult(
        id=doc_id, content=f"{doc_id} text", similarity=0.8, fusion_score=0.56,
        sources=("vector",), metadata={"nodeType": "note"},
        vector_score=0.8, vector_rank=1,
    )
    return HybridSearchResponse(
        results=[result],
        metadata=SearchResponseMetadata(
            total_results=1, search_strategy="hybrid", processing_time_ms=4.2,
            vector_results=1, fused_results=1,
        ),
    )


class TestCacheKey:
    """Cache key derivation"""

    def test_same_request_same_key(self):
        config = HybridQueryConfig()
        request = HybridSearchRequest(query="q", tenant_id="t1", filters={"b": 1, "a": 2})
        same = HybridSearchRequest(query="q", tenant_id="t1", filters={"a": 2, "b": 1})

        assert build_cache_key(request, config, 20) == build_cache_key(same, config, 20)

    @pytest.mark.parametrize(
        "changes",
        [
            {"query": "other"},
            {"tenant_id": "t2"},
            {"filters": {"lang": "en"}},
            {"search_strategy": "vector"},
        ],
    )
    def test_request_fields_change_key(self, changes):
        config = HybridQueryConfig()
        base = HybridSearchRequest(query="q", tenant_id="t1")
        changed = HybridSearchRequest(**{**base.model_dump(), **changes})

        assert build_cache_key(base, config, 20) != build_cache_key(changed, config, 20)

    def test_limit_changes_key(self):
        request = HybridSearchRequest(query="q", tenant_id="t1")
        config = HybridQueryConfig()

        assert build_cache_key(request, config, 10) != build_cache_key(request, config, 20)

    @pytest.mark.parametrize(
        "changes",
        [
            {"fusion_algorithm": "rrf"},
            {"vector_weight": 0.5},
            {"keyword_weight": 0.5},
            {"rrf_constant": 30.0},
        ],
    )
    def test_fusion_config_changes_key(self, changes):
        request = HybridSearchRequest(query="q", tenant_id="t1")
        config = HybridQueryConfig()

        assert build_cache_key(request, config, 20) != build_cache_key(request, config.updated(**changes), 20)

    def test_unrelated_config_keeps_key(self):
        request = HybridSearchRequest(query="q", tenant_id="t1")
        config = HybridQueryConfig()

        assert build_cache_key(request, config, 20) == build_cache_key(
            request, config.updated(search_timeout=2.0), 20
        )

    def test_key_is_sha256_hex(self):
        key = build_cache_key(HybridSearchRequest(query="q", tenant_id="t"), HybridQueryConfig(), 20)
        assert len(key) == 64
        int(key, 16)


class TestHybridResultCache:
    """Two-tier cache behaviour"""

    @pytest.mark.asyncio
    async def test_put_then_get(self, clock):
        cache = HybridResultCache(clock=clock)
        response = make_response()

        await cache.put("k", response, 60)

        assert await cache.get("k") == response
        assert cache.size == 1

    @pytest.mark.asyncio
    async def test_entry_expires(self, clock):
        cache = HybridResultCache(clock=clock)
        await cache.put("k", make_response(), 60)

        clock.advance(60)

        assert await cache.get("k") is None
        assert cache.size == 0

    @pytest.mark.asyncio
    async def test_non_positive_ttl_is_not_cached(self, clock):
        cache = HybridResultCache(clock=clock)
        await cache.put("k", make_response(), 0)

        assert cache.size == 0

    @pytest.mark.asyncio
    async def test_least_recently_used_is_evicted(self, clock):
        cache = HybridResultCache(max_entries=2, clock=clock)
        await cache.put("a", make_response("a"), 60)
        await cache.put("b", make_response("b"), 60)

        await cache.get("a")
        await cache.put("c", make_response("c"), 60)

        assert await cache.get("b") is None
        assert await cache.get("a") is not None
        assert await cache.get("c") is not None
        assert cache.get_stats()["evictions"] == 1

    @pytest.mark.asyncio
    async def test_size_never_exceeds_budget(self, clock):
        cache = HybridResultCache(max_entries=3, clock=clock)
        for i in range(10):
            await cache.put(f"k{i}", make_response(), 60)

        assert cache.size == 3

    @pytest.mark.asyncio
    async def test_resize_evicts_oldest(self, clock):
        cache = HybridResultCache(max_entries=3, clock=clock)
        for key in ("a", "b", "c"):
            await cache.put(key, make_response(key), 60)

        await cache.resize(1)

        assert cache.size == 1
        assert await cache.get("c") is not None

    def test_rejects_invalid_budget(self):
        with pytest.raises(ValueError):
            HybridResultCache(max_entries=0)

    @pytest.mark.asyncio
    async def test_writes_through_to_external_store(self, clock, kv_store):
        cache = HybridResultCache(kv_store=kv_store, clock=clock)

        await cache.put("k", make_response(), 120)

        assert kv_store.ttls["k"] == 120
        assert CacheEntry.from_json(kv_store.data["k"]).response == make_response()

    @pytest.mark.asyncio
    async def test_external_hit_is_promoted(self, clock, kv_store):
        writer = HybridResultCache(kv_store=kv_store, clock=clock)
        await writer.put("k", make_response(), 120)

        reader = HybridResultCache(kv_store=kv_store, clock=clock)
        assert reader.size == 0

        assert await reader.get("k") == make_response()
        assert reader.size == 1

    @pytest.mark.asyncio
    async def test_expired_external_entry_is_ignored(self, clock, kv_store):
        writer = HybridResultCache(kv_store=kv_store, clock=clock)
        await writer.put("k", make_response(), 30)
        clock.advance(31)

        reader = HybridResultCache(kv_store=kv_store, clock=clock)

        assert await reader.get("k") is None

    @pytest.mark.asyncio
    async def test_undecodable_external_entry_is_a_miss(self, clock, kv_store):
        kv_store.data["k"] = "not json"
        cache = HybridResultCache(kv_store=kv_store, clock=clock)

        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_store_failures_are_swallowed(self, clock):
        cache = HybridResultCache(kv_store=InMemoryKeyValueStore(fail=True), clock=clock)

        await cache.put("k", make_response(), 60)
        assert await cache.get("k") == make_response()
        assert await cache.get("missing") is None
        await cache.clear()

        assert cache.get_stats()["store_errors"] == 3

    @pytest.mark.asyncio
    async def test_clear_empties_both_tiers(self, clock, kv_store):
        cache = HybridResultCache(kv_store=kv_store, clock=clock)
        await cache.put("k", make_response(), 60)

        await cache.clear()

        assert cache.size == 0
        assert kv_store.data == {}


    @pytest.mark.asyncio
    async def test_clear_local_keeps_external_tier(self, clock, kv_store):
        cache = HybridResultCache(kv_store=kv_store, clock=clock)
        await cache.put("k", make_response(), 60)

        assert await cache.clear_local() == 1

        assert cache.size == 0
        assert "k" in kv_store.data

    @pytest.mark.asyncio
    async def test_entries_are_detached_from_callers(self, clock):
        cache = HybridResultCache(clock=clock)
        response = make_response()
        await cache.put("k", response, 60)

        response.results[0].metadata["nodeType"] = "changed"
        hit = await cache.get("k")
        hit.results.clear()

        again = await cache.get("k")
        assert again.results[0].metadata == {"nodeType": "note"}
        assert again is not hit

class TestRedisKeyValueStore:
    """Redis tier over a mocked client"""

    @pytest.mark.asyncio
    async def test_put_uses_setex_with_prefix(self, mock_redis_client):
        store = RedisKeyValueStore(mock_redis_client, key_prefix="test:")

        await store.put("k", "v", 30)

        mock_redis_client.setex.assert_awaited_once_with("test:k", 30, "v")

    @pytest.mark.asyncio
    async def test_get_decodes_bytes(self, mock_redis_client):
        mock_redis_client.get = AsyncMock(return_value=b"payload")
        store = RedisKeyValueStore(mock_redis_client)

        assert await store.get("k") == "payload"
        mock_redis_client.get.assert_awaited_once_with("hybrid:k")

    @pytest.mark.asyncio
    async def test_errors_become_cache_store_errors(self, mock_redis_client):
        mock_redis_client.get = AsyncMock(side_effect=redis.ConnectionError("down"))
        store = RedisKeyValueStore(mock_redis_client)

        with pytest.raises(CacheStoreError):
            await store.get("k")

    @pytest.mark.asyncio
    async def test_clear_only_removes_prefixed_keys(self, mock_redis_client):
        async def scan_iter(match):
            assert match == "hybrid:*"
            for key in ("hybrid:a", "hybrid:b"):
                yield key

        mock_redis_client.scan_iter = scan_iter
        store = RedisKeyValueStore(mock_redis_client)

        await store.clear()

        assert mock_redis_client.delete.await_count == 2

    @pytest.mark.asyncio
    async def test_close_closes_client(self, mock_redis_client):
        store = RedisKeyValueStore(mock_redis_client)

        await store.close()

        mock_redis_client.aclose.assert_awaited_once()
