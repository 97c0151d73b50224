"""
External Key-Value Store

This module defines the contract of the optional external cache tier and a
Redis-backed implementation of it.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import redis.asyncio as redis

from retrieval_ops_exceptions import CacheStoreError

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """String key-value store with per-entry TTL."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when absent or expired."""
        pass

    @abstractmethod
    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value that expires after `ttl_seconds`."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    async def clear(self) -> None:
        """Remove every entry owned by this store, where supported."""
        logger.info(f"{type(self).__name__} does not support clearing; entries expire by TTL")

    async def close(self) -> None:
        pass


class RedisKeyValueStore(KeyValueStore):
    """
    Redis implementation of the external cache tier.

    All keys are namespaced with `key_prefix` so `clear()` only removes
    entries written by this store.
    """

    def __init__(self, client: "redis.Redis", key_prefix: str = "hybrid:"):
        """
        Initialize the store around an existing client.

        Args:
            client: redis.asyncio client
            key_prefix: Namespace for all keys written by this store
        """
        self._client = client
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "hybrid:", **kwargs) -> "RedisKeyValueStore":
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=kwargs.pop("socket_connect_timeout", 5),
            **kwargs
        )
        logger.info(f"Redis cache store created: prefix={key_prefix}")
        return cls(client, key_prefix=key_prefix)

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self._client.get(self._key(key))
        except redis.RedisError as e:
            raise CacheStoreError(f"Redis get failed for key {key}: {e}") from e
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client.setex(self._key(key), ttl_seconds, value)
        except redis.RedisError as e:
            raise CacheStoreError(f"Redis setex failed for key {key}: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(self._key(key))
        except redis.RedisError as e:
            raise CacheStoreError(f"Redis delete failed for key {key}: {e}") from e

    async def clear(self) -> None:
        deleted = 0
        try:
            async for redis_key in self._client.scan_iter(match=f"{self.key_prefix}*"):
                await self._client.delete(redis_key)
                deleted += 1
        except redis.RedisError as e:
            raise CacheStoreError(f"Redis clear failed: {e}") from e
        logger.info(f"Cleared {deleted} Redis cache entries with prefix {self.key_prefix}")

    async def close(self) -> None:
        await self._client.aclose()
