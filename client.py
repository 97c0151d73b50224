"""
Hybrid Retrieval Client

This module provides the main client interface for hybrid retrieval,
wiring settings, logging, the optional Redis cache tier and the hybrid
query engine together.
"""

from typing import Any, Dict, Optional, Union
import logging
from pathlib import Path

from config import HybridSearchSettings, load_settings, setup_logging
from retrieval_ops_exceptions import ConfigurationError
from search_operations import (
    HybridQueryEngine,
    HybridSearchResponse,
    HybridSearchStats,
    HybridQueryConfig,
    KeywordSearchService,
    VectorSearchService,
    KeyValueStore,
    RedisKeyValueStore,
)

# Logger setup
logger = logging.getLogger(__name__)


class HybridRetrievalClient:
    """
    Main client interface for hybrid retrieval.

    The client owns one HybridQueryEngine built from settings. Backends are
    injected so hosts can plug in any vector and keyword service.
    """

    def __init__(
        self,
        vector_search: VectorSearchService,
        keyword_search: KeywordSearchService,
        config: Optional[Union[HybridSearchSettings, str, Path]] = None,
        kv_store: Optional[KeyValueStore] = None,
        configure_logging: bool = False,
        service_name: Optional[str] = None
    ):
        """
        Initialize the hybrid retrieval client.

        Args:
            vector_search: Semantic search backend
            keyword_search: Full-text search backend
            config: Either a HybridSearchSettings object or a path to a config YAML file.
                   If None, settings are loaded from environment variables and defaults.
            kv_store: External cache tier; built from `cache.redis_url` when not provided
            configure_logging: Configure the root logger from the monitoring settings
            service_name: Service name used in log records
        """
        # Load configuration
        if config is None:
            self.settings = load_settings()
        elif isinstance(config, (str, Path)):
            self.settings = load_settings(str(config))
        elif isinstance(config, HybridSearchSettings):
            self.settings = config
        else:
            raise ConfigurationError(
                "Invalid configuration type. Expected HybridSearchSettings, str, Path, or None."
            )

        if configure_logging:
            setup_logging(self.settings.monitoring, service_name=service_name)

        if kv_store is None and self.settings.cache.enabled and self.settings.cache.redis_url:
            kv_store = RedisKeyValueStore.from_url(
                self.settings.cache.redis_url,
                key_prefix=self.settings.cache.redis_key_prefix,
            )

        self.engine = HybridQueryEngine(
            vector_search=vector_search,
            keyword_search=keyword_search,
            config=self.settings.to_query_config(),
            kv_store=kv_store,
        )

        logger.info("HybridRetrievalClient initialized successfully")

    async def search(self, query: str, tenant_id: str, **options: Any) -> HybridSearchResponse:
        """
        Search one tenant's content.

        Args:
            query: Search query text
            tenant_id: Tenant scope
            **options: Other HybridSearchRequest fields (filters, search_strategy,
                       limit, include_metadata)
        """
        request: Dict[str, Any] = {"query": query, "tenant_id": tenant_id, **options}
        return await self.engine.search(request)

    async def health_check(self) -> bool:
        return await self.engine.health_check()

    async def get_stats(self) -> HybridSearchStats:
        return await self.engine.get_stats()

    async def update_config(self, **changes: Any) -> HybridQueryConfig:
        return await self.engine.update_config(**changes)

    async def close(self) -> None:
        """Close the client and release all resources"""
        await self.engine.close()
        logger.info("HybridRetrievalClient closed")

    async def __aenter__(self) -> "HybridRetrievalClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
