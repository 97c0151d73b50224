"""
Pydantic Settings for Hybrid Retrieval

This module provides strongly-typed configuration settings using Pydantic,
with support for environment variables and YAML configuration files.
"""

from typing import Optional, Union
from pathlib import Path
import os

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_yaml import to_yaml_file

from search_operations.config.base import FusionAlgorithm
from search_operations.config.hybrid import HybridQueryConfig


class FusionSettings(BaseSettings):
    """
    Fusion settings that control how vector and keyword results are merged.

    These settings determine the ranking of the final result list:
    - Which fusion algorithm scores each candidate
    - How much each retrieval path contributes to weighted scores
    - The damping constant used by Reciprocal Rank Fusion
    """
    model_config = SettingsConfigDict(env_prefix="HYBRID_FUSION_", case_sensitive=False, use_enum_values=False)

    algorithm: FusionAlgorithm = Field(FusionAlgorithm.ADAPTIVE,
                                       description="Fusion algorithm: weighted, rrf or adaptive")
    vector_weight: float = Field(0.7, ge=0.0, le=1.0,
                                 description="Weight of the vector similarity in weighted fusion")
    keyword_weight: float = Field(0.3, ge=0.0, le=1.0,
                                  description="Weight of the keyword score in weighted fusion")
    rrf_constant: float = Field(60.0, gt=0.0,
                                description="RRF damping constant k in 1/(k + rank)")


class SearchLimitSettings(BaseSettings):
    """
    Search settings for backend fan-out, result limits and time budget.
    """
    model_config = SettingsConfigDict(env_prefix="HYBRID_SEARCH_", case_sensitive=False)

    max_vector_results: int = Field(50, ge=1,
                                    description="Maximum results requested from the vector backend")
    max_keyword_results: int = Field(50, ge=1,
                                     description="Maximum results requested from the keyword backend")
    final_result_limit: int = Field(20, ge=1, le=100,
                                    description="Default number of fused results returned")
    search_timeout: float = Field(10.0, gt=0.0,
                                  description="Time budget in seconds for the backend phase")
    enable_parallel_search: bool = Field(True,
                                         description="Run vector and keyword backends concurrently")
    enable_query_analysis: bool = Field(True,
                                        description="Attach query type and complexity to response metadata")
    keyword_threshold: float = Field(0.5, ge=0.0, le=1.0,
                                     description="Keyword-signal score at which a query is considered keyword-like")


class CacheSettings(BaseSettings):
    """
    Result cache settings.

    The in-process tier is always available when caching is enabled; the
    Redis tier is used only when `redis_url` is set.
    """
    model_config = SettingsConfigDict(env_prefix="HYBRID_CACHE_", case_sensitive=False)

    enabled: bool = Field(True, description="Cache fused responses")
    ttl_seconds: int = Field(300, gt=0, description="Time to live of cached responses in seconds")
    memory_cache_size: int = Field(100, ge=1, description="Slot budget of the in-process cache tier")
    redis_url: Optional[str] = Field(None, description="Redis URL for the external cache tier (disabled if unset)")
    redis_key_prefix: str = Field("hybrid:", description="Prefix for keys written to Redis")


class MonitoringSettings(BaseSettings):
    """
    Monitoring settings for logging configuration.
    """
    model_config = SettingsConfigDict(env_prefix="HYBRID_MONITORING_", case_sensitive=False)

    log_level: str = Field("INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
    log_format: str = Field("%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                            description="Log record format string")


class HybridSearchSettings(BaseSettings):
    """
    Main settings class for hybrid retrieval that consolidates all configuration categories.

    Usage:
        # Load from environment variables and defaults
        settings = HybridSearchSettings()

        # Load from YAML file
        settings = HybridSearchSettings.from_yaml('config.yaml')

        # Build the engine configuration
        config = settings.to_query_config()
    """
    model_config = SettingsConfigDict(
        env_prefix="HYBRID_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    fusion: FusionSettings = Field(default_factory=FusionSettings,
                                   description="Result fusion settings")
    search: SearchLimitSettings = Field(default_factory=SearchLimitSettings,
                                        description="Backend fan-out, limits and time budget")
    cache: CacheSettings = Field(default_factory=CacheSettings,
                                 description="Result cache settings")
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings,
                                           description="Logging settings")

    @model_validator(mode="after")
    def check_result_limits(self) -> "HybridSearchSettings":
        """Fail at load time rather than at engine construction"""
        self.to_query_config()
        return self

    @classmethod
    def from_yaml(cls, yaml_file: Union[str, Path]) -> "HybridSearchSettings":
        """Load settings from YAML file"""
        import yaml

        with open(yaml_file, 'r') as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, yaml_file: Union[str, Path]) -> None:
        """Write settings to a YAML file"""
        to_yaml_file(Path(yaml_file), self)

    def to_query_config(self) -> HybridQueryConfig:
        """
        Build the engine configuration from these settings.

        Raises:
            ConfigurationError: If the combined values are invalid
        """
        return HybridQueryConfig(
            vector_weight=self.fusion.vector_weight,
            keyword_weight=self.fusion.keyword_weight,
            max_vector_results=self.search.max_vector_results,
            max_keyword_results=self.search.max_keyword_results,
            final_result_limit=self.search.final_result_limit,
            fusion_algorithm=self.fusion.algorithm,
            rrf_constant=self.fusion.rrf_constant,
            search_timeout=self.search.search_timeout,
            enable_parallel_search=self.search.enable_parallel_search,
            cache_results=self.cache.enabled,
            cache_ttl=self.cache.ttl_seconds,
            enable_query_analysis=self.search.enable_query_analysis,
            keyword_threshold=self.search.keyword_threshold,
            memory_cache_size=self.cache.memory_cache_size,
        )


def load_settings(config_path: Optional[str] = None) -> HybridSearchSettings:
    """
    Load settings from file and/or environment variables.

    Args:
        config_path: Path to YAML configuration file. If None or file doesn't exist,
                    falls back to environment variables and default values.

    Returns:
        HybridSearchSettings object with loaded configuration

    Example:
        # Load from specific config file
        settings = load_settings("/path/to/config.yaml")

        # Load from environment variables and defaults
        settings = load_settings()
    """
    if config_path and os.path.exists(config_path):
        return HybridSearchSettings.from_yaml(config_path)
    return HybridSearchSettings()
