"""
Configuration Module

This module provides centralized configuration management for hybrid retrieval:
- Fusion algorithm and weights
- Backend fan-out, result limits and time budget
- Result cache and Redis tier settings
- Logging configuration

Implements an environment-aware configuration system with sensible defaults
and validation using Pydantic, loadable from environment variables or YAML.
"""

from .settings import (
    HybridSearchSettings,
    FusionSettings,
    SearchLimitSettings,
    CacheSettings,
    MonitoringSettings,
    load_settings,
)
from .logging_config import setup_logging

__all__ = [
    'HybridSearchSettings',
    'FusionSettings',
    'SearchLimitSettings',
    'CacheSettings',
    'MonitoringSettings',
    'load_settings',
    'setup_logging',
]
