"""
Logging Configuration

This module configures standard library logging for processes that host the
hybrid retrieval engine.
"""

import logging
import sys
from typing import Optional

from .settings import MonitoringSettings

logger = logging.getLogger(__name__)

NOISY_LOGGERS = ("pymilvus", "redis", "urllib3", "grpc")


def setup_logging(
    settings: Optional[MonitoringSettings] = None,
    service_name: Optional[str] = None
) -> None:
    """
    Configure the root logger.

    Args:
        settings: Monitoring settings providing level and format (defaults if not provided)
        service_name: Optional service name prefixed to every record
    """
    settings = settings or MonitoringSettings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    log_format = settings.log_format
    if service_name:
        log_format = f"[{service_name}] {log_format}"

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(log_format, datefmt="%Y-%m-%d %H:%M:%S"))
    root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info(f"Logging configured: level={settings.log_level}, service={service_name}")
