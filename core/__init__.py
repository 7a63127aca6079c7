"""
=============================================
Core infrastructure package for the builder.
=============================================

This package provides centralized configuration management and logging
infrastructure used throughout the query builder.

Modules:
    config: Configuration management from environment variables
    logger: Centralized logging configuration and the query debug hook

Example:
    >>> from core.config import config
    >>> from core.logger import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info(f"Connecting to {config.db_host}")
"""

__version__ = "0.1.0"
__all__ = ['get_logger', 'setup_logging', 'log_query', 'config', 'Config', 'DatabaseConfig']

from core.config import Config, DatabaseConfig, config
from core.logger import get_logger, log_query, setup_logging
