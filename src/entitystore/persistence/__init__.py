"""
EntityStore Persistence Module

Store containers and view contexts, and their configuration.
"""

from .base import StoreContainer, StoreContext
from .config import Environment, StoreConfig, LoggingConfig, configure_logging
from .sql import SQLModelContainer, SQLModelContext

__all__ = [
    "StoreContainer",
    "StoreContext",
    "Environment",
    "StoreConfig",
    "LoggingConfig",
    "configure_logging",
    "SQLModelContainer",
    "SQLModelContext",
]
