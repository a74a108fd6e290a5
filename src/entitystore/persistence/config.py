"""
Store Configuration

Where persistent stores live and how failures are surfaced, plus logging
setup for host applications.
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_STORE_DIRECTORY = Path.home() / ".entitystore"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class Environment(Enum):
    """Application environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


@dataclass
class StoreConfig:
    """
    Persistent store configuration.

    Attributes:
        database_url: SQLAlchemy URL; may contain a {name} placeholder for the
            schema name. When unset, each schema gets a SQLite file named
            after it inside store_directory.
        store_directory: Directory for per-schema SQLite files.
        echo: Log emitted SQL through the engine.
        raise_query_errors: Raise QueryError from fetch/insert_if_absent
            instead of returning None.
        connect_args: Extra DBAPI connect arguments.
    """
    database_url: Optional[str] = None
    store_directory: Path = DEFAULT_STORE_DIRECTORY
    echo: bool = False
    raise_query_errors: bool = False
    connect_args: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.store_directory = Path(self.store_directory).expanduser()

    def url_for(self, schema_name: str) -> str:
        """Database URL for the store backing the named schema"""
        if self.database_url:
            return self.database_url.format(name=schema_name)
        return f"sqlite:///{self.store_directory / f'{schema_name}.sqlite'}"

    @classmethod
    def for_environment(cls, environment: Environment) -> 'StoreConfig':
        """Create configuration for specific environment"""
        config = cls()
        if environment == Environment.DEVELOPMENT:
            config.echo = True
            config.raise_query_errors = True
        elif environment == Environment.TESTING:
            config.database_url = "sqlite://"
        return config

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> 'StoreConfig':
        """Create configuration from ENTITYSTORE_* environment variables"""
        env = os.environ if environ is None else environ
        config = cls(
            database_url=env.get("ENTITYSTORE_DATABASE_URL") or None,
            echo=env.get("ENTITYSTORE_ECHO", "").lower() in _TRUE_VALUES,
            raise_query_errors=env.get("ENTITYSTORE_RAISE_QUERY_ERRORS", "").lower() in _TRUE_VALUES,
        )
        if env.get("ENTITYSTORE_STORE_DIR"):
            config.store_directory = Path(env["ENTITYSTORE_STORE_DIR"]).expanduser()
        return config

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'StoreConfig':
        """Create configuration from dictionary, ignoring unknown keys"""
        config = cls()
        for key, value in config_dict.items():
            if hasattr(config, key):
                setattr(config, key, value)
        config.store_directory = Path(config.store_directory).expanduser()
        return config


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None


def configure_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """Attach a handler to the entitystore logger hierarchy"""
    config = config or LoggingConfig()
    root = logging.getLogger("entitystore")
    root.setLevel(config.level.upper())

    handler: logging.Handler
    if config.file_path:
        handler = logging.FileHandler(config.file_path)
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(config.format))

    # Replace handlers from an earlier call
    for existing in list(root.handlers):
        root.removeHandler(existing)
        existing.close()
    root.addHandler(handler)
    return root


__all__ = [
    "Environment",
    "StoreConfig",
    "LoggingConfig",
    "configure_logging",
    "DEFAULT_STORE_DIRECTORY",
]
