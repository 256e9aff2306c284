"""
Configuration management for clustervec.

Settings are loaded in priority order:
- built-in defaults
- config.yaml / config.json in the configuration directory
- environments/config.<ENVIRONMENT>.yaml / .json
- environment variables

and validated once everything has been applied.
"""

import os
import json
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from clustervec.similarity import available_similarities
from clustervec.monitoring.structured_logger import configure_logging


class Environment(Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class StoreConfig:
    """Clustering options for new stores"""

    similarity: str = "cosine"
    cluster_threshold: float = 0.85
    dynamic_clustering: bool = True
    recalculate_centers: bool = True
    max_clusters: int = 100


@dataclass
class SearchConfig:
    """Defaults applied when a search call omits a parameter"""

    limit: int = 10
    min_similarity: float = 0.0
    search_all_clusters: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration"""

    level: LogLevel = LogLevel.INFO
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json_format: bool = False
    enable_console: bool = True


@dataclass
class AppConfig:
    """Main application configuration"""

    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False

    store: StoreConfig = field(default_factory=StoreConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ConfigValidationError(Exception):
    """Raised when configuration validation fails"""

    pass


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ConfigManager:
    """
    Centralized configuration manager with support for:
    - Environment-specific configurations
    - Configuration validation
    - Runtime configuration updates
    """

    _instance: Optional["ConfigManager"] = None
    _lock = threading.Lock()

    def __new__(cls, *args, **kwargs):
        """Singleton pattern implementation"""
        if not cls._instance:
            with cls._lock:
                if not cls._instance:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        # Avoid re-initialization in singleton
        if hasattr(self, "_initialized"):
            return

        self._initialized = True
        if config_dir:
            self.config_dir = Path(config_dir)
        else:
            project_root = Path(__file__).parent.parent.parent
            self.config_dir = project_root / "config"

        self.config: AppConfig = AppConfig()
        self.logger = logging.getLogger(__name__)

        self._load_configuration()

    def _load_configuration(self):
        """Load configuration from multiple sources in priority order"""
        # 1. Defaults
        self.config = AppConfig()

        # 2. Base configuration files
        self._load_from_file("config.yaml")
        self._load_from_file("config.json")

        # 3. Environment-specific configuration
        env = os.getenv("ENVIRONMENT", "development").lower()
        self._load_from_file(f"environments/config.{env}.yaml")
        self._load_from_file(f"environments/config.{env}.json")

        # 4. Environment variables (highest priority)
        self._load_from_environment()

        # 5. Validation
        self._validate_configuration()

    def _load_from_file(self, filename: str):
        """Load configuration from YAML/JSON file"""
        file_path = self.config_dir / filename
        if not file_path.exists():
            return

        try:
            with open(file_path, "r") as f:
                if filename.endswith(".yaml") or filename.endswith(".yml"):
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            self.logger.warning(f"Failed to load configuration from {filename}: {e}")
            return

        if data:
            self._update_config_from_dict(data)
            self.logger.info(f"Loaded configuration from {filename}")

    def _load_from_environment(self):
        """Load configuration from environment variables"""
        env_mappings = {
            "ENVIRONMENT": ("environment", lambda x: Environment(x.lower())),
            "DEBUG": ("debug", _parse_bool),
            # Store
            "CLUSTERVEC_SIMILARITY": ("store.similarity", lambda x: x.lower()),
            "CLUSTERVEC_CLUSTER_THRESHOLD": ("store.cluster_threshold", float),
            "CLUSTERVEC_DYNAMIC_CLUSTERING": ("store.dynamic_clustering", _parse_bool),
            "CLUSTERVEC_RECALCULATE_CENTERS": ("store.recalculate_centers", _parse_bool),
            "CLUSTERVEC_MAX_CLUSTERS": ("store.max_clusters", int),
            # Search
            "CLUSTERVEC_SEARCH_LIMIT": ("search.limit", int),
            "CLUSTERVEC_MIN_SIMILARITY": ("search.min_similarity", float),
            "CLUSTERVEC_SEARCH_ALL_CLUSTERS": ("search.search_all_clusters", _parse_bool),
            # Logging
            "LOG_LEVEL": ("logging.level", lambda x: LogLevel(x.upper())),
            "LOG_FORMAT": ("logging.format", str),
            "LOG_JSON": ("logging.json_format", _parse_bool),
        }

        for env_var, (config_path, converter) in env_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                try:
                    self._set_nested_attr(self.config, config_path, converter(value))
                except (ValueError, TypeError) as e:
                    self.logger.warning(f"Invalid value for {env_var}: {value}, error: {e}")

    def _update_config_from_dict(self, data: Dict[str, Any], prefix: str = ""):
        """Update configuration from dictionary recursively"""
        for key, value in data.items():
            config_path = f"{prefix}.{key}" if prefix else key

            if isinstance(value, dict):
                self._update_config_from_dict(value, config_path)
                continue

            try:
                if config_path == "environment" and isinstance(value, str):
                    value = Environment(value.lower())
                elif config_path == "logging.level" and isinstance(value, str):
                    value = LogLevel(value.upper())
                elif config_path == "store.similarity" and isinstance(value, str):
                    value = value.lower()

                self._set_nested_attr(self.config, config_path, value)
            except AttributeError:
                self.logger.warning(f"Unknown configuration key: {config_path}")
            except ValueError as e:
                self.logger.warning(f"Invalid value for {config_path}: {value}, error: {e}")

    def _set_nested_attr(self, obj: Any, path: str, value: Any):
        """Set nested attribute using dot notation, refusing unknown keys"""
        parts = path.split(".")
        for part in parts[:-1]:
            obj = getattr(obj, part)
        if not hasattr(obj, parts[-1]):
            raise AttributeError(f"Unknown configuration key: {path}")
        setattr(obj, parts[-1], value)

    def _validate_configuration(self):
        """Validate configuration settings"""
        errors = []
        store = self.config.store
        search = self.config.search

        if store.similarity not in available_similarities():
            errors.append(
                f"Unknown similarity metric '{store.similarity}'; "
                f"available: {', '.join(available_similarities())}"
            )

        if not _is_integer(store.max_clusters) or store.max_clusters < 1:
            errors.append("store.max_clusters must be a positive integer")

        if not _is_number(store.cluster_threshold) or not -1.0 <= store.cluster_threshold <= 1.0:
            errors.append("store.cluster_threshold must be between -1 and 1")

        if not _is_integer(search.limit) or search.limit < 1:
            errors.append("search.limit must be a positive integer")

        if not _is_number(search.min_similarity) or not -1.0 <= search.min_similarity <= 1.0:
            errors.append("search.min_similarity must be between -1 and 1")

        if errors:
            raise ConfigValidationError(f"Configuration validation failed: {'; '.join(errors)}")

        self.logger.info("Configuration validation passed")

    def reload_configuration(self):
        """Reload configuration from all sources"""
        try:
            self._load_configuration()
            self.logger.info("Configuration reloaded successfully")
        except ConfigValidationError as e:
            self.logger.error(f"Failed to reload configuration: {e}")
            raise

    def get(self, path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation"""
        try:
            obj = self.config
            for part in path.split("."):
                obj = getattr(obj, part)
            return obj
        except AttributeError:
            return default

    def set(self, path: str, value: Any):
        """Set configuration value using dot notation"""
        self._set_nested_attr(self.config, path, value)
        self._validate_configuration()

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""

        def _asdict_recursive(obj):
            if hasattr(obj, "__dict__"):
                result = {}
                for key, value in obj.__dict__.items():
                    if isinstance(value, Enum):
                        result[key] = value.value
                    elif hasattr(value, "__dict__"):
                        result[key] = _asdict_recursive(value)
                    else:
                        result[key] = value
                return result
            return obj

        return _asdict_recursive(self.config)

    def save_to_file(self, filename: str, format: str = "yaml"):
        """Save current configuration to file"""
        file_path = self.config_dir / filename
        file_path.parent.mkdir(parents=True, exist_ok=True)
        config_dict = self.to_dict()

        with open(file_path, "w") as f:
            if format.lower() == "yaml":
                yaml.dump(config_dict, f, default_flow_style=False, indent=2)
            else:
                json.dump(config_dict, f, indent=2)

        self.logger.info(f"Configuration saved to {filename}")

    def get_store_config(self) -> Dict[str, Any]:
        """
        Get the configuration accepted by ClusteredVectorStore.

        Returns:
            Dictionary of store options plus a ``search`` section of search defaults
        """
        store = self.config.store
        search = self.config.search
        return {
            "similarity": store.similarity,
            "cluster_threshold": store.cluster_threshold,
            "dynamic_clustering": store.dynamic_clustering,
            "recalculate_centers": store.recalculate_centers,
            "max_clusters": store.max_clusters,
            "search": {
                "limit": search.limit,
                "min_similarity": search.min_similarity,
                "search_all_clusters": search.search_all_clusters,
            },
        }


def configure_logging_from_config(manager: Optional[ConfigManager] = None):
    """Apply the logging section of the configuration."""
    logging_config = (manager or get_config()).config.logging
    configure_logging(
        log_level=logging_config.level.value,
        json_format=logging_config.json_format,
        log_format=logging_config.format,
        enable_console=logging_config.enable_console,
    )


# Global configuration instance
_config_manager: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """Get the global configuration manager instance"""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def init_config(config_dir: Optional[Union[str, Path]] = None) -> ConfigManager:
    """Initialize the global configuration manager"""
    global _config_manager
    _config_manager = ConfigManager(config_dir)
    return _config_manager
