from .config_manager import (
    ConfigManager,
    AppConfig,
    StoreConfig,
    SearchConfig,
    LoggingConfig,
    get_config,
    init_config,
    configure_logging_from_config,
    ConfigValidationError,
    Environment,
    LogLevel,
)

__all__ = [
    "ConfigManager",
    "AppConfig",
    "StoreConfig",
    "SearchConfig",
    "LoggingConfig",
    "get_config",
    "init_config",
    "configure_logging_from_config",
    "ConfigValidationError",
    "Environment",
    "LogLevel",
]
