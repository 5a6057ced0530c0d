"""Configuration module for discord_monitor."""

from discord_monitor.config.loader import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigParseError,
    EnvVarNotFoundError,
    load_config,
)
from discord_monitor.config.models import (
    AppConfig,
    DatabaseConfig,
    DiscordConfig,
    LoggingConfig,
    ServerConfig,
)

__all__ = [
    # Exceptions
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigParseError",
    "EnvVarNotFoundError",
    # Functions
    "load_config",
    # Models
    "AppConfig",
    "DatabaseConfig",
    "DiscordConfig",
    "LoggingConfig",
    "ServerConfig",
]
