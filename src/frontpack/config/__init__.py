"""Configuration loading for frontpack."""

from frontpack.config.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
    MissingEntryError,
)
from frontpack.config.settings import FrontpackConfig, find_config, load_config

__all__ = [
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "FrontpackConfig",
    "MissingEntryError",
    "find_config",
    "load_config",
]
