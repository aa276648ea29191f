"""Configuration loading and validation."""

from imagehost.config.loader import (
    ConfigError,
    ConfigErrorCode,
    load_config,
    load_config_from_dict,
)
from imagehost.config.validation import (
    available_platforms,
    validate_config,
    validate_plugin_configs,
    validate_plugin_names,
)

__all__ = [
    "ConfigError",
    "ConfigErrorCode",
    "available_platforms",
    "load_config",
    "load_config_from_dict",
    "validate_config",
    "validate_plugin_configs",
    "validate_plugin_names",
]
