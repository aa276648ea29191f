"""Custom configuration validation helpers."""

from __future__ import annotations

from imagehost.config.loader import ConfigError, ConfigErrorCode
from imagehost.models.config import Config
from imagehost.plugins.registry import PluginType, get_plugin_names, validate_plugin


def validate_plugin_names(config: Config, valid_platforms: list[str]) -> None:
    """Validate that the platform backend is recognized.

    A platform name is only valid when it provides all collaborator types,
    so callers should pass the intersection of the per-type registries.

    Raises:
        ConfigError: If the platform backend is not recognized
    """
    valid_lower = {name.lower() for name in valid_platforms}
    if config.platform.backend.lower() not in valid_lower:
        raise ConfigError(
            f"Unknown platform backend: {config.platform.backend} (valid: {sorted(valid_lower)})",
            code=ConfigErrorCode.PLUGIN_NAMES_INVALID,
        )


def validate_plugin_configs(config: Config) -> None:
    """Validate platform settings against every registered collaborator config model."""
    errors: list[str] = []
    backend = config.platform.backend

    try:
        settings = config.platform.backend_settings()
    except ValueError as exc:
        raise ConfigError(str(exc), code=ConfigErrorCode.PLUGIN_CONFIG_INVALID) from exc

    for plugin_type in PluginType:
        try:
            validate_plugin(plugin_type, backend, settings)
        except Exception as exc:
            errors.append(f"{plugin_type.value}[{backend}]: {exc}")

    if errors:
        raise ConfigError(
            "Invalid plugin config:\n  " + "\n  ".join(errors),
            code=ConfigErrorCode.PLUGIN_CONFIG_INVALID,
        )


def available_platforms() -> list[str]:
    """Return platform names that register every collaborator type."""
    names = [set(get_plugin_names(plugin_type)) for plugin_type in PluginType]
    return sorted(set.intersection(*names))


def validate_config(config: Config) -> None:
    """Run all registry-backed validation on a parsed config."""
    validate_plugin_names(config, available_platforms())
    validate_plugin_configs(config)
