"""
Hotplug Configuration - TOML-based paths for the plugin system.

This module provides:
- PluginsConfig: the distribution, staging and enabled-file paths
- Loading from and saving to a TOML file with a [plugins] table

Example usage:
    from hotplug.config import load_config

    config = load_config(Path("config/hotplug.toml"))
    print(config.plugins_dir)
"""

from dataclasses import dataclass
from pathlib import Path

from hotplug.config.schema import (
    PLUGINS_SCHEMA,
    ValidationError,
    generate_default_config,
    validate_config,
)
from hotplug.config.toml_handler import (
    TOMLError,
    generate_toml_from_schema,
    read_toml,
    write_toml,
)

SECTION = "plugins"


class ConfigError(Exception):
    """Raised when the configuration file cannot be used."""

    pass


@dataclass(frozen=True)
class PluginsConfig:
    """
    Paths used by the plugin manager.

    Attributes:
        plugins_dir: Distribution directory scanned for packages
        expand_dir: Staging directory owned by the plugin manager
        enabled_file: Enabled-plugins file
        archive_suffix: Suffix of archive packages
    """

    plugins_dir: Path
    expand_dir: Path
    enabled_file: Path
    archive_suffix: str = ".ez"

    @classmethod
    def from_mapping(cls, data: dict, base_dir: Path) -> "PluginsConfig":
        """
        Build a config from a validated [plugins] table.

        Args:
            data: Table contents (missing keys take defaults)
            base_dir: Directory relative paths are resolved against

        Returns:
            PluginsConfig
        """
        values = generate_default_config(PLUGINS_SCHEMA)
        values.update(data)
        return cls(
            plugins_dir=base_dir / values["dir"],
            expand_dir=base_dir / values["expand_dir"],
            enabled_file=base_dir / values["enabled_file"],
            archive_suffix=values["archive_suffix"],
        )


def load_config(path: Path) -> PluginsConfig:
    """
    Load the plugin configuration from a TOML file.

    Relative paths in the file are resolved against the file's directory.

    Args:
        path: Config file path

    Returns:
        PluginsConfig

    Raises:
        ConfigError: If the file cannot be read or fails validation
    """
    try:
        data = read_toml(path)
    except TOMLError as e:
        raise ConfigError(str(e)) from e

    section = data.get(SECTION, {})
    if not isinstance(section, dict):
        raise ConfigError(f"[{SECTION}] in {path} must be a table")

    try:
        validate_config(section, PLUGINS_SCHEMA)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    return PluginsConfig.from_mapping(section, path.parent.absolute())


def save_config(config: PluginsConfig, path: Path) -> None:
    """
    Write a commented TOML config file.

    Args:
        config: Configuration to write
        path: Destination file

    Raises:
        ConfigError: If the file cannot be written
    """
    content = generate_toml_from_schema(
        SECTION,
        PLUGINS_SCHEMA,
        {
            "dir": str(config.plugins_dir),
            "expand_dir": str(config.expand_dir),
            "enabled_file": str(config.enabled_file),
            "archive_suffix": config.archive_suffix,
        },
    )
    try:
        write_toml(path, content)
    except TOMLError as e:
        raise ConfigError(str(e)) from e


__all__ = ["PluginsConfig", "load_config", "save_config", "ConfigError"]
