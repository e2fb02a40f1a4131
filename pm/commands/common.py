"""
Shared helpers for pm commands.
"""

from pathlib import Path
from typing import Any

from hotplug.config import PluginsConfig, load_config
from hotplug.plugin.catalog import Catalog, list_plugins
from hotplug.plugin.enabled import read_enabled
from hotplug.plugin.loader import ImportlibModuleLoader


def load_context(args: Any) -> tuple[PluginsConfig, Catalog, list[str]]:
    """
    Load the config, the plugin catalog and the enabled list.

    A missing config file means the default layout under the current
    directory.

    Args:
        args: Parsed command-line arguments

    Returns:
        Tuple of (config, catalog, enabled names)
    """
    config_path = Path(args.config)
    if config_path.exists():
        config = load_config(config_path)
    else:
        config = PluginsConfig.from_mapping({}, Path.cwd())

    catalog = list_plugins(
        config.plugins_dir, ImportlibModuleLoader(), config.archive_suffix
    )
    return config, catalog, read_enabled(config.enabled_file)
