"""
Hotplug - Plugin lifecycle management for a running host process.

This is the main package that exports the public API: discovery of plugin
packages, dependency resolution, staging, and reconciliation of the running
plugins against the enabled-plugins file.
"""

__version__ = "0.1.0"

from hotplug.config import PluginsConfig, load_config
from hotplug.core.event_bus import EventBus
from hotplug.plugin.catalog import Catalog, scan
from hotplug.plugin.descriptor import PackageKind, PluginDescriptor
from hotplug.plugin.errors import PluginError
from hotplug.plugin.graph import dependencies
from hotplug.plugin.host import ModuleHost
from hotplug.plugin.loader import ImportlibModuleLoader
from hotplug.plugin.manager import PluginManager, PluginsChanged, ReconcileResult

__all__ = [
    "__version__",
    "Catalog",
    "EventBus",
    "ImportlibModuleLoader",
    "ModuleHost",
    "PackageKind",
    "PluginDescriptor",
    "PluginError",
    "PluginManager",
    "PluginsChanged",
    "PluginsConfig",
    "ReconcileResult",
    "dependencies",
    "load_config",
    "scan",
]
