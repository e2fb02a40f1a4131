"""
Plugin Manager.

This module reconciles the running plugins with the enabled-plugins file.

Key features:
- Boot-time setup of the staging directory
- Active plugin query
- Ordered reconciliation: start, notify, stop, clean up
- Change handling for the enabled-plugins file

The manager does not serialise its own calls: setup(), reconcile() and
ensure() must never run concurrently.
"""

import warnings
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from hotplug.config import PluginsConfig
from hotplug.core.event_bus import EventBus
from hotplug.plugin import staging
from hotplug.plugin.catalog import Catalog, list_plugins
from hotplug.plugin.enabled import read_enabled
from hotplug.plugin.errors import CannotUnload, EnabledPluginsFileMismatch
from hotplug.plugin.graph import DependencyGraph
from hotplug.plugin.host import HostLifecycle
from hotplug.plugin.loader import ModuleLoader

PLUGINS_CHANGED = "plugins_changed"


@dataclass(frozen=True)
class PluginsChanged:
    """
    Payload of the plugins_changed notification.

    Attributes:
        enabled: Plugins that were just started
        disabled: Plugins about to be stopped (their code is still loaded)
    """

    enabled: frozenset[str]
    disabled: frozenset[str]


@dataclass(frozen=True)
class ReconcileResult:
    """Plugins started and stopped by one reconciliation."""

    started: frozenset[str]
    stopped: frozenset[str]


class PluginManager:
    """
    Plugin lifecycle manager.

    Discovers plugins in the distribution directory, stages the wanted ones
    and drives the host to start and stop them.
    """

    def __init__(
        self,
        config: PluginsConfig,
        loader: ModuleLoader,
        host: HostLifecycle,
        bus: EventBus,
    ):
        """
        Initialize PluginManager.

        Args:
            config: Paths of the distribution dir, staging dir and enabled file
            loader: Module loader for probing, registering and unloading code
            host: Host component lifecycle
            bus: Event bus receiving plugins_changed
        """
        self.config = config
        self.loader = loader
        self.host = host
        self.bus = bus

    def list_plugins(self, directory: Path) -> Catalog:
        """Get the validated catalog of plugins in a directory."""
        return list_plugins(directory, self.loader, self.config.archive_suffix)

    def setup(self) -> set[str]:
        """
        Prepare the file system and install all enabled plugins.

        The staging directory is wiped, then the enabled plugins and their
        dependencies are staged. Nothing is started.

        Returns:
            The wanted plugin names

        Raises:
            CannotClearStagingDir: If the staging directory cannot be wiped
            PluginError: If the enabled list or catalog cannot be used
        """
        staging.clear(self.config.expand_dir)
        enabled = read_enabled(self.config.enabled_file)
        return self._prepare_plugins(enabled)

    def active(self) -> set[str]:
        """
        Lists the plugins which are currently running.

        Returns:
            Running component names that are staged plugins
        """
        installed = set(self.list_plugins(self.config.expand_dir).names())
        return self.host.running_components() & installed

    def ensure(self, changed_file: Path) -> ReconcileResult:
        """
        React to a change of the enabled-plugins file.

        Args:
            changed_file: File reported as changed

        Returns:
            ReconcileResult

        Raises:
            EnabledPluginsFileMismatch: If changed_file is not our enabled file
        """
        ours = self.config.enabled_file
        if Path(changed_file).resolve() != ours.resolve():
            raise EnabledPluginsFileMismatch(Path(changed_file), ours)

        return self.reconcile(read_enabled(ours))

    def reconcile(self, desired: Iterable[str]) -> ReconcileResult:
        """
        Bring the running plugins in line with a desired list.

        The plugins_changed notification is delivered after starting and
        before stopping, while the code of the plugins being stopped is
        still loaded. Failures are not rolled back.

        Args:
            desired: Plugin names that should be enabled

        Returns:
            ReconcileResult with the started and stopped names

        Raises:
            PluginError: If any step fails
        """
        wanted = self._prepare_plugins(desired)
        current = self.active()

        to_start = wanted - current
        to_stop = current - wanted

        # Staging catalog also orders plugins that are no longer distributed
        graph = DependencyGraph.from_catalog(self.list_plugins(self.config.expand_dir))

        self.host.start(graph.topological_order(to_start))
        self.bus.sync_notify(
            PLUGINS_CHANGED,
            PluginsChanged(enabled=frozenset(to_start), disabled=frozenset(to_stop)),
        )
        self.host.stop(list(reversed(graph.topological_order(to_stop))))
        self._clean_plugins(to_stop)

        return ReconcileResult(started=frozenset(to_start), stopped=frozenset(to_stop))

    def _prepare_plugins(self, enabled: Iterable[str]) -> set[str]:
        enabled = list(enabled)
        catalog = self.list_plugins(self.config.plugins_dir)

        unknown = sorted(name for name in enabled if name not in catalog)
        if unknown:
            warnings.warn(
                f"Enabled plugins not found: {unknown}", RuntimeWarning, stacklevel=3
            )

        wanted = DependencyGraph.from_catalog(catalog).reachable(enabled)

        staging.ensure_dir(self.config.expand_dir)
        return staging.stage(wanted, catalog, self.config.expand_dir, self.loader)

    def _clean_plugins(self, names: Iterable[str]) -> None:
        for name in names:
            self.loader.unload(name)
            if self.loader.is_loaded(name):
                raise CannotUnload(name)
            staging.unstage([name], self.config.expand_dir)
