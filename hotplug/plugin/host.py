"""
Host Component Lifecycle.

This module defines how the plugin manager starts and stops components.

Key features:
- HostLifecycle protocol consumed by the plugin manager
- ModuleHost: imports plugin modules and runs their start/stop hooks
- Per-component state tracking
"""

import importlib
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from types import ModuleType
from typing import Protocol

from hotplug.plugin.errors import PluginError


class HostError(PluginError):
    """Raised when a component fails to start or stop."""

    pass


class HostLifecycle(Protocol):
    """Component start/stop primitives of the host process."""

    def start(self, names: list[str]) -> None:
        """Start components, dependencies first."""
        ...

    def stop(self, names: list[str]) -> None:
        """Stop components, dependents first."""
        ...

    def running_components(self) -> set[str]:
        """Names of every component currently running."""
        ...


class ComponentState(Enum):
    """Component state enumeration."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    ERROR = "error"


@dataclass
class Component:
    """
    A component known to the host.

    Attributes:
        name: Component (module) name
        state: Current state
        module: Imported module while running
        error: Error message if state is ERROR
    """

    name: str
    state: ComponentState = ComponentState.STOPPED
    module: ModuleType | None = None
    error: str | None = None


class ModuleHost:
    """
    HostLifecycle that runs plugins as Python modules.

    Starting a component imports the module named after it and calls its
    start() function if it has one; stopping calls stop(). Components started
    elsewhere can be reported through extra_running.
    """

    def __init__(self, extra_running: Iterable[str] = ()):
        self._components: dict[str, Component] = {}
        self._extra_running = set(extra_running)
        self._lock = threading.Lock()

    def _component(self, name: str) -> Component:
        with self._lock:
            if name not in self._components:
                self._components[name] = Component(name=name)
            return self._components[name]

    def start(self, names: list[str]) -> None:
        """
        Start components in the given order.

        Args:
            names: Component names, dependencies first

        Raises:
            HostError: If a module cannot be imported or its start() fails
        """
        for name in names:
            component = self._component(name)
            if component.state == ComponentState.RUNNING:
                continue

            component.state = ComponentState.STARTING
            try:
                module = importlib.import_module(name)
                hook = getattr(module, "start", None)
                if callable(hook):
                    hook()
            except Exception as e:
                component.state = ComponentState.ERROR
                component.error = str(e)
                raise HostError(f"Failed to start component {name}: {e}") from e

            component.module = module
            component.state = ComponentState.RUNNING
            component.error = None

    def stop(self, names: list[str]) -> None:
        """
        Stop components in the given order.

        Args:
            names: Component names, dependents first

        Raises:
            HostError: If a module's stop() fails
        """
        for name in names:
            component = self._component(name)
            if component.state != ComponentState.RUNNING:
                continue

            component.state = ComponentState.STOPPING
            hook = getattr(component.module, "stop", None)
            try:
                if callable(hook):
                    hook()
            except Exception as e:
                component.state = ComponentState.ERROR
                component.error = str(e)
                raise HostError(f"Failed to stop component {name}: {e}") from e

            component.module = None
            component.state = ComponentState.STOPPED

    def running_components(self) -> set[str]:
        """Names of running components."""
        with self._lock:
            running = {
                name
                for name, component in self._components.items()
                if component.state == ComponentState.RUNNING
            }
        return running | self._extra_running

    def get_component(self, name: str) -> Component | None:
        """Get component information, or None if never started."""
        with self._lock:
            return self._components.get(name)
