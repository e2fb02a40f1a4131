"""
Tests for Plugin Manager.

This test suite covers:
1. Setup of the staging directory
2. Active plugin query
3. Reconciliation scenarios and ordering
4. Idempotence
5. Enabled-file change handling
6. End-to-end with the importlib loader and module host
"""

import json
import sys
import tempfile
from pathlib import Path

import pytest

from hotplug.config import PluginsConfig
from hotplug.core.event_bus import EventBus
from hotplug.plugin.enabled import write_enabled
from hotplug.plugin.errors import (
    CannotUnload,
    CyclicDependency,
    EnabledPluginsFileMismatch,
    MissingDependencies,
)
from hotplug.plugin.host import ComponentState, ModuleHost
from hotplug.plugin.loader import ImportlibModuleLoader
from hotplug.plugin.manager import PLUGINS_CHANGED, PluginManager, PluginsChanged


class FakeLoader:
    """In-memory module loader."""

    def __init__(self, builtins=(), sticky=()):
        self.builtins = set(builtins)
        self.sticky = set(sticky)
        self.paths = []
        self.loaded = set()
        self.unloaded = []

    def probe_loadable(self, name):
        return name in self.builtins

    def register_search_path(self, directory):
        self.paths.append(directory)

    def unload(self, name):
        self.unloaded.append(name)
        if name not in self.sticky:
            self.loaded.discard(name)

    def is_loaded(self, name):
        return name in self.loaded


class FakeHost:
    """Host that records start/stop calls."""

    def __init__(self, loader, log, running=()):
        self.loader = loader
        self.log = log
        self.running = set(running)

    def start(self, names):
        self.log.append(("start", list(names)))
        self.running.update(names)
        self.loader.loaded.update(names)

    def stop(self, names):
        self.log.append(("stop", list(names)))
        self.running.difference_update(names)

    def running_components(self):
        return set(self.running)


def write_dir_plugin(base: Path, name: str, deps=(), code: str = "") -> None:
    ebin = base / name / "ebin"
    ebin.mkdir(parents=True)
    (ebin / f"{name}.app").write_text(
        json.dumps({"application": name, "vsn": "1.0.0", "applications": list(deps)})
    )
    (ebin / f"{name}.py").write_text(code)


class Env:
    """A distribution dir, staging dir and manager wired to fakes."""

    def __init__(self, root: Path, builtins=(), running=(), sticky=()):
        self.config = PluginsConfig(
            plugins_dir=root / "plugins",
            expand_dir=root / "expand",
            enabled_file=root / "enabled_plugins",
        )
        self.config.plugins_dir.mkdir()
        self.log = []
        self.loader = FakeLoader(builtins=builtins, sticky=sticky)
        self.host = FakeHost(self.loader, self.log, running)
        self.bus = EventBus()
        self.bus.register_consumer(PLUGINS_CHANGED, self._on_change)
        self.manager = PluginManager(self.config, self.loader, self.host, self.bus)

    def _on_change(self, change: PluginsChanged):
        still_loaded = {n for n in change.disabled if self.loader.is_loaded(n)}
        self.log.append(("notify", change, still_loaded))

    def add(self, name, deps=()):
        write_dir_plugin(self.config.plugins_dir, name, deps)

    def staged(self) -> list[str]:
        if not self.config.expand_dir.exists():
            return []
        return sorted(p.name for p in self.config.expand_dir.iterdir())


class TestSetup:
    """Test boot-time setup."""

    def test_setup_stages_enabled_closure(self):
        """setup should stage enabled plugins and dependencies, nothing else."""
        with tempfile.TemporaryDirectory() as tmpdir:
            env = Env(Path(tmpdir))
            env.add("a", deps=["b"])
            env.add("b")
            env.add("c")
            write_enabled(env.config.enabled_file, ["a"])

            wanted = env.manager.setup()

            assert wanted == {"a", "b"}
            assert env.staged() == ["a", "b"]
            assert env.log == []

    def test_setup_wipes_staging_dir(self):
        """Leftovers from a previous run should be removed."""
        with tempfile.TemporaryDirectory() as tmpdir:
            env = Env(Path(tmpdir))
            env.add("a")
            stale = env.config.expand_dir / "old" / "ebin"
            stale.mkdir(parents=True)
            (stale / "old.app").write_text(json.dumps({"application": "old"}))

            wanted = env.manager.setup()

            assert wanted == set()
            assert env.staged() == []

    def test_setup_missing_enabled_file(self):
        """No enabled file means nothing is staged."""
        with tempfile.TemporaryDirectory() as tmpdir:
            env = Env(Path(tmpdir))
            env.add("a")

            assert env.manager.setup() == set()
            assert env.config.expand_dir.is_dir()


class TestActive:
    """Test the active plugin query."""

    def test_active_excludes_non_plugins(self):
        """Components not staged as plugins should not be reported."""
        with tempfile.TemporaryDirectory() as tmpdir:
            env = Env(Path(tmpdir), running={"kernel", "a"})
            env.add("a")
            write_enabled(env.config.enabled_file, ["a"])
            env.manager.setup()

            assert env.manager.active() == {"a"}

    def test_active_without_staging_dir(self):
        """Nothing is active before anything is staged."""
        with tempfile.TemporaryDirectory() as tmpdir:
            env = Env(Path(tmpdir), running={"a"})
            assert env.manager.active() == set()


class TestReconcile:
    """Test reconciliation."""

    def test_enable_with_dependency(self):
        """Enabling A should start A and its dependency B."""
        with tempfile.TemporaryDirectory() as tmpdir:
            env = Env(Path(tmpdir))
            env.add("a", deps=["b"])
            env.add("b")

            result = env.manager.reconcile(["a"])

            assert result.started == {"a", "b"}
            assert result.stopped == set()
            assert env.staged() == ["a", "b"]
            assert env.log[0] == ("start", ["b", "a"])

    def test_disable_dependent(self):
        """Dropping A from the enabled list should stop and clean only A."""
        with tempfile.TemporaryDirectory() as tmpdir:
            env = Env(Path(tmpdir))
            env.add("a", deps=["b"])
            env.add("b")
            env.manager.reconcile(["a"])
            env.log.clear()

            result = env.manager.reconcile(["b"])

            assert result.started == set()
            assert result.stopped == {"a"}
            assert env.loader.unloaded == ["a"]
            assert not env.loader.is_loaded("a")
            assert env.staged() == ["b"]
            assert env.manager.active() == {"b"}

    def test_order_start_notify_stop(self):
        """Start, then notify with code still loaded, then stop."""
        with tempfile.TemporaryDirectory() as tmpdir:
            env = Env(Path(tmpdir))
            env.add("a")
            env.add("b")
            env.manager.reconcile(["a"])
            env.log.clear()

            env.manager.reconcile(["b"])

            assert [entry[0] for entry in env.log] == ["start", "notify", "stop"]
            _, change, still_loaded = env.log[1]
            assert change == PluginsChanged(
                enabled=frozenset({"b"}), disabled=frozenset({"a"})
            )
            assert still_loaded == {"a"}

    def test_stop_dependents_first(self):
        """Stopping should run in reverse dependency order."""
        with tempfile.TemporaryDirectory() as tmpdir:
            env = Env(Path(tmpdir))
            env.add("a", deps=["b"])
            env.add("b", deps=["c"])
            env.add("c")
            env.manager.reconcile(["a"])
            env.log.clear()

            result = env.manager.reconcile([])

            assert result.stopped == {"a", "b", "c"}
            assert ("stop", ["a", "b", "c"]) in env.log
            assert env.staged() == []

    def test_idempotent(self):
        """Reconciling twice with the same list should change nothing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            env = Env(Path(tmpdir))
            env.add("a", deps=["b"])
            env.add("b")

            env.manager.reconcile(["a"])
            result = env.manager.reconcile(["a"])

            assert result.started == set()
            assert result.stopped == set()

    def test_builtin_dependencies_not_started(self):
        """Host-provided dependencies should not be started as plugins."""
        with tempfile.TemporaryDirectory() as tmpdir:
            env = Env(Path(tmpdir), builtins={"kernel"})
            env.add("a", deps=["kernel"])

            result = env.manager.reconcile(["a"])

            assert result.started == {"a"}

    def test_unknown_enabled_name_warns(self):
        """Enabled names missing from the distribution should be skipped."""
        with tempfile.TemporaryDirectory() as tmpdir:
            env = Env(Path(tmpdir))
            env.add("a")

            with pytest.warns(RuntimeWarning, match="not found"):
                result = env.manager.reconcile(["a", "ghost"])

            assert result.started == {"a"}

    def test_missing_dependencies_abort(self):
        """A dependency-inconsistent distribution should abort."""
        with tempfile.TemporaryDirectory() as tmpdir:
            env = Env(Path(tmpdir))
            env.add("a", deps=["x"])

            with pytest.raises(MissingDependencies) as exc_info:
                env.manager.reconcile(["a"])

            assert exc_info.value.missing == {"x"}
            assert exc_info.value.blamed_by == ["a"]
            assert env.log == []

    def test_cycle_aborts(self):
        """A cyclic distribution should abort before staging."""
        with tempfile.TemporaryDirectory() as tmpdir:
            env = Env(Path(tmpdir))
            env.add("a", deps=["b"])
            env.add("b", deps=["a"])

            with pytest.raises(CyclicDependency):
                env.manager.reconcile(["a"])

            assert env.staged() == []

    def test_unload_must_succeed(self):
        """Code that stays loaded after unload should be an error."""
        with tempfile.TemporaryDirectory() as tmpdir:
            env = Env(Path(tmpdir), sticky={"a"})
            env.add("a")
            env.manager.reconcile(["a"])

            with pytest.raises(CannotUnload):
                env.manager.reconcile([])

            # no rollback: a was stopped but its files stay staged
            assert env.staged() == ["a"]


class TestEnsure:
    """Test enabled-file change handling."""

    def test_ensure_reads_enabled_file(self):
        """ensure should reconcile against the file contents."""
        with tempfile.TemporaryDirectory() as tmpdir:
            env = Env(Path(tmpdir))
            env.add("a")
            write_enabled(env.config.enabled_file, ["a"])

            result = env.manager.ensure(env.config.enabled_file)

            assert result.started == {"a"}

    def test_ensure_other_file(self):
        """A change to another file should be rejected."""
        with tempfile.TemporaryDirectory() as tmpdir:
            env = Env(Path(tmpdir))
            other = Path(tmpdir) / "other_plugins"

            with pytest.raises(EnabledPluginsFileMismatch) as exc_info:
                env.manager.ensure(other)

            assert exc_info.value.got == other
            assert exc_info.value.expected == env.config.enabled_file
            assert env.log == []

    def test_ensure_unnormalised_path(self):
        """The enabled file reached through .. should still match."""
        with tempfile.TemporaryDirectory() as tmpdir:
            env = Env(Path(tmpdir))
            env.add("a")
            write_enabled(env.config.enabled_file, ["a"])
            changed = Path(tmpdir) / "plugins" / ".." / "enabled_plugins"

            result = env.manager.ensure(changed)

            assert result.started == {"a"}


class TestEndToEnd:
    """Test with the importlib loader and module host."""

    def test_start_and_stop_real_modules(self):
        """Plugins should be importable from the staging dir and unloaded after."""
        name = "hotplug_e2e_alpha"
        code = "STARTED = []\n\ndef start():\n    STARTED.append(True)\n"

        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            config = PluginsConfig(
                plugins_dir=root / "plugins",
                expand_dir=root / "expand",
                enabled_file=root / "enabled_plugins",
            )
            write_dir_plugin(config.plugins_dir, name, deps=["json"], code=code)
            write_enabled(config.enabled_file, [name])

            loader = ImportlibModuleLoader()
            host = ModuleHost()
            manager = PluginManager(config, loader, host, EventBus())

            try:
                assert manager.setup() == {name}
                result = manager.ensure(config.enabled_file)

                assert result.started == {name}
                assert sys.modules[name].STARTED == [True]
                assert host.get_component(name).state == ComponentState.RUNNING
                assert manager.active() == {name}

                write_enabled(config.enabled_file, [])
                result = manager.ensure(config.enabled_file)

                assert result.stopped == {name}
                assert name not in sys.modules
                assert not (config.expand_dir / name).exists()
            finally:
                for path in loader.search_paths:
                    if str(path) in sys.path:
                        sys.path.remove(str(path))
                sys.modules.pop(name, None)
