"""
Plugin Error Hierarchy.

Every error raised by the plugin system derives from PluginError. Errors
that abort an operation carry the paths and plugin names involved so callers
can report the exact cause.
"""

from pathlib import Path


class PluginError(Exception):
    """Base exception for plugin-related errors."""

    pass


class DescriptorError(PluginError):
    """Raised when a single package cannot be read (non-fatal during scans)."""

    pass


class InvalidArchive(DescriptorError):
    """Raised when a plugin archive cannot be opened or listed."""

    pass


class NoDescriptorFound(DescriptorError):
    """Raised when an archive holds no */ebin/*.app entry."""

    pass


class AmbiguousDescriptor(DescriptorError):
    """Raised when an archive holds more than one */ebin/*.app entry."""

    def __init__(self, archive: Path, entries: list[str]):
        self.archive = archive
        self.entries = entries
        super().__init__(
            f"Archive {archive} has {len(entries)} descriptors: {', '.join(entries)}"
        )


class InvalidDescriptor(DescriptorError):
    """Raised when a descriptor record cannot be parsed or has the wrong shape."""

    pass


class DuplicatePluginName(PluginError):
    """Raised when two packages in one scan declare the same plugin name."""

    def __init__(self, name: str, locations: list[Path]):
        self.name = name
        self.locations = locations
        super().__init__(
            f"Plugin '{name}' is provided by more than one package: "
            + ", ".join(str(p) for p in locations)
        )


class MissingDependencies(PluginError):
    """Raised when plugins depend on names that are neither plugins nor built-in."""

    def __init__(self, missing: set[str], blamed_by: list[str]):
        self.missing = missing
        self.blamed_by = blamed_by
        super().__init__(
            f"Missing dependencies {sorted(missing)} required by {blamed_by}"
        )


class CyclicDependency(PluginError):
    """Raised when the plugin dependency graph contains a cycle."""

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__(f"Circular dependency detected among {cycle}")


class CannotReadEnabledPluginsFile(PluginError):
    """Raised when the enabled-plugins file exists but cannot be read."""

    def __init__(self, path: Path, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Cannot read enabled plugins file {path}: {cause}")


class MalformedEnabledPluginsFile(PluginError):
    """Raised when the enabled-plugins file is not a single list of names."""

    def __init__(self, path: Path, reason: str = ""):
        self.path = path
        self.reason = reason
        message = f"Malformed enabled plugins file {path}"
        super().__init__(f"{message}: {reason}" if reason else message)


class EnabledPluginsFileMismatch(PluginError):
    """Raised when a change notification names a file other than ours."""

    def __init__(self, got: Path, expected: Path):
        self.got = got
        self.expected = expected
        super().__init__(
            f"Enabled plugins file mismatch: got {got}, expected {expected}"
        )


class CannotDelete(PluginError):
    """Raised when a staged path cannot be removed."""

    def __init__(self, path: Path, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Cannot delete {path}: {cause}")


class CannotClearStagingDir(PluginError):
    """Raised when the staging directory cannot be wiped at setup."""

    def __init__(self, path: Path, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Cannot clear plugins expand dir {path}: {cause}")


class CannotCreateStagingDir(PluginError):
    """Raised when the staging directory cannot be created."""

    def __init__(self, path: Path, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Cannot create plugins expand dir {path}: {cause}")


class CannotUnload(PluginError):
    """Raised when a stopped plugin's code is still loaded after unloading."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Plugin {name} is still loaded after unload")


class CannotStage(PluginError):
    """Raised when a plugin cannot be extracted into the staging directory."""

    def __init__(self, name: str, cause: Exception):
        self.name = name
        self.cause = cause
        super().__init__(f"Cannot stage plugin {name}: {cause}")
