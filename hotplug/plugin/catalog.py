"""
Plugin Catalog.

This module discovers plugin packages in a directory.

Key features:
- Archive (*.ez) and directory (*/ebin/*.app) package discovery
- Per-package failures collected as problems, never aborting the scan
- Duplicate plugin name detection
- Dependency validation against discovered and built-in names
"""

import warnings
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from pathlib import Path

from hotplug.plugin.descriptor import (
    CODE_DIR,
    DESCRIPTOR_SUFFIX,
    PluginDescriptor,
    read_archive_descriptor,
    read_directory_descriptor,
)
from hotplug.plugin.errors import DescriptorError, DuplicatePluginName, MissingDependencies
from hotplug.plugin.loader import ModuleLoader

DEFAULT_ARCHIVE_SUFFIX = ".ez"


@dataclass(frozen=True)
class Problem:
    """
    A package that could not be read.

    Attributes:
        candidate: Archive or descriptor file path
        reason: Why it was rejected
    """

    candidate: Path
    reason: DescriptorError


class Catalog:
    """
    Immutable set of plugin descriptors produced by one scan.

    Descriptors keep discovery order. Dependencies that were resolved as
    built-in are listed in builtins and no longer appear on any descriptor.
    """

    def __init__(
        self,
        descriptors: Iterable[PluginDescriptor] = (),
        builtins: Iterable[str] = (),
    ):
        self._plugins: dict[str, PluginDescriptor] = {d.name: d for d in descriptors}
        self._builtins = frozenset(builtins)

    @property
    def builtins(self) -> frozenset[str]:
        """Dependency names provided by the host rather than by plugins."""
        return self._builtins

    def names(self) -> list[str]:
        """Plugin names in discovery order."""
        return list(self._plugins)

    def get(self, name: str) -> PluginDescriptor | None:
        """Look up one descriptor."""
        return self._plugins.get(name)

    def lookup(self, names: Iterable[str]) -> list[PluginDescriptor]:
        """
        Resolve names to descriptors.

        Args:
            names: Plugin names (unknown names are skipped)

        Returns:
            Matching descriptors in catalog order
        """
        wanted = set(names)
        return [d for name, d in self._plugins.items() if name in wanted]

    def __contains__(self, name: object) -> bool:
        return name in self._plugins

    def __iter__(self) -> Iterator[PluginDescriptor]:
        return iter(self._plugins.values())

    def __len__(self) -> int:
        return len(self._plugins)

    def __repr__(self) -> str:
        return f"Catalog({self.names()})"


def find_candidates(
    directory: Path, archive_suffix: str = DEFAULT_ARCHIVE_SUFFIX
) -> tuple[list[Path], list[Path]]:
    """
    Enumerate package candidates directly under a directory.

    Args:
        directory: Directory to scan
        archive_suffix: File suffix identifying archive packages

    Returns:
        Tuple of (archive files, directory descriptor files), each sorted
    """
    if not directory.is_dir():
        return [], []

    archives = sorted(p for p in directory.glob(f"*{archive_suffix}") if p.is_file())
    app_files = sorted(
        p for p in directory.glob(f"*/{CODE_DIR}/*{DESCRIPTOR_SUFFIX}") if p.is_file()
    )
    return archives, app_files


def _check_duplicates(descriptors: list[PluginDescriptor]) -> None:
    seen: dict[str, list[Path]] = {}
    for descriptor in descriptors:
        seen.setdefault(descriptor.name, []).append(descriptor.location)

    for name, locations in seen.items():
        if len(locations) > 1:
            raise DuplicatePluginName(name, locations)


def ensure_dependencies(
    descriptors: list[PluginDescriptor], loader: ModuleLoader
) -> Catalog:
    """
    Validate cross-plugin dependencies and strip built-in names.

    Every dependency that is not a discovered plugin is probed with the
    loader. Loadable names are built-in and removed from all descriptors;
    anything else is missing.

    Args:
        descriptors: Raw descriptors from a scan
        loader: Module loader used to probe for built-in names

    Returns:
        Catalog whose descriptors only depend on other plugins

    Raises:
        MissingDependencies: If any dependency cannot be satisfied
    """
    names = {d.name for d in descriptors}
    not_there = sorted(
        {dep for d in descriptors for dep in d.dependencies if dep not in names}
    )

    builtins = set()
    missing = set()
    for dep in not_there:
        if loader.probe_loadable(dep):
            builtins.add(dep)
        else:
            missing.add(dep)

    if missing:
        blame = [d.name for d in descriptors if any(dep in missing for dep in d.dependencies)]
        raise MissingDependencies(missing, blame)

    stripped = [
        replace(d, dependencies=tuple(dep for dep in d.dependencies if dep not in builtins))
        for d in descriptors
    ]
    return Catalog(stripped, builtins)


def scan(
    directory: Path,
    loader: ModuleLoader,
    archive_suffix: str = DEFAULT_ARCHIVE_SUFFIX,
) -> tuple[Catalog, list[Problem]]:
    """
    Discover the plugins available in a directory.

    Packages that cannot be read are reported as problems (and with a
    RuntimeWarning) but never stop the scan.

    Args:
        directory: Directory holding archives and package directories
        loader: Module loader used to resolve built-in dependencies
        archive_suffix: File suffix identifying archive packages

    Returns:
        Tuple of (catalog, problems)

    Raises:
        DuplicatePluginName: If two packages declare the same name
        MissingDependencies: If dependencies cannot be satisfied
    """
    archives, app_files = find_candidates(directory, archive_suffix)

    descriptors: list[PluginDescriptor] = []
    problems: list[Problem] = []

    candidates = [(p, read_archive_descriptor) for p in archives]
    candidates += [(p, read_directory_descriptor) for p in app_files]

    for candidate, reader in candidates:
        try:
            descriptors.append(reader(candidate))
        except DescriptorError as e:
            problems.append(Problem(candidate=candidate, reason=e))

    if problems:
        details = "; ".join(f"{p.candidate}: {p.reason}" for p in problems)
        warnings.warn(
            f"Problem reading some plugins: {details}", RuntimeWarning, stacklevel=2
        )

    _check_duplicates(descriptors)
    return ensure_dependencies(descriptors, loader), problems


def list_plugins(
    directory: Path,
    loader: ModuleLoader,
    archive_suffix: str = DEFAULT_ARCHIVE_SUFFIX,
) -> Catalog:
    """
    Get the catalog of plugins which are ready to be enabled.

    Args:
        directory: Directory to scan
        loader: Module loader used to resolve built-in dependencies
        archive_suffix: File suffix identifying archive packages

    Returns:
        Validated catalog
    """
    catalog, _ = scan(directory, loader, archive_suffix)
    return catalog
