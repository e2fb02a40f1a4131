"""
Plugin Staging Directory.

This module materialises wanted plugins on disk and removes them again.

Key features:
- Archive extraction and directory copy into the staging directory
- Code directory registration with the module loader
- Per-plugin removal and full wipe
"""

import shutil
import zipfile
from collections.abc import Iterable
from pathlib import Path

from hotplug.plugin.catalog import Catalog
from hotplug.plugin.descriptor import (
    ARCHIVE_ERRORS,
    CODE_DIR,
    DESCRIPTOR_SUFFIX,
    PackageKind,
    PluginDescriptor,
    read_directory_descriptor,
)
from hotplug.plugin.errors import (
    CannotClearStagingDir,
    CannotCreateStagingDir,
    CannotDelete,
    CannotStage,
    DescriptorError,
)
from hotplug.plugin.loader import ModuleLoader


def delete_recursively(path: Path) -> None:
    """
    Delete a file or directory tree. A missing path is not an error.

    Args:
        path: Path to delete

    Raises:
        CannotDelete: If removal fails
    """
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink(missing_ok=True)
    except OSError as e:
        failed = Path(e.filename) if e.filename else path
        raise CannotDelete(failed, e) from e


def clear(staging_dir: Path) -> None:
    """
    Wipe the staging directory entirely.

    Args:
        staging_dir: Staging directory

    Raises:
        CannotClearStagingDir: If the directory cannot be removed
    """
    try:
        delete_recursively(staging_dir)
    except CannotDelete as e:
        raise CannotClearStagingDir(staging_dir, e.cause) from e


def ensure_dir(staging_dir: Path) -> None:
    """
    Create the staging directory if needed.

    Args:
        staging_dir: Staging directory

    Raises:
        CannotCreateStagingDir: If it cannot be created
    """
    try:
        staging_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise CannotCreateStagingDir(staging_dir, e) from e


def staged_descriptors(staging_dir: Path) -> list[Path]:
    """All */ebin/*.app files directly under the staging directory."""
    if not staging_dir.is_dir():
        return []
    return sorted(staging_dir.glob(f"*/{CODE_DIR}/*{DESCRIPTOR_SUFFIX}"))


def staged_code_dirs(staging_dir: Path) -> list[Path]:
    """Code directories of every staged package."""
    return [app.parent for app in staged_descriptors(staging_dir)]


def prepare_plugin(descriptor: PluginDescriptor, staging_dir: Path) -> None:
    """
    Extract one plugin into the staging directory.

    Archives are unpacked as-is; directory packages are copied to
    <staging_dir>/<name>.

    Args:
        descriptor: Plugin to stage
        staging_dir: Staging directory

    Raises:
        CannotStage: If extraction or copying fails
    """
    try:
        if descriptor.kind is PackageKind.ARCHIVE:
            with zipfile.ZipFile(descriptor.location) as zf:
                zf.extractall(staging_dir)
        else:
            shutil.copytree(
                descriptor.location, staging_dir / descriptor.name, dirs_exist_ok=True
            )
    except ARCHIVE_ERRORS as e:
        raise CannotStage(descriptor.name, e) from e


def stage(
    wanted: set[str],
    catalog: Catalog,
    staging_dir: Path,
    loader: ModuleLoader,
) -> set[str]:
    """
    Materialise wanted plugins and register their code directories.

    After extraction every package in the staging directory is registered,
    which includes packages that arrived bundled inside an archive.

    Args:
        wanted: Plugin names to stage
        catalog: Catalog the names are resolved against
        staging_dir: Existing staging directory
        loader: Module loader receiving the code directories

    Returns:
        The wanted names
    """
    for descriptor in catalog.lookup(wanted):
        prepare_plugin(descriptor, staging_dir)

    for code_dir in staged_code_dirs(staging_dir):
        loader.register_search_path(code_dir)

    return wanted


def staged_root(name: str, staging_dir: Path) -> Path:
    """
    Locate the staged package root of a plugin.

    Archives may unpack into a versioned directory and name their
    descriptor file freely, so the root is found by the application name
    inside each staged descriptor. An unreadable descriptor is matched by
    its file stem.

    Args:
        name: Plugin name
        staging_dir: Staging directory

    Returns:
        Package root path (which may not exist)
    """
    for app in staged_descriptors(staging_dir):
        try:
            staged_name = read_directory_descriptor(app).name
        except DescriptorError:
            staged_name = app.stem
        if staged_name == name:
            return app.parent.parent
    return staging_dir / name


def unstage(names: Iterable[str], staging_dir: Path) -> None:
    """
    Remove staged plugins.

    Args:
        names: Plugin names to remove
        staging_dir: Staging directory

    Raises:
        CannotDelete: If a staged tree cannot be removed
    """
    for name in names:
        delete_recursively(staged_root(name, staging_dir))
