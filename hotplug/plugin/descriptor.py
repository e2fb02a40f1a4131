"""
Plugin Descriptor Reader.

This module reads the descriptor record of a single plugin package.

Key features:
- Archive packages: locate the one */ebin/*.app entry and parse it in memory
- Directory packages: parse the .app file found under <root>/ebin/
- Field defaults for vsn, description and applications
- Shape validation of the descriptor record
"""

import re
import zipfile
import zlib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from hotplug.plugin.errors import (
    AmbiguousDescriptor,
    InvalidArchive,
    InvalidDescriptor,
    NoDescriptorFound,
)
from hotplug.plugin.terms import TermError, parse_terms, read_term_file

CODE_DIR = "ebin"
DESCRIPTOR_SUFFIX = ".app"

_ARCHIVE_ENTRY_RE = re.compile(r"^.*/ebin/.*\.app$")

# Raised by zipfile while opening, reading or decompressing members
ARCHIVE_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    NotImplementedError,
    RuntimeError,
    EOFError,
    OSError,
)


class PackageKind(Enum):
    """How a plugin package is laid out on disk."""

    ARCHIVE = "ez"
    DIRECTORY = "dir"


@dataclass(frozen=True)
class PluginDescriptor:
    """
    One discovered plugin package.

    Attributes:
        name: Plugin name (unique within a catalog)
        version: Informational version string
        description: Informational description
        dependencies: Names this plugin requires
        kind: Archive or directory package
        location: Archive file path, or the package root directory
    """

    name: str
    version: str
    description: str
    dependencies: tuple[str, ...]
    kind: PackageKind
    location: Path


def descriptor_from_term(term: Any, kind: PackageKind, location: Path) -> PluginDescriptor:
    """
    Build a descriptor from a parsed descriptor record.

    The record is an object whose 'application' key names the plugin.
    Recognised properties are 'vsn', 'description' and 'applications';
    anything else is ignored.

    Args:
        term: Parsed descriptor record
        kind: Package kind
        location: Package location

    Returns:
        PluginDescriptor

    Raises:
        InvalidDescriptor: If the record has the wrong shape
    """
    if not isinstance(term, dict) or "application" not in term:
        raise InvalidDescriptor(
            f"Expected an object with an 'application' key, got {term!r}"
        )

    name = term["application"]
    if not isinstance(name, str) or not name:
        raise InvalidDescriptor(f"Invalid application name: {name!r}")

    version = term.get("vsn", "0")
    if not isinstance(version, str):
        raise InvalidDescriptor(f"'vsn' of {name} must be a string")

    description = term.get("description", "")
    if not isinstance(description, str):
        raise InvalidDescriptor(f"'description' of {name} must be a string")

    applications = term.get("applications", [])
    if not isinstance(applications, list) or not all(
        isinstance(app, str) for app in applications
    ):
        raise InvalidDescriptor(f"'applications' of {name} must be a list of names")

    return PluginDescriptor(
        name=name,
        version=version,
        description=description,
        dependencies=tuple(applications),
        kind=kind,
        location=location,
    )


def _single_term(text: str) -> Any:
    try:
        terms = parse_terms(text)
    except TermError as e:
        raise InvalidDescriptor(str(e)) from e

    if len(terms) != 1:
        raise InvalidDescriptor(f"Expected exactly one term, found {len(terms)}")
    return terms[0]


def find_descriptor_entries(names: list[str]) -> list[str]:
    """
    Select archive entries that look like descriptor files.

    Args:
        names: Archive entry names in listing order

    Returns:
        Matching entry names, in listing order
    """
    return [name for name in names if _ARCHIVE_ENTRY_RE.match(name)]


def read_archive_descriptor(archive: Path) -> PluginDescriptor:
    """
    Read the descriptor of an archive package.

    Args:
        archive: Path to the archive file

    Returns:
        PluginDescriptor with kind ARCHIVE and the archive as location

    Raises:
        InvalidArchive: If the archive cannot be opened
        NoDescriptorFound: If no entry matches */ebin/*.app
        AmbiguousDescriptor: If more than one entry matches
        InvalidDescriptor: If the entry cannot be parsed
    """
    try:
        with zipfile.ZipFile(archive) as zf:
            entries = find_descriptor_entries(zf.namelist())
            if not entries:
                raise NoDescriptorFound(f"No .app file in archive {archive}")
            if len(entries) > 1:
                raise AmbiguousDescriptor(archive, entries)
            data = zf.read(entries[0])
    except ARCHIVE_ERRORS as e:
        raise InvalidArchive(f"Invalid archive {archive}: {e}") from e

    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidDescriptor(f"Descriptor in {archive} is not UTF-8: {e}") from e

    return descriptor_from_term(_single_term(text), PackageKind.ARCHIVE, archive)


def read_directory_descriptor(app_path: Path) -> PluginDescriptor:
    """
    Read the descriptor of a directory package.

    Args:
        app_path: Path to <root>/ebin/<name>.app

    Returns:
        PluginDescriptor with kind DIRECTORY and the absolute package root
        as location

    Raises:
        InvalidDescriptor: If the file cannot be read or parsed
    """
    try:
        terms = read_term_file(app_path)
    except (OSError, UnicodeDecodeError, TermError) as e:
        raise InvalidDescriptor(f"Invalid app file {app_path}: {e}") from e

    if len(terms) != 1:
        raise InvalidDescriptor(
            f"Invalid app file {app_path}: expected exactly one term, found {len(terms)}"
        )

    root = app_path.parent.parent.absolute()
    return descriptor_from_term(terms[0], PackageKind.DIRECTORY, root)
