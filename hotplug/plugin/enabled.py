"""
Enabled Plugins File.

The enabled-plugins file holds zero or one top-level term: a JSON list of
plugin names. A missing file means no plugins are enabled.
"""

import json
from collections.abc import Iterable
from pathlib import Path

from hotplug.plugin.errors import (
    CannotReadEnabledPluginsFile,
    MalformedEnabledPluginsFile,
)
from hotplug.plugin.terms import TermError, read_term_file


def read_enabled(path: Path) -> list[str]:
    """
    Read the list of enabled plugins.

    Args:
        path: Enabled-plugins file

    Returns:
        Enabled plugin names, in file order

    Raises:
        CannotReadEnabledPluginsFile: If the file exists but cannot be read
        MalformedEnabledPluginsFile: If it holds anything but one list of names
    """
    try:
        terms = read_term_file(path)
    except FileNotFoundError:
        return []
    except TermError as e:
        raise MalformedEnabledPluginsFile(path, str(e)) from e
    except (OSError, UnicodeDecodeError) as e:
        raise CannotReadEnabledPluginsFile(path, e) from e

    if not terms:
        return []
    if len(terms) > 1:
        raise MalformedEnabledPluginsFile(path, f"{len(terms)} top-level terms")

    plugins = terms[0]
    if not isinstance(plugins, list) or not all(isinstance(p, str) for p in plugins):
        raise MalformedEnabledPluginsFile(path, "expected a list of plugin names")

    return plugins


def write_enabled(path: Path, names: Iterable[str]) -> None:
    """
    Write the list of enabled plugins.

    Args:
        path: Enabled-plugins file (parent directories are created)
        names: Plugin names to enable
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(sorted(set(names)), f)
        f.write("\n")
