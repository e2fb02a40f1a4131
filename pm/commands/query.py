"""
pm query command (-Q).

List the available plugins, or show details of some of them (-Qi).
"""

import sys
from typing import Any

from hotplug.plugin.catalog import Catalog
from hotplug.plugin.graph import dependencies
from pm.commands.common import load_context


def query_command(args: Any) -> int:
    """
    Execute query command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    _, catalog, enabled = load_context(args)

    if args.info:
        return show_info(args.targets, catalog)

    explicit = set(enabled)
    implicit = dependencies(enabled, catalog) - explicit

    descriptors = sorted(catalog, key=lambda d: d.name)
    if args.targets:
        descriptors = [d for d in descriptors if d.name in args.targets]

    width = max((len(d.name) for d in descriptors), default=0)
    for descriptor in descriptors:
        if descriptor.name in explicit:
            marker = "[E]"
        elif descriptor.name in implicit:
            marker = "[e]"
        else:
            marker = "[ ]"
        print(f"{marker} {descriptor.name:<{width}} {descriptor.version}")

    return 0


def show_info(targets: list[str], catalog: Catalog) -> int:
    """
    Print descriptor details for each target.

    Args:
        targets: Plugin names
        catalog: Plugin catalog

    Returns:
        Exit code (1 if any target is unknown)
    """
    if not targets:
        print("Error: No targets specified", file=sys.stderr)
        print("Usage: pm -Qi <plugin>...", file=sys.stderr)
        return 1

    status = 0
    for name in targets:
        descriptor = catalog.get(name)
        if descriptor is None:
            print(f"Error: Plugin not found: {name}", file=sys.stderr)
            status = 1
            continue

        print(f"Name         : {descriptor.name}")
        print(f"Version      : {descriptor.version}")
        print(f"Description  : {descriptor.description}")
        print(f"Depends On   : {', '.join(descriptor.dependencies) or 'None'}")
        print(f"Package      : {descriptor.kind.value}")
        print(f"Location     : {descriptor.location}")
        print()

    return status
