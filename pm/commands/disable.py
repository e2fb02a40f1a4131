"""
pm disable command (-R).

Remove plugins, and every enabled plugin that depends on them, from the
enabled-plugins file.
"""

import sys
from typing import Any

from hotplug.plugin.enabled import write_enabled
from hotplug.plugin.graph import dependencies
from pm.commands.common import load_context


def disable_command(args: Any) -> int:
    """
    Execute disable command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if not args.targets:
        print("Error: No targets specified", file=sys.stderr)
        print("Usage: pm -R <plugin>...", file=sys.stderr)
        return 1

    config, catalog, enabled = load_context(args)

    not_enabled = [name for name in args.targets if name not in enabled]
    if not_enabled and args.verbose:
        print(f"Not explicitly enabled: {', '.join(not_enabled)}")

    dependents = dependencies(args.targets, catalog, reverse=True)
    to_disable = set(args.targets) | dependents

    before = dependencies(enabled, catalog)
    new_enabled = [name for name in enabled if name not in to_disable]
    after = dependencies(new_enabled, catalog)

    write_enabled(config.enabled_file, new_enabled)

    stopped = sorted(before - after)
    if stopped:
        print(f"Disabling plugins: {', '.join(stopped)}")
    else:
        print("Plugin configuration unchanged.")

    return 0
