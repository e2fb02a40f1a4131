"""
pm enable command (-S).

Add plugins to the enabled-plugins file.
"""

import sys
from typing import Any

from hotplug.plugin.enabled import write_enabled
from hotplug.plugin.graph import dependencies
from pm.commands.common import load_context


def enable_command(args: Any) -> int:
    """
    Execute enable command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if not args.targets:
        print("Error: No targets specified", file=sys.stderr)
        print("Usage: pm -S <plugin>...", file=sys.stderr)
        return 1

    config, catalog, enabled = load_context(args)

    unknown = [name for name in args.targets if name not in catalog]
    if unknown:
        print(f"Error: Plugins not found: {', '.join(unknown)}", file=sys.stderr)
        return 1

    before = dependencies(enabled, catalog)
    new_enabled = set(enabled) | set(args.targets)
    after = dependencies(new_enabled, catalog)

    write_enabled(config.enabled_file, new_enabled)

    started = sorted(after - before)
    if started:
        print(f"Enabling plugins: {', '.join(started)}")
    else:
        print("Plugin configuration unchanged.")

    if args.verbose:
        print(f"Wrote {config.enabled_file}")

    return 0
