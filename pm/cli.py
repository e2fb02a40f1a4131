"""
pm CLI - Hotplug Plugin Manager.

Pacman-style interface for managing the enabled-plugins file.

Usage:
    pm -S <plugin>...            Enable plugin(s)
    pm -R <plugin>...            Disable plugin(s) and their dependents
    pm -Q                        List available plugins
    pm -Qi <plugin>...           Show plugin info
"""

import argparse
import sys

from hotplug.config import ConfigError
from hotplug.plugin.errors import PluginError

DEFAULT_CONFIG = "config/hotplug.toml"


class PMError(Exception):
    """Base exception for pm errors."""

    pass


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with pacman-style flags."""
    parser = argparse.ArgumentParser(
        prog="pm",
        description="Hotplug Plugin Manager - Pacman-style plugin manager",
        add_help=False,
    )

    # Operation flags (mutually exclusive)
    ops = parser.add_mutually_exclusive_group()
    ops.add_argument("-S", "--sync", action="store_true", help="Enable plugin")
    ops.add_argument("-R", "--remove", action="store_true", help="Disable plugin")
    ops.add_argument("-Q", "--query", action="store_true", help="Query plugins")
    ops.add_argument("-h", "--help", action="store_true", help="Show help")

    # Query sub-flags
    parser.add_argument("-i", "--info", action="store_true", help="Show info (-Qi)")

    # Common options
    parser.add_argument(
        "-c", "--config", default=DEFAULT_CONFIG, help="Path to hotplug.toml"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    # Positional arguments
    parser.add_argument("targets", nargs="*", help="Plugin names")

    return parser


def print_help():
    """Print help message."""
    help_text = """
pm - Hotplug Plugin Manager

Usage:
    pm -S <plugin>...            Enable plugin(s)
    pm -R <plugin>...            Disable plugin(s) and their dependents
    pm -Q                        List available plugins
    pm -Qi <plugin>...           Show plugin info

Options:
    -c, --config <file>          Config file (default: config/hotplug.toml)
    -v, --verbose                Verbose output
    -h, --help                   Show this help
"""
    print(help_text.strip())


def main(argv: list[str] | None = None) -> int:
    """Main entry point for pm CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        # Show help
        if args.help or (not args.sync and not args.remove and not args.query):
            print_help()
            return 0

        # Route to appropriate command
        if args.sync:
            # -S: Enable
            from pm.commands.enable import enable_command

            return enable_command(args)

        elif args.remove:
            # -R: Disable
            from pm.commands.disable import disable_command

            return disable_command(args)

        else:
            # -Q: Query
            from pm.commands.query import query_command

            return query_command(args)

    except (PMError, PluginError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
