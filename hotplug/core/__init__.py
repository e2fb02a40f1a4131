"""
Hotplug Core - Infrastructure shared by the plugin system.

This module contains:
- event_bus: Synchronous notification of plugin-set changes
"""

__all__ = []
