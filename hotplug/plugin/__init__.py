"""
Hotplug Plugin System - Plugin discovery, staging and reconciliation.

This module handles:
- Descriptor parsing for archive and directory packages
- Catalog discovery with dependency validation
- Dependency graph reachability
- Staging directory lifecycle
- Ordered start/notify/stop reconciliation
"""

__all__ = []
