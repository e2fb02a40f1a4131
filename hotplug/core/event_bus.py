"""
Event Bus - Synchronous notification of plugin-set changes.

This module implements:
1. Consumer registration for exact topics and glob patterns
2. Priority-based execution (higher priority = earlier execution)
3. Blocking dispatch: sync_notify returns only after every consumer ran

A failing consumer is reported as a RuntimeWarning and does not stop the
remaining consumers.
"""

import inspect
import re
import threading
import warnings
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


class EventBusError(Exception):
    """Base exception for event bus errors."""

    pass


class RegistrationError(EventBusError):
    """Raised when handler registration fails."""

    pass


@dataclass
class Handler:
    """
    Represents a registered consumer.

    Attributes:
        callback: The handler function
        priority: Higher priority executes first
        registration_order: Tie-breaker for same priority (lower = earlier)
        requires_src: Whether handler expects the topic as 'src' (pattern consumers)
    """

    callback: Callable
    priority: int
    registration_order: int
    requires_src: bool = False

    def __call__(self, topic: str, payload: Any) -> None:
        """Execute the handler."""
        if self.requires_src:
            self.callback(topic, payload)
        else:
            self.callback(payload)


class EventBus:
    """
    Synchronous event bus.

    Consumers run on the notifying thread, one after another.
    """

    def __init__(self):
        self._routes: dict[str, list[Handler]] = {}
        self._patterns: list[tuple[re.Pattern, Handler]] = []
        self._registration_counter = 0
        self._lock = threading.Lock()

    def _next_registration_order(self) -> int:
        order = self._registration_counter
        self._registration_counter += 1
        return order

    def _glob_to_regex(self, pattern: str) -> re.Pattern:
        """
        Convert glob pattern to compiled regex.

        '*' matches any characters within a dot-separated segment.
        """
        escaped = re.escape(pattern)
        regex_pattern = escaped.replace(r"\*", "[^.]*")
        return re.compile(f"^{regex_pattern}$")

    def register_consumer(
        self, topic: str, callback: Callable, priority: int = 0
    ) -> None:
        """
        Register a consumer for an exact topic.

        Args:
            topic: Topic to match
            callback: Handler function taking (payload)
            priority: Execution priority (higher = earlier)
        """
        with self._lock:
            handler = Handler(
                callback=callback,
                priority=priority,
                registration_order=self._next_registration_order(),
            )
            self._routes.setdefault(topic, []).append(handler)

    def register_consumer_re(
        self, pattern: str, callback: Callable, priority: int = 0
    ) -> None:
        """
        Register a consumer for a glob pattern.

        Args:
            pattern: Glob pattern to match topics
            callback: Handler function taking (src, payload)
            priority: Execution priority (higher = earlier)

        Raises:
            RegistrationError: If callback doesn't accept 'src' first
        """
        params = list(inspect.signature(callback).parameters)
        if not params or params[0] != "src":
            raise RegistrationError(
                f"Pattern-based consumer must have 'src' as first parameter. "
                f"Got: {params}"
            )

        with self._lock:
            handler = Handler(
                callback=callback,
                priority=priority,
                registration_order=self._next_registration_order(),
                requires_src=True,
            )
            self._patterns.append((self._glob_to_regex(pattern), handler))

    def _find_handlers(self, topic: str) -> list[Handler]:
        with self._lock:
            handlers = list(self._routes.get(topic, []))
            handlers.extend(h for regex, h in self._patterns if regex.match(topic))
        return sorted(handlers, key=lambda h: (-h.priority, h.registration_order))

    def sync_notify(self, topic: str, payload: Any) -> None:
        """
        Deliver a notification to every consumer before returning.

        Args:
            topic: Topic being announced
            payload: Notification payload
        """
        for handler in self._find_handlers(topic):
            try:
                handler(topic, payload)
            except Exception as e:
                warnings.warn(
                    f"Event handler failed for '{topic}': {e}",
                    RuntimeWarning,
                    stacklevel=2,
                )


# Global event bus instance
default_bus = EventBus()


def consumer(topic: str, priority: int = 0):
    """
    Decorator to register a consumer on the default bus.

    Example:
        @consumer('plugins_changed')
        def on_change(change: PluginsChanged):
            refresh_routes(change.enabled)
    """

    def decorator(func: Callable) -> Callable:
        default_bus.register_consumer(topic, func, priority)
        return func

    return decorator


def consumer_re(pattern: str, priority: int = 0):
    """
    Decorator to register a pattern consumer on the default bus.

    Example:
        @consumer_re('plugins_*')
        def audit(src: str, payload):
            record(src, payload)
    """

    def decorator(func: Callable) -> Callable:
        default_bus.register_consumer_re(pattern, func, priority)
        return func

    return decorator
