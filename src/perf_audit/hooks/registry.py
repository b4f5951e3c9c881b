"""Ordered hook dispatch with per-plugin scratch storage."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable

from ..logging_config import get_logger
from .events import PAYLOAD_TYPES, HookEvent, HookPayload

logger = get_logger(__name__)


@dataclass
class HookContext:
    """What a handler gets besides the payload."""

    plugin: str
    store: dict[str, Any] = field(default_factory=dict)
    logger: logging.Logger = field(default_factory=lambda: get_logger("plugins"))


Handler = Callable[[HookContext, HookPayload], None]


class HookRegistry:
    """Maps each event to an ordered list of ``(plugin, handler)`` pairs.

    Handlers run in registration order. An exception in one handler is
    logged and swallowed so the remaining handlers and the pipeline still
    run; nothing reads a handler's return value.
    """

    def __init__(self) -> None:
        self._handlers: dict[HookEvent, list[tuple[str, Handler]]] = defaultdict(list)
        self._stores: dict[str, dict[str, Any]] = {}

    def register(self, event: HookEvent, handler: Handler, plugin: str = "default") -> None:
        event = HookEvent(event)
        self._stores.setdefault(plugin, {})
        self._handlers[event].append((plugin, handler))
        logger.debug(f"Registered {plugin} handler for {event.value}")

    def register_plugin(self, name: str, hooks: Mapping[HookEvent, Handler]) -> None:
        """Register all of a plugin's handlers under one name."""
        self._stores.setdefault(name, {})
        for event, handler in hooks.items():
            self.register(event, handler, plugin=name)

    def unregister_plugin(self, name: str) -> None:
        for event in list(self._handlers):
            self._handlers[event] = [(p, h) for p, h in self._handlers[event] if p != name]
        self._stores.pop(name, None)

    @property
    def plugins(self) -> list[str]:
        return list(self._stores)

    def store(self, plugin: str) -> dict[str, Any]:
        """The key/value scratch space owned by *plugin*."""
        return self._stores.setdefault(plugin, {})

    def handler_count(self, event: HookEvent) -> int:
        return len(self._handlers.get(HookEvent(event), ()))

    def emit(self, event: HookEvent, payload: HookPayload) -> int:
        """Run every handler for *event*.

        Returns:
            Number of handlers that raised

        Raises:
            TypeError: If *payload* is not the type registered for *event*
        """
        event = HookEvent(event)
        expected = PAYLOAD_TYPES[event]
        if not isinstance(payload, expected):
            raise TypeError(
                f"{event.value} expects {expected.__name__}, got {type(payload).__name__}"
            )

        failures = 0
        for plugin, handler in list(self._handlers.get(event, ())):
            context = HookContext(
                plugin=plugin,
                store=self.store(plugin),
                logger=get_logger(f"plugins.{plugin}"),
            )
            try:
                handler(context, payload)
            except Exception:
                failures += 1
                logger.exception(f"Plugin {plugin} hook {event.value} failed")
        return failures
