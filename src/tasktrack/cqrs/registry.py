"""Handler registry owned by the buses that use it."""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger("tasktrack.cqrs")


class HandlerRegistry:
    """Maps request types to handler instances.

    Commands and queries live in separate maps. The registry is an ordinary
    object: build one at startup, fill it, hand it to the buses. Several
    independently configured registries may coexist.

    Registering a second handler for a type replaces the first. That is
    almost always a wiring mistake, so it is logged at WARNING.
    """

    def __init__(self) -> None:
        self._command_handlers: dict[type[Any], Any] = {}
        self._query_handlers: dict[type[Any], Any] = {}

    # ── Registration ─────────────────────────────────────────────

    def register_command_handler(self, command_type: type[Any], handler: Any) -> None:
        self._register(self._command_handlers, "command", command_type, handler)

    def register_query_handler(self, query_type: type[Any], handler: Any) -> None:
        self._register(self._query_handlers, "query", query_type, handler)

    @staticmethod
    def _register(
        handlers: dict[type[Any], Any],
        kind: str,
        request_type: type[Any],
        handler: Any,
    ) -> None:
        existing = handlers.get(request_type)
        if existing is not None and existing is not handler:
            logger.warning(
                "Replacing %s handler for %s: %s -> %s",
                kind,
                request_type.__name__,
                type(existing).__name__,
                type(handler).__name__,
            )
        handlers[request_type] = handler
        logger.debug(
            "Registered %s handler %s -> %s",
            kind,
            request_type.__name__,
            type(handler).__name__,
        )

    # ── Lookup ───────────────────────────────────────────────────

    def get_command_handler(self, command_type: type[Any]) -> Any | None:
        return self._command_handlers.get(command_type)

    def get_query_handler(self, query_type: type[Any]) -> Any | None:
        return self._query_handlers.get(query_type)

    def command_types(self) -> list[type[Any]]:
        return list(self._command_handlers)

    def query_types(self) -> list[type[Any]]:
        return list(self._query_handlers)

    # ── Introspection ────────────────────────────────────────────

    def get_registered_handlers(self) -> dict[str, dict[str, str]]:
        """Return a snapshot of all registered handlers (for debugging)."""
        return {
            "commands": {
                k.__name__: type(v).__name__ for k, v in self._command_handlers.items()
            },
            "queries": {
                k.__name__: type(v).__name__ for k, v in self._query_handlers.items()
            },
        }

    def clear(self) -> None:
        """Clear all registered handlers (testing utility)."""
        self._command_handlers.clear()
        self._query_handlers.clear()


__all__ = ["HandlerRegistry"]
