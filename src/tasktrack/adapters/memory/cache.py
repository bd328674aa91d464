"""InMemoryCacheService: process-local cache with TTL support."""

from __future__ import annotations

import time
from typing import Any

from ...ports.cache import ICacheService


class InMemoryCacheService(ICacheService):
    """Dict-backed implementation of ICacheService.

    Expired entries are dropped lazily on read. A ``ttl`` of ``None`` keeps
    the entry until it is deleted; ``0`` expires it immediately.
    """

    def __init__(self) -> None:
        self._entries: dict[str, tuple[Any, float | None]] = {}

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= time.monotonic():
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        expires_at = time.monotonic() + ttl if ttl is not None else None
        self._entries[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    # ── Test helpers ─────────────────────────────────────────────

    def keys(self) -> set[str]:
        return set(self._entries)

    def clear(self) -> None:
        self._entries.clear()
