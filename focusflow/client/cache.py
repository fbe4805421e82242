import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

# Query keys shared by the timer and the dashboard views
FOCUS_SESSIONS = "focus-sessions"
TASKS = "tasks"
CURRENT_USER = "current-user"


class QueryCache:
    """Keyed read cache with invalidation listeners.

    Readers call `get()` with a fetcher; writers call `invalidate()` after a
    successful mutation. Invalidating a key that is already stale (or was
    never loaded) does not notify listeners again.
    """

    def __init__(self):
        self._values: dict[str, Any] = {}
        self._stale: set[str] = set()
        self._listeners: dict[str, list[Callable[[str], None]]] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    async def get(self, key: str, fetcher: Callable[[], Awaitable[Any]]) -> Any:
        async with self._locks.setdefault(key, asyncio.Lock()):
            if key in self._values and key not in self._stale:
                return self._values[key]
            value = await fetcher()
            self._values[key] = value
            self._stale.discard(key)
            return value

    def peek(self, key: str) -> Any:
        return self._values.get(key)

    def is_fresh(self, key: str) -> bool:
        return key in self._values and key not in self._stale

    def invalidate(self, key: str) -> bool:
        """Mark `key` stale. Returns True if listeners were notified."""
        if not self.is_fresh(key):
            return False
        self._stale.add(key)
        for callback in list(self._listeners.get(key, [])):
            try:
                callback(key)
            except Exception:
                logger.exception("Cache listener failed for %s", key)
        return True

    def subscribe(self, key: str, callback: Callable[[str], None]) -> Callable[[], None]:
        """Register an invalidation listener. Returns an unsubscribe function."""
        self._listeners.setdefault(key, []).append(callback)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key, [])
            if callback in listeners:
                listeners.remove(callback)

        return unsubscribe

    def clear(self) -> None:
        self._values.clear()
        self._stale.clear()
