"""Single-flight memoizing map from id to a pending-or-settled future.

Storing the pending operation itself (rather than only its value) means every
caller asking for an id before its load settles awaits the same future and
sees the same result or exception. The cache never evicts on failure; the
loader is expected to call ``clear(id)`` before re-raising.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Loader = Callable[[], Awaitable[T]]


class EntityCache(Generic[T]):
    """id -> asyncio.Future[T]."""

    def __init__(self, name: str = "entity") -> None:
        self.name = name
        self._entries: dict[str, asyncio.Future[T]] = {}

    def fetch(self, id: str, supplier: Loader[T] | T) -> asyncio.Future[T]:
        """Return the live entry for ``id``, creating it from ``supplier`` on a miss.

        A callable supplier is a loader, invoked once and scheduled as a task.
        Anything else is a value already in hand and is stored as a resolved
        future, so a value that is itself callable must go through
        ``fetch_value``. Must be called with a running event loop.
        """
        if callable(supplier):
            return self._fetch(id, supplier)
        return self.fetch_value(id, supplier)

    def fetch_value(self, id: str, value: T) -> asyncio.Future[T]:
        """Like ``fetch`` but always memoizes ``value`` itself, never calling it."""
        return self._fetch(id, None, value)

    def _fetch(self, id: str, loader: Loader[T] | None, value: Any = None) -> asyncio.Future[T]:
        entry = self._entries.get(id)
        if entry is not None:
            logger.debug("%s cache hit: %s", self.name, id)
            return entry

        logger.debug("%s cache miss: %s", self.name, id)
        if loader is not None:
            entry = asyncio.ensure_future(loader())
            # a failure nobody is left awaiting still counts as observed
            entry.add_done_callback(_consume_exception)
        else:
            entry = asyncio.get_running_loop().create_future()
            entry.set_result(value)
        self._entries[id] = entry
        return entry

    def clear(self, id: str | None = None) -> None:
        if id is None:
            self._entries.clear()
        else:
            self._entries.pop(id, None)

    def get(self, id: str) -> asyncio.Future[T] | None:
        return self._entries.get(id)

    def __contains__(self, id: Any) -> bool:
        return id in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def _consume_exception(entry: asyncio.Future) -> None:
    if not entry.cancelled():
        entry.exception()
