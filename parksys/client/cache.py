"""Query cache for server reads.

Results are keyed by tuples such as ``("asset", 7)``. The cache is only ever
filled by loaders that read from the server and emptied by ``invalidate``;
nothing writes mutation responses into it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

QueryKey = tuple[Any, ...]


def asset_key(asset_id: int) -> QueryKey:
    return ("asset", asset_id)


def maintenances_key(asset_id: int) -> QueryKey:
    return ("asset", asset_id, "maintenances")


def history_key(asset_id: int) -> QueryKey:
    return ("asset", asset_id, "history")


class QueryCache:
    def __init__(self) -> None:
        self._values: dict[QueryKey, Any] = {}
        self._inflight: dict[QueryKey, asyncio.Task[Any]] = {}
        self._generation: dict[QueryKey, int] = {}

    def peek(self, key: QueryKey) -> Any | None:
        return self._values.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    async def fetch(self, key: QueryKey, loader: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value for ``key`` or load it once.

        Concurrent callers share a single in-flight load. A load that finishes
        after ``key`` was invalidated is returned to its caller but not stored.
        """
        if key in self._values:
            return self._values[key]
        task = self._inflight.get(key)
        if task is None:
            generation = self._generation.get(key, 0)
            task = asyncio.ensure_future(loader())
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._settle(key, generation, done))
        return await asyncio.shield(task)

    def _settle(self, key: QueryKey, generation: int, task: asyncio.Task[Any]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if task.cancelled() or task.exception() is not None:
            return
        if self._generation.get(key, 0) == generation:
            self._values[key] = task.result()

    def invalidate(self, prefix: QueryKey) -> list[QueryKey]:
        """Drop every entry whose key starts with ``prefix``."""
        size = len(prefix)
        dropped = [key for key in self._values if key[:size] == prefix]
        for key in dropped:
            del self._values[key]
        for key in set(self._inflight) | set(self._generation) | set(dropped):
            if key[:size] == prefix:
                self._generation[key] = self._generation.get(key, 0) + 1
                self._inflight.pop(key, None)
        if dropped:
            logger.debug("invalidated %s", dropped)
        return dropped
