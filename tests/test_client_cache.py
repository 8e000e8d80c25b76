from __future__ import annotations

import asyncio

import pytest

from parksys.client.cache import QueryCache, asset_key, history_key, maintenances_key
from parksys.client.errors import NotFoundError


def test_concurrent_fetches_share_one_load() -> None:
    async def _run() -> None:
        cache = QueryCache()
        calls = 0
        gate = asyncio.Event()

        async def loader() -> dict[str, int]:
            nonlocal calls
            calls += 1
            await gate.wait()
            return {"id": 7}

        first = asyncio.create_task(cache.fetch(asset_key(7), loader))
        second = asyncio.create_task(cache.fetch(asset_key(7), loader))
        await asyncio.sleep(0)
        gate.set()

        assert await first == {"id": 7}
        assert await second == {"id": 7}
        assert calls == 1
        assert cache.peek(asset_key(7)) == {"id": 7}
        assert await cache.fetch(asset_key(7), loader) == {"id": 7}
        assert calls == 1

    asyncio.run(_run())


def test_invalidate_drops_by_prefix() -> None:
    async def _run() -> None:
        cache = QueryCache()

        async def value(result: object) -> object:
            return result

        for key in (asset_key(7), maintenances_key(7), history_key(7), asset_key(70)):
            await cache.fetch(key, lambda key=key: value(key))

        dropped = cache.invalidate(asset_key(7))

        assert set(dropped) == {asset_key(7), maintenances_key(7), history_key(7)}
        assert cache.peek(history_key(7)) is None
        assert asset_key(70) in cache

    asyncio.run(_run())


def test_load_finishing_after_invalidate_is_not_stored() -> None:
    async def _run() -> None:
        cache = QueryCache()
        gate = asyncio.Event()

        async def slow() -> str:
            await gate.wait()
            return "stale"

        task = asyncio.create_task(cache.fetch(history_key(7), slow))
        await asyncio.sleep(0)
        cache.invalidate(asset_key(7))
        gate.set()

        assert await task == "stale"
        assert history_key(7) not in cache

    asyncio.run(_run())


def test_failed_load_is_not_cached() -> None:
    async def _run() -> None:
        cache = QueryCache()
        calls = 0

        async def missing() -> None:
            nonlocal calls
            calls += 1
            raise NotFoundError("asset not found")

        with pytest.raises(NotFoundError):
            await cache.fetch(asset_key(7), missing)
        with pytest.raises(NotFoundError):
            await cache.fetch(asset_key(7), missing)
        assert calls == 2
        assert asset_key(7) not in cache

    asyncio.run(_run())
