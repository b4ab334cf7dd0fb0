"""Tests for the single-flight entity cache."""

import asyncio
import functools
import gc

import pytest

from vwise.cache import EntityCache


class TestEntityCache:
    @pytest.mark.asyncio
    async def test_value_supplier_is_already_resolved(self):
        cache: EntityCache[str] = EntityCache()
        entry = cache.fetch("a", "value")
        assert entry.done()
        assert await entry == "value"

    @pytest.mark.asyncio
    async def test_loader_invoked_once_for_concurrent_fetches(self):
        cache: EntityCache[str] = EntityCache()
        calls = 0

        async def loader():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0)
            return "loaded"

        first = cache.fetch("a", loader)
        second = cache.fetch("a", loader)
        assert first is second
        assert await first == "loaded"
        assert calls == 1

    @pytest.mark.asyncio
    async def test_live_entry_ignores_new_supplier(self):
        cache: EntityCache[str] = EntityCache()
        cache.fetch("a", "first")
        assert await cache.fetch("a", "second") == "first"

    @pytest.mark.asyncio
    async def test_failure_is_kept_until_cleared(self):
        cache: EntityCache[str] = EntityCache()
        calls = 0

        async def failing():
            nonlocal calls
            calls += 1
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await cache.fetch("a", failing)
        # the cache itself does not evict
        assert "a" in cache

        cache.clear("a")
        with pytest.raises(RuntimeError):
            await cache.fetch("a", failing)
        assert calls == 2

    @pytest.mark.asyncio
    async def test_clear_one(self):
        cache: EntityCache[int] = EntityCache()
        cache.fetch("a", 1)
        cache.fetch("b", 2)
        cache.clear("a")
        assert "a" not in cache
        assert "b" in cache
        cache.clear("missing")  # no-op

    @pytest.mark.asyncio
    async def test_clear_all(self):
        cache: EntityCache[int] = EntityCache()
        cache.fetch("a", 1)
        cache.fetch("b", 2)
        cache.clear()
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_fetch_value_never_calls_callable_values(self):
        cache = EntityCache()
        calls = []
        value = functools.partial(calls.append, "called")

        entry = cache.fetch_value("a", value)
        assert entry.done()
        assert await entry is value
        assert calls == []

    @pytest.mark.asyncio
    async def test_unawaited_failure_is_not_reported(self):
        loop = asyncio.get_running_loop()
        reported: list[dict] = []
        loop.set_exception_handler(lambda _loop, context: reported.append(context))
        try:
            cache: EntityCache[str] = EntityCache()

            async def failing():
                raise RuntimeError("boom")

            cache.fetch("a", failing)
            for _ in range(3):
                await asyncio.sleep(0)
            cache.clear()
            gc.collect()
        finally:
            loop.set_exception_handler(None)
        assert reported == []
