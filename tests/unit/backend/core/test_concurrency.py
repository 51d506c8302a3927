"""
Unit Tests for Concurrency Infrastructure.
"""

import contextvars

import pytest

from notekeeper.backend.core.concurrency import (
    TracedThreadPoolExecutor,
    get_io_pool,
    run_blocking,
    shutdown_pools,
)

_marker: contextvars.ContextVar[str] = contextvars.ContextVar("marker", default="unset")


class TestTracedThreadPoolExecutor:
    def test_context_propagates_to_worker(self):
        """Worker threads should see the submitting thread's contextvars."""
        _marker.set("request-42")
        with TracedThreadPoolExecutor(max_workers=1) as pool:
            assert pool.submit(_marker.get).result() == "request-42"


class TestIoPool:
    @pytest.mark.asyncio
    async def test_run_blocking_returns_result(self):
        """Should run the callable in the pool and return its value."""
        assert await run_blocking(sum, [1, 2, 3]) == 6

    @pytest.mark.asyncio
    async def test_pool_is_shared_until_shutdown(self):
        """Should hand out one pool and recreate it after shutdown."""
        first = get_io_pool()
        assert get_io_pool() is first

        await shutdown_pools()

        second = get_io_pool()
        assert second is not first
