"""Tests for the run context and its cancellation signal."""

import asyncio

import pytest

from publisher.core.context import DEADLINE_EXCEEDED, PublishContext
from publisher.core.errors import CancellationError
from publisher.core.types import ReleaseMetadata


@pytest.fixture
def ctx() -> PublishContext:
    return PublishContext(metadata=ReleaseMetadata(version="1.0.0"))


class TestPublishContext:
    def test_rejects_zero_parallelism(self):
        with pytest.raises(ValueError):
            PublishContext(metadata=ReleaseMetadata(), parallelism=0)

    def test_first_cancel_reason_wins(self, ctx):
        ctx.cancel("operator abort")
        ctx.cancel("deadline exceeded")
        assert ctx.cancelled
        assert ctx.cancel_reason == "operator abort"

    @pytest.mark.asyncio
    async def test_guard_returns_result(self, ctx):
        async def work():
            return 42

        assert await ctx.guard(work()) == 42

    @pytest.mark.asyncio
    async def test_guard_propagates_errors(self, ctx):
        async def work():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await ctx.guard(work())

    @pytest.mark.asyncio
    async def test_guard_fails_fast_when_already_cancelled(self, ctx):
        started = False

        async def work():
            nonlocal started
            started = True

        ctx.cancel("operator abort")
        with pytest.raises(CancellationError) as exc_info:
            await ctx.guard(work())
        assert exc_info.value.reason == "operator abort"
        assert started is False

    @pytest.mark.asyncio
    async def test_guard_abandons_in_flight_work(self, ctx):
        work_cancelled = asyncio.Event()

        async def work():
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                work_cancelled.set()
                raise

        asyncio.get_running_loop().call_later(0.01, ctx.cancel, "operator abort")
        with pytest.raises(CancellationError):
            await asyncio.wait_for(ctx.guard(work()), timeout=5)
        assert work_cancelled.is_set()

    @pytest.mark.asyncio
    async def test_deadline_cancels(self, ctx):
        ctx.start_deadline(0.01)

        with pytest.raises(CancellationError) as exc_info:
            await asyncio.wait_for(ctx.guard(asyncio.sleep(30)), timeout=5)
        assert exc_info.value.reason == DEADLINE_EXCEEDED

    @pytest.mark.asyncio
    async def test_stop_deadline(self, ctx):
        ctx.start_deadline(0.01)
        ctx.stop_deadline()
        await asyncio.sleep(0.03)
        assert not ctx.cancelled

    @pytest.mark.asyncio
    async def test_zero_deadline_is_disabled(self, ctx):
        ctx.start_deadline(0)
        await asyncio.sleep(0.01)
        assert not ctx.cancelled
