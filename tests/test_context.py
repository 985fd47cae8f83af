"""Tests for RequestContext."""

import asyncio

import pytest

from tautulli.context import RequestContext
from tautulli.errors import ContextCanceledError, ContextError, DeadlineExceededError


class TestRequestContext:
    """Test cases for RequestContext."""

    def test_fresh_context_is_not_done(self):
        context = RequestContext()

        assert context.err() is None
        assert not context.done
        assert context.deadline is None
        assert context.remaining() is None

    def test_cancel(self):
        context = RequestContext(timeout=60)

        context.cancel()

        assert context.cancelled
        assert context.done
        assert isinstance(context.err(), ContextCanceledError)
        assert isinstance(context.err(), ContextError)

    def test_expired_deadline(self):
        context = RequestContext(timeout=0)

        assert isinstance(context.err(), DeadlineExceededError)
        assert context.remaining() == 0.0

    @pytest.mark.asyncio
    async def test_run_returns_result(self):
        async def work():
            return 42

        assert await RequestContext(timeout=5).run(work()) == 42

    @pytest.mark.asyncio
    async def test_run_propagates_errors(self):
        async def work():
            raise ValueError('boom')

        with pytest.raises(ValueError, match='boom'):
            await RequestContext().run(work())

    @pytest.mark.asyncio
    async def test_run_on_done_context(self):
        started = False

        async def work():
            nonlocal started
            started = True

        context = RequestContext()
        context.cancel()

        with pytest.raises(ContextCanceledError):
            await context.run(work())
        assert not started

    @pytest.mark.asyncio
    async def test_cancel_aborts_operation(self):
        finished = asyncio.Event()

        async def work():
            await asyncio.sleep(5)
            finished.set()

        context = RequestContext()
        asyncio.get_running_loop().call_later(0.01, context.cancel)

        with pytest.raises(ContextCanceledError):
            await context.run(work())
        assert not finished.is_set()

    @pytest.mark.asyncio
    async def test_deadline_aborts_operation(self):
        context = RequestContext(timeout=0.01)

        with pytest.raises(DeadlineExceededError):
            await context.run(asyncio.sleep(5))
        assert context.done

    @pytest.mark.asyncio
    async def test_run_on_done_context_closes_pending_operation(self):
        class PendingRequest:
            """Awaitable that is not a coroutine, like aiohttp's request manager."""
            closed = False

            def __await__(self):
                return asyncio.sleep(0).__await__()

            def close(self):
                self.closed = True

        pending = PendingRequest()
        context = RequestContext(timeout=0)

        with pytest.raises(DeadlineExceededError):
            await context.run(pending)
        assert pending.closed
