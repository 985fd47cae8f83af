import asyncio
import time
from typing import Awaitable, Optional, TypeVar

from tautulli.errors import ContextCanceledError, ContextError, DeadlineExceededError

T = TypeVar('T')


class RequestContext:
    """Cancellation token carried by every request.

    A context is cancelled explicitly with ``cancel()`` or implicitly once its
    deadline (``timeout`` seconds after creation) has passed. It may be shared
    between several calls; cancelling it aborts all of them.
    """

    def __init__(self, timeout: Optional[float] = None):
        self.deadline: Optional[float] = None
        if timeout is not None:
            self.deadline = time.monotonic() + timeout
        self._cancelled = asyncio.Event()
        self._expired = False

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without one."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    @property
    def done(self) -> bool:
        return self.err() is not None

    def err(self) -> Optional[ContextError]:
        if self.cancelled:
            return ContextCanceledError()
        if self._expired or (self.deadline is not None and time.monotonic() >= self.deadline):
            self._expired = True
            return DeadlineExceededError()
        return None

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the context is done first.

        When the context is cancelled or its deadline passes, the operation
        is cancelled and the context's error is raised.
        """
        error = self.err()
        if error is not None:
            # coroutines and aiohttp request managers both expose close()
            close = getattr(awaitable, 'close', None)
            if close is not None:
                close()
            raise error

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._cancelled.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        result, = await asyncio.gather(task, return_exceptions=True)
        # the operation may have finished while being cancelled
        if hasattr(result, 'release'):
            result.release()
        if not self.cancelled:
            self._expired = True
        raise self.err()
