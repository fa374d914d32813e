"""Live token streaming.

A Stream owns one background task that pulls tokens from the backend
iterator, passes each through the after_response hooks and publishes it to
the consumer. Cancellation (explicit or deadline) always wins over a ready
token, and the task ends with exactly one terminal signal: an error or
completion.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, Optional, Sequence, TypeVar

from promptgen.core.errors import CanceledError, GenerationTimeoutError, PromptGenError
from promptgen.providers.base import classify_backend_error
from promptgen.services.hooks import Hook, run_after_hooks

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CLOSED = object()


class _ContentChannel:
    """Token queue with at most one undelivered token; close() never blocks."""

    def __init__(self) -> None:
        self._items: asyncio.Queue = asyncio.Queue()
        self.slot = asyncio.Semaphore(1)
        self._closed = False

    def put(self, token: str) -> None:
        # caller must hold the slot
        self._items.put_nowait(token)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._items.put_nowait(_CLOSED)

    async def receive(self) -> str:
        item = await self._items.get()
        if item is _CLOSED:
            # leave the marker for any other reader
            self._items.put_nowait(_CLOSED)
            raise StopAsyncIteration
        self.slot.release()
        return item


class Stream:
    """
    Handle returned by Generator.stream.
    - `async for token in stream` yields content in backend order and ends when the stream ends
    - `await stream.wait()` returns on completion or raises the stream's error
    - `stream.cancel()` stops the stream; no token is delivered after it fires
    """

    def __init__(
        self,
        source: AsyncIterator[str],
        hooks: Sequence[Hook] = (),
        *,
        cancel_event: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> None:
        self._source = source
        self._hooks = tuple(hooks)
        self._cancel = cancel_event or asyncio.Event()
        self._deadline = deadline
        self._loop = asyncio.get_running_loop()
        self._content = _ContentChannel()
        self._terminal: asyncio.Future = self._loop.create_future()
        self._task: Optional[asyncio.Task] = None

    def start(self) -> "Stream":
        if self._task is None:
            self._task = asyncio.create_task(self._pump(), name="promptgen-stream")
        return self

    # consumer side

    def __aiter__(self) -> "Stream":
        return self

    async def __anext__(self) -> str:
        if self._stopped():
            raise StopAsyncIteration
        token = await self._content.receive()
        # a token still queued when cancellation fired is dropped
        if self._stopped():
            raise StopAsyncIteration
        return token

    async def __aenter__(self) -> "Stream":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    @property
    def finished(self) -> bool:
        return self._terminal.done()

    @property
    def done(self) -> bool:
        """True once the stream completed without error."""
        return self._terminal.done() and self._terminal.result() is None

    @property
    def error(self) -> Optional[BaseException]:
        if not self._terminal.done():
            return None
        return self._terminal.result()

    def cancel(self) -> None:
        self._cancel.set()

    async def wait(self) -> None:
        err = await asyncio.shield(self._terminal)
        if err is not None:
            raise err

    async def text(self) -> str:
        """Collect every token, then surface the terminal error if there was one."""
        parts = [token async for token in self]
        await self.wait()
        return "".join(parts)

    async def aclose(self) -> None:
        self.cancel()
        if self._task is not None:
            await asyncio.wait({self._task})

    def _stopped(self) -> bool:
        if self._cancel.is_set():
            return True
        if self.done or self._deadline is None:
            return False
        return self._loop.time() >= self._deadline

    # background task

    def _interruption(self) -> Optional[PromptGenError]:
        if self._cancel.is_set():
            return CanceledError("stream canceled")
        if self._deadline is not None and self._loop.time() >= self._deadline:
            return GenerationTimeoutError("stream deadline exceeded")
        return None

    async def _race(
        self,
        aw: Awaitable[T],
        abandon: Optional[Callable[[T], None]] = None,
    ) -> T:
        """Await aw unless cancellation or the deadline fires first; those always win."""
        interrupted = self._interruption()
        if interrupted is not None:
            if asyncio.iscoroutine(aw):
                aw.close()
            raise interrupted

        task = asyncio.ensure_future(aw)
        canceled = asyncio.ensure_future(self._cancel.wait())
        timeout = None
        if self._deadline is not None:
            timeout = max(0.0, self._deadline - self._loop.time())
        try:
            done, _ = await asyncio.wait({task, canceled}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            canceled.cancel()

        interrupted = self._interruption()
        if interrupted is None and task not in done:
            # the wait only times out at the deadline
            interrupted = GenerationTimeoutError("stream deadline exceeded")
        if interrupted is None:
            return task.result()

        if task.done():
            # a result that lost the race is dropped, its exception retrieved
            if not task.cancelled() and task.exception() is None and abandon is not None:
                abandon(task.result())
        else:
            task.cancel()
            await asyncio.wait({task})
        raise interrupted

    async def _publish(self, token: str) -> None:
        await self._race(self._content.slot.acquire(), abandon=lambda _: self._content.slot.release())
        self._content.put(token)

    async def _pump(self) -> None:
        error: Optional[BaseException] = None
        count = 0
        try:
            while True:
                try:
                    token = await self._race(self._source.__anext__())
                except StopAsyncIteration:
                    break
                token = await run_after_hooks(self._hooks, token, None)
                await self._publish(token)
                count += 1
        except asyncio.CancelledError:
            error = CanceledError("stream task cancelled")
            raise
        except Exception as exc:
            error = classify_backend_error(exc)
        finally:
            self._content.close()
            if not self._terminal.done():
                self._terminal.set_result(error)
            if error is None:
                logger.debug("stream completed after %d tokens", count)
            else:
                logger.info("stream ended with error after %d tokens: %s", count, error)
            await self._close_source()

    async def _close_source(self) -> None:
        aclose = getattr(self._source, "aclose", None)
        if aclose is None:
            return
        try:
            await aclose()
        except Exception:
            logger.warning("backend stream did not close cleanly", exc_info=True)
