# src/search/pipeline.py — v1
"""Bounded producer/consumer pipeline with cooperative cancellation.

One producer hands items to N consumers one at a time: the producer does
not pull the next item until a consumer has taken the current one. The first
failure cancels the run token so every other task winds down, and is
re-raised from ``run()``. Tasks that stop because the token is done only
record that the run was interrupted.
"""

from __future__ import annotations

import asyncio
import contextvars
import functools
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from concurrent.futures import Executor
from typing import Generic, TypeVar

from epubsearch.core.cancellation import CancelToken
from epubsearch.core.errors import SearchCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

POLL_INTERVAL_S = 0.05

_DONE = object()


class BoundedPipeline(Generic[T]):
    """Run ``process`` over every item of ``source`` with ``workers`` consumers.

    Args:
        token: Run-scoped token; cancelled on the first failure.
        workers: Number of consumer tasks.
    """

    def __init__(self, token: CancelToken, workers: int) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self._token = token
        self._workers = workers
        self._failure: BaseException | None = None
        self._interrupted = False

    @property
    def interrupted(self) -> bool:
        """True if any task stopped early because the token was done."""
        return self._interrupted

    async def run(
        self,
        source: AsyncIterator[T],
        process: Callable[[T], Awaitable[None]],
    ) -> None:
        """Drive the pipeline to completion.

        Raises:
            The first exception raised by the producer or a consumer.
        """
        queue: asyncio.Queue[object] = asyncio.Queue(maxsize=1)
        tasks = [asyncio.create_task(self._produce(source, queue), name="producer")]
        tasks.extend(
            asyncio.create_task(self._consume(queue, process), name=f"worker-{i}")
            for i in range(self._workers)
        )
        try:
            await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        if self._failure is not None:
            raise self._failure

    def _fail(self, exc: BaseException) -> None:
        if self._failure is None:
            self._failure = exc
            self._token.cancel()

    async def _produce(self, source: AsyncIterator[T], queue: asyncio.Queue[object]) -> None:
        try:
            async for item in source:
                if not await self._put(queue, item):
                    return
            for _ in range(self._workers):
                if not await self._put(queue, _DONE):
                    return
        except SearchCancelledError:
            self._interrupted = True
        except Exception as exc:
            self._fail(exc)
        finally:
            aclose = getattr(source, "aclose", None)
            if aclose is not None:
                await aclose()

    async def _consume(
        self,
        queue: asyncio.Queue[object],
        process: Callable[[T], Awaitable[None]],
    ) -> None:
        try:
            while True:
                item = await self._get(queue)
                if item is _DONE:
                    return
                if self._token.done():
                    self._interrupted = True
                    return
                await process(item)  # type: ignore[arg-type]
        except SearchCancelledError:
            self._interrupted = True
        except Exception as exc:
            self._fail(exc)

    async def _put(self, queue: asyncio.Queue[object], item: object) -> bool:
        if self._token.done():
            self._interrupted = True
            return False
        if await self._wait(queue.put(item)) is None:
            return False
        # hand-off: the next item is not pulled until a consumer took this one
        return await self._wait(queue.join()) is not None

    async def _get(self, queue: asyncio.Queue[object]) -> object:
        getter = await self._wait(queue.get())
        if getter is None:
            return _DONE
        queue.task_done()
        return getter.result()

    async def _wait(self, awaitable: Awaitable[object]) -> asyncio.Future[object] | None:
        """Await ``awaitable`` while polling the token; None if the token fired first."""
        future = asyncio.ensure_future(awaitable)
        try:
            while True:
                done, _ = await asyncio.wait({future}, timeout=POLL_INTERVAL_S)
                if done:
                    return future
                if self._token.done():
                    self._interrupted = True
                    return None
        finally:
            if not future.done():
                future.cancel()


async def run_blocking(executor: Executor, func: Callable[..., R], *args: object) -> R:
    """Run ``func`` on ``executor`` inside a copy of the caller's context."""
    loop = asyncio.get_running_loop()
    context = contextvars.copy_context()
    return await loop.run_in_executor(executor, functools.partial(context.run, func, *args))


async def shutdown_executor(executor: Executor) -> None:
    """Drop queued work and wait, off the event loop, for running calls to return.

    Cancel the run token first so in-flight archive scans stop at their next
    check.
    """
    await asyncio.to_thread(executor.shutdown, wait=True, cancel_futures=True)
