"""Serialized command queue.

Commands spawned for replies must not overlap, so every invocation goes
through a FIFO queue with a single slot. ``enqueue`` hands back a
``QueueHandle``: ``started`` resolves with the wait metrics right before the
task runs and ``result`` resolves with the task outcome.
"""

from __future__ import annotations

import asyncio
import time
import weakref
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

from loguru import logger

T = TypeVar("T")


@dataclass(frozen=True)
class QueueWait:
    waited_ms: int
    ahead: int


@dataclass(frozen=True)
class QueueHandle(Generic[T]):
    started: Awaitable[QueueWait]
    result: Awaitable[T]


class Enqueue(Protocol):
    def __call__(self, task: Callable[[], Awaitable[Any]]) -> QueueHandle[Any]: ...


class CommandQueue:
    """FIFO queue with exactly one task in flight."""

    def __init__(self, name: str = "command") -> None:
        self.name = name
        self._lock = asyncio.Lock()
        self._pending = 0

    @property
    def pending(self) -> int:
        """Tasks queued or running."""
        return self._pending

    def enqueue(self, task: Callable[[], Awaitable[T]]) -> QueueHandle[T]:
        loop = asyncio.get_running_loop()
        started: asyncio.Future[QueueWait] = loop.create_future()
        ahead = self._pending
        self._pending += 1
        enqueued_at = time.monotonic()

        async def _run() -> T:
            async with self._lock:
                waited_ms = int((time.monotonic() - enqueued_at) * 1000)
                if ahead:
                    logger.info("command.queue.wait queue={} waited_ms={} ahead={}", self.name, waited_ms, ahead)
                started.set_result(QueueWait(waited_ms=waited_ms, ahead=ahead))
                return await task()

        def _finish(_: asyncio.Future[T]) -> None:
            # Runs even when the task is cancelled before its first step.
            self._pending -= 1
            if not started.done():
                started.cancel()

        # Tasks are scheduled in enqueue order and asyncio.Lock wakes waiters FIFO.
        result = asyncio.ensure_future(_run())
        result.add_done_callback(_finish)
        return QueueHandle(started=started, result=result)


_DEFAULT_QUEUES: weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, CommandQueue] = weakref.WeakKeyDictionary()


def default_queue() -> CommandQueue:
    """Return the process-wide command queue for the running event loop."""
    loop = asyncio.get_running_loop()
    queue = _DEFAULT_QUEUES.get(loop)
    if queue is None:
        queue = CommandQueue()
        _DEFAULT_QUEUES[loop] = queue
    return queue
