"""FIFO queue for emissions deferred to a later turn of the event loop."""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
import logging
from typing import Any
import weakref

LOGGER = logging.getLogger(__name__)

Runner = Callable[..., Any]


@dataclass
class _PendingEmit:
    event: str
    args: tuple[Any, ...]
    future: asyncio.Future[None]


@dataclass
class _LoopQueue:
    entries: deque[_PendingEmit] = field(default_factory=deque)
    scheduled: bool = False


class DispatchQueue:
    """Run deferred emissions on the running loop in submission order.

    Each loop gets its own queue. A single drain callback is scheduled with
    ``loop.call_soon``; it runs the entries present when it started and leaves
    anything submitted meanwhile for the next turn.
    """

    def __init__(self, runner: Runner) -> None:
        self._runner = runner
        self._queues: weakref.WeakKeyDictionary[
            asyncio.AbstractEventLoop, _LoopQueue
        ] = weakref.WeakKeyDictionary()

    def submit(self, event: str, args: tuple[Any, ...]) -> asyncio.Future[None]:
        """Queue ``runner(event, *args)`` and return a future for its completion.

        Raises ``RuntimeError`` when called without a running event loop.
        """
        loop = asyncio.get_running_loop()
        queue = self._queues.get(loop)
        if queue is None:
            queue = _LoopQueue()
            self._queues[loop] = queue

        future: asyncio.Future[None] = loop.create_future()
        queue.entries.append(_PendingEmit(event, args, future))
        if not queue.scheduled:
            queue.scheduled = True
            loop.call_soon(self._drain, queue)
        return future

    def pending(self) -> int:
        """Return the number of emissions queued on the running loop."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return 0
        queue = self._queues.get(loop)
        return len(queue.entries) if queue is not None else 0

    def _drain(self, queue: _LoopQueue) -> None:
        queue.scheduled = False
        # Entries submitted while draining have scheduled their own drain.
        for _ in range(len(queue.entries)):
            self._run(queue.entries.popleft())

    def _run(self, entry: _PendingEmit) -> None:
        try:
            self._runner(entry.event, *entry.args)
        except Exception as exc:
            LOGGER.debug(
                "bus.deferred.failed",
                extra={
                    "event_name": entry.event,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            if not entry.future.done():
                entry.future.set_exception(exc)
            return
        if not entry.future.done():
            entry.future.set_result(None)
