"""Lifecycle tracking for tasks spawned by coroutine listeners."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import logging
from typing import Any

LOGGER = logging.getLogger(__name__)

FailureCallback = Callable[[BaseException], None]


class ListenerTaskManager:
    """Own the tasks created for awaitables returned by listeners.

    Tasks self-clean when they complete. A task that ends with an exception
    is logged and handed to the failure callback registered with it.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(
        self,
        awaitable: Awaitable[Any],
        on_failure: FailureCallback | None = None,
        name: str | None = None,
    ) -> asyncio.Task[Any]:
        """Wrap ``awaitable`` in a task on the running loop and track it.

        Raises ``RuntimeError`` when no loop is running.
        """
        loop = asyncio.get_running_loop()
        task = loop.create_task(_await(awaitable), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(
            lambda done: self._check_exception(done, on_failure)
        )
        return task

    def _check_exception(
        self, task: asyncio.Task[Any], on_failure: FailureCallback | None
    ) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        LOGGER.warning(
            "bus.listener_task.exception",
            extra={
                "task_name": task.get_name(),
                "error_type": type(exc).__name__,
                "error": str(exc),
            },
        )
        if on_failure is not None:
            on_failure(exc)

    async def await_all(self) -> None:
        """Await tracked tasks, including ones spawned while waiting."""
        while self._tasks:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                break
            await asyncio.gather(*pending, return_exceptions=True)

    async def cancel_all(self) -> None:
        """Cancel every tracked task and await them all."""
        tasks = list(self._tasks)
        for task in tasks:
            if not task.done():
                task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:
                # Already reported by the done callback.
                continue
        self._tasks.clear()


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable
