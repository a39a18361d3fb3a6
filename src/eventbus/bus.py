"""In-process event bus with priorities, one-shot listeners and a wildcard channel.

Usage:
    bus = EventBus()

    def on_saved(path):
        print(f"saved: {path}")

    bus.on("file.saved", on_saved, priority=10)
    bus.once("app.ready", lambda: print("ready"))

    bus.emit("file.saved", "/tmp/a.txt")
    await bus.emit_async("file.saved", "/tmp/b.txt")

Listeners on the wildcard channel (``"*"``) receive ``(event, *args)`` for
every emission. A listener that raises does not stop the others; the failure
is logged and re-emitted on the error channel (``"error"``) as
``(error, event, args)`` when that channel has listeners.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
import inspect
import logging
from typing import Any

from .dispatch import ListenerFailure, dispatch
from .exceptions import InvalidArgumentError
from .scheduler import DispatchQueue
from .subscription import Listener, Subscription, bind_listener, sort_subscriptions
from .task_manager import ListenerTaskManager

LOGGER = logging.getLogger(__name__)

WILDCARD_EVENT = "*"
ERROR_EVENT = "error"

OnceKey = tuple[str, Listener]


def _validate_event(event: Any) -> None:
    if not isinstance(event, str) or not event:
        raise InvalidArgumentError("Event name must be a non-empty string")


def _validate_listener(listener: Any) -> None:
    if not callable(listener):
        raise InvalidArgumentError("Listener must be callable")


def _validate_priority(priority: Any) -> None:
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise InvalidArgumentError("Priority must be an integer")


def _once_key(event: str, listener: Listener) -> OnceKey | None:
    try:
        hash(listener)
    except TypeError:
        return None
    return (event, listener)


class EventBus:
    """Publish/subscribe dispatcher for named events.

    Listeners run synchronously in descending priority order, ties in
    registration order. Every dispatch iterates a snapshot taken when
    ``emit`` began, so registrations made by a running listener only
    affect later emissions.
    """

    def __init__(
        self,
        *,
        wildcard_event: str = WILDCARD_EVENT,
        error_event: str = ERROR_EVENT,
        log_tracebacks: bool = True,
    ) -> None:
        _validate_event(wildcard_event)
        _validate_event(error_event)
        self.wildcard_event = wildcard_event
        self.error_event = error_event
        self.log_tracebacks = log_tracebacks
        self._registry: dict[str, list[Subscription]] = {}
        # Keyed by (event, listener) so the same listener can be a
        # once-listener on several events independently.
        self._once_index: dict[OnceKey, list[Listener]] = {}
        self._queue = DispatchQueue(self.emit)
        self._tasks = ListenerTaskManager()

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> EventBus:
        """Build a bus from a mapping shaped like ``load_config()`` output."""
        section = config.get("bus", {}) or {}
        return cls(
            wildcard_event=section.get("wildcard_event", WILDCARD_EVENT),
            error_event=section.get("error_event", ERROR_EVENT),
            log_tracebacks=bool(section.get("log_tracebacks", True)),
        )

    def on(
        self,
        event: str,
        listener: Listener,
        *,
        priority: int = 0,
        context: object | None = None,
    ) -> EventBus:
        """Subscribe ``listener`` to ``event``.

        Args:
            event: Event name (non-empty string).
            listener: Callable invoked with the emitted arguments.
            priority: Higher priorities run first.
            context: Object bound as the listener's first argument.

        Returns:
            The bus, for chaining.
        """
        _validate_event(event)
        _validate_listener(listener)
        _validate_priority(priority)
        self._add(event, Subscription.create(listener, priority, context))
        return self

    add_listener = on

    def once(
        self,
        event: str,
        listener: Listener,
        *,
        priority: int = 0,
        context: object | None = None,
    ) -> EventBus:
        """Subscribe ``listener`` for a single invocation.

        The registration is removed before the listener runs, so emissions
        triggered from inside it never call it again.
        """
        _validate_event(event)
        _validate_listener(listener)
        _validate_priority(priority)
        key = _once_key(event, listener)
        if key is None:
            raise InvalidArgumentError("Once-listeners must be hashable")

        callback = bind_listener(listener, context)
        fired = False

        def wrapper(*args: Any) -> Any:
            nonlocal fired
            if fired:
                return None
            fired = True
            self._forget_once(key, wrapper)
            self._remove(event, lambda sub: sub.callback is wrapper)
            return callback(*args)

        self._once_index.setdefault(key, []).append(wrapper)
        self._add(
            event,
            Subscription(
                callback=wrapper,
                listener=wrapper,
                priority=priority,
                context=context,
                once=True,
            ),
        )
        return self

    def off(self, event: str, listener: Listener) -> EventBus:
        """Remove every registration of ``listener`` under ``event``.

        Once-registrations are resolved through the once-index. Unknown
        events or listeners are ignored.
        """
        wrappers: list[Listener] = []
        key = _once_key(event, listener)
        if key is not None:
            wrappers = self._once_index.pop(key, [])

        def is_target(sub: Subscription) -> bool:
            if any(sub.callback is wrapper for wrapper in wrappers):
                return True
            return sub.matches(listener)

        removed = self._remove(event, is_target)
        if removed:
            LOGGER.debug(
                "bus.unsubscribed", extra={"event_name": event, "removed": removed}
            )
        return self

    remove_listener = off

    def emit(self, event: str, *args: Any) -> EventBus:
        """Notify the wildcard channel, then the listeners of ``event``.

        Raises:
            InvalidArgumentError: If ``event`` is not a non-empty string.
        """
        _validate_event(event)
        wildcard: list[Subscription] = []
        if event != self.wildcard_event:
            wildcard = list(self._registry.get(self.wildcard_event, ()))
        own = list(self._registry.get(event, ()))

        if not wildcard and not own:
            LOGGER.debug("bus.emit.no_listeners", extra={"event_name": event})
            return self

        # Failures while delivering an error emission, on its own channel or
        # the wildcard, are secondary and never re-emitted.
        secondary = event == self.error_event
        if wildcard:
            self._dispatch(self.wildcard_event, wildcard, (event, *args), secondary)
        if own:
            self._dispatch(event, own, args, secondary)
        return self

    def emit_async(self, event: str, *args: Any) -> asyncio.Future[None]:
        """Schedule ``emit(event, *args)`` on a later turn of the running loop.

        Emissions scheduled this way run in the order they were issued. The
        returned future resolves once ``emit`` returned, or fails with the
        error ``emit`` raised for an invalid event name.
        """
        return self._queue.submit(event, args)

    def remove_all_listeners(self, event: str | None = None) -> EventBus:
        """Clear one event's listeners, or every listener when ``event`` is None."""
        if event is None:
            self._registry.clear()
            self._once_index.clear()
            LOGGER.debug("bus.cleared")
            return self

        self._registry.pop(event, None)
        for key in [key for key in self._once_index if key[0] == event]:
            del self._once_index[key]
        LOGGER.debug("bus.cleared", extra={"event_name": event})
        return self

    def listener_count(self, event: str) -> int:
        """Return the number of subscriptions registered for ``event``."""
        return len(self._registry.get(event, ()))

    def event_names(self) -> list[str]:
        """Return the events that currently have listeners."""
        return list(self._registry)

    def pending_emits(self) -> int:
        """Return how many ``emit_async`` calls are still queued."""
        return self._queue.pending()

    async def wait_for_listeners(self) -> None:
        """Await tasks started by coroutine listeners."""
        await self._tasks.await_all()

    async def cancel_listeners(self) -> None:
        """Cancel tasks started by coroutine listeners."""
        await self._tasks.cancel_all()

    def _add(self, event: str, subscription: Subscription) -> None:
        subscriptions = self._registry.setdefault(event, [])
        subscriptions.append(subscription)
        sort_subscriptions(subscriptions)
        LOGGER.debug(
            "bus.subscribed",
            extra={
                "event_name": event,
                "priority": subscription.priority,
                "once": subscription.once,
            },
        )

    def _remove(self, event: str, predicate: Callable[[Subscription], bool]) -> int:
        subscriptions = self._registry.get(event)
        if not subscriptions:
            return 0
        remaining = [sub for sub in subscriptions if not predicate(sub)]
        removed = len(subscriptions) - len(remaining)
        if remaining:
            subscriptions[:] = remaining
        else:
            del self._registry[event]
        return removed

    def _forget_once(self, key: OnceKey, wrapper: Listener) -> None:
        wrappers = self._once_index.get(key)
        if wrappers is None:
            return
        self._once_index[key] = [item for item in wrappers if item is not wrapper]
        if not self._once_index[key]:
            del self._once_index[key]

    def _dispatch(
        self,
        channel: str,
        snapshot: list[Subscription],
        args: tuple[Any, ...],
        secondary: bool,
    ) -> None:
        for outcome in dispatch(snapshot, args):
            if isinstance(outcome, ListenerFailure):
                self._report_failure(outcome.error, channel, args, secondary)
            elif inspect.isawaitable(outcome.value):
                self._track_awaitable(outcome.value, channel, args, secondary)

    def _track_awaitable(
        self,
        awaitable: Any,
        channel: str,
        args: tuple[Any, ...],
        secondary: bool,
    ) -> None:
        try:
            self._tasks.spawn(
                awaitable,
                on_failure=lambda exc: self._report_failure(
                    exc, channel, args, secondary
                ),
                name=f"eventbus:{channel}",
            )
        except RuntimeError as exc:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            self._report_failure(exc, channel, args, secondary)

    def _report_failure(
        self,
        error: BaseException,
        channel: str,
        args: tuple[Any, ...],
        secondary: bool,
    ) -> None:
        exc_info = error if self.log_tracebacks else None
        details = {
            "event_name": channel,
            "error_type": type(error).__name__,
            "error": str(error),
        }
        if secondary:
            # Raised while handling an error emission: logged, never re-emitted.
            LOGGER.error("bus.error_handler.failed", exc_info=exc_info, extra=details)
            return

        LOGGER.error("bus.listener.failed", exc_info=exc_info, extra=details)
        if self._registry.get(self.error_event):
            self.emit(self.error_event, error, channel, args)


_default_bus: EventBus | None = None


def get_default_bus() -> EventBus:
    """Return the process-wide shared bus, creating it on first use."""
    global _default_bus
    if _default_bus is None:
        _default_bus = EventBus()
    return _default_bus


def reset_default_bus() -> None:
    """Drop the shared bus so the next ``get_default_bus()`` builds a new one."""
    global _default_bus
    _default_bus = None
