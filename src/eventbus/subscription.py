"""Subscription records stored in the bus registry."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from types import MethodType
from typing import Any

Listener = Callable[..., Any]


def bind_listener(listener: Listener, context: object | None) -> Listener:
    """Bind ``listener`` to ``context`` so the context arrives as first argument.

    Without a context the listener is returned unchanged.
    """
    if context is None:
        return listener
    return MethodType(listener, context)


@dataclass(frozen=True, eq=False)
class Subscription:
    """One registered listener with its priority and optional bound context."""

    callback: Listener
    listener: Listener
    priority: int = 0
    context: object | None = None
    once: bool = False

    @classmethod
    def create(
        cls,
        listener: Listener,
        priority: int = 0,
        context: object | None = None,
    ) -> Subscription:
        return cls(
            callback=bind_listener(listener, context),
            listener=listener,
            priority=priority,
            context=context,
        )

    def matches(self, listener: Listener) -> bool:
        """Return True when ``listener`` identifies this subscription."""
        return self.listener == listener or self.callback == listener


def sort_subscriptions(subscriptions: list[Subscription]) -> None:
    """Sort in place by descending priority; ties keep registration order."""
    subscriptions.sort(key=lambda sub: -sub.priority)
