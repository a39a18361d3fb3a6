"""Per-listener invocation with explicit success/failure outcomes."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from .subscription import Subscription


@dataclass(frozen=True)
class ListenerSuccess:
    """A listener returned normally."""

    subscription: Subscription
    value: Any = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ListenerFailure:
    """A listener raised; the error is captured instead of propagated."""

    subscription: Subscription
    error: Exception

    @property
    def ok(self) -> bool:
        return False


ListenerOutcome = ListenerSuccess | ListenerFailure


def invoke_listener(
    subscription: Subscription, args: Sequence[Any]
) -> ListenerOutcome:
    """Call one subscription and capture the result."""
    try:
        value = subscription.callback(*args)
    except Exception as exc:
        return ListenerFailure(subscription, exc)
    return ListenerSuccess(subscription, value)


def dispatch(
    snapshot: Sequence[Subscription], args: Sequence[Any]
) -> Iterator[ListenerOutcome]:
    """Invoke every subscription of ``snapshot`` in order, yielding outcomes.

    Outcomes are yielded as each call returns so the caller can react to a
    failure before the next listener runs.
    """
    for subscription in snapshot:
        yield invoke_listener(subscription, args)
