"""Top-level package for eventbus."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .bus import EventBus, get_default_bus, reset_default_bus
from .dispatch import ListenerFailure, ListenerOutcome, ListenerSuccess
from .exceptions import ConfigValidationError, EventBusError, InvalidArgumentError
from .subscription import Subscription

if TYPE_CHECKING:
    from .config import load_config
    from .logging_utils import configure_logging

__all__ = [
    "ConfigValidationError",
    "EventBus",
    "EventBusError",
    "InvalidArgumentError",
    "ListenerFailure",
    "ListenerOutcome",
    "ListenerSuccess",
    "Subscription",
    "configure_logging",
    "get_default_bus",
    "load_config",
    "reset_default_bus",
]


def __getattr__(name: str) -> Any:
    """Lazily import symbols so pydantic and structlog load only when used."""
    if name == "load_config":
        from .config import load_config

        return load_config
    if name == "configure_logging":
        from .logging_utils import configure_logging

        return configure_logging
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
