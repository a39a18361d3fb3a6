"""Exception hierarchy for the event bus."""

from __future__ import annotations


class EventBusError(RuntimeError):
    """Base class for all event bus errors."""


class InvalidArgumentError(EventBusError, ValueError):
    """Raised when an event name, listener or option is unusable."""


class ConfigValidationError(EventBusError):
    """Raised when configuration cannot be validated safely."""
