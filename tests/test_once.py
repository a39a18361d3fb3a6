"""Tests for one-shot subscriptions."""

from __future__ import annotations

import unittest

from eventbus.bus import EventBus
from eventbus.exceptions import InvalidArgumentError


class OnceTests(unittest.TestCase):
    """Validate self-removal and once-index lookups."""

    def setUp(self) -> None:
        self.bus = EventBus()
        self.calls: list[tuple[object, ...]] = []

    def listener(self, *args: object) -> None:
        self.calls.append(args)

    def test_fires_only_on_first_emission(self) -> None:
        self.bus.once("x", self.listener)
        self.bus.emit("x", 1)
        self.bus.emit("x", 2)
        self.assertEqual(self.calls, [(1,)])
        self.assertEqual(self.bus.listener_count("x"), 0)

    def test_off_before_emission_removes_once_listener(self) -> None:
        self.bus.once("x", self.listener)
        self.bus.off("x", self.listener)
        self.bus.emit("x")
        self.assertEqual(self.calls, [])
        self.assertEqual(self.bus.listener_count("x"), 0)

    def test_same_listener_on_two_events_is_tracked_per_event(self) -> None:
        self.bus.once("a", self.listener)
        self.bus.once("b", self.listener)
        self.bus.off("a", self.listener)
        self.assertEqual(self.bus.listener_count("a"), 0)
        self.assertEqual(self.bus.listener_count("b"), 1)

        self.bus.emit("a", "a")
        self.bus.emit("b", "b")
        self.assertEqual(self.calls, [("b",)])

    def test_off_removes_plain_and_once_registrations(self) -> None:
        self.bus.on("x", self.listener)
        self.bus.once("x", self.listener)
        self.bus.off("x", self.listener)
        self.assertEqual(self.bus.listener_count("x"), 0)

    def test_reentrant_emit_does_not_fire_twice(self) -> None:
        def listener() -> None:
            self.calls.append(("fired",))
            self.bus.emit("x")

        self.bus.once("x", listener)
        self.bus.emit("x")
        self.assertEqual(self.calls, [("fired",)])

    def test_stale_snapshot_does_not_fire_twice(self) -> None:
        nested = False

        def trigger() -> None:
            nonlocal nested
            if not nested:
                nested = True
                self.bus.emit("x")

        self.bus.on("x", trigger, priority=10)
        self.bus.once("x", self.listener)
        self.bus.emit("x")
        self.assertEqual(self.calls, [()])

    def test_priority_applies_to_once(self) -> None:
        order: list[str] = []
        self.bus.once("x", lambda: order.append("once"))
        self.bus.on("x", lambda: order.append("high"), priority=5)
        self.bus.emit("x")
        self.assertEqual(order, ["high", "once"])

    def test_context_is_bound(self) -> None:
        owner = object()
        received: list[tuple[object, int]] = []

        def listener(ctx: object, value: int) -> None:
            received.append((ctx, value))

        self.bus.once("x", listener, context=owner)
        self.bus.emit("x", 3)
        self.bus.emit("x", 4)
        self.assertEqual(received, [(owner, 3)])

    def test_failing_once_listener_is_still_removed(self) -> None:
        def boom() -> None:
            raise RuntimeError("boom")

        self.bus.once("x", boom)
        with self.assertLogs("eventbus.bus", level="ERROR"):
            self.bus.emit("x")
        self.assertEqual(self.bus.listener_count("x"), 0)

    def test_unhashable_listener_rejected(self) -> None:
        class Unhashable:
            __hash__ = None  # type: ignore[assignment]

            def __call__(self) -> None:
                pass

        with self.assertRaises(InvalidArgumentError):
            self.bus.once("x", Unhashable())


if __name__ == "__main__":
    unittest.main()
