"""Tests for configuration loading and validation."""

from __future__ import annotations

import tempfile
from pathlib import Path
import unittest

from eventbus.bus import EventBus
from eventbus.config import DEFAULT_CONFIG, load_config


class ConfigTests(unittest.TestCase):
    """Validate config merge and fallback behavior."""

    def _load(self, text: str | None) -> dict:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            if text is not None:
                config_path.write_text(text.strip(), encoding="utf-8")
            return load_config(config_path=config_path)

    def test_missing_config_uses_defaults(self) -> None:
        config = self._load(None)
        self.assertEqual(config, DEFAULT_CONFIG)
        self.assertEqual(config["bus"]["wildcard_event"], "*")
        self.assertEqual(config["bus"]["error_event"], "error")
        self.assertTrue(config["bus"]["log_tracebacks"])
        self.assertEqual(config["logging"]["level"], "INFO")

    def test_partial_config_overrides_selected_values(self) -> None:
        config = self._load(
            """
[bus]
error_event = "  failure  "

[logging]
level = "debug"
            """
        )
        self.assertEqual(config["bus"]["error_event"], "failure")
        self.assertEqual(config["bus"]["wildcard_event"], "*")
        self.assertEqual(config["logging"]["level"], "DEBUG")
        self.assertTrue(config["logging"]["structured"])

    def test_invalid_values_fallback_to_defaults(self) -> None:
        with self.assertLogs("eventbus.config", level="WARNING"):
            config = self._load(
                """
[logging]
level = "LOUD"
                """
            )
        self.assertEqual(config, DEFAULT_CONFIG)

    def test_identical_reserved_names_fallback_to_defaults(self) -> None:
        with self.assertLogs("eventbus.config", level="WARNING"):
            config = self._load(
                """
[bus]
wildcard_event = "all"
error_event = "all"
                """
            )
        self.assertEqual(config["bus"]["wildcard_event"], "*")
        self.assertEqual(config["bus"]["error_event"], "error")

    def test_unparsable_toml_is_ignored(self) -> None:
        with self.assertLogs("eventbus.config", level="WARNING"):
            config = self._load("[bus\nwildcard_event = ")
        self.assertEqual(config, DEFAULT_CONFIG)

    def test_loaded_config_builds_bus(self) -> None:
        config = self._load(
            """
[bus]
wildcard_event = "any"
log_tracebacks = false
            """
        )
        bus = EventBus.from_config(config)
        self.assertEqual(bus.wildcard_event, "any")
        self.assertFalse(bus.log_tracebacks)


if __name__ == "__main__":
    unittest.main()
