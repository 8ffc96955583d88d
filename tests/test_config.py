"""Tests for configuration loading and validation."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
import unittest
from unittest.mock import patch

from itinerary_nav.config import (
    DEFAULT_CONFIG,
    _deep_merge,
    ensure_config_dir,
    load_config,
)
from itinerary_nav.exceptions import ConfigValidationError


class ConfigTests(unittest.TestCase):
    """Validate config merge and fallback behavior."""

    def test_missing_config_uses_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config = load_config(config_path=Path(temp_dir) / "config.toml")
        self.assertEqual(config, DEFAULT_CONFIG)
        self.assertEqual(config["navigator"]["default_view"], "dashboard")
        self.assertEqual(config["animation"]["variant"], "slide-left")
        self.assertEqual(config["history"]["max_length"], 50)
        self.assertEqual(config["events"]["max_listeners"], 100)

    def test_partial_config_overrides_selected_values(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            config_path.write_text(
                """
[navigator]
default_view = "  itinerary  "
reject_concurrent = true

[animation]
variant = "FADE"
duration_ms = 150

[logging]
level = "debug"
""",
                encoding="utf-8",
            )
            config = load_config(config_path=config_path)
        self.assertEqual(config["navigator"]["default_view"], "itinerary")
        self.assertTrue(config["navigator"]["reject_concurrent"])
        self.assertEqual(config["animation"]["variant"], "fade")
        self.assertEqual(config["animation"]["duration_ms"], 150)
        self.assertEqual(config["animation"]["settle_ms"], 50)
        self.assertEqual(config["logging"]["level"], "DEBUG")
        self.assertEqual(config["history"], DEFAULT_CONFIG["history"])

    def test_invalid_values_fall_back_to_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            config_path.write_text(
                '[animation]\nvariant = "spin"\n', encoding="utf-8"
            )
            with self.assertLogs("itinerary_nav.config", level="WARNING"):
                config = load_config(config_path=config_path)
        self.assertEqual(config, DEFAULT_CONFIG)

    def test_out_of_range_numbers_fall_back(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            config_path.write_text(
                "[history]\nmax_length = 0\n", encoding="utf-8"
            )
            with self.assertLogs("itinerary_nav.config", level="WARNING"):
                config = load_config(config_path=config_path)
        self.assertEqual(config["history"]["max_length"], 50)

    def test_persist_requires_history(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            config_path.write_text(
                "[history]\nenabled = false\npersist = true\n", encoding="utf-8"
            )
            with self.assertLogs("itinerary_nav.config", level="WARNING"):
                config = load_config(config_path=config_path)
        self.assertTrue(config["history"]["enabled"])
        self.assertFalse(config["history"]["persist"])

    def test_malformed_toml_uses_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            config_path.write_text("[navigator\n", encoding="utf-8")
            with self.assertLogs("itinerary_nav.config", level="WARNING") as logs:
                config = load_config(config_path=config_path)
        self.assertEqual(config, DEFAULT_CONFIG)
        self.assertTrue(any("Failed to parse config" in line for line in logs.output))

    @unittest.skipUnless(os.name == "posix", "POSIX permissions only")
    def test_config_file_permissions_are_tightened(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            config_path.write_text("", encoding="utf-8")
            config_path.chmod(0o644)
            load_config(config_path=config_path)
            self.assertEqual(config_path.stat().st_mode & 0o777, 0o600)

    def test_unexpected_validation_failure_raises(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            with patch("itinerary_nav.config.Config") as model_mock:
                model_mock.model_validate.side_effect = TypeError("broken model")
                with self.assertRaises(ConfigValidationError):
                    load_config(config_path=Path(temp_dir) / "config.toml")

    def test_deep_merge_does_not_mutate_base(self) -> None:
        base = {"a": {"b": 1, "c": 2}}
        merged = _deep_merge(base, {"a": {"b": 5}, "d": 1})
        self.assertEqual(merged, {"a": {"b": 5, "c": 2}, "d": 1})
        self.assertEqual(base, {"a": {"b": 1, "c": 2}})

    def test_ensure_config_dir_creates_directory(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            target = Path(temp_dir) / "nested" / "dir"
            self.assertEqual(ensure_config_dir(target), target)
            self.assertTrue(target.is_dir())


if __name__ == "__main__":
    unittest.main()
