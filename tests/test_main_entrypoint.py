"""Tests for CLI entrypoint wiring."""

from __future__ import annotations

import io
from pathlib import Path
import unittest
from unittest.mock import patch

from itinerary_nav.__main__ import PLACEHOLDER_VIEWS, _placeholder_view, main


class MainEntrypointTests(unittest.TestCase):
    """Validate top-level main() behavior."""

    def test_main_loads_config_and_runs_app(self) -> None:
        with patch("itinerary_nav.__main__.ensure_config_dir") as ensure_mock, patch(
            "itinerary_nav.__main__.load_config", return_value={"logging": {}}
        ) as load_mock, patch(
            "itinerary_nav.__main__.configure_logging"
        ) as logging_mock, patch("itinerary_nav.app.NavigatorApp") as app_cls_mock:
            main([])
            ensure_mock.assert_called_once()
            load_mock.assert_called_once_with(None)
            logging_mock.assert_called_once_with({})
            app_cls_mock.assert_called_once()
            views = app_cls_mock.call_args.args[0]
            self.assertEqual(list(views), list(PLACEHOLDER_VIEWS))
            app_cls_mock.return_value.run.assert_called_once()

    def test_config_flag_reads_given_path(self) -> None:
        with patch("itinerary_nav.__main__.ensure_config_dir") as ensure_mock, patch(
            "itinerary_nav.__main__.load_config", return_value={"logging": {}}
        ) as load_mock, patch("itinerary_nav.__main__.configure_logging"), patch(
            "itinerary_nav.app.NavigatorApp"
        ):
            main(["--config", "/tmp/custom.toml"])
            ensure_mock.assert_not_called()
            load_mock.assert_called_once_with(Path("/tmp/custom.toml"))

    def test_version_flag_prints_and_exits(self) -> None:
        with patch("sys.stdout", new_callable=io.StringIO) as stdout, patch(
            "itinerary_nav.__main__.load_config"
        ) as load_mock:
            main(["--version"])
        self.assertTrue(stdout.getvalue().startswith("itinerary-nav "))
        load_mock.assert_not_called()

    def test_placeholder_view_renders_text(self) -> None:
        view = _placeholder_view("bookings")
        self.assertEqual(view["title"], "Bookings")
        self.assertIn("bookings", view["render"](None).plain)


if __name__ == "__main__":
    unittest.main()
