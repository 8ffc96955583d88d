"""Tests for top-level package exports."""

from __future__ import annotations

import unittest

import itinerary_nav


class PackageExportTests(unittest.TestCase):
    """Ensure __getattr__ and exported symbols behave as expected."""

    def test_lazy_exports_resolve_known_symbols(self) -> None:
        self.assertTrue(callable(itinerary_nav.load_config))
        self.assertTrue(callable(itinerary_nav.ensure_config_dir))
        self.assertIsNotNone(itinerary_nav.EventBus)
        self.assertIsNotNone(itinerary_nav.ViewOrchestrator)
        self.assertIsNotNone(itinerary_nav.NavigatorError)
        self.assertIsNotNone(itinerary_nav.ConfigValidationError)

    def test_all_names_resolve(self) -> None:
        for name in itinerary_nav.__all__:
            if name == "NavigatorApp":
                continue
            self.assertIsNotNone(getattr(itinerary_nav, name), name)

    def test_unknown_symbol_raises_attribute_error(self) -> None:
        with self.assertRaises(AttributeError):
            getattr(itinerary_nav, "THIS_DOES_NOT_EXIST")


if __name__ == "__main__":
    unittest.main()
