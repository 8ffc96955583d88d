"""Tests for domain exception hierarchy."""

from __future__ import annotations

import unittest

from itinerary_nav.exceptions import (
    ConfigValidationError,
    EventTimeoutError,
    InvalidArgumentError,
    ListenerError,
    MissingRequiredDataError,
    NavigationInProgressError,
    NavigatorError,
    ViewNotFoundError,
)


class ExceptionHierarchyTests(unittest.TestCase):
    """Validate exception inheritance contract."""

    def test_exception_hierarchy(self) -> None:
        self.assertTrue(issubclass(NavigatorError, RuntimeError))
        for error_type in (
            ConfigValidationError,
            EventTimeoutError,
            InvalidArgumentError,
            ListenerError,
            MissingRequiredDataError,
            NavigationInProgressError,
            ViewNotFoundError,
        ):
            self.assertTrue(issubclass(error_type, NavigatorError), error_type)

    def test_errors_carry_context(self) -> None:
        missing = MissingRequiredDataError("detail", ["id", "slug"])
        self.assertEqual(missing.view, "detail")
        self.assertIn("id, slug", str(missing))

        timeout = EventTimeoutError("y", 0.05)
        self.assertEqual(timeout.timeout, 0.05)
        self.assertIn("'y'", str(timeout))

        cause = ValueError("boom")
        listener = ListenerError("x", cause)
        self.assertIs(listener.error, cause)
        self.assertIn("'missing'", str(ViewNotFoundError("missing")))


if __name__ == "__main__":
    unittest.main()
