"""Domain exception hierarchy for the navigation core."""

from __future__ import annotations

from typing import Any


class NavigatorError(RuntimeError):
    """Base class for all event bus and view orchestration errors."""


class InvalidArgumentError(NavigatorError):
    """Raised when a registration or subscription is malformed."""


class ViewNotFoundError(NavigatorError):
    """Raised when navigation targets a view that is not registered."""

    def __init__(self, view: str) -> None:
        super().__init__(f"View {view!r} not found")
        self.view = view


class MissingRequiredDataError(NavigatorError):
    """Raised when a view declares data keys the navigation did not supply."""

    def __init__(self, view: str, missing: list[str]) -> None:
        super().__init__(
            f"Missing required data for view {view!r}: {', '.join(missing)}"
        )
        self.view = view
        self.missing = missing


class NavigationInProgressError(NavigatorError):
    """Raised when a navigation starts while another one is unresolved.

    Only raised by orchestrators built with ``reject_concurrent=True``; the
    default behavior is to log and ignore the second request.
    """


class ListenerError(NavigatorError):
    """Wraps the first listener failure of an ``emit(throw_on_error=True)``."""

    def __init__(self, event: str, error: BaseException) -> None:
        super().__init__(f"Listener for {event!r} failed: {error}")
        self.event = event
        self.error = error


class EventTimeoutError(NavigatorError):
    """Raised when ``wait_for`` or ``emit_with_timeout`` expire."""

    def __init__(self, event: str, timeout: float, *, detail: Any = None) -> None:
        message = detail or f"Timed out after {timeout:g}s waiting for {event!r}"
        super().__init__(message)
        self.event = event
        self.timeout = timeout


class ConfigValidationError(NavigatorError):
    """Raised when configuration cannot be validated safely."""
