"""Top-level package for itinerary-nav."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .events import EventBus, EventEnvelope
from .exceptions import (
    ConfigValidationError,
    EventTimeoutError,
    InvalidArgumentError,
    ListenerError,
    MissingRequiredDataError,
    NavigationInProgressError,
    NavigatorError,
    ViewNotFoundError,
)
from .views import NavigationOptions, ViewOrchestrator, ViewRegistration

if TYPE_CHECKING:
    from .app import NavigatorApp
    from .config import ensure_config_dir, load_config

__all__ = [
    "ConfigValidationError",
    "EventBus",
    "EventEnvelope",
    "EventTimeoutError",
    "InvalidArgumentError",
    "ListenerError",
    "MissingRequiredDataError",
    "NavigationInProgressError",
    "NavigationOptions",
    "NavigatorApp",
    "NavigatorError",
    "ViewNotFoundError",
    "ViewOrchestrator",
    "ViewRegistration",
    "ensure_config_dir",
    "load_config",
]


def __getattr__(name: str) -> Any:
    """Lazily import symbols to keep the UI and config stack optional at import time."""
    if name in {"ensure_config_dir", "load_config"}:
        from .config import ensure_config_dir, load_config

        return {"ensure_config_dir": ensure_config_dir, "load_config": load_config}[name]
    if name == "NavigatorApp":
        from .app import NavigatorApp

        return NavigatorApp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
