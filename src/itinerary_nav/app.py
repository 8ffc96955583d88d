"""Textual application driving a ViewOrchestrator."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header

from .config import load_config
from .events.bus import EventEnvelope
from .events.domain import VIEW_CHANGED, VIEW_ERROR
from .exceptions import NavigatorError
from .views.orchestrator import ViewOrchestrator
from .widgets.view_container import ViewContainer

LOGGER = logging.getLogger(__name__)

MAX_VIEW_SHORTCUTS = 9


class NavigatorApp(App[None]):
    """Terminal shell that shows one registered view at a time."""

    CSS = """
    Screen {
        layout: vertical;
        background: $background;
    }

    #views {
        height: 1fr;
    }
    """

    BINDINGS = [
        *(
            Binding(
                f"alt+{index + 1}",
                f"show_view({index})",
                f"View {index + 1}",
                show=index < 3,
            )
            for index in range(MAX_VIEW_SHORTCUTS)
        ),
        Binding("backspace", "back", "Back"),
        Binding("ctrl+r", "refresh_view", "Refresh"),
    ]

    TITLE = "itinerary-nav"

    def __init__(
        self,
        views: Mapping[str, Any] | None = None,
        *,
        config: dict[str, dict[str, Any]] | None = None,
        orchestrator: ViewOrchestrator | None = None,
    ) -> None:
        super().__init__()
        self.config = config if config is not None else load_config()
        self.container = ViewContainer(id="views")
        self.orchestrator = (
            orchestrator
            if orchestrator is not None
            else ViewOrchestrator.from_config(self.config, self.container)
        )
        for name, view in (views or {}).items():
            self.orchestrator.register_view(name, view)
        self.orchestrator.on(VIEW_CHANGED, self._on_view_changed)
        self.orchestrator.on(VIEW_ERROR, self._on_view_error)

    def compose(self) -> ComposeResult:
        yield Header()
        yield self.container
        yield Footer()

    async def on_mount(self) -> None:
        names = self.orchestrator.view_names()
        if not names:
            self.sub_title = "No views registered."
            return
        default_view = self.orchestrator.default_view
        if not default_view or not self.orchestrator.has_view(default_view):
            self.orchestrator.set_default_view(names[0])
        if not self.config.get("navigator", {}).get("auto_navigate", True):
            self.sub_title = "Press alt+1 to open the first view."
            return
        await self._guarded(self.orchestrator.start())

    async def on_unmount(self) -> None:
        await self.orchestrator.dispose()

    async def _guarded(self, navigation: Any) -> bool:
        try:
            return bool(await navigation)
        except NavigatorError as exc:
            LOGGER.warning(
                "app.navigation.failed",
                extra={"event": "app.navigation.failed", "error": str(exc)},
            )
            self.sub_title = str(exc)
            return False

    def _on_view_changed(self, envelope: EventEnvelope) -> None:
        payload = envelope.payload
        registration = self.orchestrator.get_view(payload["to"])
        if registration is None:
            self.sub_title = payload["to"]
        elif registration.description:
            self.sub_title = f"{registration.title} - {registration.description}"
        else:
            self.sub_title = registration.title

    def _on_view_error(self, envelope: EventEnvelope) -> None:
        payload = envelope.payload
        LOGGER.info(
            "app.view.error",
            extra={
                "event": "app.view.error",
                "view": payload.get("view"),
                "error": str(payload.get("error")),
            },
        )

    async def action_show_view(self, index: int) -> None:
        names = self.orchestrator.view_names()
        if not 0 <= index < len(names):
            return
        await self._guarded(self.orchestrator.navigate_to(names[index]))

    async def action_back(self) -> None:
        await self._guarded(self.orchestrator.go_back())

    async def action_refresh_view(self) -> None:
        await self._guarded(self.orchestrator.refresh())

    async def on_view_container_reload_requested(
        self, message: ViewContainer.ReloadRequested
    ) -> None:
        message.stop()
        if message.view_name == self.orchestrator.current_view:
            await self._guarded(self.orchestrator.refresh())
        else:
            await self._guarded(
                self.orchestrator.navigate_to(message.view_name, force=True)
            )
