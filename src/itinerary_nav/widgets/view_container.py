"""Textual presentation surface hosting one pane per rendered view element."""

from __future__ import annotations

import logging
from typing import Any

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container, Vertical
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Button, Static

from ..views.presentation import ErrorPanel, PresentationPhase, ViewElement

LOGGER = logging.getLogger(__name__)

_PHASE_CLASSES = {phase: f"phase-{phase.value}" for phase in PresentationPhase}


class ViewPane(Vertical):
    """Wrap the content of one :class:`ViewElement`."""

    DEFAULT_CSS = """
    ViewPane {
        height: 1fr;
        width: 100%;
        padding: 0 1;
    }
    ViewPane.phase-exiting {
        opacity: 60%;
    }
    ViewPane.phase-entering {
        opacity: 85%;
    }
    ViewPane > .error-message {
        color: $error;
        padding: 1 0;
    }
    """

    def __init__(self, element: ViewElement, **kwargs: Any) -> None:
        super().__init__(id=f"view-{element.element_id}", **kwargs)
        self.element = element
        self.add_class(f"view-{element.view_name}")

    @property
    def view_name(self) -> str:
        return self.element.view_name

    def compose(self) -> ComposeResult:
        content = self.element.content
        if isinstance(content, ErrorPanel):
            message = Text()
            message.append(f"{content.title}\n", style="bold")
            message.append(content.message)
            yield Static(message, classes="error-message")
            yield Button("Reload", id="reload", variant="warning")
        elif isinstance(content, Widget):
            yield content
        else:
            yield Static(content if content is not None else "")

    def mirror(self) -> None:
        """Copy phase membership and visibility from the element."""
        for phase, css_class in _PHASE_CLASSES.items():
            self.set_class(phase in self.element.phases, css_class)
        self.display = self.element.visible

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id != "reload":
            return
        event.stop()
        self.post_message(ViewContainer.ReloadRequested(self.view_name))


class ViewContainer(Container):
    """Presentation surface for the orchestrator.

    Elements become :class:`ViewPane` children; each sync re-applies the
    element's phases as ``phase-*`` classes and its visibility as ``display``.
    """

    DEFAULT_CSS = """
    ViewContainer {
        height: 1fr;
        width: 100%;
    }
    """

    class ReloadRequested(Message):
        """Posted when the Reload button of an error panel is pressed."""

        def __init__(self, view_name: str) -> None:
            super().__init__()
            self.view_name = view_name

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._panes: dict[str, ViewPane] = {}
        self._pending: list[ViewPane] = []
        self.variant: str | None = None

    def on_mount(self) -> None:
        pending, self._pending = self._pending, []
        if pending:
            self.mount(*pending)

    def pane_for(self, element: ViewElement) -> ViewPane | None:
        return self._panes.get(element.element_id)

    def panes(self) -> list[ViewPane]:
        return list(self._panes.values())

    def set_variant(self, variant: str | None) -> None:
        if self.variant:
            self.remove_class(f"variant-{self.variant}")
        self.variant = variant
        if variant:
            self.add_class(f"variant-{variant}")

    def attach(self, element: ViewElement) -> None:
        pane = self._panes.get(element.element_id)
        if pane is None:
            pane = ViewPane(element)
            self._panes[element.element_id] = pane
            if self.is_attached:
                self.mount(pane)
            else:
                self._pending.append(pane)
        pane.mirror()

    def sync(self, element: ViewElement) -> None:
        pane = self._panes.get(element.element_id)
        if pane is None:
            LOGGER.debug(
                "view.surface.sync_unknown",
                extra={"event": "view.surface.sync_unknown", "view": element.view_name},
            )
            return
        pane.mirror()

    def detach(self, element: ViewElement) -> None:
        pane = self._panes.pop(element.element_id, None)
        if pane is None:
            return
        if pane in self._pending:
            self._pending.remove(pane)
        elif pane.is_attached:
            pane.remove()
