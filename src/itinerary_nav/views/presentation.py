"""Presentation state of rendered views and the surfaces that display them."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Any, Protocol
from uuid import uuid4

LOGGER = logging.getLogger(__name__)

DEFAULT_LOG_LIMIT = 500


class PresentationPhase(str, Enum):
    """Observable phases of a view element during a transition."""

    ENTERING = "entering"
    ACTIVE = "active"
    EXITING = "exiting"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class ErrorPanel:
    """Fallback content shown in place of a view whose render failed."""

    message: str
    view: str | None = None
    title: str = "View Error"
    action: str = "reload"


@dataclass(eq=False)
class ViewElement:
    """One rendered content instance and its presentation state."""

    view_name: str
    content: Any
    element_id: str = field(default_factory=lambda: uuid4().hex[:12])
    phases: set[PresentationPhase] = field(default_factory=set)
    visible: bool = False
    attached: bool = False
    _releasers: list[Callable[[], Any]] = field(default_factory=list, repr=False)

    @property
    def is_active(self) -> bool:
        return PresentationPhase.ACTIVE in self.phases

    @property
    def is_error(self) -> bool:
        return isinstance(self.content, ErrorPanel)

    def has(self, phase: PresentationPhase) -> bool:
        return phase in self.phases

    def on_release(self, callback: Callable[[], Any]) -> None:
        """Register a callback run when the element's resources are released.

        Surfaces use this to detach event handlers they bound to the element.
        """
        self._releasers.append(callback)

    def release(self) -> None:
        releasers, self._releasers = self._releasers, []
        for callback in releasers:
            try:
                callback()
            except Exception as exc:  # noqa: BLE001 - cleanup must reach every releaser.
                LOGGER.warning(
                    "view.element.release_failed",
                    extra={
                        "event": "view.element.release_failed",
                        "view": self.view_name,
                        "error": str(exc),
                    },
                )


class PresentationSurface(Protocol):
    """Where view elements are displayed.

    The orchestrator owns the phase bookkeeping on each :class:`ViewElement`;
    a surface only mirrors it.
    """

    def set_variant(self, variant: str | None) -> None: ...

    def attach(self, element: ViewElement) -> None: ...

    def sync(self, element: ViewElement) -> None: ...

    def detach(self, element: ViewElement) -> None: ...


class MemorySurface:
    """Headless surface keeping attached elements in order of attachment.

    Every call is appended to ``log`` as ``(action, view_name, phases,
    visible)`` so the order of a transition can be inspected afterwards.
    Only the newest ``log_limit`` entries are kept.
    """

    def __init__(self, log_limit: int = DEFAULT_LOG_LIMIT) -> None:
        self.elements: list[ViewElement] = []
        self.variant: str | None = None
        self.log: deque[tuple[str, str, frozenset[str], bool]] = deque(
            maxlen=max(1, int(log_limit))
        )

    def _record(self, action: str, element: ViewElement) -> None:
        phases = frozenset(phase.value for phase in element.phases)
        self.log.append((action, element.view_name, phases, element.visible))

    def set_variant(self, variant: str | None) -> None:
        self.variant = variant

    def attach(self, element: ViewElement) -> None:
        if element not in self.elements:
            self.elements.append(element)
        self._record("attach", element)

    def sync(self, element: ViewElement) -> None:
        self._record("sync", element)

    def detach(self, element: ViewElement) -> None:
        if element in self.elements:
            self.elements.remove(element)
        self._record("detach", element)

    def active_elements(self) -> list[ViewElement]:
        return [element for element in self.elements if element.is_active]

    def visible_elements(self) -> list[ViewElement]:
        return [element for element in self.elements if element.visible]

    def elements_for(self, view_name: str) -> list[ViewElement]:
        return [element for element in self.elements if element.view_name == view_name]
