"""Navigation state record and its single-writer transition guard."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class NavigationPhase(str, Enum):
    """Finite state machine for the orchestrator's navigation lifecycle."""

    IDLE = "IDLE"
    TRANSITIONING = "TRANSITIONING"


@dataclass
class NavigationState:
    """Mutable navigation record owned by one orchestrator.

    ``history`` is most-recent-first, deduplicated and capped at
    ``max_history`` entries.
    """

    max_history: int = 50
    current_view: str | None = None
    previous_view: str | None = None
    phase: NavigationPhase = NavigationPhase.IDLE
    history: list[str] = field(default_factory=list)
    address_token: str | None = None

    @property
    def in_transition(self) -> bool:
        return self.phase is NavigationPhase.TRANSITIONING

    def try_begin(self) -> bool:
        """Enter TRANSITIONING; False when a navigation already holds the guard.

        The check and the write happen without a suspension point in between,
        which is what makes the flag safe on a single event loop.
        """
        if self.phase is NavigationPhase.TRANSITIONING:
            return False
        self.phase = NavigationPhase.TRANSITIONING
        return True

    def finish(self) -> None:
        self.phase = NavigationPhase.IDLE

    def commit(self, view: str) -> None:
        """Make ``view`` current; the only place current_view changes."""
        self.previous_view = self.current_view
        self.current_view = view

    def record(self, view: str) -> None:
        """Move ``view`` to the front of the history stack."""
        self.history = [v for v in self.history if v != view]
        self.history.insert(0, view)
        if len(self.history) > self.max_history:
            del self.history[self.max_history :]

    def clear_history(self) -> None:
        self.history = [self.current_view] if self.current_view else []

    def reset(self) -> None:
        self.current_view = None
        self.previous_view = None
        self.phase = NavigationPhase.IDLE
        self.history = []
        self.address_token = None
