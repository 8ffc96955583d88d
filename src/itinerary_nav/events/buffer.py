"""Time-window batching of emissions."""

from __future__ import annotations

from dataclasses import dataclass
import time
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..task_manager import TaskManager
    from .bus import EventBus


@dataclass(frozen=True)
class BufferedItem:
    payload: Any
    timestamp: float


class EventBuffer:
    """Collect emissions and deliver them as one ``<event>:batch`` event.

    The first ``emit`` of an event opens a window of ``buffer_time`` seconds;
    everything emitted for that event inside the window is delivered together
    as a list of :class:`BufferedItem` when it closes.
    """

    def __init__(self, bus: EventBus, buffer_time: float, tasks: TaskManager) -> None:
        self._bus = bus
        self._tasks = tasks
        self.buffer_time = buffer_time
        self._pending: dict[str, list[BufferedItem]] = {}

    def _timer_name(self, event: str) -> str:
        return f"buffer:{id(self)}:{event}"

    def emit(self, event: str, payload: Any = None) -> None:
        items = self._pending.get(event)
        if items is None:
            items = self._pending[event] = []
            self._tasks.schedule(
                self.buffer_time,
                lambda: self._flush_event(event),
                name=self._timer_name(event),
            )
        items.append(BufferedItem(payload=payload, timestamp=time.time()))

    def pending(self, event: str | None = None) -> int:
        if event is not None:
            return len(self._pending.get(event, ()))
        return sum(len(items) for items in self._pending.values())

    async def _flush_event(self, event: str) -> None:
        items = self._pending.pop(event, None)
        if items:
            await self._bus.emit(f"{event}:batch", items)

    async def flush(self) -> None:
        """Deliver every open window immediately."""
        for event in list(self._pending):
            self._tasks.cancel_nowait(self._timer_name(event))
            await self._flush_event(event)
