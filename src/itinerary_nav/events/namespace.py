"""Prefix-scoped view over an :class:`EventBus`."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .bus import EventBus, EventEnvelope, Listener


class NamespacedEmitter:
    """Thin composition over a bus where event names become ``prefix:name``.

    Subscriptions made here live in the parent bus and are indistinguishable
    from direct ones registered under the prefixed name.
    """

    def __init__(self, bus: EventBus, prefix: str) -> None:
        self._bus = bus
        self.prefix = prefix

    def qualify(self, event: str) -> str:
        return f"{self.prefix}:{event}"

    def on(self, event: str, callback: Listener, **options: Any) -> str:
        return self._bus.on(self.qualify(event), callback, **options)

    def once(self, event: str, callback: Listener, **options: Any) -> str:
        return self._bus.once(self.qualify(event), callback, **options)

    def off(self, event: str, callback_or_id: Listener | str) -> bool:
        return self._bus.off(self.qualify(event), callback_or_id)

    async def emit(
        self, event: str, payload: Any = None, *, throw_on_error: bool = False
    ) -> EventEnvelope:
        return await self._bus.emit(
            self.qualify(event), payload, throw_on_error=throw_on_error
        )

    async def wait_for(self, event: str, timeout: float | None = 10.0) -> Any:
        return await self._bus.wait_for(self.qualify(event), timeout)

    async def emit_with_timeout(
        self, event: str, payload: Any = None, timeout: float = 5.0
    ) -> EventEnvelope:
        return await self._bus.emit_with_timeout(self.qualify(event), payload, timeout)

    def listener_count(self, event: str) -> int:
        return self._bus.listener_count(self.qualify(event))

    def event_names(self) -> list[str]:
        """Event names under this prefix, without the prefix."""
        marker = f"{self.prefix}:"
        return [
            name[len(marker) :]
            for name in self._bus.event_names()
            if name.startswith(marker)
        ]

    def namespace(self, prefix: str) -> NamespacedEmitter:
        return NamespacedEmitter(self._bus, self.qualify(prefix))

    def remove_all_listeners(self) -> None:
        for name in self.event_names():
            self._bus.remove_all_listeners(self.qualify(name))
