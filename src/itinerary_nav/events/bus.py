"""Event bus for decoupled component communication.

Usage:
    bus = EventBus()

    # Subscribe to events
    async def on_view_changed(event):
        print(f"Now showing: {event.payload['to']}")

    bus.on("view-changed", on_view_changed, priority=10)

    # Publish events
    envelope = await bus.emit("view-changed", {"from": "a", "to": "b"})
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
import inspect
import logging
import time
import types
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from ..exceptions import EventTimeoutError, InvalidArgumentError, ListenerError
from ..task_manager import TaskManager

if TYPE_CHECKING:
    from .buffer import EventBuffer
    from .namespace import NamespacedEmitter

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_LISTENERS = 100

Listener = Callable[["EventEnvelope"], Any]


@dataclass
class EventEnvelope:
    """Event data shared by every listener of one ``emit`` call."""

    name: str
    payload: Any = None
    timestamp: float = field(default_factory=time.time)
    propagation_stopped: bool = False
    default_prevented: bool = False

    def stop_propagation(self) -> None:
        """Skip every listener that has not been invoked yet."""
        self.propagation_stopped = True

    def prevent_default(self) -> None:
        self.default_prevented = True


@dataclass(eq=False)
class Subscription:
    """One registered listener plus its delivery metadata."""

    id: str
    event: str | None
    callback: Listener
    priority: int = 0
    context: Any = None
    once: bool = False
    added_at: float = field(default_factory=time.time)
    active: bool = True

    @property
    def wildcard(self) -> bool:
        return self.event is None

    def matches(self, ref: str | Listener) -> bool:
        if isinstance(ref, str):
            return self.id == ref
        return self.callback == ref

    def invoke(self, envelope: EventEnvelope) -> Any:
        # Bound methods and callable objects already carry their own receiver.
        if self.context is not None and inspect.isfunction(self.callback):
            return types.MethodType(self.callback, self.context)(envelope)
        return self.callback(envelope)


class EventBus:
    """Per-instance publish/subscribe registry.

    Listeners for one event run in descending priority order (registration
    order breaks ties), followed by wildcard listeners in registration order.
    Listeners may be plain callables or coroutine functions; awaitable results
    are collected and awaited before ``emit`` returns.
    """

    def __init__(self, *, max_listeners: int = DEFAULT_MAX_LISTENERS) -> None:
        self._listeners: dict[str, list[Subscription]] = {}
        self._wildcard: list[Subscription] = []
        self._max_listeners = max(1, int(max_listeners))
        self._tasks = TaskManager()

    @property
    def max_listeners(self) -> int:
        return self._max_listeners

    def set_max_listeners(self, limit: int) -> None:
        """Set the per-event listener ceiling used for leak warnings."""
        self._max_listeners = max(1, int(limit))
        LOGGER.debug(
            "events.max_listeners",
            extra={"event": "events.max_listeners", "limit": self._max_listeners},
        )

    # -- subscription -------------------------------------------------------

    def _subscribe(
        self,
        event: str,
        callback: Listener,
        *,
        priority: int,
        context: Any,
        once: bool,
    ) -> str:
        if not callable(callback):
            raise InvalidArgumentError("Callback must be callable")
        if not isinstance(event, str) or not event:
            raise InvalidArgumentError("Event name must be a non-empty string")

        subscriptions = self._listeners.setdefault(event, [])
        if len(subscriptions) >= self._max_listeners:
            LOGGER.warning(
                "events.max_listeners_exceeded",
                extra={
                    "event": "events.max_listeners_exceeded",
                    "event_name": event,
                    "limit": self._max_listeners,
                },
            )

        subscription = Subscription(
            id=uuid4().hex,
            event=event,
            callback=callback,
            priority=int(priority),
            context=context,
            once=once,
        )
        subscriptions.append(subscription)
        # list.sort is stable, so equal priorities keep registration order.
        subscriptions.sort(key=lambda item: -item.priority)
        LOGGER.debug(
            "events.subscribed",
            extra={
                "event": "events.subscribed",
                "event_name": event,
                "subscription_id": subscription.id,
                "once": once,
            },
        )
        return subscription.id

    def on(
        self,
        event: str,
        callback: Listener,
        *,
        priority: int = 0,
        context: Any = None,
    ) -> str:
        """Register a durable listener and return its subscription id.

        Args:
            event: Event name to listen for (e.g. ``"view-changed"``)
            callback: Called with the :class:`EventEnvelope`; may be async
            priority: Higher values run first
            context: Object the callback is bound to, method-style
        """
        return self._subscribe(
            event, callback, priority=priority, context=context, once=False
        )

    def once(
        self,
        event: str,
        callback: Listener,
        *,
        priority: int = 0,
        context: Any = None,
    ) -> str:
        """Register a listener that is removed when it is first delivered."""
        return self._subscribe(
            event, callback, priority=priority, context=context, once=True
        )

    def on_any(self, callback: Listener, *, context: Any = None) -> str:
        """Register a wildcard listener that receives every event.

        Wildcard listeners run after the named ones, in registration order.
        """
        if not callable(callback):
            raise InvalidArgumentError("Callback must be callable")
        subscription = Subscription(
            id=uuid4().hex,
            event=None,
            callback=callback,
            context=context,
        )
        self._wildcard.append(subscription)
        LOGGER.debug(
            "events.subscribed",
            extra={
                "event": "events.subscribed",
                "event_name": "*",
                "subscription_id": subscription.id,
            },
        )
        return subscription.id

    def off(
        self,
        event_or_id: str,
        callback_or_id: Listener | str | None = None,
    ) -> bool:
        """Remove a listener by id or by callback.

        ``off(event, callback_or_id)`` searches one event; ``off(subscription_id)``
        searches every event. Returns False when nothing matched.
        """
        if callback_or_id is None:
            return any(
                self._remove_from(event, event_or_id)
                for event in list(self._listeners)
            )
        return self._remove_from(event_or_id, callback_or_id)

    def off_any(self, callback_or_id: Listener | str) -> bool:
        """Remove a wildcard listener by id or by callback."""
        for index, subscription in enumerate(self._wildcard):
            if subscription.matches(callback_or_id):
                subscription.active = False
                del self._wildcard[index]
                return True
        return False

    def _remove_from(self, event: str, ref: Listener | str) -> bool:
        subscriptions = self._listeners.get(event)
        if not subscriptions:
            return False
        for index, subscription in enumerate(subscriptions):
            if subscription.matches(ref):
                subscription.active = False
                del subscriptions[index]
                break
        else:
            return False
        if not subscriptions:
            del self._listeners[event]
        LOGGER.debug(
            "events.unsubscribed",
            extra={"event": "events.unsubscribed", "event_name": event},
        )
        return True

    def _discard(self, subscription: Subscription) -> None:
        if subscription.wildcard:
            self.off_any(subscription.id)
        elif subscription.event is not None:
            self._remove_from(subscription.event, subscription.id)

    def remove_all_listeners(self, event: str | None = None) -> None:
        """Drop the listeners of ``event``, or of every event and wildcard."""
        if event is not None:
            for subscription in self._listeners.pop(event, []):
                subscription.active = False
            return
        for subscriptions in self._listeners.values():
            for subscription in subscriptions:
                subscription.active = False
        for subscription in self._wildcard:
            subscription.active = False
        self._listeners.clear()
        self._wildcard.clear()

    # -- introspection ------------------------------------------------------

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def event_names(self) -> list[str]:
        return list(self._listeners)

    def listener_info(self, event: str | None = None) -> dict[str, Any]:
        """Summarize registered listeners for debugging."""

        def _summary(name: str) -> dict[str, int]:
            subscriptions = self._listeners.get(name, [])
            return {
                "listeners": len(subscriptions),
                "once_listeners": sum(1 for s in subscriptions if s.once),
            }

        if event is not None:
            return {"event": event, **_summary(event)}
        return {
            "total_events": len(self._listeners),
            "wildcard_listeners": len(self._wildcard),
            "events": {name: _summary(name) for name in self._listeners},
        }

    # -- delivery -----------------------------------------------------------

    async def emit(
        self,
        event: str,
        payload: Any = None,
        *,
        throw_on_error: bool = False,
    ) -> EventEnvelope:
        """Deliver ``payload`` to every listener of ``event``.

        Args:
            event: Event name
            payload: Opaque event data
            throw_on_error: Stop at the first listener failure and raise
                :class:`ListenerError` once already-started listeners settle

        Returns:
            The envelope shared by all listeners of this call.
        """
        envelope = EventEnvelope(name=event, payload=payload)
        candidates = list(self._listeners.get(event, ())) + list(self._wildcard)
        pending: list[asyncio.Future[Any]] = []
        failure: Exception | None = None

        LOGGER.debug(
            "events.emit",
            extra={
                "event": "events.emit",
                "event_name": event,
                "listeners": len(candidates),
            },
        )

        for subscription in candidates:
            if envelope.propagation_stopped:
                break
            if throw_on_error and failure is not None:
                break
            if not subscription.active:
                continue
            if subscription.once:
                self._discard(subscription)
            try:
                result = subscription.invoke(envelope)
            except Exception as exc:  # noqa: BLE001 - listeners are isolated.
                self._report_failure(event, subscription, exc)
                failure = failure or exc
                continue
            if inspect.isawaitable(result):
                pending.append(asyncio.ensure_future(result))

        if pending:
            outcomes = await asyncio.gather(*pending, return_exceptions=True)
            for outcome in outcomes:
                if isinstance(outcome, Exception):
                    self._report_failure(event, None, outcome)
                    failure = failure or outcome

        if throw_on_error and failure is not None:
            raise ListenerError(event, failure) from failure
        return envelope

    def _report_failure(
        self,
        event: str,
        subscription: Subscription | None,
        exc: Exception,
    ) -> None:
        LOGGER.error(
            "events.listener.failed",
            extra={
                "event": "events.listener.failed",
                "event_name": event,
                "subscription_id": subscription.id if subscription else None,
                "wildcard": bool(subscription and subscription.wildcard),
                "error_type": type(exc).__name__,
                "error": str(exc),
            },
        )

    async def wait_for(self, event: str, timeout: float | None = 10.0) -> Any:
        """Return the payload of the next ``event`` emission.

        Raises:
            EventTimeoutError: If nothing is emitted within ``timeout`` seconds
        """
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

        def _resolve(envelope: EventEnvelope) -> None:
            if not future.done():
                future.set_result(envelope.payload)

        subscription_id = self.once(event, _resolve)
        try:
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError as exc:
            raise EventTimeoutError(event, timeout or 0.0) from exc
        finally:
            self.off(event, subscription_id)

    async def emit_with_timeout(
        self,
        event: str,
        payload: Any = None,
        timeout: float = 5.0,
    ) -> EventEnvelope:
        """Emit, giving up the wait after ``timeout`` seconds.

        Listeners that were already invoked keep running; only the caller
        stops waiting for them.
        """
        delivery = self._tasks.spawn(self.emit(event, payload))
        try:
            return await asyncio.wait_for(asyncio.shield(delivery), timeout)
        except asyncio.TimeoutError as exc:
            raise EventTimeoutError(
                event,
                timeout,
                detail=f"Event {event!r} timed out after {timeout:g}s",
            ) from exc

    # -- composition --------------------------------------------------------

    def namespace(self, prefix: str) -> NamespacedEmitter:
        """Return a view of this bus that prefixes every event name."""
        from .namespace import NamespacedEmitter

        return NamespacedEmitter(self, prefix)

    def create_buffer(self, buffer_time: float = 0.1) -> EventBuffer:
        """Return a buffer that batches emissions into ``<event>:batch`` events."""
        from .buffer import EventBuffer

        return EventBuffer(self, buffer_time, self._tasks)

    def pipe(
        self,
        source: EventBus,
        events: str | Iterable[str],
        *,
        prefix: str = "",
        transform: Callable[[EventEnvelope], Any] | None = None,
    ) -> list[str]:
        """Re-emit ``events`` from ``source`` on this bus.

        Returns the subscription ids registered on ``source``.
        """
        names = [events] if isinstance(events, str) else list(events)
        subscription_ids: list[str] = []
        for name in names:
            target = f"{prefix}:{name}" if prefix else name

            def _forward(envelope: EventEnvelope, _target: str = target) -> Any:
                payload = transform(envelope) if transform else envelope.payload
                return self.emit(_target, payload)

            subscription_ids.append(source.on(name, _forward))
        return subscription_ids

    async def dispose(self) -> None:
        """Remove every listener and cancel background deliveries."""
        self.remove_all_listeners()
        await self._tasks.cancel_all()
        LOGGER.debug("events.disposed", extra={"event": "events.disposed"})
