"""View registry and the serialized, animated navigation state machine."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
import logging
import time
from typing import Any

from ..events.bus import DEFAULT_MAX_LISTENERS, EventBus
from ..events.domain import (
    VIEW_CHANGED,
    VIEW_ERROR,
    VIEW_REGISTERED,
    VIEW_UNREGISTERED,
    VIEW_UPDATED,
)
from ..exceptions import (
    InvalidArgumentError,
    MissingRequiredDataError,
    NavigationInProgressError,
    NavigatorError,
    ViewNotFoundError,
)
from ..state import NavigationState
from .address import (
    AddressEntry,
    AddressStateAdapter,
    HistoryMode,
    JsonFileAddressState,
    MemoryAddressState,
)
from .presentation import (
    MemorySurface,
    PresentationPhase,
    PresentationSurface,
    ViewElement,
)
from .registration import (
    NavigationOptions,
    RenderResult,
    ViewRegistration,
    call_hook,
)

LOGGER = logging.getLogger(__name__)

ANIMATION_VARIANTS = ("slide-left", "slide-right", "fade", "scale")
DEFAULT_VARIANT = "slide-left"

TransitionDuration = float | Callable[[str], float]


class ViewOrchestrator(EventBus):
    """Registry of named views plus the navigation state machine.

    The orchestrator is itself an :class:`EventBus`; application code
    subscribes to ``view-changed``, ``view-error`` and friends on it directly.

    Navigations are strictly serialized: a ``navigate_to`` that arrives while
    another is unresolved is rejected, never queued. Each navigation runs:
    leave hook, history update, render (or cache reuse), transition sequence,
    state commit, enter hook, ``view-changed``.
    """

    def __init__(
        self,
        surface: PresentationSurface | None = None,
        *,
        address_state: AddressStateAdapter | None = None,
        default_view: str | None = None,
        animation: bool | str = True,
        settle_delay: float = 0.05,
        transition_duration: TransitionDuration = 0.3,
        history_enabled: bool = True,
        max_history: int = 50,
        max_listeners: int = DEFAULT_MAX_LISTENERS,
        reject_concurrent: bool = False,
    ) -> None:
        super().__init__(max_listeners=max_listeners)
        self.surface: PresentationSurface = (
            surface if surface is not None else MemorySurface()
        )
        self.default_view = default_view
        self._animated = True
        self._variant = DEFAULT_VARIANT
        self.set_animation(animation)
        self.settle_delay = max(0.0, settle_delay)
        self._transition_duration = transition_duration
        self.history_enabled = history_enabled
        self.reject_concurrent = reject_concurrent
        self.state = NavigationState(max_history=max(1, int(max_history)))
        self._views: dict[str, ViewRegistration] = {}
        self._active_element: ViewElement | None = None

        self.address_state: AddressStateAdapter | None = None
        self._address_unsubscribe: Callable[[], None] | None = None
        if history_enabled:
            self.address_state = (
                address_state if address_state is not None else MemoryAddressState()
            )
            self._address_unsubscribe = self.address_state.on_external_change(
                self.handle_address_change
            )

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any],
        surface: PresentationSurface | None = None,
        *,
        address_state: AddressStateAdapter | None = None,
    ) -> ViewOrchestrator:
        """Build an orchestrator from a validated ``load_config()`` result."""
        navigator = config.get("navigator", {})
        animation = config.get("animation", {})
        history = config.get("history", {})
        events = config.get("events", {})

        history_enabled = bool(history.get("enabled", True))
        if history_enabled and address_state is None and history.get("persist"):
            address_state = JsonFileAddressState(history["state_path"])

        return cls(
            surface,
            address_state=address_state,
            default_view=navigator.get("default_view") or None,
            animation=(
                animation.get("variant", DEFAULT_VARIANT)
                if animation.get("enabled", True)
                else False
            ),
            settle_delay=animation.get("settle_ms", 50) / 1000,
            transition_duration=animation.get("duration_ms", 300) / 1000,
            history_enabled=history_enabled,
            max_history=history.get("max_length", 50),
            max_listeners=events.get("max_listeners", DEFAULT_MAX_LISTENERS),
            reject_concurrent=bool(navigator.get("reject_concurrent", False)),
        )

    # -- introspection ------------------------------------------------------

    @property
    def current_view(self) -> str | None:
        return self.state.current_view

    @property
    def previous_view(self) -> str | None:
        return self.state.previous_view

    @property
    def active_element(self) -> ViewElement | None:
        return self._active_element

    @property
    def animation(self) -> str | None:
        """Default transition variant, or None when animation is off."""
        return self._variant if self._animated else None

    def is_navigating(self) -> bool:
        return self.state.in_transition

    def has_view(self, name: str) -> bool:
        return name in self._views

    def get_view(self, name: str) -> ViewRegistration | None:
        return self._views.get(name)

    def view_names(self) -> list[str]:
        return list(self._views)

    def current_view_config(self) -> ViewRegistration | None:
        if self.state.current_view is None:
            return None
        return self._views.get(self.state.current_view)

    def get_history(self) -> list[str]:
        return list(self.state.history)

    def clear_history(self) -> None:
        self.state.clear_history()

    def set_animation(self, animation: bool | str) -> None:
        """Enable/disable transitions, or pick the default variant by name."""
        if isinstance(animation, bool):
            self._animated = animation
            return
        if animation not in ANIMATION_VARIANTS:
            raise InvalidArgumentError(f"Unknown animation variant {animation!r}")
        self._animated = True
        self._variant = animation

    def set_default_view(self, name: str) -> None:
        self.default_view = name

    def transition_duration(self, variant: str) -> float:
        duration = self._transition_duration
        if callable(duration):
            return max(0.0, float(duration(variant)))
        return max(0.0, float(duration))

    # -- registry -----------------------------------------------------------

    def register_view(
        self,
        name: str,
        config: Mapping[str, Any] | Any = None,
        **options: Any,
    ) -> ViewRegistration:
        """Register (or replace) a view.

        ``config`` may be a mapping or an object exposing ``render`` and the
        optional ``on_enter``/``on_leave``/``on_update`` hooks; keyword
        options override it. Re-registering a name replaces the previous
        registration.

        Raises:
            InvalidArgumentError: If the name is empty or render is not callable
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidArgumentError("View name must be a non-empty string")
        registration = ViewRegistration.from_config(name, config, **options)

        previous = self._views.get(name)
        if previous is not None:
            LOGGER.warning(
                "view.register.replaced",
                extra={"event": "view.register.replaced", "view": name},
            )
            if previous.element is not None:
                if previous.element is self._active_element:
                    registration.element = previous.element
                else:
                    self._teardown(previous)

        self._views[name] = registration
        LOGGER.debug(
            "view.registered", extra={"event": "view.registered", "view": name}
        )
        self._notify(VIEW_REGISTERED, {"name": name, "view": registration})
        return registration

    def unregister_view(self, name: str) -> bool:
        """Tear down cached content and drop the registration.

        Callers must navigate away from the active view first.
        """
        registration = self._views.pop(name, None)
        if registration is None:
            return False
        self._teardown(registration)
        LOGGER.debug(
            "view.unregistered", extra={"event": "view.unregistered", "view": name}
        )
        self._notify(VIEW_UNREGISTERED, {"name": name})
        return True

    def clear_cache(self) -> None:
        """Discard the retained content of every view except the current one."""
        for name, registration in self._views.items():
            if name != self.state.current_view:
                self._teardown(registration)

    # -- navigation ---------------------------------------------------------

    async def start(self) -> bool:
        """Show the view recorded in the address state, else the default view."""
        entry = None
        if self.history_enabled and self.address_state is not None:
            entry = self.address_state.read()
        if entry is not None and entry.view in self._views:
            options = NavigationOptions.from_dict(entry.options).with_changes(
                replace_history=True
            )
            return await self._navigate(entry.view, options)
        if self.default_view:
            return await self.navigate_to(self.default_view)
        return False

    async def navigate_to(
        self,
        name: str,
        *,
        force: bool = False,
        data: Mapping[str, Any] | None = None,
        replace_history: bool = False,
        animation: str | None = None,
    ) -> bool:
        """Make ``name`` the active view.

        Args:
            name: Registered view name
            force: Re-render even when cached, and re-enter the current view
            data: Navigation data checked against the view's required keys
            replace_history: Replace the current address entry instead of pushing
            animation: Transition variant for this navigation only

        Returns:
            True when the navigation completed; False when it was ignored
            (another navigation in progress), a no-op, or vetoed by ``on_leave``.

        Raises:
            ViewNotFoundError: ``name`` is not registered
            MissingRequiredDataError: ``data`` lacks a required key
            NavigationInProgressError: Only with ``reject_concurrent=True``
        """
        options = NavigationOptions(
            force=force,
            data=dict(data or {}),
            replace_history=replace_history,
            animation=animation,
        )
        return await self._navigate(name, options)

    async def _navigate(self, name: str, options: NavigationOptions) -> bool:
        if self.state.in_transition:
            LOGGER.warning(
                "view.navigate.ignored",
                extra={
                    "event": "view.navigate.ignored",
                    "view": name,
                    "current_view": self.state.current_view,
                },
            )
            if self.reject_concurrent:
                raise NavigationInProgressError(
                    f"Navigation in progress, cannot navigate to {name!r}"
                )
            return False

        registration = self._views.get(name)
        if registration is None:
            error = ViewNotFoundError(name)
            await self._report_error(name, error)
            raise error

        if name == self.state.current_view and not options.force:
            return False

        # No suspension point since the in_transition check above.
        self.state.try_begin()
        try:
            missing = registration.missing_data(options.data)
            if missing:
                raise MissingRequiredDataError(name, missing)

            if not await self._confirm_leave(options):
                LOGGER.info(
                    "view.navigate.vetoed",
                    extra={
                        "event": "view.navigate.vetoed",
                        "view": name,
                        "current_view": self.state.current_view,
                    },
                )
                return False

            self._record_history(name, options)
            element = await self._resolve_element(registration, options)
            await self._run_transition(element, options)

            self.state.commit(name)
            await self._invoke_hook(registration, "on_enter", options)
            await self.emit(
                VIEW_CHANGED,
                {
                    "from": self.state.previous_view,
                    "to": name,
                    "options": options.to_dict(),
                },
            )
            LOGGER.info(
                "view.navigate.completed",
                extra={
                    "event": "view.navigate.completed",
                    "from_view": self.state.previous_view,
                    "to_view": name,
                },
            )
            return True
        except Exception as exc:
            LOGGER.error(
                "view.navigate.failed",
                extra={
                    "event": "view.navigate.failed",
                    "view": name,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            await self._report_error(name, exc)
            raise
        finally:
            self.state.finish()

    async def go_back(self, **options: Any) -> bool:
        """Navigate to the second-most-recent view, else the default view."""
        history = self.state.history
        if len(history) > 1:
            target: str | None = history[1]
        elif self.state.previous_view:
            target = self.state.previous_view
        else:
            return await self._navigate_default(**options)
        options.setdefault("animation", "slide-right")
        return await self.navigate_to(target, **options)

    async def _navigate_default(self, **options: Any) -> bool:
        if not self.default_view:
            return False
        return await self.navigate_to(self.default_view, **options)

    async def refresh(self, **options: Any) -> bool:
        """Re-render and re-enter the current view."""
        if self.state.current_view is None:
            return False
        options["force"] = True
        options.setdefault("animation", "fade")
        return await self.navigate_to(self.state.current_view, **options)

    async def update_view(self, data: Mapping[str, Any] | None = None) -> bool:
        """Run the current view's ``on_update`` hook without navigating."""
        name = self.state.current_view
        registration = self._views.get(name) if name else None
        if name is None or registration is None or registration.on_update is None:
            return False
        payload = dict(data or {})
        try:
            await call_hook(registration.on_update, payload)
        except Exception as exc:  # noqa: BLE001 - reported as view-error.
            LOGGER.error(
                "view.update.failed",
                extra={"event": "view.update.failed", "view": name, "error": str(exc)},
            )
            await self._report_error(name, exc)
            return False
        await self.emit(VIEW_UPDATED, {"view": name, "data": payload})
        return True

    async def preload_view(self, name: str, **options: Any) -> ViewElement | None:
        """Render and keep a view's content without showing it."""
        registration = self._views.get(name)
        if registration is None:
            LOGGER.debug(
                "view.preload.unknown", extra={"event": "view.preload.unknown", "view": name}
            )
            return None
        existing = registration.reusable_element(force=False)
        if existing is not None:
            return existing

        navigation_options = NavigationOptions.from_dict(options)
        result = await self._render(registration, navigation_options)
        if not result.ok:
            LOGGER.warning(
                "view.preload.failed",
                extra={
                    "event": "view.preload.failed",
                    "view": name,
                    "error": str(result.error),
                },
            )
            return None
        element = self._adopt(registration, result.content)
        registration.preloaded = True
        return element

    def handle_address_change(self, entry: AddressEntry | None) -> None:
        """Restore the view of an externally selected history entry."""
        view = entry.view if entry is not None else self.default_view
        if not view or view not in self._views or view == self.state.current_view:
            return
        options = NavigationOptions.from_dict(
            entry.options if entry is not None else None
        ).with_changes(replace_history=True)
        self._tasks.spawn(self._restore(view, options))

    async def _restore(self, view: str, options: NavigationOptions) -> None:
        try:
            await self._navigate(view, options)
        except NavigatorError as exc:
            LOGGER.warning(
                "view.restore.failed",
                extra={"event": "view.restore.failed", "view": view, "error": str(exc)},
            )

    async def wait_until_settled(self) -> None:
        """Await deferred cleanups, restores and scheduled notifications."""
        await self._tasks.await_all()

    async def dispose(self) -> None:
        if self._address_unsubscribe is not None:
            self._address_unsubscribe()
            self._address_unsubscribe = None
        await self._tasks.cancel_all()
        for registration in self._views.values():
            self._teardown(registration)
        self._views.clear()
        self._active_element = None
        self.state.reset()
        await super().dispose()
        LOGGER.info("view.orchestrator.disposed", extra={"event": "view.orchestrator.disposed"})

    # -- navigation steps ---------------------------------------------------

    async def _confirm_leave(self, options: NavigationOptions) -> bool:
        current = self.current_view_config()
        if current is None or current.on_leave is None:
            return True
        try:
            result = await call_hook(current.on_leave, options)
        except Exception as exc:  # noqa: BLE001 - a failing hook does not veto.
            self._log_hook_failure(current.name, "on_leave", exc)
            return True
        return result is not False

    async def _invoke_hook(
        self, registration: ViewRegistration, hook_name: str, *args: Any
    ) -> None:
        hook = getattr(registration, hook_name)
        if hook is None:
            return
        try:
            await call_hook(hook, *args)
        except Exception as exc:  # noqa: BLE001 - enter hooks are non-critical.
            self._log_hook_failure(registration.name, hook_name, exc)

    def _log_hook_failure(self, view: str, hook_name: str, exc: Exception) -> None:
        LOGGER.warning(
            "view.hook.failed",
            extra={
                "event": "view.hook.failed",
                "view": view,
                "hook": hook_name,
                "error_type": type(exc).__name__,
                "error": str(exc),
            },
        )

    def _record_history(self, name: str, options: NavigationOptions) -> None:
        self.state.record(name)
        if not self.history_enabled or self.address_state is None:
            return
        mode = HistoryMode.REPLACE if options.replace_history else HistoryMode.PUSH
        entry = AddressEntry(view=name, options=options.address_options())
        try:
            self.address_state.write(entry, mode)
        except Exception as exc:  # noqa: BLE001 - history mirroring is best effort.
            LOGGER.error(
                "view.history.write_failed",
                extra={"event": "view.history.write_failed", "view": name, "error": str(exc)},
            )
            return
        self.state.address_token = entry.token

    async def _resolve_element(
        self, registration: ViewRegistration, options: NavigationOptions
    ) -> ViewElement:
        element = registration.reusable_element(options.force)
        if element is not None:
            registration.preloaded = False
            return element

        result = await self._render(registration, options)
        if not result.ok:
            LOGGER.error(
                "view.render.failed",
                extra={
                    "event": "view.render.failed",
                    "view": registration.name,
                    "error_type": type(result.error).__name__,
                    "error": str(result.error),
                },
            )
            await self._report_error(registration.name, result.error)
        return self._adopt(registration, result.content_or_fallback(registration.name))

    async def _render(
        self, registration: ViewRegistration, options: NavigationOptions
    ) -> RenderResult:
        async with registration.render_lock:
            try:
                content = await call_hook(registration.render, options)
            except Exception as exc:  # noqa: BLE001 - converted to a fallback panel.
                return RenderResult.failure(exc)
        return RenderResult.success(content)

    def _adopt(self, registration: ViewRegistration, content: Any) -> ViewElement:
        """Wrap fresh content in an element and make it the view's handle."""
        element = ViewElement(view_name=registration.name, content=content)
        previous = registration.element
        if previous is not None and previous is not self._active_element:
            self._dispose_element(previous)
        registration.element = element
        registration.preloaded = False
        registration.last_rendered = time.time()
        return element

    async def _run_transition(
        self, element: ViewElement, options: NavigationOptions
    ) -> None:
        """Swap the active element for ``element``.

        The outgoing element starts exiting, the incoming one is attached in
        the entering phase, then it becomes active and the outgoing one turns
        inactive in the same step, so exactly one element is ever active.
        """
        variant = options.animation or self._variant
        animated = self._animated
        outgoing = self._active_element
        if outgoing is element:
            outgoing = None
        self._tasks.cancel_nowait(self._cleanup_key(element))

        if animated:
            self.surface.set_variant(variant)

        if outgoing is not None and animated:
            outgoing.phases.add(PresentationPhase.EXITING)
            self.surface.sync(outgoing)
            await asyncio.sleep(self.settle_delay)

        element.phases.difference_update(
            {PresentationPhase.EXITING, PresentationPhase.INACTIVE}
        )
        element.phases.add(PresentationPhase.ENTERING)
        element.visible = True
        if element.attached:
            self.surface.sync(element)
        else:
            self.surface.attach(element)
            element.attached = True

        if animated:
            await asyncio.sleep(self.settle_delay)

        if outgoing is not None:
            outgoing.phases.discard(PresentationPhase.ACTIVE)
            outgoing.phases.add(PresentationPhase.INACTIVE)
        element.phases.add(PresentationPhase.ACTIVE)
        self._active_element = element
        self.surface.sync(element)
        if outgoing is not None:
            self.surface.sync(outgoing)

        if not animated:
            element.phases.discard(PresentationPhase.ENTERING)
            self.surface.sync(element)
            if outgoing is not None:
                self._retire(outgoing)
            return

        duration = self.transition_duration(variant)
        if outgoing is not None:
            retiring = outgoing
            self._tasks.schedule(
                duration,
                lambda: self._retire(retiring),
                name=self._cleanup_key(retiring),
            )
        self._tasks.schedule(
            duration,
            lambda: self._finish_entering(element),
            name=f"entering:{element.element_id}",
        )

    def _finish_entering(self, element: ViewElement) -> None:
        if PresentationPhase.ENTERING in element.phases:
            element.phases.discard(PresentationPhase.ENTERING)
            if element.attached:
                self.surface.sync(element)

    @staticmethod
    def _cleanup_key(element: ViewElement) -> str:
        return f"cleanup:{element.element_id}"

    def _retire(self, element: ViewElement) -> None:
        """Release an element that finished its exit transition."""
        if element is self._active_element:
            return
        try:
            element.release()
            element.phases.clear()
            registration = self._views.get(element.view_name)
            if (
                registration is not None
                and registration.element is element
                and registration.cache
                and not element.is_error
            ):
                element.visible = False
                self.surface.sync(element)
            else:
                self._dispose_element(element)
        except Exception as exc:  # noqa: BLE001 - cleanup runs detached from navigation.
            LOGGER.error(
                "view.cleanup.failed",
                extra={
                    "event": "view.cleanup.failed",
                    "view": element.view_name,
                    "error": str(exc),
                },
            )

    def _dispose_element(self, element: ViewElement) -> None:
        self._tasks.cancel_nowait(self._cleanup_key(element))
        element.release()
        element.phases.clear()
        element.visible = False
        if element.attached:
            self.surface.detach(element)
            element.attached = False
        if element is self._active_element:
            self._active_element = None
        registration = self._views.get(element.view_name)
        if registration is not None and registration.element is element:
            registration.element = None
            registration.last_rendered = None
            registration.preloaded = False

    def _teardown(self, registration: ViewRegistration) -> None:
        element = registration.element
        if element is not None:
            self._dispose_element(element)
        registration.element = None
        registration.last_rendered = None
        registration.preloaded = False

    # -- event helpers ------------------------------------------------------

    async def _report_error(self, view: str, error: BaseException) -> None:
        await self.emit(VIEW_ERROR, {"view": view, "error": error})

    def _notify(self, event: str, payload: Any) -> None:
        """Emit from synchronous code; delivery happens on the running loop."""
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            LOGGER.debug(
                "view.notify.skipped",
                extra={"event": "view.notify.skipped", "event_name": event},
            )
            return
        self._tasks.spawn(self.emit(event, payload))
