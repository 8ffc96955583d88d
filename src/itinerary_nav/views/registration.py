"""View registrations, navigation options and the render result type."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
import inspect
from typing import Any

from ..exceptions import InvalidArgumentError
from .presentation import ErrorPanel, ViewElement

Hook = Callable[..., Any]

_CONFIG_FIELDS = (
    "render",
    "title",
    "description",
    "on_enter",
    "on_leave",
    "on_update",
    "cache",
    "required_data",
)


async def call_hook(hook: Hook, *args: Any) -> Any:
    """Call a sync or async callback and return its (awaited) result."""
    result = hook(*args)
    if inspect.isawaitable(result):
        return await result
    return result


@dataclass(frozen=True)
class NavigationOptions:
    """Options of one navigation, handed to render and lifecycle hooks."""

    force: bool = False
    data: Mapping[str, Any] = field(default_factory=dict)
    replace_history: bool = False
    animation: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "force": self.force,
            "data": dict(self.data),
            "replace_history": self.replace_history,
            "animation": self.animation,
        }

    def address_options(self) -> dict[str, Any]:
        """The subset worth restoring from a history entry."""
        return {"data": dict(self.data), "animation": self.animation}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> NavigationOptions:
        raw = raw or {}
        data = raw.get("data")
        animation = raw.get("animation")
        return cls(
            force=bool(raw.get("force", False)),
            data=dict(data) if isinstance(data, Mapping) else {},
            replace_history=bool(raw.get("replace_history", False)),
            animation=animation if isinstance(animation, str) else None,
        )

    def with_changes(self, **changes: Any) -> NavigationOptions:
        return replace(self, **changes)


@dataclass(frozen=True)
class RenderResult:
    """Outcome of one render call: either content or the error it raised."""

    content: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, content: Any) -> RenderResult:
        return cls(content=content)

    @classmethod
    def failure(cls, error: BaseException) -> RenderResult:
        return cls(error=error)

    def content_or_fallback(self, view: str) -> Any:
        if self.error is None:
            return self.content
        return ErrorPanel(message=str(self.error) or type(self.error).__name__, view=view)


@dataclass(eq=False)
class ViewRegistration:
    """One named screen known to the orchestrator."""

    name: str
    render: Hook
    title: str = ""
    description: str = ""
    on_enter: Hook | None = None
    on_leave: Hook | None = None
    on_update: Hook | None = None
    cache: bool = True
    required_data: tuple[str, ...] = ()
    element: ViewElement | None = None
    last_rendered: float | None = None
    preloaded: bool = False
    render_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def __post_init__(self) -> None:
        if not callable(self.render):
            raise InvalidArgumentError(f"View {self.name!r} must have a callable render")
        for hook_name in ("on_enter", "on_leave", "on_update"):
            hook = getattr(self, hook_name)
            if hook is not None and not callable(hook):
                raise InvalidArgumentError(
                    f"View {self.name!r} hook {hook_name} must be callable"
                )
        if not self.title:
            self.title = self.name[:1].upper() + self.name[1:]
        if isinstance(self.required_data, str):
            self.required_data = (self.required_data,)
        self.required_data = tuple(self.required_data or ())

    @classmethod
    def from_config(
        cls, name: str, config: Mapping[str, Any] | Any = None, **overrides: Any
    ) -> ViewRegistration:
        """Build a registration from a mapping, a view object, or keywords.

        View objects contribute their ``render``/``on_enter``/... attributes,
        so a class with a ``render`` method can be registered directly.
        """
        values: dict[str, Any] = {}
        for key in _CONFIG_FIELDS:
            if isinstance(config, Mapping):
                if key in config:
                    values[key] = config[key]
            elif config is not None and hasattr(config, key):
                values[key] = getattr(config, key)
        values.update({k: v for k, v in overrides.items() if k in _CONFIG_FIELDS})
        unknown = sorted(set(overrides) - set(_CONFIG_FIELDS))
        if unknown:
            raise InvalidArgumentError(f"Unknown view options: {', '.join(unknown)}")
        if "render" not in values:
            raise InvalidArgumentError(f"View {name!r} must have a render method")
        if values.get("cache") is None:
            values.pop("cache", None)
        return cls(name=name, **values)

    def missing_data(self, data: Mapping[str, Any] | None) -> list[str]:
        """Required keys absent from ``data`` or mapped to ``None``."""
        data = data or {}
        return [key for key in self.required_data if data.get(key) is None]

    def reusable_element(self, force: bool) -> ViewElement | None:
        """The current element when it may be shown again without rendering."""
        element = self.element
        if element is None or force or element.is_error:
            return None
        if self.cache or self.preloaded:
            return element
        return None
