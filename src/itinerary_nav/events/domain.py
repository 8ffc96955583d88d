"""Names and payload shapes of the events the view orchestrator emits."""

from __future__ import annotations

from typing import Any, TypedDict

VIEW_REGISTERED = "view-registered"
VIEW_UNREGISTERED = "view-unregistered"
VIEW_CHANGED = "view-changed"
VIEW_ERROR = "view-error"
VIEW_UPDATED = "view-updated"


class ViewRegisteredPayload(TypedDict):
    name: str
    view: Any


class ViewUnregisteredPayload(TypedDict):
    name: str


# "from" is a keyword, hence the functional form.
ViewChangedPayload = TypedDict(
    "ViewChangedPayload",
    {"from": str | None, "to": str, "options": dict[str, Any]},
)


class ViewErrorPayload(TypedDict):
    view: str
    error: BaseException


class ViewUpdatedPayload(TypedDict):
    view: str
    data: dict[str, Any]
