"""Address/history adapters mirroring the active view outside the orchestrator."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from enum import Enum
import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol
from uuid import uuid4

LOGGER = logging.getLogger(__name__)

AddressListener = Callable[["AddressEntry | None"], Any]


class HistoryMode(str, Enum):
    PUSH = "push"
    REPLACE = "replace"


@dataclass(frozen=True)
class AddressEntry:
    """One history entry correlating a navigation with the outside world."""

    view: str
    options: dict[str, Any] = field(default_factory=dict)
    token: str = field(default_factory=lambda: uuid4().hex)

    @property
    def fragment(self) -> str:
        return f"#{self.view}"

    @classmethod
    def from_dict(cls, raw: Any) -> AddressEntry | None:
        """Decode a persisted entry; None when it is not a usable entry."""
        if not isinstance(raw, dict):
            return None
        view = raw.get("view")
        if not isinstance(view, str) or not view:
            return None
        options = raw.get("options")
        token = raw.get("token")
        return cls(
            view=view,
            options=options if isinstance(options, dict) else {},
            token=token if isinstance(token, str) and token else uuid4().hex,
        )


class AddressStateAdapter(Protocol):
    """Browser-history equivalent the orchestrator writes to and listens on."""

    def read(self) -> AddressEntry | None: ...

    def write(self, entry: AddressEntry, mode: HistoryMode) -> None: ...

    def on_external_change(self, callback: AddressListener) -> Callable[[], None]: ...


class MemoryAddressState:
    """In-process history stack with back/forward traversal.

    ``write`` behaves like ``pushState``/``replaceState``: pushing drops any
    forward entries. ``back``, ``forward`` and ``go`` move the cursor and
    notify listeners the way a ``popstate`` would; ``write`` never notifies.
    """

    def __init__(self) -> None:
        self._entries: list[AddressEntry] = []
        self._index = -1
        self._listeners: list[AddressListener] = []

    @property
    def entries(self) -> list[AddressEntry]:
        return list(self._entries)

    @property
    def index(self) -> int:
        return self._index

    def __len__(self) -> int:
        return len(self._entries)

    def read(self) -> AddressEntry | None:
        if 0 <= self._index < len(self._entries):
            return self._entries[self._index]
        return None

    def write(self, entry: AddressEntry, mode: HistoryMode = HistoryMode.PUSH) -> None:
        if mode is HistoryMode.REPLACE and self._index >= 0:
            self._entries[self._index] = entry
        else:
            del self._entries[self._index + 1 :]
            self._entries.append(entry)
            self._index = len(self._entries) - 1
        self._changed()

    def on_external_change(self, callback: AddressListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _unsubscribe

    def go(self, delta: int) -> AddressEntry | None:
        """Move the cursor by ``delta``; out-of-range moves are ignored."""
        target = self._index + delta
        if delta == 0 or not 0 <= target < len(self._entries):
            return None
        self._index = target
        self._changed()
        entry = self._entries[target]
        for listener in list(self._listeners):
            listener(entry)
        return entry

    def back(self) -> AddressEntry | None:
        return self.go(-1)

    def forward(self) -> AddressEntry | None:
        return self.go(1)

    def _changed(self) -> None:
        """Hook for subclasses that persist the stack."""


class JsonFileAddressState(MemoryAddressState):
    """History stack persisted to a JSON file across restarts."""

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path).expanduser()
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            LOGGER.warning(
                "address_state.load.failed",
                extra={
                    "event": "address_state.load.failed",
                    "path": str(self.path),
                    "error": str(exc),
                },
            )
            return
        if not isinstance(data, dict):
            return
        entries = [AddressEntry.from_dict(item) for item in data.get("entries", [])]
        self._entries = [entry for entry in entries if entry is not None]
        index = data.get("index", len(self._entries) - 1)
        if not isinstance(index, int) or not 0 <= index < len(self._entries):
            index = len(self._entries) - 1
        self._index = index

    def _changed(self) -> None:
        payload = {
            "index": self._index,
            "entries": [asdict(entry) for entry in self._entries],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(payload, ensure_ascii=False, default=str),
                encoding="utf-8",
            )
            if os.name == "posix":
                self.path.chmod(0o600)
        except OSError as exc:
            LOGGER.warning(
                "address_state.save.failed",
                extra={
                    "event": "address_state.save.failed",
                    "path": str(self.path),
                    "error": str(exc),
                },
            )
