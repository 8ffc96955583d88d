"""Lifecycle tracking for deferred callbacks and background asyncio tasks."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import inspect
import logging
from typing import Any

LOGGER = logging.getLogger(__name__)


class TaskManager:
    """Track named and anonymous tasks owned by a bus or orchestrator.

    Named tasks are used for cancellable deferred work (cleanup of an exiting
    view element, flushing an event buffer); anonymous tasks are fire-and-forget
    work that must still be kept referenced until it finishes.
    """

    def __init__(self) -> None:
        self._named: dict[str, asyncio.Task[Any]] = {}
        self._anonymous: set[asyncio.Task[Any]] = set()

    def add(self, task: asyncio.Task[Any], name: str | None = None) -> None:
        """Register a task, optionally under a unique name.

        Registering a name that is already tracked cancels the previous task.
        Both kinds of task drop out of tracking once they are done.
        """
        if name is not None:
            previous = self._named.get(name)
            if previous is not None and previous is not task and not previous.done():
                previous.cancel()
            self._named[name] = task
            task.add_done_callback(lambda done: self._forget(name, done))
        else:
            self._anonymous.add(task)
            task.add_done_callback(self._anonymous.discard)
        task.add_done_callback(self._log_exception)

    def spawn(
        self, awaitable: Awaitable[Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Wrap ``awaitable`` in a task on the running loop and track it."""
        task = asyncio.ensure_future(awaitable)
        self.add(task, name=name)
        return task

    def schedule(
        self,
        delay: float,
        callback: Callable[[], Any],
        name: str | None = None,
    ) -> asyncio.Task[Any]:
        """Run ``callback`` after ``delay`` seconds unless cancelled first."""

        async def _deferred() -> None:
            await asyncio.sleep(max(0.0, delay))
            result = callback()
            if inspect.isawaitable(result):
                await result

        return self.spawn(_deferred(), name=name)

    def _forget(self, name: str, task: asyncio.Task[Any]) -> None:
        if self._named.get(name) is task:
            del self._named[name]

    def _log_exception(self, task: asyncio.Task[Any]) -> None:
        """Log unhandled exceptions from tracked tasks so they are not silently lost."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.warning(
                "task.exception",
                extra={
                    "event": "task.exception",
                    "task": task.get_name(),
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )

    def get(self, name: str) -> asyncio.Task[Any] | None:
        """Return the named task or ``None`` if not registered."""
        return self._named.get(name)

    def pending(self) -> int:
        """Number of tracked tasks that have not finished yet."""
        return sum(1 for t in self._all() if not t.done())

    def _all(self) -> list[asyncio.Task[Any]]:
        return list(self._named.values()) + list(self._anonymous)

    async def cancel(self, name: str) -> None:
        """Cancel a named task and await its completion."""
        task = self._named.pop(name, None)
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def cancel_nowait(self, name: str) -> bool:
        """Cancel a named task without awaiting it; True if one was pending."""
        task = self._named.pop(name, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def cancel_all(self) -> None:
        """Cancel every tracked task and await them all."""
        all_tasks = [t for t in self._all() if not t.done()]
        for task in all_tasks:
            task.cancel()
        for task in all_tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:  # noqa: BLE001 - already reported by _log_exception.
                pass
        self._named.clear()
        self._anonymous.clear()

    async def await_all(self) -> None:
        """Await tracked tasks, including ones spawned while waiting."""
        while True:
            outstanding = [t for t in self._all() if not t.done()]
            if not outstanding:
                return
            await asyncio.gather(*outstanding, return_exceptions=True)

    def discard(self, name: str) -> None:
        """Remove a named task from tracking without cancelling it."""
        self._named.pop(name, None)
