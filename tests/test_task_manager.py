"""Tests for the TaskManager lifecycle helper."""

from __future__ import annotations

import asyncio
import unittest

from itinerary_nav.task_manager import TaskManager


class TaskManagerTests(unittest.IsolatedAsyncioTestCase):
    """Validate named, anonymous and scheduled task management."""

    async def test_add_named_and_cancel_by_name(self) -> None:
        tm = TaskManager()
        cancelled: list[bool] = []

        async def _worker() -> None:
            try:
                await asyncio.sleep(9999)
            except asyncio.CancelledError:
                cancelled.append(True)
                raise

        task = asyncio.create_task(_worker())
        tm.add(task, name="cleanup:a")
        await asyncio.sleep(0)
        self.assertIs(tm.get("cleanup:a"), task)

        await tm.cancel("cleanup:a")
        self.assertTrue(task.done())
        self.assertTrue(cancelled)
        self.assertIsNone(tm.get("cleanup:a"))

    async def test_replacing_a_name_cancels_previous(self) -> None:
        tm = TaskManager()
        first = tm.spawn(asyncio.sleep(9999), name="job")
        second = tm.spawn(asyncio.sleep(9999), name="job")
        await asyncio.sleep(0)
        self.assertTrue(first.cancelled())
        self.assertIs(tm.get("job"), second)
        await tm.cancel_all()

    async def test_schedule_runs_sync_and_async_callbacks(self) -> None:
        tm = TaskManager()
        calls: list[str] = []

        async def _async_callback() -> None:
            calls.append("async")

        tm.schedule(0.0, lambda: calls.append("sync"))
        tm.schedule(0.01, _async_callback)
        await tm.await_all()
        self.assertEqual(calls, ["sync", "async"])
        self.assertEqual(tm.pending(), 0)

    async def test_cancel_nowait_prevents_callback(self) -> None:
        tm = TaskManager()
        calls: list[str] = []
        tm.schedule(0.01, lambda: calls.append("ran"), name="cleanup:x")
        self.assertTrue(tm.cancel_nowait("cleanup:x"))
        self.assertFalse(tm.cancel_nowait("cleanup:x"))
        await asyncio.sleep(0.03)
        self.assertEqual(calls, [])

    async def test_cancel_nonexistent_name_is_noop(self) -> None:
        tm = TaskManager()
        await tm.cancel("does_not_exist")

    async def test_discard_removes_without_cancelling(self) -> None:
        tm = TaskManager()
        task = tm.spawn(asyncio.sleep(9999), name="x")
        tm.discard("x")
        self.assertIsNone(tm.get("x"))
        self.assertFalse(task.done())
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def test_await_all_includes_tasks_spawned_while_waiting(self) -> None:
        tm = TaskManager()
        calls: list[str] = []

        def _chain() -> None:
            calls.append("first")
            tm.schedule(0.0, lambda: calls.append("second"))

        tm.schedule(0.0, _chain)
        await tm.await_all()
        self.assertEqual(calls, ["first", "second"])

    async def test_failing_task_is_logged(self) -> None:
        tm = TaskManager()

        def _broken() -> None:
            raise ValueError("scheduled failure")

        with self.assertLogs("itinerary_nav.task_manager", level="WARNING") as logs:
            tm.schedule(0.0, _broken)
            await tm.await_all()
            await asyncio.sleep(0)
        self.assertTrue(any("task.exception" in line for line in logs.output))

    async def test_cancel_all_handles_mixed_tasks(self) -> None:
        tm = TaskManager()
        named = tm.spawn(asyncio.sleep(9999), name="n1")
        anonymous = tm.spawn(asyncio.sleep(9999))
        await asyncio.sleep(0)
        await tm.cancel_all()
        self.assertTrue(named.cancelled())
        self.assertTrue(anonymous.cancelled())
        self.assertEqual(tm.pending(), 0)


if __name__ == "__main__":
    unittest.main()
