"""Cancellable timers for the kitchen screen"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional, Set, Union

import structlog

logger = structlog.get_logger()

Callback = Callable[[], Union[None, Awaitable[Any]]]


class TimerHandle:
    """Handle to a scheduled callback"""

    def __init__(self, name: str, task: "asyncio.Task[None]"):
        self.name = name
        self._task = task

    @property
    def cancelled(self) -> bool:
        return self._task.cancelled()

    @property
    def done(self) -> bool:
        return self._task.done()

    def cancel(self) -> None:
        # A callback may cancel its own handle; it is finishing anyway
        if self._task is not _current_task():
            self._task.cancel()

    def __repr__(self) -> str:
        return f"<TimerHandle {self.name} done={self.done}>"


class Scheduler:
    """
    Owner of every timer and background task the screen starts.

    Handles are tracked until they finish, so `cancel_all` leaves no orphaned
    timers behind on shutdown or voice deactivation.
    """

    def __init__(self):
        self._tasks: Set["asyncio.Task[None]"] = set()

    @property
    def active(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    def call_later(self, delay: float, callback: Callback, name: str = "timer") -> TimerHandle:
        """Run `callback` once after `delay` seconds"""

        async def runner() -> None:
            await asyncio.sleep(delay)
            await self._invoke(callback, name)

        return self._track(runner(), name)

    def call_every(
        self,
        interval: float,
        callback: Callback,
        name: str = "interval",
        run_immediately: bool = False,
    ) -> TimerHandle:
        """Run `callback` every `interval` seconds until cancelled"""

        async def runner() -> None:
            if run_immediately:
                await self._invoke(callback, name)
            while True:
                await asyncio.sleep(interval)
                await self._invoke(callback, name)

        return self._track(runner(), name)

    def spawn(self, coro: Awaitable[None], name: str = "task") -> TimerHandle:
        """Track a long-running coroutine (listener loops)"""
        return self._track(coro, name)

    def cancel(self, handle: Optional[TimerHandle]) -> None:
        if handle is not None:
            handle.cancel()

    def cancel_all(self) -> None:
        current = _current_task()
        for task in list(self._tasks):
            if task is not current:
                task.cancel()
        self._tasks.clear()

    async def shutdown(self) -> None:
        """Cancel everything and wait for the tasks to unwind"""
        current = _current_task()
        tasks = [task for task in self._tasks if task is not current]
        self.cancel_all()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _track(self, coro: Awaitable[None], name: str) -> TimerHandle:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return TimerHandle(name, task)

    async def _invoke(self, callback: Callback, name: str) -> None:
        try:
            result = callback()
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Scheduled callback failed", timer=name, error=str(e))


def _current_task() -> Optional["asyncio.Task[Any]"]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None
