"""Delay a callback until input has been quiet for a while."""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Generic, TypeVar

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")

DEFAULT_DELAY = 0.4


class Debouncer(Generic[_T]):
    """Calls `callback` with the last pushed value once pushes stop for `delay`.

    Every push restarts the timer, so a burst of keystrokes produces a single
    callback with the final value. The callback may be a coroutine function.
    """

    def __init__(
        self,
        callback: Callable[[_T], Awaitable[Any] | None],
        delay: float = DEFAULT_DELAY,
    ) -> None:
        self._callback = callback
        self._delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._pending: _T | None = None
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        """True while a value is waiting for the timer."""
        return self._handle is not None

    def push(self, value: _T) -> None:
        self.cancel()
        self._pending = value
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        """Drop the waiting value without calling back."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending = None

    async def flush(self) -> None:
        """Call back now with any waiting value and wait for it to finish."""
        if self._handle is not None:
            self._handle.cancel()
            self._fire()
        if self._task is not None:
            await self._task

    def _fire(self) -> None:
        value = self._pending
        self._handle = None
        self._pending = None
        result = self._callback(value)  # type: ignore[arg-type]
        if inspect.isawaitable(result):
            self._task = asyncio.ensure_future(result)
            self._task.add_done_callback(self._done)

    def _done(self, task: asyncio.Task) -> None:
        if self._task is task:
            self._task = None
        if not task.cancelled() and (err := task.exception()) is not None:
            _LOGGER.warning("Debounced callback failed: %s", err)
