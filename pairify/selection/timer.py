"""
An owned, explicitly cancellable timer for debouncing rapid user input.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pairify.log.logger import PairifyLogger


class DebounceTimer:
    """
    Runs a callback once a given ``delay`` has passed since it was last scheduled.

    Each call to :py:meth:`schedule` or :py:meth:`cancel` starts a new generation.
    A timer which is still waiting is cancelled outright.
    A timer which has already fired is left to finish, but its generation is no longer current,
    so its callback can check :py:meth:`is_current` before committing any results.

    :param delay: The time in seconds to wait before firing the callback.
    """

    __slots__ = ("logger", "delay", "_generation", "_task", "_waiting", "_tasks")

    @property
    def generation(self) -> int:
        """The identifier of the most recently scheduled timer"""
        return self._generation

    @property
    def pending(self) -> bool:
        """Is a timer currently waiting to fire"""
        return self._waiting

    @property
    def running(self) -> bool:
        """Are any timers or their callbacks yet to finish"""
        return bool(self._tasks)

    def __init__(self, delay: float):
        # noinspection PyTypeChecker
        #: The :py:class:`PairifyLogger` for this  object
        self.logger: PairifyLogger = logging.getLogger(__name__)

        self.delay = delay

        self._generation = 0
        self._task: asyncio.Task | None = None
        self._waiting = False
        self._tasks: set[asyncio.Task] = set()

    def is_current(self, generation: int) -> bool:
        """Check whether the timer with the given ``generation`` has been superseded"""
        return generation == self._generation

    def schedule(self, callback: Callable[[int], Awaitable[Any]]) -> int:
        """
        Cancel any waiting timer and start a new one.
        Must be called from within a running event loop.

        :param callback: Called with the generation of this timer once the delay has passed.
        :return: The generation of the new timer.
        """
        self.cancel()

        generation = self._generation
        self._waiting = True
        self._task = asyncio.get_running_loop().create_task(self._run(callback, generation))
        self._tasks.add(self._task)
        self._task.add_done_callback(self._tasks.discard)

        return generation

    async def _run(self, callback: Callable[[int], Awaitable[Any]], generation: int) -> None:
        await asyncio.sleep(self.delay)
        if not self.is_current(generation):
            return

        self._waiting = False
        await callback(generation)

    def cancel(self) -> None:
        """Cancel any waiting timer and invalidate the callback of any timer which has already fired"""
        self._generation += 1
        if self._task is not None and self._waiting:
            self._task.cancel()

        self._task = None
        self._waiting = False

    async def wait(self) -> None:
        """
        Wait for all scheduled timers and their callbacks to finish.

        :raise Exception: The first exception raised by a callback, if any.
        """
        while self._tasks:
            results = await asyncio.gather(*self._tasks, return_exceptions=True)
            errors = [
                result for result in results
                if isinstance(result, BaseException) and not isinstance(result, asyncio.CancelledError)
            ]
            if errors:
                raise errors[0]

    async def close(self) -> None:
        """Cancel all timers including the callbacks of those which have already fired"""
        self.cancel()
        for task in self._tasks:
            task.cancel()
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
