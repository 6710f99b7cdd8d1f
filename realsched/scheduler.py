"""
Drift-Correcting Periodic Scheduler

Provides DriftCorrectingScheduler, which calls a single callback every
`delay` milliseconds and adjusts each wait so that the long-run call rate
converges to the nominal period instead of drifting with every overrun.

Unlike a plain `while True: callback(); await asyncio.sleep(delay)` loop,
this scheduler:
- Tracks synthetic elapsed time (delay * completed ticks) next to the
  true elapsed time measured on the event loop clock
- Shortens the next wait after a late tick and lengthens it after an early one
- Counts ticks whose deviation exceeds the period and reports them
- Arms the next wake-up before running the callback, so callback duration
  is measured on the following tick

Usage:
    def tick(sch):
        print(sch.get_number_of_calls())
        if sch.get_number_of_calls() == 10:
            sch.stop()

    async def main():
        scheduler = DriftCorrectingScheduler(tick, 100)
        await scheduler.wait_stopped()
        print(scheduler.get_statistics().to_dict())
"""

import asyncio
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Mapping

from .exceptions import InvalidArgumentError, SchedulerError
from .logging_setup import get_service_logger
from .options import SchedulerOptions

logger = get_service_logger("scheduler", default_level="WARNING")


class SchedulerState(str, Enum):
    """Scheduler lifecycle states"""
    CREATED = "created"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class SchedulerStatistics:
    """Run statistics, updated on every timed tick"""
    delay: float
    number_of_calls: int = 0
    time_elapsed: float = 0
    min_delta: float = 0
    max_delta: float = 0
    delta_error_count: int = 0

    def to_dict(self) -> dict:
        return {
            "delay": self.delay,
            "numberOfCalls": self.number_of_calls,
            "timeElapsed": self.time_elapsed,
            "minDelta": self.min_delta,
            "maxDelta": self.max_delta,
            "deltaErrorCount": self.delta_error_count,
        }


class SchedulerListener:
    """
    Callback interface for DriftCorrectingScheduler.from_listener().

    Subclasses must implement on_tick. on_stop and on_delta_error
    default to doing nothing.
    """

    def on_tick(self, scheduler: "DriftCorrectingScheduler") -> None:
        raise NotImplementedError

    def on_stop(self, scheduler: "DriftCorrectingScheduler") -> None:
        pass

    def on_delta_error(self, scheduler: "DriftCorrectingScheduler") -> None:
        pass


class DriftCorrectingScheduler:
    """
    Self-correcting periodic callback scheduler.

    The scheduler starts as soon as it is constructed. Each wake-up is a
    one-shot `loop.call_later()` handle; the tick handler arms the next one,
    so ticks run on the event loop thread and never overlap.

    Exceptions raised by the callback or the handlers are not caught. During
    a timed tick they go to the event loop's exception handler. A failing
    callback leaves the already armed next wake-up in place; a failing
    on_delta_error handler runs before the re-arm and ends the chain.

    A stop() issued from another thread between the stop check and the
    callback of an in-flight tick may let that callback run once more.
    Use stop_threadsafe() from foreign threads.

    Attributes:
        delay: Nominal period in milliseconds
        max_deviation_allowed: Deviation threshold for on_delta_error (== delay)
        options: Resolved SchedulerOptions
        name: Name for logging/identification
    """

    def __init__(
        self,
        callback: Callable[["DriftCorrectingScheduler"], Any],
        delay: float,
        options: SchedulerOptions | Mapping[str, Any] | None = None,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        name: str = "scheduler",
    ):
        """
        Create the scheduler and start it immediately.

        Args:
            callback: Called as callback(scheduler) on every tick
            delay: Milliseconds between nominal ticks (>= 0)
            options: SchedulerOptions or a mapping of option values
            loop: Event loop to schedule on (default: the running loop)
            name: Name for logging/identification

        Raises:
            InvalidArgumentError: callback not callable, bad delay or options
            SchedulerError: no loop given and none is running
        """
        if not callable(callback):
            raise InvalidArgumentError("must be callable", "callback")
        if isinstance(delay, bool) or not isinstance(delay, (int, float)):
            raise InvalidArgumentError("must be a non-negative number", "delay")
        if math.isnan(delay) or math.isinf(delay) or delay < 0:
            raise InvalidArgumentError("must be a non-negative number", "delay")

        self.options = SchedulerOptions.from_value(options)

        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                raise SchedulerError(
                    "DriftCorrectingScheduler needs a running event loop or an explicit loop"
                ) from None

        self.delay = delay
        self.max_deviation_allowed = delay
        self.name = name

        self._callback = callback
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self._wait_ms: float = delay
        self._want_stop = False
        self._state = SchedulerState.CREATED
        self._stopped = asyncio.Event()

        self._start_time = loop.time()
        self._timed_ticks = 0
        self._synthetic_elapsed: float = 0
        self._true_elapsed: float = 0
        self._number_of_calls = 0
        self._stats = SchedulerStatistics(delay=delay)

        logger.debug(
            f"Scheduler '{self.name}' created, delay set to [{delay}] options: {self.options}",
            extra={"scheduler": self.name, "delay_ms": delay},
        )

        self._state = SchedulerState.RUNNING
        if not self.options.wait_for_the_first_call:
            self._number_of_calls += 1
            callback(self)
        self._arm(self.delay)

    @classmethod
    def from_listener(
        cls,
        listener: SchedulerListener,
        delay: float,
        wait_for_the_first_call: bool = True,
        **kwargs,
    ) -> "DriftCorrectingScheduler":
        """Create a scheduler driven by a SchedulerListener's three methods."""
        options = SchedulerOptions(
            wait_for_the_first_call=wait_for_the_first_call,
            on_stop=listener.on_stop,
            on_delta_error=listener.on_delta_error,
        )
        return cls(listener.on_tick, delay, options, **kwargs)

    def _arm(self, timeout_ms: float) -> None:
        """Arm the next one-shot wake-up unless a stop was requested."""
        if self._want_stop:
            return
        self._wait_ms = timeout_ms
        self._handle = self._loop.call_later(timeout_ms / 1000.0, self._tick)

    def _tick(self) -> None:
        """One wake-up: measure, update statistics, re-arm, call back."""
        self._handle = None
        if self._want_stop:
            return

        self._number_of_calls += 1
        self._true_elapsed = (self._loop.time() - self._start_time) * 1000.0
        self._timed_ticks += 1
        # always exactly delay * timed ticks
        self._synthetic_elapsed = self._timed_ticks * self.delay
        deviation = self._true_elapsed - self._synthetic_elapsed
        logger.debug(
            f"cc: {self._number_of_calls} te|ste: "
            f"{self._true_elapsed:.1f}|{self._synthetic_elapsed}  td: [{deviation:.1f}]",
            extra={"scheduler": self.name, "deviation_ms": deviation},
        )

        stats = self._stats
        if deviation < stats.min_delta:
            stats.min_delta = deviation
        if deviation > stats.max_delta:
            stats.max_delta = deviation
        stats.time_elapsed = self._true_elapsed
        stats.number_of_calls = self._number_of_calls

        if abs(deviation) > self.max_deviation_allowed:
            stats.delta_error_count += 1
            logger.warning(
                f"Scheduler '{self.name}' time deviation too high [{deviation:.1f}], "
                f"max absolute allowed [{self.max_deviation_allowed}]",
                extra={"scheduler": self.name, "deviation_ms": deviation},
            )
            if self.options.on_delta_error is not None:
                self.options.on_delta_error(self)

        if not self._want_stop:
            self._arm(max(0, self._wait_ms - deviation))
            self._callback(self)

    def stop(self) -> None:
        """
        Stop the scheduler so its next callback will not be called.

        Cancels the pending wake-up and calls on_stop. Every call fires
        on_stop again, including calls on an already stopped scheduler.
        """
        self._want_stop = True
        self._state = SchedulerState.STOPPED
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        logger.info(
            f"Scheduler '{self.name}' stopped after {self._number_of_calls} calls",
            extra={"scheduler": self.name},
        )
        try:
            if self.options.on_stop is not None:
                self.options.on_stop(self)
        finally:
            self._stopped.set()

    def stop_threadsafe(self) -> None:
        """Request stop() from a thread other than the event loop's."""
        self._loop.call_soon_threadsafe(self.stop)

    async def wait_stopped(self) -> None:
        """Wait until stop() has been called."""
        await self._stopped.wait()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_stopped(self) -> bool:
        return self._want_stop

    @property
    def time_elapsed(self) -> float:
        """True time elapsed since start at the last tick (ms)."""
        return self._true_elapsed

    @property
    def synthetic_time_elapsed(self) -> float:
        """delay * number of completed timed ticks (ms)."""
        return self._synthetic_elapsed

    @property
    def number_of_calls(self) -> int:
        """Number of callback calls since start, immediate call included."""
        return self._number_of_calls

    def get_time_elapsed(self) -> float:
        return self._true_elapsed

    def get_synthetic_time_elapsed(self) -> float:
        return self._synthetic_elapsed

    def get_number_of_calls(self) -> int:
        return self._number_of_calls

    def get_statistics(self) -> SchedulerStatistics:
        """Get a snapshot of the run statistics."""
        return replace(self._stats)
