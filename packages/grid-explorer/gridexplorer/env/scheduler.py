"""
Simulated-clock event queue for delayed and periodic world effects.

Reward respawns and exploration bonus placement are timer driven. Instead of
free-running timers they are queued here and executed by the tick driver when
it advances the clock, so every world mutation happens between ticks.
"""

from __future__ import annotations

import heapq
import itertools
from collections.abc import Callable
from dataclasses import dataclass, field

from gridexplorer.errors import (
    ERROR_NEGATIVE_ADVANCE,
    ERROR_NEGATIVE_DELAY,
    ERROR_NON_POSITIVE_PERIOD,
)
from gridexplorer.logging_config import logger

# Tolerance for accumulated frame times landing just short of a due time
TIME_EPSILON = 1e-9


@dataclass(order=True)
class ScheduledEvent:
    """
    An event waiting in the scheduler queue.

    Attributes
    ----------
    due : float
        Simulated time (seconds) at which the event fires.
    sequence : int
        Insertion counter, orders events that share a due time.
    callback : Callable[[], None]
        Work to run when the event fires.
    period : float | None
        Re-arm interval for recurring events, None for one-shot events.
    name : str
        Label used in logs.
    """

    due: float
    sequence: int
    callback: Callable[[], None] = field(compare=False)
    period: float | None = field(default=None, compare=False)
    name: str = field(default="event", compare=False)


class EventScheduler:
    """
    Priority queue of callbacks keyed on a simulated clock.

    Events run in (due time, insertion) order. Callbacks may schedule further
    events; those run in the same ``advance`` call if they fall due within it.
    Scheduled events cannot be cancelled.
    """

    def __init__(self, start_time: float = 0.0) -> None:
        self.now = start_time
        self._queue: list[ScheduledEvent] = []
        self._counter = itertools.count()

    @property
    def pending(self) -> int:
        """Number of events waiting to fire."""
        return len(self._queue)

    def schedule(
        self,
        delay: float,
        callback: Callable[[], None],
        name: str = "event",
    ) -> ScheduledEvent:
        """
        Run ``callback`` once, ``delay`` simulated seconds from now.

        Raises
        ------
        ValueError
            If ``delay`` is negative.
        """
        if delay < 0:
            error_message = ERROR_NEGATIVE_DELAY.format(delay=delay)
            logger.error(error_message)
            raise ValueError(error_message)

        event = ScheduledEvent(
            due=self.now + delay,
            sequence=next(self._counter),
            callback=callback,
            name=name,
        )
        heapq.heappush(self._queue, event)
        logger.debug(f"Scheduled '{name}' at t={event.due:.3f}s")
        return event

    def schedule_recurring(
        self,
        period: float,
        callback: Callable[[], None],
        name: str = "recurring",
        *,
        fire_immediately: bool = True,
    ) -> ScheduledEvent:
        """
        Run ``callback`` every ``period`` simulated seconds.

        With ``fire_immediately`` the callback runs right away and the first
        queued firing is one period later.

        Raises
        ------
        ValueError
            If ``period`` is not positive.
        """
        if period <= 0:
            error_message = ERROR_NON_POSITIVE_PERIOD.format(period=period)
            logger.error(error_message)
            raise ValueError(error_message)

        if fire_immediately:
            callback()

        event = ScheduledEvent(
            due=self.now + period,
            sequence=next(self._counter),
            callback=callback,
            period=period,
            name=name,
        )
        heapq.heappush(self._queue, event)
        return event

    def advance(self, dt: float) -> int:
        """
        Move the clock forward by ``dt`` seconds, firing every due event.

        Returns
        -------
        int
            Number of events fired.
        """
        if dt < 0:
            error_message = ERROR_NEGATIVE_ADVANCE.format(dt=dt)
            logger.error(error_message)
            raise ValueError(error_message)

        target = self.now + dt
        fired = 0
        while self._queue and self._queue[0].due <= target + TIME_EPSILON:
            event = heapq.heappop(self._queue)
            self.now = max(self.now, event.due)
            if event.period is not None:
                event.due += event.period
                event.sequence = next(self._counter)
                heapq.heappush(self._queue, event)
            event.callback()
            fired += 1

        self.now = max(self.now, target)
        return fired
