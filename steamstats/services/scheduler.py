"""Clock helpers: local-midnight boundaries and the tick timer."""

import asyncio
import time
from typing import Callable

import structlog

log = structlog.stdlib.get_logger()

DAY_SECONDS = 24 * 3600


def next_day(t: float) -> int:
    """Epoch seconds of the first local midnight strictly after ``t``.

    Uses the zone offset in effect at ``t``, so days across a DST change are
    23 or 25 hours long.
    """
    secs = int(t)
    offset = time.localtime(secs).tm_gmtoff
    local = secs + offset
    return local + (DAY_SECONDS - local % DAY_SECONDS) - offset


class TickTimer:
    """Fixed-interval timer armed at the start of each tick.

    Time spent inside the tick counts toward the interval.
    """

    def __init__(
        self,
        interval: int,
        clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.interval = interval
        self._clock = clock
        self._monotonic = monotonic
        self._deadline: float | None = None

    def arm(self) -> None:
        self._deadline = self._monotonic() + self.interval

    def remaining(self) -> float:
        if self._deadline is None:
            return float(self.interval)
        return max(0.0, self._deadline - self._monotonic())

    async def wait(self, stop_event: asyncio.Event | None = None) -> int:
        """Wait for the armed deadline and return the firing wall time in whole seconds.

        Returns early when ``stop_event`` is set.
        """
        delay = self.remaining()
        log.debug("Waiting for next tick", delay=round(delay, 3))
        if stop_event is None:
            await asyncio.sleep(delay)
        else:
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
        self._deadline = None
        return int(self._clock())
