"""Perpetual scrape loop: fetch, roll over, extract, append, wait."""

import asyncio
import time
from typing import Callable

import structlog

from ..models import ScraperConfig
from .archiver import ArchiverService
from .errors import handle_error
from .extractor import StatsExtractor
from .fetcher import FetcherService
from .scheduler import TickTimer

log = structlog.stdlib.get_logger()


class SnapshotDriver:
    """Runs one snapshot per tick, strictly in sequence."""

    def __init__(
        self,
        config: ScraperConfig,
        fetcher: FetcherService,
        archiver: ArchiverService,
        extractor: StatsExtractor | None = None,
        timer: TickTimer | None = None,
        stop_event: asyncio.Event | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.archiver = archiver
        self.extractor = extractor or StatsExtractor(clock=clock)
        self.timer = timer or TickTimer(config.interval_seconds, clock=clock)
        self.stop_event = stop_event or asyncio.Event()
        self._clock = clock

        # Wall time at which the current tick fired; the rollover check uses it
        self.tick_time: int = int(clock())

        self.ticks = 0
        self.snapshots_written = 0
        self.ticks_skipped = 0

    async def run_tick(self) -> bool:
        """Fetch, roll over if due, extract and append. Returns True if a snapshot was written."""
        url = self.config.source_url
        try:
            body = await self.fetcher.fetch(url)
        except Exception as e:
            handle_error(e, operation="fetch", component="driver", context={"url": url})
            return False

        try:
            self.archiver.rollover_if_needed(self.tick_time)
        except Exception as e:
            handle_error(e, operation="rollover", component="driver", context={"path": str(self.archiver.path)})
            return False

        try:
            snapshot = self.extractor.extract(body)
        except Exception as e:
            handle_error(e, operation="extract", component="driver", context={"url": url})
            return False

        try:
            self.archiver.append(snapshot)
        except Exception as e:
            handle_error(e, operation="append", component="driver", context={"path": str(self.archiver.path)})
            return False

        return True

    async def run(self, max_ticks: int | None = None) -> None:
        """Loop until the stop event is set (or ``max_ticks`` ticks have run)."""
        log.info(
            "Scrape loop started",
            interval=self.config.interval_seconds,
            url=self.config.source_url,
            path=str(self.archiver.path),
        )

        while not self.stop_event.is_set():
            self.timer.arm()

            if await self.run_tick():
                self.snapshots_written += 1
            else:
                self.ticks_skipped += 1
            self.ticks += 1

            if max_ticks is not None and self.ticks >= max_ticks:
                break

            self.tick_time = await self.timer.wait(self.stop_event)

        log.info(
            "Scrape loop stopped",
            ticks=self.ticks,
            snapshots_written=self.snapshots_written,
            ticks_skipped=self.ticks_skipped,
        )
