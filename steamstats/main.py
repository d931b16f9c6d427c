"""Main entry point for the Steam stats scraper.

This module provides the process entry point with:
- Command-line argument parsing
- Service construction
- Signal-driven graceful shutdown
"""

import argparse
import asyncio
import signal
import sys
import time
from pathlib import Path

import structlog

from steamstats.models import ScraperConfig
from steamstats.services.archiver import ArchiverService
from steamstats.services.config import ConfigurationService, parse_interval
from steamstats.services.driver import SnapshotDriver
from steamstats.services.errors import FileSystemError
from steamstats.services.extractor import StatsExtractor
from steamstats.services.fetcher import FetcherService
from steamstats.services.logging import setup_logging
from steamstats.services.scheduler import TickTimer

__version__ = "1.0.0"

log = structlog.stdlib.get_logger()


class ApplicationContext:
    """Container for scraper services and shutdown state."""

    def __init__(self, config: ScraperConfig) -> None:
        self.config = config

        self._fetcher: FetcherService | None = None
        self._archiver: ArchiverService | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def fetcher(self) -> FetcherService:
        """Get the fetcher (lazy initialization)."""
        if self._fetcher is None:
            self._fetcher = FetcherService(timeout=self.config.effective_fetch_timeout)
        return self._fetcher

    @property
    def archiver(self) -> ArchiverService:
        """Get the archiver (lazy initialization)."""
        if self._archiver is None:
            self._archiver = ArchiverService(root=self.config.output_root)
        return self._archiver

    @property
    def stop_event(self) -> asyncio.Event:
        if self._stop_event is None:
            self._stop_event = asyncio.Event()
        return self._stop_event

    def build_driver(self) -> SnapshotDriver:
        return SnapshotDriver(
            config=self.config,
            fetcher=self.fetcher,
            archiver=self.archiver,
            extractor=StatsExtractor(),
            timer=TickTimer(self.config.interval_seconds),
            stop_event=self.stop_event,
        )

    def request_shutdown(self) -> None:
        """Request graceful shutdown of the scrape loop."""
        if not self.stop_event.is_set():
            log.info("Shutdown requested")
        self.stop_event.set()

    async def cleanup(self) -> None:
        """Close the archive file and the HTTP client."""
        if self._archiver is not None:
            self._archiver.close()
        if self._fetcher is not None:
            await self._fetcher.close()
        log.info("Cleanup complete")


class ParsedArgs:
    """Type-safe container for parsed command-line arguments."""

    def __init__(
        self,
        interval: int | None,
        config: Path | None,
        output_root: Path | None,
        url: str | None,
        log_level: str | None,
        log_dir: Path | None,
    ) -> None:
        self.interval: int | None = interval
        self.config: Path | None = config
        self.output_root: Path | None = output_root
        self.url: str | None = url
        self.log_level: str | None = log_level
        self.log_dir: Path | None = log_dir


def parse_arguments(argv: list[str] | None = None) -> ParsedArgs:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="steamstats",
        description="Periodically archive the Steam player count stats page",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  steamstats                      Snapshot every hour into ./stats
  steamstats --interval 600       Snapshot every ten minutes
  steamstats --log-dir ./logs     Also write JSON logs to ./logs
        """
    )

    _ = parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    _ = parser.add_argument(
        "--interval",
        default=None,
        help="Snapshot interval in seconds (default: 3600)"
    )

    _ = parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional JSON configuration file"
    )

    _ = parser.add_argument(
        "--output-root",
        type=Path,
        default=None,
        help="Directory the day files are written under (default: ./stats)"
    )

    _ = parser.add_argument(
        "--url",
        default=None,
        help="Stats page URL (default: http://store.steampowered.com/stats/)"
    )

    _ = parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set the logging level (default: INFO)"
    )

    _ = parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for log files (default: console only)"
    )

    ns = parser.parse_args(argv)

    return ParsedArgs(
        interval=parse_interval(ns.interval) if ns.interval is not None else None,
        config=ns.config,
        output_root=ns.output_root,
        url=ns.url,
        log_level=ns.log_level,
        log_dir=ns.log_dir,
    )


def build_config(args: ParsedArgs) -> ScraperConfig:
    """Merge the optional config file with command-line values."""
    service = ConfigurationService(config_path=args.config)
    return service.load_config(overrides={
        "interval_seconds": args.interval,
        "output_root": args.output_root,
        "source_url": args.url,
        "log_level": args.log_level,
    })


async def run_scraper(context: ApplicationContext) -> int:
    """Open today's file and run the scrape loop until shutdown.

    Returns:
        Exit code (0 for clean shutdown, 1 if the first file cannot be opened)
    """
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, context.request_shutdown)

    driver = context.build_driver()
    try:
        try:
            context.archiver.start(driver.tick_time)
        except FileSystemError as e:
            print(f"Failed to create/open file {e.path}", file=sys.stderr)
            return 1

        await driver.run()
        return 0
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        await context.cleanup()


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the scraper."""
    args = parse_arguments(argv)

    config = build_config(args)

    _ = setup_logging(
        log_level=config.log_level,
        log_dir=args.log_dir,
    )

    log.info(
        "Starting steamstats",
        version=__version__,
        interval=config.interval_seconds,
        output_root=str(config.output_root),
        url=config.source_url,
        fetch_timeout=config.effective_fetch_timeout,
        started_at=time.strftime("%Y-%m-%d %H:%M:%S %z"),
    )

    context = ApplicationContext(config)

    try:
        exit_code = asyncio.run(run_scraper(context))

    except KeyboardInterrupt:
        log.info("Interrupted by user")
        exit_code = 130  # Standard exit code for SIGINT

    except Exception as e:
        log.error("Unhandled exception", error=str(e), exc_info=True)
        print(f"Fatal error: {e}", file=sys.stderr)
        exit_code = 1

    log.info("Exiting", exit_code=exit_code)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
