"""Configuration data models."""

from dataclasses import dataclass
from pathlib import Path

DEFAULT_INTERVAL = 3600
DEFAULT_SOURCE_URL = "http://store.steampowered.com/stats/"
DEFAULT_OUTPUT_ROOT = Path("stats")
MAX_FETCH_TIMEOUT = 60.0


@dataclass(frozen=True)
class ScraperConfig:
    """Scraper configuration settings."""
    interval_seconds: int = DEFAULT_INTERVAL
    output_root: Path = DEFAULT_OUTPUT_ROOT
    source_url: str = DEFAULT_SOURCE_URL
    log_level: str = "INFO"
    fetch_timeout: float | None = None  # None = derived from interval

    @property
    def effective_fetch_timeout(self) -> float:
        """Timeout for one fetch, bounded so a stalled request cannot eat the tick."""
        if self.fetch_timeout is not None:
            return self.fetch_timeout
        return min(self.interval_seconds / 2, MAX_FETCH_TIMEOUT)
