"""Data models for the Steam stats scraper."""

from .config import ScraperConfig
from .snapshot import GameInfo, Snapshot

__all__ = [
    "GameInfo",
    "ScraperConfig",
    "Snapshot",
]
