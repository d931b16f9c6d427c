"""Snapshot data models."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class GameInfo:
    """One row of the stats page."""
    name: str
    url: str
    current: int
    peak: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "Name": self.name,
            "Url": self.url,
            "Current": self.current,
            "Peak": self.peak,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameInfo":
        return cls(
            name=str(data.get("Name", "")),
            url=str(data.get("Url", "")),
            current=int(data.get("Current", 0)),
            peak=int(data.get("Peak", 0)),
        )


@dataclass(frozen=True)
class Snapshot:
    """One scrape: epoch seconds at which scraping began plus the rows in page order."""
    time: int
    games: list[GameInfo] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "Time": self.time,
            "Games": [game.to_dict() for game in self.games],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Snapshot":
        # Archives written by earlier tools store an empty page as "Games": null
        games = data.get("Games") or []
        return cls(
            time=int(data["Time"]),
            games=[GameInfo.from_dict(game) for game in games],
        )
