"""Line-oriented extractor for the Steam stats page.

The page lists one game per table row::

    <tr class="player_count_row" style="...">
        <td ...><span class="currentServers">1,234</span></td>
        <td ...><span class="currentServers">5,000</span></td>
        <td ...><a class="gameLink" href="/app/42/FooGame/">Foo Game</a></td>
    </tr>

The extractor walks the body one line at a time through four states.
Unexpected markup can only shorten the result or leave fields at zero.
"""

import re
import time
from enum import Enum
from typing import Callable

import structlog

from ..models import GameInfo, Snapshot

log = structlog.stdlib.get_logger()

ROW_MARKER = '<tr class="player_count_row" style="'
SPAN_START = '<span class="currentServers">'
SPAN_END = '</span>'
LINK_START = '<a class="gameLink" href="'
HREF_END = '">'
LINK_END = '</a>'

MAX_LINE_LENGTH = 4096

_NUMBER_RE = re.compile(r"[+-]?[0-9]+")


class ScanState(Enum):
    """Position of the scanner within a game row."""
    SEEK_ROW = 0
    READ_CURRENT = 1
    READ_PEAK = 2
    READ_LINK = 3


def parse_count(text: str) -> int | None:
    """Parse a player count such as ``1,234``; None if it is not an integer."""
    cleaned = text.replace(",", "")
    if not _NUMBER_RE.fullmatch(cleaned):
        return None
    return int(cleaned)


def iter_lines(body: bytes, max_length: int = MAX_LINE_LENGTH):
    """Yield decoded lines, each truncated to ``max_length`` bytes."""
    for raw in body.split(b"\n"):
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        yield raw[:max_length].decode("utf-8", errors="replace")


def _span_text(line: str, pos: int) -> tuple[int, str | None] | None:
    """Locate the first count span at or after ``pos``.

    Returns (position just past the span, enclosed text or None when
    unterminated), or None when there is no span marker.
    """
    start = line.find(SPAN_START, pos)
    if start == -1:
        return None
    start += len(SPAN_START)
    end = line.find(SPAN_END, start)
    if end == -1:
        return start, None
    return end + len(SPAN_END), line[start:end]


class StatsExtractor:
    """Turns a stats page body into a Snapshot."""

    def __init__(self, clock: Callable[[], float] = time.time, max_line_length: int = MAX_LINE_LENGTH) -> None:
        self._clock = clock
        self.max_line_length = max_line_length

    def extract(self, body: bytes) -> Snapshot:
        started = int(self._clock())
        games: list[GameInfo] = []

        state = ScanState.SEEK_ROW
        current = peak = 0

        for line in iter_lines(body, self.max_line_length):
            # Markers on one line are consumed left to right, each search starting past the last match
            pos = 0
            while True:
                if state is ScanState.SEEK_ROW:
                    start = line.find(ROW_MARKER, pos)
                    if start == -1:
                        break
                    current = peak = 0
                    state = ScanState.READ_CURRENT
                    pos = start + len(ROW_MARKER)

                elif state in (ScanState.READ_CURRENT, ScanState.READ_PEAK):
                    span = _span_text(line, pos)
                    if span is None:
                        break
                    pos, text = span
                    value = parse_count(text) if text is not None else None
                    if value is not None:
                        if state is ScanState.READ_CURRENT:
                            current = value
                        else:
                            peak = value
                    # Advance even on a bad number so the next span is read as the next field
                    state = ScanState.READ_PEAK if state is ScanState.READ_CURRENT else ScanState.READ_LINK

                else:
                    link = self._parse_link(line, pos, current, peak)
                    if link is None:
                        break
                    pos, game = link
                    games.append(game)
                    state = ScanState.SEEK_ROW

        log.debug("Extracted snapshot", time=started, games=len(games), pending_state=state.name)
        return Snapshot(time=started, games=games)

    @staticmethod
    def _parse_link(line: str, pos: int, current: int, peak: int) -> tuple[int, GameInfo] | None:
        """Build the row's GameInfo from the first link at or after ``pos``.

        None when the link marker is absent or its href is unterminated; a
        missing ``</a>`` still yields a record with an empty name.
        Returns the position just past the consumed link with the record.
        """
        start = line.find(LINK_START, pos)
        if start == -1:
            return None
        start += len(LINK_START)
        href_end = line.find(HREF_END, start)
        if href_end == -1:
            return None

        url = line[start:href_end]
        name_start = href_end + len(HREF_END)
        name_end = line.find(LINK_END, name_start)
        if name_end == -1:
            return name_start, GameInfo(name="", url=url, current=current, peak=peak)

        name = line[name_start:name_end]
        return name_end + len(LINK_END), GameInfo(name=name, url=url, current=current, peak=peak)
