"""Day-partitioned snapshot archive.

Each local calendar day gets ``<root>/YYYY/MM/YYYY-MM-DD.json``. Snapshots are
appended as tab-indented JSON objects with nothing between them, so a day file
is a stream of documents rather than one document; ``iter_snapshots`` reads it
back.
"""

import json
import os
import stat
import time
from pathlib import Path
from typing import Any, BinaryIO, Iterator

import structlog

from ..models import Snapshot
from .errors import FileSystemError
from .scheduler import next_day

log = structlog.stdlib.get_logger()

DIR_MODE = 0o770
FILE_MODE = 0o660
OPEN_FLAGS = os.O_CREAT | os.O_APPEND | os.O_WRONLY


def serialize_snapshot(snapshot: Snapshot) -> bytes:
    """Encode a snapshot the way it is stored on disk: tab indent, UTF-8, no trailing newline."""
    return json.dumps(snapshot.to_dict(), indent="\t", ensure_ascii=False).encode("utf-8")


def iter_snapshots(path: Path) -> Iterator[Snapshot]:
    """Yield every snapshot stored in a day file, in write order.

    A truncated final document (the process died mid-write) ends the stream.
    """
    text = path.read_text(encoding="utf-8", errors="replace")
    decoder = json.JSONDecoder()
    pos = 0
    while True:
        while pos < len(text) and text[pos].isspace():
            pos += 1
        if pos >= len(text):
            return
        try:
            data, pos = decoder.raw_decode(text, pos)
        except json.JSONDecodeError as e:
            log.warning("Truncated snapshot at end of file", path=str(path), offset=pos, error=str(e))
            return
        yield Snapshot.from_dict(data)


def _opener(path: str, flags: int) -> int:
    return os.open(path, OPEN_FLAGS, FILE_MODE)


class ArchiverService:
    """Owns the single open day file and rolls it over at local midnight."""

    def __init__(self, root: Path = Path("stats")) -> None:
        self.root = root
        self.path: Path | None = None
        self.next_midnight: int | None = None
        self._file: BinaryIO | None = None

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def path_for(self, t: float) -> Path:
        """Day file for epoch ``t`` rendered in the local zone."""
        local = time.localtime(int(t))
        return self.root / time.strftime("%Y", local) / time.strftime("%m", local) / time.strftime("%Y-%m-%d.json", local)

    def ensure_directory(self, path: Path) -> None:
        """Create ``path`` and any missing parents, each 0770 with setgid.

        A level that already exists is left alone.

        Raises:
            OSError: If a level cannot be created
        """
        missing = []
        current = path
        while not current.exists() and current != current.parent:
            missing.append(current)
            current = current.parent

        for level in reversed(missing):
            try:
                os.mkdir(level, DIR_MODE)
            except FileExistsError:
                continue
            # mkdir ignores the setgid bit, set it explicitly
            os.chmod(level, os.stat(level).st_mode | stat.S_ISGID)
            log.debug("Directory created", path=str(level))

        if not path.is_dir():
            raise NotADirectoryError(f"Path exists but is not a directory: {path}")

    def open(self, path: Path) -> None:
        """Open ``path`` for create-or-append, replacing any current handle.

        Raises:
            FileSystemError: If the directory or file cannot be created
        """
        self.close()
        self.path = path
        try:
            self.ensure_directory(path.parent)
            self._file = open(path, "ab", opener=_opener)
        except OSError as e:
            log.error("Failed to create/open file", path=str(path), error=str(e))
            raise FileSystemError(
                f"Failed to create/open file {path}",
                original_error=e,
                path=str(path),
                operation="open",
            ) from e
        log.info("Archive file opened", path=str(path))

    def start(self, now: float) -> Path:
        """Open the file for the day containing ``now`` and cache the next midnight."""
        self.next_midnight = next_day(now)
        path = self.path_for(now)
        self.open(path)
        return path

    def rollover_if_needed(self, now: float) -> bool:
        """Switch to the file for ``now`` once the cached midnight has passed.

        Also retries opening the current file when a previous open failed.
        Returns True when a new file was opened.

        Raises:
            FileSystemError: If the new file cannot be opened
        """
        if self.next_midnight is None or now >= self.next_midnight:
            self.close()
            path = self.path_for(now)
            self.next_midnight = next_day(now)
            log.info("Rolling over archive file", path=str(path), next_midnight=self.next_midnight)
            self.open(path)
            return True

        if self._file is None and self.path is not None:
            log.info("Retrying archive file open", path=str(self.path))
            self.open(self.path)
            return True

        return False

    def append(self, snapshot: Snapshot) -> int:
        """Append one serialized snapshot and flush it; returns bytes written.

        Raises:
            FileSystemError: If no file is open or the write fails
        """
        if self._file is None:
            raise FileSystemError(
                "No archive file is open",
                path=str(self.path) if self.path else None,
                operation="append",
            )

        data = serialize_snapshot(snapshot)
        try:
            self._file.write(data)
            self._file.flush()
        except OSError as e:
            log.error("Failed to append snapshot", path=str(self.path), error=str(e))
            raise FileSystemError(
                "Failed to append snapshot",
                original_error=e,
                path=str(self.path),
                operation="append",
            ) from e

        log.info("Snapshot appended", path=str(self.path), time=snapshot.time, games=len(snapshot.games), size=len(data))
        return len(data)

    def close(self) -> None:
        if self._file is None:
            return
        try:
            self._file.close()
        except OSError as e:
            log.warning("Failed to close archive file", path=str(self.path), error=str(e))
        finally:
            self._file = None
        log.debug("Archive file closed", path=str(self.path))

    def __enter__(self) -> "ArchiverService":
        return self

    def __exit__(self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: Any) -> None:
        self.close()
