"""Shared fixtures."""

import logging
import os
import time
from collections.abc import Callable, Iterator

import pytest
import structlog


@pytest.fixture
def local_zone() -> Iterator[Callable[[str], None]]:
    """Switch the process-local time zone for the duration of a test."""
    original = os.environ.get("TZ")

    def set_zone(name: str) -> None:
        os.environ["TZ"] = name
        time.tzset()

    yield set_zone

    if original is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = original
    time.tzset()


@pytest.fixture
def open_umask() -> Iterator[None]:
    """Run with umask 0 so created modes can be checked exactly."""
    previous = os.umask(0)
    yield
    os.umask(previous)


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Drop handlers a test installed so later tests do not write to closed streams."""
    yield
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    structlog.reset_defaults()
