"""Service layer: fetching, extraction, archiving and the scrape loop."""

from .archiver import ArchiverService, iter_snapshots, serialize_snapshot
from .config import ConfigurationService, ValidationResult, parse_interval
from .driver import SnapshotDriver
from .errors import (
    AppError,
    ErrorCategory,
    ErrorHandlingService,
    ErrorSeverity,
    FileSystemError,
    NetworkError,
    get_error_service,
    handle_error,
)
from .extractor import ScanState, StatsExtractor
from .fetcher import FetcherService
from .scheduler import TickTimer, next_day

__all__ = [
    "AppError",
    "ArchiverService",
    "ConfigurationService",
    "ErrorCategory",
    "ErrorHandlingService",
    "ErrorSeverity",
    "FetcherService",
    "FileSystemError",
    "NetworkError",
    "ScanState",
    "SnapshotDriver",
    "StatsExtractor",
    "TickTimer",
    "ValidationResult",
    "get_error_service",
    "handle_error",
    "iter_snapshots",
    "next_day",
    "parse_interval",
    "serialize_snapshot",
]
