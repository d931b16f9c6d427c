"""Configuration service: interval parsing, optional config file and validation."""

import json
import re
from pathlib import Path
from typing import Any

import structlog

from ..models import ScraperConfig
from ..models.config import DEFAULT_INTERVAL

log = structlog.stdlib.get_logger()

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_INTERVAL_RE = re.compile(r"\+?[0-9]+")


class ValidationResult:
    """Result of configuration validation."""

    def __init__(self, is_valid: bool, errors: list[str] | None = None) -> None:
        self.is_valid: bool = is_valid
        self.errors: list[str] = errors or []


def parse_interval(raw: str | int | None) -> int:
    """Parse a snapshot interval in whole seconds.

    Anything that is not a positive integer falls back to 3600 without complaint.
    """
    if isinstance(raw, bool):
        return DEFAULT_INTERVAL
    if isinstance(raw, int):
        return raw if raw > 0 else DEFAULT_INTERVAL
    if raw is None:
        return DEFAULT_INTERVAL
    text = str(raw)
    if not _INTERVAL_RE.fullmatch(text):
        log.debug("Malformed interval, using default", raw=text, interval=DEFAULT_INTERVAL)
        return DEFAULT_INTERVAL
    value = int(text)
    return value if value > 0 else DEFAULT_INTERVAL


class ConfigurationService:
    """Service for building the scraper configuration."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path: Path | None = config_path
        log.debug("Configuration service initialized", config_path=str(config_path) if config_path else None)

    def load_config(self, overrides: dict[str, Any] | None = None) -> ScraperConfig:
        """Load configuration from the optional file, then apply CLI overrides.

        Overrides whose value is None are ignored.
        """
        data = self._read_file()
        for key, value in (overrides or {}).items():
            if value is not None:
                data[key] = value

        try:
            config = self._dict_to_config(data)
        except (KeyError, TypeError, ValueError) as e:
            log.error("Failed to build configuration, using defaults", error=str(e))
            return ScraperConfig()

        validation_result = self.validate_config(config)
        if not validation_result.is_valid:
            log.warning("Invalid configuration, using defaults", errors=validation_result.errors)
            return ScraperConfig()

        return config

    def _read_file(self) -> dict[str, Any]:
        if self.config_path is None:
            return {}
        if not self.config_path.exists():
            log.info("Configuration file not found, using defaults", config_path=str(self.config_path))
            return {}

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            log.error("Failed to read configuration file, using defaults", error=str(e))
            return {}

        if not isinstance(data, dict):
            log.error("Configuration file must hold a JSON object, using defaults")
            return {}

        log.info("Configuration loaded", config_path=str(self.config_path))
        return data

    def validate_config(self, config: ScraperConfig) -> ValidationResult:
        """Validate configuration settings."""
        errors = []

        if not isinstance(config.interval_seconds, int) or config.interval_seconds < 1:
            errors.append("interval_seconds must be a positive integer")

        if not isinstance(config.output_root, Path) or not str(config.output_root):
            errors.append("output_root must be a non-empty path")

        if not config.source_url.startswith(("http://", "https://")):
            errors.append("source_url must be an http(s) URL")

        if config.log_level not in VALID_LOG_LEVELS:
            errors.append(f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}")

        if config.fetch_timeout is not None:
            if not isinstance(config.fetch_timeout, (int, float)) or config.fetch_timeout <= 0:
                errors.append("fetch_timeout must be a positive number")

        return ValidationResult(len(errors) == 0, errors)

    def _dict_to_config(self, data: dict[str, Any]) -> ScraperConfig:
        defaults = ScraperConfig()

        timeout_raw = data.get("fetch_timeout")
        fetch_timeout = float(timeout_raw) if timeout_raw is not None else None

        return ScraperConfig(
            interval_seconds=parse_interval(data.get("interval_seconds", defaults.interval_seconds)),
            output_root=Path(str(data.get("output_root", defaults.output_root))),
            source_url=str(data.get("source_url", defaults.source_url)),
            log_level=str(data.get("log_level", defaults.log_level)).upper(),
            fetch_timeout=fetch_timeout,
        )
