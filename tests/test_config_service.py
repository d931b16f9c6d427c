"""Tests for interval parsing and the configuration service."""

import json
from pathlib import Path

import pytest
from hypothesis import given, strategies as st

from steamstats.models import ScraperConfig
from steamstats.services.config import ConfigurationService, parse_interval


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("600", 600),
        ("+60", 60),
        (900, 900),
        ("abc", 3600),
        ("", 3600),
        ("1.5", 3600),
        ("-5", 3600),
        ("0", 3600),
        (" 60", 3600),
        (None, 3600),
        (True, 3600),
    ],
)
def test_parse_interval(raw, expected: int) -> None:
    assert parse_interval(raw) == expected


@given(st.integers(min_value=1, max_value=10**9))
def test_parse_interval_accepts_positive_integers(value: int) -> None:
    assert parse_interval(str(value)) == value


@given(st.text().filter(lambda x: not x.lstrip("+").isascii() or not x.lstrip("+").isdigit()))
def test_parse_interval_falls_back_silently(raw: str) -> None:
    """Property: anything that is not a digit string becomes the default interval."""
    assert parse_interval(raw) == 3600


def test_defaults_without_file() -> None:
    config = ConfigurationService().load_config()

    assert config == ScraperConfig()
    assert config.output_root == Path("stats")
    assert config.source_url == "http://store.steampowered.com/stats/"


def test_missing_file_uses_defaults(tmp_path: Path) -> None:
    service = ConfigurationService(config_path=tmp_path / "absent.json")

    assert service.load_config() == ScraperConfig()


def test_file_values_and_overrides(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({
        "interval_seconds": "120",
        "output_root": "/var/lib/steamstats",
        "log_level": "debug",
        "fetch_timeout": 10,
    }))
    service = ConfigurationService(config_path=config_path)

    config = service.load_config(overrides={"interval_seconds": 300, "source_url": None})

    assert config.interval_seconds == 300
    assert config.output_root == Path("/var/lib/steamstats")
    assert config.log_level == "DEBUG"
    assert config.fetch_timeout == 10.0
    assert config.source_url == "http://store.steampowered.com/stats/"


def test_invalid_json_uses_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("{not json")

    assert ConfigurationService(config_path=config_path).load_config() == ScraperConfig()


def test_invalid_values_use_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"source_url": "ftp://example.com", "log_level": "LOUD"}))

    assert ConfigurationService(config_path=config_path).load_config() == ScraperConfig()


def test_validate_config() -> None:
    service = ConfigurationService()

    assert service.validate_config(ScraperConfig()).is_valid

    result = service.validate_config(ScraperConfig(interval_seconds=0, source_url="nope", log_level="LOUD", fetch_timeout=-1))
    assert not result.is_valid
    assert len(result.errors) == 4
