"""Unit tests for record formatting and level parsing."""

from __future__ import annotations

from datetime import datetime

import pytest

from logrotor.errors import ConfigurationError
from logrotor.utils.formatter import format_record
from logrotor.utils.types import LogLevel, LogRecord


def test_format_record_layout() -> None:
    record = LogRecord(
        timestamp=datetime(2025, 3, 4, 5, 6, 7, 8000),
        level=LogLevel.WARNING,
        message="disk at 80%",
    )
    assert format_record(record) == b"[2025-03-04 05:06:07.008] [WARNING] disk at 80%\n"


def test_format_record_keeps_embedded_newlines() -> None:
    record = LogRecord(timestamp=datetime(2025, 1, 1), level=LogLevel.INFO, message="a\nb")
    assert format_record(record) == b"[2025-01-01 00:00:00.000] [INFO] a\nb\n"


def test_format_record_replaces_unencodable_characters() -> None:
    record = LogRecord(timestamp=datetime(2025, 1, 1), level=LogLevel.INFO, message="café")
    assert format_record(record, "ascii").endswith(b"caf?\n")


def test_levels_are_totally_ordered() -> None:
    ordered = [LogLevel.DEBUG, LogLevel.INFO, LogLevel.WARNING, LogLevel.ERROR, LogLevel.CRITICAL]
    assert sorted(reversed(ordered)) == ordered


@pytest.mark.parametrize(
    "value, expected",
    [
        ("debug", LogLevel.DEBUG),
        ("Warn", LogLevel.WARNING),
        (40, LogLevel.ERROR),
        (LogLevel.CRITICAL, LogLevel.CRITICAL),
    ],
)
def test_level_parse(value, expected) -> None:
    assert LogLevel.parse(value) is expected


@pytest.mark.parametrize("value", ["verbose", 15, True, 1.5])
def test_level_parse_rejects_unknown(value) -> None:
    with pytest.raises(ConfigurationError):
        LogLevel.parse(value)
