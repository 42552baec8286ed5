"""Line formatting for log records."""
from __future__ import annotations

from .types import LogRecord


def format_record(record: LogRecord, encoding: str = "utf-8") -> bytes:
    """Serialize ``record`` as ``[YYYY-MM-DD HH:MM:SS.mmm] [LEVEL] message\\n``.

    The message is written verbatim, embedded newlines included. Characters
    the encoding cannot represent are replaced rather than raising.
    """

    stamp = record.timestamp.strftime("%Y-%m-%d %H:%M:%S")
    millis = record.timestamp.microsecond // 1000
    line = f"[{stamp}.{millis:03d}] [{record.level.name}] {record.message}\n"
    return line.encode(encoding, errors="replace")


__all__ = ["format_record"]
