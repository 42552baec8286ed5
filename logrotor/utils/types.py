"""Shared value types consumed across the log store."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum
from pathlib import Path
from typing import Optional, Tuple, Union

from ..errors import ConfigurationError

_LEVEL_ALIASES = {
    "WARN": "WARNING",
    "FATAL": "CRITICAL",
}


class LogLevel(IntEnum):
    """Totally ordered severity tag used for filtering and serialization."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50

    @classmethod
    def parse(cls, value: Union["LogLevel", int, str]) -> "LogLevel":
        """Coerce a member, an integer or a case-insensitive name."""

        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError as exc:
                raise ConfigurationError(f"Unknown log level: {value!r}") from exc
        if isinstance(value, str):
            name = value.strip().upper()
            name = _LEVEL_ALIASES.get(name, name)
            try:
                return cls[name]
            except KeyError as exc:
                raise ConfigurationError(f"Unknown log level: {value!r}") from exc
        raise ConfigurationError(f"Unsupported log level type: {type(value).__name__}")


class NamingStrategy(str, Enum):
    """How rotated generations are named on disk."""

    NUMBERED = "numbered"
    TIMESTAMPED = "timestamped"

    @classmethod
    def parse(cls, value: Union["NamingStrategy", str]) -> "NamingStrategy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ConfigurationError(f"Unknown naming strategy: {value!r}") from exc


@dataclass(frozen=True)
class LogRecord:
    """A single record accepted by the store."""

    timestamp: datetime
    level: LogLevel
    message: str


@dataclass(frozen=True)
class Generation:
    """One archived copy of a formerly active log file.

    Numbered generations carry ``index`` (1 is the most recent); timestamped
    generations carry ``stamp`` plus a ``counter`` that disambiguates two
    rotations within the same second.
    """

    path: Path
    created_at: datetime
    compressed: bool = False
    index: Optional[int] = None
    stamp: Optional[str] = None
    counter: int = 0

    @property
    def recency(self) -> Tuple:
        """Sort key that grows with recency."""

        if self.index is not None:
            return (-self.index,)
        return (self.stamp or "", self.counter)

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "created_at": self.created_at.isoformat(),
            "compressed": self.compressed,
            "index": self.index,
            "stamp": self.stamp,
            "counter": self.counter,
        }


__all__ = [
    "Generation",
    "LogLevel",
    "LogRecord",
    "NamingStrategy",
]
