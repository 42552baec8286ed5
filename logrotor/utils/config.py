"""Store configuration and JSON loading helpers."""
from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

from ..errors import ConfigurationError
from .types import LogLevel, NamingStrategy

DEFAULT_MAX_BYTES = 1024 * 1024
DEFAULT_MAX_GENERATIONS = 5
ACTIVE_SUFFIX = ".log"


@dataclass(frozen=True)
class StoreConfig:
    """Immutable settings for a :class:`~logrotor.core.store.RotatingLogStore`.

    Enum-valued fields accept their string names as well, which keeps JSON
    and command line input straightforward. Validation runs on construction,
    so an instance that exists is always a usable configuration.
    """

    directory: Path
    base_name: str
    max_file_size_bytes: int = DEFAULT_MAX_BYTES
    max_generations: int = DEFAULT_MAX_GENERATIONS
    naming_strategy: NamingStrategy = NamingStrategy.NUMBERED
    compression_enabled: bool = False
    min_level: LogLevel = LogLevel.INFO
    async_mode: bool = False
    queue_capacity: Optional[int] = None
    encoding: str = "utf-8"
    echo_level: Optional[LogLevel] = None

    def __post_init__(self) -> None:
        # frozen dataclass: coerce through object.__setattr__
        object.__setattr__(self, "directory", Path(self.directory))
        object.__setattr__(self, "naming_strategy", NamingStrategy.parse(self.naming_strategy))
        object.__setattr__(self, "min_level", LogLevel.parse(self.min_level))
        if self.echo_level is not None:
            object.__setattr__(self, "echo_level", LogLevel.parse(self.echo_level))
        self.validate()

    # ------------------------------------------------------------------
    def validate(self) -> None:
        """Raise :class:`ConfigurationError` if any setting is unusable."""

        if not isinstance(self.base_name, str) or not self.base_name.strip():
            raise ConfigurationError("base_name must be a non-empty string")
        if "/" in self.base_name or "\\" in self.base_name:
            raise ConfigurationError(f"base_name must not contain path separators: {self.base_name!r}")
        if not _is_int(self.max_file_size_bytes) or self.max_file_size_bytes <= 0:
            raise ConfigurationError(
                f"max_file_size_bytes must be a positive integer, got {self.max_file_size_bytes!r}"
            )
        if not _is_int(self.max_generations) or self.max_generations < 1:
            raise ConfigurationError(
                f"max_generations must be at least 1, got {self.max_generations!r}"
            )
        for name in ("compression_enabled", "async_mode"):
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise ConfigurationError(f"{name} must be true or false, got {value!r}")
        if self.queue_capacity is not None and (
            not _is_int(self.queue_capacity) or self.queue_capacity < 0
        ):
            raise ConfigurationError(
                f"queue_capacity must be a non-negative integer, got {self.queue_capacity!r}"
            )
        try:
            "".encode(self.encoding)
        except LookupError as exc:
            raise ConfigurationError(f"Unknown encoding: {self.encoding!r}") from exc

    @property
    def active_path(self) -> Path:
        """Canonical path of the file currently being appended to."""

        return self.directory / f"{self.base_name}{ACTIVE_SUFFIX}"

    @property
    def bounded_queue(self) -> bool:
        return bool(self.queue_capacity)

    # ------------------------------------------------------------------
    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StoreConfig":
        """Build a configuration from a plain mapping such as parsed JSON."""

        if not isinstance(data, Mapping):
            raise ConfigurationError("Configuration must be a mapping")
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")
        missing = [name for name in ("directory", "base_name") if name not in data]
        if missing:
            raise ConfigurationError(f"Missing configuration keys: {', '.join(missing)}")
        return cls(**dict(data))

    def to_dict(self) -> dict:
        return {
            "directory": str(self.directory),
            "base_name": self.base_name,
            "max_file_size_bytes": self.max_file_size_bytes,
            "max_generations": self.max_generations,
            "naming_strategy": self.naming_strategy.value,
            "compression_enabled": self.compression_enabled,
            "min_level": self.min_level.name,
            "async_mode": self.async_mode,
            "queue_capacity": self.queue_capacity,
            "encoding": self.encoding,
            "echo_level": self.echo_level.name if self.echo_level is not None else None,
        }


def load_config(path: Path, **overrides: Any) -> StoreConfig:
    """Read a JSON configuration file, applying keyword ``overrides`` on top."""

    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Configuration file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Configuration file {path} is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a JSON object")
    raw.update({key: value for key, value in overrides.items() if value is not None})
    return StoreConfig.from_mapping(raw)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


__all__ = [
    "ACTIVE_SUFFIX",
    "DEFAULT_MAX_BYTES",
    "DEFAULT_MAX_GENERATIONS",
    "StoreConfig",
    "load_config",
]
