"""Shared fakes used across the test suite."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import List

from logrotor.utils.config import StoreConfig


class FakeClock:
    """Deterministic clock advanced explicitly by the tests."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, 12, 0, 0)) -> None:
        self.now = start
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            return self.now

    def advance(self, seconds: float = 1.0) -> datetime:
        with self._lock:
            self.now = self.now + timedelta(seconds=seconds)
            return self.now


class ErrorSink:
    """Error handler that remembers everything it was given."""

    def __init__(self) -> None:
        self.errors: List[Exception] = []

    def __call__(self, exc: Exception) -> None:
        self.errors.append(exc)


def make_config(directory: Path, **overrides) -> StoreConfig:
    values = {
        "directory": directory,
        "base_name": "app",
        "max_file_size_bytes": 1024,
        "max_generations": 3,
        "min_level": "DEBUG",
    }
    values.update(overrides)
    return StoreConfig(**values)


__all__ = ["ErrorSink", "FakeClock", "make_config"]
