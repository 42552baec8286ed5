"""Exception hierarchy shared by the rotating log store."""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover
    from .utils.types import Generation


class LogStoreError(Exception):
    """Base class for every error raised by :mod:`logrotor`."""


class ConfigurationError(LogStoreError):
    """Raised when a store configuration is invalid or cannot be honoured."""


class StoreClosedError(LogStoreError):
    """Raised when records are submitted to a store that is not open."""


class OpenError(LogStoreError):
    """Raised when the active log file cannot be opened."""


class WriteError(LogStoreError):
    """Raised when appending to the active log file fails."""


class RotationError(LogStoreError):
    """Raised when a rotation or its compression step fails.

    The store stays usable after this error: the active file simply keeps
    growing past its threshold until the next rotation attempt succeeds.
    When the rename succeeded but compression did not, ``generation`` holds
    the uncompressed generation that was archived.
    """

    def __init__(self, message: str, *, generation: Optional["Generation"] = None) -> None:
        super().__init__(message)
        self.generation = generation


class RetentionError(LogStoreError):
    """Raised when one or more expired generations could not be deleted."""


__all__ = [
    "ConfigurationError",
    "LogStoreError",
    "OpenError",
    "RetentionError",
    "RotationError",
    "StoreClosedError",
    "WriteError",
]
