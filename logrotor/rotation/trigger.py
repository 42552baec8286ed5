"""Size-based rotation predicates."""
from __future__ import annotations

from ..utils.config import StoreConfig


def is_rotation_due(size: int, config: StoreConfig) -> bool:
    """Return ``True`` once the active file has reached its size threshold."""

    return size >= config.max_file_size_bytes


def would_overflow(size: int, incoming: int, config: StoreConfig) -> bool:
    """Return ``True`` when appending ``incoming`` bytes would cross the threshold.

    An empty file never overflows, so a single record larger than the
    threshold still gets written (and rotated right after).
    """

    return size > 0 and size + incoming > config.max_file_size_bytes


__all__ = ["is_rotation_due", "would_overflow"]
