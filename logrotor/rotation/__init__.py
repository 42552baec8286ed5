"""Rotation trigger, archivers and retention management."""

from .archiver import Archiver, NumberedArchiver, TimestampedArchiver, create_archiver
from .retention import RetentionManager
from .trigger import is_rotation_due, would_overflow

__all__ = [
    "Archiver",
    "NumberedArchiver",
    "RetentionManager",
    "TimestampedArchiver",
    "create_archiver",
    "is_rotation_due",
    "would_overflow",
]
