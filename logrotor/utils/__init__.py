"""Configuration, value types and formatting helpers."""

from .config import StoreConfig, load_config
from .formatter import format_record
from .types import Generation, LogLevel, LogRecord, NamingStrategy

__all__ = [
    "Generation",
    "LogLevel",
    "LogRecord",
    "NamingStrategy",
    "StoreConfig",
    "format_record",
    "load_config",
]
