"""Utility modules."""

from .logging import setup_logging, get_logger, OnceLogger
from .performance import FrameTimer, timing_decorator
from .validation import (
    clamp_index,
    validate_max_visible,
    validate_positive,
    validate_unit_interval,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "OnceLogger",
    "FrameTimer",
    "timing_decorator",
    "clamp_index",
    "validate_max_visible",
    "validate_positive",
    "validate_unit_interval",
]
