"""Validation utilities."""

import logging

from ..exceptions import ValidationError

logger = logging.getLogger(__name__)


def validate_max_visible(max_visible: int) -> int:
    """Validate the visible window size."""
    if isinstance(max_visible, bool) or not isinstance(max_visible, int):
        raise ValidationError(f"max_visible must be an integer, got {max_visible!r}")
    if max_visible <= 0:
        raise ValidationError("max_visible must be positive")
    return max_visible


def validate_unit_interval(value: float, name: str) -> float:
    """Validate that a tunable lies in [0, 1]."""
    if not 0.0 <= value <= 1.0:
        raise ValidationError(f"{name} must be between 0 and 1, got {value}")
    return value


def validate_positive(value: float, name: str) -> float:
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")
    return value


def clamp_index(index: int, count: int) -> int:
    """Clamp a line index into [0, count).

    Out-of-range indices show up transiently while lyrics are being
    reloaded, so they are clamped instead of rejected. Returns 0 for an
    empty sequence.
    """
    if count <= 0:
        return 0
    clamped = min(max(index, 0), count - 1)
    if clamped != index:
        logger.debug(f"Clamped line index {index} to {clamped} (count={count})")
    return clamped
