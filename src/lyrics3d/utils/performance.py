"""Frame timing utilities."""

import time
import functools
from typing import Callable, Any, Optional

from .logging import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]


def timing_decorator(func: Callable) -> Callable:
    """Decorator that logs how long a recomputation took (DEBUG level)."""
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        start_time = time.perf_counter()
        try:
            result = func(*args, **kwargs)
            duration_ms = (time.perf_counter() - start_time) * 1000.0
            logger.debug(f"{func.__qualname__} completed in {duration_ms:.3f}ms")
            return result
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000.0
            logger.error(f"{func.__qualname__} failed after {duration_ms:.3f}ms: {e}")
            raise
    return wrapper


class FrameTimer:
    """Measures the wall-clock time between consecutive frames.

    Reads a monotonic clock on every tick instead of accumulating per-frame
    deltas, so drift does not build up over long sessions.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or time.monotonic
        self.last_tick: Optional[float] = None
        self.frame_count = 0

    def tick(self) -> float:
        """Mark a rendered frame and return seconds since the previous one."""
        now = self.clock()
        elapsed = 0.0 if self.last_tick is None else max(0.0, now - self.last_tick)
        self.last_tick = now
        self.frame_count += 1
        return elapsed

    def reset(self) -> None:
        self.last_tick = None
        self.frame_count = 0
