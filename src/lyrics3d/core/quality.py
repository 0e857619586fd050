"""Frame-rate driven quality tier control.

The quality tier is process-wide state with a single writer. QualityState is
the owned handle that readers hold on to; only QualityController changes it,
and only when a sampling window closes, so the tier can move at most once per
window no matter how noisy the per-frame timings are.
"""

import re
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .. import config as settings
from ..config import (
    LOW_FPS_THRESHOLD,
    MEDIUM_FPS_THRESHOLD,
    SAMPLING_WINDOW,
    TARGET_FPS,
    UPGRADE_FPS_THRESHOLD,
    get_device_preset,
)
from ..utils.logging import get_logger
from .models import FrameMetrics, QualityTier

logger = get_logger(__name__)

MOBILE_USER_AGENT = re.compile(
    r"Android|webOS|iPhone|iPad|iPod|BlackBerry|IEMobile|Opera Mini", re.IGNORECASE
)

# A frame slower than this many target frame times counts as dropped
DROPPED_FRAME_FACTOR = 2.0


def detect_device_class(user_agent: Optional[str] = None) -> str:
    """Classify the device as "desktop" or "mobile".

    LYRICS3D_DEVICE_CLASS overrides detection. Without a user agent string
    the device is assumed to be a desktop.
    """
    if settings.DEVICE_CLASS:
        return settings.DEVICE_CLASS
    if user_agent and MOBILE_USER_AGENT.search(user_agent):
        return "mobile"
    return "desktop"


def initial_tier_for_device(device_class: str) -> QualityTier:
    return QualityTier(get_device_preset(device_class)["quality_tier"])


class QualityState:
    """Current quality tier plus its transition history.

    Readers use ``tier`` and ``revision``; QualityController is the only writer.
    """

    def __init__(self, tier: QualityTier = QualityTier.HIGH):
        self._tier = QualityTier(tier)
        self._revision = 0
        self._transitions: List[Tuple[float, QualityTier, QualityTier]] = []

    @classmethod
    def for_device(cls, user_agent: Optional[str] = None) -> "QualityState":
        return cls(initial_tier_for_device(detect_device_class(user_agent)))

    @property
    def tier(self) -> QualityTier:
        return self._tier

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def transitions(self) -> Tuple[Tuple[float, QualityTier, QualityTier], ...]:
        return tuple(self._transitions)

    def _assign(self, tier: QualityTier, timestamp: float) -> bool:
        if tier is self._tier:
            return False
        self._transitions.append((timestamp, self._tier, tier))
        self._tier = tier
        self._revision += 1
        return True


@dataclass(frozen=True)
class QualityConfig:
    sampling_window: float = SAMPLING_WINDOW
    low_fps: float = LOW_FPS_THRESHOLD
    medium_fps: float = MEDIUM_FPS_THRESHOLD
    upgrade_fps: float = UPGRADE_FPS_THRESHOLD
    target_fps: float = TARGET_FPS
    adaptive: bool = True


def next_tier(current: QualityTier, fps: float, config: Optional[QualityConfig] = None) -> QualityTier:
    """Tier after a sampling window that measured ``fps``.

    Drops may skip straight to LOW; upgrades climb one tier per window.
    """
    config = config or QualityConfig()
    if fps < config.low_fps:
        return QualityTier.LOW
    if fps < config.medium_fps:
        return QualityTier.MEDIUM if current is QualityTier.HIGH else current
    if fps > config.upgrade_fps:
        return current.upgraded()
    return current


class QualityController:
    """Sampling-window feedback loop from frame rate to quality tier."""

    def __init__(
        self,
        state: Optional[QualityState] = None,
        config: Optional[QualityConfig] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.state = state or QualityState()
        self.config = config or QualityConfig()
        self.clock = clock or time.monotonic
        self.adaptive = self.config.adaptive

        self._window_start: Optional[float] = None
        self._frames = 0
        self._samples: List[float] = []
        self._dropped = 0
        self._last_frame: Optional[float] = None

        self._fps = self.config.target_fps
        self._frame_time = 1.0 / self.config.target_fps
        self._last_dropped = 0
        self.windows_closed = 0

    @property
    def tier(self) -> QualityTier:
        return self.state.tier

    def _now(self, now: Optional[float]) -> float:
        return self.clock() if now is None else now

    def _start_window(self, now: float) -> None:
        self._window_start = now
        self._frames = 0
        self._samples = []
        self._dropped = 0

    def record_frame(self, now: Optional[float] = None) -> Optional[QualityTier]:
        """Count one rendered frame. Returns the new tier if it changed."""
        now = self._now(now)
        if self._window_start is None:
            # The opening frame only marks t=0 of the first window
            self._start_window(now)
            self._last_frame = now
            return None
        if self._last_frame is not None:
            budget = DROPPED_FRAME_FACTOR / self.config.target_fps
            if now - self._last_frame > budget:
                self._dropped += 1
        self._last_frame = now
        self._frames += 1
        return self.poll(now)

    def observe_fps(self, fps: float, now: Optional[float] = None) -> Optional[QualityTier]:
        """Feed an externally measured frame-rate sample."""
        now = self._now(now)
        if self._window_start is None:
            self._start_window(now)
        self._samples.append(float(fps))
        return self.poll(now)

    def record_dropped_frame(self) -> None:
        self._dropped += 1

    def poll(self, now: Optional[float] = None) -> Optional[QualityTier]:
        """Close the sampling window if its duration has elapsed.

        Nothing is evaluated mid-window. Returns the new tier when the
        closing window caused a transition, else None.
        """
        now = self._now(now)
        if self._window_start is None:
            return None
        elapsed = now - self._window_start
        if elapsed < self.config.sampling_window:
            return None
        return self._close_window(now, elapsed)

    def _close_window(self, now: float, elapsed: float) -> Optional[QualityTier]:
        if self._samples:
            fps = sum(self._samples) / len(self._samples)
        elif self._frames and elapsed > 0:
            fps = self._frames / elapsed
        else:
            self._start_window(now)
            return None

        self._fps = fps
        self._frame_time = 1.0 / fps if fps > 0 else float("inf")
        self._last_dropped = self._dropped
        self.windows_closed += 1
        self._start_window(now)

        if fps < self.config.low_fps:
            logger.warning(f"Low FPS detected: {fps:.1f}")

        if not self.adaptive:
            return None

        previous = self.state.tier
        target = next_tier(previous, fps, self.config)
        if self.state._assign(target, now):
            logger.info(f"Quality tier {previous.value} -> {target.value} at {fps:.1f} fps")
            return target
        return None

    def force_tier(self, tier: QualityTier, now: Optional[float] = None) -> None:
        """Explicit session restart: set the tier and start a fresh window."""
        now = self._now(now)
        self.state._assign(QualityTier(tier), now)
        self._start_window(now)
        self._last_frame = None

    def set_adaptive(self, enabled: bool) -> None:
        self.adaptive = enabled

    def metrics(self, visible_count: int = 0, rendered_count: int = 0) -> FrameMetrics:
        return FrameMetrics(
            fps=self._fps,
            frame_time=self._frame_time,
            dropped_frames=self._last_dropped,
            visible_count=visible_count,
            rendered_count=rendered_count,
        )

    def render_priority(self, distance: int, is_current: bool) -> float:
        """Relative importance of a line; scaled down on lower tiers."""
        priority = 1000.0 if is_current else 0.0
        priority += (10 - distance) * 100.0
        if self.state.tier is QualityTier.LOW:
            priority *= 0.5
        elif self.state.tier is QualityTier.MEDIUM:
            priority *= 0.8
        return priority
