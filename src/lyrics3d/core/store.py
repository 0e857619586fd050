"""Aggregated subtitle state with epsilon-gated recomputation.

External drivers (scroll handlers, audio clocks) push updates at a much
higher rate than anything visible changes. LineStateStore compares each
update against what it already holds and only recomputes the derived state
(visible slice, current line) when something moved beyond a small epsilon.
"""

import time
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Iterable, Optional, Sequence, Tuple

from ..config import (
    AUDIO_SYNC_MIN_INTERVAL,
    MAX_VISIBLE_LYRICS,
    SCROLL_TIME_EPSILON,
    SCROLL_VELOCITY_EPSILON,
    UPDATE_RATE,
    get_device_preset,
)
from ..utils.logging import get_logger
from ..utils.validation import clamp_index, validate_max_visible, validate_positive
from .models import Line, QualityTier, StateSnapshot, ingest_lines
from .visibility import window_bounds

logger = get_logger(__name__)


@dataclass(frozen=True)
class Lyrics3DConfig:
    """Top-level pipeline settings."""

    max_visible: int = MAX_VISIBLE_LYRICS
    update_rate: int = UPDATE_RATE
    enable_occlusion: bool = True
    quality_tier: QualityTier = QualityTier.HIGH
    smooth_transitions: bool = False

    def __post_init__(self) -> None:
        validate_max_visible(self.max_visible)
        validate_positive(self.update_rate, "update_rate")
        object.__setattr__(self, "quality_tier", QualityTier(self.quality_tier))

    @classmethod
    def for_device(cls, device_class: str, **overrides: Any) -> "Lyrics3DConfig":
        preset = get_device_preset(device_class)
        preset.update(overrides)
        return cls(**preset)


class LineStateStore:
    """Holds the inputs of the pipeline and the state derived from them."""

    def __init__(
        self,
        config: Optional[Lyrics3DConfig] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.config = config or Lyrics3DConfig()
        self.clock = clock or time.monotonic
        self.revision = 0
        self.recompute_count = 0
        self._clear()

    def _clear(self) -> None:
        self._raw_lines: Any = None
        self._lines: Tuple[Line, ...] = ()
        self._requested_index = 0
        self._current_index = 0
        self.scroll_time = 0.0
        self.is_playing = False
        self.scroll_velocity = 0.0
        self.anchor_reference: Any = None
        self.anchor_label = ""
        self.visible_lines: Tuple[Line, ...] = ()
        self.current_line: Optional[Line] = None
        self.last_update_time = self.clock()
        self._last_audio_sync: Optional[float] = None

    @property
    def lines(self) -> Tuple[Line, ...]:
        return self._lines

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def max_visible(self) -> int:
        return self.config.max_visible

    def is_dirty(
        self,
        lines: Any = None,
        current_index: Optional[int] = None,
        scroll_time: Optional[float] = None,
        is_playing: Optional[bool] = None,
        scroll_velocity: Optional[float] = None,
    ) -> bool:
        """True if any supplied field differs from the stored one.

        Line sequences compare by identity; continuous values use epsilons.
        """
        return (
            (lines is not None and lines is not self._raw_lines)
            or (current_index is not None and current_index != self._requested_index)
            or (scroll_time is not None and abs(scroll_time - self.scroll_time) > SCROLL_TIME_EPSILON)
            or (is_playing is not None and is_playing != self.is_playing)
            or (
                scroll_velocity is not None
                and abs(scroll_velocity - self.scroll_velocity) > SCROLL_VELOCITY_EPSILON
            )
        )

    def update(
        self,
        lines: Optional[Iterable[Any]] = None,
        current_index: Optional[int] = None,
        scroll_time: Optional[float] = None,
        is_playing: Optional[bool] = None,
        scroll_velocity: Optional[float] = None,
    ) -> bool:
        """Apply an update from the scroll/audio driver.

        Omitted fields keep their stored value. Returns False, leaving all
        derived state untouched, when nothing changed beyond epsilon.
        """
        if not self.is_dirty(lines, current_index, scroll_time, is_playing, scroll_velocity):
            return False

        if lines is not None and lines is not self._raw_lines:
            self._lines = ingest_lines(lines)
            self._raw_lines = lines
            logger.debug(f"Ingested {len(self._lines)} lines")
        if current_index is not None:
            self._requested_index = current_index
        if scroll_time is not None:
            self.scroll_time = float(scroll_time)
        if is_playing is not None:
            self.is_playing = bool(is_playing)
        if scroll_velocity is not None:
            self.scroll_velocity = float(scroll_velocity)

        self._recompute()
        return True

    def _recompute(self) -> None:
        count = len(self._lines)
        self._current_index = clamp_index(self._requested_index, count)
        start, end = window_bounds(count, self._current_index, self.config.max_visible)
        self.visible_lines = self._lines[start:end]
        self.current_line = self._lines[self._current_index] if count else None
        self.revision += 1
        self.recompute_count += 1
        self.last_update_time = self.clock()

    def set_config(self, **changes: Any) -> bool:
        """Merge config changes; returns False if nothing actually changed."""
        unknown = set(changes) - {f.name for f in fields(Lyrics3DConfig)}
        if unknown:
            raise TypeError(f"Unknown config fields: {', '.join(sorted(unknown))}")
        updated = replace(self.config, **changes)
        if updated == self.config:
            return False
        self.config = updated
        self._recompute()
        return True

    def set_anchor(self, reference: Any, label: Optional[str] = None) -> bool:
        label = self.anchor_label if label is None else label
        if reference is self.anchor_reference and label == self.anchor_label:
            return False
        self.anchor_reference = reference
        self.anchor_label = label
        return True

    def sync_with_audio(self, current_time: float) -> bool:
        """Advance scroll time from the audio clock.

        Updates closer together than AUDIO_SYNC_MIN_INTERVAL are ignored.
        """
        if self._last_audio_sync is None:
            self._last_audio_sync = current_time
            return False
        delta = current_time - self._last_audio_sync
        if abs(delta) < AUDIO_SYNC_MIN_INTERVAL:
            return False
        self._last_audio_sync = current_time
        return self.update(scroll_time=self.scroll_time + delta)

    def index_for_time(self, current_time: float) -> int:
        """Index of the last line (in narrative order) that has started."""
        current = 0
        for line in self._lines:
            if line.time <= current_time:
                current = line.index
        return current

    def reset(self) -> None:
        self._clear()
        self.revision += 1

    def snapshot(self, frame_rate: float, quality_tier: QualityTier) -> StateSnapshot:
        return StateSnapshot(
            timestamp=self.last_update_time,
            current_index=self._current_index,
            scroll_time=self.scroll_time,
            is_playing=self.is_playing,
            frame_rate=frame_rate,
            visible_count=len(self.visible_lines),
            quality_tier=quality_tier,
            current_text=self.current_line.text if self.current_line else None,
        )


def lines_from_texts(texts: Sequence[str], spacing: float = 1.0) -> Tuple[Line, ...]:
    """Evenly timed lines from bare strings, for demos and tests."""
    return ingest_lines((text, i * spacing) for i, text in enumerate(texts))
