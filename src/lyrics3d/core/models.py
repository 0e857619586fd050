"""Data models for the 3D lyrics layout pipeline."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, NamedTuple, Optional, Tuple

import numpy as np

from ..config import OCCLUDED_THRESHOLD
from ..exceptions import ValidationError


class Layer(str, Enum):
    """Cyclic depth classification relative to the current line."""

    FRONT = "front"
    BACK = "back"


class QualityTier(str, Enum):
    """Global rendering fidelity; also used as the per-line LOD tier."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """0 for HIGH, 2 for LOW; larger is coarser."""
        return _TIER_ORDER.index(self)

    def upgraded(self) -> "QualityTier":
        """One tier finer, saturating at HIGH."""
        return _TIER_ORDER[max(0, self.rank - 1)]

    def coarsest(self, other: "QualityTier") -> "QualityTier":
        return self if self.rank >= other.rank else other


_TIER_ORDER = (QualityTier.HIGH, QualityTier.MEDIUM, QualityTier.LOW)

# LOD uses the same three levels as the global tier
LodTier = QualityTier


class Vec3(NamedTuple):
    """Immutable 3D vector."""

    x: float
    y: float
    z: float

    @classmethod
    def of(cls, values: Iterable[float]) -> "Vec3":
        x, y, z = (float(v) for v in values)
        return cls(x, y, z)

    def as_array(self) -> np.ndarray:
        return np.array(self, dtype=np.float64)


ORIGIN = Vec3(0.0, 0.0, 0.0)


@dataclass(frozen=True)
class Line:
    """A single lyric line; immutable once ingested."""

    text: str
    time: float
    index: int

    def validate(self) -> None:
        if self.index < 0:
            raise ValidationError("Line index must be non-negative")
        if self.time < 0:
            raise ValidationError("Line time must be non-negative")


def ingest_lines(raw: Iterable[Any]) -> Tuple[Line, ...]:
    """Build an ordered, re-indexed line sequence.

    Accepts Line objects, ``{"text": ..., "time": ...}`` dicts or
    ``(text, time)`` pairs. The index is the position in the input, which is
    narrative order and not necessarily ``time`` order.
    """
    lines: List[Line] = []
    for position, item in enumerate(raw):
        if isinstance(item, Line):
            text, time = item.text, item.time
        elif isinstance(item, dict):
            if "text" not in item:
                raise ValidationError(f"Line {position} is missing 'text'")
            text, time = item["text"], item.get("time", 0.0)
        else:
            try:
                text, time = item
            except (TypeError, ValueError):
                raise ValidationError(f"Cannot interpret line {position}: {item!r}")
        line = Line(text=str(text), time=float(time), index=position)
        line.validate()
        lines.append(line)
    return tuple(lines)


@dataclass(frozen=True)
class Placement:
    """Where and how strongly a line is drawn this frame."""

    x: float
    y: float
    z: float
    opacity: float
    scale: float
    layer: Layer

    @property
    def position(self) -> Vec3:
        return Vec3(self.x, self.y, self.z)


@dataclass(frozen=True)
class AnchorVolume:
    """Read-only snapshot of the anchor object's world-space bounds."""

    center: Vec3
    half_extents: Vec3
    version: int = 0
    label: str = ""

    @classmethod
    def degenerate(cls, version: int = 0) -> "AnchorVolume":
        return cls(center=ORIGIN, half_extents=ORIGIN, version=version)

    @property
    def is_degenerate(self) -> bool:
        return not any(self.half_extents)

    @property
    def min_corner(self) -> Vec3:
        return Vec3.of(self.center.as_array() - self.half_extents.as_array())

    @property
    def max_corner(self) -> Vec3:
        return Vec3.of(self.center.as_array() + self.half_extents.as_array())

    @property
    def size(self) -> Vec3:
        return Vec3.of(self.half_extents.as_array() * 2.0)


@dataclass(frozen=True)
class OcclusionResult:
    """Occlusion factor (1.0 = fully visible) and draw-state flags."""

    occlusion_factor: float
    draw_order: float
    depth_test: bool
    depth_write: bool

    @property
    def is_occluded(self) -> bool:
        return self.occlusion_factor < OCCLUDED_THRESHOLD


@dataclass(frozen=True)
class GeometryProfile:
    """Text mesh fidelity settings for one LOD tier."""

    lod_tier: LodTier
    font_size: float
    curve_segments: int
    bevel_enabled: bool
    bevel_thickness: float
    bevel_size: float
    bevel_segments: int


@dataclass(frozen=True)
class WindowEntry:
    line: Line
    distance: int
    placement: Placement
    occlusion: OcclusionResult
    lod_tier: LodTier

    @property
    def is_current(self) -> bool:
        return self.distance == 0


VisibleWindow = Tuple[WindowEntry, ...]


@dataclass(frozen=True)
class RenderRecord:
    """Everything the renderer needs to draw one line."""

    text: str
    position: Vec3
    opacity: float
    scale: float
    draw_order: float
    depth_test: bool
    depth_write: bool
    lod_tier: LodTier
    index: int = 0
    is_current: bool = False
    color: str = ""
    occlusion_factor: float = 1.0
    geometry: Optional[GeometryProfile] = None
    render_priority: float = 0.0


@dataclass(frozen=True)
class FrameMetrics:
    fps: float
    frame_time: float  # seconds per frame over the last window
    dropped_frames: int
    visible_count: int = 0
    rendered_count: int = 0


@dataclass(frozen=True)
class StateSnapshot:
    """Point-in-time summary of the pipeline, for debugging overlays."""

    timestamp: float
    current_index: int
    scroll_time: float
    is_playing: bool
    frame_rate: float
    visible_count: int
    quality_tier: QualityTier
    current_text: Optional[str] = None
