"""Spatial layout of lyric lines around the anchor object.

Lines alternate left/right by index parity, stack vertically on a ladder
centered on the current line, and cycle through a front-back-back depth
pattern relative to the current line. Everything here is a pure function of
its inputs so callers can memoize freely.
"""

from dataclasses import dataclass, replace
from typing import Dict, NamedTuple, Optional

from ..config import (
    BACK_DEPTH_OFFSET,
    BACK_LAYER_ORDER,
    CURRENT_LINE_BOOST,
    Colors,
    FRONT_DEPTH_OFFSET,
    FRONT_LAYER_ORDER,
    LEFT_OFFSET,
    OPACITY_FALLOFF,
    RIGHT_OFFSET,
    TRANSITION_SPEED,
    VERTICAL_SPACING,
)
from .models import Layer, Placement, Vec3


@dataclass(frozen=True)
class LayoutConfig:
    left_offset: float = LEFT_OFFSET
    right_offset: float = RIGHT_OFFSET
    vertical_spacing: float = VERTICAL_SPACING
    front_depth_offset: float = FRONT_DEPTH_OFFSET
    back_depth_offset: float = BACK_DEPTH_OFFSET
    extra_depth_offset: float = 0.0
    falloff_rate: float = OPACITY_FALLOFF
    current_line_boost: float = CURRENT_LINE_BOOST


class LayerInfo(NamedTuple):
    layer: Layer
    depth_offset: float
    base_order: float


def line_distance(index: int, current_index: int) -> int:
    return abs(index - current_index)


def layer_for(index: int, current_index: int) -> Layer:
    """Front on every third line counting from the current one, else back."""
    if line_distance(index, current_index) % 3 == 0:
        return Layer.FRONT
    return Layer.BACK


def calculate_layer(
    index: int, current_index: int, config: Optional[LayoutConfig] = None
) -> LayerInfo:
    """Layer tag plus its depth offset and base draw order."""
    config = config or LayoutConfig()
    layer = layer_for(index, current_index)
    if layer is Layer.FRONT:
        return LayerInfo(layer, config.front_depth_offset, FRONT_LAYER_ORDER)
    return LayerInfo(layer, config.back_depth_offset, BACK_LAYER_ORDER)


class LayoutResolver:
    """Maps (index, current index, anchor center) to a Placement."""

    def __init__(self, config: Optional[LayoutConfig] = None):
        self.config = config or LayoutConfig()

    def resolve(
        self,
        index: int,
        current_index: int,
        anchor_center: Vec3,
        config: Optional[LayoutConfig] = None,
    ) -> Placement:
        cfg = config or self.config
        distance = line_distance(index, current_index)
        layer_info = calculate_layer(index, current_index, cfg)

        # Parity keeps the left/right reading pattern fixed while scrolling
        x = cfg.left_offset if index % 2 == 0 else cfg.right_offset
        y = (index - current_index) * cfg.vertical_spacing
        z = anchor_center.z + layer_info.depth_offset + cfg.extra_depth_offset

        opacity = max(0.0, 1.0 - distance * cfg.falloff_rate)
        scale = cfg.current_line_boost if distance == 0 else 1.0

        return Placement(
            x=float(x),
            y=float(y),
            z=float(z),
            opacity=min(1.0, opacity),
            scale=scale,
            layer=layer_info.layer,
        )


def _lerp(start: float, end: float, t: float) -> float:
    return start + (end - start) * t


def interpolate_placement(
    current: Placement,
    target: Placement,
    delta_time: float,
    speed: float = TRANSITION_SPEED,
) -> Placement:
    """Move a displayed placement toward its target for smooth scrolling.

    The layer snaps to the target immediately since depth flags are binary.
    """
    t = min(1.0, max(0.0, delta_time * speed))
    return replace(
        target,
        x=_lerp(current.x, target.x, t),
        y=_lerp(current.y, target.y, t),
        z=_lerp(current.z, target.z, t),
        opacity=_lerp(current.opacity, target.opacity, t),
        scale=_lerp(current.scale, target.scale, t),
    )


def material_for(is_current: bool, opacity: float, layer: Layer) -> Dict[str, object]:
    """Material hints handed to the renderer alongside a line."""
    return {
        "color": Colors.CURRENT if is_current else Colors.DEFAULT,
        "opacity": opacity,
        "transparent": True,
        "depth_test": layer is Layer.FRONT,
        "depth_write": layer is Layer.FRONT,
    }
