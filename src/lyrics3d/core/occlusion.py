"""Occlusion of lyric lines by the anchor object.

The line footprint is approximated by an axis-aligned box and tested against
the anchor's box. The resulting factor attenuates visibility (1.0 = fully
visible, 0.0 = fully hidden) and feeds the draw order so that lines close to
the current one and less occluded are drawn last, on top.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ..config import (
    BACK_LAYER_ORDER,
    BACK_LAYER_PENALTY,
    BACK_OVERLAP_PENALTY,
    DEPTH_PROXIMITY,
    DEPTH_PROXIMITY_PENALTY,
    DEPTH_WRITE_MIN_FACTOR,
    DISTANCE_ORDER_WEIGHT,
    DISTANCE_PENALTY,
    DRAW_ORDER_MAX_WINDOW,
    FONT_SIZE,
    FRONT_LAYER_ORDER,
    FRONT_OVERLAP_PENALTY,
    GLYPH_WIDTH_RATIO,
    MIN_DISTANCE_FACTOR,
    MIN_TEXT_HEIGHT,
    MIN_TEXT_WIDTH,
    OCCLUSION_ORDER_WEIGHT,
    TEXT_DEPTH,
)
from ..utils.validation import validate_unit_interval
from .models import AnchorVolume, Layer, OcclusionResult, Placement

Box = Tuple[np.ndarray, np.ndarray]


@dataclass(frozen=True)
class OcclusionConfig:
    font_size: float = FONT_SIZE
    glyph_width_ratio: float = GLYPH_WIDTH_RATIO
    min_text_width: float = MIN_TEXT_WIDTH
    min_text_height: float = MIN_TEXT_HEIGHT
    text_depth: float = TEXT_DEPTH
    back_layer_penalty: float = BACK_LAYER_PENALTY
    back_overlap_penalty: float = BACK_OVERLAP_PENALTY
    front_overlap_penalty: float = FRONT_OVERLAP_PENALTY
    distance_penalty: float = DISTANCE_PENALTY
    min_distance_factor: float = MIN_DISTANCE_FACTOR
    depth_proximity: float = DEPTH_PROXIMITY
    depth_proximity_penalty: float = DEPTH_PROXIMITY_PENALTY
    depth_write_min_factor: float = DEPTH_WRITE_MIN_FACTOR
    max_window: int = DRAW_ORDER_MAX_WINDOW
    distance_weight: float = DISTANCE_ORDER_WEIGHT
    occlusion_weight: float = OCCLUSION_ORDER_WEIGHT
    front_layer_order: float = FRONT_LAYER_ORDER
    back_layer_order: float = BACK_LAYER_ORDER

    def __post_init__(self) -> None:
        for name in (
            "back_layer_penalty",
            "back_overlap_penalty",
            "front_overlap_penalty",
            "min_distance_factor",
            "depth_proximity_penalty",
            "depth_write_min_factor",
        ):
            validate_unit_interval(getattr(self, name), name)


def estimate_text_bounds(
    placement: Placement, text: str = "", config: Optional[OcclusionConfig] = None
) -> Box:
    """Conservative axis-aligned box around a placed line.

    Width is estimated from character count and font size, never below the
    configured minimum, so the box errs on the large side.
    """
    config = config or OcclusionConfig()
    width = max(config.min_text_width, len(text) * config.font_size * config.glyph_width_ratio)
    height = max(config.min_text_height, config.font_size)
    half = np.array([width, height, config.text_depth]) * placement.scale / 2.0
    center = np.array([placement.x, placement.y, placement.z], dtype=np.float64)
    return center - half, center + half


def boxes_overlap(first: Box, second: Box) -> bool:
    """Closed-interval overlap test on all three axes (touching counts)."""
    first_min, first_max = first
    second_min, second_max = second
    return bool(np.all(first_max >= second_min) and np.all(second_max >= first_min))


def anchor_box(anchor: AnchorVolume) -> Box:
    center = anchor.center.as_array()
    half = anchor.half_extents.as_array()
    return center - half, center + half


class OcclusionResolver:
    """Computes occlusion factor, draw order and depth flags for a line."""

    def __init__(self, config: Optional[OcclusionConfig] = None):
        self.config = config or OcclusionConfig()

    def _layer_order(self, layer: Layer) -> float:
        if layer is Layer.FRONT:
            return self.config.front_layer_order
        return self.config.back_layer_order

    def draw_order(self, layer: Layer, distance: int, occlusion_factor: float) -> float:
        cfg = self.config
        return (
            self._layer_order(layer)
            + (cfg.max_window - distance) * cfg.distance_weight
            + occlusion_factor * cfg.occlusion_weight
        )

    def occlusion_factor(
        self,
        placement: Placement,
        anchor: AnchorVolume,
        layer: Layer,
        distance: int,
        overlaps: bool,
    ) -> float:
        cfg = self.config
        factor = 1.0

        # Behind the subject reads as muted even without overlap
        if layer is Layer.BACK:
            factor *= cfg.back_layer_penalty

        if overlaps:
            if layer is Layer.FRONT:
                factor *= cfg.front_overlap_penalty
            else:
                factor *= cfg.back_overlap_penalty

        factor *= max(cfg.min_distance_factor, 1.0 - distance * cfg.distance_penalty)

        # Near-coplanar with the anchor: likely z-fighting at render time
        if abs(placement.z - anchor.center.z) < cfg.depth_proximity:
            factor *= cfg.depth_proximity_penalty

        return min(1.0, max(0.0, factor))

    def _result(self, layer: Layer, distance: int, factor: float) -> OcclusionResult:
        is_front = layer is Layer.FRONT
        return OcclusionResult(
            occlusion_factor=factor,
            draw_order=self.draw_order(layer, distance, factor),
            depth_test=is_front,
            depth_write=is_front and factor > self.config.depth_write_min_factor,
        )

    def resolve(
        self,
        placement: Placement,
        anchor: Optional[AnchorVolume],
        layer: Layer,
        index: int,
        current_index: int,
        text: str = "",
    ) -> OcclusionResult:
        distance = abs(index - current_index)

        # Degenerate anchor: nothing can occlude
        if anchor is None or anchor.is_degenerate:
            return self._result(layer, distance, 1.0)

        overlaps = boxes_overlap(
            estimate_text_bounds(placement, text, self.config), anchor_box(anchor)
        )
        factor = self.occlusion_factor(placement, anchor, layer, distance, overlaps)
        return self._result(layer, distance, factor)

    def resolve_disabled(self, layer: Layer, index: int, current_index: int) -> OcclusionResult:
        """Result used when occlusion is switched off (e.g. mobile preset)."""
        return self._result(layer, abs(index - current_index), 1.0)
