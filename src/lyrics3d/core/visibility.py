"""Visible window selection and level-of-detail assignment."""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import (
    FRUSTUM_MARGIN,
    LOD_LOW_DISTANCE,
    LOD_MEDIUM_DISTANCE,
    LOW_VISIBILITY_RATIO,
    MEDIUM_VISIBILITY_RATIO,
)
from ..utils.logging import get_logger
from ..utils.performance import timing_decorator
from ..utils.validation import clamp_index
from .frustum import Frustum
from .layout import LayoutResolver, line_distance
from .models import (
    AnchorVolume,
    GeometryProfile,
    Line,
    LodTier,
    QualityTier,
    VisibleWindow,
    WindowEntry,
)
from .occlusion import OcclusionResolver

logger = get_logger(__name__)


GEOMETRY_PROFILES: Dict[LodTier, GeometryProfile] = {
    LodTier.HIGH: GeometryProfile(
        lod_tier=LodTier.HIGH,
        font_size=0.5,
        curve_segments=64,
        bevel_enabled=True,
        bevel_thickness=0.02,
        bevel_size=0.01,
        bevel_segments=3,
    ),
    LodTier.MEDIUM: GeometryProfile(
        lod_tier=LodTier.MEDIUM,
        font_size=0.4,
        curve_segments=32,
        bevel_enabled=True,
        bevel_thickness=0.01,
        bevel_size=0.005,
        bevel_segments=2,
    ),
    LodTier.LOW: GeometryProfile(
        lod_tier=LodTier.LOW,
        font_size=0.3,
        curve_segments=16,
        bevel_enabled=False,
        bevel_thickness=0.0,
        bevel_size=0.0,
        bevel_segments=1,
    ),
}


@dataclass(frozen=True)
class LodConfig:
    medium_distance: int = LOD_MEDIUM_DISTANCE
    low_distance: int = LOD_LOW_DISTANCE
    medium_visibility_ratio: float = MEDIUM_VISIBILITY_RATIO
    low_visibility_ratio: float = LOW_VISIBILITY_RATIO
    frustum_margin: float = FRUSTUM_MARGIN
    enabled: bool = True


def window_bounds(count: int, current_index: int, max_visible: int) -> Tuple[int, int]:
    """[start, end) slice centered on the current line, clamped at the edges."""
    start = max(0, current_index - max_visible // 2)
    end = min(count, start + max_visible)
    return start, end


def visibility_cutoff(max_visible: int, tier: QualityTier, config: Optional[LodConfig] = None) -> float:
    """Largest distance from the current line that the tier still draws."""
    config = config or LodConfig()
    if tier is QualityTier.LOW:
        return max_visible * config.low_visibility_ratio
    if tier is QualityTier.MEDIUM:
        return max_visible * config.medium_visibility_ratio
    return float(max_visible)


def select_lod(distance: int, tier: QualityTier, config: Optional[LodConfig] = None) -> LodTier:
    """LOD from distance, capped by the global tier.

    The current line never drops below MEDIUM.
    """
    config = config or LodConfig()
    if not config.enabled:
        return LodTier.HIGH

    if distance > config.low_distance:
        lod = LodTier.LOW
    elif distance > config.medium_distance:
        lod = LodTier.MEDIUM
    else:
        lod = LodTier.HIGH

    lod = lod.coarsest(tier)

    if distance == 0 and lod is LodTier.LOW:
        lod = LodTier.MEDIUM
    return lod


def geometry_profile(lod: LodTier) -> GeometryProfile:
    return GEOMETRY_PROFILES[lod]


class VisibilityWindower:
    """Restricts the line sequence to what should be drawn this frame."""

    def __init__(
        self,
        layout: Optional[LayoutResolver] = None,
        occlusion: Optional[OcclusionResolver] = None,
        config: Optional[LodConfig] = None,
    ):
        self.layout = layout or LayoutResolver()
        self.occlusion = occlusion or OcclusionResolver()
        self.config = config or LodConfig()

    def candidates(self, lines: Sequence[Line], current_index: int, max_visible: int) -> Sequence[Line]:
        start, end = window_bounds(len(lines), current_index, max_visible)
        return lines[start:end]

    @timing_decorator
    def window(
        self,
        lines: Sequence[Line],
        current_index: int,
        max_visible: int,
        quality_tier: QualityTier,
        camera_frustum: Optional[Frustum],
        anchor: Optional[AnchorVolume] = None,
        enable_occlusion: bool = True,
    ) -> VisibleWindow:
        """Build the VisibleWindow for one frame.

        Args:
            lines: Full line sequence in index order
            current_index: Current line; clamped into range if stale
            max_visible: Upper bound on the window length
            quality_tier: Global tier, narrows the window and coarsens LOD
            camera_frustum: None while the camera is not ready (everything passes)
            anchor: Anchor snapshot; None or degenerate means no occlusion
            enable_occlusion: False skips the anchor overlap test entirely

        Returns:
            Tuple of WindowEntry in index order, at most max_visible long
        """
        if not lines or max_visible <= 0:
            return ()

        current_index = clamp_index(current_index, len(lines))
        anchor = anchor or AnchorVolume.degenerate()
        cutoff = visibility_cutoff(max_visible, quality_tier, self.config)

        entries: List[WindowEntry] = []
        culled = 0
        for line in self.candidates(lines, current_index, max_visible):
            distance = line_distance(line.index, current_index)
            if distance > cutoff:
                continue

            placement = self.layout.resolve(line.index, current_index, anchor.center)
            if camera_frustum is not None and not camera_frustum.contains_point(
                placement.position, self.config.frustum_margin
            ):
                culled += 1
                continue

            if enable_occlusion:
                occlusion = self.occlusion.resolve(
                    placement, anchor, placement.layer, line.index, current_index, line.text
                )
            else:
                occlusion = self.occlusion.resolve_disabled(
                    placement.layer, line.index, current_index
                )

            entries.append(
                WindowEntry(
                    line=line,
                    distance=distance,
                    placement=placement,
                    occlusion=occlusion,
                    lod_tier=select_lod(distance, quality_tier, self.config),
                )
            )

        if culled:
            logger.debug(f"Frustum culled {culled} line(s) around index {current_index}")
        return tuple(entries)
