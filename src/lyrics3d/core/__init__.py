"""Core layout, occlusion and quality pipeline."""

from .models import (
    AnchorVolume,
    FrameMetrics,
    GeometryProfile,
    Layer,
    Line,
    LodTier,
    OcclusionResult,
    Placement,
    QualityTier,
    RenderRecord,
    StateSnapshot,
    Vec3,
    VisibleWindow,
    WindowEntry,
    ingest_lines,
)
