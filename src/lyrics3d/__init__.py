"""lyrics3d - spatial layout and occlusion control for scrolling 3D lyrics."""

__version__ = "0.1.0"

from .core.anchor import AnchorTracker, MeshReference, ReferenceBounds
from .core.controller import Lyrics3DController, RenderHost, StaticRenderHost
from .core.frustum import Frustum, camera_frustum
from .core.layout import LayoutConfig, LayoutResolver
from .core.models import (
    AnchorVolume,
    Layer,
    Line,
    LodTier,
    OcclusionResult,
    Placement,
    QualityTier,
    RenderRecord,
    Vec3,
    WindowEntry,
    ingest_lines,
)
from .core.occlusion import OcclusionConfig, OcclusionResolver
from .core.quality import QualityConfig, QualityController, QualityState
from .core.store import LineStateStore, Lyrics3DConfig
from .core.visibility import LodConfig, VisibilityWindower
from .exceptions import ConfigError, Lyrics3DError, ValidationError

__all__ = [
    "__version__",
    "AnchorTracker",
    "AnchorVolume",
    "ConfigError",
    "Frustum",
    "Layer",
    "LayoutConfig",
    "LayoutResolver",
    "Line",
    "LineStateStore",
    "LodConfig",
    "LodTier",
    "Lyrics3DConfig",
    "Lyrics3DController",
    "Lyrics3DError",
    "MeshReference",
    "OcclusionConfig",
    "OcclusionResolver",
    "OcclusionResult",
    "Placement",
    "QualityConfig",
    "QualityController",
    "QualityState",
    "QualityTier",
    "ReferenceBounds",
    "RenderHost",
    "RenderRecord",
    "StaticRenderHost",
    "Vec3",
    "VisibilityWindower",
    "WindowEntry",
    "camera_frustum",
    "ingest_lines",
    "ValidationError",
]
