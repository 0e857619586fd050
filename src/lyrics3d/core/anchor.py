"""Tracking of the anchor (reference) object's world-space bounds."""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple

import numpy as np

from ..utils.logging import OnceLogger, get_logger
from .models import AnchorVolume, Vec3

logger = get_logger(__name__)

MISSING_ANCHOR_KEY = "missing_anchor"


@dataclass(frozen=True)
class ReferenceBounds:
    """Bounds reported directly by the render host."""

    center: Vec3
    half_extents: Vec3
    version: int = 0

    def world_bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        center = np.asarray(self.center, dtype=np.float64)
        half = np.abs(np.asarray(self.half_extents, dtype=np.float64))
        return center - half, center + half


def bounds_from_vertices(vertices: Any) -> Tuple[np.ndarray, np.ndarray]:
    """Axis-aligned (min, max) corners of an (N, 3) vertex array."""
    points = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
    if points.size == 0:
        zero = np.zeros(3)
        return zero, zero.copy()
    return points.min(axis=0), points.max(axis=0)


class MeshReference:
    """A mesh-backed anchor whose version changes with its transform.

    Stands in for a scene-graph node: holds local vertices plus a uniform
    scale and translation, and bumps ``version`` whenever either changes so
    AnchorTracker knows to recompute.
    """

    def __init__(
        self,
        vertices: Any,
        translation: Iterable[float] = (0.0, 0.0, 0.0),
        scale: float = 1.0,
    ):
        self.vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
        self.translation = np.asarray(tuple(translation), dtype=np.float64)
        self.scale = float(scale)
        self.version = 0

    def set_transform(
        self, translation: Optional[Iterable[float]] = None, scale: Optional[float] = None
    ) -> None:
        if translation is not None:
            self.translation = np.asarray(tuple(translation), dtype=np.float64)
        if scale is not None:
            self.scale = float(scale)
        self.version += 1

    def world_bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        return bounds_from_vertices(self.vertices * self.scale + self.translation)


class AnchorTracker:
    """Owns the current AnchorVolume and recomputes it only on change.

    A change is a different reference object, a different ``version`` on the
    same object, or a different label. Callers only ever see frozen
    AnchorVolume snapshots.
    """

    def __init__(self) -> None:
        self._reference: Any = None
        self._reference_version: Any = None
        self._label = ""
        self._volume = AnchorVolume.degenerate()
        self._revision = 0
        self._missing_log = OnceLogger(logger)
        self.recompute_count = 0

    @property
    def volume(self) -> AnchorVolume:
        return self._volume

    def _is_unchanged(self, reference: Any, label: str) -> bool:
        if label != self._label:
            return False
        if isinstance(reference, ReferenceBounds):
            return reference == self._reference
        return (
            reference is self._reference
            and getattr(reference, "version", None) == self._reference_version
        )

    def update(self, reference: Any, label: Optional[str] = None) -> AnchorVolume:
        """Return the anchor volume for ``reference``, recomputing if it changed.

        ``reference`` may be None (no anchor: degenerate volume, logged once),
        a ReferenceBounds, or any object exposing ``world_bounds()``.
        """
        label = self._label if label is None else label

        if reference is None:
            self._missing_log.log(
                MISSING_ANCHOR_KEY, "No anchor object supplied; occlusion disabled"
            )
            if self._reference is not None:
                self._revision += 1
                self._volume = AnchorVolume.degenerate(version=self._revision)
            self._reference = None
            self._reference_version = None
            self._label = label
            return self._volume

        if self._reference is not None and self._is_unchanged(reference, label):
            return self._volume

        min_corner, max_corner = reference.world_bounds()
        min_corner = np.asarray(min_corner, dtype=np.float64)
        max_corner = np.asarray(max_corner, dtype=np.float64)
        center = (min_corner + max_corner) / 2.0
        half_extents = np.abs(max_corner - min_corner) / 2.0

        self._reference = reference
        self._reference_version = getattr(reference, "version", None)
        self._label = label
        self._revision += 1
        self._volume = AnchorVolume(
            center=Vec3.of(center),
            half_extents=Vec3.of(half_extents),
            version=self._revision,
            label=label,
        )
        self.recompute_count += 1
        self._missing_log.rearm(MISSING_ANCHOR_KEY)
        logger.debug(
            f"Anchor bounds recomputed: center={tuple(round(v, 3) for v in self._volume.center)} "
            f"half_extents={tuple(round(v, 3) for v in self._volume.half_extents)}"
        )
        return self._volume

    def relative_position(self, z: float) -> Tuple[bool, bool, float]:
        """(is_in_front, is_behind, depth distance) of a depth against the anchor."""
        if self._reference is None:
            return False, False, 0.0
        delta = z - self._volume.center.z
        return delta < 0, delta > 0, abs(delta)

    def reset(self) -> None:
        self._reference = None
        self._reference_version = None
        self._label = ""
        self._revision += 1
        self._volume = AnchorVolume.degenerate(version=self._revision)
        self._missing_log.rearm(MISSING_ANCHOR_KEY)
