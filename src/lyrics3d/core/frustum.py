"""Camera frustum as a set of inward-facing planes."""

import math
from typing import Any, Iterable

import numpy as np

from ..exceptions import ValidationError
from .models import Vec3


class Frustum:
    """Six normalized planes ``(a, b, c, d)``; a point is inside when
    ``a*x + b*y + c*z + d >= 0`` for every plane."""

    def __init__(self, planes: Any):
        planes = np.asarray(planes, dtype=np.float64)
        if planes.ndim != 2 or planes.shape[1] != 4:
            raise ValidationError(f"Frustum planes must be (N, 4), got {planes.shape}")
        norms = np.linalg.norm(planes[:, :3], axis=1)
        if np.any(norms == 0):
            raise ValidationError("Frustum plane with zero normal")
        self.planes = planes / norms[:, np.newaxis]
        self.planes.setflags(write=False)

    @classmethod
    def from_matrix(cls, matrix: Any) -> "Frustum":
        """Extract planes from a combined projection @ view matrix.

        Uses the column-vector convention (clip = M @ world) with OpenGL clip
        space, i.e. -w <= x, y, z <= w.
        """
        m = np.asarray(matrix, dtype=np.float64)
        if m.shape != (4, 4):
            raise ValidationError(f"Expected a 4x4 matrix, got {m.shape}")
        planes = [
            m[3] + m[0],  # left
            m[3] - m[0],  # right
            m[3] + m[1],  # bottom
            m[3] - m[1],  # top
            m[3] + m[2],  # near
            m[3] - m[2],  # far
        ]
        return cls(planes)

    def contains_point(self, point: Iterable[float], margin: float = 0.0) -> bool:
        """True if the point lies inside, or within ``margin`` of every plane."""
        p = np.append(np.asarray(tuple(point), dtype=np.float64), 1.0)
        return bool(np.all(self.planes @ p >= -margin))

    def same_as(self, other: "Frustum") -> bool:
        return other is self or (
            other is not None and np.array_equal(self.planes, other.planes)
        )


def perspective_matrix(fov_y_degrees: float, aspect: float, near: float, far: float) -> np.ndarray:
    """OpenGL-style perspective projection."""
    f = 1.0 / math.tan(math.radians(fov_y_degrees) / 2.0)
    return np.array(
        [
            [f / aspect, 0.0, 0.0, 0.0],
            [0.0, f, 0.0, 0.0],
            [0.0, 0.0, (far + near) / (near - far), (2.0 * far * near) / (near - far)],
            [0.0, 0.0, -1.0, 0.0],
        ]
    )


def look_at(eye: Iterable[float], target: Iterable[float], up: Iterable[float] = (0.0, 1.0, 0.0)) -> np.ndarray:
    """View matrix for a camera at ``eye`` looking at ``target``."""
    eye_v = np.asarray(tuple(eye), dtype=np.float64)
    forward = np.asarray(tuple(target), dtype=np.float64) - eye_v
    forward /= np.linalg.norm(forward)
    side = np.cross(forward, np.asarray(tuple(up), dtype=np.float64))
    side /= np.linalg.norm(side)
    true_up = np.cross(side, forward)

    view = np.identity(4)
    view[0, :3] = side
    view[1, :3] = true_up
    view[2, :3] = -forward
    view[:3, 3] = -view[:3, :3] @ eye_v
    return view


def camera_frustum(
    eye: Vec3 = Vec3(0.0, 0.0, -10.0),
    target: Vec3 = Vec3(0.0, 0.0, 0.0),
    fov_y_degrees: float = 60.0,
    aspect: float = 16.0 / 9.0,
    near: float = 0.1,
    far: float = 100.0,
) -> Frustum:
    """Frustum of a perspective camera, for hosts without their own.

    The default camera sits on -z looking toward +z, so a smaller z is nearer
    the viewer and FRONT lines come forward of the anchor.
    """
    projection = perspective_matrix(fov_y_degrees, aspect, near, far)
    return Frustum.from_matrix(projection @ look_at(eye, target))
