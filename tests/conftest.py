"""Test configuration and fixtures.

Provides reusable fixtures for:
- A controllable monotonic clock
- Sample lyric line sequences
- Anchor bounds and camera frustums
- A headless render host
"""

import pytest

from lyrics3d.core.anchor import ReferenceBounds
from lyrics3d.core.controller import StaticRenderHost
from lyrics3d.core.frustum import camera_frustum
from lyrics3d.core.models import Vec3
from lyrics3d.core.store import lines_from_texts


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


# =============================================================================
# Basic Fixtures
# =============================================================================


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def nine_lines():
    """Nine evenly timed lines, one second apart."""
    return lines_from_texts([f"line {i}" for i in range(9)])


@pytest.fixture
def long_lines():
    return lines_from_texts([f"lyric number {i}" for i in range(40)], spacing=2.5)


# =============================================================================
# Scene Fixtures
# =============================================================================


@pytest.fixture
def unit_anchor():
    """Anchor centered at the origin with half-extent 0.5 on every axis."""
    return ReferenceBounds(center=Vec3(0.0, 0.0, 0.0), half_extents=Vec3(0.5, 0.5, 0.5))


@pytest.fixture
def wide_frustum():
    """Camera far enough back that every window line is inside."""
    return camera_frustum(eye=Vec3(0.0, 0.0, -40.0), far=200.0)


@pytest.fixture
def host(clock, unit_anchor, wide_frustum):
    return StaticRenderHost(reference=unit_anchor, frustum=wide_frustum, clock=clock)
