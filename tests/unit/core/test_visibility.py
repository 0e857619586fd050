"""Tests for core/visibility.py."""

import pytest

from lyrics3d.core.frustum import camera_frustum
from lyrics3d.core.models import AnchorVolume, LodTier, QualityTier, Vec3
from lyrics3d.core.visibility import (
    LodConfig,
    VisibilityWindower,
    geometry_profile,
    select_lod,
    visibility_cutoff,
    window_bounds,
)


@pytest.fixture
def windower():
    return VisibilityWindower()


def indices(window):
    return [entry.line.index for entry in window]


class TestWindowBounds:
    def test_centered(self):
        assert window_bounds(9, 4, 5) == (2, 7)

    def test_clamped_at_start(self):
        assert window_bounds(9, 0, 5) == (0, 5)

    def test_clamped_at_end(self):
        assert window_bounds(9, 8, 5) == (6, 9)

    def test_short_sequence(self):
        assert window_bounds(3, 1, 15) == (0, 3)


class TestVisibilityCutoff:
    def test_cutoff_per_tier(self):
        assert visibility_cutoff(10, QualityTier.HIGH) == 10
        assert visibility_cutoff(10, QualityTier.MEDIUM) == pytest.approx(7.0)
        assert visibility_cutoff(10, QualityTier.LOW) == pytest.approx(5.0)


class TestSelectLod:
    @pytest.mark.parametrize(
        "distance, tier, expected",
        [
            (0, QualityTier.HIGH, LodTier.HIGH),
            (4, QualityTier.HIGH, LodTier.HIGH),
            (5, QualityTier.HIGH, LodTier.MEDIUM),
            (9, QualityTier.HIGH, LodTier.LOW),
            (2, QualityTier.MEDIUM, LodTier.MEDIUM),
            (9, QualityTier.MEDIUM, LodTier.LOW),
            (1, QualityTier.LOW, LodTier.LOW),
        ],
    )
    def test_distance_and_tier(self, distance, tier, expected):
        assert select_lod(distance, tier) is expected

    def test_current_line_never_low(self):
        assert select_lod(0, QualityTier.LOW) is LodTier.MEDIUM

    def test_disabled(self):
        assert select_lod(9, QualityTier.LOW, LodConfig(enabled=False)) is LodTier.HIGH

    def test_geometry_profiles_get_coarser(self):
        segments = [geometry_profile(t).curve_segments for t in (LodTier.HIGH, LodTier.MEDIUM, LodTier.LOW)]
        assert segments == [64, 32, 16]
        assert not geometry_profile(LodTier.LOW).bevel_enabled


class TestVisibilityWindower:
    def test_window_is_contiguous_and_bounded(self, windower, long_lines, wide_frustum):
        window = windower.window(long_lines, 20, 15, QualityTier.HIGH, wide_frustum)
        assert indices(window) == list(range(13, 28))
        assert len(window) <= 15

    def test_window_respects_max_visible_everywhere(self, windower, long_lines, wide_frustum):
        for current in range(0, 40, 3):
            for max_visible in (1, 4, 8, 15):
                window = windower.window(long_lines, current, max_visible, QualityTier.HIGH, wide_frustum)
                assert 0 < len(window) <= max_visible
                assert current in indices(window)

    def test_clamped_at_sequence_end(self, windower, nine_lines, wide_frustum):
        window = windower.window(nine_lines, 8, 5, QualityTier.HIGH, wide_frustum)
        assert indices(window) == [6, 7, 8]

    def test_empty_sequence(self, windower, wide_frustum):
        assert windower.window((), 0, 15, QualityTier.HIGH, wide_frustum) == ()

    def test_stale_index_is_clamped(self, windower, nine_lines, wide_frustum):
        window = windower.window(nine_lines, 42, 5, QualityTier.HIGH, wide_frustum)
        current = [entry for entry in window if entry.is_current]
        assert len(current) == 1
        assert current[0].line.index == 8

    def test_tier_cutoff_drops_far_lines(self, long_lines, wide_frustum):
        windower = VisibilityWindower(config=LodConfig(low_visibility_ratio=0.2))
        window = windower.window(long_lines, 20, 15, QualityTier.LOW, wide_frustum)
        assert indices(window) == list(range(17, 24))
        assert all(entry.distance <= 3 for entry in window)

    def test_frustum_culls_off_screen_lines(self, windower, long_lines):
        window = windower.window(long_lines, 20, 15, QualityTier.HIGH, camera_frustum())
        assert 20 in indices(window)
        assert 13 not in indices(window)
        assert 27 not in indices(window)
        assert len(window) < 15

    def test_missing_frustum_fails_open(self, windower, long_lines):
        window = windower.window(long_lines, 20, 15, QualityTier.HIGH, None)
        assert len(window) == 15

    def test_entries_carry_placement_and_lod(self, windower, long_lines, wide_frustum):
        window = windower.window(long_lines, 20, 15, QualityTier.HIGH, wide_frustum)
        by_index = {entry.line.index: entry for entry in window}
        assert by_index[20].placement.scale == pytest.approx(1.2)
        assert by_index[20].lod_tier is LodTier.HIGH
        assert by_index[26].lod_tier is LodTier.MEDIUM
        assert by_index[23].placement.layer.value == "front"

    def test_occlusion_disabled_ignores_anchor(self, windower, nine_lines, wide_frustum):
        anchor = AnchorVolume(center=Vec3(0.0, 0.0, 0.0), half_extents=Vec3(50.0, 50.0, 50.0))
        enabled = windower.window(nine_lines, 4, 9, QualityTier.HIGH, wide_frustum, anchor)
        disabled = windower.window(
            nine_lines, 4, 9, QualityTier.HIGH, wide_frustum, anchor, enable_occlusion=False
        )
        assert enabled[4].occlusion.occlusion_factor < disabled[4].occlusion.occlusion_factor
        assert disabled[4].occlusion.occlusion_factor == 1.0

    def test_pure_for_same_inputs(self, windower, long_lines, wide_frustum):
        first = windower.window(long_lines, 10, 15, QualityTier.MEDIUM, wide_frustum)
        second = windower.window(long_lines, 10, 15, QualityTier.MEDIUM, wide_frustum)
        assert first == second
