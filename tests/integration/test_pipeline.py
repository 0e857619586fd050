"""End-to-end tests of the per-frame controller."""

import logging

import pytest

import lyrics3d.config as config
from lyrics3d.config import Colors
from lyrics3d.core.anchor import ReferenceBounds
from lyrics3d.core.controller import Lyrics3DController, StaticRenderHost
from lyrics3d.core.models import QualityTier, Vec3
from lyrics3d.core.store import LineStateStore, Lyrics3DConfig

IPHONE = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15"


@pytest.fixture
def controller(host, clock, nine_lines):
    store = LineStateStore(Lyrics3DConfig(max_visible=5), clock=clock)
    store.update(lines=nine_lines, current_index=4)
    return Lyrics3DController(host, store=store, clock=clock)


def by_index(records):
    return {record.index: record for record in records}


class TestTick:
    def test_records_follow_window(self, controller):
        records = controller.tick()
        assert [r.index for r in records] == [2, 3, 4, 5, 6]
        current = by_index(records)[4]
        assert current.is_current
        assert current.color == Colors.CURRENT
        assert current.scale == pytest.approx(1.2)
        assert by_index(records)[5].color == Colors.DEFAULT

    def test_record_opacity_includes_occlusion(self, controller):
        records = by_index(controller.tick())
        assert records[4].opacity == pytest.approx(1.0)
        # Back layer, one line away: 0.7 falloff times 0.7 * 0.8 occlusion
        assert records[5].occlusion_factor == pytest.approx(0.56)
        assert records[5].opacity == pytest.approx(0.7 * 0.56)
        assert records[5].depth_test is False

    def test_records_carry_render_priority(self, controller):
        records = by_index(controller.tick())
        assert records[4].render_priority == pytest.approx(2000.0)
        assert records[4].render_priority == max(r.render_priority for r in records.values())
        assert records[5].render_priority > records[6].render_priority

    def test_idle_ticks_reuse_window(self, controller, clock):
        first = controller.tick()
        clock.advance(1 / 60)
        second = controller.tick()
        assert second is first
        assert controller.window_recomputes == 1

    def test_rapid_index_jumps_settle_on_last(self, controller, clock):
        controller.tick()
        controller.store.update(current_index=6)
        clock.advance(0.02)
        controller.store.update(current_index=7)
        clock.advance(0.02)
        records = controller.tick()
        assert [r.is_current for r in records].count(True) == 1
        assert by_index(records)[7].is_current
        assert controller.window_recomputes == 2

    def test_tier_change_rebuilds_window(self, controller, clock):
        controller.tick()
        controller.quality.force_tier(QualityTier.LOW)
        records = controller.tick()
        assert controller.window_recomputes == 2
        assert by_index(records)[4].lod_tier is QualityTier.MEDIUM
        assert by_index(records)[2].lod_tier is QualityTier.LOW

    def test_anchor_move_rebuilds_window(self, controller, host):
        controller.tick()
        version = controller.anchor.version
        host.reference = ReferenceBounds(center=Vec3(0.0, 0.0, -2.0), half_extents=Vec3(0.5, 0.5, 0.5))
        controller.tick()
        assert controller.anchor.version > version
        assert controller.anchor.center.z == pytest.approx(-2.0)
        assert controller.window_recomputes == 2

    def test_occlusion_toggle(self, controller):
        controller.tick()
        controller.store.set_config(enable_occlusion=False)
        records = by_index(controller.tick())
        assert all(r.occlusion_factor == 1.0 for r in records.values())


class TestDegradedHost:
    def test_missing_anchor(self, clock, wide_frustum, nine_lines, caplog):
        host = StaticRenderHost(reference=None, frustum=wide_frustum, clock=clock)
        controller = Lyrics3DController(host, clock=clock)
        controller.store.update(lines=nine_lines, current_index=0)
        with caplog.at_level(logging.INFO, logger="lyrics3d"):
            for _ in range(5):
                records = controller.tick()
        assert controller.anchor.is_degenerate
        assert all(r.occlusion_factor == 1.0 for r in records)
        messages = [r.getMessage() for r in caplog.records if "No anchor" in r.getMessage()]
        assert len(messages) == 1

    def test_store_anchor_fallback(self, clock, wide_frustum, nine_lines, unit_anchor):
        host = StaticRenderHost(reference=None, frustum=wide_frustum, clock=clock)
        controller = Lyrics3DController(host, clock=clock)
        controller.store.update(lines=nine_lines, current_index=0)
        controller.store.set_anchor(unit_anchor, "sculpture")
        controller.tick()
        assert not controller.anchor.is_degenerate
        assert controller.anchor.label == "sculpture"

    def test_missing_frustum_renders_everything(self, clock, unit_anchor, long_lines, caplog):
        host = StaticRenderHost(reference=unit_anchor, frustum=None, clock=clock)
        controller = Lyrics3DController(host, clock=clock)
        controller.store.update(lines=long_lines, current_index=20)
        with caplog.at_level(logging.INFO, logger="lyrics3d"):
            controller.tick()
            controller.tick()
        assert len(controller.records) == 15
        unavailable = [r for r in caplog.records if "frustum unavailable" in r.getMessage()]
        assert len(unavailable) == 1

    def test_empty_lines(self, host, clock):
        controller = Lyrics3DController(host, clock=clock)
        assert controller.tick() == ()
        assert controller.metrics().rendered_count == 0


class TestSession:
    def test_smooth_transitions_interpolate(self, controller, clock):
        controller.store.set_config(smooth_transitions=True)
        controller.tick()
        controller.store.update(current_index=5)
        clock.advance(0.1)
        moved = by_index(controller.tick())[4]
        # Line 4 heads from y=0 toward y=-1.2, 30% of the way after 0.1s
        assert moved.position.y == pytest.approx(-0.36)
        clock.advance(1.0)
        settled = by_index(controller.tick())[4]
        assert settled.position.y == pytest.approx(-1.2)

    def test_snapshot_and_metrics(self, controller):
        controller.tick()
        snapshot = controller.snapshot()
        assert snapshot.current_index == 4
        assert snapshot.quality_tier is QualityTier.HIGH
        metrics = controller.metrics()
        assert metrics.visible_count == 5
        assert metrics.rendered_count == 5

    def test_restart_session(self, controller):
        controller.tick()
        controller.quality.force_tier(QualityTier.LOW)
        controller.restart_session()
        assert controller.records == ()
        assert controller.store.lines == ()
        assert controller.quality.tier is QualityTier.HIGH
        assert controller.anchor.is_degenerate

    def test_for_device_mobile(self, host, clock, monkeypatch):
        monkeypatch.setattr(config, "DEVICE_CLASS", "")
        controller = Lyrics3DController.for_device(host, IPHONE, clock=clock)
        assert controller.store.config.max_visible == 8
        assert controller.store.config.enable_occlusion is False
        assert controller.quality.tier is QualityTier.LOW
        assert controller.quality.config.target_fps == 30

    def test_update_rate_sets_frame_budget(self, host, clock):
        store = LineStateStore(Lyrics3DConfig(update_rate=30), clock=clock)
        controller = Lyrics3DController(host, store=store, clock=clock)
        controller.tick()
        clock.advance(0.05)  # within 2/30 s but over 2/60 s
        controller.tick()
        assert controller.quality.config.target_fps == 30
        clock.advance(1.0)
        controller.tick()
        assert controller.metrics().dropped_frames == 1
