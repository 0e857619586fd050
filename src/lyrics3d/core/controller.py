"""Per-frame pipeline from subtitle state to renderer records.

One ``tick()`` per rendered frame, in a fixed order:

1. frame timing feeds the quality controller
2. the anchor tracker is updated from the host's reference object
3. the visible window is rebuilt if any of its inputs changed
4. window entries become RenderRecords for the host renderer

Store updates from the scroll/audio driver happen before ``tick()``.
"""

import time
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

from ..utils.logging import OnceLogger, get_logger
from ..utils.performance import FrameTimer
from .anchor import AnchorTracker
from .frustum import Frustum
from .layout import interpolate_placement, material_for
from .models import (
    AnchorVolume,
    FrameMetrics,
    Placement,
    RenderRecord,
    StateSnapshot,
    VisibleWindow,
    WindowEntry,
)
from .quality import QualityConfig, QualityController, QualityState, detect_device_class
from .store import LineStateStore, Lyrics3DConfig
from .visibility import VisibilityWindower, geometry_profile

logger = get_logger(__name__)

FRUSTUM_UNAVAILABLE_KEY = "frustum_unavailable"


class RenderHost(Protocol):
    """What the core needs from the rendering/runtime layer."""

    def current_reference_object_bounds(self) -> Any:
        ...

    def camera_frustum(self) -> Optional[Frustum]:
        ...

    def frame_tick(self) -> float:
        ...


class StaticRenderHost:
    """Minimal host for headless use: fixed reference and frustum."""

    def __init__(
        self,
        reference: Any = None,
        frustum: Optional[Frustum] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.reference = reference
        self.frustum = frustum
        self.timer = FrameTimer(clock)

    def current_reference_object_bounds(self) -> Any:
        return self.reference

    def camera_frustum(self) -> Optional[Frustum]:
        return self.frustum

    def frame_tick(self) -> float:
        return self.timer.tick()


class Lyrics3DController:
    """Runs the layout, occlusion, quality and visibility stages each frame."""

    def __init__(
        self,
        host: RenderHost,
        store: Optional[LineStateStore] = None,
        quality: Optional[QualityController] = None,
        windower: Optional[VisibilityWindower] = None,
        anchor_tracker: Optional[AnchorTracker] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.host = host
        self.clock = clock or time.monotonic
        self.store = store or LineStateStore(clock=self.clock)
        self.quality = quality or QualityController(
            QualityState(self.store.config.quality_tier),
            QualityConfig(target_fps=self.store.config.update_rate),
            clock=self.clock,
        )
        self.windower = windower or VisibilityWindower()
        self.anchor_tracker = anchor_tracker or AnchorTracker()

        self._window: VisibleWindow = ()
        self._window_key: Optional[Tuple[Any, ...]] = None
        self._window_frustum: Optional[Frustum] = None
        self._records: Tuple[RenderRecord, ...] = ()
        self._displayed: Dict[int, Placement] = {}
        self._frustum_log = OnceLogger(logger)
        self.window_recomputes = 0

    @classmethod
    def for_device(
        cls,
        host: RenderHost,
        user_agent: Optional[str] = None,
        clock: Optional[Callable[[], float]] = None,
        **overrides: Any,
    ) -> "Lyrics3DController":
        """Controller seeded from the device-class preset."""
        config = Lyrics3DConfig.for_device(detect_device_class(user_agent), **overrides)
        clock = clock or time.monotonic
        store = LineStateStore(config, clock=clock)
        return cls(host, store=store, clock=clock)

    @property
    def window(self) -> VisibleWindow:
        return self._window

    @property
    def records(self) -> Tuple[RenderRecord, ...]:
        return self._records

    @property
    def anchor(self) -> AnchorVolume:
        return self.anchor_tracker.volume

    def tick(self) -> Tuple[RenderRecord, ...]:
        elapsed = self.host.frame_tick()
        self.quality.record_frame(self.clock())

        reference = self.host.current_reference_object_bounds()
        if reference is None:
            reference = self.store.anchor_reference
        anchor = self.anchor_tracker.update(reference, self.store.anchor_label)

        frustum = self.host.camera_frustum()
        if frustum is None:
            self._frustum_log.log(
                FRUSTUM_UNAVAILABLE_KEY, "Camera frustum unavailable; treating all lines as visible"
            )
        else:
            self._frustum_log.rearm(FRUSTUM_UNAVAILABLE_KEY)

        window_changed = self._refresh_window(anchor, frustum)
        if window_changed or self.store.config.smooth_transitions:
            self._records = self._build_records(elapsed)
        return self._records

    def _frustum_changed(self, frustum: Optional[Frustum]) -> bool:
        if frustum is None or self._window_frustum is None:
            return frustum is not self._window_frustum
        return not frustum.same_as(self._window_frustum)

    def _refresh_window(self, anchor: AnchorVolume, frustum: Optional[Frustum]) -> bool:
        config = self.store.config
        key = (
            self.store.revision,
            config.max_visible,
            config.enable_occlusion,
            self.quality.tier,
            anchor.version,
        )
        if key == self._window_key and not self._frustum_changed(frustum):
            return False

        self._window = self.windower.window(
            self.store.lines,
            self.store.current_index,
            config.max_visible,
            self.quality.tier,
            frustum,
            anchor,
            config.enable_occlusion,
        )
        self._window_key = key
        self._window_frustum = frustum
        self.window_recomputes += 1
        return True

    def _display_placement(self, entry: WindowEntry, elapsed: float) -> Placement:
        target = entry.placement
        if not self.store.config.smooth_transitions:
            return target
        previous = self._displayed.get(entry.line.index)
        if previous is None:
            return target
        return interpolate_placement(previous, target, elapsed)

    def _build_records(self, elapsed: float) -> Tuple[RenderRecord, ...]:
        records = []
        displayed: Dict[int, Placement] = {}
        for entry in self._window:
            placement = self._display_placement(entry, elapsed)
            displayed[entry.line.index] = placement
            factor = entry.occlusion.occlusion_factor
            material = material_for(entry.is_current, placement.opacity, placement.layer)
            records.append(
                RenderRecord(
                    text=entry.line.text,
                    position=placement.position,
                    opacity=placement.opacity * factor,
                    scale=placement.scale,
                    draw_order=entry.occlusion.draw_order,
                    depth_test=entry.occlusion.depth_test,
                    depth_write=entry.occlusion.depth_write,
                    lod_tier=entry.lod_tier,
                    index=entry.line.index,
                    is_current=entry.is_current,
                    color=str(material["color"]),
                    occlusion_factor=factor,
                    geometry=geometry_profile(entry.lod_tier),
                    render_priority=self.quality.render_priority(entry.distance, entry.is_current),
                )
            )
        self._displayed = displayed
        return tuple(records)

    def metrics(self) -> FrameMetrics:
        return self.quality.metrics(
            visible_count=len(self._window), rendered_count=len(self._records)
        )

    def snapshot(self) -> StateSnapshot:
        return self.store.snapshot(self.quality.metrics().fps, self.quality.tier)

    def restart_session(self) -> None:
        """Drop all state and reseed the quality tier from the config."""
        self.store.reset()
        self.anchor_tracker.reset()
        self.quality.force_tier(self.store.config.quality_tier, self.clock())
        self._window = ()
        self._window_key = None
        self._window_frustum = None
        self._records = ()
        self._displayed = {}
