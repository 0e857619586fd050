"""Configuration settings for lyrics3d."""

import os
from typing import Dict, Any

from .exceptions import ConfigError

# Window settings (can be overridden via environment variables)
MAX_VISIBLE_LYRICS = int(os.getenv("LYRICS3D_MAX_VISIBLE", "15"))
UPDATE_RATE = int(os.getenv("LYRICS3D_UPDATE_RATE", "60"))
DEVICE_CLASS = os.getenv("LYRICS3D_DEVICE_CLASS", "")

# Device presets used to seed the initial quality tier
DEVICE_PRESETS: Dict[str, Dict[str, Any]] = {
    "desktop": {
        "max_visible": 15,
        "update_rate": 60,
        "enable_occlusion": True,
        "quality_tier": "high",
    },
    "mobile": {
        "max_visible": 8,
        "update_rate": 30,
        "enable_occlusion": False,
        "quality_tier": "low",
    },
}

# Layout
LEFT_OFFSET = -3.0
RIGHT_OFFSET = 3.0
VERTICAL_SPACING = 1.2
FRONT_DEPTH_OFFSET = -0.5  # toward the camera
BACK_DEPTH_OFFSET = 0.8
OPACITY_FALLOFF = 0.3
CURRENT_LINE_BOOST = 1.2
TRANSITION_SPEED = 3.0

# Text footprint estimate
FONT_SIZE = 0.5
GLYPH_WIDTH_RATIO = 0.6
MIN_TEXT_WIDTH = 2.0
MIN_TEXT_HEIGHT = 0.5
TEXT_DEPTH = 0.1

# Occlusion
BACK_LAYER_PENALTY = 0.7
BACK_OVERLAP_PENALTY = 0.3
FRONT_OVERLAP_PENALTY = 0.9
DISTANCE_PENALTY = 0.2
MIN_DISTANCE_FACTOR = 0.1
DEPTH_PROXIMITY = 0.5  # tunable z-fighting cutoff
DEPTH_PROXIMITY_PENALTY = 0.8
OCCLUDED_THRESHOLD = 0.1
DEPTH_WRITE_MIN_FACTOR = 0.5

# Draw order
FRONT_LAYER_ORDER = 2.0
BACK_LAYER_ORDER = 0.0
DRAW_ORDER_MAX_WINDOW = 10
DISTANCE_ORDER_WEIGHT = 0.1
OCCLUSION_ORDER_WEIGHT = 0.5

# Quality feedback loop
SAMPLING_WINDOW = float(os.getenv("LYRICS3D_SAMPLING_WINDOW", "1.0"))
TARGET_FPS = float(os.getenv("LYRICS3D_TARGET_FPS", "60"))
LOW_FPS_THRESHOLD = 30.0
MEDIUM_FPS_THRESHOLD = 45.0
UPGRADE_FPS_THRESHOLD = 55.0

# Visibility and level of detail
MEDIUM_VISIBILITY_RATIO = 0.7
LOW_VISIBILITY_RATIO = 0.5
FRUSTUM_MARGIN = float(os.getenv("LYRICS3D_FRUSTUM_MARGIN", "0.5"))
LOD_MEDIUM_DISTANCE = 4
LOD_LOW_DISTANCE = 8

# Store gating
SCROLL_TIME_EPSILON = 0.01
SCROLL_VELOCITY_EPSILON = 0.01
AUDIO_SYNC_MIN_INTERVAL = 0.1  # seconds

# Colors
class Colors:
    CURRENT = "#E2E8F0"
    DEFAULT = "#94A3B8"


def validate_config() -> None:
    """Validate configuration values."""
    if MAX_VISIBLE_LYRICS <= 0:
        raise ConfigError("Invalid max visible lyrics")

    if UPDATE_RATE <= 0:
        raise ConfigError("Invalid update rate")

    if SAMPLING_WINDOW <= 0:
        raise ConfigError("Invalid sampling window")

    if TARGET_FPS <= 0:
        raise ConfigError("Invalid target FPS")

    if FRUSTUM_MARGIN < 0:
        raise ConfigError("Invalid frustum margin")

    if DEVICE_CLASS and DEVICE_CLASS not in DEVICE_PRESETS:
        raise ConfigError(f"Unknown device class: {DEVICE_CLASS}")

    if not LOW_FPS_THRESHOLD < MEDIUM_FPS_THRESHOLD < UPGRADE_FPS_THRESHOLD:
        raise ConfigError("FPS thresholds must be increasing")

# Validate config on import
validate_config()


def get_device_preset(device_class: str) -> Dict[str, Any]:
    """
    Return a copy of the preset for a device class.

    Args:
        device_class: "desktop" or "mobile"

    Returns:
        Preset dictionary (max_visible, update_rate, enable_occlusion, quality_tier)

    Raises:
        ConfigError: If the device class is unknown
    """
    key = device_class.lower().strip()
    if key not in DEVICE_PRESETS:
        raise ConfigError(
            f"Unknown device class: {device_class}. "
            f"Use one of: {', '.join(DEVICE_PRESETS.keys())}"
        )
    return dict(DEVICE_PRESETS[key])
