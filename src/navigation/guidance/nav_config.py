# nav_config.py
# All tuneable constants in one place.
# Pass a GuidanceConfig instance to every module that needs settings.

from dataclasses import dataclass

from .models import WatchOptions


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

ARRIVAL_THRESHOLD_M: float = 4.0
GUIDE_AHEAD_M: float = 6.0
ORIGIN_ACCEPT_RADIUS_M: float = 12.0
HEADING_SMOOTHING: float = 0.12


# ---------------------------------------------------------------------------
# Main config
# ---------------------------------------------------------------------------

@dataclass
class GuidanceConfig:
    # Arrival / origin
    arrival_threshold_m: float = ARRIVAL_THRESHOLD_M
    origin_accept_radius_m: float = ORIGIN_ACCEPT_RADIUS_M
    require_origin: bool = False           # calibrate against an origin even with no anchor set

    # Indicator placement
    guide_ahead_m: float = GUIDE_AHEAD_M
    yaw_sign: int = -1                     # flip to +1 if the arrow model points the other way
    world_yaw_offset_deg: float = 180.0    # used when no device heading is available
    scale_distance_divisor: float = 30.0
    scale_min: float = 0.8
    scale_max: float = 3.0

    # Heading fusion
    heading_smoothing: float = HEADING_SMOOTHING

    # Position watch
    high_accuracy: bool = True
    max_staleness_s: float = 1.0
    timeout_s: float = 7.0

    def __post_init__(self) -> None:
        for name in ("arrival_threshold_m", "origin_accept_radius_m", "guide_ahead_m",
                     "max_staleness_s", "timeout_s"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if not 0.0 < self.heading_smoothing <= 1.0:
            raise ValueError(f"heading_smoothing must be in (0, 1], got {self.heading_smoothing}")
        if self.yaw_sign not in (-1, 1):
            raise ValueError(f"yaw_sign must be -1 or 1, got {self.yaw_sign}")
        if self.scale_distance_divisor <= 0:
            raise ValueError("scale_distance_divisor must be > 0")
        if self.scale_min > self.scale_max:
            raise ValueError("scale_min must not exceed scale_max")

    def watch_options(self) -> WatchOptions:
        return WatchOptions(
            high_accuracy=self.high_accuracy,
            max_staleness_s=self.max_staleness_s,
            timeout_s=self.timeout_s,
        )
