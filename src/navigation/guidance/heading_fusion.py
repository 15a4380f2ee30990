# heading_fusion.py
# Turns raw orientation samples into one smoothed compass heading.
# Call ingest() for every sample, current() whenever a heading is needed.

import logging
import math
from typing import Optional

from .geo_utils import angle_diff_signed, normalize_angle
from .models import OrientationSample
from .nav_config import GuidanceConfig

logger = logging.getLogger(__name__)


def _finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


class HeadingFusion:
    """
    Exponentially smoothed device heading.

    Blending is applied to the signed shortest-path difference between the
    raw and stored heading, so a sequence crossing 359° -> 1° moves the
    estimate by a couple of degrees instead of swinging through 180°.

    Usage:
        fusion = HeadingFusion(config)
        fusion.ingest(OrientationSample(compass_heading=92.0))
        heading = fusion.current()   # None until a sensor reports
    """

    def __init__(self, config: Optional[GuidanceConfig] = None) -> None:
        self.config = config or GuidanceConfig()
        self._smoothed: Optional[float] = None
        self._has_sensor: bool = False

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def has_sensor(self) -> bool:
        return self._has_sensor

    def current(self) -> Optional[float]:
        """Smoothed heading in [0, 360), or None when no sensor has reported."""
        return self._smoothed if self._has_sensor else None

    # ------------------------------------------------------------------
    # Core method — call on every orientation sample
    # ------------------------------------------------------------------

    def ingest(self, sample: OrientationSample) -> None:
        raw = self._raw_heading(sample)
        if raw is None:
            return

        if not self._has_sensor:
            logger.info(f"Heading sensor available (first reading {raw:.1f}°).")
        self._has_sensor = True

        if self._smoothed is None:
            self._smoothed = raw
        else:
            diff = angle_diff_signed(raw, self._smoothed)
            self._smoothed = normalize_angle(self._smoothed + self.config.heading_smoothing * diff)

    @staticmethod
    def _raw_heading(sample: OrientationSample) -> Optional[float]:
        # Compass heading wins; alpha is device-frame and needs the screen offset.
        if _finite(sample.compass_heading):
            return normalize_angle(sample.compass_heading)
        if _finite(sample.alpha):
            screen = sample.screen_angle if _finite(sample.screen_angle) else 0.0
            return normalize_angle(sample.alpha - screen)
        return None
