# models.py
# Shared data structures and enums used across all guidance modules.

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union


# ---------------------------------------------------------------------------
# Coordinate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Coord:
    """Immutable geographic coordinate in decimal degrees."""
    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.lat) and math.isfinite(self.lon)):
            raise ValueError(f"Coordinate must be finite: ({self.lat}, {self.lon})")
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude out of range [-90, 90]: {self.lat}")
        if not -180.0 <= self.lon <= 180.0:
            raise ValueError(f"Longitude out of range [-180, 180]: {self.lon}")

    def __str__(self) -> str:
        return f"({self.lat:.6f}, {self.lon:.6f})"


# ---------------------------------------------------------------------------
# Destination
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Destination:
    """A point of interest the user can be guided to."""
    id: Union[int, str]
    name: str
    location: Coord

    def __str__(self) -> str:
        return f"{self.name} #{self.id} {self.location}"


# ---------------------------------------------------------------------------
# Position stream
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PositionFix:
    """One sample from the position source."""
    lat: float
    lon: float
    timestamp: float
    accuracy: Optional[float] = None   # metres, if the source reports it

    @property
    def coord(self) -> Coord:
        return Coord(self.lat, self.lon)


class PositionErrorKind(Enum):
    PERMISSION_DENIED = "permission_denied"
    UNAVAILABLE       = "unavailable"
    TIMEOUT           = "timeout"
    UNKNOWN           = "unknown"


@dataclass(frozen=True)
class PositionError:
    """Error delivered by the position source instead of a fix."""
    kind: PositionErrorKind
    message: str = ""
    final: bool = False                # source will emit no further events


@dataclass(frozen=True)
class WatchOptions:
    """Options handed to PositionSource.subscribe()."""
    high_accuracy: bool = True
    max_staleness_s: float = 1.0
    timeout_s: float = 7.0


# ---------------------------------------------------------------------------
# Orientation stream
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OrientationSample:
    """
    Raw orientation reading.

    compass_heading is a true compass heading (iOS style); alpha is a
    device-frame rotation that must be corrected by the screen rotation.
    """
    compass_heading: Optional[float] = None
    alpha: Optional[float] = None
    screen_angle: float = 0.0


# ---------------------------------------------------------------------------
# Guidance state and output
# ---------------------------------------------------------------------------

class GuidanceState(Enum):
    IDLE            = "idle"
    AWAITING_ORIGIN = "awaiting_origin"
    GUIDING         = "guiding"
    ARRIVED         = "arrived"
    STOPPED         = "stopped"


@dataclass(frozen=True)
class GuidanceUpdate:
    """Emitted to the presentation sink on every accepted position fix."""
    destination_name: str
    distance_m: float
    bearing_deg: float
    target_guide_point: Coord
    yaw_deg: float
    scale: float
    arrived: bool
    message: str
    heading_deg: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "destination": self.destination_name,
            "distance_m": round(self.distance_m, 2),
            "bearing_deg": round(self.bearing_deg, 1),
            "target": {"lat": self.target_guide_point.lat, "lon": self.target_guide_point.lon},
            "yaw_deg": round(self.yaw_deg, 1),
            "scale": round(self.scale, 2),
            "arrived": self.arrived,
            "heading_deg": None if self.heading_deg is None else round(self.heading_deg, 1),
            "message": self.message,
        }
