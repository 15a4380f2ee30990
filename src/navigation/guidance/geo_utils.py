# geo_utils.py
# Pure mathematical / geographic helper functions.
# No side effects, no state. Degrees in and out, radians only internally.

import math

from .models import Coord


EARTH_RADIUS_M = 6_371_000.0


# ---------------------------------------------------------------------------
# Angles
# ---------------------------------------------------------------------------

def normalize_angle(angle: float) -> float:
    """Wrap any angle in degrees into [0, 360)."""
    result = angle % 360.0
    # -1e-17 % 360 rounds up to exactly 360.0
    if result >= 360.0:
        return 0.0
    return result


def angle_diff_signed(a: float, b: float) -> float:
    """
    Shortest signed difference a - b in degrees, in [-180, 180].

    Positive means ``a`` lies clockwise of ``b``.
    """
    d = normalize_angle(a) - normalize_angle(b)
    if d > 180.0:
        d -= 360.0
    if d < -180.0:
        d += 360.0
    return d


# ---------------------------------------------------------------------------
# Great-circle math
# ---------------------------------------------------------------------------

def distance_meters(a: Coord, b: Coord) -> float:
    """
    Great-circle (haversine) distance between two points in metres.

    Args:
        a, b: Coordinates in decimal degrees.

    Returns:
        Distance in metres. Symmetric, 0 for identical points.
    """
    d_lat = math.radians(b.lat - a.lat)
    d_lon = math.radians(b.lon - a.lon)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat))
        * math.cos(math.radians(b.lat))
        * math.sin(d_lon / 2) ** 2
    )
    # rounding can push h just outside [0, 1] near antipodes
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def bearing_degrees(origin: Coord, target: Coord) -> float:
    """
    Initial great-circle bearing from ``origin`` toward ``target`` in [0, 360).

    Not meaningful when both points are identical; callers must guard.
    """
    rlat1, rlon1 = math.radians(origin.lat), math.radians(origin.lon)
    rlat2, rlon2 = math.radians(target.lat), math.radians(target.lon)
    d_lon = rlon2 - rlon1
    y = math.sin(d_lon) * math.cos(rlat2)
    x = math.cos(rlat1) * math.sin(rlat2) - math.sin(rlat1) * math.cos(rlat2) * math.cos(d_lon)
    return normalize_angle(math.degrees(math.atan2(y, x)))


def destination_point(origin: Coord, bearing_deg: float, distance_m: float) -> Coord:
    """
    Project a point ``distance_m`` metres from ``origin`` along ``bearing_deg``.

    Args:
        origin:      Starting coordinate.
        bearing_deg: Initial bearing in degrees (0 = North, clockwise).
        distance_m:  Distance to travel along the great circle.

    Returns:
        Projected coordinate, longitude normalized to (-180, 180].
    """
    delta = distance_m / EARTH_RADIUS_M
    theta = math.radians(bearing_deg)
    phi1 = math.radians(origin.lat)
    lam1 = math.radians(origin.lon)

    sin_phi2 = math.sin(phi1) * math.cos(delta) + math.cos(phi1) * math.sin(delta) * math.cos(theta)
    phi2 = math.asin(min(1.0, max(-1.0, sin_phi2)))
    lam2 = lam1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(phi1),
        math.cos(delta) - math.sin(phi1) * math.sin(phi2),
    )

    lon = (math.degrees(lam2) + 540.0) % 360.0 - 180.0
    if lon <= -180.0:
        lon = 180.0
    return Coord(math.degrees(phi2), lon)


# ---------------------------------------------------------------------------
# Human-readable helpers
# ---------------------------------------------------------------------------

def relative_direction(bearing_deg: float, heading_deg: float) -> str:
    """
    Spoken cue for where the destination lies relative to the user's facing.

    Args:
        bearing_deg: Bearing to the destination.
        heading_deg: Direction the device is facing.

    Returns:
        Direction cue string.
    """
    diff = angle_diff_signed(bearing_deg, heading_deg)
    if abs(diff) > 150:
        return "Turn around"
    elif diff > 45:
        return "Turn right"
    elif diff > 15:
        return "Bear right"
    elif diff < -45:
        return "Turn left"
    elif diff < -15:
        return "Bear left"
    return "Go straight"


def format_distance(meters: float) -> str:
    """'28 m' below one kilometre, '1.2 km' above."""
    if meters < 1000:
        return f"{int(round(meters))} m"
    return f"{meters / 1000:.1f} km"
