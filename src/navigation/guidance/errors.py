# errors.py
# Typed guidance errors. Caller-facing operations raise these;
# stream-borne errors are handed to the presentation sink instead.

from enum import Enum
from typing import Optional

from .models import PositionErrorKind


class ErrorKind(Enum):
    NO_DESTINATION       = "no_destination"
    INVALID_TRANSITION   = "invalid_transition"
    ORIGIN_TOO_FAR       = "origin_too_far"
    POSITION_UNAVAILABLE = "position_unavailable"
    STREAM_TERMINATED    = "stream_terminated"


class GuidanceError(Exception):
    """Base class for every error raised or reported by the guidance engine."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NoDestinationSelected(GuidanceError):
    kind = ErrorKind.NO_DESTINATION

    def __init__(self, message: str = "No destination selected.") -> None:
        super().__init__(message)


class InvalidTransition(GuidanceError):
    kind = ErrorKind.INVALID_TRANSITION


class OriginTooFar(GuidanceError):
    """
    The user is outside the acceptance radius of the origin anchor.

    Recoverable: retry start() with recalibrate=True (anchor moves to the
    current fix) or force=True (start anyway).
    """
    kind = ErrorKind.ORIGIN_TOO_FAR

    def __init__(self, distance_m: float, radius_m: float) -> None:
        super().__init__(
            f"You are ~{round(distance_m)} m from the starting point "
            f"(must be within {round(radius_m)} m). Recalibrate here or start anyway."
        )
        self.distance_m = distance_m
        self.radius_m = radius_m


_POSITION_MESSAGES = {
    PositionErrorKind.PERMISSION_DENIED: "Location permission denied. Enable location on your device.",
    PositionErrorKind.UNAVAILABLE:       "Location unavailable. Check your GPS signal.",
    PositionErrorKind.TIMEOUT:           "Timed out waiting for a location fix.",
    PositionErrorKind.UNKNOWN:           "Unknown location error.",
}


class PositionUnavailable(GuidanceError):
    """Recoverable position-source failure; the stream keeps going."""
    kind = ErrorKind.POSITION_UNAVAILABLE

    def __init__(self, source_kind: PositionErrorKind, detail: Optional[str] = None) -> None:
        message = _POSITION_MESSAGES[source_kind]
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.source_kind = source_kind


class StreamTerminated(GuidanceError):
    """The position source will emit nothing more; the session must be restarted."""
    kind = ErrorKind.STREAM_TERMINATED

    def __init__(self, source_kind: PositionErrorKind, detail: Optional[str] = None) -> None:
        message = "Location updates stopped. Start guidance again."
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.source_kind = source_kind
