# guidance_session.py
# State machine that guides a user toward one destination.
# select_destination() -> start() -> position fixes flow in until arrival or stop().

import logging
from typing import Any, Callable, Optional

from .errors import (
    GuidanceError,
    InvalidTransition,
    NoDestinationSelected,
    OriginTooFar,
    PositionUnavailable,
    StreamTerminated,
)
from .geo_utils import (
    angle_diff_signed,
    bearing_degrees,
    destination_point,
    distance_meters,
    format_distance,
    normalize_angle,
    relative_direction,
)
from .heading_fusion import HeadingFusion
from .interfaces import HeadingSource, PositionSource, PresentationSink
from .models import (
    Coord,
    Destination,
    GuidanceState,
    GuidanceUpdate,
    PositionError,
    PositionErrorKind,
    PositionFix,
)
from .nav_config import GuidanceConfig

logger = logging.getLogger(__name__)


class GuidanceSession:
    """
    One live guidance session: destination, origin anchor, position
    subscription and machine state.

    Typical lifecycle:
        session = GuidanceSession(gps, sink, config)
        session.select_destination(library)
        session.start(current_fix)          # may raise OriginTooFar
        ...                                 # fixes arrive via the source
        session.stop()

    At most one position subscription is open at any time; every path out
    of GUIDING (stop, arrival, stream termination, close) cancels it.

    Args:
        position_source: Supplies fixes through subscribe()/cancel().
        sink:            Receives guidance updates.
        config:          Optional GuidanceConfig; defaults to GuidanceConfig().
        heading:         Optional HeadingFusion shared with other sessions.
        origin_anchor:   Starting point the user must be near, if any.
        on_error:        Called with every GuidanceError reported by the stream.
    """

    def __init__(
        self,
        position_source: PositionSource,
        sink: PresentationSink,
        config: Optional[GuidanceConfig] = None,
        heading: Optional[HeadingFusion] = None,
        origin_anchor: Optional[Coord] = None,
        on_error: Optional[Callable[[GuidanceError], None]] = None,
    ) -> None:
        self.config = config or GuidanceConfig()
        self.heading = heading or HeadingFusion(self.config)
        self._source = position_source
        self._sink = sink
        self._on_error = on_error

        self._state: GuidanceState = GuidanceState.IDLE
        self._destination: Optional[Destination] = None
        self._origin_anchor: Optional[Coord] = origin_anchor

        self._handle: Any = None
        self._generation: int = 0
        self._last_bearing: Optional[float] = None
        self._last_update: Optional[GuidanceUpdate] = None
        self._last_error: Optional[GuidanceError] = None

        self._heading_source: Optional[HeadingSource] = None
        self._heading_handle: Any = None

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> GuidanceState:
        return self._state

    @property
    def destination(self) -> Optional[Destination]:
        return self._destination

    @property
    def origin_anchor(self) -> Optional[Coord]:
        return self._origin_anchor

    @property
    def last_update(self) -> Optional[GuidanceUpdate]:
        return self._last_update

    @property
    def last_error(self) -> Optional[GuidanceError]:
        return self._last_error

    @property
    def is_active(self) -> bool:
        return self._state is GuidanceState.GUIDING

    @property
    def _origin_required(self) -> bool:
        return self._origin_anchor is not None or self.config.require_origin

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def select_destination(self, destination: Destination) -> GuidanceState:
        """
        Choose where to go.

        Moves to AWAITING_ORIGIN when an origin check applies, otherwise
        starts guiding right away.

        Raises:
            InvalidTransition: while already guiding.
            PositionUnavailable: the position source could not open a watch.
        """
        if self._state is GuidanceState.GUIDING:
            raise InvalidTransition("Stop guidance before choosing a new destination.")

        self._destination = destination
        self._last_bearing = None
        self._last_update = None
        logger.info(f"Destination selected: {destination}")

        if self._origin_required:
            self._state = GuidanceState.AWAITING_ORIGIN
            return self._state

        self.start()
        return self._state

    def start(
        self,
        current_fix: Optional[PositionFix] = None,
        force: bool = False,
        recalibrate: bool = False,
    ) -> GuidanceState:
        """
        Open the position subscription and begin guiding.

        Args:
            current_fix: The user's position right now, used for the origin check.
            force:       Skip the origin check.
            recalibrate: Move the origin anchor to current_fix before starting.

        Returns:
            The new state (GUIDING, or ARRIVED if the first fix already arrived).

        Raises:
            NoDestinationSelected: no destination set.
            PositionUnavailable:   origin check needs a fix and none was given,
                                   or the position source could not open a watch.
            OriginTooFar:          current_fix is outside the acceptance radius.
        """
        if self._destination is None:
            raise NoDestinationSelected()

        if recalibrate:
            if current_fix is None:
                raise PositionUnavailable(PositionErrorKind.UNAVAILABLE, "a fix is needed to recalibrate")
            self.recalibrate(current_fix)
        elif self._origin_required and not force:
            self._check_origin(current_fix)
        elif force and self._origin_required:
            logger.warning("Origin check skipped (forced start).")

        self._open_subscription()
        return self._state

    def stop(self) -> None:
        """User-triggered exit from GUIDING."""
        if self._state is not GuidanceState.GUIDING:
            raise InvalidTransition(f"Cannot stop guidance while {self._state.value}.")
        self._cancel_subscription()
        self._state = GuidanceState.STOPPED
        self._sink.set_visible(False)
        logger.info("Guidance stopped by user.")

    def recalibrate(self, fix: PositionFix) -> None:
        """Replace the origin anchor with the given fix."""
        self._origin_anchor = fix.coord
        logger.info(f"Origin recalibrated to {self._origin_anchor}")

    def close(self) -> None:
        """Tear down every subscription and discard session data."""
        was_guiding = self._state is GuidanceState.GUIDING
        self._cancel_subscription()
        self.disable_heading()
        if was_guiding:
            self._sink.set_visible(False)
        self._state = GuidanceState.IDLE
        self._destination = None
        self._origin_anchor = None
        logger.debug("Guidance session closed.")

    def __enter__(self) -> "GuidanceSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Heading feed
    # ------------------------------------------------------------------

    def enable_heading(self, source: HeadingSource) -> bool:
        """
        Pass the permission gate and feed orientation samples into fusion.

        Returns:
            False when permission is refused; guidance then keeps the
            world-relative arrow. A different source replaces the current
            feed only once its permission is granted.
        """
        if self._heading_handle is not None and source is self._heading_source:
            return True
        if not source.request_permission():
            logger.warning("Orientation permission not granted; arrow stays world-relative.")
            return False
        self.disable_heading()
        self._heading_source = source
        self._heading_handle = source.subscribe(self.heading.ingest)
        logger.info("Heading feed enabled.")
        return True

    def disable_heading(self) -> None:
        if self._heading_handle is not None:
            self._heading_source.cancel(self._heading_handle)
        self._heading_source = None
        self._heading_handle = None

    # ------------------------------------------------------------------
    # Subscription management
    # ------------------------------------------------------------------

    def _check_origin(self, current_fix: Optional[PositionFix]) -> None:
        if current_fix is None:
            raise PositionUnavailable(PositionErrorKind.UNAVAILABLE, "cannot verify the starting point")

        here = current_fix.coord
        if self._origin_anchor is None:
            self._origin_anchor = here
            logger.info(f"Origin anchored at current position {here}")
            return

        dist = distance_meters(here, self._origin_anchor)
        radius = self.config.origin_accept_radius_m
        if dist > radius:
            logger.warning(f"Start rejected: {dist:.1f} m from origin (limit {radius} m).")
            raise OriginTooFar(dist, radius)

    def _open_subscription(self) -> None:
        # Re-entrant start: the old watch goes before the new one opens.
        self._cancel_subscription()

        previous = self._state
        self._generation += 1
        generation = self._generation
        self._last_error = None
        self._state = GuidanceState.GUIDING
        self._sink.set_visible(True)

        try:
            handle = self._source.subscribe(
                self.config.watch_options(),
                lambda fix: self._handle_fix(generation, fix),
                lambda error: self._handle_error(generation, error),
            )
        except Exception as e:
            # No watch was opened, so GUIDING must not stick.
            self._generation += 1
            self._state = GuidanceState.IDLE if previous is GuidanceState.GUIDING else previous
            self._sink.set_visible(False)
            logger.error(f"Could not open position watch: {e}")
            raise PositionUnavailable(PositionErrorKind.UNAVAILABLE, str(e)) from e

        if self._state is GuidanceState.GUIDING and generation == self._generation:
            self._handle = handle
            logger.info(f"Guiding to {self._destination.name}.")
        else:
            # The source delivered a terminal event from inside subscribe().
            self._source.cancel(handle)

    def _cancel_subscription(self) -> None:
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        self._source.cancel(handle)
        logger.debug("Position subscription cancelled.")

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._state is GuidanceState.GUIDING

    # ------------------------------------------------------------------
    # Stream callbacks
    # ------------------------------------------------------------------

    def _handle_fix(self, generation: int, fix: PositionFix) -> None:
        if not self._is_current(generation):
            logger.debug("Ignoring fix from a cancelled subscription.")
            return

        try:
            here = fix.coord
        except ValueError as e:
            self._report(PositionUnavailable(PositionErrorKind.UNKNOWN, str(e)))
            return

        update = self._build_update(here)
        self._last_update = update
        self._sink.render(update)

        if update.arrived:
            self._arrive()

    def _handle_error(self, generation: int, error: PositionError) -> None:
        if not self._is_current(generation):
            return

        if error.final:
            self._cancel_subscription()
            self._state = GuidanceState.IDLE
            self._sink.set_visible(False)
            self._report(StreamTerminated(error.kind, error.message or None))
        else:
            self._report(PositionUnavailable(error.kind, error.message or None))

    def _report(self, err: GuidanceError) -> None:
        self._last_error = err
        logger.error(f"Guidance error [{err.kind.value}]: {err.message}")
        self._sink.show_error(err.message, err.kind)
        if self._on_error is not None:
            self._on_error(err)

    def _arrive(self) -> None:
        self._cancel_subscription()
        self._state = GuidanceState.ARRIVED
        self._sink.set_visible(False)
        self._sink.show_arrived(self._destination.name)
        logger.info(f"Arrived at {self._destination.name}.")

    # ------------------------------------------------------------------
    # Per-fix math
    # ------------------------------------------------------------------

    def _build_update(self, here: Coord) -> GuidanceUpdate:
        dest = self._destination
        dist = distance_meters(here, dest.location)

        # Bearing is undefined on top of the destination; keep the last one.
        if dist > 0:
            bearing = bearing_degrees(here, dest.location)
            self._last_bearing = bearing
        else:
            bearing = self._last_bearing if self._last_bearing is not None else 0.0

        heading = self.heading.current()
        arrived = dist <= self.config.arrival_threshold_m

        if arrived:
            target = dest.location
        else:
            target = destination_point(here, bearing, self.config.guide_ahead_m)

        return GuidanceUpdate(
            destination_name=dest.name,
            distance_m=dist,
            bearing_deg=bearing,
            target_guide_point=target,
            yaw_deg=self._yaw(bearing, heading),
            scale=self._scale(dist),
            arrived=arrived,
            message=self._message(dest.name, dist, bearing, heading, arrived),
            heading_deg=heading,
        )

    def _yaw(self, bearing: float, heading: Optional[float]) -> float:
        if heading is None:
            # World-relative fallback: no idea which way the device faces.
            return normalize_angle(bearing + self.config.world_yaw_offset_deg)
        return normalize_angle(self.config.yaw_sign * angle_diff_signed(bearing, heading))

    def _scale(self, dist: float) -> float:
        cfg = self.config
        return min(cfg.scale_max, max(cfg.scale_min, dist / cfg.scale_distance_divisor))

    @staticmethod
    def _message(name: str, dist: float, bearing: float, heading: Optional[float], arrived: bool) -> str:
        if arrived:
            return f"You have arrived at {name}."
        text = f"{name}: {format_distance(dist)}, bearing {round(bearing) % 360}°"
        if heading is not None:
            text += f". {relative_direction(bearing, heading)}"
        return text
