# sim_sources.py
# Stand-in position and heading feeds for the simulator, the console and tests.
# Events are delivered only when step()/push() is called, never from subscribe().

import itertools
import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from .models import OrientationSample, PositionError, PositionFix, WatchOptions

logger = logging.getLogger(__name__)

Event = Union[PositionFix, PositionError]


def fix_at(lat: float, lon: float, accuracy: Optional[float] = 5.0) -> PositionFix:
    """Position fix stamped with the current time."""
    return PositionFix(lat=lat, lon=lon, timestamp=time.time(), accuracy=accuracy)


class ReplayPositionSource:
    """
    Position source fed from a queue of fixes and errors.

    Usage:
        gps = ReplayPositionSource([fix_at(4.661, -74.0597), ...])
        session = GuidanceSession(gps, sink)
        ...
        while gps.step():
            pass
    """

    def __init__(self, events: Iterable[Event] = ()) -> None:
        self._pending: List[Event] = list(events)
        self._subs: Dict[int, Tuple[Callable[[PositionFix], None], Callable[[PositionError], None]]] = {}
        self._ids = itertools.count(1)
        self.subscribe_count = 0
        self.cancel_count = 0
        self.last_options: Optional[WatchOptions] = None

    # ------------------------------------------------------------------
    # PositionSource contract
    # ------------------------------------------------------------------

    def subscribe(
        self,
        options: WatchOptions,
        on_fix: Callable[[PositionFix], None],
        on_error: Callable[[PositionError], None],
    ) -> int:
        handle = next(self._ids)
        self._subs[handle] = (on_fix, on_error)
        self.subscribe_count += 1
        self.last_options = options
        logger.debug(f"Watch #{handle} opened ({options}).")
        return handle

    def cancel(self, handle: Any) -> None:
        if self._subs.pop(handle, None) is not None:
            self.cancel_count += 1
            logger.debug(f"Watch #{handle} cleared.")

    # ------------------------------------------------------------------
    # Driving the feed
    # ------------------------------------------------------------------

    @property
    def active_subscriptions(self) -> int:
        return len(self._subs)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def push(self, event: Event) -> None:
        self._pending.append(event)

    def step(self) -> bool:
        """
        Deliver the next queued event to every open watch.

        Returns:
            False once the queue is empty.
        """
        if not self._pending:
            return False
        event = self._pending.pop(0)
        for on_fix, on_error in list(self._subs.values()):
            if isinstance(event, PositionError):
                on_error(event)
            else:
                on_fix(event)
        return True

    def run(self, interval_s: float = 0.0) -> None:
        """Deliver every queued event, pausing between them."""
        while self.step():
            if interval_s:
                time.sleep(interval_s)


class ManualHeadingSource:
    """Heading source whose samples are pushed by hand."""

    def __init__(self, granted: bool = True) -> None:
        self.granted = granted
        self._subs: Dict[int, Callable[[OrientationSample], None]] = {}
        self._ids = itertools.count(1)

    def request_permission(self) -> bool:
        return self.granted

    def subscribe(self, on_sample: Callable[[OrientationSample], None]) -> int:
        handle = next(self._ids)
        self._subs[handle] = on_sample
        return handle

    def cancel(self, handle: Any) -> None:
        self._subs.pop(handle, None)

    @property
    def active_subscriptions(self) -> int:
        return len(self._subs)

    def push(self, sample: OrientationSample) -> None:
        for on_sample in list(self._subs.values()):
            on_sample(sample)
