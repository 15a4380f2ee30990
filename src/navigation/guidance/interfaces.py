# interfaces.py
# Contracts for the collaborators around the guidance engine.
# The engine only talks to these; concrete adapters live elsewhere.

from typing import Any, Callable, Optional, Protocol, Sequence

from .errors import ErrorKind
from .models import Destination, GuidanceUpdate, OrientationSample, PositionError, PositionFix, WatchOptions


class PositionSource(Protocol):
    """Asynchronous stream of position fixes with an explicit cancel."""

    def subscribe(
        self,
        options: WatchOptions,
        on_fix: Callable[[PositionFix], None],
        on_error: Callable[[PositionError], None],
    ) -> Any:
        ...

    def cancel(self, handle: Any) -> None:
        """Must be idempotent."""
        ...


class HeadingSource(Protocol):
    """Orientation samples behind a one-time permission gate."""

    def request_permission(self) -> bool:
        ...

    def subscribe(self, on_sample: Callable[[OrientationSample], None]) -> Any:
        ...

    def cancel(self, handle: Any) -> None:
        ...


class DestinationCatalog(Protocol):
    def list(self) -> Sequence[Destination]:
        ...


class PresentationSink(Protocol):
    """Receives guidance output. All calls are fire-and-forget."""

    def render(self, update: GuidanceUpdate) -> None:
        ...

    def set_visible(self, visible: bool) -> None:
        ...

    def show_arrived(self, name: str) -> None:
        ...

    def show_error(self, message: str, kind: Optional[ErrorKind] = None) -> None:
        ...
