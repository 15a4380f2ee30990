# console_sink.py
# Presentation sink that writes guidance to the terminal.
# Stands in for the AR overlay when running the simulator or the console.

import logging
from typing import Optional

from .errors import ErrorKind
from .models import GuidanceUpdate

logger = logging.getLogger(__name__)


class ConsoleSink:
    """Prints every update; also logs the structured payload at DEBUG."""

    def __init__(self, prefix: str = "[Nav]") -> None:
        self.prefix = prefix
        self.visible = False

    def render(self, update: GuidanceUpdate) -> None:
        logger.debug(f"Guidance update: {update.to_dict()}")
        if update.arrived:
            return
        print(
            f"{self.prefix} {update.message} "
            f"| arrow yaw {update.yaw_deg:.0f}° scale {update.scale:.2f} "
            f"at {update.target_guide_point}"
        )

    def set_visible(self, visible: bool) -> None:
        if visible != self.visible:
            logger.debug(f"Indicator {'shown' if visible else 'hidden'}.")
        self.visible = visible

    def show_arrived(self, name: str) -> None:
        print(f"{self.prefix} You have arrived at {name}.")

    def show_error(self, message: str, kind: Optional[ErrorKind] = None) -> None:
        tag = kind.value if kind else "error"
        print(f"{self.prefix} ⚠ {message} [{tag}]")
