# launch_params.py
# Reads the destination id and origin anchor a guidance page is opened with,
# e.g. "?dest=3&origin=4.6610,-74.0597".

import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs

from .models import Coord

logger = logging.getLogger(__name__)

# Leading integer, trailing text ignored: "3abc" -> 3.
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class LaunchParams:
    dest_id: Optional[int] = None
    origin: Optional[Coord] = None


def parse_origin(raw: str) -> Optional[Coord]:
    """'lat,lon' -> Coord, or None if it does not parse."""
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) != 2:
        return None
    try:
        return Coord(float(parts[0]), float(parts[1]))
    except ValueError:
        return None


def parse_launch_query(query: str) -> LaunchParams:
    """
    Parse a URL query string. A leading '?' is allowed.
    dest reads its leading integer, so "3abc" gives 3. Malformed values
    are dropped with a warning instead of failing.
    """
    params = parse_qs(query.lstrip("?"))

    dest_id: Optional[int] = None
    if "dest" in params:
        raw = params["dest"][0]
        match = _LEADING_INT.match(raw)
        if match:
            dest_id = int(match.group(1))
        else:
            logger.warning(f"Ignoring non-numeric dest parameter: {raw!r}")

    origin: Optional[Coord] = None
    if "origin" in params:
        raw = params["origin"][0]
        origin = parse_origin(raw)
        if origin is None:
            logger.warning(f"Ignoring malformed origin parameter: {raw!r}")
        else:
            logger.info(f"Origin anchor from launch parameters: {origin}")

    return LaunchParams(dest_id=dest_id, origin=origin)
