# catalog.py
# Destination lookup on top of whatever catalog the host provides.
# Records arrive as plain dicts; field names follow the catalog's contract.
#
# Usage:
#   catalog = StaticCatalog(records)
#   dest = resolve_destination(catalog, "3")           # by id
#   dest = resolve_destination(catalog, "Biblioteca")  # by name
#   nearest = catalog.find_nearest(Coord(4.661, -74.0597))

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .geo_utils import distance_meters
from .interfaces import DestinationCatalog
from .models import Coord, Destination

logger = logging.getLogger(__name__)


# Accepted spellings for each field, first match wins.
FIELD_ALIASES: Dict[str, Sequence[str]] = {
    "id":   ("id", "ID"),
    "name": ("name", "Nombre", "nombre"),
    "lat":  ("lat", "latitude", "Latitud", "latitud"),
    "lon":  ("lon", "lng", "longitude", "Longitud", "longitud"),
}


@dataclass
class NearbyDestination:
    """A destination together with its distance from a query point."""
    destination: Destination
    distance_m: float

    def __str__(self) -> str:
        return f"{self.destination.name} — {int(self.distance_m)} m away"


def _field(record: Mapping[str, Any], key: str) -> Any:
    for alias in FIELD_ALIASES[key]:
        if alias in record and record[alias] is not None:
            return record[alias]
    raise ValueError(f"Destination record missing '{key}': {dict(record)}")


def match_id(items: Iterable[Destination], ref: Union[int, str]) -> Optional[Destination]:
    """First destination whose id equals ``ref`` compared as text."""
    key = str(ref).strip()
    for dest in items:
        if str(dest.id) == key:
            return dest
    return None


def match_name(items: Iterable[Destination], name: str) -> Optional[Destination]:
    """First destination whose name equals ``name`` ignoring case."""
    key = name.strip().casefold()
    for dest in items:
        if dest.name.casefold() == key:
            return dest
    return None


def destination_from_record(record: Mapping[str, Any]) -> Destination:
    """Convert one catalog record into a Destination."""
    try:
        lat = float(_field(record, "lat"))
        lon = float(_field(record, "lon"))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Bad coordinates in destination record: {e}") from e
    return Destination(
        id=_field(record, "id"),
        name=str(_field(record, "name")),
        location=Coord(lat, lon),
    )


class StaticCatalog:
    """
    In-memory destination catalog.

    Args:
        records: Destination objects or raw catalog dicts.
    """

    def __init__(self, records: Iterable[Union[Destination, Mapping[str, Any]]]) -> None:
        self._items: List[Destination] = []
        for rec in records:
            if isinstance(rec, Destination):
                self._items.append(rec)
            else:
                self._items.append(destination_from_record(rec))
        logger.debug(f"Catalog holds {len(self._items)} destinations.")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def list(self) -> List[Destination]:
        return list(self._items)

    def find_by_id(self, dest_id: Union[int, str]) -> Optional[Destination]:
        return match_id(self._items, dest_id)

    def find_by_name(self, name: str) -> Optional[Destination]:
        return match_name(self._items, name)

    def find_nearest(
        self,
        position: Coord,
        max_results: int = 1,
        radius_m: Optional[float] = None,
    ) -> List[NearbyDestination]:
        """
        Destinations sorted by distance from ``position``.

        Args:
            position:    Query point.
            max_results: How many to return.
            radius_m:    Only include destinations within this distance (None = any).
        """
        results: List[NearbyDestination] = []
        for dest in self._items:
            dist = distance_meters(position, dest.location)
            if radius_m is not None and dist > radius_m:
                continue
            results.append(NearbyDestination(dest, dist))
        results.sort(key=lambda r: r.distance_m)
        return results[:max_results]


def resolve_destination(catalog: DestinationCatalog, ref: Union[int, str]) -> Optional[Destination]:
    """
    Find a destination by id first, then by case-insensitive name.

    Returns:
        The Destination, or None when nothing matches.
    """
    items = catalog.list()
    dest = match_id(items, ref) or match_name(items, str(ref))
    if dest is None:
        logger.warning(f"No destination matches '{ref}'.")
    return dest
