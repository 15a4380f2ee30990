# main.py
# Entry point — simulates a walk across campus feeding fixes into GuidanceSession.
# In production, replace ReplayPositionSource with the device's real GPS feed.
#
# Run:  python -m navigation.guidance.main --query "?dest=2&origin=4.661,-74.0597"

import argparse
import logging

from .catalog import StaticCatalog, resolve_destination
from .console_sink import ConsoleSink
from .errors import GuidanceError, OriginTooFar
from .geo_utils import bearing_degrees, destination_point, distance_meters
from .guidance_session import GuidanceSession
from .launch_params import parse_launch_query
from .models import Coord, GuidanceState, OrientationSample
from .nav_config import GuidanceConfig
from .sim_sources import ManualHeadingSource, ReplayPositionSource, fix_at

# ------------------------------------------------------------------
# Campus points of interest, in the catalog's record format
# ------------------------------------------------------------------
CAMPUS_POIS = [
    {"id": 1, "Nombre": "Biblioteca",        "Latitud": 4.661226, "Longitud": -74.059538},
    {"id": 2, "Nombre": "Cafetería Central", "Latitud": 4.660982, "Longitud": -74.059616},
    {"id": 3, "Nombre": "Auditorio",         "Latitud": 4.661630, "Longitud": -74.059120},
]

START = Coord(4.661000, -74.059700)
STEP_M = 5.0


def simulated_walk(start: Coord, goal: Coord, step_m: float = STEP_M):
    """Fixes every ``step_m`` metres on the straight line from start to goal."""
    here = start
    fixes = [fix_at(here.lat, here.lon)]
    while distance_meters(here, goal) > step_m:
        here = destination_point(here, bearing_degrees(here, goal), step_m)
        fixes.append(fix_at(here.lat, here.lon))
    fixes.append(fix_at(goal.lat, goal.lon))
    return fixes


def main() -> None:
    parser = argparse.ArgumentParser(description="Campus wayfinding: simulated guidance walk")
    parser.add_argument("--query", default="?dest=1",
                        help="Launch query string, e.g. '?dest=2&origin=4.661,-74.0597'")
    parser.add_argument("--arrival", type=float, default=4.0,
                        help="Arrival threshold in metres (default: 4)")
    parser.add_argument("--ahead", type=float, default=6.0,
                        help="Guide point distance ahead of the user in metres (default: 6)")
    parser.add_argument("--no-compass", action="store_true",
                        help="Simulate a device without orientation sensors")
    parser.add_argument("--interval", type=float, default=0.05,
                        help="Seconds between simulated fixes")
    args = parser.parse_args()

    # Logging setup — configure once here, all modules inherit
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    config = GuidanceConfig(arrival_threshold_m=args.arrival, guide_ahead_m=args.ahead)
    params = parse_launch_query(args.query)

    catalog = StaticCatalog(CAMPUS_POIS)
    destination = resolve_destination(catalog, params.dest_id) if params.dest_id is not None else None
    if destination is None:
        print(f"[Main] Unknown destination in {args.query!r}.")
        return

    gps = ReplayPositionSource(simulated_walk(START, destination.location))
    compass = ManualHeadingSource(granted=not args.no_compass)
    sink = ConsoleSink()

    with GuidanceSession(gps, sink, config, origin_anchor=params.origin) as session:
        if not session.enable_heading(compass):
            print("[Main] No compass — arrow will be world-relative.")
        compass.push(OrientationSample(compass_heading=20.0))

        # 1. Pick destination (starts at once when no origin anchor is set)
        state = session.select_destination(destination)

        # 2. Origin check, recalibrating here if we are too far
        if state is GuidanceState.AWAITING_ORIGIN:
            here = fix_at(START.lat, START.lon)
            try:
                session.start(here)
            except OriginTooFar as e:
                print(f"[Main] {e.message}")
                session.start(here, recalibrate=True)
            except GuidanceError as e:
                print(f"[Main] Could not start guidance: {e.message}")
                return

        print("\n--- GPS Loop Active ---")

        # 3. GPS loop — replace with real GPS feed in production
        gps.run(interval_s=args.interval)

        print("\n--- Session complete ---")
        print(f"    Final state: {session.state.name}")


if __name__ == "__main__":
    main()
