import logging
import queue
import subprocess
import sys
import threading
import traceback
from typing import Callable, Optional

from navigation.guidance.catalog import StaticCatalog, resolve_destination
from navigation.guidance.errors import ErrorKind, GuidanceError
from navigation.guidance.geo_utils import format_distance, relative_direction
from navigation.guidance.guidance_session import GuidanceSession
from navigation.guidance.main import CAMPUS_POIS
from navigation.guidance.models import GuidanceState, GuidanceUpdate, OrientationSample
from navigation.guidance.nav_config import GuidanceConfig
from navigation.guidance.sim_sources import ManualHeadingSource, ReplayPositionSource, fix_at

logger = logging.getLogger(__name__)


class SpeechQueue:
    """
    Speaks utterances one after another on a daemon thread.

    Each utterance runs pyttsx3 in a child interpreter so a hung audio
    driver cannot block the guidance loop.
    """

    def __init__(self, rate: int = 150) -> None:
        self.rate = rate
        self._queue: "queue.Queue[Optional[str]]" = queue.Queue()
        self._thread = threading.Thread(target=self._worker, daemon=True)
        self._thread.start()

    def _worker(self) -> None:
        while True:
            text = self._queue.get()
            if text is None:
                self._queue.task_done()
                break
            script = (
                "import pyttsx3\n"
                "engine = pyttsx3.init()\n"
                f"engine.setProperty('rate', {int(self.rate)})\n"
                f"engine.say({repr(text)})\n"
                "engine.runAndWait()"
            )
            try:
                subprocess.run([sys.executable, "-c", script], check=False)
            except OSError as e:
                logger.error(f"TTS error: {e}")
            finally:
                self._queue.task_done()

    def say(self, text: str) -> None:
        text = (text or "").strip()
        if text:
            self._queue.put(text)

    def close(self, timeout: float = 5.0) -> None:
        self._queue.join()       # let queued speech finish
        self._queue.put(None)    # stop signal for the worker
        self._thread.join(timeout=timeout)


class SpeechSink:
    """
    Presentation sink that speaks guidance instead of drawing an arrow.

    Progress is announced only when the distance band or the direction cue
    changes, so a fix every second does not turn into a sentence every second.

    Args:
        say:              Callable that speaks one sentence; defaults to a SpeechQueue.
        announce_every_m: Width of a distance band in metres.
    """

    def __init__(self, say: Optional[Callable[[str], None]] = None, announce_every_m: float = 10.0) -> None:
        self._speech: Optional[SpeechQueue] = None
        if say is None:
            self._speech = SpeechQueue()
            say = self._speech.say
        self._say = say
        self.announce_every_m = announce_every_m
        self._last_key = None

    def render(self, update: GuidanceUpdate) -> None:
        if update.arrived:
            return
        cue = None
        if update.heading_deg is not None:
            cue = relative_direction(update.bearing_deg, update.heading_deg)
        band = int(update.distance_m // self.announce_every_m)
        key = (update.destination_name, band, cue)
        if key == self._last_key:
            return
        self._last_key = key

        text = f"{update.destination_name}, {format_distance(update.distance_m)}."
        if cue:
            text += f" {cue}."
        self._say(text)

    def set_visible(self, visible: bool) -> None:
        if not visible:
            self._last_key = None

    def show_arrived(self, name: str) -> None:
        self._say(f"You have arrived at {name}.")

    def show_error(self, message: str, kind: Optional[ErrorKind] = None) -> None:
        self._say(message)

    def close(self) -> None:
        if self._speech is not None:
            self._speech.close()


def parse_floats(parts, count: int):
    if len(parts) != count:
        raise ValueError(f"Expected {count} numbers, got {len(parts)}")
    return [float(x) for x in parts]


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    catalog = StaticCatalog(CAMPUS_POIS)
    gps = ReplayPositionSource()
    compass = ManualHeadingSource()
    sink = SpeechSink()
    session = GuidanceSession(gps, sink, GuidanceConfig(require_origin=True))
    session.enable_heading(compass)
    last_fix = None

    print("Commands:")
    print("  list")
    print("  dest <id|name>")
    print("  gps <lat> <lon>")
    print("  heading <degrees>")
    print("  start [force|recalibrate]")
    print("  stop")
    print("  quit")

    while True:
        line = input("> ").strip()
        if not line:
            continue

        if line.lower() in ("q", "quit", "exit"):
            break

        parts = line.split()
        cmd = parts[0].lower()
        args = parts[1:]

        try:
            if cmd == "list":
                for dest in catalog.list():
                    print(f"  {dest}")

            elif cmd == "dest":
                dest = resolve_destination(catalog, " ".join(args))
                if dest is None:
                    print("[NAV]", "Unknown destination.")
                    continue
                state = session.select_destination(dest)
                print("[NAV]", f"{dest.name} selected ({state.name}).")

            elif cmd == "gps":
                lat, lon = parse_floats(args, 2)
                last_fix = fix_at(lat, lon)
                if session.state is GuidanceState.GUIDING:
                    gps.push(last_fix)
                    gps.step()
                    if session.last_update is not None:
                        print("[NAV]", session.last_update.message)

            elif cmd == "heading":
                (deg,) = parse_floats(args, 1)
                compass.push(OrientationSample(compass_heading=deg))

            elif cmd == "start":
                mode = args[0].lower() if args else ""
                session.start(last_fix, force=(mode == "force"), recalibrate=(mode == "recalibrate"))
                print("[NAV]", f"Guiding to {session.destination.name}.")

            elif cmd == "stop":
                session.stop()
                print("[NAV]", "Guidance stopped.")

            else:
                print("[NAV]", "Unknown command.")

        except GuidanceError as e:
            print("[ERR]", e.message)
            sink.show_error(e.message, e.kind)
        except ValueError as e:
            print(traceback.format_exc())
            print("[ERR]", f"Error: {e}")

    session.close()
    sink.close()


if __name__ == "__main__":
    main()
