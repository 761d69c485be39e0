import signal
import sys
from datetime import datetime

from .art import ArtCache
from .engine import Engine
from .errors import BusConnectionError
from .log import debug_log, log_exception, start_session_log
from .options import parse_args
from .output import Formatter, Refresher, waybar_json


def _raise_keyboard_interrupt(signum, frame):
    raise KeyboardInterrupt


def build_formatter(options):
    refresher = None if options.writes_to_stdout else Refresher(options.signal)
    art_cache = ArtCache() if options.art else None
    return Formatter(options, refresher=refresher, art_cache=art_cache)


def run(options):
    # Imported here so --help works without dbus-python and PyGObject installed
    from .bus import BusClient

    bus = BusClient.connect()
    formatter = build_formatter(options)
    engine = Engine(bus, options.selector, formatter.emit)
    debug_log(
        f"Following '{options.selector.pattern or '*any*'}', "
        f"autotoggle {'on' if options.selector.autotoggle else 'off'}, output to {options.output}"
    )
    engine.run(bus.events())


def main(argv=None):
    options = parse_args(argv)
    signal.signal(signal.SIGTERM, _raise_keyboard_interrupt)
    try:
        start_session_log()
        run(options)
    except KeyboardInterrupt:
        debug_log("Script interrupted by user.")
    except BusConnectionError as e:
        debug_log(f"FATAL: {e}")
        print(f"FATAL: {e}", file=sys.stderr, flush=True)
        print(waybar_json("Bus Error", tooltip=str(e), css_class="error"), flush=True)
        return 1
    except Exception as e:
        ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        print(f"[{ts}] FATAL SCRIPT ERROR: {type(e).__name__}: {e}", file=sys.stderr, flush=True)
        log_exception(f"FATAL SCRIPT ERROR: {type(e).__name__}: {e}")
        print(waybar_json("Fatal Script Error", tooltip=str(e), css_class="error"), flush=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
