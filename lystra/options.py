import argparse
from dataclasses import dataclass
from typing import Tuple

from .session import Selector

DEFAULT_LENGTH = 45
DEFAULT_SIGNAL = 8
DEFAULT_PLAYING = "Playing: "
DEFAULT_PAUSED = "Paused: "
DEFAULT_SEPARATOR = " - "
DEFAULT_ORDER = "artist,title"
STDOUT_OUTPUT = "-"

ORDER_FIELDS = ("artist", "title")
# SIGRTMIN+N must stay below SIGRTMAX on Linux
MAX_SIGNAL = 30


@dataclass(frozen=True)
class Options:
    length: int = DEFAULT_LENGTH
    signal: int = DEFAULT_SIGNAL
    playing: str = DEFAULT_PLAYING
    paused: str = DEFAULT_PAUSED
    separator: str = DEFAULT_SEPARATOR
    order: Tuple[str, ...] = ORDER_FIELDS
    textcolor: str = ""
    playbackcolor: str = ""
    output: str = STDOUT_OUTPUT
    art: bool = False
    selector: Selector = Selector()

    @property
    def writes_to_stdout(self):
        return self.output == STDOUT_OUTPUT


def _positive_int(value):
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _signal_number(value):
    number = int(value)
    if not 1 <= number <= MAX_SIGNAL:
        raise argparse.ArgumentTypeError(f"must be between 1 and {MAX_SIGNAL}, got {number}")
    return number


def _field_order(value):
    fields = tuple(part.strip() for part in value.split(",") if part.strip())
    if not fields:
        raise argparse.ArgumentTypeError("needs at least one of: artist, title")
    unknown = [f for f in fields if f not in ORDER_FIELDS]
    if unknown:
        raise argparse.ArgumentTypeError(f"unknown field(s) {', '.join(unknown)}; use artist and/or title")
    return fields


def build_parser():
    parser = argparse.ArgumentParser(
        prog="lystra",
        description="Print the media player's now-playing state as Waybar JSON.",
    )
    parser.add_argument("--length", type=_positive_int, default=DEFAULT_LENGTH,
                        help="Max length of the output before truncating (default: %(default)s)")
    parser.add_argument("--signal", type=_signal_number, default=DEFAULT_SIGNAL,
                        help="Signal number used to update Waybar (default: %(default)s)")
    parser.add_argument("--playing", default=DEFAULT_PLAYING,
                        help="Indicator used when a song is playing (default: %(default)r)")
    parser.add_argument("--paused", default=DEFAULT_PAUSED,
                        help="Indicator used when a song is paused (default: %(default)r)")
    parser.add_argument("--separator", default=DEFAULT_SEPARATOR,
                        help="Separator between song artist and title (default: %(default)r)")
    parser.add_argument("--order", type=_field_order, default=ORDER_FIELDS,
                        help=f"Order of artist and title, comma-separated (default: {DEFAULT_ORDER})")
    parser.add_argument("--textcolor", default="",
                        help="Text color for artist and title")
    parser.add_argument("--playbackcolor", default="",
                        help="Text color for playback status")
    parser.add_argument("--mediaplayer", default="",
                        help="Mediaplayer to follow; supports *glob, glob* and *glob* (default: any)")
    parser.add_argument("--autotoggle", action="store_true",
                        help="Pause the followed player while another one plays")
    parser.add_argument("--output", default=STDOUT_OUTPUT,
                        help="File to write to, '-' for stdout. A file triggers a Waybar refresh (default: -)")
    parser.add_argument("--art", action="store_true",
                        help="Cache album art for the current song")
    return parser


def parse_args(argv=None):
    """Parse the command line once into an immutable Options value."""
    args = build_parser().parse_args(argv)
    return Options(
        length=args.length,
        signal=args.signal,
        playing=args.playing,
        paused=args.paused,
        separator=args.separator,
        order=tuple(args.order),
        textcolor=args.textcolor,
        playbackcolor=args.playbackcolor,
        output=args.output,
        art=args.art,
        selector=Selector(pattern=args.mediaplayer, autotoggle=args.autotoggle),
    )
