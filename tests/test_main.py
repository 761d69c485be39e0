import json
import signal

import pytest

from lystra import __main__ as entry
from lystra.art import ArtCache
from lystra.errors import BusConnectionError
from lystra.options import parse_args


@pytest.fixture(autouse=True)
def restore_sigterm():
    previous = signal.getsignal(signal.SIGTERM)
    yield
    signal.signal(signal.SIGTERM, previous)


def test_missing_session_bus_is_fatal(monkeypatch, capsys):
    def no_bus(options):
        raise BusConnectionError("Could not connect to the session bus")

    monkeypatch.setattr(entry, "run", no_bus)

    assert entry.main(["--mediaplayer", "spotify"]) == 1
    out, err = capsys.readouterr()
    assert json.loads(out)["class"] == "error"
    assert "session bus" in err


def test_interrupt_exits_cleanly(monkeypatch):
    def interrupted(options):
        raise KeyboardInterrupt

    monkeypatch.setattr(entry, "run", interrupted)

    assert entry.main([]) == 0


def test_file_output_gets_a_refresher_and_art_cache():
    formatter = entry.build_formatter(parse_args(["--output", "/tmp/lystra.json", "--signal", "9", "--art"]))

    assert formatter.refresher.command() == ["pkill", "-RTMIN+9", "waybar"]
    assert isinstance(formatter.art_cache, ArtCache)


def test_stdout_output_has_no_refresher():
    formatter = entry.build_formatter(parse_args([]))

    assert formatter.refresher is None
    assert formatter.art_cache is None
