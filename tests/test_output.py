import io
import json
import subprocess

from lystra.options import Options
from lystra.output import Formatter, Refresher, truncate
from lystra.session import PlaybackState, Session


class FakeRefresher:
    def __init__(self):
        self.triggered = 0

    def trigger(self):
        self.triggered += 1


class FakeArtCache:
    def __init__(self, path=None):
        self.path = path
        self.updated = []
        self.cleared = 0

    def update(self, session):
        self.updated.append(session)
        return self.path

    def clear(self):
        self.cleared += 1


def render(session, **options):
    return json.loads(Formatter(Options(**options)).render(session))


def test_playing_session_renders_waybar_json():
    out = render(Session("Boards of Canada", "Roygbiv", PlaybackState.PLAYING))

    assert out["text"] == "Playing: Boards of Canada - Roygbiv"
    assert out["alt"] == "Playing"
    assert out["class"] == "Playing"
    assert "Song: Roygbiv" in out["tooltip"]


def test_paused_and_stopped_use_paused_indicator():
    paused = render(Session("A", "T", PlaybackState.PAUSED))
    stopped = render(Session("A", "T", PlaybackState.STOPPED))
    assert paused["text"] == "Paused: A - T"
    assert stopped["text"] == "Paused: A - T"
    assert stopped["class"] == "Stopped"


def test_order_and_separator():
    out = render(Session("A", "T", PlaybackState.PLAYING), order=("title", "artist"), separator=" / ")
    assert out["text"] == "Playing: T / A"


def test_missing_artist_is_skipped():
    out = render(Session("", "Untitled", PlaybackState.PLAYING))
    assert out["text"] == "Playing: Untitled"


def test_long_text_is_truncated():
    out = render(Session("A" * 30, "T" * 30, PlaybackState.PLAYING), length=10, playing="")
    assert out["text"] == "AAAAAAAAA…"
    assert truncate("short", 10) == "short"


def test_markup_is_escaped():
    out = render(Session("Simon & Garfunkel", "<Mrs. Robinson>", PlaybackState.PLAYING))
    assert out["text"] == "Playing: Simon &amp; Garfunkel - &lt;Mrs. Robinson&gt;"


def test_colors_wrap_text_in_spans():
    out = render(
        Session("A", "T", PlaybackState.PLAYING),
        textcolor="#ffffff",
        playbackcolor="green",
    )
    assert out["text"] == '<span foreground="green">Playing: </span><span foreground="#ffffff">A - T</span>'


def test_clear_writes_empty_line():
    stream = io.StringIO()
    Formatter(Options(), stream=stream).emit(Session.empty())
    assert stream.getvalue() == "\n"


def test_emit_to_stdout_does_not_refresh():
    stream = io.StringIO()
    refresher = FakeRefresher()
    Formatter(Options(), stream=stream, refresher=refresher).emit(Session("A", "T", PlaybackState.PLAYING))

    assert json.loads(stream.getvalue())["text"] == "Playing: A - T"
    assert refresher.triggered == 0


def test_emit_to_file_replaces_contents_and_refreshes(tmp_path):
    target = tmp_path / "nowplaying.json"
    refresher = FakeRefresher()
    formatter = Formatter(Options(output=str(target)), refresher=refresher)

    formatter.emit(Session("A", "T", PlaybackState.PLAYING))
    formatter.emit(Session("B", "U", PlaybackState.PAUSED))

    lines = target.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["text"] == "Paused: B - U"
    assert refresher.triggered == 2


def test_art_cache_is_updated_and_mentioned_in_tooltip():
    stream = io.StringIO()
    art = FakeArtCache(path="/tmp/cover")
    formatter = Formatter(Options(), stream=stream, art_cache=art)

    formatter.emit(Session("A", "T", PlaybackState.PLAYING, art_url="file:///tmp/a.png"))
    formatter.emit(Session.empty())

    first = json.loads(stream.getvalue().splitlines()[0])
    assert "Cover Art: Available" in first["tooltip"]
    assert len(art.updated) == 1
    assert art.cleared == 1


def test_refresher_signals_waybar(monkeypatch):
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, 0)

    monkeypatch.setattr(subprocess, "run", fake_run)
    Refresher(8).trigger()

    assert calls == [["pkill", "-RTMIN+8", "waybar"]]


def test_refresher_failure_is_swallowed(monkeypatch):
    def missing_pkill(cmd, **kwargs):
        raise FileNotFoundError("pkill")

    monkeypatch.setattr(subprocess, "run", missing_pkill)
    Refresher(8).trigger()


def test_completed_session_without_text_is_not_a_clear():
    stream = io.StringIO()
    art = FakeArtCache()
    Formatter(Options(), stream=stream, art_cache=art).emit(Session("", "", PlaybackState.UNKNOWN))

    out = json.loads(stream.getvalue())
    assert out["text"] == "Paused: "
    assert out["class"] == "Unknown"
    assert art.cleared == 0
    assert len(art.updated) == 1
