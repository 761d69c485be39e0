"""Render Sessions as Waybar custom-module JSON and deliver them."""

import json
import os
import subprocess
import sys

from .log import debug_log
from .session import PlaybackState

ELLIPSIS = "…"
ART_TOOLTIP = "Cover Art: Available"
REFRESH_TIMEOUT_SECONDS = 2.0


def waybar_json(text, alt="", tooltip="", css_class=""):
    output_data = {"text": text, "alt": alt, "tooltip": tooltip, "class": css_class}
    return json.dumps(output_data, ensure_ascii=False)


def escape_markup(text):
    # Waybar parses module text as Pango markup
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def colorize(text, color):
    if not color or not text:
        return text
    return f'<span foreground="{escape_markup(color)}">{text}</span>'


def truncate(text, length):
    if len(text) <= length:
        return text
    return text[:max(length - 1, 0)] + ELLIPSIS


class Refresher:
    """Ask Waybar to re-read a module via its real-time signal."""

    def __init__(self, signal):
        self.signal = signal

    def command(self):
        return ["pkill", f"-RTMIN+{self.signal}", "waybar"]

    def trigger(self):
        try:
            subprocess.run(self.command(), check=False, timeout=REFRESH_TIMEOUT_SECONDS,
                           stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except (OSError, subprocess.SubprocessError) as e:
            debug_log(f"Failed to signal Waybar for refresh: {e}")


class Formatter:
    def __init__(self, options, stream=None, refresher=None, art_cache=None):
        self.options = options
        self.stream = stream if stream is not None else sys.stdout
        self.refresher = refresher
        self.art_cache = art_cache

    def now_playing(self, session):
        fields = {"artist": session.artist or "", "title": session.title or ""}
        parts = [fields[name] for name in self.options.order if fields[name]]
        return truncate(self.options.separator.join(parts), self.options.length)

    def indicator(self, state):
        if state is PlaybackState.PLAYING:
            return self.options.playing
        return self.options.paused

    def tooltip(self, session, has_art):
        tooltip_parts = [f"Status: {session.playback_state.value}"]
        if session.title: tooltip_parts.append(f"Song: {session.title}")
        if session.artist: tooltip_parts.append(f"Artist: {session.artist}")
        if has_art: tooltip_parts.append(ART_TOOLTIP)
        return escape_markup("\n".join(tooltip_parts))

    def render(self, session, has_art=False):
        """Return the line Waybar should show for `session`; empty for a clear."""
        if session.is_empty:
            return ""
        indicator = colorize(escape_markup(self.indicator(session.playback_state)), self.options.playbackcolor)
        text = colorize(escape_markup(self.now_playing(session)), self.options.textcolor)
        state = session.playback_state.value
        return waybar_json(indicator + text, alt=state, tooltip=self.tooltip(session, has_art), css_class=state)

    def emit(self, session):
        has_art = False
        if self.art_cache is not None:
            if session.is_empty:
                self.art_cache.clear()
            else:
                has_art = self.art_cache.update(session) is not None
        self.write(self.render(session, has_art))

    def write(self, line):
        if self.options.writes_to_stdout:
            print(line, file=self.stream, flush=True)
            return

        try:
            tmp_path = f"{self.options.output}.tmp"
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(line + "\n")
            os.replace(tmp_path, self.options.output)
        except OSError as e:
            debug_log(f"Could not write output file {self.options.output}: {e}")
            return
        if self.refresher is not None:
            self.refresher.trigger()
