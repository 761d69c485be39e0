"""Reconciliation engine: decide what each bus notification means for the bar.

The engine is conceptually either Idle (no tracked owner) or Tracking an owner
token. That state is re-derived from the bus for every event, because owner
tokens change whenever a player restarts.
"""

from . import completer, matcher
from .errors import LystraError, NotFound
from .log import debug_log
from .session import (
    OwnershipChange,
    PlaybackState,
    PropertyChange,
    Session,
    StatusPayload,
    UnrecognizedPayload,
)

COMMAND_PLAY = "Play"
COMMAND_PAUSE = "Pause"


class Engine:
    """Consume NotificationEvents one at a time.

    `bus` provides the synchronous calls of the bus client, `emit` receives
    completed Sessions (``Session.empty()`` means clear the bar).
    """

    def __init__(self, bus, selector, emit):
        self.bus = bus
        self.selector = selector
        self.emit = emit

    def run(self, events):
        for event in events:
            self.handle(event)

    def handle(self, event):
        try:
            if isinstance(event, PropertyChange):
                self._on_property_change(event)
            elif isinstance(event, OwnershipChange):
                self._on_ownership_change(event)
            else:
                debug_log(f"Ignoring unknown event type {type(event).__name__}")
        except LystraError as e:
            debug_log(f"Dropped {type(event).__name__}: {type(e).__name__}: {e}")

    # --- PropertiesChanged ---

    def _on_property_change(self, event):
        if isinstance(event.payload, UnrecognizedPayload):
            debug_log(f"Ignoring change of {list(event.payload.keys)} from {event.sender}")
            return

        if self.selector.tracks_any:
            # Follow whoever spoke last
            self._emit_completed(event.sender, event)
            return

        try:
            tracked = matcher.resolve_owner(self.bus, self.selector)
        except NotFound as e:
            debug_log(f"Nothing tracked right now ({e}). Discarding event from {event.sender}.")
            return

        if event.sender == tracked:
            self._emit_completed(tracked, event)
        elif self.selector.autotoggle:
            self._arbitrate(tracked, event.sender, self._foreign_state(event))
        else:
            debug_log(f"Discarding event from foreign player {event.sender}")

    def _emit_completed(self, owner, event):
        session = completer.complete(self.bus, owner, event.payload)
        debug_log(
            f"Now playing from {owner}: '{session.artist}' - '{session.title}' "
            f"[{session.playback_state.value}]"
        )
        self.emit(session)

    def _foreign_state(self, event):
        if isinstance(event.payload, StatusPayload):
            return event.payload.state
        return self._read_state_or_none(event.sender)

    def _read_state_or_none(self, owner):
        try:
            return completer.read_playback_state(self.bus, owner)
        except LystraError as e:
            debug_log(f"Could not read PlaybackStatus of {owner}: {e}")
            return None

    # --- NameOwnerChanged ---

    def _on_ownership_change(self, event):
        if not matcher.is_player_name(event.advertised_name):
            return
        if self.selector.tracks_any:
            # Another player may still be active, so one exit never clears the bar.
            return

        name = matcher.strip_namespace(event.advertised_name)
        selected = matcher.matches(self.selector.pattern, name)

        if selected and event.old_owner and not event.new_owner:
            debug_log(f"Tracked player {name} ({event.old_owner}) exited. Clearing output.")
            self.emit(Session.empty())
            return

        if not selected and event.new_owner and not event.old_owner and self.selector.autotoggle:
            try:
                tracked = matcher.resolve_owner(self.bus, self.selector)
            except NotFound as e:
                debug_log(f"Player {name} appeared but nothing is tracked ({e})")
                return
            self._arbitrate(tracked, event.new_owner, self._read_state_or_none(event.new_owner))

    # --- Autotoggle ---

    def _arbitrate(self, tracked, foreign, foreign_state):
        """Pause `tracked` while `foreign` plays, resume it otherwise."""
        command = COMMAND_PAUSE if foreign_state is PlaybackState.PLAYING else COMMAND_PLAY
        state_name = foreign_state.value if foreign_state else "unresolved"
        debug_log(f"Foreign player {foreign} is {state_name}. Sending {command} to {tracked}.")
        try:
            self.bus.send_command(tracked, command)
        except LystraError as e:
            debug_log(f"{command} to {tracked} was not acknowledged: {e}")
