"""Values passed between the bus client, the engine and the formatter.

Nothing here holds state across notifications: a Session is built for one
event, handed to the formatter, and dropped.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union


class PlaybackState(Enum):
    PLAYING = "Playing"
    PAUSED = "Paused"
    STOPPED = "Stopped"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value):
        """Map an MPRIS PlaybackStatus string onto a state, Unknown if unrecognized."""
        for state in cls:
            if state.value == value:
                return state
        return cls.UNKNOWN


@dataclass(frozen=True)
class Session:
    artist: Optional[str]
    title: Optional[str]
    playback_state: PlaybackState
    art_url: Optional[str] = None

    @classmethod
    def empty(cls):
        return cls(artist=None, title=None, playback_state=PlaybackState.UNKNOWN)

    @property
    def is_empty(self):
        # Completed sessions always carry text, possibly "", so None marks a clear
        return self.artist is None and self.title is None


@dataclass(frozen=True)
class PlayerIdentity:
    advertised_name: str
    owner_token: str


@dataclass(frozen=True)
class Selector:
    pattern: str = ""
    autotoggle: bool = False

    @property
    def tracks_any(self):
        return self.pattern == ""


# --- Payloads carried by a PropertiesChanged signal ---

@dataclass(frozen=True)
class MetadataPayload:
    artist: str
    title: str
    art_url: Optional[str] = None


@dataclass(frozen=True)
class StatusPayload:
    state: PlaybackState


@dataclass(frozen=True)
class UnrecognizedPayload:
    keys: Tuple[str, ...] = field(default_factory=tuple)


Payload = Union[MetadataPayload, StatusPayload, UnrecognizedPayload]


# --- Events delivered by the bus client ---

@dataclass(frozen=True)
class PropertyChange:
    sender: str
    payload: Payload


@dataclass(frozen=True)
class OwnershipChange:
    advertised_name: str
    old_owner: Optional[str] = None
    new_owner: Optional[str] = None


NotificationEvent = Union[PropertyChange, OwnershipChange]
