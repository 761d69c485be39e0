"""Turn a partial PropertiesChanged notification into a complete Session.

A player announces either its Metadata or its PlaybackStatus, never both, so
the missing half is read back from the sender with a blocking Properties.Get.
"""

from .errors import Malformed
from .session import (
    MetadataPayload,
    PlaybackState,
    Session,
    StatusPayload,
    UnrecognizedPayload,
)

PLAYER_INTERFACE = "org.mpris.MediaPlayer2.Player"

PROPERTY_METADATA = "Metadata"
PROPERTY_PLAYBACK_STATUS = "PlaybackStatus"

XESAM_ARTIST = "xesam:artist"
XESAM_TITLE = "xesam:title"
MPRIS_ART_URL = "mpris:artUrl"


def unpack_metadata(metadata):
    """Extract artist, title and art URL from an MPRIS metadata map.

    Players between tracks often omit a key, so a missing artist or title
    becomes an empty string. Only the first artist is kept.
    """
    if not isinstance(metadata, dict):
        raise Malformed(f"Metadata is a {type(metadata).__name__}, expected a map")

    title = metadata.get(XESAM_TITLE, "")
    if not isinstance(title, str):
        raise Malformed(f"{XESAM_TITLE} is a {type(title).__name__}, expected text")

    artists = metadata.get(XESAM_ARTIST, [])
    if isinstance(artists, str):
        # Some players send a bare string instead of a list
        artist = artists
    elif isinstance(artists, (list, tuple)):
        artist = str(artists[0]) if artists else ""
    else:
        raise Malformed(f"{XESAM_ARTIST} is a {type(artists).__name__}, expected a list")

    art_url = metadata.get(MPRIS_ART_URL)
    art_url = str(art_url) if isinstance(art_url, str) and art_url else None

    return MetadataPayload(artist=str(artist), title=str(title), art_url=art_url)


def unpack_playback_status(value):
    if not isinstance(value, str):
        raise Malformed(f"PlaybackStatus is a {type(value).__name__}, expected text")
    return StatusPayload(state=PlaybackState.parse(str(value)))


def parse_payload(interface, changed_properties):
    """Classify the body of a PropertiesChanged signal.

    Metadata wins if a player sends both keys at once. Anything else,
    including changes on other MPRIS interfaces, is UnrecognizedPayload.
    """
    keys = tuple(str(k) for k in changed_properties)
    if interface != PLAYER_INTERFACE:
        return UnrecognizedPayload(keys=keys)
    if PROPERTY_METADATA in changed_properties:
        return unpack_metadata(changed_properties[PROPERTY_METADATA])
    if PROPERTY_PLAYBACK_STATUS in changed_properties:
        return unpack_playback_status(changed_properties[PROPERTY_PLAYBACK_STATUS])
    return UnrecognizedPayload(keys=keys)


def read_playback_state(bus, owner_token):
    value = bus.get_property(owner_token, PROPERTY_PLAYBACK_STATUS)
    return unpack_playback_status(value).state


def read_metadata(bus, owner_token):
    value = bus.get_property(owner_token, PROPERTY_METADATA)
    return unpack_metadata(value)


def complete(bus, owner_token, payload):
    """Query `owner_token` for whatever `payload` lacks and return the full Session.

    Raises Unavailable when the read times out or the player is gone, and
    Malformed when the reply has the wrong shape. Never retries.
    """
    if isinstance(payload, MetadataPayload):
        state = read_playback_state(bus, owner_token)
        metadata = payload
    elif isinstance(payload, StatusPayload):
        metadata = read_metadata(bus, owner_token)
        state = payload.state
    else:
        raise Malformed(f"cannot complete a notification carrying {payload!r}")

    return Session(
        artist=metadata.artist,
        title=metadata.title,
        playback_state=state,
        art_url=metadata.art_url,
    )
