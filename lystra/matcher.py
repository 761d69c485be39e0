"""Find the bus owner of the player the user asked to follow.

Players register well-known names such as ``org.mpris.MediaPlayer2.spotify``
or ``org.mpris.MediaPlayer2.firefox.instance_1_42``. The selector is compared
against the part after the namespace prefix.
"""

from .errors import LystraError, NotFound
from .log import debug_log
from .session import PlayerIdentity

MPRIS_NAMESPACE = "org.mpris.MediaPlayer2."


def strip_namespace(name):
    if name.startswith(MPRIS_NAMESPACE):
        return name[len(MPRIS_NAMESPACE):]
    return name


def is_player_name(name):
    return name.startswith(MPRIS_NAMESPACE) and len(name) > len(MPRIS_NAMESPACE)


def matches(pattern, candidate):
    """Return True if `candidate` is selected by `pattern`.

    Only ``*text*``, ``text*`` and ``*text`` are recognized as globs. Any
    other use of ``*``, including a bare ``*``, never matches.
    """
    if not pattern:
        return True
    if "*" not in pattern:
        return pattern == candidate

    leading = pattern.startswith("*")
    trailing = pattern.endswith("*")
    core = pattern[1 if leading else 0:len(pattern) - 1 if trailing else len(pattern)]
    if not core or "*" in core:
        return False

    if leading and trailing:
        return core in candidate
    if trailing:
        return candidate.startswith(core)
    return candidate.endswith(core)


def find_player(bus, selector):
    """Return the PlayerIdentity of the first advertised player matching `selector`.

    Ties go to the first match in the order the bus daemon lists its names.
    That order is not guaranteed to be stable between calls.
    """
    if selector.tracks_any:
        raise NotFound("empty selector does not name a player")

    try:
        names = bus.list_advertised_names()
    except LystraError as e:
        raise NotFound(f"could not list bus names: {e}") from e

    for name in names:
        if not is_player_name(name):
            continue
        if not matches(selector.pattern, strip_namespace(name)):
            continue
        try:
            owner = bus.resolve_owner(name)
        except LystraError as e:
            # The player may have quit between ListNames and GetNameOwner.
            raise NotFound(f"owner lookup for {name} failed: {e}") from e
        return PlayerIdentity(advertised_name=name, owner_token=owner)

    raise NotFound(f"no player matches '{selector.pattern}'")


def resolve_owner(bus, selector):
    """Return the owner token of the player selected by `selector`, or raise NotFound."""
    identity = find_player(bus, selector)
    debug_log(f"Selector '{selector.pattern}' resolved to {identity.advertised_name} ({identity.owner_token})")
    return identity.owner_token
