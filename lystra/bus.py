"""Session bus client built on dbus-python and the GLib main loop.

Signal callbacks only queue events. `events()` drains the queue and otherwise
iterates the GLib main context, so every handler runs on the caller's thread
and may make blocking calls on the same connection.
"""

from collections import deque

import dbus
from dbus.mainloop.glib import DBusGMainLoop
from gi.repository import GLib

from .completer import PLAYER_INTERFACE, parse_payload
from .errors import BusConnectionError, Malformed, Unavailable
from .log import debug_log
from .session import OwnershipChange, PropertyChange

MPRIS_PATH = "/org/mpris/MediaPlayer2"
PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"

DBUS_NAME = "org.freedesktop.DBus"
DBUS_PATH = "/org/freedesktop/DBus"
DBUS_INTERFACE = "org.freedesktop.DBus"

CALL_TIMEOUT_SECONDS = 5.0
OWNER_LOOKUP_TIMEOUT_SECONDS = 2.0

# Errors that mean the player went away or did not answer in time
_UNAVAILABLE_ERRORS = (
    "org.freedesktop.DBus.Error.NoReply",
    "org.freedesktop.DBus.Error.Timeout",
    "org.freedesktop.DBus.Error.ServiceUnknown",
    "org.freedesktop.DBus.Error.NameHasNoOwner",
    "org.freedesktop.DBus.Error.Disconnected",
)


def _translate(e, what):
    name = e.get_dbus_name() or ""
    if name in _UNAVAILABLE_ERRORS:
        return Unavailable(f"{what}: {name}")
    if name.endswith("InvalidArgs") or name.endswith("UnknownProperty"):
        return Malformed(f"{what}: {name}: {e.get_dbus_message()}")
    return Unavailable(f"{what}: {name or e}")


def _optional_owner(value):
    value = str(value)
    return value if value else None


class BusClient:
    def __init__(self, bus):
        self._bus = bus
        self._pending = deque()
        self._context = GLib.MainContext.default()

    @classmethod
    def connect(cls):
        """Connect to the session bus and subscribe to player signals."""
        DBusGMainLoop(set_as_default=True)
        try:
            bus = dbus.SessionBus()
        except dbus.exceptions.DBusException as e:
            raise BusConnectionError(f"Could not connect to the session bus: {e}") from e
        client = cls(bus)
        client.subscribe()
        return client

    def subscribe(self):
        self._bus.add_signal_receiver(
            self._on_properties_changed,
            signal_name="PropertiesChanged",
            dbus_interface=PROPERTIES_INTERFACE,
            path=MPRIS_PATH,
            sender_keyword="sender",
        )
        self._bus.add_signal_receiver(
            self._on_name_owner_changed,
            signal_name="NameOwnerChanged",
            dbus_interface=DBUS_INTERFACE,
            bus_name=DBUS_NAME,
            path=DBUS_PATH,
        )
        debug_log("Subscribed to PropertiesChanged and NameOwnerChanged")

    # --- Signal callbacks ---

    def _on_properties_changed(self, interface, changed, invalidated, sender=None):
        if not sender:
            return
        try:
            payload = parse_payload(str(interface), changed)
        except Malformed as e:
            debug_log(f"Dropping malformed PropertiesChanged from {sender}: {e}")
            return
        self._pending.append(PropertyChange(sender=str(sender), payload=payload))

    def _on_name_owner_changed(self, name, old_owner, new_owner):
        self._pending.append(OwnershipChange(
            advertised_name=str(name),
            old_owner=_optional_owner(old_owner),
            new_owner=_optional_owner(new_owner),
        ))

    def events(self):
        """Yield events in arrival order until the process is stopped."""
        while True:
            while self._pending:
                yield self._pending.popleft()
            self._context.iteration(True)

    # --- Synchronous calls ---

    def list_advertised_names(self):
        try:
            names = self._bus.call_blocking(
                DBUS_NAME, DBUS_PATH, DBUS_INTERFACE, "ListNames", "", (),
                timeout=CALL_TIMEOUT_SECONDS,
            )
        except dbus.exceptions.DBusException as e:
            raise _translate(e, "ListNames") from e
        return [str(name) for name in names]

    def resolve_owner(self, advertised_name):
        try:
            owner = self._bus.call_blocking(
                DBUS_NAME, DBUS_PATH, DBUS_INTERFACE, "GetNameOwner", "s", (advertised_name,),
                timeout=OWNER_LOOKUP_TIMEOUT_SECONDS,
            )
        except dbus.exceptions.DBusException as e:
            raise _translate(e, f"GetNameOwner {advertised_name}") from e
        return str(owner)

    def get_property(self, owner_token, property_name):
        try:
            return self._bus.call_blocking(
                owner_token, MPRIS_PATH, PROPERTIES_INTERFACE, "Get", "ss",
                (PLAYER_INTERFACE, property_name),
                timeout=CALL_TIMEOUT_SECONDS,
            )
        except dbus.exceptions.DBusException as e:
            raise _translate(e, f"Get {property_name} from {owner_token}") from e

    def send_command(self, owner_token, command_name):
        try:
            self._bus.call_blocking(
                owner_token, MPRIS_PATH, PLAYER_INTERFACE, command_name, "", (),
                timeout=CALL_TIMEOUT_SECONDS,
            )
        except dbus.exceptions.DBusException as e:
            raise _translate(e, f"{command_name} on {owner_token}") from e
