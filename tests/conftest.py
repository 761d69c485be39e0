import pytest

from lystra import log
from lystra.errors import Unavailable


class FakeBus:
    """In-memory stand-in for BusClient.

    `names` maps well-known names to owner tokens, in ListNames order.
    `properties` maps (owner, property) to the value Properties.Get returns;
    a missing entry behaves like a player that does not answer.
    """

    def __init__(self, names=None, properties=None):
        self.names = dict(names or {})
        self.properties = dict(properties or {})
        self.commands = []
        self.property_reads = []
        self.failing_commands = set()

    def list_advertised_names(self):
        return ["org.freedesktop.DBus", ":1.1"] + list(self.names)

    def resolve_owner(self, advertised_name):
        if advertised_name not in self.names:
            raise Unavailable(f"{advertised_name} has no owner")
        return self.names[advertised_name]

    def get_property(self, owner_token, property_name):
        self.property_reads.append((owner_token, property_name))
        try:
            return self.properties[(owner_token, property_name)]
        except KeyError:
            raise Unavailable(f"no reply from {owner_token}") from None

    def send_command(self, owner_token, command_name):
        self.commands.append((owner_token, command_name))
        if owner_token in self.failing_commands:
            raise Unavailable(f"{command_name} on {owner_token} timed out")


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path, monkeypatch):
    logs_dir = tmp_path / "logs"
    monkeypatch.setattr(log, "LOGS_DIR", str(logs_dir))
    return logs_dir


@pytest.fixture
def fake_bus():
    return FakeBus()


def metadata(artist=None, title=None, art_url=None):
    value = {}
    if artist is not None:
        value["xesam:artist"] = artist
    if title is not None:
        value["xesam:title"] = title
    if art_url is not None:
        value["mpris:artUrl"] = art_url
    return value
