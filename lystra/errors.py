class LystraError(Exception):
    """Base class for every non-fatal runtime failure handled by the engine."""


class NotFound(LystraError):
    """The selector matches no advertised player right now."""


class Unavailable(LystraError):
    """A bus call timed out, or its target vanished mid-call."""


class Malformed(LystraError):
    """A reply or signal body did not have the expected shape."""


class BusConnectionError(Exception):
    """The session bus could not be reached at startup. Fatal."""
