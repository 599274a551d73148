# errors.py
class LamportError(Exception):
    """Base class for every error raised by the node."""


class ConfigError(LamportError):
    """Roster file unreadable, or the node's own entry missing/duplicated."""


class ProtocolError(LamportError):
    """A frame that cannot be handled: wrong shape, bad clock, unknown sender."""


class TransportError(LamportError):
    """Sending or binding a datagram socket failed."""


class NotFoundError(LamportError, LookupError):
    pass


class InvalidArgument(LamportError, ValueError):
    pass
