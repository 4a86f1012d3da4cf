from __future__ import annotations


class InterfaceError(Exception):
    pass


class ConfigurationError(InterfaceError):
    """A role or parameter that was not configured was used."""


class NotConnectedError(InterfaceError):
    pass


class InterfaceShutdown(InterfaceError):
    """Raised out of a parked read when the owner shuts the interface down."""


class SocketClosedError(OSError):
    """The socket was closed before or while waiting on it."""
