"""Exception hierarchy for the agent bridge."""


class BridgeError(Exception):
    """Base class for all bridge errors."""


class DecodeError(BridgeError):
    """A bus payload could not be decoded into an Envelope.

    The relay drops the message and keeps consuming.
    """


class TransportError(BridgeError):
    """The bus connection could not be established or was lost."""


class InjectorError(BridgeError):
    """An injection into a local agent failed, timed out or exited non-zero."""

    def __init__(self, target: str, reason: str, exit_status: int | None = None) -> None:
        super().__init__(f"{target}: {reason}")
        self.target = target
        self.reason = reason
        self.exit_status = exit_status


class ConfigError(BridgeError):
    """Required configuration is missing or invalid. Fatal at startup."""
