"""BusClient — the transport capability the relay depends on."""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from agentbridge.models.envelope import Envelope

RawHandler = Callable[[bytes], Awaitable[None]]


class BusClient(ABC):
    """Subscribe-or-consume, publish, acknowledge-if-applicable.

    Handlers receive the raw wire bytes; decoding is the relay's job so a
    corrupt payload never reaches the transport layer as an exception.
    Backends that redeliver acknowledge a message once its handler returns.
    """

    @property
    @abstractmethod
    def is_connected(self) -> bool: ...

    @abstractmethod
    async def connect(self) -> None:
        """Open the connection. Raises TransportError when it gives up."""

    @abstractmethod
    async def publish(self, envelope: Envelope) -> None:
        """Publish an envelope on the bridge channel."""

    @abstractmethod
    async def subscribe(self, handler: RawHandler) -> None:
        """Start delivering inbound payloads to `handler` in the background."""

    @abstractmethod
    async def close(self) -> None:
        """Stop consuming and disconnect."""
