from agentbridge.client.base import BusClient, RawHandler
from agentbridge.client.nats_client import JetStreamBusClient, NatsBusClient

__all__ = [
    "BusClient",
    "JetStreamBusClient",
    "NatsBusClient",
    "RawHandler",
]
