"""Agent Bridge — relays bus messages between locally hosted chat agents."""

from agentbridge.client import BusClient, JetStreamBusClient, NatsBusClient
from agentbridge.config import BridgeConfig
from agentbridge.errors import (
    BridgeError,
    ConfigError,
    DecodeError,
    InjectorError,
    TransportError,
)
from agentbridge.helpers.factory import create_message, decode, derive_message, encode
from agentbridge.injector import (
    AgentInjector,
    InjectionRequest,
    InjectionResult,
    SubprocessInjector,
)
from agentbridge.models import (
    AgentEntry,
    AgentRegistry,
    Envelope,
    EnvelopeKind,
    RegexPattern,
    SubstringPattern,
    default_entry,
    parse_pattern,
)
from agentbridge.relay import (
    Admission,
    LoopGuard,
    RejectReason,
    RelayCore,
    matches,
    mentioned_agents,
)

__all__ = [
    # Client
    "BusClient",
    "JetStreamBusClient",
    "NatsBusClient",
    # Config
    "BridgeConfig",
    # Errors
    "BridgeError",
    "ConfigError",
    "DecodeError",
    "InjectorError",
    "TransportError",
    # Injector
    "AgentInjector",
    "InjectionRequest",
    "InjectionResult",
    "SubprocessInjector",
    # Models
    "AgentEntry",
    "AgentRegistry",
    "Envelope",
    "EnvelopeKind",
    "RegexPattern",
    "SubstringPattern",
    "default_entry",
    "parse_pattern",
    # Relay
    "Admission",
    "LoopGuard",
    "RejectReason",
    "RelayCore",
    "matches",
    "mentioned_agents",
    # Helpers
    "create_message",
    "decode",
    "derive_message",
    "encode",
]
