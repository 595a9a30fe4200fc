from agentbridge.relay.core import RelayCore, render_echo, render_injection
from agentbridge.relay.guard import (
    ADMITTED,
    DEFAULT_COOLDOWN_MS,
    DEFAULT_MAX_DEPTH,
    Admission,
    LoopGuard,
    RejectReason,
)
from agentbridge.relay.mention import matches, mentioned_agents

__all__ = [
    "ADMITTED",
    "DEFAULT_COOLDOWN_MS",
    "DEFAULT_MAX_DEPTH",
    "Admission",
    "LoopGuard",
    "RejectReason",
    "RelayCore",
    "matches",
    "mentioned_agents",
    "render_echo",
    "render_injection",
]
