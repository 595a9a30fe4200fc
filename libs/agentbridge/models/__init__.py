from agentbridge.models.envelope import Envelope, EnvelopeKind, now_ms
from agentbridge.models.registry import (
    DEFAULT_ALIASES,
    AgentEntry,
    AgentRegistry,
    MentionPattern,
    RegexPattern,
    SubstringPattern,
    default_entry,
    parse_pattern,
)

__all__ = [
    "DEFAULT_ALIASES",
    "AgentEntry",
    "AgentRegistry",
    "Envelope",
    "EnvelopeKind",
    "MentionPattern",
    "RegexPattern",
    "SubstringPattern",
    "default_entry",
    "now_ms",
    "parse_pattern",
]
