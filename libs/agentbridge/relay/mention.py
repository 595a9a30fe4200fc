"""Mention matching — which hosted agents does a chat line address?

Detection is a heuristic pattern test over the alias table, not language
understanding. It has no state, so the same inputs always give the same
answer.
"""

from agentbridge.models.registry import AgentEntry, AgentRegistry


def matches(text: str, entry: AgentEntry) -> bool:
    """True if any of the entry's alias patterns occurs in `text`."""
    if not text:
        return False
    return any(pattern.search(text) for pattern in entry.aliases)


def mentioned_agents(text: str, registry: AgentRegistry) -> list[AgentEntry]:
    """All registry entries mentioned by `text`, in registry order."""
    return [entry for entry in registry if matches(text, entry)]
