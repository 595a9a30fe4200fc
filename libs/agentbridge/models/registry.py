"""Agent registry — the locally hosted agent identities and their aliases."""

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Protocol


class MentionPattern(Protocol):
    """Anything that can search a text for a mention."""

    def search(self, text: str) -> object: ...


@dataclass(frozen=True)
class SubstringPattern:
    """Case-insensitive plain substring pattern."""

    needle: str

    def search(self, text: str) -> bool:
        return self.needle.casefold() in text.casefold()


@dataclass(frozen=True)
class RegexPattern:
    """Case-insensitive regular expression pattern."""

    source: str
    _compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_compiled", re.compile(self.source, re.IGNORECASE))

    def search(self, text: str) -> re.Match[str] | None:
        return self._compiled.search(text)

    def fullmatch(self, text: str) -> bool:
        return self._compiled.fullmatch(text) is not None


# Surface forms used by the original team: native-script name, romanized
# name, and the mixed-case handle.
DEFAULT_ALIASES: dict[str, tuple[str, ...]] = {
    "choa": ("초아", "choa"),
    "sera": ("세라", "sera"),
    "sori": ("소리", "sori"),
    "nichris": ("니크리스", "nichris"),
}


def parse_pattern(raw: str) -> MentionPattern:
    """Build a pattern from its config form.

    `re:<expr>` yields a regex, anything else a plain substring.
    """
    raw = raw.strip()
    if raw.startswith("re:"):
        return RegexPattern(raw[3:])
    return SubstringPattern(raw)


@dataclass(frozen=True)
class AgentEntry:
    """One locally hosted agent identity."""

    id: str
    aliases: tuple[MentionPattern, ...] = ()
    session_ref: str | None = None
    is_primary: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", self.id.strip().lower())
        if not self.id:
            raise ValueError("agent id must not be empty")

    def alias_names(self) -> set[str]:
        """Lowercased literal aliases, used for resolving sender names."""
        names = {self.id}
        for pattern in self.aliases:
            if isinstance(pattern, SubstringPattern):
                names.add(pattern.needle.casefold())
        return names

    def answers_to(self, name: str) -> bool:
        """True when `name` is this agent's id, a literal alias, or a whole regex match."""
        wanted = name.strip().casefold()
        if wanted in self.alias_names():
            return True
        return any(
            isinstance(p, RegexPattern) and p.fullmatch(name.strip()) for p in self.aliases
        )


def default_entry(
    agent_id: str,
    *,
    session_ref: str | None = None,
    is_primary: bool = False,
    patterns: Iterable[str] | None = None,
) -> AgentEntry:
    """Build an entry, falling back to the built-in alias table.

    Unknown identities are matched by their own name.
    """
    agent_id = agent_id.strip().lower()
    if patterns is None:
        patterns = DEFAULT_ALIASES.get(agent_id, (agent_id,))
    return AgentEntry(
        id=agent_id,
        aliases=tuple(parse_pattern(p) for p in patterns if p.strip()),
        session_ref=session_ref or None,
        is_primary=is_primary,
    )


class AgentRegistry:
    """Immutable, ordered collection of hosted agents.

    Built once at startup. The primary entry is the bridge's own identity.
    """

    def __init__(self, entries: Iterable[AgentEntry]) -> None:
        by_id: dict[str, AgentEntry] = {}
        for entry in entries:
            if entry.id in by_id:
                raise ValueError(f"Duplicate agent id: {entry.id}")
            by_id[entry.id] = entry
        self._entries = tuple(by_id.values())
        self._by_id = by_id

    def __iter__(self) -> Iterator[AgentEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, agent_id: object) -> bool:
        return isinstance(agent_id, str) and agent_id.lower() in self._by_id

    @property
    def primary(self) -> AgentEntry | None:
        return next((e for e in self._entries if e.is_primary), None)

    @property
    def ids(self) -> list[str]:
        return [e.id for e in self._entries]

    def get(self, agent_id: str) -> AgentEntry | None:
        return self._by_id.get(agent_id.lower())

    def resolve(self, name: str) -> AgentEntry | None:
        """Find the hosted agent a sender name refers to, by id or alias."""
        for entry in self._entries:
            if entry.answers_to(name):
                return entry
        return None
