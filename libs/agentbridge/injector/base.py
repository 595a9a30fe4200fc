"""Injector interface — hand-off of rendered text into a local agent."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from agentbridge.models.envelope import EnvelopeKind


@dataclass(frozen=True)
class InjectionRequest:
    """One delivery into one target agent."""

    target: str
    text: str
    session_ref: str | None = None
    kind: EnvelopeKind = EnvelopeKind.MESSAGE
    is_primary: bool = True


@dataclass(frozen=True)
class InjectionResult:
    """What the target agent's runtime returned."""

    exit_status: int
    output: str = ""


class AgentInjector(ABC):
    """Delivers an InjectionRequest without blocking the relay loop.

    Implementations raise InjectorError on spawn failure, timeout or a
    non-zero exit.
    """

    @abstractmethod
    async def inject(self, request: InjectionRequest) -> InjectionResult: ...
