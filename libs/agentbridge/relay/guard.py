"""Loop guard — self-origin, depth ceiling and global cooldown."""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from agentbridge.models.envelope import Envelope

DEFAULT_MAX_DEPTH = 3
DEFAULT_COOLDOWN_MS = 5000

Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000


class RejectReason(StrEnum):
    """Why the guard refused an envelope, in evaluation order."""

    SELF_ORIGIN = "self_origin"
    DEPTH_EXCEEDED = "depth_exceeded"
    COOLDOWN = "cooldown"


@dataclass(frozen=True)
class Admission:
    """Outcome of a guard check."""

    admitted: bool
    reason: RejectReason | None = None

    def __bool__(self) -> bool:
        return self.admitted


ADMITTED = Admission(admitted=True)


@dataclass
class LoopGuard:
    """Decides whether an inbound chat envelope may trigger injections.

    The cooldown is process-wide: one admission blocks every other envelope
    for `cooldown_ms`, regardless of sender or target. `last_inject_at`
    only moves forward.
    """

    local_id: str
    max_depth: int = DEFAULT_MAX_DEPTH
    cooldown_ms: int = DEFAULT_COOLDOWN_MS
    clock: Clock = monotonic_ms
    last_inject_at: float | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.local_id = self.local_id.lower()

    def admit(self, envelope: Envelope) -> Admission:
        """Check an envelope and, if admitted, record the injection time."""
        if envelope.from_agent.lower() == self.local_id and not envelope.is_echo:
            return Admission(admitted=False, reason=RejectReason.SELF_ORIGIN)

        if envelope.depth >= self.max_depth:
            return Admission(admitted=False, reason=RejectReason.DEPTH_EXCEEDED)

        with self._lock:
            now = self.clock()
            if self.last_inject_at is not None and now - self.last_inject_at < self.cooldown_ms:
                return Admission(admitted=False, reason=RejectReason.COOLDOWN)
            self.last_inject_at = max(now, self.last_inject_at or now)
        return ADMITTED

    def remaining_cooldown_ms(self) -> float:
        """Milliseconds until the next admission is possible."""
        if self.last_inject_at is None:
            return 0.0
        return max(0.0, self.cooldown_ms - (self.clock() - self.last_inject_at))
