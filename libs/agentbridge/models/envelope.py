"""Envelope model — the wire format for all messages on the bus."""

import time
import uuid
from enum import StrEnum

from pydantic import AliasChoices, BaseModel, Field, model_validator


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class EnvelopeKind(StrEnum):
    """Envelope variants carried on the bus."""

    MESSAGE = "message"
    ECHO = "echo"


class Envelope(BaseModel):
    """One message unit crossing the bus.

    The `from_agent` field maps to `"from"` and `kind` maps to `"type"` in
    JSON. Always serialize with `model_dump(by_alias=True)` for wire format.
    Older publishers send the timestamp as `"ts"`; both keys are accepted.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    from_agent: str = Field(alias="from", min_length=1)
    text: str = ""
    timestamp: int = Field(
        default_factory=now_ms,
        validation_alias=AliasChoices("timestamp", "ts"),
        serialization_alias="timestamp",
    )
    depth: int = Field(default=0, ge=0)
    kind: EnvelopeKind = Field(default=EnvelopeKind.MESSAGE, alias="type")

    model_config = {"populate_by_name": True, "frozen": True}

    @model_validator(mode="after")
    def _chat_text_required(self) -> "Envelope":
        if self.kind == EnvelopeKind.MESSAGE and not self.text:
            raise ValueError("'text' must not be empty for chat messages")
        return self

    @property
    def is_echo(self) -> bool:
        return self.kind == EnvelopeKind.ECHO
