"""Factory functions for creating, encoding and decoding envelopes."""

import json
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from agentbridge.errors import DecodeError
from agentbridge.models.envelope import Envelope, EnvelopeKind


def create_message(
    *,
    from_agent: str,
    text: str,
    depth: int = 0,
    kind: EnvelopeKind = EnvelopeKind.MESSAGE,
    timestamp: int | None = None,
) -> Envelope:
    """Create an Envelope ready to publish.

    Args:
        from_agent: The agent identity sending this message.
        text: The message body.
        depth: Hop counter, 0 for messages originating here.
        kind: `message` for chat lines, `echo` for reply notifications.
        timestamp: Epoch millis; defaults to now.

    Returns:
        A fully constructed Envelope.
    """
    fields: dict[str, Any] = {"from": from_agent, "text": text, "depth": depth, "type": kind}
    if timestamp is not None:
        fields["timestamp"] = timestamp
    return Envelope(**fields)


def derive_message(parent: Envelope, *, from_agent: str, text: str) -> Envelope:
    """Create the reply to `parent`, one hop deeper."""
    return create_message(from_agent=from_agent, text=text, depth=parent.depth + 1)


def encode(envelope: Envelope) -> bytes:
    """Serialize an envelope to wire bytes (UTF-8 JSON, wire key names)."""
    return envelope.model_dump_json(by_alias=True).encode("utf-8")


def decode(data: str | bytes | Mapping[str, Any]) -> Envelope:
    """Parse raw bus data into an Envelope.

    Args:
        data: JSON string, bytes, or a field map (stream backends).

    Returns:
        A validated Envelope instance.

    Raises:
        DecodeError: If the data is not an object or doesn't match the
            Envelope schema.
    """
    try:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        if isinstance(data, str):
            data = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(f"not valid JSON: {e}") from e

    if not isinstance(data, Mapping):
        raise DecodeError(f"expected an object, got {type(data).__name__}")

    try:
        return Envelope.model_validate(dict(data))
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(x) for x in err['loc']) or 'envelope'}: {err['msg']}"
            for err in e.errors()
        )
        raise DecodeError(problems) from e
