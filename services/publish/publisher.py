"""Manual publish: put one chat line or echo onto the bridge channel."""

import logging
from typing import TextIO

from agentbridge import BridgeConfig, BusClient, Envelope, EnvelopeKind, create_message

from services.bridge.bridge import build_bus

logger = logging.getLogger(__name__)

PUBLISH_CONNECT_ATTEMPTS = 3


def read_text(argument: str | None, stdin: TextIO) -> str:
    """The message text: the argument if given, else piped stdin.

    An interactive terminal is never read.
    """
    if argument:
        return argument.strip()
    if stdin.isatty():
        return ""
    return stdin.read().strip()


def build_envelope(from_agent: str, text: str, *, echo: bool = False) -> Envelope:
    """A fresh origin envelope: depth 0, from the given identity."""
    return create_message(
        from_agent=from_agent,
        text=text,
        kind=EnvelopeKind.ECHO if echo else EnvelopeKind.MESSAGE,
    )


async def publish_once(
    config: BridgeConfig,
    text: str,
    *,
    echo: bool = False,
    bus: BusClient | None = None,
) -> Envelope:
    """Connect, publish one envelope from `config.agent_name`, disconnect."""
    envelope = build_envelope(config.agent_name, text, echo=echo)
    client = bus if bus is not None else build_bus(config, max_connect_attempts=PUBLISH_CONNECT_ATTEMPTS)
    await client.connect()
    try:
        await client.publish(envelope)
    finally:
        await client.close()
    logger.info(
        "[publish] sent %s %s from %s: %.60s",
        envelope.kind,
        envelope.id,
        envelope.from_agent,
        envelope.text,
    )
    return envelope
