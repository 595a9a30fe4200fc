"""NATS bus clients — core pub/sub and JetStream durable stream backends."""

import asyncio
import logging
from typing import Any

import nats
import nats.errors
import nats.js.errors
from nats.aio.client import Client as NATSClient
from nats.aio.msg import Msg
from nats.js.api import ConsumerConfig, DeliverPolicy
from nats.js.client import JetStreamContext

from agentbridge.client.base import BusClient, RawHandler
from agentbridge.errors import TransportError
from agentbridge.helpers.factory import encode
from agentbridge.models.envelope import Envelope

logger = logging.getLogger(__name__)

DEFAULT_URL = "nats://localhost:4222"
DEFAULT_CHANNEL = "agent-bridge"
DEFAULT_STREAM = "AGENTBRIDGE"
MAX_BACKOFF_SECONDS = 30.0

_CONNECT_ERRORS = (nats.errors.Error, OSError, asyncio.TimeoutError)


def backoff_delay(attempt: int) -> float:
    """Linear backoff: one second per attempt, capped."""
    return min(attempt * 1.0, MAX_BACKOFF_SECONDS)


class NatsBusClient(BusClient):
    """Ephemeral pub/sub over core NATS. No redelivery, no acks.

    Usage:
        client = NatsBusClient("nats://localhost:4222", channel="agent-bridge")
        await client.connect()
        await client.subscribe(handler)
        await client.publish(envelope)
        await client.close()

    NATS multiplexes publishes and subscriptions safely on one connection,
    so a single client serves both directions.
    """

    def __init__(
        self,
        url: str = DEFAULT_URL,
        channel: str = DEFAULT_CHANNEL,
        *,
        max_connect_attempts: int | None = None,
    ) -> None:
        self._url = url
        self._channel = channel
        self._max_connect_attempts = max_connect_attempts
        self._nc: NATSClient | None = None
        self._subscriptions: list[Any] = []

    @property
    def channel(self) -> str:
        return self._channel

    @property
    def is_connected(self) -> bool:
        return self._nc is not None and self._nc.is_connected

    async def connect(self) -> None:
        """Connect to NATS, retrying with a bounded linear backoff.

        Without `max_connect_attempts` the client never gives up, neither on
        the first connect nor on later reconnects.
        """
        reconnect_attempts = -1 if self._max_connect_attempts is None else self._max_connect_attempts
        attempt = 0
        while True:
            attempt += 1
            try:
                self._nc = await nats.connect(
                    self._url,
                    reconnected_cb=self._on_reconnect,
                    disconnected_cb=self._on_disconnect,
                    error_cb=self._on_error,
                    max_reconnect_attempts=reconnect_attempts,
                    reconnect_time_wait=2,
                )
                break
            except _CONNECT_ERRORS as e:
                if self._max_connect_attempts is not None and attempt >= self._max_connect_attempts:
                    raise TransportError(
                        f"could not connect to {self._url} after {attempt} attempts: {e}"
                    ) from e
                delay = backoff_delay(attempt)
                logger.warning(
                    "Connect to %s failed (attempt %d): %s, retrying in %.0fs",
                    self._url,
                    attempt,
                    e,
                    delay,
                )
                await asyncio.sleep(delay)
        logger.info("Connected to NATS at %s", self._url)

    def _require_connection(self) -> NATSClient:
        if self._nc is None:
            raise TransportError("Not connected. Call connect() first.")
        return self._nc

    async def publish(self, envelope: Envelope) -> None:
        nc = self._require_connection()
        try:
            await nc.publish(self._channel, encode(envelope))
        except nats.errors.Error as e:
            raise TransportError(f"publish to {self._channel} failed: {e}") from e
        logger.debug("Published to %s: %s", self._channel, envelope.id)

    async def subscribe(self, handler: RawHandler) -> None:
        nc = self._require_connection()

        async def _msg_handler(msg: Msg) -> None:
            try:
                await handler(msg.data)
            except Exception:
                logger.exception("Error handling message on %s", self._channel)

        sub = await nc.subscribe(self._channel, cb=_msg_handler)
        self._subscriptions.append(sub)
        logger.info("Subscribed to %s", self._channel)

    async def close(self) -> None:
        """Unsubscribe and disconnect."""
        for sub in self._subscriptions:
            try:
                await sub.unsubscribe()
            except nats.errors.Error as e:
                logger.debug("Unsubscribe failed: %s", e)
        self._subscriptions.clear()

        if self._nc is not None:
            await self._nc.drain()
            self._nc = None
        logger.info("Disconnected from NATS")

    async def _on_reconnect(self, _: Any = None) -> None:
        logger.info("Reconnected to NATS at %s", self._url)

    async def _on_disconnect(self, _: Any = None) -> None:
        logger.warning("Disconnected from NATS")

    async def _on_error(self, e: Exception) -> None:
        logger.error("NATS error: %s", e)


class JetStreamBusClient(NatsBusClient):
    """Durable consumer-group stream over JetStream.

    Delivery is at-least-once: each message is acked after its handler
    returns, and unacked messages come back after the server's ack wait.
    The consumer loop fetches with a bounded timeout and recreates the
    durable consumer if the server loses it.
    """

    def __init__(
        self,
        url: str = DEFAULT_URL,
        channel: str = DEFAULT_CHANNEL,
        *,
        stream: str = DEFAULT_STREAM,
        durable: str = "bridge",
        batch_size: int = 10,
        fetch_timeout: float = 5.0,
        max_connect_attempts: int | None = None,
    ) -> None:
        super().__init__(url, channel, max_connect_attempts=max_connect_attempts)
        self._stream = stream
        self._durable = durable
        self._batch_size = batch_size
        self._fetch_timeout = fetch_timeout
        self._js: JetStreamContext | None = None
        self._consumer_task: asyncio.Task[None] | None = None
        self._running = False

    async def connect(self) -> None:
        """Connect and make sure the stream exists."""
        await super().connect()
        nc = self._require_connection()
        self._js = nc.jetstream()

        await self._ensure_stream()

    @property
    def stream(self) -> str:
        return self._stream

    async def _ensure_stream(self) -> None:
        """Bind to the stream that owns the channel, creating it if none does."""
        js = self._require_js()
        try:
            existing = await js.find_stream_name_by_subject(self._channel)
        except nats.js.errors.NotFoundError:
            await js.add_stream(name=self._stream, subjects=[self._channel])
            logger.info("Created JetStream stream '%s'", self._stream)
            return

        if existing != self._stream:
            logger.warning(
                "Channel %s belongs to stream '%s', not '%s'; using '%s'",
                self._channel,
                existing,
                self._stream,
                existing,
            )
            self._stream = existing
        logger.info("JetStream stream '%s' already exists", self._stream)

    def _require_js(self) -> JetStreamContext:
        if self._js is None:
            raise TransportError("Not connected. Call connect() first.")
        return self._js

    async def publish(self, envelope: Envelope) -> None:
        js = self._require_js()
        try:
            await js.publish(self._channel, encode(envelope))
        except nats.errors.Error as e:
            raise TransportError(f"publish to stream {self._stream} failed: {e}") from e
        logger.debug("Published to stream %s: %s", self._stream, envelope.id)

    async def subscribe(self, handler: RawHandler) -> None:
        self._require_js()
        self._running = True
        self._consumer_task = asyncio.create_task(self._consume(handler))
        logger.info("Consuming %s as durable '%s'", self._channel, self._durable)

    async def _consume(self, handler: RawHandler) -> None:
        js = self._require_js()
        attempt = 0
        while self._running:
            try:
                psub = await js.pull_subscribe(
                    self._channel,
                    durable=self._durable,
                    stream=self._stream,
                    config=ConsumerConfig(deliver_policy=DeliverPolicy.NEW),
                )
            except nats.errors.Error as e:
                attempt += 1
                delay = backoff_delay(attempt)
                logger.warning("Consumer setup failed: %s, retrying in %.0fs", e, delay)
                await asyncio.sleep(delay)
                continue

            attempt = 0
            self._subscriptions.append(psub)
            while self._running:
                try:
                    msgs = await psub.fetch(self._batch_size, timeout=self._fetch_timeout)
                except nats.errors.TimeoutError:
                    continue
                except nats.js.errors.NotFoundError:
                    logger.warning("Durable consumer '%s' disappeared, recreating", self._durable)
                    break
                except nats.errors.Error as e:
                    logger.warning("Fetch failed: %s", e)
                    await asyncio.sleep(backoff_delay(1))
                    continue

                for msg in msgs:
                    await self._deliver(msg, handler)

            self._subscriptions.remove(psub)

    async def _deliver(self, msg: Msg, handler: RawHandler) -> None:
        try:
            await handler(msg.data)
        except Exception:
            logger.exception("Error handling message on %s", self._channel)
        finally:
            try:
                await msg.ack()
            except nats.errors.Error as e:
                logger.warning("Ack failed: %s", e)

    async def close(self) -> None:
        self._running = False
        if self._consumer_task is not None:
            self._consumer_task.cancel()
            try:
                await self._consumer_task
            except asyncio.CancelledError:
                pass
            self._consumer_task = None
        await super().close()
        self._js = None
