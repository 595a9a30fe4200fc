"""RelayCore — routes inbound bus envelopes into local agents."""

import asyncio
import logging
from collections import OrderedDict

from agentbridge.client.base import BusClient
from agentbridge.errors import DecodeError, InjectorError
from agentbridge.helpers.factory import decode, derive_message
from agentbridge.injector.base import AgentInjector, InjectionRequest, InjectionResult
from agentbridge.models.envelope import Envelope, EnvelopeKind
from agentbridge.models.registry import AgentEntry, AgentRegistry
from agentbridge.relay.guard import LoopGuard
from agentbridge.relay.mention import mentioned_agents

logger = logging.getLogger(__name__)

DEFAULT_DEDUPE_SIZE = 1024


def render_echo(envelope: Envelope) -> str:
    return f"[echo from:{envelope.from_agent}] {envelope.text}"


def render_injection(envelope: Envelope, depth: int) -> str:
    return f"[agent-bridge from:{envelope.from_agent} depth:{depth}] {envelope.text}"


class RelayCore:
    """Decides, for each inbound envelope, which local agents receive it.

    Echo envelopes fan out to every hosted agent except the one that sent
    them. Chat envelopes pass the loop guard, then go to every hosted agent
    they mention, tagged with the sender and the next depth.

    Decoding, deduplication, admission and matching all happen inside
    `handle`, one envelope at a time. Injections run as background tasks so
    a slow agent never stalls consumption; when `republish_responses` is
    set, a completed injection's output goes back onto the bus one hop
    deeper, sent from the bridge's own identity so its own loop guard
    drops the copy that comes back.
    """

    def __init__(
        self,
        registry: AgentRegistry,
        guard: LoopGuard,
        injector: AgentInjector,
        bus: BusClient | None = None,
        *,
        republish_responses: bool = False,
        dedupe_size: int = DEFAULT_DEDUPE_SIZE,
    ) -> None:
        self._registry = registry
        self._guard = guard
        self._injector = injector
        self._bus = bus
        self._republish = republish_responses and bus is not None
        self._dedupe_size = dedupe_size
        self._seen: OrderedDict[str, None] = OrderedDict()
        self._tasks: set[asyncio.Task[object]] = set()

    @property
    def guard(self) -> LoopGuard:
        return self._guard

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def handle(self, raw: bytes | str) -> None:
        """Process one raw bus payload. Never raises for per-message errors."""
        try:
            envelope = decode(raw)
        except DecodeError as e:
            logger.warning("Dropping undecodable message: %s", e)
            return

        if self._is_duplicate(envelope.id):
            logger.debug("Dropping redelivered envelope %s", envelope.id)
            return

        if envelope.is_echo:
            self._handle_echo(envelope)
        else:
            self._handle_message(envelope)

    def _is_duplicate(self, envelope_id: str) -> bool:
        if envelope_id in self._seen:
            return True
        self._seen[envelope_id] = None
        if len(self._seen) > self._dedupe_size:
            self._seen.popitem(last=False)
        return False

    def _handle_echo(self, envelope: Envelope) -> None:
        sender = self._registry.resolve(envelope.from_agent)
        text = render_echo(envelope)
        for target in self._registry:
            if sender is not None and target.id == sender.id:
                continue
            logger.info("[%s] echo from %s: %.50s", target.id, envelope.from_agent, envelope.text)
            self._dispatch(self._request(target, text, EnvelopeKind.ECHO), parent=None)

    def _handle_message(self, envelope: Envelope) -> None:
        admission = self._guard.admit(envelope)
        if not admission:
            logger.info(
                "Guard rejected message from %s (depth %d): %s",
                envelope.from_agent,
                envelope.depth,
                admission.reason,
            )
            return

        targets = mentioned_agents(envelope.text, self._registry)
        if not targets:
            logger.debug("No local agent mentioned by %s", envelope.from_agent)
            return

        depth = envelope.depth + 1
        text = render_injection(envelope, depth)
        for target in targets:
            logger.info(
                "[%s] injecting message from %s: %.80s",
                target.id,
                envelope.from_agent,
                envelope.text,
            )
            self._dispatch(self._request(target, text, EnvelopeKind.MESSAGE), parent=envelope)

    def _request(self, target: AgentEntry, text: str, kind: EnvelopeKind) -> InjectionRequest:
        return InjectionRequest(
            target=target.id,
            text=text,
            session_ref=target.session_ref,
            kind=kind,
            is_primary=target.is_primary,
        )

    def _dispatch(self, request: InjectionRequest, parent: Envelope | None) -> None:
        task = asyncio.create_task(self._inject(request))
        self._track(task)
        if parent is not None and self._republish:
            task.add_done_callback(lambda t: self._on_injected(t, request, parent))

    def _track(self, task: asyncio.Task[object]) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _inject(self, request: InjectionRequest) -> InjectionResult | None:
        try:
            result = await self._injector.inject(request)
        except InjectorError as e:
            logger.error("[%s] %s inject failed: %s", request.target, request.kind, e.reason)
            return None
        except Exception:
            logger.exception("[%s] %s inject crashed", request.target, request.kind)
            return None
        logger.info("[%s] %s injected OK: %.100s", request.target, request.kind, result.output)
        return result

    def _on_injected(
        self, task: asyncio.Task[object], request: InjectionRequest, parent: Envelope
    ) -> None:
        if task.cancelled():
            return
        result = task.result()
        if not isinstance(result, InjectionResult) or not result.output:
            return
        reply = derive_message(parent, from_agent=self._guard.local_id, text=result.output)
        self._track(asyncio.create_task(self._publish(reply)))

    async def _publish(self, envelope: Envelope) -> None:
        assert self._bus is not None
        try:
            await self._bus.publish(envelope)
        except Exception:
            logger.exception("Republish of %s reply failed", envelope.from_agent)
            return
        logger.info("Republished reply from %s at depth %d", envelope.from_agent, envelope.depth)

    async def drain(self) -> None:
        """Wait for every in-flight injection and republish to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Abandon in-flight work."""
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()
