"""BridgeService — wires the bus, relay core and injector for one agent."""

import logging

from agentbridge import (
    AgentInjector,
    BridgeConfig,
    BusClient,
    JetStreamBusClient,
    LoopGuard,
    NatsBusClient,
    RelayCore,
    SubprocessInjector,
)
from agentbridge.relay.guard import Clock, monotonic_ms

logger = logging.getLogger(__name__)


def build_bus(config: BridgeConfig, *, max_connect_attempts: int | None = None) -> BusClient:
    """Pick the transport backend named by BUS_MODE."""
    if config.bus_mode == "stream":
        return JetStreamBusClient(
            config.nats_url,
            config.channel,
            stream=config.stream_name,
            durable=config.durable,
            max_connect_attempts=max_connect_attempts,
        )
    return NatsBusClient(config.nats_url, config.channel, max_connect_attempts=max_connect_attempts)


def build_injector(config: BridgeConfig) -> AgentInjector:
    return SubprocessInjector(
        config.injector_bin,
        channel=config.inject_channel,
        destination=config.group_id,
        timeout=config.inject_timeout,
    )


class BridgeService:
    """One bridge process: consumes the channel and injects into local agents.

    The registry is built once from config. The loop guard and relay core
    live for the lifetime of the service.
    """

    def __init__(
        self,
        config: BridgeConfig,
        *,
        bus: BusClient | None = None,
        injector: AgentInjector | None = None,
        clock: Clock = monotonic_ms,
    ) -> None:
        self._config = config
        self._registry = config.build_registry()
        self._bus = bus if bus is not None else build_bus(config)
        self._guard = LoopGuard(
            local_id=config.agent_name,
            max_depth=config.max_depth,
            cooldown_ms=config.cooldown_ms,
            clock=clock,
        )
        self._relay = RelayCore(
            self._registry,
            self._guard,
            injector if injector is not None else build_injector(config),
            self._bus,
            republish_responses=config.republish_responses,
        )

    @property
    def relay(self) -> RelayCore:
        """Expose the relay for testing."""
        return self._relay

    async def start(self) -> None:
        """Connect to the bus and start consuming."""
        await self._bus.connect()
        await self._bus.subscribe(self._relay.handle)
        logger.info(
            "[%s] bridge running on %s (%s), hosting %s",
            self._config.agent_name,
            self._config.channel,
            self._config.bus_mode,
            ", ".join(self._registry.ids),
        )

    async def stop(self) -> None:
        """Close the bus and abandon in-flight injections."""
        await self._bus.close()
        await self._relay.close()
        logger.info("[%s] bridge stopped", self._config.agent_name)
