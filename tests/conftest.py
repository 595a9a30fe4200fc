"""Shared test fixtures."""

import os

import pytest
from agentbridge import (
    AgentInjector,
    BusClient,
    Envelope,
    InjectionRequest,
    InjectionResult,
    InjectorError,
    NatsBusClient,
    encode,
)
from agentbridge.client.base import RawHandler


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class RecordingInjector(AgentInjector):
    """Records every request; replies with `output` or fails for `failing` targets."""

    def __init__(self, output: str = "", failing: set[str] | None = None) -> None:
        self.requests: list[InjectionRequest] = []
        self.output = output
        self.failing = failing or set()

    async def inject(self, request: InjectionRequest) -> InjectionResult:
        self.requests.append(request)
        if request.target in self.failing:
            raise InjectorError(request.target, "exit status 1: boom", exit_status=1)
        return InjectionResult(exit_status=0, output=self.output)

    @property
    def targets(self) -> list[str]:
        return [r.target for r in self.requests]


class InMemoryBus(BusClient):
    """Bus that keeps published envelopes and hands raw payloads to subscribers."""

    def __init__(self, loopback: bool = False) -> None:
        self.published: list[Envelope] = []
        self.loopback = loopback
        self.connected = False
        self.closed = False
        self._handlers: list[RawHandler] = []

    @property
    def is_connected(self) -> bool:
        return self.connected

    async def connect(self) -> None:
        self.connected = True

    async def publish(self, envelope: Envelope) -> None:
        self.published.append(envelope)
        if self.loopback:
            await self.deliver(encode(envelope))

    async def subscribe(self, handler: RawHandler) -> None:
        self._handlers.append(handler)

    async def deliver(self, raw: bytes | str) -> None:
        for handler in self._handlers:
            await handler(raw)

    async def close(self) -> None:
        self.connected = False
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def injector() -> RecordingInjector:
    return RecordingInjector()


@pytest.fixture
def make_injector() -> type[RecordingInjector]:
    return RecordingInjector


@pytest.fixture
def bus() -> InMemoryBus:
    return InMemoryBus()


@pytest.fixture
def loopback_bus() -> InMemoryBus:
    return InMemoryBus(loopback=True)


@pytest.fixture
def nats_url() -> str:
    return os.environ.get("NATS_URL", "nats://localhost:4222")


@pytest.fixture
async def bus_client(nats_url: str) -> NatsBusClient:
    """Provide a connected NatsBusClient, cleaned up after use."""
    client = NatsBusClient(nats_url, channel="agent-bridge-test", max_connect_attempts=1)
    await client.connect()
    yield client  # type: ignore[misc]
    await client.close()


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Integration tests only run when NATS_URL points at a server."""
    if os.environ.get("NATS_URL"):
        return
    skip = pytest.mark.skip(reason="set NATS_URL to run integration tests")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)
