"""Bridge configuration, read from the environment."""

import os
from collections.abc import Mapping
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from agentbridge.errors import ConfigError
from agentbridge.models.registry import AgentRegistry, default_entry
from agentbridge.relay.guard import DEFAULT_COOLDOWN_MS, DEFAULT_MAX_DEPTH

# Environment variable -> BridgeConfig field
ENV_FIELDS: dict[str, str] = {
    "AGENT_NAME": "agent_name",
    "NATS_URL": "nats_url",
    "CHANNEL": "channel",
    "BUS_MODE": "bus_mode",
    "STREAM_NAME": "stream_name",
    "DURABLE_NAME": "durable_name",
    "COOLDOWN_MS": "cooldown_ms",
    "MAX_DEPTH": "max_depth",
    "EXTRA_AGENTS": "extra_agents",
    "AGENT_ALIASES": "agent_aliases",
    "SESSION_ID": "session_id",
    "EXTRA_SESSION_IDS": "extra_session_ids",
    "OPENCLAW_BIN": "injector_bin",
    "INJECT_CHANNEL": "inject_channel",
    "GROUP_ID": "group_id",
    "INJECT_TIMEOUT": "inject_timeout",
    "REPUBLISH_RESPONSES": "republish_responses",
    "LOG_LEVEL": "log_level",
}


def parse_agent_table(raw: str) -> dict[str, list[str]]:
    """Parse `id:pat1|pat2,id2:pat` into {id: [patterns]}.

    An entry without `:` lists the id alone; its patterns come from the
    built-in alias table.
    """
    table: dict[str, list[str]] = {}
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        agent_id, _, patterns = item.partition(":")
        agent_id = agent_id.strip().lower()
        if not agent_id:
            raise ConfigError(f"Agent entry without an id: {item!r}")
        table[agent_id] = [p for p in patterns.split("|") if p.strip()]
    return table


def parse_session_ids(raw: str) -> dict[str, str]:
    """Parse `id:uuid,id2:uuid2` into {id: uuid}. Malformed items are skipped."""
    sessions: dict[str, str] = {}
    for item in raw.split(","):
        agent_id, sep, ref = item.strip().partition(":")
        if sep and agent_id.strip() and ref.strip():
            sessions[agent_id.strip().lower()] = ref.strip()
    return sessions


class BridgeConfig(BaseModel):
    """Everything one bridge process needs to know."""

    agent_name: str = Field(min_length=1)
    nats_url: str = "nats://localhost:4222"
    channel: str = "agent-bridge"
    bus_mode: Literal["pubsub", "stream"] = "pubsub"
    stream_name: str = "AGENTBRIDGE"
    durable_name: str = ""
    cooldown_ms: int = Field(default=DEFAULT_COOLDOWN_MS, ge=0)
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1)
    extra_agents: str = ""
    agent_aliases: str = ""
    session_id: str = ""
    extra_session_ids: str = ""
    injector_bin: str = "openclaw"
    inject_channel: str = "telegram"
    group_id: str = ""
    inject_timeout: float = Field(default=180.0, gt=0)
    republish_responses: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "BridgeConfig":
        """Build a config from environment variables.

        Raises:
            ConfigError: If AGENT_NAME is missing or a value is invalid.
        """
        if environ is None:
            environ = os.environ
        values = {
            field_name: environ[var]
            for var, field_name in ENV_FIELDS.items()
            if environ.get(var, "").strip()
        }
        if "agent_name" not in values:
            raise ConfigError("AGENT_NAME is required")
        values["agent_name"] = values["agent_name"].strip().lower()
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(x) for x in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigError(f"Invalid configuration: {problems}") from e

    @property
    def durable(self) -> str:
        return self.durable_name or f"bridge-{self.agent_name}"

    def build_registry(self) -> AgentRegistry:
        """The hosted agents: this bridge's identity first, then extras."""
        overrides = parse_agent_table(self.agent_aliases)
        extras = parse_agent_table(self.extra_agents)
        sessions = parse_session_ids(self.extra_session_ids)

        entries = [
            default_entry(
                self.agent_name,
                session_ref=self.session_id,
                is_primary=True,
                patterns=overrides.get(self.agent_name) or None,
            )
        ]
        for agent_id, patterns in extras.items():
            if agent_id == self.agent_name:
                continue
            entries.append(
                default_entry(
                    agent_id,
                    session_ref=sessions.get(agent_id),
                    patterns=overrides.get(agent_id) or patterns or None,
                )
            )
        return AgentRegistry(entries)
