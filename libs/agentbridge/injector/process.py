"""SubprocessInjector — drives the agent CLI once per injection."""

import asyncio
import logging
import os

from agentbridge.errors import InjectorError
from agentbridge.injector.base import AgentInjector, InjectionRequest, InjectionResult

logger = logging.getLogger(__name__)

DEFAULT_BINARY = "openclaw"
DEFAULT_TIMEOUT_SECONDS = 180.0
DEFAULT_AGENT_TIMEOUT_SECONDS = 120
FALLBACK_PATH = "/opt/homebrew/bin:/usr/local/bin:/usr/bin:/bin"


class SubprocessInjector(AgentInjector):
    """Runs `<binary> agent ... -m <text> --deliver` for each request.

    The CLI delivers the agent's reply into the destination chat itself;
    its stdout is returned as the captured output.
    """

    def __init__(
        self,
        binary: str = DEFAULT_BINARY,
        *,
        channel: str = "telegram",
        destination: str = "",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        agent_timeout: int = DEFAULT_AGENT_TIMEOUT_SECONDS,
    ) -> None:
        self._binary = binary
        self._channel = channel
        self._destination = destination
        self._timeout = timeout
        self._agent_timeout = agent_timeout

    def build_args(self, request: InjectionRequest) -> list[str]:
        """Command-line arguments (without the binary) for a request."""
        args = ["agent"]
        if not request.is_primary:
            args += ["--agent", request.target]
        args += ["--channel", self._channel]
        if self._destination:
            args += ["--to", self._destination]
        args += [
            "-m",
            request.text,
            "--deliver",
            "--thinking",
            "off",
            "--timeout",
            str(self._agent_timeout),
        ]
        if request.session_ref:
            args += ["--session-id", request.session_ref]
        return args

    def _env(self) -> dict[str, str]:
        env = dict(os.environ)
        env.setdefault("PATH", FALLBACK_PATH)
        return env

    async def inject(self, request: InjectionRequest) -> InjectionResult:
        args = self.build_args(request)
        try:
            proc = await asyncio.create_subprocess_exec(
                self._binary,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._env(),
            )
        except OSError as e:
            raise InjectorError(request.target, f"spawn failed: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise InjectorError(request.target, f"timed out after {self._timeout:.0f}s") from e

        output = stdout.decode("utf-8", errors="replace").strip()
        if proc.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()[:200]
            raise InjectorError(
                request.target,
                f"exit status {proc.returncode}: {detail}",
                exit_status=proc.returncode,
            )
        logger.debug("[%s] injector output: %s", request.target, output[:100])
        return InjectionResult(exit_status=0, output=output)
