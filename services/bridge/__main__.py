"""Entry point: python -m services.bridge"""

import asyncio
import contextlib
import logging
import os
import signal
import sys

from agentbridge import BridgeConfig, ConfigError
from dotenv import load_dotenv

from services.bridge.bridge import BridgeService

logger = logging.getLogger(__name__)


async def serve(bridge: BridgeService, stop_event: asyncio.Event) -> None:
    """Run the bridge until `stop_event` is set, even while it is still connecting."""
    start_task = asyncio.create_task(bridge.start())
    stop_task = asyncio.create_task(stop_event.wait())
    done, _ = await asyncio.wait({start_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)

    if start_task not in done:
        logger.info("Stopped before the bus connected")
        start_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await start_task
    else:
        try:
            start_task.result()
        except BaseException:
            stop_task.cancel()
            raise
        await stop_task

    await bridge.stop()


async def main() -> None:
    load_dotenv(override=False)
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    try:
        config = BridgeConfig.from_env()
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(1)

    bridge = BridgeService(config)
    loop = asyncio.get_running_loop()

    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("Shutdown signal received")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    await serve(bridge, stop_event)


if __name__ == "__main__":
    asyncio.run(main())
