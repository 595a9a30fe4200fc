"""Entry point: python -m services.publish "message text"

Or:    echo "message" | python -m services.publish
Echo:  python -m services.publish --echo --from sera "what sera just said"
"""

import argparse
import asyncio
import logging
import os
import sys

from agentbridge import BridgeConfig, ConfigError, TransportError
from dotenv import load_dotenv

from services.publish.publisher import publish_once, read_text


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="python -m services.publish")
    parser.add_argument("text", nargs="?", help="message text (default: stdin)")
    parser.add_argument("--echo", action="store_true", help="publish an echo notification")
    parser.add_argument("--from", dest="from_agent", help="sender identity (default: AGENT_NAME)")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    load_dotenv(override=False)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    logger = logging.getLogger(__name__)
    args = parse_args(argv)

    text = read_text(args.text, sys.stdin)
    if not text:
        logger.error('Usage: python -m services.publish "message text"')
        return 1

    environ = dict(os.environ)
    if args.from_agent:
        environ["AGENT_NAME"] = args.from_agent
    try:
        config = BridgeConfig.from_env(environ)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 1

    try:
        await publish_once(config, text, echo=args.echo)
    except TransportError as e:
        logger.error("Publish failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
