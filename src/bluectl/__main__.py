"""Entry point for the bluectl command."""

import asyncio
import logging
import sys
from pathlib import Path

from .cli import build_parser, run
from .config import CliConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level_name: str) -> None:
    """Configure logging to stderr so command output stays on stdout."""
    level = getattr(logging, level_name.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
    # Quiet noisy libraries
    logging.getLogger("dbus_next").setLevel(logging.WARNING)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = CliConfig.load(Path(args.config) if args.config else None)
    config.apply_args(args)
    setup_logging(config.log_level)

    logger = logging.getLogger(__name__)
    logger.debug("Running %s with %s", args.command, config)

    try:
        return asyncio.run(run(args, config))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 0 if args.command == "discover" else 130


if __name__ == "__main__":
    sys.exit(main())
