"""Bounded retry for device connection.

BlueZ frequently fails the first Connect after a device wakes up
("br-connection-page-timeout", "Operation already in progress"), so the
auto-connect workflow gives Connect a second chance before giving up.
"""

import asyncio
import logging
from typing import Awaitable, Callable

from .exceptions import TransportError

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 2
DEFAULT_RETRY_DELAY = 1.0  # seconds


async def connect_with_retry(
    connect: Callable[[], Awaitable[None]],
    address: str,
    attempts: int = DEFAULT_ATTEMPTS,
    delay: float = DEFAULT_RETRY_DELAY,
) -> int:
    """Await ``connect()`` until it succeeds, at most ``attempts`` times.

    Returns the number of the attempt that succeeded.  The error from the
    final attempt is re-raised unchanged.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    for attempt in range(1, attempts + 1):
        try:
            await connect()
        except TransportError as e:
            if attempt == attempts:
                logger.warning(
                    "Connect to %s failed after %d attempt(s): %s", address, attempt, e
                )
                raise
            logger.info(
                "Connect attempt %d/%d for %s failed: %s, retrying in %.1fs",
                attempt, attempts, address, e, delay,
            )
            await asyncio.sleep(delay)
        else:
            if attempt > 1:
                logger.info("Connected to %s after %d attempt(s)", address, attempt)
            return attempt
