"""Async stream of D-Bus signals matching a registered match rule."""

import asyncio
import logging

from dbus_next import Message, MessageType

from .bus import BluezBus
from .constants import OBJECT_MANAGER_MATCH_RULE

logger = logging.getLogger(__name__)

_CLOSED = object()


class SignalWatcher:
    """Queue every inbound signal until the watcher is closed.

    The message handler only enqueues, and the queue is unbounded, so a
    signal arriving while the consumer is busy is buffered rather than lost.
    Iteration ends after ``close()`` or when the bus disconnects.
    """

    def __init__(self, bus: BluezBus, match_rule: str = OBJECT_MANAGER_MATCH_RULE):
        self._bus = bus
        self._match_rule = match_rule
        self._queue: asyncio.Queue = asyncio.Queue()
        self._started = False
        self._closed = False
        self._disconnect_task: asyncio.Task | None = None

    async def start(self) -> None:
        """Register the match rule, then start buffering signals."""
        if self._started:
            return
        await self._bus.add_match(self._match_rule)
        self._bus.add_message_handler(self._on_message)
        self._disconnect_task = asyncio.create_task(self._watch_disconnect())
        self._started = True
        logger.debug("Watching signals: %s", self._match_rule)

    def _on_message(self, msg: Message) -> bool:
        if msg.message_type == MessageType.SIGNAL and not self._closed:
            self._queue.put_nowait(msg)
        return False  # don't consume

    async def _watch_disconnect(self) -> None:
        try:
            await self._bus.wait_for_disconnect()
        except asyncio.CancelledError:
            return
        except Exception as e:
            logger.debug("Bus disconnected with error: %s", e)
        logger.info("Bus disconnected, ending signal stream")
        self._finish()

    def _finish(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._bus.remove_message_handler(self._on_message)
        self._queue.put_nowait(_CLOSED)

    async def close(self) -> None:
        """Stop the stream and unregister the match rule."""
        if not self._started or self._closed:
            self._closed = True
            return
        self._finish()
        if self._disconnect_task and not self._disconnect_task.done():
            self._disconnect_task.cancel()
            try:
                await self._disconnect_task
            except asyncio.CancelledError:
                pass
        await self._bus.remove_match(self._match_rule)
        logger.debug("Stopped watching signals: %s", self._match_rule)

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "SignalWatcher":
        return self

    async def __anext__(self) -> Message:
        msg = await self._queue.get()
        if msg is _CLOSED:
            # Leave the marker for any other consumer of this watcher
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return msg
