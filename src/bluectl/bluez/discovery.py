"""Discovery session: watch InterfacesAdded until a device is accepted.

A session drives one adapter into discovery mode and folds the
ObjectManager's ``InterfacesAdded`` signals into decoded devices.  The same
fold serves both "show everything that appears" (iterate ``devices()``) and
"wait for this particular device" (``run()`` with a predicate).

Devices found by a session are kept in ``session.discovered`` only; they
never reach the TopologyCache until the caller refreshes it.
"""

import enum
import logging
from typing import AsyncIterator, Callable

from dbus_next import Message

from ..exceptions import BluezError, DecodeError
from .adapter import BluezAdapter
from .bus import BluezBus
from .constants import INTERFACES_ADDED, OBJECT_MANAGER_INTERFACE
from .models import Device, decode_interfaces
from .signals import SignalWatcher

logger = logging.getLogger(__name__)

Predicate = Callable[[Device], bool]


class DiscoveryState(enum.Enum):
    IDLE = "idle"
    DISCOVERING = "discovering"
    MATCHED = "matched"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


def accept_any(device: Device) -> bool:
    return True


def accept_none(device: Device) -> bool:
    return False


def address_is(address: str) -> Predicate:
    address = address.upper()
    return lambda device: device.address == address


def parse_interfaces_added(msg: Message) -> list[Device]:
    """Decode the devices announced by one signal.

    Returns an empty list for signals that are not ObjectManager
    InterfacesAdded or whose body is malformed.  A DecodeError for the
    announced object propagates.
    """
    if msg.member != INTERFACES_ADDED or msg.interface != OBJECT_MANAGER_INTERFACE:
        return []
    body = msg.body
    if not isinstance(body, (list, tuple)) or len(body) != 2:
        logger.debug("Dropping %s with %s body elements", INTERFACES_ADDED, len(body or ()))
        return []
    path, interfaces = body
    if not isinstance(path, str):
        logger.debug("Dropping %s: object path is %r", INTERFACES_ADDED, path)
        return []
    if not isinstance(interfaces, dict) or not all(
        isinstance(props, dict) for props in interfaces.values()
    ):
        logger.debug("Dropping %s for %s: malformed interface map", INTERFACES_ADDED, path)
        return []
    _, devices = decode_interfaces(path, interfaces)
    return devices


class DiscoverySession:
    """One discovery window on one adapter."""

    def __init__(self, bus: BluezBus, adapter: str, accept: Predicate = accept_any):
        self._adapter = BluezAdapter(bus, adapter)
        self._watcher = SignalWatcher(bus)
        self._accept = accept
        self.state = DiscoveryState.IDLE
        self.discovered: list[Device] = []
        self.match: Device | None = None

    async def start(self) -> None:
        """Subscribe to InterfacesAdded, then call StartDiscovery.

        Subscribing first means a device announced right after
        StartDiscovery returns is still seen.
        """
        if self.state is not DiscoveryState.IDLE:
            raise RuntimeError(f"Discovery session already {self.state.value}")
        try:
            await self._watcher.start()
            await self._adapter.start_discovery()
        except BluezError:
            self.state = DiscoveryState.FAILED
            await self.close()
            raise
        self.state = DiscoveryState.DISCOVERING

    async def devices(self) -> AsyncIterator[Device]:
        """Yield every device announced on this session's adapter.

        The match rule sees InterfacesAdded for all adapters; devices owned
        by another adapter are dropped.
        """
        if self.state is DiscoveryState.IDLE:
            await self.start()
        async for msg in self._watcher:
            logger.debug(
                "Received signal %s.%s path=%s", msg.interface, msg.member, msg.path
            )
            try:
                found = parse_interfaces_added(msg)
            except DecodeError as e:
                logger.warning("Skipping undecodable discovered object: %s", e)
                continue
            for device in found:
                if device.adapter != self._adapter.path:
                    logger.debug(
                        "Ignoring %s announced on %s", device.address, device.adapter
                    )
                    continue
                self.discovered.append(device)
                yield device

    async def run(self) -> Device | None:
        """Return the first accepted device, or None if the stream ends."""
        stream = self.devices()
        try:
            async for device in stream:
                if self._accept(device):
                    self.state = DiscoveryState.MATCHED
                    self.match = device
                    logger.info(
                        "Discovered matching device %s (%s)", device.name, device.address
                    )
                    return device
        finally:
            await stream.aclose()
        if self.state is DiscoveryState.DISCOVERING:
            self.state = DiscoveryState.EXHAUSTED
            logger.info("Signal stream ended without a matching device")
        return None

    async def close(self) -> None:
        """Unsubscribe and stop discovery.  Safe to call more than once."""
        try:
            await self._watcher.close()
        except BluezError as e:
            logger.debug("Removing signal match failed: %s", e)
        try:
            await self._adapter.stop_discovery()
        except BluezError as e:
            logger.debug("StopDiscovery on %s failed: %s", self._adapter.name, e)

    async def __aenter__(self) -> "DiscoverySession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def adapter(self) -> str:
        return self._adapter.name
