"""Top-level orchestrator for bluectl commands.

Owns the D-Bus connection and the TopologyCache, and sequences BlueZ calls
for pairing, connecting, disconnecting and removing devices.  None of the
operations here update the cache; call ``refresh()`` to observe the result.
"""

import logging
from typing import Callable, Sequence

from .audio.pulse import activate_a2dp_profile
from .bluez.adapter import BluezAdapter
from .bluez.bus import BluezBus
from .bluez.device import BluezDevice
from .bluez.discovery import DiscoverySession, Predicate, accept_any, address_is
from .bluez.models import Device
from .bluez.topology import Snapshot, TopologyCache
from .config import CliConfig
from .exceptions import NotFoundError
from .matching import name_similar_to, resolve_device, similar
from .reconnect import connect_with_retry

logger = logging.getLogger(__name__)


class BluetoothManager:
    """Central orchestrator for adapter and device operations."""

    def __init__(self, config: CliConfig, bus: BluezBus | None = None):
        self.config = config
        self.bus = bus
        self.cache: TopologyCache | None = None

    async def start(self) -> None:
        """Connect to the system bus and take the first snapshot."""
        if self.bus is None:
            self.bus = await BluezBus.connect()
        self.cache = TopologyCache(self.bus)
        await self.cache.refresh()

    async def shutdown(self) -> None:
        if self.bus:
            self.bus.disconnect()
            self.bus = None
        logger.debug("Bluetooth manager shut down")

    async def refresh(self) -> Snapshot:
        return await self.cache.refresh()

    def adapter(self, adapter: str | None = None) -> BluezAdapter:
        return BluezAdapter(self.bus, adapter or self.config.adapter)

    def device(self, address: str, adapter: str | None = None) -> BluezDevice:
        return BluezDevice(self.bus, adapter or self.config.adapter, address)

    # -- Device lookup --

    def resolve_device(
        self,
        address: str | None = None,
        name: str | None = None,
        chooser: Callable[[Sequence[Device]], Device] | None = None,
    ) -> str:
        """Resolve a MAC, name fragment or interactive choice to a MAC."""
        return resolve_device(self.cache.devices, address, name, chooser)

    def known_device(self, address: str | None = None, name: str | None = None) -> Device | None:
        """Return a cached device matching the address or name, if any."""
        for d in self.cache.devices:
            if address and d.address == address.upper():
                return d
            if name and similar(name, d.name):
                return d
        return None

    # -- Device lifecycle operations --

    async def pair(self, address: str, adapter: str | None = None) -> None:
        """Pair with a device that is currently discoverable."""
        device = self.device(address, adapter)
        await device.pair()
        if self.config.trust_on_pair:
            await device.set_trusted(True)

    async def pair_discovered(
        self,
        address: str | None = None,
        name: str | None = None,
        adapter: str | None = None,
    ) -> Device:
        """Discover until the wanted device appears, then pair with it.

        A device already in the cache is returned as-is, without pairing.
        With neither ``address`` nor ``name`` the first device seen is
        paired.  Raises NotFoundError if the signal stream ends first.
        """
        known = self.known_device(address, name)
        if known is not None:
            logger.info("Device %s (%s) is already paired", known.name, known.address)
            return known

        adapter = adapter or self.config.adapter
        if address and name:
            by_address, by_name = address_is(address), name_similar_to(name)
            accept: Predicate = lambda d: by_address(d) or by_name(d)
        elif address:
            accept = address_is(address)
        elif name:
            accept = name_similar_to(name)
        else:
            accept = accept_any

        async with DiscoverySession(self.bus, adapter, accept) as session:
            found = await session.run()
        if found is None:
            raise NotFoundError(
                f"Discovery on {adapter} ended before device "
                f"{address or name or '(any)'} appeared"
            )
        logger.info("Trying to pair with device %s (%s)", found.name, found.address)
        await self.pair(found.address, found.adapter_id)
        return found

    async def connect(self, address: str, adapter: str | None = None) -> None:
        """Connect an already paired device.  Single attempt."""
        await self.device(address, adapter).connect()

    async def auto_connect(self, address: str, adapter: str | None = None) -> int:
        """Power the adapter on and connect, retrying once on failure.

        Returns the attempt number that succeeded.
        """
        adapter = adapter or self.config.adapter
        await self.adapter(adapter).power_on()
        attempt = await connect_with_retry(
            lambda: self.connect(address, adapter),
            address,
            attempts=self.config.connect_attempts,
            delay=self.config.connect_retry_delay_seconds,
        )
        await self.activate_audio(address)
        return attempt

    async def disconnect(self, address: str, adapter: str | None = None) -> None:
        await self.device(address, adapter).disconnect()

    async def remove(self, address: str, adapter: str | None = None) -> None:
        """Remove (unpair) a device from the adapter."""
        await self.adapter(adapter).remove_device(address)

    def discover(
        self, adapter: str | None = None, accept: Predicate = accept_any
    ) -> DiscoverySession:
        """Create a discovery session; start it with ``async with``."""
        return DiscoverySession(self.bus, adapter or self.config.adapter, accept)

    async def activate_audio(self, address: str) -> bool:
        """Force the A2DP sink profile, if enabled in the config."""
        if not self.config.audio_profile:
            return False
        return await activate_a2dp_profile(address)
