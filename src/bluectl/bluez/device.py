"""BlueZ Device1 D-Bus wrapper for individual Bluetooth device management."""

import logging

from dbus_next import Variant

from .bus import BluezBus
from .constants import DEVICE_INTERFACE, device_path
from .models import Device, decode_device

logger = logging.getLogger(__name__)


class BluezDevice:
    """Wraps org.bluez.Device1 for pairing and connecting a device.

    The object path is computed from the adapter name and MAC address, so
    no lookup is needed before issuing a call.
    """

    def __init__(self, bus: BluezBus, adapter: str, address: str):
        self._bus = bus
        self._adapter = adapter
        self._address = address
        self._path = device_path(adapter, address)

    async def pair(self) -> None:
        """Pair with a device that is currently in pairing mode."""
        logger.info("Pairing with %s on %s...", self._address, self._adapter)
        await self._bus.call(self._path, DEVICE_INTERFACE, "Pair")
        logger.info("Paired with %s", self._address)

    async def connect(self) -> None:
        """Connect all auto-connectable profiles of an already paired device."""
        logger.info("Connecting to %s on %s...", self._address, self._adapter)
        await self._bus.call(self._path, DEVICE_INTERFACE, "Connect")
        logger.info("Connected to %s", self._address)

    async def disconnect(self) -> None:
        logger.info("Disconnecting from %s...", self._address)
        await self._bus.call(self._path, DEVICE_INTERFACE, "Disconnect")
        logger.info("Disconnected from %s", self._address)

    async def get_properties(self) -> Device:
        """Get all Device1 properties."""
        props = await self._bus.get_all(self._path, DEVICE_INTERFACE)
        return decode_device(self._path, props)

    async def set_property(self, name: str, value: Variant) -> None:
        await self._bus.set_property(self._path, DEVICE_INTERFACE, name, value)

    async def set_trusted(self, trusted: bool = True) -> None:
        """Set the device as trusted (allows BlueZ auto-reconnect)."""
        await self.set_property("Trusted", Variant("b", trusted))
        logger.info("Device %s trusted=%s", self._address, trusted)

    @property
    def address(self) -> str:
        return self._address

    @property
    def adapter(self) -> str:
        return self._adapter

    @property
    def path(self) -> str:
        return self._path
