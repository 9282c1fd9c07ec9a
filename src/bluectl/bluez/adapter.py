"""BlueZ Adapter1 D-Bus wrapper."""

import logging

from dbus_next import Variant

from ..exceptions import OperationError
from .bus import BluezBus
from .constants import ADAPTER_INTERFACE, adapter_path, device_path
from .models import Adapter, decode_adapter

logger = logging.getLogger(__name__)


class BluezAdapter:
    """Wraps org.bluez.Adapter1 on one local radio.

    BlueZ reference-counts StartDiscovery/StopDiscovery per D-Bus client,
    so stopping our discovery does not affect other clients' scans.
    """

    def __init__(self, bus: BluezBus, name: str):
        self._bus = bus
        self._name = name
        self._path = adapter_path(name)
        self._discovering = False

    async def start_discovery(self) -> None:
        """Put the adapter into discovery mode."""
        await self._bus.call(self._path, ADAPTER_INTERFACE, "StartDiscovery")
        self._discovering = True
        logger.info("Device discovery started on %s", self._name)

    async def stop_discovery(self) -> None:
        """Stop our discovery session, if one was started."""
        if not self._discovering:
            return
        try:
            await self._bus.call(self._path, ADAPTER_INTERFACE, "StopDiscovery")
        except OperationError as e:
            if "No discovery started" not in str(e):
                raise
        finally:
            self._discovering = False
        logger.info("Device discovery stopped on %s", self._name)

    async def remove_device(self, address: str) -> None:
        """Permanently remove a device; it must be paired again to come back."""
        path = device_path(self._name, address)
        await self._bus.call(
            self._path, ADAPTER_INTERFACE, "RemoveDevice", signature="o", body=[path]
        )
        logger.info("Removed device %s from %s", address, self._name)

    async def get_properties(self) -> Adapter:
        """Read all Adapter1 properties."""
        props = await self._bus.get_all(self._path, ADAPTER_INTERFACE)
        return decode_adapter(self._path, props)

    async def set_property(self, name: str, value: Variant) -> None:
        await self._bus.set_property(self._path, ADAPTER_INTERFACE, name, value)
        logger.debug("Adapter %s %s=%s", self._name, name, value.value)

    async def power_on(self) -> None:
        await self.set_property("Powered", Variant("b", True))
        logger.info("Adapter %s powered on", self._name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def path(self) -> str:
        return self._path

    @property
    def discovering(self) -> bool:
        return self._discovering
