"""Point-in-time snapshot of the BlueZ adapters and devices."""

import logging
from dataclasses import dataclass

from ..exceptions import DecodeError
from .bus import BluezBus
from .constants import adapter_path, path_name
from .models import Adapter, Device, decode_interfaces

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    adapters: tuple[Adapter, ...] = ()
    devices: tuple[Device, ...] = ()


class TopologyCache:
    """Holds the last ObjectManager snapshot.

    ``refresh()`` replaces the whole snapshot with a single assignment, so
    readers always see either the previous or the new snapshot, never a mix.
    There is no incremental update: discovered devices only show up here
    after another refresh.
    """

    def __init__(self, bus: BluezBus):
        self._bus = bus
        self._snapshot = Snapshot()

    async def refresh(self) -> Snapshot:
        """Re-read GetManagedObjects and swap in the result.

        A TransportError propagates and leaves the previous snapshot intact.
        """
        objects = await self._bus.get_managed_objects()

        adapters: list[Adapter] = []
        devices: list[Device] = []
        skipped = 0
        for path, interfaces in objects.items():
            try:
                found_adapters, found_devices = decode_interfaces(path, interfaces)
            except DecodeError as e:
                skipped += 1
                logger.warning("Skipping undecodable object %s: %s", path, e)
                continue
            adapters.extend(found_adapters)
            devices.extend(found_devices)

        self._snapshot = Snapshot(adapters=tuple(adapters), devices=tuple(devices))
        logger.info(
            "Topology refreshed: %d objects, %d adapter(s), %d device(s), %d skipped",
            len(objects), len(adapters), len(devices), skipped,
        )
        return self._snapshot

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def adapters(self) -> tuple[Adapter, ...]:
        return self._snapshot.adapters

    @property
    def devices(self) -> tuple[Device, ...]:
        return self._snapshot.devices

    def find_adapter(self, adapter: str) -> Adapter | None:
        """Look up an adapter by short name (``hci0``) or object path."""
        for a in self._snapshot.adapters:
            if a.path == adapter or a.id == adapter:
                return a
        return None

    def devices_on(self, adapter: str) -> list[Device]:
        """Devices owned by an adapter, given by short name or object path."""
        path = adapter if adapter.startswith("/") else adapter_path(adapter)
        return [d for d in self._snapshot.devices if d.adapter == path]

    def find_device(self, address: str, adapter: str | None = None) -> Device | None:
        """Look up a device by MAC, optionally restricted to one adapter."""
        address = address.upper()
        for d in self._snapshot.devices:
            if d.address != address:
                continue
            if adapter is not None and adapter not in (d.adapter, path_name(d.adapter)):
                continue
            return d
        return None
