"""BlueZ D-Bus wrappers for adapter and device management."""

from .adapter import BluezAdapter
from .bus import BluezBus
from .constants import adapter_path, device_path
from .device import BluezDevice
from .discovery import DiscoverySession, DiscoveryState
from .models import Adapter, Device
from .topology import TopologyCache

__all__ = [
    "Adapter",
    "BluezAdapter",
    "BluezBus",
    "BluezDevice",
    "Device",
    "DiscoverySession",
    "DiscoveryState",
    "TopologyCache",
    "adapter_path",
    "device_path",
]
