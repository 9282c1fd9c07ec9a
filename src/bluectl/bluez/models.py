"""Typed Adapter and Device records decoded from BlueZ property bags.

BlueZ reports properties as ``a{sv}`` dictionaries whose values arrive as
``dbus_next.Variant``.  The decoders here accept either Variants or already
unwrapped values, and refuse partial records: a missing or mistyped
property raises :class:`~bluectl.exceptions.DecodeError` for that entity.
"""

from dataclasses import dataclass
from typing import Any

from ..exceptions import DecodeError
from .constants import ADAPTER_INTERFACE, DEVICE_INTERFACE, MAC_RE, path_name


@dataclass(frozen=True)
class Adapter:
    """A local Bluetooth radio (org.bluez.Adapter1)."""

    path: str
    name: str
    alias: str
    address: str
    discoverable: bool
    pairable: bool
    powered: bool
    discovering: bool

    @property
    def id(self) -> str:
        """Short adapter name used in object paths, e.g. ``hci0``."""
        return path_name(self.path)


@dataclass(frozen=True)
class Device:
    """A remote Bluetooth peer known to BlueZ (org.bluez.Device1)."""

    path: str
    name: str
    alias: str
    address: str
    adapter: str  # owning adapter's object path
    paired: bool
    connected: bool
    trusted: bool
    blocked: bool

    @property
    def adapter_id(self) -> str:
        return path_name(self.adapter)


def _unwrap(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


def _get(props: dict, key: str, kind: type, path: str) -> Any:
    if key not in props:
        raise DecodeError(f"Missing property {key!r}", path=path, key=key)
    value = _unwrap(props[key])
    if not isinstance(value, kind):
        raise DecodeError(
            f"Property {key!r} is {type(value).__name__}, expected {kind.__name__}",
            path=path,
            key=key,
        )
    return value


def _get_address(props: dict, path: str) -> str:
    address = _get(props, "Address", str, path)
    if not MAC_RE.match(address):
        raise DecodeError(f"Malformed address {address!r}", path=path, key="Address")
    return address


def decode_adapter(path: str, props: dict) -> Adapter:
    if not isinstance(props, dict):
        raise DecodeError("Adapter properties are not a mapping", path=path)
    return Adapter(
        path=path,
        name=_get(props, "Name", str, path),
        alias=_get(props, "Alias", str, path),
        address=_get_address(props, path),
        discoverable=_get(props, "Discoverable", bool, path),
        pairable=_get(props, "Pairable", bool, path),
        powered=_get(props, "Powered", bool, path),
        discovering=_get(props, "Discovering", bool, path),
    )


def decode_device(path: str, props: dict) -> Device:
    if not isinstance(props, dict):
        raise DecodeError("Device properties are not a mapping", path=path)
    return Device(
        path=path,
        name=_get(props, "Name", str, path),
        alias=_get(props, "Alias", str, path),
        address=_get_address(props, path),
        adapter=_get(props, "Adapter", str, path),
        paired=_get(props, "Paired", bool, path),
        connected=_get(props, "Connected", bool, path),
        trusted=_get(props, "Trusted", bool, path),
        blocked=_get(props, "Blocked", bool, path),
    )


def decode_interfaces(
    path: str, interfaces: dict[str, dict]
) -> tuple[list[Adapter], list[Device]]:
    """Decode every recognised interface on one object.

    Interfaces other than Adapter1 and Device1 are ignored.  A DecodeError
    propagates so the caller can decide whether to skip the entity.
    """
    adapters: list[Adapter] = []
    devices: list[Device] = []
    for interface_name, props in interfaces.items():
        if interface_name == ADAPTER_INTERFACE:
            adapters.append(decode_adapter(path, props))
        elif interface_name == DEVICE_INTERFACE:
            devices.append(decode_device(path, props))
    return adapters, devices
