"""BlueZ D-Bus names and object path helpers."""

import re

# BlueZ D-Bus service and interface names
BLUEZ_SERVICE = "org.bluez"
BLUEZ_ROOT_PATH = "/org/bluez"
ADAPTER_INTERFACE = "org.bluez.Adapter1"
DEVICE_INTERFACE = "org.bluez.Device1"
PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"
OBJECT_MANAGER_INTERFACE = "org.freedesktop.DBus.ObjectManager"

# Bus daemon, used for match rule registration
DBUS_SERVICE = "org.freedesktop.DBus"
DBUS_PATH = "/org/freedesktop/DBus"
DBUS_INTERFACE = "org.freedesktop.DBus"

# Errors in this namespace come from BlueZ or the remote device itself
BLUEZ_ERROR_PREFIX = "org.bluez.Error."

INTERFACES_ADDED = "InterfacesAdded"
OBJECT_MANAGER_MATCH_RULE = (
    f"type='signal',interface='{OBJECT_MANAGER_INTERFACE}',path='/'"
)

DEFAULT_ADAPTER = "hci0"

MAC_RE = re.compile(r"^[0-9A-F]{2}(:[0-9A-F]{2}){5}$")


def adapter_path(adapter: str) -> str:
    """Return the object path for an adapter name such as ``hci0``."""
    return f"{BLUEZ_ROOT_PATH}/{adapter}"


def device_path(adapter: str, address: str) -> str:
    """Return the object path BlueZ uses for a device on an adapter.

    ``device_path("hci0", "2C:41:A1:49:37:CF")`` is
    ``/org/bluez/hci0/dev_2C_41_A1_49_37_CF``.  No bus round trip is needed.
    """
    return f"{adapter_path(adapter)}/dev_{address.replace(':', '_')}"


def path_name(path: str) -> str:
    """Return the last segment of an object path (``/org/bluez/hci0`` -> ``hci0``)."""
    return path.rsplit("/", 1)[-1]
