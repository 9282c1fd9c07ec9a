"""Request/reply and match-rule helpers over a dbus-next MessageBus.

Every BlueZ call in bluectl goes through :class:`BluezBus.call`, which turns
D-Bus error replies into :class:`~bluectl.exceptions.TransportError` or
:class:`~bluectl.exceptions.OperationError` with the call's context attached.
"""

import logging
from typing import Any, Callable

from dbus_next import BusType, Message, MessageType, Variant
from dbus_next.aio import MessageBus
from dbus_next.errors import AuthError

from ..exceptions import OperationError, TransportError
from .constants import (
    BLUEZ_ERROR_PREFIX,
    BLUEZ_SERVICE,
    DBUS_INTERFACE,
    DBUS_PATH,
    DBUS_SERVICE,
    OBJECT_MANAGER_INTERFACE,
    PROPERTIES_INTERFACE,
)

logger = logging.getLogger(__name__)


class BluezBus:
    """Wraps a connected MessageBus for calls against the BlueZ service."""

    def __init__(self, bus: MessageBus):
        self._bus = bus

    @classmethod
    async def connect(cls) -> "BluezBus":
        """Connect to the system D-Bus."""
        try:
            bus = await MessageBus(bus_type=BusType.SYSTEM).connect()
        except (OSError, AuthError) as e:
            raise TransportError(
                f"Unable to connect to the system bus: {e}", operation="Connect"
            ) from e
        logger.info("Connected to system D-Bus")
        return cls(bus)

    @property
    def bus(self) -> MessageBus:
        return self._bus

    async def call(
        self,
        path: str,
        interface: str,
        member: str,
        signature: str = "",
        body: list | None = None,
        destination: str = BLUEZ_SERVICE,
    ) -> list:
        """Call a method and return the reply body.

        Raises OperationError for ``org.bluez.Error.*`` replies and
        TransportError for any other failure.
        """
        message = Message(
            destination=destination,
            path=path,
            interface=interface,
            member=member,
            signature=signature,
            body=body or [],
        )
        logger.debug("D-Bus call %s.%s path=%s", interface, member, path)
        try:
            reply = await self._bus.call(message)
        except (OSError, EOFError) as e:
            raise TransportError(str(e), operation=member, path=path) from e

        if reply is None:
            raise TransportError("No reply received", operation=member, path=path)

        if reply.message_type == MessageType.ERROR:
            error_name = reply.error_name or ""
            if reply.body and isinstance(reply.body[0], str):
                text = reply.body[0]
            else:
                text = error_name
            error_cls = (
                OperationError
                if error_name.startswith(BLUEZ_ERROR_PREFIX)
                else TransportError
            )
            raise error_cls(text, operation=member, path=path, error_name=error_name)
        return reply.body

    async def get_managed_objects(self) -> dict[str, dict[str, dict[str, Any]]]:
        """Return path -> interface -> properties for every BlueZ object."""
        body = await self.call("/", OBJECT_MANAGER_INTERFACE, "GetManagedObjects")
        return body[0] if body else {}

    async def get_all(self, path: str, interface: str) -> dict[str, Any]:
        body = await self.call(
            path, PROPERTIES_INTERFACE, "GetAll", signature="s", body=[interface]
        )
        return body[0] if body else {}

    async def set_property(
        self, path: str, interface: str, name: str, value: Variant
    ) -> None:
        await self.call(
            path,
            PROPERTIES_INTERFACE,
            "Set",
            signature="ssv",
            body=[interface, name, value],
        )

    async def add_match(self, rule: str) -> None:
        """Register a signal match rule with the bus daemon."""
        await self.call(
            DBUS_PATH, DBUS_INTERFACE, "AddMatch",
            signature="s", body=[rule], destination=DBUS_SERVICE,
        )

    async def remove_match(self, rule: str) -> None:
        await self.call(
            DBUS_PATH, DBUS_INTERFACE, "RemoveMatch",
            signature="s", body=[rule], destination=DBUS_SERVICE,
        )

    def add_message_handler(self, handler: Callable[[Message], Any]) -> None:
        self._bus.add_message_handler(handler)

    def remove_message_handler(self, handler: Callable[[Message], Any]) -> None:
        self._bus.remove_message_handler(handler)

    async def wait_for_disconnect(self) -> None:
        await self._bus.wait_for_disconnect()

    def disconnect(self) -> None:
        self._bus.disconnect()
