"""Resolve loose device references (MAC, partial name, interactive choice)."""

import logging
from typing import Callable, Iterable, Sequence

from .bluez.constants import MAC_RE
from .bluez.models import Device
from .exceptions import NotFoundError

logger = logging.getLogger(__name__)

_STRIP = str.maketrans("", "", " _-/")


def normalize(text: str) -> str:
    """Lower-case and drop spaces, underscores, hyphens and slashes."""
    return text.translate(_STRIP).lower()


def similar(fragment: str, candidate: str) -> bool:
    """True if ``fragment`` appears anywhere in ``candidate`` after normalizing.

    An empty fragment is similar to every candidate.
    """
    fragment = normalize(fragment)
    candidate = normalize(candidate)
    return (
        candidate.startswith(fragment)
        or candidate.endswith(fragment)
        or fragment in candidate
    )


def name_similar_to(fragment: str) -> Callable[[Device], bool]:
    """Discovery predicate accepting devices whose name is similar to ``fragment``."""
    return lambda device: similar(fragment, device.name)


def first_similar(fragment: str, devices: Iterable[Device]) -> Device | None:
    """Return the first device whose name is similar to ``fragment``.

    Matches are not ranked; iteration order decides.
    """
    for device in devices:
        if similar(fragment, device.name):
            logger.debug("Device name %r matches %r", device.name, fragment)
            return device
    return None


def normalize_address(text: str) -> str:
    """Validate a MAC address and return it in uppercase colon-hex."""
    address = text.strip().upper().replace("-", ":")
    if not MAC_RE.match(address):
        raise ValueError(f"{text!r} is not a Bluetooth address (expected XX:XX:XX:XX:XX:XX)")
    return address


def resolve_device(
    devices: Sequence[Device],
    address: str | None = None,
    name: str | None = None,
    chooser: Callable[[Sequence[Device]], Device] | None = None,
) -> str:
    """Turn an address, a name fragment or a user choice into a MAC address.

    A name picks the first similar cached device and takes precedence over
    an address given alongside it.  Failing both, ``chooser`` is asked to
    pick one of the cached devices.
    """
    if address and not name:
        return address

    if not devices:
        raise NotFoundError(
            "No bluetooth devices found, please specify a --device or --device-name"
        )

    if name:
        match = first_similar(name, devices)
        if match is not None:
            return match.address
        logger.debug("No cached device similar to %r", name)
        if address:
            return address

    if chooser is None:
        raise NotFoundError(f"No device matches {name or address!r}")
    return chooser(devices).address
