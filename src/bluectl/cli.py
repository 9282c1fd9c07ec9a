"""Command-line interface: argument parsing and command handlers."""

import argparse
import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from rich.console import Console
from rich.table import Table

from .bluez.discovery import accept_none
from .bluez.models import Adapter, Device
from .config import CliConfig
from .exceptions import BluezError, NotFoundError
from .manager import BluetoothManager
from .matching import normalize_address

logger = logging.getLogger(__name__)

COMMANDS = ("status", "discover", "pair", "connect", "disconnect", "remove", "auto")


def _address_arg(text: str) -> str:
    try:
        return normalize_address(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--adapter", help="Adapter name, e.g. hci0 (default from settings)")
    common.add_argument("--device", type=_address_arg, help="Device MAC address")
    common.add_argument("--device-name", help="Device name, partial and case-insensitive")
    common.add_argument("--debug", action="store_true", help="Enable debug logging")
    common.add_argument("--config", help="Path to settings.json")
    common.add_argument(
        "--no-audio-profile",
        action="store_true",
        help="Do not switch the PulseAudio card to A2DP after connecting",
    )

    ap = argparse.ArgumentParser(
        prog="bluectl",
        description="Discover, pair and connect Bluetooth devices through BlueZ.",
    )
    sub = ap.add_subparsers(dest="command", metavar="COMMAND", required=True)

    sub.add_parser("status", parents=[common], help="Show known adapters and devices")
    discover = sub.add_parser(
        "discover", parents=[common], help="Watch for devices appearing on an adapter"
    )
    discover.add_argument(
        "--timeout", type=float, default=None, help="Stop watching after this many seconds"
    )
    pair = sub.add_parser(
        "pair", parents=[common], help="Pair a device; put it into pairing mode first"
    )
    pair.add_argument("--trust", action="store_true", help="Mark the device trusted after pairing")
    sub.add_parser("connect", parents=[common], help="Connect a paired device")
    sub.add_parser("disconnect", parents=[common], help="Disconnect a device")
    sub.add_parser("remove", parents=[common], help="Remove a device from an adapter")
    sub.add_parser("auto", parents=[common], help="Power on the adapter and connect, with one retry")
    return ap


# -- Output --

def adapters_table(adapters: Sequence[Adapter]) -> Table:
    t = Table(title="Adapters", show_header=True, header_style="bold magenta")
    t.add_column("#", justify="right", width=3)
    t.add_column("Adapter", style="dim")
    t.add_column("Name", overflow="fold")
    t.add_column("Alias", overflow="fold")
    t.add_column("Address", width=17)
    t.add_column("Discoverable")
    t.add_column("Pairable")
    t.add_column("Powered")
    t.add_column("Discovering")
    for i, a in enumerate(adapters, 1):
        t.add_row(
            str(i), a.id, a.name, a.alias, a.address,
            str(a.discoverable), str(a.pairable), str(a.powered), str(a.discovering),
        )
    return t


def devices_table(devices: Sequence[Device]) -> Table:
    t = Table(title="Devices", show_header=True, header_style="bold cyan")
    t.add_column("#", justify="right", width=3)
    t.add_column("Name", overflow="fold")
    t.add_column("Alias", overflow="fold")
    t.add_column("Address", width=17)
    t.add_column("Adapter", style="dim")
    t.add_column("Paired")
    t.add_column("Connected")
    t.add_column("Trusted")
    t.add_column("Blocked")
    for i, d in enumerate(devices, 1):
        t.add_row(
            str(i), d.name, d.alias, d.address, d.adapter_id,
            str(d.paired), str(d.connected), str(d.trusted), str(d.blocked),
        )
    return t


def format_device(d: Device) -> str:
    return (
        f"name={d.name!r} alias={d.alias!r} address={d.address} adapter={d.adapter_id} "
        f"paired={d.paired} connected={d.connected} trusted={d.trusted} blocked={d.blocked}"
    )


def device_chooser(console: Console) -> Callable[[Sequence[Device]], Device]:
    """Return a chooser that asks the user to pick a device by number."""

    def choose(devices: Sequence[Device]) -> Device:
        while True:
            console.print("Choose a bluetooth device from the following:")
            for i, d in enumerate(devices, 1):
                console.print(f"{i}) {d.name}, {d.address}", markup=False, highlight=False)
            try:
                text = console.input(">> ").strip()
            except EOFError:
                raise NotFoundError("No device chosen") from None
            if text.isdigit() and 1 <= int(text) <= len(devices):
                return devices[int(text) - 1]
            console.print(
                f"{text!r} is an invalid choice, please select the number for the device "
                "you want to connect",
                markup=False,
            )

    return choose


# -- Commands --

def _resolve(manager: BluetoothManager, args: argparse.Namespace, console: Console) -> str:
    return manager.resolve_device(
        address=args.device, name=args.device_name, chooser=device_chooser(console)
    )


def _print_topology(manager: BluetoothManager, console: Console) -> None:
    console.print(adapters_table(manager.cache.adapters))
    console.print(devices_table(manager.cache.devices))


async def cmd_status(manager: BluetoothManager, args: argparse.Namespace, console: Console) -> int:
    _print_topology(manager, console)
    return 0


async def cmd_discover(manager: BluetoothManager, args: argparse.Namespace, console: Console) -> int:
    _print_topology(manager, console)
    seen = 0

    async def watch() -> None:
        nonlocal seen
        async with manager.discover(args.adapter, accept_none) as session:
            console.print(
                "watching for new bluetooth events, make sure to put device into pairing mode"
            )
            async for device in session.devices():
                seen += 1
                console.print(format_device(device), markup=False, highlight=False)

    try:
        await asyncio.wait_for(watch(), timeout=args.timeout)
    except asyncio.TimeoutError:
        logger.debug("Discovery deadline of %ss reached", args.timeout)
    console.print(f"discovered {seen} device(s)")
    return 0


async def cmd_pair(manager: BluetoothManager, args: argparse.Namespace, console: Console) -> int:
    known = manager.known_device(args.device, args.device_name)
    if known is not None:
        console.print(f"device {known.name!r} is already paired", markup=False)
        return 0

    console.print(
        f"found no devices similar to specified device={args.device or ''} "
        f"or device-name={args.device_name or ''}",
        markup=False,
    )
    console.print("waiting for new bluetooth devices, make sure to put device into pairing mode")
    found = await manager.pair_discovered(args.device, args.device_name, args.adapter)
    console.print(f"successfully paired {found.address} and {args.adapter or manager.config.adapter}")
    return 0


async def cmd_connect(manager: BluetoothManager, args: argparse.Namespace, console: Console) -> int:
    address = _resolve(manager, args, console)
    adapter = args.adapter or manager.config.adapter
    logger.debug("connecting to adapter=%s device=%s", adapter, address)
    await manager.connect(address, adapter)
    console.print(f"successfully connected {address} and {adapter}")
    await manager.activate_audio(address)
    return 0


async def cmd_disconnect(manager: BluetoothManager, args: argparse.Namespace, console: Console) -> int:
    address = _resolve(manager, args, console)
    adapter = args.adapter or manager.config.adapter
    await manager.disconnect(address, adapter)
    console.print(f"successfully disconnected {address} and {adapter}")
    return 0


async def cmd_remove(manager: BluetoothManager, args: argparse.Namespace, console: Console) -> int:
    address = _resolve(manager, args, console)
    adapter = args.adapter or manager.config.adapter
    await manager.remove(address, adapter)
    console.print(f"successfully removed {address} and {adapter}")
    return 0


async def cmd_auto(manager: BluetoothManager, args: argparse.Namespace, console: Console) -> int:
    address = _resolve(manager, args, console)
    adapter = args.adapter or manager.config.adapter
    attempt = await manager.auto_connect(address, adapter)
    console.print(f"successfully connected {address} and {adapter} (attempt {attempt})")
    return 0


HANDLERS: dict[str, Callable[[BluetoothManager, argparse.Namespace, Console], Awaitable[int]]] = {
    "status": cmd_status,
    "discover": cmd_discover,
    "pair": cmd_pair,
    "connect": cmd_connect,
    "disconnect": cmd_disconnect,
    "remove": cmd_remove,
    "auto": cmd_auto,
}


async def run(
    args: argparse.Namespace,
    config: CliConfig,
    manager: BluetoothManager | None = None,
    console: Console | None = None,
) -> int:
    """Run one command and return the process exit status."""
    console = console or Console()
    err_console = Console(stderr=True)
    manager = manager or BluetoothManager(config)
    try:
        await manager.start()
        return await HANDLERS[args.command](manager, args, console)
    except BluezError as e:
        logger.debug("%s failed", args.command, exc_info=True)
        err_console.print(f"unable to {args.command}: {e}", markup=False, highlight=False)
        return 1
    finally:
        await manager.shutdown()
