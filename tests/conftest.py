"""Pytest configuration and fixtures for bluectl tests.

All tests run against ``FakeMessageBus`` (see ``fakes.py``); nothing here
needs a system bus or a Bluetooth adapter.
"""

from __future__ import annotations

import pytest

from bluectl.bluez.bus import BluezBus
from bluectl.config import CliConfig
from bluectl.manager import BluetoothManager
from fakes import FakeMessageBus


@pytest.fixture
def fake_bus() -> FakeMessageBus:
    return FakeMessageBus()


@pytest.fixture
def bluez_bus(fake_bus: FakeMessageBus) -> BluezBus:
    return BluezBus(fake_bus)


@pytest.fixture
def config() -> CliConfig:
    return CliConfig(
        adapter="hci0",
        audio_profile=False,
        connect_retry_delay_seconds=0,
    )


@pytest.fixture
def manager(config: CliConfig, bluez_bus: BluezBus) -> BluetoothManager:
    return BluetoothManager(config, bus=bluez_bus)
