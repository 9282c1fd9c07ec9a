"""Tests for BluetoothManager orchestration against a fake bus."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from bluectl.exceptions import NotFoundError, OperationError
from fakes import adapter_object, device_object, drain, error, interfaces_added, ok

BOSE = "2C:41:A1:49:37:CF"
JBL = "AA:BB:CC:DD:EE:FF"


@pytest_asyncio.fixture
async def started(fake_bus, manager):
    fake_bus.set_managed_objects(dict([
        adapter_object("hci0"),
        device_object(BOSE, "Bose QC35 II"),
    ]))
    await manager.start()
    return manager


@pytest.mark.asyncio
async def test_start_takes_snapshot(started):
    assert [d.address for d in started.cache.devices] == [BOSE]
    assert started.known_device(name="qc35").address == BOSE
    assert started.known_device(address=BOSE.lower()).name == "Bose QC35 II"
    assert started.known_device(name="flip") is None


@pytest.mark.asyncio
async def test_shutdown_disconnects_bus(fake_bus, started):
    await started.shutdown()
    await started.shutdown()

    assert fake_bus.disconnect_count == 1
    assert started.bus is None


@pytest.mark.asyncio
async def test_pair_discovered_by_name(fake_bus, started):
    task = asyncio.create_task(started.pair_discovered(name="flip 5"))
    await drain()

    fake_bus.emit(interfaces_added(*device_object("11:22:33:44:55:66", "Logitech K380")))
    fake_bus.emit(interfaces_added(*device_object(JBL, "JBL Flip 5")))
    found = await asyncio.wait_for(task, timeout=1)

    assert found.address == JBL
    pair = fake_bus.calls_to("Pair")
    assert [m.path for m in pair] == ["/org/bluez/hci0/dev_AA_BB_CC_DD_EE_FF"]
    assert fake_bus.calls_to("Set") == []
    members = [m.member for m in fake_bus.calls]
    assert members.index("StopDiscovery") < members.index("Pair")


@pytest.mark.asyncio
async def test_pair_discovered_known_device_returns_early(fake_bus, started):
    found = await started.pair_discovered(name="qc35")

    assert found.address == BOSE
    assert fake_bus.calls_to("StartDiscovery") == []
    assert fake_bus.calls_to("Pair") == []


@pytest.mark.asyncio
async def test_pair_discovered_trusts_when_configured(fake_bus, config, started):
    config.trust_on_pair = True
    task = asyncio.create_task(started.pair_discovered(address=JBL))
    await drain()
    fake_bus.emit(interfaces_added(*device_object(JBL, "JBL Flip 5")))
    await asyncio.wait_for(task, timeout=1)

    trusted = fake_bus.calls_to("Set")[0]
    assert trusted.body[:2] == ["org.bluez.Device1", "Trusted"]
    assert trusted.body[2].value is True


@pytest.mark.asyncio
async def test_pair_discovered_stream_ends(fake_bus, started):
    task = asyncio.create_task(started.pair_discovered(address=JBL))
    await drain()
    fake_bus.disconnect()

    with pytest.raises(NotFoundError, match=JBL):
        await asyncio.wait_for(task, timeout=1)
    assert fake_bus.calls_to("Pair") == []


@pytest.mark.asyncio
async def test_pair_failure_propagates(fake_bus, started):
    fake_bus.script("Pair", error("org.bluez.Error.AuthenticationCanceled", "Authentication Canceled"))
    task = asyncio.create_task(started.pair_discovered())
    await drain()
    fake_bus.emit(interfaces_added(*device_object(JBL, "JBL Flip 5")))

    with pytest.raises(OperationError, match="Authentication Canceled"):
        await asyncio.wait_for(task, timeout=1)


@pytest.mark.asyncio
async def test_auto_connect_retries_once(fake_bus, started):
    fake_bus.script(
        "Connect",
        error("org.bluez.Error.Failed", "br-connection-page-timeout"),
        error("org.bluez.Error.Failed", "br-connection-page-timeout"),
    )

    with pytest.raises(OperationError):
        await started.auto_connect(BOSE)

    assert len(fake_bus.calls_to("Connect")) == 2
    power = fake_bus.calls_to("Set")[0]
    assert power.path == "/org/bluez/hci0"
    assert power.body[1] == "Powered"


@pytest.mark.asyncio
async def test_auto_connect_second_attempt_wins(fake_bus, started):
    fake_bus.script(
        "Connect",
        error("org.bluez.Error.InProgress", "Operation already in progress"),
        ok(),
    )

    assert await started.auto_connect(BOSE, "hci0") == 2
    assert len(fake_bus.calls_to("Connect")) == 2


@pytest.mark.asyncio
async def test_connect_switches_audio_profile(monkeypatch, fake_bus, config, started):
    activate = AsyncMock(return_value=True)
    monkeypatch.setattr("bluectl.manager.activate_a2dp_profile", activate)
    config.audio_profile = True

    await started.auto_connect(BOSE)

    activate.assert_awaited_once_with(BOSE)


@pytest.mark.asyncio
async def test_audio_profile_disabled(monkeypatch, started):
    activate = AsyncMock()
    monkeypatch.setattr("bluectl.manager.activate_a2dp_profile", activate)

    assert await started.activate_audio(BOSE) is False
    activate.assert_not_awaited()


@pytest.mark.asyncio
async def test_disconnect_and_remove_paths(fake_bus, started):
    await started.disconnect(BOSE)
    await started.remove(BOSE, "hci1")

    assert fake_bus.calls_to("Disconnect")[0].path == "/org/bluez/hci0/dev_2C_41_A1_49_37_CF"
    remove = fake_bus.calls_to("RemoveDevice")[0]
    assert remove.path == "/org/bluez/hci1"
    assert remove.body == ["/org/bluez/hci1/dev_2C_41_A1_49_37_CF"]


@pytest.mark.asyncio
async def test_operations_do_not_touch_cache(fake_bus, started):
    before = started.cache.snapshot
    await started.connect(BOSE)
    await started.disconnect(BOSE)

    assert started.cache.snapshot is before
    assert len(fake_bus.calls_to("GetManagedObjects")) == 1


@pytest.mark.asyncio
async def test_pair_discovered_uses_session_adapter(fake_bus, manager):
    fake_bus.set_managed_objects(dict([adapter_object("hci0"), adapter_object("hci1")]))
    await manager.start()

    task = asyncio.create_task(manager.pair_discovered(address=JBL, adapter="hci1"))
    await drain()
    fake_bus.emit(interfaces_added(*device_object(JBL, "JBL Flip 5", adapter="hci0")))
    await drain()
    assert not task.done()
    fake_bus.emit(interfaces_added(*device_object(JBL, "JBL Flip 5", adapter="hci1")))
    found = await asyncio.wait_for(task, timeout=1)

    assert found.adapter_id == "hci1"
    assert [m.path for m in fake_bus.calls_to("Pair")] == ["/org/bluez/hci1/dev_AA_BB_CC_DD_EE_FF"]


@pytest.mark.asyncio
async def test_pair_discovered_address_or_name(fake_bus, started):
    task = asyncio.create_task(started.pair_discovered(address=JBL, name="k380"))
    await drain()
    fake_bus.emit(interfaces_added(*device_object("11:22:33:44:55:66", "Logitech K380")))
    found = await asyncio.wait_for(task, timeout=1)

    assert found.address == "11:22:33:44:55:66"
    assert fake_bus.calls_to("Pair")[0].path == "/org/bluez/hci0/dev_11_22_33_44_55_66"
