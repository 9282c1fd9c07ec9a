"""Tests for the A2DP card profile switch with a mocked PulseAudio client."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from pulsectl import PulseError

from bluectl.audio import pulse
from bluectl.audio.pulse import activate_a2dp_profile, card_name_for

ADDRESS = "2C:41:A1:49:37:CF"


def make_card(name: str, profiles: list[str], active: str | None = None) -> SimpleNamespace:
    return SimpleNamespace(
        name=name,
        profile_list=[SimpleNamespace(name=p) for p in profiles],
        profile_active=SimpleNamespace(name=active) if active else None,
    )


class FakePulse:
    def __init__(self, cards=(), connect_error: Exception | None = None):
        self.cards = list(cards)
        self.connect_error = connect_error
        self.card_list = AsyncMock(side_effect=lambda: self.cards)
        self.card_profile_set = AsyncMock()
        self.client_names = []

    def __call__(self, client_name):
        self.client_names.append(client_name)
        return self

    async def __aenter__(self):
        if self.connect_error:
            raise self.connect_error
        return self

    async def __aexit__(self, *exc):
        return False


@pytest.fixture
def fake_pulse(monkeypatch):
    def install(*cards, connect_error=None):
        fake = FakePulse(cards, connect_error)
        monkeypatch.setattr(pulse, "PulseAsync", fake)
        return fake

    return install


def test_card_name_for():
    assert card_name_for(ADDRESS) == "bluez_card.2C_41_A1_49_37_CF"


@pytest.mark.asyncio
async def test_switches_to_a2dp_sink(fake_pulse):
    card = make_card(card_name_for(ADDRESS), ["off", "headset-head-unit", "a2dp-sink"], "headset-head-unit")
    fake = fake_pulse(make_card("alsa_card.pci", ["output:analog-stereo"]), card)

    assert await activate_a2dp_profile(ADDRESS) is True

    fake.card_profile_set.assert_awaited_once_with(card, "a2dp-sink")
    assert fake.client_names == ["bluectl"]


@pytest.mark.asyncio
async def test_pipewire_profile_name(fake_pulse):
    card = make_card(card_name_for(ADDRESS), ["off", "a2dp_sink"])
    fake = fake_pulse(card)

    assert await activate_a2dp_profile(ADDRESS) is True
    fake.card_profile_set.assert_awaited_once_with(card, "a2dp_sink")


@pytest.mark.asyncio
async def test_already_active_profile_is_left_alone(fake_pulse):
    fake = fake_pulse(make_card(card_name_for(ADDRESS), ["a2dp-sink"], "a2dp-sink"))

    assert await activate_a2dp_profile(ADDRESS) is True
    fake.card_profile_set.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_card(fake_pulse):
    fake = fake_pulse(make_card("bluez_card.AA_BB_CC_DD_EE_FF", ["a2dp-sink"]))

    assert await activate_a2dp_profile(ADDRESS) is False
    fake.card_profile_set.assert_not_awaited()


@pytest.mark.asyncio
async def test_card_without_a2dp(fake_pulse, caplog):
    fake_pulse(make_card(card_name_for(ADDRESS), ["off", "headset-head-unit"]))

    assert await activate_a2dp_profile(ADDRESS) is False
    assert "no A2DP profile" in caplog.text


@pytest.mark.asyncio
async def test_pulse_unreachable(fake_pulse, caplog):
    fake_pulse(connect_error=PulseError("connection refused"))

    assert await activate_a2dp_profile(ADDRESS) is False
    assert "Unable to set A2DP profile" in caplog.text


@pytest.mark.asyncio
async def test_profile_set_failure(fake_pulse):
    fake = fake_pulse(make_card(card_name_for(ADDRESS), ["a2dp-sink"], "off"))
    fake.card_profile_set.side_effect = PulseError("Failed to set card profile")

    assert await activate_a2dp_profile(ADDRESS) is False
