"""PulseAudio card profile switching for Bluetooth audio devices.

When BlueZ connects an audio device, PulseAudio (or PipeWire's pulse
server) creates a card named like ``bluez_card.XX_XX_XX_XX_XX_XX``.  After a
device has been idle for a while the card sometimes comes back on the
headset profile, so after connecting we ask for the A2DP sink profile.
"""

import logging

from pulsectl import PulseError
from pulsectl_asyncio import PulseAsync

logger = logging.getLogger(__name__)

CLIENT_NAME = "bluectl"

# PulseAudio uses "a2dp-sink", PipeWire may use "a2dp_sink"
A2DP_PROFILES = ("a2dp-sink", "a2dp_sink")


def card_name_for(address: str) -> str:
    return "bluez_card." + address.replace(":", "_")


async def activate_a2dp_profile(address: str) -> bool:
    """Switch the device's PulseAudio card to an A2DP sink profile.

    Best effort: returns False (and logs why) when PulseAudio is not
    reachable, the card does not exist, or it offers no A2DP profile.
    """
    card_name = card_name_for(address)
    try:
        async with PulseAsync(CLIENT_NAME) as pulse:
            cards = await pulse.card_list()
            card = next((c for c in cards if c.name == card_name), None)
            if card is None:
                logger.info("PA card %s not found, skipping profile switch", card_name)
                return False

            available = {p.name for p in card.profile_list}
            for profile in A2DP_PROFILES:
                if profile not in available:
                    continue
                active = getattr(card.profile_active, "name", None)
                if active == profile:
                    logger.debug("PA card %s already on %s", card_name, profile)
                    return True
                await pulse.card_profile_set(card, profile)
                logger.info("PA card profile set: %s -> %s", card_name, profile)
                return True

            logger.warning(
                "PA card %s has no A2DP profile (available: %s)",
                card_name, sorted(available),
            )
            return False
    except (PulseError, OSError) as e:
        logger.warning("Unable to set A2DP profile for %s: %s", card_name, e)
        return False
