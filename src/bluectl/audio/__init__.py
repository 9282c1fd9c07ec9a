"""Audio subsystem helpers (PulseAudio)."""

from .pulse import activate_a2dp_profile

__all__ = ["activate_a2dp_profile"]
