"""Configuration loader for bluectl.

Settings are read from ``~/.config/bluectl/settings.json`` (or the file
named by ``BLUECTL_SETTINGS``), then overridden by ``BLUECTL_*`` environment
variables, then by command-line flags.
"""

import argparse
import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path

from .bluez.constants import DEFAULT_ADAPTER

logger = logging.getLogger(__name__)

SETTINGS_ENV = "BLUECTL_SETTINGS"
DEFAULT_SETTINGS_PATH = Path("~/.config/bluectl/settings.json")

# Environment variable -> CliConfig field
_ENV_OVERRIDES = {
    "BLUECTL_ADAPTER": "adapter",
    "BLUECTL_LOG_LEVEL": "log_level",
}

_MINIMUMS = {
    "connect_attempts": 1,
    "connect_retry_delay_seconds": 0,
}


def settings_path() -> Path:
    return Path(os.environ.get(SETTINGS_ENV) or DEFAULT_SETTINGS_PATH).expanduser()


def _check_setting(key: str, value, default):
    """Return ``value`` if it has the same type as ``default``, else raise ValueError."""
    kind = type(default)
    if kind is float and isinstance(value, int) and not isinstance(value, bool):
        value = float(value)
    if type(value) is not kind:
        raise ValueError(f"expected {kind.__name__}, got {type(value).__name__} {value!r}")
    if key in _MINIMUMS and value < _MINIMUMS[key]:
        raise ValueError(f"must be at least {_MINIMUMS[key]}, got {value!r}")
    return value


@dataclass
class CliConfig:
    """bluectl configuration."""

    adapter: str = DEFAULT_ADAPTER
    log_level: str = "warning"
    audio_profile: bool = True
    connect_attempts: int = 2
    connect_retry_delay_seconds: float = 1.0
    trust_on_pair: bool = False

    def save(self, path: Path | None = None) -> None:
        """Write the settings file."""
        path = path or settings_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(asdict(self), indent=2))
        logger.info("Settings saved to %s", path)

    def apply_args(self, args: argparse.Namespace) -> None:
        """Let command-line flags override file and environment settings."""
        if getattr(args, "adapter", None):
            self.adapter = args.adapter
        if getattr(args, "debug", False):
            self.log_level = "debug"
        if getattr(args, "no_audio_profile", False):
            self.audio_profile = False
        if getattr(args, "trust", False):
            self.trust_on_pair = True

    @classmethod
    def load(cls, path: Path | None = None) -> "CliConfig":
        """Load configuration from the settings file and environment."""
        config = cls()
        path = path or settings_path()

        if path.exists():
            try:
                data = json.loads(path.read_text())
                defaults = {f.name: f.default for f in fields(cls)}
                for key, value in data.items():
                    if key not in defaults:
                        logger.warning("Ignoring unknown setting %r in %s", key, path)
                        continue
                    try:
                        setattr(config, key, _check_setting(key, value, defaults[key]))
                    except ValueError as e:
                        logger.warning("Ignoring setting %r in %s: %s", key, path, e)
                logger.debug("Loaded settings from %s", path)
            except (json.JSONDecodeError, OSError, AttributeError) as e:
                logger.error("Failed to parse settings %s: %s, using defaults", path, e)
                config = cls()

        for env_name, attr in _ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value:
                setattr(config, attr, value)

        return config
