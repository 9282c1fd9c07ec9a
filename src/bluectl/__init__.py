"""bluectl: discover, pair and connect Bluetooth devices through BlueZ over D-Bus."""

__version__ = "0.1.0"
