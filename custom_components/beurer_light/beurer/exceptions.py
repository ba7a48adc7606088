"""Exceptions raised by the Beurer protocol layer."""

from __future__ import annotations


class BeurerError(Exception):
    """Base exception for all lamp communication failures."""


class NoPeripheralError(BeurerError):
    """Raised when a connection is requested before a BLE device is attached."""


class ConnectError(BeurerError):
    """Raised when the transport fails to open the link or subscribe."""


class DiscoveryError(BeurerError):
    """Raised when the GATT services of the lamp cannot be enumerated."""


class MissingCharacteristicsError(BeurerError):
    """Raised when the control or notify characteristic is absent."""


class WriteError(BeurerError):
    """Raised when writing a command frame to the lamp fails."""
