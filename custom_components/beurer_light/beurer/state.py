"""Reconciled state model of a dual-channel Beurer lamp."""

from __future__ import annotations

from dataclasses import dataclass

from .protocol import Channel


@dataclass
class LampState:
    """Complete state snapshot of one lamp.

    The white and colour sub-lamps are mutually exclusive: at most one of
    ``white_on`` / ``color_on`` is ``True``.  Fields are written optimistically
    by set-requests and overwritten by status notifications.  A channel stays
    *provisional* until the lamp has reported on it at least once since the
    last optimistic write.
    """

    white_on: bool = False
    color_on: bool = False

    white_brightness: int = 50
    """White channel brightness in percent (0–100)."""

    color_brightness: int = 50
    """Colour channel brightness in percent (0–100)."""

    hue: int = 0
    """Colour channel hue in degrees (0–360)."""

    saturation: int = 0
    """Colour channel saturation in percent (0–100)."""

    active_channel: Channel = Channel.WHITE
    """Channel addressed by the most recent command."""

    white_provisional: bool = True
    color_provisional: bool = True

    @property
    def is_on(self) -> bool:
        """Externally visible power state."""
        return self.white_on or self.color_on

    @property
    def brightness(self) -> int:
        """Brightness of the channel that is on, white when both are off."""
        return self.color_brightness if self.color_on else self.white_brightness

    @property
    def provisional(self) -> bool:
        """``True`` while any channel holds unconfirmed values."""
        return self.white_provisional or self.color_provisional
