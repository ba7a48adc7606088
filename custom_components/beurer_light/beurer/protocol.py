"""Beurer TL-series BLE protocol layer.

This module contains the wire format of the lamp.  It has **no** dependency on
Home Assistant or on the BLE transport; every function here is pure.

Frame layout (outbound)::

    [0xFE, 0xEF, 0x0A, total_len, 0xAB, 0xAA, <payload>, 0x0D, 0x0A]

``payload`` is the command body with its first byte rewritten to
``len(payload) - 1`` and its second-to-last byte rewritten to the XOR
checksum; ``total_len`` is ``len(payload) + 4``.

Notification layout (inbound)::

    [8]      channel discriminator (2 = colour, anything else = white)
    [9]      on flag (1 = on)
    [10]     brightness 0–100
    [13..15] R, G, B (colour frames only)

Channels are numbered ``1`` (white) and ``2`` (colour); the same number is used
as the selector byte in commands and as the discriminator in notifications.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import IntEnum

from .color import rgb_to_hsl

_LOGGER = logging.getLogger(__name__)

# ── BLE UUIDs ─────────────────────────────────────────────────────────────────

SERVICE_UUID = "00007087-0000-1000-8000-00805f9b34fb"
"""16-bit service ``7087`` advertised by the lamp, in 128-bit form."""

CONTROL_UUID = "8b00ace7-eb0b-49b0-bbe9-9aee0a26e1a3"
"""GATT characteristic UUID for writing commands (write-without-response)."""

NOTIFY_UUID = "0734594a-a8e7-4b1a-a6b1-cd5243059a57"
"""GATT characteristic UUID for receiving status notifications."""

# ── Timing ────────────────────────────────────────────────────────────────────

IDLE_TIMEOUT = 5.0
"""Seconds without a successful write or notification before disconnecting."""

# ── Framing ───────────────────────────────────────────────────────────────────

FRAME_HEADER = (0xFE, 0xEF, 0x0A)
FRAME_MAGIC = (0xAB, 0xAA)
FRAME_TERMINATOR = (0x0D, 0x0A)

PAYLOAD_END = 0x55

# ── Command bytes ─────────────────────────────────────────────────────────────

CMD_STATUS = 0x30      # 48
CMD_BRIGHTNESS = 0x31  # 49
CMD_RGB = 0x32         # 50
CMD_OFF = 0x35         # 53
CMD_ON = 0x37          # 55


class Channel(IntEnum):
    """Sub-lamp selector shared by commands and notifications."""

    WHITE = 1
    COLOR = 2


# ── Notification offsets ──────────────────────────────────────────────────────

_OFFSET_CHANNEL = 8
_OFFSET_ON = 9
_OFFSET_BRIGHTNESS = 10
_OFFSET_RGB = 13

_MIN_WHITE_FRAME = _OFFSET_BRIGHTNESS + 1
_MIN_COLOR_FRAME = _OFFSET_RGB + 3


# ═════════════════════════════════════════════════════════════════════════════
# Encoder
# ═════════════════════════════════════════════════════════════════════════════

def check_code(start: int, finish: int, data: Sequence[int]) -> int:
    """XOR-fold ``data[start + i]`` for ``i`` in ``[start, finish - start)``.

    The firmware validates exactly this computation.  It only equals a plain
    XOR over ``data[start:finish]`` when ``start`` is 0, which is the only way
    :func:`encode` calls it.

    Args:
        start:  Start offset of the checksum window.
        finish: End offset of the checksum window (exclusive for ``start=0``).
        data:   Payload bytes.

    Returns:
        Single-byte XOR result (0–255).
    """
    result = 0
    for i in range(start, finish - start):
        result ^= data[start + i]
    return result


def encode(payload: Sequence[int]) -> bytes:
    """Frame a command payload for transmission.

    ``payload[0]`` is a placeholder for the length marker and ``payload[-2]``
    a placeholder for the checksum; both are overwritten on a copy.  The
    caller guarantees at least three bytes.

    Args:
        payload: Command body, e.g. ``[0, 55, 1, 0, 85]``.

    Returns:
        Complete frame including header and terminator.
    """
    body = list(payload)
    body[0] = len(body) - 1
    body[-2] = check_code(0, len(body) - 2, body)
    return bytes(
        [*FRAME_HEADER, len(body) + 4, *FRAME_MAGIC, *body, *FRAME_TERMINATOR]
    )


# ═════════════════════════════════════════════════════════════════════════════
# Command payloads
# ═════════════════════════════════════════════════════════════════════════════

def payload_power(on: bool, channel: Channel) -> list[int]:
    """Switch *channel* on or off."""
    return [0, CMD_ON if on else CMD_OFF, int(channel), 0, PAYLOAD_END]


def payload_brightness(channel: Channel, value: int) -> list[int]:
    """Set the brightness (0–100) of *channel*."""
    return [0, CMD_BRIGHTNESS, int(channel), value & 0xFF, 0, PAYLOAD_END]


def payload_color_enable() -> list[int]:
    """Explicitly enable the colour channel before pushing an RGB value."""
    return [4, CMD_ON, int(Channel.COLOR), 0, PAYLOAD_END]


def payload_rgb(red: int, green: int, blue: int) -> list[int]:
    """Set the colour channel to an RGB value."""
    return [0, CMD_RGB, red & 0xFF, green & 0xFF, blue & 0xFF, 0, PAYLOAD_END]


def payload_status(channel: Channel) -> list[int]:
    """Ask the lamp to report the state of *channel*."""
    return [0, CMD_STATUS, int(channel), 0, PAYLOAD_END]


STATUS_REQUEST_WHITE = bytes([254, 239, 10, 9, 171, 170, 4, 48, 1, 53, 85, 13, 10])
STATUS_REQUEST_COLOR = bytes([254, 239, 10, 9, 171, 170, 4, 48, 2, 54, 85, 13, 10])


# ═════════════════════════════════════════════════════════════════════════════
# Decoder
# ═════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ChannelUpdate:
    """State of one channel as reported by a status notification.

    ``hue`` and ``saturation`` are only carried by colour-channel frames.
    """

    channel: Channel
    is_on: bool
    brightness: int
    hue: int | None = None
    saturation: int | None = None


def decode_notification(data: bytes) -> ChannelUpdate | None:
    """Parse an inbound status notification.

    Frames too short for the offsets their channel needs are rejected rather
    than partially read.

    Args:
        data: Raw notification bytes.

    Returns:
        :class:`ChannelUpdate`, or ``None`` for a short frame.
    """
    if len(data) <= _OFFSET_CHANNEL:
        _LOGGER.debug("Notification too short (%d bytes), skipping", len(data))
        return None

    if data[_OFFSET_CHANNEL] == Channel.COLOR:
        if len(data) < _MIN_COLOR_FRAME:
            _LOGGER.debug("Colour notification too short (%d bytes), skipping", len(data))
            return None
        red, green, blue = data[_OFFSET_RGB : _OFFSET_RGB + 3]
        hue, saturation, _lightness = rgb_to_hsl(red, green, blue)
        return ChannelUpdate(
            channel=Channel.COLOR,
            is_on=data[_OFFSET_ON] == 1,
            brightness=data[_OFFSET_BRIGHTNESS],
            hue=hue,
            saturation=saturation,
        )

    if len(data) < _MIN_WHITE_FRAME:
        _LOGGER.debug("White notification too short (%d bytes), skipping", len(data))
        return None
    return ChannelUpdate(
        channel=Channel.WHITE,
        is_on=data[_OFFSET_ON] == 1,
        brightness=data[_OFFSET_BRIGHTNESS],
    )
