"""Dual-channel reconciler for Beurer lamps.

Home Assistant sees a single light with on/off, brightness, hue and
saturation.  The lamp has two mutually exclusive sub-lamps: a white channel
and a colour channel.  :class:`LampController` maps the single surface onto
the two channels, turning each set-request into one or more command frames and
folding status notifications back into :class:`~.state.LampState`.

Set-requests update the model *before* the command is written so the UI
reacts immediately; the touched channels are flagged provisional until the
lamp reports on them.  A failed write leaves the optimistic values in place.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from .color import COLOR_LIGHTNESS, hsl_to_rgb
from .protocol import (
    Channel,
    ChannelUpdate,
    encode,
    payload_brightness,
    payload_color_enable,
    payload_power,
    payload_rgb,
)
from .state import LampState

_LOGGER = logging.getLogger(__name__)

ATTR_ON = "on"
ATTR_BRIGHTNESS = "brightness"
ATTR_HUE = "hue"
ATTR_SATURATION = "saturation"

ATTRIBUTES: tuple[str, ...] = (ATTR_ON, ATTR_BRIGHTNESS, ATTR_HUE, ATTR_SATURATION)


class CommandTransport(Protocol):
    """Anything that can deliver a framed command to the lamp."""

    async def write(self, frame: bytes) -> None:
        """Write *frame* to the lamp, connecting first if needed."""


@dataclass(frozen=True)
class LampAttribute:
    """Get/set capability for one externally exposed attribute."""

    name: str
    get: Callable[[], Any]
    set: Callable[[Any], Awaitable[None]]


def _clamp(value: float, low: int, high: int) -> int:
    return int(max(low, min(high, round(value))))


class LampController:
    """Reconciles the exposed light attributes with the two lamp channels.

    Attributes:
        state: The reconciled lamp model.
    """

    def __init__(self, transport: CommandTransport, state: LampState | None = None) -> None:
        self._transport = transport
        self.state = state if state is not None else LampState()

    # ── Capability interface ──────────────────────────────────────────────────

    def attribute(self, name: str) -> LampAttribute:
        """Return the get/set pair for attribute *name*.

        Raises:
            KeyError: If *name* is not one of :data:`ATTRIBUTES`.
        """
        handlers: dict[str, tuple[Callable[[], Any], Callable[[Any], Awaitable[None]]]] = {
            ATTR_ON: (self.get_on, self.set_on),
            ATTR_BRIGHTNESS: (self.get_brightness, self.set_brightness),
            ATTR_HUE: (self.get_hue, self.set_hue),
            ATTR_SATURATION: (self.get_saturation, self.set_saturation),
        }
        getter, setter = handlers[name]
        return LampAttribute(name, getter, setter)

    # ── On / off ──────────────────────────────────────────────────────────────

    def get_on(self) -> bool:
        return self.state.is_on

    async def set_on(self, value: bool) -> None:
        """Switch the lamp on (white channel) or off.

        Turning on while the colour channel is already on is a no-op: colour
        takes priority and is left alone.  Turning off addresses the colour
        channel if it is the one that is on, the white channel otherwise.
        """
        s = self.state
        if value and s.color_on:
            _LOGGER.debug("Lamp already on in colour mode")
            return

        channel = Channel.COLOR if (not value and s.color_on) else Channel.WHITE
        if s.color_on:
            s.color_provisional = True
        s.white_on = value
        s.color_on = False
        s.white_provisional = True
        s.active_channel = channel

        await self._send(payload_power(value, channel))

    # ── Brightness ────────────────────────────────────────────────────────────

    def get_brightness(self) -> int:
        return self.state.brightness

    async def set_brightness(self, value: int) -> None:
        """Set the brightness (0–100) of whichever channel is on."""
        s = self.state
        value = _clamp(value, 0, 100)
        if s.color_on:
            s.color_brightness = value
            s.color_provisional = True
            channel = Channel.COLOR
        else:
            s.white_brightness = value
            s.white_provisional = True
            channel = Channel.WHITE
        s.active_channel = channel

        _LOGGER.debug("Setting brightness: channel=%d value=%d", channel, value)
        await self._send(payload_brightness(channel, value))

    # ── Colour ────────────────────────────────────────────────────────────────

    def get_hue(self) -> int:
        return self.state.hue

    def get_saturation(self) -> int:
        return self.state.saturation

    async def set_hue(self, value: float) -> None:
        self.state.hue = _clamp(value, 0, 360)
        await self._push_rgb()

    async def set_saturation(self, value: float) -> None:
        self.state.saturation = _clamp(value, 0, 100)
        await self._push_rgb()

    async def set_hue_saturation(self, hue: float, saturation: float) -> None:
        """Set hue and saturation together with a single colour push."""
        self.state.hue = _clamp(hue, 0, 360)
        self.state.saturation = _clamp(saturation, 0, 100)
        await self._push_rgb()

    async def _push_rgb(self) -> None:
        """Switch to the colour channel and send the current hue/saturation."""
        s = self.state
        if not s.color_on:
            await self._send(payload_color_enable())

        if s.white_on:
            s.white_provisional = True
        s.color_on = True
        s.white_on = False
        s.color_provisional = True
        s.active_channel = Channel.COLOR

        red, green, blue = hsl_to_rgb(s.hue, s.saturation, COLOR_LIGHTNESS)
        await self._send(payload_rgb(red, green, blue))

    # ── Notifications ─────────────────────────────────────────────────────────

    def apply_update(self, update: ChannelUpdate) -> bool:
        """Overwrite the addressed channel with device-reported values.

        Only the fields of ``update.channel`` are written; the other channel is
        left untouched, so updates may arrive in any order.

        Returns:
            ``True`` if any externally visible value changed.
        """
        s = self.state
        before = (s.is_on, s.brightness, s.hue, s.saturation)

        if update.channel == Channel.COLOR:
            s.color_on = update.is_on
            s.color_brightness = update.brightness
            if update.hue is not None:
                s.hue = update.hue
            if update.saturation is not None:
                s.saturation = update.saturation
            s.color_provisional = False
        else:
            s.white_on = update.is_on
            s.white_brightness = update.brightness
            s.white_provisional = False

        return before != (s.is_on, s.brightness, s.hue, s.saturation)

    async def _send(self, payload: Sequence[int]) -> None:
        await self._transport.write(encode(payload))
