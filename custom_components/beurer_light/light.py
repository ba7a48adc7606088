"""Light platform for the Beurer light integration.

One :class:`~homeassistant.components.light.LightEntity` is created per lamp.
It exposes a single on/off + brightness + hue/saturation surface; the
coordinator's reconciler decides whether a request lands on the white or the
colour channel of the lamp.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from homeassistant.components.light import (
    ATTR_BRIGHTNESS,
    ATTR_HS_COLOR,
    ColorMode,
    LightEntity,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .beurer.color import brightness_ha_to_pct, brightness_pct_to_ha
from .beurer.lamp import ATTR_BRIGHTNESS as LAMP_BRIGHTNESS
from .beurer.lamp import ATTR_HUE, ATTR_ON, ATTR_SATURATION
from .const import DOMAIN, MANUFACTURER
from .coordinator import BeurerCoordinator, BeurerData

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the light entity for a config entry."""
    data: BeurerData = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([BeurerLight(data, entry)])


class BeurerLight(LightEntity):
    """Light entity for a Beurer dual-channel lamp.

    Brightness is that of the channel currently on (the white channel when
    the lamp is off); hue and saturation belong to the colour channel.
    """

    _attr_has_entity_name = True
    _attr_should_poll = False
    _attr_name = None
    _attr_color_mode = ColorMode.HS
    _attr_supported_color_modes = {ColorMode.HS}

    def __init__(self, data: BeurerData, entry: ConfigEntry) -> None:
        self._coordinator: BeurerCoordinator = data.coordinator
        self._remove_callback: Callable[[], None] | None = None
        address = data.coordinator.address
        self._attr_unique_id = address
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, address)},
            name=data.title,
            manufacturer=MANUFACTURER,
            model=data.model,
            serial_number=address,
        )

    # ── State properties ───────────────────────────────────────────────────────

    @property
    def available(self) -> bool:
        return self._coordinator.available

    @property
    def is_on(self) -> bool:
        return self._coordinator.get_attribute(ATTR_ON)

    @property
    def brightness(self) -> int:
        """Return brightness in HA scale (0–255)."""
        return brightness_pct_to_ha(self._coordinator.get_attribute(LAMP_BRIGHTNESS))

    @property
    def hs_color(self) -> tuple[float, float]:
        return (
            float(self._coordinator.get_attribute(ATTR_HUE)),
            float(self._coordinator.get_attribute(ATTR_SATURATION)),
        )

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        state = self._coordinator.state
        return {
            "active_channel": state.active_channel.name.lower(),
            "white_on": state.white_on,
            "color_on": state.color_on,
            "provisional": state.provisional,
        }

    # ── Command handlers ───────────────────────────────────────────────────────

    async def async_turn_on(self, **kwargs: Any) -> None:
        """Turn the lamp on, optionally setting colour and brightness.

        A colour switches the lamp to its colour channel; otherwise the white
        channel is switched on unless the lamp is already on.  Brightness is
        applied last so it lands on the channel that ended up on.
        """
        if ATTR_HS_COLOR in kwargs:
            hue, saturation = kwargs[ATTR_HS_COLOR]
            await self._coordinator.async_set_hue_saturation(hue, saturation)
        elif not self.is_on:
            await self._coordinator.async_set_attribute(ATTR_ON, True)

        if ATTR_BRIGHTNESS in kwargs:
            pct = brightness_ha_to_pct(kwargs[ATTR_BRIGHTNESS])
            await self._coordinator.async_set_attribute(LAMP_BRIGHTNESS, pct)

    async def async_turn_off(self, **kwargs: Any) -> None:
        await self._coordinator.async_set_attribute(ATTR_ON, False)

    # ── Coordinator subscription ───────────────────────────────────────────────

    async def async_added_to_hass(self) -> None:
        """Subscribe to coordinator state updates when the entity is added."""
        self._remove_callback = self._coordinator.register_update_callback(
            self.async_write_ha_state
        )

    async def async_will_remove_from_hass(self) -> None:
        """Unsubscribe from coordinator state updates."""
        if self._remove_callback is not None:
            self._remove_callback()
            self._remove_callback = None
