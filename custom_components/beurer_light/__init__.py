"""Beurer BLE light – Home Assistant integration.

Local-push BLE control for Beurer TL-series daylight lamps, which combine a
white sub-lamp and an RGB sub-lamp behind a single on/off switch.

Architecture overview
---------------------
``beurer/``
    Pure-Python protocol layer: frame encoder, notification decoder, colour
    conversion, dual-channel reconciler and BLE connection manager.  Has zero
    Home Assistant dependencies.

``coordinator.py``
    :class:`~coordinator.BeurerCoordinator` serializes commands and
    notifications for one lamp and distributes state changes to entities.

``light.py``
    :class:`homeassistant.components.light.LightEntity` exposing on/off,
    brightness and hue/saturation.

``config_flow.py``
    Guided setup via BLE discovery or selection from nearby lamps.
"""

from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_ADDRESS
from homeassistant.core import HomeAssistant

from .beurer.connection import BeurerConnection
from .beurer.scanner import DEFAULT_MODEL
from .const import CONF_MODEL, DOMAIN, PLATFORMS
from .coordinator import BeurerCoordinator, BeurerData

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up a Beurer lamp from a config entry.

    Builds the connection manager, then the coordinator around it, stores the
    resulting :class:`~coordinator.BeurerData` in ``hass.data`` and forwards
    setup to the light platform.

    Args:
        hass:  Home Assistant instance.
        entry: Config entry created by the config flow.

    Returns:
        ``True`` on success.
    """
    address: str = entry.data[CONF_ADDRESS]
    _LOGGER.debug("Setting up Beurer lamp: address=%s", address)

    connection = BeurerConnection(address)
    coordinator = BeurerCoordinator(hass=hass, address=address, connection=connection)

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = BeurerData(
        coordinator=coordinator,
        title=entry.title,
        model=entry.data.get(CONF_MODEL, DEFAULT_MODEL),
    )

    # Non-blocking: the lamp is connected lazily on the first command
    await coordinator.async_start()

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry and disconnect from the lamp."""
    if unload_ok := await hass.config_entries.async_unload_platforms(entry, PLATFORMS):
        data: BeurerData = hass.data[DOMAIN].pop(entry.entry_id)
        await data.coordinator.async_stop()
        _LOGGER.debug("Beurer entry unloaded: %s", entry.data[CONF_ADDRESS])

    return unload_ok
