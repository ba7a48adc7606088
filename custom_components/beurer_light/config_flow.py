"""Config flow for the Beurer light integration."""

from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.components.bluetooth import (
    BluetoothServiceInfoBleak,
    async_discovered_service_info,
)
from homeassistant.const import CONF_ADDRESS, CONF_NAME
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers.device_registry import format_mac

from .beurer.scanner import (
    detect_model,
    friendly_name_from_advertisement,
    is_beurer_device,
)
from .const import CONF_MODEL, DOMAIN

_LOGGER = logging.getLogger(__name__)


def _parse_discovery(discovery: BluetoothServiceInfoBleak) -> dict[str, Any] | None:
    """Return setup data for a Beurer lamp advertisement, else ``None``."""
    if not is_beurer_device(discovery.name, discovery.service_uuids):
        return None
    return {
        CONF_ADDRESS: discovery.address,
        CONF_NAME: friendly_name_from_advertisement(discovery.name, discovery.address),
        CONF_MODEL: detect_model(discovery.name),
    }


class BeurerConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle config flow for Beurer lamps."""

    VERSION = 1

    def __init__(self) -> None:
        """Initialize the config flow."""
        self._discovery_info: dict[str, Any] | None = None
        self._discovered_devices: dict[str, dict[str, Any]] = {}

    async def async_step_bluetooth(
        self, discovery_info: BluetoothServiceInfoBleak
    ) -> FlowResult:
        """Handle Bluetooth discovery."""
        _LOGGER.debug("Bluetooth discovery: %s", discovery_info.address)

        parsed = _parse_discovery(discovery_info)
        if not parsed:
            return self.async_abort(reason="not_supported")

        await self.async_set_unique_id(format_mac(parsed[CONF_ADDRESS]))
        self._abort_if_unique_id_configured()

        self._discovery_info = parsed
        self.context["title_placeholders"] = {"name": parsed[CONF_NAME]}
        return await self.async_step_confirm()

    async def async_step_confirm(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Confirm setup of a discovered lamp."""
        if self._discovery_info is None:
            return self.async_abort(reason="no_discovery_info")

        if user_input is None:
            self._set_confirm_only()
            return self.async_show_form(
                step_id="confirm",
                description_placeholders={"name": self._discovery_info[CONF_NAME]},
            )

        return self._create_entry(self._discovery_info)

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Handle user-initiated setup by picking a nearby lamp."""
        if user_input is not None:
            address = user_input[CONF_ADDRESS]
            info = self._discovered_devices[address]
            await self.async_set_unique_id(format_mac(address), raise_on_progress=False)
            self._abort_if_unique_id_configured()
            return self._create_entry(info)

        configured = self._async_current_ids()
        self._discovered_devices = {}
        for discovery in async_discovered_service_info(self.hass):
            parsed = _parse_discovery(discovery)
            if parsed and format_mac(parsed[CONF_ADDRESS]) not in configured:
                self._discovered_devices[parsed[CONF_ADDRESS]] = parsed

        if not self._discovered_devices:
            return self.async_abort(reason="no_devices_found")

        device_options = {
            addr: f"{info[CONF_NAME]} ({addr})"
            for addr, info in self._discovered_devices.items()
        }
        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema({vol.Required(CONF_ADDRESS): vol.In(device_options)}),
        )

    def _create_entry(self, info: dict[str, Any]) -> FlowResult:
        return self.async_create_entry(
            title=info[CONF_NAME],
            data={
                CONF_ADDRESS: info[CONF_ADDRESS],
                CONF_NAME: info[CONF_NAME],
                CONF_MODEL: info[CONF_MODEL],
            },
        )
