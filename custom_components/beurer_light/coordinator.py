"""Beurer light coordinator.

The coordinator is the central hub for each physical lamp registered in Home
Assistant.  It ties together the three pieces of the protocol layer:

* :class:`~.beurer.connection.BeurerConnection` – the BLE link, opened lazily
  and closed after an idle period.
* :class:`~.beurer.lamp.LampController` – the dual-channel reconciler that
  turns attribute set-requests into command frames.
* The light entity, notified through registered update callbacks.

Serialization
-------------
All state transitions for one lamp are serialized through a single
:class:`asyncio.Lock`.  Set-requests hold it for their whole command sequence
(including a lazy reconnect).  Inbound notifications are pushed onto a bounded
queue by the connection and applied by one consumer task under the same lock,
so a status frame can never interleave with the optimistic update of a
set-request.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from homeassistant.components import bluetooth
from homeassistant.core import HomeAssistant, callback
from homeassistant.exceptions import HomeAssistantError

from .beurer.connection import BeurerConnection
from .beurer.exceptions import BeurerError
from .beurer.lamp import LampController
from .beurer.protocol import decode_notification
from .beurer.state import LampState
from .const import NOTIFY_QUEUE_SIZE

_LOGGER = logging.getLogger(__name__)


class BeurerCoordinator:
    """Manages the BLE connection and state for a single Beurer lamp.

    Attributes:
        address:    BLE address of the lamp (MAC or CoreBluetooth UUID).
        connection: BLE connection manager.
        controller: Dual-channel reconciler.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        address: str,
        connection: BeurerConnection | None = None,
    ) -> None:
        """Initialise the coordinator.

        Args:
            hass:       Home Assistant instance.
            address:    BLE address (MAC on Linux/Windows, UUID on macOS).
            connection: Pre-built connection manager; one is created if omitted.
        """
        self._hass = hass
        self.address = address

        self.connection = connection if connection is not None else BeurerConnection(address)
        self.connection.set_notification_callback(self._on_notification)
        self.controller = LampController(self.connection)

        self._lock = asyncio.Lock()
        self._notify_queue: asyncio.Queue[bytes] = asyncio.Queue(maxsize=NOTIFY_QUEUE_SIZE)
        self._consumer_task: asyncio.Task[None] | None = None
        self._connect_task: asyncio.Task[None] | None = None
        self._unsub_bluetooth: Callable[[], None] | None = None

        # Callbacks registered by entity classes
        self._listeners: list[Callable[[], None]] = []

    # ── Public API ─────────────────────────────────────────────────────────────

    @property
    def state(self) -> LampState:
        return self.controller.state

    @property
    def available(self) -> bool:
        """Return ``True`` once HA has handed us a BLE device for the lamp.

        The link itself is transient, so being disconnected does not make the
        lamp unavailable.
        """
        return self.connection.has_peripheral

    def register_update_callback(self, cb: Callable[[], None]) -> Callable[[], None]:
        """Register a callback that is invoked whenever the lamp state changes.

        Args:
            cb: Zero-argument callable (typically ``entity.async_write_ha_state``).

        Returns:
            A remove function; call it in ``async_will_remove_from_hass``.
        """
        self._listeners.append(cb)

        def _remove() -> None:
            try:
                self._listeners.remove(cb)
            except ValueError:
                pass

        return _remove

    def get_attribute(self, name: str) -> Any:
        """Return the current value of exposed attribute *name*."""
        return self.controller.attribute(name).get()

    # ── Lifecycle ──────────────────────────────────────────────────────────────

    async def async_start(self) -> None:
        """Start consuming notifications and watching for the lamp.

        If HA already knows the lamp, it is attached and a background connect
        primes the state.  Otherwise the lamp is attached as soon as an
        advertisement is seen.
        """
        self._consumer_task = self._hass.async_create_background_task(
            self._async_consume_notifications(),
            name=f"beurer_light notifications {self.address}",
        )

        ble_device = bluetooth.async_ble_device_from_address(
            self._hass, self.address, connectable=True
        )
        if ble_device is not None:
            self._attach(ble_device)
        else:
            _LOGGER.debug(
                "[%s] Device not in Bluetooth cache yet – waiting for advertisement",
                self.address,
            )

        self._unsub_bluetooth = bluetooth.async_register_callback(
            self._hass,
            self._async_on_advertisement,
            bluetooth.BluetoothCallbackMatcher(address=self.address, connectable=True),
            bluetooth.BluetoothScanningMode.PASSIVE,
        )

    async def async_stop(self) -> None:
        """Shut down the coordinator and close any open BLE connection."""
        if self._unsub_bluetooth is not None:
            self._unsub_bluetooth()
            self._unsub_bluetooth = None
        if self._consumer_task is not None and not self._consumer_task.done():
            self._consumer_task.cancel()
        self._consumer_task = None
        if self._connect_task is not None and not self._connect_task.done():
            self._connect_task.cancel()
        self._connect_task = None
        await self.connection.close()

    @callback
    def _async_on_advertisement(
        self,
        service_info: bluetooth.BluetoothServiceInfoBleak,
        change: bluetooth.BluetoothChange,
    ) -> None:
        """Refresh the BLE device handle from a new advertisement."""
        self._attach(service_info.device)

    @callback
    def _attach(self, ble_device: Any) -> None:
        first = not self.connection.has_peripheral
        self.connection.attach_peripheral(ble_device)
        if first:
            _LOGGER.info("[%s] Found lamp", self.address)
            self._notify_listeners()
            self._connect_task = self._hass.async_create_task(self._async_initial_connect())

    async def _async_initial_connect(self) -> None:
        """Connect once after discovery so the status requests prime the model."""
        async with self._lock:
            try:
                await self.connection.connect()
            except BeurerError as exc:
                _LOGGER.warning("[%s] Initial connect failed: %s", self.address, exc)

    # ── Command API ─────────────────────────────────────────────────────────────

    async def async_set_attribute(self, name: str, value: Any) -> None:
        """Set exposed attribute *name* (``on``, ``brightness``, ``hue``, ``saturation``)."""
        await self._async_run(self.controller.attribute(name).set, value)

    async def async_set_hue_saturation(self, hue: float, saturation: float) -> None:
        await self._async_run(self.controller.set_hue_saturation, hue, saturation)

    async def _async_run(self, func: Callable[..., Awaitable[None]], *args: Any) -> None:
        """Run one set-request inside the serialization domain.

        Raises:
            HomeAssistantError: The command could not be delivered.  The
                optimistic values stay in the model.
        """
        async with self._lock:
            try:
                await func(*args)
            except BeurerError as exc:
                raise HomeAssistantError(
                    f"Failed to send command to Beurer lamp {self.address}: {exc}"
                ) from exc
            finally:
                self._notify_listeners()

    # ── Notification handling ──────────────────────────────────────────────────

    @callback
    def _on_notification(self, data: bytes) -> None:
        """Queue a raw notification for the consumer task."""
        try:
            self._notify_queue.put_nowait(data)
        except asyncio.QueueFull:
            _LOGGER.debug("[%s] Notify queue full – dropping frame", self.address)

    async def _async_consume_notifications(self) -> None:
        while True:
            data = await self._notify_queue.get()
            await self._async_handle_notification(data)

    async def _async_handle_notification(self, data: bytes) -> None:
        """Decode one frame and merge it into the lamp model."""
        update = decode_notification(data)
        if update is None:
            return
        async with self._lock:
            changed = self.controller.apply_update(update)
        _LOGGER.debug("[%s] State update: %s (changed=%s)", self.address, update, changed)
        self._notify_listeners()

    # ── Listener notification ──────────────────────────────────────────────────

    @callback
    def _notify_listeners(self) -> None:
        """Invoke all registered entity update callbacks."""
        for cb in list(self._listeners):
            try:
                cb()
            except Exception:  # noqa: BLE001
                _LOGGER.exception("[%s] Error in update callback", self.address)


@dataclass
class BeurerData:
    """Per-entry context handed from ``async_setup_entry`` to the platforms."""

    coordinator: BeurerCoordinator
    title: str
    model: str
