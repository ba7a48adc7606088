"""BLE connection manager for a single Beurer lamp.

The lamp only needs the radio while it is being controlled, so the link is
opened lazily and closed again after :data:`~.protocol.IDLE_TIMEOUT` seconds
without a successful write or an inbound notification.

States
------
``DISCONNECTED``
    No link.  The next :meth:`BeurerConnection.write` connects first.
``CONNECTING``
    :meth:`BeurerConnection.connect` is opening the link, discovering the GATT
    characteristics and subscribing to notifications.
``CONNECTED``
    Control and notify characteristics are resolved; writes go straight out.

The control and notify characteristic handles never leave this class.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any

from bleak.exc import BleakError
from bleak_retry_connector import BleakClientWithServiceCache, establish_connection

if TYPE_CHECKING:
    from bleak import BleakClient
    from bleak.backends.characteristic import BleakGATTCharacteristic
    from bleak.backends.device import BLEDevice

from .exceptions import (
    ConnectError,
    DiscoveryError,
    MissingCharacteristicsError,
    NoPeripheralError,
    WriteError,
)
from .protocol import (
    CONTROL_UUID,
    IDLE_TIMEOUT,
    NOTIFY_UUID,
    STATUS_REQUEST_COLOR,
    STATUS_REQUEST_WHITE,
)

_LOGGER = logging.getLogger(__name__)

CONNECT_ATTEMPTS = 3
"""Attempts passed to ``bleak_retry_connector.establish_connection``."""


class ConnectionState(str, Enum):
    """Lifecycle state of the BLE link."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class BeurerConnection:
    """Owns the BLE link to one lamp.

    Attributes:
        state: Current :class:`ConnectionState`.
    """

    def __init__(
        self,
        name: str,
        notification_callback: Callable[[bytes], None] | None = None,
        idle_timeout: float = IDLE_TIMEOUT,
    ) -> None:
        """Initialise the connection manager.

        Args:
            name:                  Label used in log messages (usually the address).
            notification_callback: Receives every raw inbound notification.
            idle_timeout:          Seconds of inactivity before disconnecting.
        """
        self.name = name
        self.state = ConnectionState.DISCONNECTED
        self._notification_callback = notification_callback
        self._idle_timeout = idle_timeout

        self._ble_device: BLEDevice | None = None
        self._client: BleakClient | None = None
        self._control_char: BleakGATTCharacteristic | None = None
        self._notify_char: BleakGATTCharacteristic | None = None

        self._connect_lock = asyncio.Lock()
        self._idle_timer: asyncio.TimerHandle | None = None
        self._idle_task: asyncio.Task[None] | None = None

    @property
    def is_connected(self) -> bool:
        return (
            self.state == ConnectionState.CONNECTED
            and self._client is not None
            and self._control_char is not None
            and self._notify_char is not None
        )

    @property
    def has_peripheral(self) -> bool:
        return self._ble_device is not None

    def set_notification_callback(self, callback: Callable[[bytes], None] | None) -> None:
        self._notification_callback = callback

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def attach_peripheral(self, ble_device: BLEDevice) -> None:
        """Record the BLE device to talk to.  Does not connect.

        Called again whenever a fresher device handle becomes available (for
        example from a closer Bluetooth proxy).
        """
        if self._ble_device is None:
            _LOGGER.debug("[%s] Peripheral attached", self.name)
        self._ble_device = ble_device

    async def connect(self) -> None:
        """Open the link, resolve the characteristics and prime the lamp state.

        Concurrent callers share a single attempt.  On any failure the link is
        torn down and the state reverts to ``DISCONNECTED``.

        Raises:
            NoPeripheralError:           No BLE device has been attached.
            ConnectError:                The transport could not connect or subscribe.
            DiscoveryError:              GATT services could not be enumerated.
            MissingCharacteristicsError: Control or notify characteristic absent.
        """
        async with self._connect_lock:
            if self.is_connected:
                return
            if self._ble_device is None:
                raise NoPeripheralError(f"{self.name}: no peripheral attached")

            self.state = ConnectionState.CONNECTING
            _LOGGER.debug("[%s] Connecting…", self.name)
            try:
                await self._open()
                if self._client is None:
                    raise ConnectError(f"{self.name}: connection lost during setup")
            except Exception:
                await self._teardown()
                raise

            self.state = ConnectionState.CONNECTED
            _LOGGER.info("[%s] Connected", self.name)
            await self._request_state()

    async def _open(self) -> None:
        try:
            client = await establish_connection(
                client_class=BleakClientWithServiceCache,
                device=self._ble_device,
                name=self.name,
                disconnected_callback=self._on_disconnected,
                max_attempts=CONNECT_ATTEMPTS,
            )
        except (BleakError, asyncio.TimeoutError) as exc:
            _LOGGER.warning("[%s] Connection failed: %s", self.name, exc)
            raise ConnectError(f"{self.name}: connection failed: {exc}") from exc
        self._client = client

        try:
            services = client.services
            control = services.get_characteristic(CONTROL_UUID)
            notify = services.get_characteristic(NOTIFY_UUID)
        except BleakError as exc:
            _LOGGER.warning("[%s] Service discovery failed: %s", self.name, exc)
            raise DiscoveryError(f"{self.name}: service discovery failed: {exc}") from exc

        if control is None or notify is None:
            _LOGGER.error("[%s] Could not find required characteristics", self.name)
            raise MissingCharacteristicsError(f"{self.name}: missing characteristics")

        try:
            await client.start_notify(notify, self._on_notification)
        except (BleakError, asyncio.TimeoutError) as exc:
            _LOGGER.warning("[%s] Could not subscribe to notifications: %s", self.name, exc)
            raise ConnectError(f"{self.name}: subscribe failed: {exc}") from exc

        self._control_char = control
        self._notify_char = notify

    async def _request_state(self) -> None:
        """Ask both channels for their status; failures are only logged."""
        for label, frame in (("white", STATUS_REQUEST_WHITE), ("color", STATUS_REQUEST_COLOR)):
            try:
                await self._write_char(frame)
            except WriteError as exc:
                _LOGGER.error("[%s] Error requesting %s state: %s", self.name, label, exc)
            else:
                self._reset_idle_timer()

    async def disconnect_if_idle(self, handle: asyncio.TimerHandle | None = None) -> None:
        """Close the link after the idle timeout, if it is still open.

        When called for a fired timer *handle*, nothing happens if activity has
        re-armed the timer since.
        """
        if handle is not None:
            if handle is not self._idle_timer:
                _LOGGER.debug("[%s] Idle timer re-armed, staying connected", self.name)
                return
            self._idle_timer = None
        if self.state != ConnectionState.CONNECTED:
            return
        _LOGGER.info("[%s] Idle timeout – disconnecting", self.name)
        await self._teardown()

    async def close(self) -> None:
        """Cancel the idle timer and drop the link."""
        self._cancel_idle_timer()
        await self._teardown()

    async def _teardown(self) -> None:
        self._cancel_idle_timer()
        client = self._client
        self._client = None
        self._control_char = None
        self._notify_char = None
        self.state = ConnectionState.DISCONNECTED
        if client is not None and client.is_connected:
            try:
                await client.disconnect()
                _LOGGER.debug("[%s] Disconnected", self.name)
            except BleakError as exc:
                _LOGGER.debug("[%s] Disconnect error (ignored): %s", self.name, exc)

    def _on_disconnected(self, _client: BleakClient) -> None:
        """Called by bleak when the link drops."""
        if self._client is None:
            return
        _LOGGER.warning("[%s] Connection lost", self.name)
        self._cancel_idle_timer()
        self._client = None
        self._control_char = None
        self._notify_char = None
        self.state = ConnectionState.DISCONNECTED

    # ── I/O ───────────────────────────────────────────────────────────────────

    async def write(self, frame: bytes) -> None:
        """Write a framed command, connecting first if needed.

        Raises:
            BeurerError subclasses from :meth:`connect`, or
            WriteError: The transport write failed.  It is not retried.
        """
        if not self.is_connected:
            _LOGGER.debug("[%s] Not connected, reconnecting…", self.name)
            await self.connect()

        self._reset_idle_timer()
        _LOGGER.debug("[%s] → %s", self.name, frame.hex())
        await self._write_char(frame)

    async def _write_char(self, frame: bytes) -> None:
        client = self._client
        control = self._control_char
        if client is None or control is None:
            raise WriteError(f"{self.name}: connection lost before write")
        try:
            await client.write_gatt_char(control, frame, response=False)
        except (BleakError, asyncio.TimeoutError) as exc:
            _LOGGER.warning("[%s] Write failed: %s", self.name, exc)
            raise WriteError(f"{self.name}: write failed: {exc}") from exc

    def _on_notification(self, _char: Any, data: bytearray) -> None:
        raw = bytes(data)
        _LOGGER.debug("[%s] ← NOTIFY: %s", self.name, raw.hex())
        self._reset_idle_timer()
        if self._notification_callback is not None:
            self._notification_callback(raw)

    # ── Idle timer ────────────────────────────────────────────────────────────

    def _reset_idle_timer(self) -> None:
        self._cancel_idle_timer()
        loop = asyncio.get_running_loop()
        self._idle_timer = loop.call_later(self._idle_timeout, self._on_idle)

    def _on_idle(self) -> None:
        handle = self._idle_timer
        self._idle_task = asyncio.get_running_loop().create_task(
            self.disconnect_if_idle(handle)
        )

    def _cancel_idle_timer(self) -> None:
        if self._idle_timer is not None:
            self._idle_timer.cancel()
            self._idle_timer = None
