"""Shared fixtures for the Beurer light tests."""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from custom_components.beurer_light.beurer.protocol import CONTROL_UUID, NOTIFY_UUID

CONNECTION_MODULE = "custom_components.beurer_light.beurer.connection"


def make_frame(channel, on, brightness, rgb=(0, 0, 0)):
    """Build a status notification as the lamp sends it."""
    data = bytearray(17)
    data[0:6] = bytes([0xFE, 0xEF, 0x0A, 0x0D, 0xAB, 0xAA])
    data[6] = 0x0C if channel == 2 else 0x08
    data[8] = channel
    data[9] = 1 if on else 0
    data[10] = brightness
    data[13:16] = bytes(rgb)
    return bytes(data)


class RecordingTransport:
    """Transport double that records every frame written."""

    def __init__(self):
        self.frames = []
        self.error = None

    async def write(self, frame):
        self.frames.append(frame)
        if self.error is not None:
            raise self.error


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def mock_device():
    """Create a mock BLE device."""
    device = MagicMock()
    device.address = "AA:BB:CC:DD:EE:FF"
    device.name = "TL100"
    return device


@pytest.fixture
def control_char():
    char = MagicMock()
    char.uuid = CONTROL_UUID
    return char


@pytest.fixture
def notify_char():
    char = MagicMock()
    char.uuid = NOTIFY_UUID
    return char


@pytest.fixture
def mock_client(control_char, notify_char):
    """Create a mock connected BleakClient exposing both characteristics."""
    chars = {CONTROL_UUID: control_char, NOTIFY_UUID: notify_char}
    client = MagicMock()
    client.is_connected = True
    client.disconnect = AsyncMock()
    client.write_gatt_char = AsyncMock()
    client.start_notify = AsyncMock()
    client.services.get_characteristic = MagicMock(side_effect=chars.get)
    return client


@pytest.fixture
def mock_establish(mock_client):
    """Patch establish_connection to hand out ``mock_client``."""
    with patch(
        f"{CONNECTION_MODULE}.establish_connection",
        new=AsyncMock(return_value=mock_client),
    ) as mock:
        yield mock
