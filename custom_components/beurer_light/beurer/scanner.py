"""BLE device detection helpers for the Beurer light integration.

Deliberately kept free of direct Home Assistant imports so the matching logic
can be unit-tested standalone.  The config flow uses these helpers to decide
whether a discovered BLE device is a candidate lamp.
"""

from __future__ import annotations

from .protocol import SERVICE_UUID

BEURER_LOCAL_NAME_PREFIXES: tuple[str, ...] = ("TL100", "TL50", "TL70", "TL80", "TL90")
"""Advertisement local-name prefixes of the Beurer daylight lamp family."""

DEFAULT_MODEL = "TL100"
DEFAULT_NAME = "SAD Lamp"


def is_beurer_device(local_name: str | None, service_uuids: list[str] | None) -> bool:
    """Return ``True`` if the advertisement belongs to a Beurer lamp.

    Matches *either* the ``7087`` service UUID *or* a known model prefix in
    the local name.

    Args:
        local_name:    BLE advertisement local name (may be ``None``).
        service_uuids: Advertised service UUIDs (may be ``None`` or empty).
    """
    if service_uuids and SERVICE_UUID in {u.lower() for u in service_uuids}:
        return True

    if local_name:
        name = local_name.strip().upper()
        return any(name.startswith(prefix) for prefix in BEURER_LOCAL_NAME_PREFIXES)

    return False


def detect_model(local_name: str | None) -> str:
    if local_name:
        name = local_name.strip().upper()
        for prefix in BEURER_LOCAL_NAME_PREFIXES:
            if name.startswith(prefix):
                return prefix
    return DEFAULT_MODEL


def friendly_name_from_advertisement(local_name: str | None, address: str) -> str:
    """Derive a display name, falling back to a shortened address.

    Args:
        local_name: BLE advertisement local name.
        address:    BLE address string.

    Returns:
        A non-empty display name string.
    """
    if local_name and local_name.strip():
        return local_name.strip()
    short_addr = address.replace(":", "").replace("-", "")[-6:].upper()
    return f"{DEFAULT_NAME} {short_addr}"
