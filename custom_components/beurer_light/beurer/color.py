"""Colour-space helpers for the Beurer colour channel.

The lamp speaks RGB on the wire while Home Assistant exposes hue and
saturation.  Lightness is not an adjustable dimension: outbound colours are
always computed at :data:`COLOR_LIGHTNESS`, and the lightness of inbound
colours is discarded.  The round trip is therefore lossy: RGB → HSL → RGB
keeps the hue and the ratio between channels of a saturated colour but not its
absolute intensity, e.g. ``(128, 0, 0)`` comes back as ``(255, 0, 0)``.
"""

from __future__ import annotations

import colorsys

COLOR_LIGHTNESS = 50
"""Fixed HSL lightness (percent) used when pushing a colour to the lamp."""


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def hsl_to_rgb(hue: float, saturation: float, lightness: float) -> tuple[int, int, int]:
    """Convert an HSL colour to an 8-bit RGB triple.

    Args:
        hue:        Hue in degrees (0–360).
        saturation: Saturation in percent (0–100).
        lightness:  Lightness in percent (0–100).

    Returns:
        ``(r, g, b)`` with each component in 0–255.
    """
    r, g, b = colorsys.hls_to_rgb(
        (hue % 360) / 360,
        _clamp(lightness, 0, 100) / 100,
        _clamp(saturation, 0, 100) / 100,
    )
    return round(r * 255), round(g * 255), round(b * 255)


def rgb_to_hsl(red: int, green: int, blue: int) -> tuple[int, int, int]:
    """Convert an 8-bit RGB triple to HSL.

    Args:
        red, green, blue: Colour components (0–255).

    Returns:
        ``(hue, saturation, lightness)`` as integers; hue in 0–359 degrees,
        saturation and lightness in percent.
    """
    h, l, s = colorsys.rgb_to_hls(red / 255, green / 255, blue / 255)
    return round(h * 360) % 360, round(s * 100), round(l * 100)


def brightness_pct_to_ha(pct: int) -> int:
    """Convert lamp brightness percentage (0–100) to HA scale (0–255)."""
    return round(_clamp(pct, 0, 100) / 100 * 255)


def brightness_ha_to_pct(ha_value: int) -> int:
    """Convert HA brightness scale (0–255) to lamp percentage (0–100)."""
    return round(_clamp(ha_value, 0, 255) / 255 * 100)
