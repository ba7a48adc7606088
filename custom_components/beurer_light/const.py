"""Constants for the Beurer light integration.

All domain-wide constants and configuration keys are centralised here so that
other modules can import them without creating circular-import problems.
Protocol constants (UUIDs, timings) live in :mod:`.beurer.protocol`.
"""

from __future__ import annotations

# ── Integration identity ───────────────────────────────────────────────────────

DOMAIN = "beurer_light"
"""The HA domain / unique identifier for this integration."""

MANUFACTURER = "Beurer"

# ── Config-entry keys ──────────────────────────────────────────────────────────

CONF_MODEL = "model"
"""Model derived from the advertisement local name at setup time."""

# ── HA platform names forwarded from this integration ─────────────────────────

PLATFORMS: list[str] = ["light"]

# ── Coordinator parameters ─────────────────────────────────────────────────────

NOTIFY_QUEUE_SIZE = 16
"""Bound on pending inbound notifications; a flooding lamp cannot fill memory."""
