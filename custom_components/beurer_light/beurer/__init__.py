"""Beurer TL-series protocol sub-package.

This package is intentionally free of any Home Assistant dependencies so that
it can be unit-tested in isolation and potentially reused in other contexts.

Sub-modules
-----------
protocol   – Frame encoder, checksum, command payloads and notification decoder.
color      – RGB ⇄ HSL conversion and brightness scaling.
state      – The reconciled dual-channel lamp model.
lamp       – Reconciler turning attribute set-requests into command frames.
connection – BLE connection lifecycle with idle disconnect and lazy reconnect.
exceptions – Error taxonomy raised by the modules above.
scanner    – Helpers for matching Beurer lamps in BLE advertisement data.
"""
