"""Constants for the Govee H5075 integration."""

from __future__ import annotations

from typing import Final

from .govee.scanner import GOVEE_H5075_NAME_PREFIX

DOMAIN: Final = "govee_h5075"
MANUFACTURER: Final = "Govee"
MODEL: Final = "H5075"

PLATFORMS: Final = ["sensor"]

# ── Config entry keys ─────────────────────────────────────────────────────────

CONF_MAC: Final = "mac"
CONF_NAME_PREFIX: Final = "name_prefix"
CONF_VALIDATE_RANGE: Final = "validate_range"

DEFAULT_NAME: Final = "Govee H5075"
DEFAULT_NAME_PREFIX: Final = GOVEE_H5075_NAME_PREFIX
DEFAULT_VALIDATE_RANGE: Final = True
