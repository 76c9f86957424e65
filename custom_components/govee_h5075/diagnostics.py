"""Diagnostics support for the Govee H5075 integration.

Users can download a redacted JSON snapshot from
Settings → Devices & Services → Govee H5075 → three-dot menu → Download diagnostics.

The MAC address is redacted from the output to avoid sharing device identifiers
in public bug reports.  Rejection counters make decoder offset problems visible:
a steady stream of ``out_of_range`` rejections usually means the payload layout
changed.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import CONF_MAC, DOMAIN
from .coordinator import GoveeH5075PassiveBluetoothProcessorCoordinator
from .govee.device import Rejection, describe_rejection

_TO_REDACT: set[str] = {CONF_MAC, "address"}


def _rejection_summary(rejection: Rejection | None) -> dict[str, Any] | None:
    if rejection is None:
        return None
    return {
        "reason": rejection.reason.value,
        "description": describe_rejection(rejection),
        "failed_fields": list(rejection.failed_fields),
    }


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant,
    entry: ConfigEntry,
) -> dict[str, Any]:
    """Return diagnostics for a Govee H5075 config entry.

    Args:
        hass:  Home Assistant instance.
        entry: Config entry to collect diagnostics for.

    Returns:
        Redacted dictionary suitable for inclusion in a bug report.
    """
    coordinator: GoveeH5075PassiveBluetoothProcessorCoordinator = hass.data[DOMAIN][
        entry.entry_id
    ]
    reading = coordinator.reading

    return async_redact_data(
        {
            "entry_data": dict(entry.data),
            "entry_options": dict(entry.options),
            "parser": {
                "address": coordinator.address,
                "name_prefix": coordinator.name_prefix,
                "validate_range": coordinator.validate_range,
            },
            "available": coordinator.available,
            "last_seen": coordinator.last_seen.isoformat() if coordinator.last_seen else None,
            "rssi": coordinator.rssi,
            "reading": asdict(reading) if reading is not None else None,
            "last_rejection": _rejection_summary(coordinator.last_rejection),
            "rejection_counts": {
                reason.value: count
                for reason, count in coordinator.rejection_counts.items()
            },
        },
        _TO_REDACT,
    )
