"""Govee H5075 BLE Thermo-Hygrometer – Home Assistant integration.

This integration reads temperature, humidity and battery level from Govee
H5075 sensors by passively listening to their BLE advertisements.  No
connection is ever made to the sensor and no cloud account is needed.

Architecture overview
---------------------
``govee/scanner.py``
    Advertisement classifier: device-name filter and manufacturer-id check,
    plus adapters from bleak / HA manufacturer data to the on-air layout.

``govee/device.py``
    Pure-Python payload decoder, range validator and pipeline.  Has zero Home
    Assistant dependencies.

``coordinator.py``
    :class:`~coordinator.GoveeH5075PassiveBluetoothProcessorCoordinator`
    listens passively for one address, tracks its availability and runs the
    pipeline on every advertisement.

``sensor.py``
    Converts readings to passive data updates and exposes temperature,
    humidity and battery as processor-backed sensor entities.

``config_flow.py``
    Guided setup via BLE discovery or manual MAC entry; the options flow sets
    the device-name prefix and range validation.

Home Assistant modules are imported lazily so that the ``govee`` sub-package
and the command-line scanner can be used without Home Assistant installed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .const import (
    CONF_MAC,
    CONF_NAME_PREFIX,
    CONF_VALIDATE_RANGE,
    DEFAULT_NAME_PREFIX,
    DEFAULT_VALIDATE_RANGE,
    DOMAIN,
    PLATFORMS,
)

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

_LOGGER = logging.getLogger(__name__)


def _entry_option(entry: ConfigEntry, key: str, default: Any) -> Any:
    """Read *key* from ``entry.options``, falling back to ``entry.data``."""
    return entry.options.get(key, entry.data.get(key, default))


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up a Govee H5075 from a config entry.

    Creates a passive processor coordinator for the sensor, stores it in
    ``hass.data``, forwards setup to the sensor platform and only then starts
    listening, so the platform's processor is registered before the first
    advertisement is handled.

    Args:
        hass:  Home Assistant instance.
        entry: Config entry created by the config flow.

    Returns:
        ``True`` on success.
    """
    from .coordinator import GoveeH5075PassiveBluetoothProcessorCoordinator

    # HA reports addresses in upper case and matches them verbatim.
    address: str = entry.data[CONF_MAC].upper()
    # entry.options takes precedence over entry.data so that the Options Flow
    # is the single source of truth once it has been used.
    name_prefix: str = _entry_option(entry, CONF_NAME_PREFIX, DEFAULT_NAME_PREFIX)
    validate_range: bool = _entry_option(
        entry, CONF_VALIDATE_RANGE, DEFAULT_VALIDATE_RANGE
    )

    _LOGGER.debug(
        "Setting up Govee H5075: address=%s, prefix=%s, validate_range=%s",
        address, name_prefix, validate_range,
    )

    coordinator = GoveeH5075PassiveBluetoothProcessorCoordinator(
        hass,
        address,
        name_prefix=name_prefix,
        validate_range=validate_range,
    )

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = coordinator

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    entry.async_on_unload(coordinator.async_start())
    entry.async_on_unload(
        entry.add_update_listener(_async_update_listener)
    )

    return True


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Apply options changes to the running coordinator without a reload."""
    coordinator = hass.data[DOMAIN].get(entry.entry_id)
    if coordinator is None:
        return
    coordinator.async_set_options(
        _entry_option(entry, CONF_NAME_PREFIX, DEFAULT_NAME_PREFIX),
        _entry_option(entry, CONF_VALIDATE_RANGE, DEFAULT_VALIDATE_RANGE),
    )


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry.

    The Bluetooth subscription is released by the ``async_on_unload`` hooks
    registered during setup.

    Args:
        hass:  Home Assistant instance.
        entry: Config entry being removed.

    Returns:
        ``True`` if all platforms were unloaded successfully.
    """
    if unload_ok := await hass.config_entries.async_unload_platforms(entry, PLATFORMS):
        hass.data[DOMAIN].pop(entry.entry_id)
        _LOGGER.debug("Govee H5075 entry unloaded: %s", entry.data[CONF_MAC])

    return unload_ok
