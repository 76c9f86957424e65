"""Config flow for the Govee H5075 integration.

Supports two discovery paths:

1. **Automatic BLE discovery** – Home Assistant's Bluetooth component detects
   an H5075 advertisement (manufacturer id ``0xEC88``, name ``GVH5075*``) and
   triggers ``async_step_bluetooth``.  The user only needs to confirm the
   device and optionally rename it.

2. **Manual entry** – The user selects "Add integration → Govee H5075" from
   the HA integrations menu and picks a discovered sensor or enters the BLE
   address by hand.

The options flow adjusts the device-name prefix and whether out-of-range
readings are rejected.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import voluptuous as vol

from homeassistant.components.bluetooth import (
    BluetoothServiceInfoBleak,
    async_discovered_service_info,
)
from homeassistant.config_entries import ConfigEntry, ConfigFlow, OptionsFlow
from homeassistant.const import CONF_NAME
from homeassistant.core import callback
from homeassistant.data_entry_flow import FlowResult

from .const import (
    CONF_MAC,
    CONF_NAME_PREFIX,
    CONF_VALIDATE_RANGE,
    DEFAULT_NAME,
    DEFAULT_NAME_PREFIX,
    DEFAULT_VALIDATE_RANGE,
    DOMAIN,
)
from .govee.scanner import (
    friendly_name_from_advertisement,
    is_govee_h5075,
)

_LOGGER = logging.getLogger(__name__)

# ── Validation helpers ─────────────────────────────────────────────────────────

# Accepts standard MAC (AA:BB:CC:DD:EE:FF) and CoreBluetooth UUIDs
_RE_MAC = re.compile(
    r"^([0-9A-Fa-f]{2}:){5}[0-9A-Fa-f]{2}$"
    r"|^[0-9A-Fa-f]{8}-([0-9A-Fa-f]{4}-){3}[0-9A-Fa-f]{12}$"
)


def _validate_address(value: str) -> str:
    """Validate a BLE address string.

    Args:
        value: User-supplied address string.

    Returns:
        Address in upper case, the form Home Assistant reports and matches.

    Raises:
        vol.Invalid: If the address format is not recognised.
    """
    stripped = value.strip()
    if not _RE_MAC.match(stripped):
        raise vol.Invalid(
            "Invalid BLE address.  "
            "Expected AA:BB:CC:DD:EE:FF or a CoreBluetooth UUID."
        )
    return stripped.upper()


def _validate_name_prefix(value: str) -> str:
    """Validate the advertisement local-name prefix.

    Raises:
        vol.Invalid: If the prefix is empty once stripped.
    """
    stripped = value.strip()
    if not stripped:
        raise vol.Invalid("Name prefix must not be empty.")
    return stripped


def _is_h5075_service_info(info: BluetoothServiceInfoBleak) -> bool:
    return is_govee_h5075(info.name, list(info.manufacturer_data or {}))


# ── Config flow ────────────────────────────────────────────────────────────────

class GoveeH5075ConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle the Govee H5075 config-entry creation flow.

    Steps
    -----
    bluetooth         Called by HA when an advertisement matches the manifest.
    bluetooth_confirm User confirms the auto-discovered device.
    user              Manual address entry (fallback path).
    """

    VERSION = 1

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: ConfigEntry) -> GoveeH5075OptionsFlow:
        """Return the options flow handler for this config entry."""
        return GoveeH5075OptionsFlow(config_entry)

    def __init__(self) -> None:
        """Initialise flow instance variables."""
        self._discovered_address: str | None = None
        self._discovered_name: str | None = None

    # ── Auto-discovery path ────────────────────────────────────────────────────

    async def async_step_bluetooth(
        self, discovery_info: BluetoothServiceInfoBleak
    ) -> FlowResult:
        """Handle a BLE advertisement match triggered by HA's Bluetooth component.

        Args:
            discovery_info: Advertisement metadata provided by HA.

        Returns:
            Flow result proceeding to the confirmation step.
        """
        _LOGGER.debug(
            "Bluetooth discovery: address=%s name=%s",
            discovery_info.address, discovery_info.name,
        )

        await self.async_set_unique_id(discovery_info.address.upper())
        self._abort_if_unique_id_configured()

        # An iBeacon-only advertisement from the same unit also matches the
        # manifest's name filter; only a Govee manufacturer payload qualifies.
        if not _is_h5075_service_info(discovery_info):
            return self.async_abort(reason="not_supported")

        self._discovered_address = discovery_info.address
        self._discovered_name = friendly_name_from_advertisement(
            discovery_info.name, discovery_info.address
        )

        self.context["title_placeholders"] = {"name": self._discovered_name}
        return await self.async_step_bluetooth_confirm()

    async def async_step_bluetooth_confirm(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Ask the user to confirm the auto-discovered device.

        Args:
            user_input: Form data (submitted name), or ``None`` on the first
                        display of the form.

        Returns:
            Flow result: show the form, or create the entry on submit.
        """
        if self._discovered_address is None:
            return self.async_abort(reason="device_address_unavailable")

        if user_input is not None:
            return self.async_create_entry(
                title=user_input[CONF_NAME],
                data={
                    CONF_MAC: self._discovered_address,
                    CONF_NAME: user_input[CONF_NAME],
                },
            )

        return self.async_show_form(
            step_id="bluetooth_confirm",
            data_schema=vol.Schema(
                {
                    vol.Required(
                        CONF_NAME, default=self._discovered_name or DEFAULT_NAME
                    ): str,
                }
            ),
            description_placeholders={
                "address": self._discovered_address,
                "name": self._discovered_name or self._discovered_address,
            },
        )

    # ── Manual entry path ──────────────────────────────────────────────────────

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Handle the manual-entry step shown in the integrations menu.

        Sensors already present in the Bluetooth cache are offered as a list;
        otherwise a free-text address field is shown.

        Args:
            user_input: Submitted form data, or ``None`` on first display.

        Returns:
            Flow result.
        """
        errors: dict[str, str] = {}

        # The H5075 is never connected to, so non-connectable sightings count.
        discovered: list[BluetoothServiceInfoBleak] = [
            info
            for info in async_discovered_service_info(self.hass, connectable=False)
            if _is_h5075_service_info(info)
        ]

        if user_input is not None:
            try:
                address = _validate_address(user_input.get(CONF_MAC, ""))
            except vol.Invalid:
                errors[CONF_MAC] = "invalid_address"
            else:
                await self.async_set_unique_id(address)
                self._abort_if_unique_id_configured()

                name = user_input.get(CONF_NAME) or f"{DEFAULT_NAME} {address[-5:]}"
                return self.async_create_entry(
                    title=name,
                    data={CONF_MAC: address, CONF_NAME: name},
                )

        if discovered:
            address_field: Any = vol.In(
                {
                    info.address: f"{info.name or info.address}  ({info.address})"
                    for info in discovered
                }
            )
        else:
            address_field = str

        schema = vol.Schema(
            {
                vol.Required(CONF_MAC): address_field,
                vol.Optional(CONF_NAME, default=DEFAULT_NAME): str,
            }
        )

        return self.async_show_form(
            step_id="user",
            data_schema=schema,
            errors=errors,
        )


# ── Options flow ───────────────────────────────────────────────────────────────

class GoveeH5075OptionsFlow(OptionsFlow):
    """Options flow for the parser settings of a configured sensor.

    Accessible via Settings → Devices & Services → Govee H5075 → Configure.
    Changes are applied live to the running coordinator without a reload.
    """

    def __init__(self, config_entry: ConfigEntry) -> None:
        """Initialise with the current config entry."""
        self._config_entry = config_entry

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Show the options form.

        Args:
            user_input: Submitted form data, or ``None`` on first display.

        Returns:
            Flow result.
        """
        errors: dict[str, str] = {}

        if user_input is not None:
            try:
                prefix = _validate_name_prefix(user_input.get(CONF_NAME_PREFIX, ""))
            except vol.Invalid:
                errors[CONF_NAME_PREFIX] = "invalid_name_prefix"
            else:
                return self.async_create_entry(
                    title="",
                    data={
                        CONF_NAME_PREFIX: prefix,
                        CONF_VALIDATE_RANGE: user_input[CONF_VALIDATE_RANGE],
                    },
                )

        options = self._config_entry.options
        current_prefix = options.get(CONF_NAME_PREFIX, DEFAULT_NAME_PREFIX)
        current_validate = options.get(CONF_VALIDATE_RANGE, DEFAULT_VALIDATE_RANGE)

        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_NAME_PREFIX, default=current_prefix): str,
                    vol.Required(CONF_VALIDATE_RANGE, default=current_validate): bool,
                }
            ),
            errors=errors,
        )
