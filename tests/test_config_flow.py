"""Tests for the config-flow validation helpers and discovery step."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

pytest.importorskip("homeassistant.components.bluetooth")

import voluptuous as vol  # noqa: E402
from homeassistant.const import CONF_NAME  # noqa: E402

from custom_components.govee_h5075.config_flow import (  # noqa: E402
    GoveeH5075ConfigFlow,
    _is_h5075_service_info,
    _validate_address,
    _validate_name_prefix,
)
from custom_components.govee_h5075.const import CONF_MAC  # noqa: E402


@pytest.mark.parametrize(
    ("address", "expected"),
    [
        ("A4:C1:38:1A:2B:3C", "A4:C1:38:1A:2B:3C"),
        (" a4:c1:38:1a:2b:3c ", "A4:C1:38:1A:2B:3C"),
        ("55f072c6-d041-9ec0-84a3-a7eb3f190676", "55F072C6-D041-9EC0-84A3-A7EB3F190676"),
    ],
)
def test_validate_address_returns_upper_case(address, expected):
    assert _validate_address(address) == expected


@pytest.mark.parametrize("address", ["", "A4:C1:38", "not-an-address"])
def test_validate_address_rejects_garbage(address):
    with pytest.raises(vol.Invalid):
        _validate_address(address)


def test_validate_name_prefix():
    assert _validate_name_prefix(" GVH5075 ") == "GVH5075"
    with pytest.raises(vol.Invalid):
        _validate_name_prefix("   ")


def test_is_h5075_service_info(service_info):
    assert _is_h5075_service_info(service_info)
    ibeacon_only = SimpleNamespace(name="GVH5075_1A2B", manufacturer_data={0x004C: b"\x02\x15"})
    assert not _is_h5075_service_info(ibeacon_only)


async def test_bluetooth_step_aborts_for_ibeacon_only_advertisement():
    flow = GoveeH5075ConfigFlow()
    flow.hass = MagicMock()
    flow.context = {}
    flow.async_set_unique_id = AsyncMock()
    flow._abort_if_unique_id_configured = MagicMock()

    info = SimpleNamespace(
        name="GVH5075_1A2B",
        address="A4:C1:38:1A:2B:3C",
        manufacturer_data={0x004C: b"\x02\x15"},
    )
    result = await flow.async_step_bluetooth(info)

    assert result["type"] == "abort"
    assert result["reason"] == "not_supported"


async def test_user_step_stores_upper_case_address():
    flow = GoveeH5075ConfigFlow()
    flow.hass = MagicMock()
    flow.context = {}
    flow.async_set_unique_id = AsyncMock()
    flow._abort_if_unique_id_configured = MagicMock()
    flow.async_create_entry = MagicMock(return_value={"type": "create_entry"})

    with patch(
        "custom_components.govee_h5075.config_flow.async_discovered_service_info",
        return_value=[],
    ):
        await flow.async_step_user({CONF_MAC: "a4:c1:38:1a:2b:3c", CONF_NAME: "Cellar"})

    flow.async_set_unique_id.assert_awaited_once_with("A4:C1:38:1A:2B:3C")
    assert flow.async_create_entry.call_args.kwargs["data"] == {
        CONF_MAC: "A4:C1:38:1A:2B:3C",
        CONF_NAME: "Cellar",
    }
