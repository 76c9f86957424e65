"""Pytest configuration and fixtures shared by the test suite."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

# Full on-air manufacturer data (company id bytes included).
H5075_PAYLOAD = bytes.fromhex("88EC00034C5A6400")
IBEACON_PAYLOAD = bytes.fromhex("4C0002154E5445")
SATURATED_PAYLOAD = bytes.fromhex("88EC00FFFFFF6400")

DEVICE_NAME = "GVH5075_1A2B"
DEVICE_ADDRESS = "A4:C1:38:1A:2B:3C"


@pytest.fixture
def h5075_payload() -> bytes:
    """Concrete H5075 advertisement: 21.6 °C, 15.4 %, 100 % battery."""
    return H5075_PAYLOAD


@pytest.fixture
def manufacturer_data() -> dict[int, bytes]:
    """Manufacturer data as bleak / Home Assistant present it (id stripped)."""
    return {
        0xEC88: H5075_PAYLOAD[2:],
        0x004C: IBEACON_PAYLOAD[2:],
    }


@pytest.fixture
def service_info(manufacturer_data):
    """Minimal stand-in for a BluetoothServiceInfoBleak / bleak advertisement."""
    return SimpleNamespace(
        name=DEVICE_NAME,
        address=DEVICE_ADDRESS,
        rssi=-67,
        time=0.0,
        manufacturer_data=manufacturer_data,
    )
