"""BLE advertisement classification for the Govee H5075 integration.

This module decides whether a discovered advertisement belongs to a Govee
H5075 thermo-hygrometer before any byte of the sensor payload is decoded.  It
is deliberately kept free of direct Home Assistant imports so that the
detection logic can be unit-tested standalone.

A single H5075 broadcasts several advertisement flavours in turn, most notably
the Govee manufacturer data (company id ``0xEC88``) and an Apple iBeacon frame
(company id ``0x004C``).  Only the former carries readings; the latter must be
skipped quietly rather than reported as malformed.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum

# ── Known advertisement identifiers ───────────────────────────────────────────

GOVEE_MANUFACTURER_ID: int = 0xEC88
"""Company identifier carried by the H5075 sensor advertisement."""

APPLE_MANUFACTURER_ID: int = 0x004C
"""Company identifier of the iBeacon frames the H5075 also broadcasts."""

GOVEE_H5075_NAME_PREFIX: str = "GVH5075"
"""Advertisement local-name prefix of the H5075 (e.g. ``GVH5075_1A2B``)."""

MANUFACTURER_ID_LENGTH: int = 2


# ── Data structures ───────────────────────────────────────────────────────────

class Decision(str, Enum):
    """Outcome of classifying one manufacturer-data field."""
    TARGET_VENDOR = "target_vendor"
    OTHER_VENDOR = "other_vendor"
    TOO_SHORT = "too_short"
    NO_DEVICE_NAME_MATCH = "no_device_name_match"


@dataclass(frozen=True)
class Classification:
    """Verdict of :func:`classify` for a single advertisement.

    Attributes:
        decision:        Which flavour of advertisement this is.
        manufacturer_id: Little-endian company id read from the first two
                         bytes, or ``None`` when the payload was not inspected
                         or too short to hold one.
        payload_length:  Number of bytes observed, reported for every decision
                         so a decoder can pick among layouts.
    """

    decision: Decision
    manufacturer_id: int | None = None
    payload_length: int = 0


@dataclass(frozen=True)
class RawAdvertisement:
    """One manufacturer-data field of a discovered device.

    ``payload`` is the on-air layout: the two little-endian company-id bytes
    followed by the vendor data.
    """

    device_name: str
    payload: bytes


# ── Classifier ────────────────────────────────────────────────────────────────

def read_manufacturer_id(payload: bytes) -> int:
    """Return the little-endian company id stored in the first two bytes.

    Raises:
        ValueError: If *payload* holds fewer than two bytes.
    """
    if len(payload) < MANUFACTURER_ID_LENGTH:
        raise ValueError(f"Need 2 bytes for a manufacturer id, got {len(payload)}")
    return (payload[1] << 8) | payload[0]


def classify(
    device_name: str | None,
    payload: bytes,
    name_prefix: str = GOVEE_H5075_NAME_PREFIX,
    manufacturer_id: int = GOVEE_MANUFACTURER_ID,
) -> Classification:
    """Classify a manufacturer-data field by device name and company id.

    The name check runs first so that unrelated nearby traffic is dismissed
    without touching its bytes.  Never raises for ``bytes`` input.

    Args:
        device_name:     Advertisement local name (may be ``None``).
        payload:         Manufacturer data including the leading id bytes.
        name_prefix:     Local-name prefix identifying the target device.
        manufacturer_id: Company id identifying the target vendor.

    Returns:
        :class:`Classification` for this advertisement.
    """
    if isinstance(payload, str):
        raise TypeError("payload must be bytes, not str")

    length = len(payload)
    if not device_name or not device_name.startswith(name_prefix):
        return Classification(Decision.NO_DEVICE_NAME_MATCH, payload_length=length)

    if length < MANUFACTURER_ID_LENGTH:
        return Classification(Decision.TOO_SHORT, payload_length=length)

    observed_id = read_manufacturer_id(payload)
    if observed_id == manufacturer_id:
        return Classification(Decision.TARGET_VENDOR, observed_id, length)
    return Classification(Decision.OTHER_VENDOR, observed_id, length)


# ── Platform adapters ─────────────────────────────────────────────────────────
# bleak's AdvertisementData.manufacturer_data and Home Assistant's
# BluetoothServiceInfoBleak.manufacturer_data both map company id -> bytes with
# the two id bytes already stripped from the value.

def manufacturer_payloads(
    manufacturer_data: Mapping[int, bytes] | None,
) -> Iterator[bytes]:
    """Yield each manufacturer-data value in its on-air layout.

    The company id is written back in front of the value, low byte first, so
    every downstream offset matches the raw advertisement.

    Args:
        manufacturer_data: Mapping of company id to vendor bytes, as produced
                           by bleak or Home Assistant (may be ``None``).

    Yields:
        Full manufacturer-data fields, one per company id.
    """
    if not manufacturer_data:
        return
    for company_id, data in manufacturer_data.items():
        yield (company_id & 0xFFFF).to_bytes(MANUFACTURER_ID_LENGTH, "little") + bytes(data)


def raw_advertisements(
    local_name: str | None,
    manufacturer_data: Mapping[int, bytes] | None,
) -> Iterator[RawAdvertisement]:
    """Yield a :class:`RawAdvertisement` per manufacturer-data field."""
    for payload in manufacturer_payloads(manufacturer_data):
        yield RawAdvertisement(device_name=local_name or "", payload=payload)


def is_govee_h5075(
    local_name: str | None,
    manufacturer_ids: list[int] | None,
    name_prefix: str = GOVEE_H5075_NAME_PREFIX,
) -> bool:
    """Return ``True`` if the advertisement looks like an H5075 sensor.

    Used by the config flow.  Both the name prefix and the Govee company id are
    required; an iBeacon-only advertisement from the same unit does not
    qualify.

    Args:
        local_name:       BLE advertisement local name (may be ``None``).
        manufacturer_ids: Company ids present in the advertisement.
        name_prefix:      Local-name prefix identifying the target device.
    """
    if not local_name or not local_name.strip().startswith(name_prefix):
        return False
    return GOVEE_MANUFACTURER_ID in (manufacturer_ids or [])


def friendly_name_from_advertisement(local_name: str | None, address: str) -> str:
    """Derive a human-readable display name from advertisement data.

    Falls back to a shortened address if no local name is available.

    Args:
        local_name: BLE advertisement local name.
        address:    BLE address string.

    Returns:
        A non-empty display name string.
    """
    if local_name and local_name.strip():
        return local_name.strip()
    short_addr = address.replace(":", "").replace("-", "")[-6:].upper()
    return f"Govee H5075 {short_addr}"
