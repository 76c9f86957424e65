"""Govee H5075 payload decoding.

This module contains **all** reading logic for the Govee H5075 BLE
thermo-hygrometer.  It has **no** dependency on Home Assistant; every function
and class here can be tested with plain Python.

Advertisement layout (manufacturer data, company id 0xEC88)::

    offset:  0      1      2     3       4        5       6      7
    field:  [ID_lo][ID_hi][pad][enc_hi][enc_mid][enc_lo][batt][pad]

* ``ID_lo, ID_hi``  little-endian company id, ``0xEC88``.
* ``enc_hi..enc_lo`` big-endian 24-bit composite: temperature in units of
  0.1 °C in the upper decimal digits, humidity in units of 0.1 % in the last
  three decimal digits (``encoded = temp_units * 1000 + hum_units``).
* ``batt``           battery level 0-100 %.

Processing is a three-stage pipeline, each stage returning either a value or a
:class:`Rejection`::

    classify (scanner.py) -> decode -> validate

Nothing is raised for malformed input and no state is kept between calls, so
one bad advertisement never affects the next one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from .scanner import (
    GOVEE_H5075_NAME_PREFIX,
    GOVEE_MANUFACTURER_ID,
    Decision,
    classify,
)

_LOGGER = logging.getLogger(__name__)

# ── Payload layout ────────────────────────────────────────────────────────────

MIN_PAYLOAD_LENGTH: int = 8
"""ID (2) + pad (1) + encoded (3) + battery (1) + trailing pad (1)."""

# The encoded field starts after the two id bytes and one pad byte.  Payloads
# with the id stripped would put it at offset 1 instead.
ENCODED_OFFSET: int = 3
BATTERY_OFFSET: int = 6

ENCODED_MAX: int = 0xFFFFFF

# ── Physical bounds ───────────────────────────────────────────────────────────

TEMPERATURE_MIN: float = -40.0
TEMPERATURE_MAX: float = 60.0
HUMIDITY_MIN: float = 0.0
HUMIDITY_MAX: float = 100.0
BATTERY_MIN: int = 0
BATTERY_MAX: int = 100

FIELD_TEMPERATURE = "temperature"
FIELD_HUMIDITY = "humidity"
FIELD_BATTERY = "battery"


# ═════════════════════════════════════════════════════════════════════════════
# Result model
# ═════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SensorReading:
    """One decoded measurement of an H5075."""

    temperature_celsius: float
    humidity_percent: float
    battery_percent: int


class RejectionReason(str, Enum):
    """Why an advertisement did not produce a :class:`SensorReading`."""
    NO_DEVICE_NAME_MATCH = "no_device_name_match"
    OTHER_VENDOR = "other_vendor"
    TOO_SHORT = "too_short"
    MALFORMED_PAYLOAD = "malformed_payload"
    OUT_OF_RANGE = "out_of_range"


@dataclass(frozen=True)
class Rejection:
    """Terminal outcome for an advertisement that yielded no valid reading.

    Attributes:
        reason:          Rejection category.
        manufacturer_id: Foreign company id (``OTHER_VENDOR``).
        payload_length:  Observed byte count (``TOO_SHORT``,
                         ``MALFORMED_PAYLOAD``).
        reading:         The decoded but untrustworthy values
                         (``OUT_OF_RANGE``).
        failed_fields:   Names of the fields outside their bounds
                         (``OUT_OF_RANGE``).
    """

    reason: RejectionReason
    manufacturer_id: int | None = None
    payload_length: int | None = None
    reading: SensorReading | None = None
    failed_fields: tuple[str, ...] = field(default_factory=tuple)


DecodeResult = SensorReading | Rejection

_DECISION_TO_REASON: dict[Decision, RejectionReason] = {
    Decision.NO_DEVICE_NAME_MATCH: RejectionReason.NO_DEVICE_NAME_MATCH,
    Decision.OTHER_VENDOR: RejectionReason.OTHER_VENDOR,
    Decision.TOO_SHORT: RejectionReason.TOO_SHORT,
}


# ═════════════════════════════════════════════════════════════════════════════
# Decoder
# ═════════════════════════════════════════════════════════════════════════════

def read_encoded(payload: bytes) -> int:
    """Assemble the big-endian 24-bit composite at :data:`ENCODED_OFFSET`."""
    return (
        (payload[ENCODED_OFFSET] << 16)
        | (payload[ENCODED_OFFSET + 1] << 8)
        | payload[ENCODED_OFFSET + 2]
    )


def decode_encoded(encoded: int) -> tuple[float, float]:
    """Split a 24-bit composite into temperature and humidity.

    Integer division and modulo are taken first and only the resulting whole
    tenths are scaled, which reproduces the sensor's decimal packing exactly.

    Args:
        encoded: Composite value in ``[0, 0xFFFFFF]``.

    Returns:
        ``(temperature_celsius, humidity_percent)``.
    """
    return (encoded // 1000) / 10.0, (encoded % 1000) / 10.0


def decode(payload: bytes) -> DecodeResult:
    """Decode an H5075 manufacturer-data field into a :class:`SensorReading`.

    The length is checked here as well as by the classifier so the function is
    safe to call on its own.  No range validation is applied; see
    :func:`validate`.

    Args:
        payload: Manufacturer data including the two leading id bytes.

    Returns:
        The decoded reading, or a ``MALFORMED_PAYLOAD`` :class:`Rejection`.
    """
    if isinstance(payload, str):
        raise TypeError("payload must be bytes, not str")

    if len(payload) < MIN_PAYLOAD_LENGTH:
        _LOGGER.debug(
            "Payload too short: %d bytes (expected >= %d)",
            len(payload), MIN_PAYLOAD_LENGTH,
        )
        return Rejection(
            RejectionReason.MALFORMED_PAYLOAD, payload_length=len(payload)
        )

    encoded = read_encoded(payload)
    temperature, humidity = decode_encoded(encoded)
    return SensorReading(
        temperature_celsius=temperature,
        humidity_percent=humidity,
        battery_percent=payload[BATTERY_OFFSET],
    )


def encode_reading(temperature_units: int, humidity_units: int, battery: int) -> bytes:
    """Build an 8-byte H5075 payload, the inverse of :func:`decode`.

    Args:
        temperature_units: Temperature in 0.1 °C steps (non-negative).
        humidity_units:    Humidity in 0.1 % steps, ``0..999``.
        battery:           Battery percentage byte.

    Returns:
        Manufacturer data in on-air layout.

    Raises:
        ValueError: If a value does not fit the wire format.
    """
    if not 0 <= humidity_units <= 999:
        raise ValueError(f"humidity_units must be 0..999, got {humidity_units}")
    encoded = temperature_units * 1000 + humidity_units
    if not 0 <= encoded <= ENCODED_MAX:
        raise ValueError(f"Encoded value {encoded} does not fit in 24 bits")
    if not 0 <= battery <= 0xFF:
        raise ValueError(f"battery must fit in one byte, got {battery}")
    return (
        GOVEE_MANUFACTURER_ID.to_bytes(2, "little")
        + b"\x00"
        + encoded.to_bytes(3, "big")
        + bytes([battery, 0x00])
    )


# ═════════════════════════════════════════════════════════════════════════════
# Range validator
# ═════════════════════════════════════════════════════════════════════════════

def out_of_range_fields(reading: SensorReading) -> tuple[str, ...]:
    """Return the names of every field outside its physical bounds."""
    failed: list[str] = []
    if not TEMPERATURE_MIN <= reading.temperature_celsius <= TEMPERATURE_MAX:
        failed.append(FIELD_TEMPERATURE)
    if not HUMIDITY_MIN <= reading.humidity_percent <= HUMIDITY_MAX:
        failed.append(FIELD_HUMIDITY)
    if not BATTERY_MIN <= reading.battery_percent <= BATTERY_MAX:
        failed.append(FIELD_BATTERY)
    return tuple(failed)


def validate(reading: SensorReading) -> DecodeResult:
    """Check a reading against the sensor's plausible range.

    All three bounds are evaluated so the rejection lists every failing field.

    Args:
        reading: Output of :func:`decode`.

    Returns:
        *reading* unchanged, or an ``OUT_OF_RANGE`` :class:`Rejection` that
        carries it for diagnostics.
    """
    failed = out_of_range_fields(reading)
    if failed:
        return Rejection(
            RejectionReason.OUT_OF_RANGE, reading=reading, failed_fields=failed
        )
    return reading


# ═════════════════════════════════════════════════════════════════════════════
# Pipeline
# ═════════════════════════════════════════════════════════════════════════════

def process_advertisement(
    device_name: str | None,
    payload: bytes,
    *,
    name_prefix: str = GOVEE_H5075_NAME_PREFIX,
    manufacturer_id: int = GOVEE_MANUFACTURER_ID,
    validate_range: bool = True,
) -> DecodeResult:
    """Run classify, decode and validate on one manufacturer-data field.

    Args:
        device_name:     Advertisement local name.
        payload:         Manufacturer data including the leading id bytes.
        name_prefix:     Local-name prefix identifying the target device.
        manufacturer_id: Company id identifying the target vendor.
        validate_range:  Apply :func:`validate` to the decoded reading.

    Returns:
        A valid :class:`SensorReading`, or the :class:`Rejection` of the first
        stage that failed.
    """
    classification = classify(device_name, payload, name_prefix, manufacturer_id)

    if classification.decision is not Decision.TARGET_VENDOR:
        return Rejection(
            _DECISION_TO_REASON[classification.decision],
            manufacturer_id=classification.manufacturer_id,
            payload_length=classification.payload_length,
        )

    result = decode(payload)
    if isinstance(result, Rejection) or not validate_range:
        return result
    return validate(result)


def describe_rejection(rejection: Rejection) -> str:
    """Render a one-line diagnostic for logs and the CLI."""
    reason = rejection.reason
    if reason is RejectionReason.OTHER_VENDOR and rejection.manufacturer_id is not None:
        return f"other vendor (manufacturer id 0x{rejection.manufacturer_id:04X})"
    if reason is RejectionReason.TOO_SHORT:
        return f"too short for a manufacturer id ({rejection.payload_length} bytes)"
    if reason is RejectionReason.MALFORMED_PAYLOAD:
        return (
            f"malformed payload ({rejection.payload_length} bytes, "
            f"expected >= {MIN_PAYLOAD_LENGTH})"
        )
    if reason is RejectionReason.OUT_OF_RANGE and rejection.reading is not None:
        r = rejection.reading
        return (
            f"out of range [{', '.join(rejection.failed_fields)}]: "
            f"T={r.temperature_celsius}°C RH={r.humidity_percent}% "
            f"Batt={r.battery_percent}%"
        )
    return reason.value.replace("_", " ")
