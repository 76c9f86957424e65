#!/usr/bin/env python3
"""
Govee H5075 BLE Scanner (bleak)

Listens passively for Govee H5075 thermo-hygrometer advertisements and prints
one line per decoded reading.  Unrelated advertisements (other devices, the
iBeacon frames the H5075 interleaves with its sensor data) are skipped; short
or implausible payloads are reported with their rejection reason.

Installation:
  pip install bleak

Examples:
  python3 govee_h5075_ble_scanner.py
  python3 govee_h5075_ble_scanner.py --duration 120 --show-rejections --debug
  python3 govee_h5075_ble_scanner.py --address A4:C1:38:12:34:56
  python3 govee_h5075_ble_scanner.py --hex "88 EC 00 03 4C 5A 64 00"
"""

from __future__ import annotations

import argparse
import asyncio
import binascii
import logging
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field

from bleak import BleakScanner
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData
from bleak.exc import BleakError

from custom_components.govee_h5075.govee.device import (
    DecodeResult,
    Rejection,
    RejectionReason,
    SensorReading,
    describe_rejection,
    process_advertisement,
)
from custom_components.govee_h5075.govee.scanner import (
    GOVEE_H5075_NAME_PREFIX,
    GOVEE_MANUFACTURER_ID,
    raw_advertisements,
)

DEFAULT_SCAN_SECONDS = 30.0

EXIT_OK = 0
EXIT_SCAN_ERROR = 1
EXIT_REJECTED = 2

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
log = logging.getLogger("govee_h5075")

# Name mismatches are everyday traffic and stay silent.
_REJECTION_LOG_LEVELS: dict[RejectionReason, int] = {
    RejectionReason.OTHER_VENDOR: logging.DEBUG,
    RejectionReason.TOO_SHORT: logging.INFO,
    RejectionReason.MALFORMED_PAYLOAD: logging.INFO,
    RejectionReason.OUT_OF_RANGE: logging.WARNING,
}


def format_reading(reading: SensorReading) -> str:
    return (
        f"T={reading.temperature_celsius:.1f}°C  "
        f"RH={reading.humidity_percent:.1f}%  "
        f"Batt={reading.battery_percent}%"
    )


@dataclass
class ScanOptions:
    name_prefix: str = GOVEE_H5075_NAME_PREFIX
    manufacturer_id: int = GOVEE_MANUFACTURER_ID
    validate_range: bool = True
    show_rejections: bool = False
    address: str | None = None


@dataclass
class ReadingCollector:
    """Feeds discovered advertisements through the pipeline.

    The collector belongs to the scan loop, not to the parser: it only keeps
    the latest valid reading per device name for the exit summary.
    """

    options: ScanOptions
    latest: dict[str, tuple[str, SensorReading]] = field(default_factory=dict)
    rejections: Counter[RejectionReason] = field(default_factory=Counter)

    def handle(
        self,
        address: str,
        local_name: str | None,
        manufacturer_data: Mapping[int, bytes] | None,
    ) -> list[DecodeResult]:
        if self.options.address and address.upper() != self.options.address.upper():
            return []

        results: list[DecodeResult] = []
        for advertisement in raw_advertisements(local_name, manufacturer_data):
            result = process_advertisement(
                advertisement.device_name,
                advertisement.payload,
                name_prefix=self.options.name_prefix,
                manufacturer_id=self.options.manufacturer_id,
                validate_range=self.options.validate_range,
            )
            results.append(result)
            if isinstance(result, SensorReading):
                self.latest[advertisement.device_name] = (address, result)
                print(f"{advertisement.device_name}  {address}  {format_reading(result)}")
            else:
                self._report_rejection(advertisement.device_name, address, result)
        return results

    def detection_callback(self, device: BLEDevice, advertisement_data: AdvertisementData) -> None:
        self.handle(
            device.address,
            advertisement_data.local_name or device.name,
            advertisement_data.manufacturer_data,
        )

    def _report_rejection(self, name: str, address: str, rejection: Rejection) -> None:
        self.rejections[rejection.reason] += 1
        level = _REJECTION_LOG_LEVELS.get(rejection.reason)
        if level is None:
            return
        if self.options.show_rejections:
            level = max(level, logging.INFO)
        log.log(level, "%s %s rejected: %s", name or "(no name)", address, describe_rejection(rejection))

    def summary_lines(self) -> list[str]:
        lines = [
            f"{name}  {address}  {format_reading(reading)}"
            for name, (address, reading) in sorted(self.latest.items())
        ]
        if not lines:
            lines.append("No Govee H5075 readings received")
        return lines


async def scan(collector: ReadingCollector, duration: float) -> int:
    log.info("Scanning %.0f seconds for %s* devices ...", duration, collector.options.name_prefix)
    try:
        async with BleakScanner(detection_callback=collector.detection_callback):
            await asyncio.sleep(duration)
    except BleakError as exc:
        log.exception("Bluetooth scan failed: %s", exc)
        return EXIT_SCAN_ERROR

    for line in collector.summary_lines():
        print(line)
    if collector.rejections:
        log.info(
            "Rejections: %s",
            ", ".join(f"{reason.value}={count}" for reason, count in collector.rejections.items()),
        )
    return EXIT_OK


def decode_offline(payloads: list[bytes], device_name: str, options: ScanOptions) -> int:
    """Decode hex payloads given on the command line, without Bluetooth."""
    exit_code = EXIT_OK
    for payload in payloads:
        result = process_advertisement(
            device_name,
            payload,
            name_prefix=options.name_prefix,
            manufacturer_id=options.manufacturer_id,
            validate_range=options.validate_range,
        )
        if isinstance(result, SensorReading):
            print(f"{payload.hex(' ').upper()}  ->  {format_reading(result)}")
        else:
            print(f"{payload.hex(' ').upper()}  ->  rejected: {describe_rejection(result)}")
            exit_code = EXIT_REJECTED
    return exit_code


def parse_hex_argument(value: str) -> bytes:
    cleaned = value.replace(" ", "").replace(":", "")
    try:
        data = binascii.unhexlify(cleaned)
    except binascii.Error as exc:
        raise argparse.ArgumentTypeError(f"Invalid hex string: {exc}") from exc
    if not data:
        raise argparse.ArgumentTypeError("Hex string must not be empty")
    return data


def parse_manufacturer_id(value: str) -> int:
    try:
        manufacturer_id = int(value, 0)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid manufacturer id: {value!r}") from exc
    if not 0 <= manufacturer_id <= 0xFFFF:
        raise argparse.ArgumentTypeError("Manufacturer id must fit in 16 bits")
    return manufacturer_id


def parse_name_prefix(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise argparse.ArgumentTypeError("Name prefix must not be empty")
    return stripped


def build_cli() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Govee H5075 BLE Scanner")
    parser.add_argument("--duration", type=float, default=DEFAULT_SCAN_SECONDS, help="Scan duration in seconds")
    parser.add_argument("--address", help="Only report this MAC / CoreBluetooth UUID")
    parser.add_argument("--prefix", type=parse_name_prefix, default=GOVEE_H5075_NAME_PREFIX, help="Device name prefix")
    parser.add_argument("--manufacturer-id", type=parse_manufacturer_id, default=GOVEE_MANUFACTURER_ID, help="Manufacturer id, e.g. 0xEC88")
    parser.add_argument("--no-validate", action="store_true", help="Report readings outside the sensor's range")
    parser.add_argument("--show-rejections", action="store_true", help="Log every rejected Govee advertisement")
    parser.add_argument("--hex", action="append", type=parse_hex_argument, help="Decode a manufacturer-data payload offline (repeatable)")
    parser.add_argument("--name", help="Device name used with --hex (default: the prefix)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_cli()
    args = parser.parse_args(argv)

    if args.debug:
        log.setLevel(logging.DEBUG)
        logging.getLogger("custom_components.govee_h5075").setLevel(logging.DEBUG)
        logging.getLogger("bleak").setLevel(logging.DEBUG)
    else:
        logging.getLogger("bleak").setLevel(logging.WARNING)

    options = ScanOptions(
        name_prefix=args.prefix,
        manufacturer_id=args.manufacturer_id,
        validate_range=not args.no_validate,
        show_rejections=args.show_rejections,
        address=args.address,
    )

    if args.hex:
        return decode_offline(args.hex, args.name or options.name_prefix, options)

    if args.duration <= 0:
        parser.error("--duration must be positive")

    return asyncio.run(scan(ReadingCollector(options), args.duration))


if __name__ == "__main__":
    raise SystemExit(main())
