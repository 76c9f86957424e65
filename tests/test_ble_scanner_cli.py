"""Tests for the bleak command-line scanner."""

from __future__ import annotations

import argparse
import logging
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from bleak.exc import BleakError

import govee_h5075_ble_scanner as cli
from custom_components.govee_h5075.govee.device import RejectionReason, SensorReading


class FakeScanner:
    """Async context manager standing in for ``BleakScanner``."""

    advertisements: list = []
    error: Exception | None = None

    def __init__(self, detection_callback):
        self._callback = detection_callback

    async def __aenter__(self):
        if self.error is not None:
            raise self.error
        for device, adv in self.advertisements:
            self._callback(device, adv)
        return self

    async def __aexit__(self, *exc_info):
        return False


@pytest.fixture
def collector() -> cli.ReadingCollector:
    return cli.ReadingCollector(cli.ScanOptions())


def test_collector_reports_reading(collector, manufacturer_data, capsys):
    results = collector.handle("A4:C1:38:1A:2B:3C", "GVH5075_1A2B", manufacturer_data)

    assert results[0] == SensorReading(21.6, 15.4, 100)
    assert results[1].reason is RejectionReason.OTHER_VENDOR
    assert collector.latest["GVH5075_1A2B"] == ("A4:C1:38:1A:2B:3C", results[0])
    assert collector.rejections[RejectionReason.OTHER_VENDOR] == 1
    assert "T=21.6°C  RH=15.4%  Batt=100%" in capsys.readouterr().out


def test_collector_without_manufacturer_data_does_nothing(collector):
    assert collector.handle("A4:C1:38:1A:2B:3C", "GVH5075_1A2B", {}) == []
    assert collector.latest == {}


def test_collector_address_filter(manufacturer_data):
    collector = cli.ReadingCollector(cli.ScanOptions(address="a4:c1:38:1a:2b:3c"))
    assert collector.handle("11:22:33:44:55:66", "GVH5075_1A2B", manufacturer_data) == []
    assert len(collector.handle("A4:C1:38:1A:2B:3C", "GVH5075_1A2B", manufacturer_data)) == 2


def test_collector_logs_out_of_range_as_warning(collector, caplog):
    with caplog.at_level(logging.DEBUG, logger="govee_h5075"):
        collector.handle("A4:C1:38:1A:2B:3C", "GVH5075_1A2B", {0xEC88: bytes.fromhex("00FFFFFF6400")})

    assert collector.latest == {}
    assert [r.levelno for r in caplog.records] == [logging.WARNING]
    assert "out of range" in caplog.records[0].getMessage()


def test_collector_keeps_name_mismatches_silent(collector, caplog, manufacturer_data):
    with caplog.at_level(logging.DEBUG, logger="govee_h5075"):
        collector.handle("11:22:33:44:55:66", "Phone", manufacturer_data)

    assert caplog.records == []
    assert collector.rejections[RejectionReason.NO_DEVICE_NAME_MATCH] == 2


def test_detection_callback_prefers_advertised_local_name(collector, manufacturer_data):
    device = SimpleNamespace(address="A4:C1:38:1A:2B:3C", name="cached")
    adv = SimpleNamespace(local_name="GVH5075_1A2B", manufacturer_data=manufacturer_data)
    collector.detection_callback(device, adv)
    assert "GVH5075_1A2B" in collector.latest


def test_summary_lines(collector, manufacturer_data):
    assert collector.summary_lines() == ["No Govee H5075 readings received"]
    collector.handle("A4:C1:38:1A:2B:3C", "GVH5075_1A2B", manufacturer_data)
    assert collector.summary_lines() == [
        "GVH5075_1A2B  A4:C1:38:1A:2B:3C  T=21.6°C  RH=15.4%  Batt=100%"
    ]


async def test_scan_feeds_detections_through_pipeline(collector, manufacturer_data, capsys):
    device = SimpleNamespace(address="A4:C1:38:1A:2B:3C", name=None)
    adv = SimpleNamespace(local_name="GVH5075_1A2B", manufacturer_data=manufacturer_data)

    with patch.object(FakeScanner, "advertisements", [(device, adv)]), \
            patch.object(cli, "BleakScanner", FakeScanner):
        exit_code = await cli.scan(collector, 0)

    assert exit_code == cli.EXIT_OK
    assert collector.latest["GVH5075_1A2B"][1] == SensorReading(21.6, 15.4, 100)
    assert capsys.readouterr().out.count("T=21.6°C") == 2


async def test_scan_reports_bluetooth_errors(collector):
    with patch.object(FakeScanner, "error", BleakError("adapter off")), \
            patch.object(cli, "BleakScanner", FakeScanner):
        assert await cli.scan(collector, 0) == cli.EXIT_SCAN_ERROR


def test_main_decodes_hex_offline(capsys):
    assert cli.main(["--hex", "88 EC 00 03 4C 5A 64 00"]) == cli.EXIT_OK
    assert "T=21.6°C  RH=15.4%  Batt=100%" in capsys.readouterr().out


def test_main_reports_rejected_hex(capsys):
    assert cli.main(["--hex", "88EC"]) == cli.EXIT_REJECTED
    assert "malformed payload" in capsys.readouterr().out


def test_main_no_validate_passes_out_of_range(capsys):
    assert cli.main(["--no-validate", "--hex", "88EC00FFFFFF6400"]) == cli.EXIT_OK
    assert "T=1677.7°C" in capsys.readouterr().out


def test_main_runs_scan():
    with patch.object(FakeScanner, "advertisements", []), \
            patch.object(cli, "BleakScanner", FakeScanner):
        assert cli.main(["--duration", "0.01"]) == cli.EXIT_OK


def test_main_rejects_non_positive_duration():
    with pytest.raises(SystemExit):
        cli.main(["--duration", "0"])


def test_parse_hex_argument():
    assert cli.parse_hex_argument("88:ec 00") == b"\x88\xec\x00"
    with pytest.raises(argparse.ArgumentTypeError):
        cli.parse_hex_argument("zz")
    with pytest.raises(argparse.ArgumentTypeError):
        cli.parse_hex_argument("")


def test_parse_manufacturer_id():
    assert cli.parse_manufacturer_id("0xEC88") == 0xEC88
    assert cli.parse_manufacturer_id("76") == 76
    with pytest.raises(argparse.ArgumentTypeError):
        cli.parse_manufacturer_id("0x10000")
    with pytest.raises(argparse.ArgumentTypeError):
        cli.parse_manufacturer_id("govee")


def test_parse_name_prefix():
    assert cli.parse_name_prefix(" GVH5075 ") == "GVH5075"
    with pytest.raises(argparse.ArgumentTypeError):
        cli.parse_name_prefix("  ")
