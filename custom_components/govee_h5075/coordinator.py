"""Passive BLE coordinator for one Govee H5075 sensor.

Builds on Home Assistant's passive update processor: the coordinator owns the
Bluetooth subscription and availability tracking, its update method runs every
advertisement through the pure parsing pipeline in :mod:`.govee.device`, and
the sensor platform registers a :class:`GoveeH5075PassiveBluetoothDataProcessor`
to turn readings into entity updates.  The device is never connected to; the
H5075 publishes its readings in advertisements only.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime

from homeassistant.components.bluetooth import (
    BluetoothChange,
    BluetoothScanningMode,
    BluetoothServiceInfoBleak,
)
from homeassistant.components.bluetooth.passive_update_processor import (
    PassiveBluetoothDataProcessor,
    PassiveBluetoothProcessorCoordinator,
)
from homeassistant.core import HomeAssistant, callback
from homeassistant.util import dt as dt_util

from .const import DEFAULT_NAME_PREFIX, DEFAULT_VALIDATE_RANGE
from .govee.device import (
    Rejection,
    RejectionReason,
    SensorReading,
    describe_rejection,
    process_advertisement,
)
from .govee.scanner import raw_advertisements

_LOGGER = logging.getLogger(__name__)

# Log level per rejection category; name mismatches are not logged at all.
_REJECTION_LOG_LEVELS: dict[RejectionReason, int] = {
    RejectionReason.OTHER_VENDOR: logging.DEBUG,
    RejectionReason.TOO_SHORT: logging.INFO,
    RejectionReason.MALFORMED_PAYLOAD: logging.INFO,
    RejectionReason.OUT_OF_RANGE: logging.WARNING,
}


class GoveeH5075PassiveBluetoothProcessorCoordinator(
    PassiveBluetoothProcessorCoordinator[SensorReading | None]
):
    """Tracks the advertisements of one H5075 and holds its latest reading.

    The update method returns the valid reading carried by an advertisement,
    or ``None`` when every manufacturer-data field was rejected.  Rejections
    are counted for diagnostics and never reach the processors as values.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        address: str,
        name_prefix: str = DEFAULT_NAME_PREFIX,
        validate_range: bool = DEFAULT_VALIDATE_RANGE,
    ) -> None:
        super().__init__(
            hass,
            _LOGGER,
            address=address,
            mode=BluetoothScanningMode.PASSIVE,
            update_method=self._process_service_info,
            connectable=False,
        )
        self.name_prefix = name_prefix
        self.validate_range = validate_range

        self.reading: SensorReading | None = None
        self.last_rejection: Rejection | None = None
        self.rejection_counts: Counter[RejectionReason] = Counter()
        self.last_seen: datetime | None = None
        self.rssi: int | None = None

    @callback
    def async_set_options(self, name_prefix: str, validate_range: bool) -> None:
        """Apply new parser options to subsequent advertisements."""
        _LOGGER.debug(
            "[%s] Options updated: prefix=%s validate_range=%s",
            self.address, name_prefix, validate_range,
        )
        self.name_prefix = name_prefix
        self.validate_range = validate_range

    @callback
    def _async_handle_bluetooth_event(
        self,
        service_info: BluetoothServiceInfoBleak,
        change: BluetoothChange,
    ) -> None:
        self.last_seen = dt_util.utcnow()
        self.rssi = service_info.rssi
        super()._async_handle_bluetooth_event(service_info, change)

    def _process_service_info(
        self, service_info: BluetoothServiceInfoBleak
    ) -> SensorReading | None:
        """Decode every manufacturer-data field of one advertisement."""
        reading: SensorReading | None = None
        for advertisement in raw_advertisements(
            service_info.name, service_info.manufacturer_data
        ):
            result = process_advertisement(
                advertisement.device_name,
                advertisement.payload,
                name_prefix=self.name_prefix,
                validate_range=self.validate_range,
            )
            if isinstance(result, SensorReading):
                reading = result
            else:
                self._record_rejection(result)

        if reading is not None:
            self.reading = reading
            _LOGGER.debug("[%s] New reading: %s", self.address, reading)
        return reading

    def _record_rejection(self, rejection: Rejection) -> None:
        self.rejection_counts[rejection.reason] += 1
        self.last_rejection = rejection
        level = _REJECTION_LOG_LEVELS.get(rejection.reason)
        if level is not None:
            _LOGGER.log(
                level, "[%s] Advertisement rejected: %s",
                self.address, describe_rejection(rejection),
            )


class GoveeH5075PassiveBluetoothDataProcessor(
    PassiveBluetoothDataProcessor[float | int | None, SensorReading | None]
):
    """Processor turning H5075 readings into sensor entity data."""
