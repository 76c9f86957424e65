"""Sensor platform for the Govee H5075 integration.

Creates three entities per sensor, all fed by one
:class:`~coordinator.GoveeH5075PassiveBluetoothDataProcessor`:

+--------------+---------+-----------------------------+
| Entity       | Unit    | Source field                |
+==============+=========+=============================+
| Temperature  | °C      | ``temperature_celsius``     |
+--------------+---------+-----------------------------+
| Humidity     | %       | ``humidity_percent``        |
+--------------+---------+-----------------------------+
| Battery      | %       | ``battery_percent``         |
+--------------+---------+-----------------------------+

Entities are created with the first valid reading and keep the last valid
value afterwards; rejected advertisements never reach them.  They go
unavailable when Home Assistant stops seeing the sensor's advertisements.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from functools import partial

from homeassistant.components.bluetooth.passive_update_processor import (
    PassiveBluetoothDataUpdate,
    PassiveBluetoothEntityKey,
    PassiveBluetoothProcessorEntity,
)
from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorEntityDescription,
    SensorStateClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_NAME, PERCENTAGE, EntityCategory, UnitOfTemperature
from homeassistant.core import HomeAssistant
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import DEFAULT_NAME, DOMAIN, MANUFACTURER, MODEL
from .coordinator import (
    GoveeH5075PassiveBluetoothDataProcessor,
    GoveeH5075PassiveBluetoothProcessorCoordinator,
)
from .govee.device import SensorReading


@dataclass(frozen=True, kw_only=True)
class GoveeH5075SensorDescription(SensorEntityDescription):
    """Sensor description with an accessor into :class:`SensorReading`."""

    value_fn: Callable[[SensorReading], float | int]


SENSOR_DESCRIPTIONS: tuple[GoveeH5075SensorDescription, ...] = (
    GoveeH5075SensorDescription(
        key="temperature",
        name="Temperature",
        device_class=SensorDeviceClass.TEMPERATURE,
        state_class=SensorStateClass.MEASUREMENT,
        native_unit_of_measurement=UnitOfTemperature.CELSIUS,
        suggested_display_precision=1,
        value_fn=lambda reading: reading.temperature_celsius,
    ),
    GoveeH5075SensorDescription(
        key="humidity",
        name="Humidity",
        device_class=SensorDeviceClass.HUMIDITY,
        state_class=SensorStateClass.MEASUREMENT,
        native_unit_of_measurement=PERCENTAGE,
        suggested_display_precision=1,
        value_fn=lambda reading: reading.humidity_percent,
    ),
    GoveeH5075SensorDescription(
        key="battery",
        name="Battery",
        device_class=SensorDeviceClass.BATTERY,
        state_class=SensorStateClass.MEASUREMENT,
        native_unit_of_measurement=PERCENTAGE,
        entity_category=EntityCategory.DIAGNOSTIC,
        value_fn=lambda reading: reading.battery_percent,
    ),
)


def _entity_key(description: GoveeH5075SensorDescription) -> PassiveBluetoothEntityKey:
    return PassiveBluetoothEntityKey(description.key, None)


def reading_to_bluetooth_data_update(
    device_name: str,
    reading: SensorReading | None,
) -> PassiveBluetoothDataUpdate[float | int | None]:
    """Convert a decoded reading to a bluetooth data update.

    ``None`` (an advertisement without a valid reading) produces an update
    with no entity data, so the entities keep their last values.
    """
    devices = {
        None: DeviceInfo(name=device_name, manufacturer=MANUFACTURER, model=MODEL)
    }
    if reading is None:
        return PassiveBluetoothDataUpdate(devices=devices)
    return PassiveBluetoothDataUpdate(
        devices=devices,
        entity_descriptions={
            _entity_key(description): description for description in SENSOR_DESCRIPTIONS
        },
        entity_data={
            _entity_key(description): description.value_fn(reading)
            for description in SENSOR_DESCRIPTIONS
        },
        entity_names={
            _entity_key(description): description.name
            for description in SENSOR_DESCRIPTIONS
        },
    )


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the reading sensors for a config entry.

    Args:
        hass:               Home Assistant instance.
        entry:              Config entry for this sensor.
        async_add_entities: Callback to register the new entities.
    """
    coordinator: GoveeH5075PassiveBluetoothProcessorCoordinator = (
        hass.data[DOMAIN][entry.entry_id]
    )
    name: str = entry.data.get(CONF_NAME, DEFAULT_NAME)
    processor = GoveeH5075PassiveBluetoothDataProcessor(
        partial(reading_to_bluetooth_data_update, name)
    )
    entry.async_on_unload(
        processor.async_add_entities_listener(
            GoveeH5075BluetoothSensorEntity, async_add_entities
        )
    )
    entry.async_on_unload(
        coordinator.async_register_processor(processor, SensorEntityDescription)
    )


class GoveeH5075BluetoothSensorEntity(
    PassiveBluetoothProcessorEntity[GoveeH5075PassiveBluetoothDataProcessor],
    SensorEntity,
):
    """One measured quantity of a Govee H5075."""

    @property
    def native_value(self) -> float | int | None:
        return self.processor.entity_data.get(self.entity_key)
