"""Metric/imperial conversion for sensor values.

Readings are always stored in metric units. Only temperature and pressure
differ between the two systems; every other sensor type has a single unit.
"""
from __future__ import annotations

from dataclasses import dataclass

from app.models.enums import MeasurementUnit, SensorType

HPA_TO_INHG = 0.02953

_UNITS: dict[SensorType, dict[str, str]] = {
    SensorType.TEMPERATURE: {"metric": "°C", "imperial": "°F"},
    SensorType.PRESSURE: {"metric": "hPa", "imperial": "inHg"},
    SensorType.PM2_5: {"metric": "µg/m³", "imperial": "µg/m³"},
    SensorType.PM10: {"metric": "µg/m³", "imperial": "µg/m³"},
    SensorType.NOISE: {"metric": "dB", "imperial": "dB"},
    SensorType.HUMIDITY: {"metric": "%", "imperial": "%"},
    SensorType.CO2: {"metric": "ppm", "imperial": "ppm"},
    SensorType.AIR_QUALITY: {"metric": "AQI", "imperial": "AQI"},
    SensorType.WATER_QUALITY: {"metric": "WQI", "imperial": "WQI"},
}


@dataclass(slots=True)
class ConvertedValue:
    value: float
    unit: str


def _system(value: str | MeasurementUnit) -> str:
    return MeasurementUnit(value).value


def get_storage_unit_system() -> str:
    return MeasurementUnit.METRIC.value


def get_default_unit(sensor_type: SensorType, system: str | MeasurementUnit) -> str:
    units = _UNITS.get(SensorType(sensor_type))
    if not units:
        return ""
    return units[_system(system)]


def get_storage_unit(sensor_type: SensorType) -> str:
    return get_default_unit(sensor_type, MeasurementUnit.METRIC)


def convert_value(
    value: float,
    sensor_type: SensorType,
    from_system: str | MeasurementUnit,
    to_system: str | MeasurementUnit,
) -> ConvertedValue:
    source = _system(from_system)
    target = _system(to_system)
    sensor_type = SensorType(sensor_type)
    unit = get_default_unit(sensor_type, target)
    if source == target:
        return ConvertedValue(value=value, unit=unit)

    if sensor_type == SensorType.TEMPERATURE:
        if target == MeasurementUnit.IMPERIAL.value:
            converted = value * 9 / 5 + 32
        else:
            converted = (value - 32) * 5 / 9
    elif sensor_type == SensorType.PRESSURE:
        if target == MeasurementUnit.IMPERIAL.value:
            converted = value * HPA_TO_INHG
        else:
            converted = value / HPA_TO_INHG
    else:
        converted = value
    return ConvertedValue(value=converted, unit=unit)


def convert_value_simple(value: float, sensor_type: SensorType, to_system: str | MeasurementUnit) -> float:
    """Convert a stored (metric) value into the requested system."""

    return convert_value(value, sensor_type, get_storage_unit_system(), to_system).value
