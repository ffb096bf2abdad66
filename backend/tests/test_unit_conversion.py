"""Tests for metric/imperial conversion of sensor values."""

import pytest

from app.models.enums import MeasurementUnit, SensorType
from app.services.unit_conversion import (
    convert_value,
    convert_value_simple,
    get_default_unit,
    get_storage_unit,
)


class TestConvertValue:
    def test_celsius_to_fahrenheit(self):
        result = convert_value(25, SensorType.TEMPERATURE, "metric", "imperial")

        assert result.value == pytest.approx(77.0)
        assert result.unit == "°F"

    def test_fahrenheit_to_celsius(self):
        result = convert_value(212, SensorType.TEMPERATURE, MeasurementUnit.IMPERIAL, MeasurementUnit.METRIC)

        assert result.value == pytest.approx(100.0)
        assert result.unit == "°C"

    def test_pressure_to_inches_of_mercury(self):
        result = convert_value(1013.25, SensorType.PRESSURE, "metric", "imperial")

        assert result.value == pytest.approx(29.92, abs=0.01)
        assert result.unit == "inHg"

    def test_same_system_is_identity(self):
        result = convert_value(18.5, SensorType.TEMPERATURE, "metric", "metric")

        assert result.value == 18.5
        assert result.unit == "°C"

    def test_unitless_types_pass_through(self):
        result = convert_value(420, SensorType.CO2, "metric", "imperial")

        assert result.value == 420
        assert result.unit == "ppm"

    def test_unknown_system_is_rejected(self):
        with pytest.raises(ValueError):
            convert_value(1, SensorType.TEMPERATURE, "metric", "nautical")


def test_storage_unit_is_metric():
    assert get_storage_unit(SensorType.TEMPERATURE) == "°C"
    assert get_storage_unit(SensorType.PRESSURE) == "hPa"


def test_default_unit_for_imperial_noise():
    assert get_default_unit(SensorType.NOISE, "imperial") == "dB"


def test_convert_simple_from_storage():
    assert convert_value_simple(0, SensorType.TEMPERATURE, "imperial") == pytest.approx(32.0)
