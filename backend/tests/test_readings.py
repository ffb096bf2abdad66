"""Tests for reading ingestion, aggregation, data quality and raw payloads."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from app.core.errors import NotFoundError, ValidationError
from app.core.timeutils import utcnow
from app.models.alert import StationAlert
from app.models.enums import AlertSeverity, SensorType
from app.models.reading import RawSensorData
from app.schemas.alert import ThresholdCreate, ThresholdViolation
from app.schemas.reading import ReadingCreate
from app.services import readings as reading_service
from app.services import thresholds as threshold_service


async def _temperature_threshold(session, severity=AlertSeverity.HIGH, max_value=30.0):
    await threshold_service.create_threshold(
        session,
        ThresholdCreate(sensor_type=SensorType.TEMPERATURE, severity=severity, min_value=0, max_value=max_value),
    )


class TestQuality:
    def test_no_violations_keeps_reported_quality(self):
        assert reading_service.compute_quality(0.8, []) == 0.8
        assert reading_service.compute_quality(None, []) == 1.0

    def test_worst_violation_sets_quality(self):
        violations = [
            ThresholdViolation(threshold_id=1, severity=s, min_value=None, max_value=1, description=None, actual_value=2)
            for s in (AlertSeverity.LOW, AlertSeverity.HIGH)
        ]

        assert reading_service.compute_quality(1.0, violations) == pytest.approx(0.4)


def test_violation_message_mentions_exceeded_bound():
    violation = ThresholdViolation(
        threshold_id=1,
        severity=AlertSeverity.HIGH,
        min_value=0,
        max_value=30,
        description="Heat stress",
        actual_value=35,
    )

    bound, message = reading_service.violation_message(SensorType.TEMPERATURE, violation)

    assert bound == 30
    assert message == "Sensor temperature reading 35 is above maximum threshold 30. Heat stress"


async def test_create_reading_for_unknown_sensor(db_session):
    with pytest.raises(NotFoundError):
        await reading_service.create_reading(db_session, ReadingCreate(serial_number="nope", value=1, unit="°C"))


async def test_create_reading_raises_alert_on_violation(db_session, make_station_with_sensor):
    station, sensor = await make_station_with_sensor()
    await _temperature_threshold(db_session)

    result = await reading_service.create_reading(
        db_session, ReadingCreate(serial_number=sensor.serial_number, value=35, unit="°C")
    )

    assert result.reading.quality == pytest.approx(0.4)
    assert len(result.violations) == 1
    alerts = (await db_session.execute(select(StationAlert))).scalars().all()
    assert len(alerts) == 1
    assert alerts[0].station_id == station.id
    assert alerts[0].threshold_value == 30


async def test_repeated_violation_refreshes_active_alert(db_session, make_station_with_sensor):
    _, sensor = await make_station_with_sensor()
    await _temperature_threshold(db_session)

    for value in (35, 38):
        await reading_service.create_reading(
            db_session, ReadingCreate(serial_number=sensor.serial_number, value=value, unit="°C")
        )

    alerts = (await db_session.execute(select(StationAlert))).scalars().all()
    assert len(alerts) == 1
    assert alerts[0].value == 38


async def test_readings_require_ordered_range(db_session):
    now = utcnow()
    with pytest.raises(ValidationError):
        await reading_service.get_readings(db_session, now, now - timedelta(hours=1))


async def test_latest_requires_sensor_or_station(db_session):
    with pytest.raises(ValidationError):
        await reading_service.get_latest_readings(db_session)


async def test_all_sensors_placeholder_is_ignored(db_session, make_station_with_sensor):
    station, sensor = await make_station_with_sensor()
    await reading_service.create_reading(db_session, ReadingCreate(serial_number=sensor.serial_number, value=20, unit="°C"))

    readings = await reading_service.get_latest_readings(db_session, "All sensors", station_id=station.id)

    assert [r.sensor_id for r in readings] == [sensor.id]


async def test_aggregation_buckets_by_interval(db_session, make_station_with_sensor):
    _, sensor = await make_station_with_sensor()
    base = utcnow().replace(minute=0, second=0, microsecond=0) - timedelta(hours=3)
    for offset, value in ((0, 10), (10, 20), (70, 40)):
        await reading_service.create_reading(
            db_session,
            ReadingCreate(
                serial_number=sensor.serial_number, value=value, unit="°C", timestamp=base + timedelta(minutes=offset)
            ),
        )

    buckets = await reading_service.get_aggregated_data(
        db_session, base - timedelta(minutes=1), base + timedelta(hours=2), interval_minutes=60
    )

    assert [(b.sample_count, b.average, b.min, b.max) for b in buckets] == [(2, 15, 10, 20), (1, 40, 40, 40)]
    assert buckets[0].time_bucket == base


async def test_aggregation_rejects_non_positive_interval(db_session):
    now = utcnow()
    with pytest.raises(ValidationError):
        await reading_service.get_aggregated_data(db_session, now - timedelta(hours=1), now, interval_minutes=0)


async def test_quality_report_without_data(db_session, make_station_with_sensor):
    _, sensor = await make_station_with_sensor()

    report = await reading_service.validate_data_quality(db_session, sensor.serial_number)

    assert report.is_valid is False
    assert report.score == 0
    assert report.issues == ["No data available for the specified period"]


async def test_quality_report_flags_gaps(db_session, make_station_with_sensor):
    _, sensor = await make_station_with_sensor()
    now = utcnow()
    for hours_ago in (10, 5, 0):
        await reading_service.create_reading(
            db_session,
            ReadingCreate(
                serial_number=sensor.serial_number, value=20, unit="°C", timestamp=now - timedelta(hours=hours_ago)
            ),
        )

    report = await reading_service.validate_data_quality(db_session, sensor.serial_number)

    assert report.readings_count == 3
    assert report.score == pytest.approx(0.8)
    assert report.is_valid is True
    assert "Found 2 data gaps in the time series" in report.issues


async def test_quality_report_flags_stale_data(db_session, make_station_with_sensor):
    _, sensor = await make_station_with_sensor()
    now = utcnow()
    for minutes_ago in (180, 150):
        await reading_service.create_reading(
            db_session,
            ReadingCreate(
                serial_number=sensor.serial_number, value=20, unit="°C", timestamp=now - timedelta(minutes=minutes_ago)
            ),
        )

    report = await reading_service.validate_data_quality(db_session, sensor.serial_number)

    assert report.issues == ["Data appears to be stale"]
    assert report.score == pytest.approx(0.7)


async def test_quality_report_counts_outliers(db_session, make_station_with_sensor):
    _, sensor = await make_station_with_sensor()
    now = utcnow()
    values = [20.0] * 19 + [100.0]
    for index, value in enumerate(values):
        await reading_service.create_reading(
            db_session,
            ReadingCreate(
                serial_number=sensor.serial_number,
                value=value,
                unit="°C",
                timestamp=now - timedelta(minutes=10 * (len(values) - 1 - index)),
            ),
        )

    report = await reading_service.validate_data_quality(db_session, sensor.serial_number)

    assert report.issues == ["Detected 1 potential anomalies"]
    assert report.score == pytest.approx(0.95)
    assert report.is_valid is True


async def test_raw_payloads_are_processed_into_readings(db_session, make_station_with_sensor):
    _, sensor = await make_station_with_sensor()
    await _temperature_threshold(db_session)
    await reading_service.store_raw_data(db_session, sensor.serial_number, {"value": 42})
    await reading_service.store_raw_data(db_session, sensor.serial_number, {"note": "no value"})

    processed, failed = await reading_service.process_raw_sensor_data(db_session)

    assert (processed, failed) == (1, 1)
    raws = (await db_session.execute(select(RawSensorData))).scalars().all()
    assert all(raw.processed for raw in raws)
    alerts = (await db_session.execute(select(StationAlert))).scalars().all()
    assert len(alerts) == 1


async def test_raw_data_for_unknown_sensor(db_session):
    with pytest.raises(NotFoundError):
        await reading_service.store_raw_data(db_session, "ghost", {"value": 1})
