"""Tests for the station alert lifecycle."""

from datetime import timedelta

import pytest
from sqlalchemy import update

from app.core.errors import NotFoundError, ValidationError
from app.core.timeutils import utcnow
from app.models.alert import StationAlert
from app.models.enums import AlertSeverity, SensorType
from app.schemas.alert import AlertQuery
from app.services import alerts as alert_service


async def _raise(session, station_id, severity=AlertSeverity.HIGH, sensor_type=SensorType.TEMPERATURE, value=35.0):
    return await alert_service.create_alert_if_threshold_exceeded(
        session,
        station_id=station_id,
        sensor_type=sensor_type,
        value=value,
        threshold_value=30.0,
        severity=severity,
    )


async def test_default_message(db_session, make_station_with_sensor):
    station, _ = await make_station_with_sensor()

    alert = await _raise(db_session, station.id)

    assert alert.message == "Sensor TEMPERATURE reading 35.0 exceeded threshold 30.0"
    assert alert.is_active is True


async def test_refresh_clears_acknowledgement(db_session, make_station_with_sensor, make_user):
    station, _ = await make_station_with_sensor()
    user = await make_user()
    alert = await _raise(db_session, station.id)
    await alert_service.acknowledge_alert(db_session, alert.id, user.id)

    refreshed = await _raise(db_session, station.id, value=41.0)

    assert refreshed.id == alert.id
    assert refreshed.value == 41.0
    assert refreshed.acknowledged is False
    assert refreshed.acknowledged_by is None


async def test_different_severity_opens_new_alert(db_session, make_station_with_sensor):
    station, _ = await make_station_with_sensor()

    first = await _raise(db_session, station.id, AlertSeverity.HIGH)
    second = await _raise(db_session, station.id, AlertSeverity.CRITICAL)

    assert first.id != second.id


async def test_acknowledge_resolved_alert_is_rejected(db_session, make_station_with_sensor, make_user):
    station, _ = await make_station_with_sensor()
    user = await make_user()
    alert = await _raise(db_session, station.id)
    await alert_service.resolve_alert(db_session, alert.id)

    with pytest.raises(ValidationError):
        await alert_service.acknowledge_alert(db_session, alert.id, user.id)


async def test_missing_alert(db_session):
    with pytest.raises(NotFoundError):
        await alert_service.get_alert(db_session, 1234)


async def test_query_paginates_and_filters(db_session, make_station_with_sensor):
    station, _ = await make_station_with_sensor()
    for sensor_type in (SensorType.TEMPERATURE, SensorType.HUMIDITY, SensorType.CO2):
        await _raise(db_session, station.id, sensor_type=sensor_type)
    resolved = await _raise(db_session, station.id, sensor_type=SensorType.NOISE)
    await alert_service.resolve_alert(db_session, resolved.id)

    page = await alert_service.get_active_alerts(db_session, AlertQuery(page=1, limit=2))

    assert page.total == 3
    assert page.total_pages == 2
    assert len(page.items) == 2

    history = await alert_service.query_alerts(db_session, AlertQuery(is_active=False))
    assert [item.id for item in history.items] == [resolved.id]


async def test_empty_page_has_zero_pages(db_session):
    page = await alert_service.query_alerts(db_session, AlertQuery())

    assert (page.total, page.total_pages, page.items) == (0, 0, [])


async def test_auto_resolve_only_touches_old_alerts(db_session, make_station_with_sensor):
    station, _ = await make_station_with_sensor()
    old = await _raise(db_session, station.id, sensor_type=SensorType.TEMPERATURE)
    fresh = await _raise(db_session, station.id, sensor_type=SensorType.HUMIDITY)
    await db_session.execute(
        update(StationAlert).where(StationAlert.id == old.id).values(created_at=utcnow() - timedelta(minutes=10))
    )

    count = await alert_service.auto_resolve_alerts(db_session, older_than_minutes=5)

    assert count == 1
    await db_session.refresh(old)
    await db_session.refresh(fresh)
    assert old.is_active is False
    assert old.resolved_at is not None
    assert fresh.is_active is True


async def test_clear_history_resolved_only(db_session, make_station_with_sensor):
    station, _ = await make_station_with_sensor()
    active = await _raise(db_session, station.id, sensor_type=SensorType.TEMPERATURE)
    done = await _raise(db_session, station.id, sensor_type=SensorType.HUMIDITY)
    await alert_service.resolve_alert(db_session, done.id)

    deleted = await alert_service.clear_history(db_session, resolved=True)

    assert deleted == 1
    assert await alert_service.count_active(db_session, station.id) == 1
    assert (await alert_service.get_alert(db_session, active.id)).is_active is True
