"""Tests for stations, sensors, health scoring and station statistics."""

import pytest
from sqlalchemy import select

from app.core.errors import ConflictError, NotFoundError
from app.models.enums import SensorType
from app.models.reading import AggregatedData
from app.schemas.reading import ReadingCreate
from app.schemas.station import SensorCreate, SensorStatusCreate, StationCreate
from app.services import readings as reading_service
from app.services import sensors as sensor_service
from app.services import station_stats
from app.services import stations as station_service


def test_haversine_distance_between_kyiv_and_lviv():
    distance = station_service.haversine_distance(50.4501, 30.5234, 49.8397, 24.0297)

    assert distance == pytest.approx(468_000, rel=0.01)


@pytest.mark.parametrize(
    ("total", "online", "alerts", "expected"),
    [
        (0, 0, 0, 100),
        (4, 4, 0, 100),
        (4, 2, 0, 80),
        (4, 0, 5, 30),
        (3, 2, 1, 77),
    ],
)
def test_health_score(total, online, alerts, expected):
    assert station_stats.compute_health_score(total, online, alerts) == expected


@pytest.mark.parametrize(
    ("score", "label"),
    [(95, "EXCELLENT"), (90, "EXCELLENT"), (80, "GOOD"), (60, "FAIR"), (40, "POOR"), (39, "CRITICAL")],
)
def test_health_status(score, label):
    assert station_stats.health_status(score) == label


async def test_nearby_is_sorted_and_limited_to_radius(db_session):
    near = await station_service.create_station(db_session, StationCreate(name="Near", latitude=50.0, longitude=30.0))
    nearer = await station_service.create_station(
        db_session, StationCreate(name="Nearer", latitude=50.001, longitude=30.0)
    )
    await station_service.create_station(db_session, StationCreate(name="Far", latitude=51.0, longitude=30.0))

    matches = await station_service.find_in_radius(db_session, 50.0, 30.0, 1_000)

    assert [station.id for station, _ in matches] == [near.id, nearer.id]
    assert matches[1][1] == pytest.approx(111.2, abs=1)


async def test_removed_station_is_hidden_from_active_list(db_session):
    station = await station_service.create_station(db_session, StationCreate(name="Old", latitude=1, longitude=1))

    await station_service.remove_station(db_session, station.id)

    assert await station_service.list_active_stations(db_session) == []
    assert (await station_service.get_station(db_session, station.id)).is_active is False


async def test_duplicate_serial_number(db_session, make_station_with_sensor):
    station, sensor = await make_station_with_sensor()

    with pytest.raises(ConflictError):
        await sensor_service.create_sensor(
            db_session,
            SensorCreate(station_id=station.id, type=SensorType.CO2, name="Dup", serial_number=sensor.serial_number),
        )


async def test_sensor_for_missing_station(db_session):
    with pytest.raises(NotFoundError):
        await sensor_service.create_sensor(
            db_session, SensorCreate(station_id=404, type=SensorType.CO2, name="Orphan", serial_number="X")
        )


async def test_station_health_counts_offline_sensors(db_session, make_station_with_sensor):
    station, sensor = await make_station_with_sensor()
    await sensor_service.record_status(db_session, sensor.id, SensorStatusCreate(is_online=False))

    health = await station_stats.get_station_health(db_session, station.id)

    assert health["total_sensors"] == 1
    assert health["online_sensors"] == 0
    assert health["health_score"] == 60
    assert health["status"] == "FAIR"


async def test_station_stats_convert_to_imperial(db_session, make_station_with_sensor):
    station, sensor = await make_station_with_sensor()
    await reading_service.create_reading(
        db_session, ReadingCreate(serial_number=sensor.serial_number, value=100, unit="°C")
    )

    stats = await station_stats.get_station_stats(db_session, station.id, "imperial")

    last = stats["sensors"][0]["last_reading"]
    assert last["value"] == 212.0
    assert last["unit"] == "°F"
    assert stats["summary"]["total_sensors"] == 1
    assert stats["unit_system"] == "imperial"


async def test_refresh_aggregates_writes_daily_rows(db_session, make_station_with_sensor):
    _, sensor = await make_station_with_sensor()
    for value in (10, 20, 30):
        await reading_service.create_reading(
            db_session, ReadingCreate(serial_number=sensor.serial_number, value=value, unit="°C")
        )

    written = await station_stats.refresh_station_aggregates(db_session)

    assert written == 1


async def test_refresh_aggregates_replaces_previous_snapshot(db_session, make_station_with_sensor):
    station, sensor = await make_station_with_sensor()
    await reading_service.create_reading(db_session, ReadingCreate(serial_number=sensor.serial_number, value=10, unit="°C"))
    await station_stats.refresh_station_aggregates(db_session)
    await reading_service.create_reading(db_session, ReadingCreate(serial_number=sensor.serial_number, value=30, unit="°C"))

    await station_stats.refresh_station_aggregates(db_session)

    rows = (await db_session.execute(select(AggregatedData))).scalars().all()
    assert len(rows) == 1
    assert rows[0].average == pytest.approx(20)
    stats = await station_stats.get_station_stats(db_session, station.id, "metric")
    assert [item["average"] for item in stats["aggregated_data"]] == [20.0]
