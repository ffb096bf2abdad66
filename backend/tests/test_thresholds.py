"""Tests for threshold management and reading validation."""

import pytest

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.enums import AlertSeverity, SensorType
from app.schemas.alert import ThresholdCreate, ThresholdUpdate
from app.services import thresholds as threshold_service


def _threshold(severity=AlertSeverity.HIGH, sensor_type=SensorType.TEMPERATURE, **bounds):
    bounds.setdefault("min_value", 0)
    bounds.setdefault("max_value", 40)
    return ThresholdCreate(sensor_type=sensor_type, severity=severity, **bounds)


class TestValidateBounds:
    def test_requires_at_least_one_bound(self):
        with pytest.raises(ValidationError, match="At least one"):
            threshold_service.validate_bounds(None, None)

    def test_rejects_negative_values(self):
        with pytest.raises(ValidationError, match="negative"):
            threshold_service.validate_bounds(-1, 10)

    def test_min_must_be_below_max(self):
        with pytest.raises(ValidationError, match="less than"):
            threshold_service.validate_bounds(10, 10)

    def test_single_bound_is_enough(self):
        threshold_service.validate_bounds(None, 35)


async def test_duplicate_pair_conflicts(db_session):
    await threshold_service.create_threshold(db_session, _threshold())

    with pytest.raises(ConflictError):
        await threshold_service.create_threshold(db_session, _threshold(min_value=5, max_value=30))


async def test_list_orders_by_type_then_severity(db_session):
    await threshold_service.create_threshold(db_session, _threshold(AlertSeverity.CRITICAL, max_value=50))
    await threshold_service.create_threshold(
        db_session, _threshold(AlertSeverity.LOW, sensor_type=SensorType.HUMIDITY, max_value=80)
    )
    await threshold_service.create_threshold(db_session, _threshold(AlertSeverity.LOW, max_value=30))

    listed = await threshold_service.list_thresholds(db_session)

    assert [(t.sensor_type, t.severity) for t in listed] == [
        (SensorType.TEMPERATURE, AlertSeverity.LOW),
        (SensorType.TEMPERATURE, AlertSeverity.CRITICAL),
        (SensorType.HUMIDITY, AlertSeverity.LOW),
    ]


async def test_update_into_existing_pair_conflicts(db_session):
    await threshold_service.create_threshold(db_session, _threshold(AlertSeverity.HIGH))
    low = await threshold_service.create_threshold(db_session, _threshold(AlertSeverity.LOW, max_value=30))

    with pytest.raises(ConflictError):
        await threshold_service.update_threshold(db_session, low.id, ThresholdUpdate(severity=AlertSeverity.HIGH))


async def test_update_revalidates_merged_bounds(db_session):
    threshold = await threshold_service.create_threshold(db_session, _threshold(min_value=10, max_value=40))

    with pytest.raises(ValidationError):
        await threshold_service.update_threshold(db_session, threshold.id, ThresholdUpdate(max_value=5))


async def test_missing_threshold_raises_not_found(db_session):
    with pytest.raises(NotFoundError, match="Threshold with ID 99 not found"):
        await threshold_service.get_threshold(db_session, 99)


async def test_validate_reading_reports_each_violated_threshold(db_session):
    await threshold_service.create_threshold(db_session, _threshold(AlertSeverity.MEDIUM, min_value=5, max_value=30))
    await threshold_service.create_threshold(db_session, _threshold(AlertSeverity.CRITICAL, min_value=0, max_value=45))

    violations = await threshold_service.validate_sensor_reading(db_session, SensorType.TEMPERATURE, 35)

    assert [v.severity for v in violations] == [AlertSeverity.MEDIUM]
    assert violations[0].actual_value == 35


async def test_inactive_thresholds_are_ignored(db_session):
    threshold = await threshold_service.create_threshold(db_session, _threshold(max_value=30))
    await threshold_service.set_threshold_active(db_session, threshold.id, False)

    assert await threshold_service.validate_sensor_reading(db_session, SensorType.TEMPERATURE, 100) == []
