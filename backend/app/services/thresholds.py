"""Threshold management and reading validation."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.alert import Threshold
from app.models.enums import SEVERITY_RANK, AlertSeverity, SensorType
from app.schemas.alert import ThresholdCreate, ThresholdUpdate, ThresholdViolation

_SENSOR_ORDER = {sensor_type: index for index, sensor_type in enumerate(SensorType)}


def _declaration_order(threshold: Threshold) -> tuple[int, int]:
    return _SENSOR_ORDER[threshold.sensor_type], SEVERITY_RANK[threshold.severity]


def validate_bounds(min_value: float | None, max_value: float | None) -> None:
    if min_value is None and max_value is None:
        raise ValidationError("At least one of min_value or max_value must be provided")
    if (min_value is not None and min_value < 0) or (max_value is not None and max_value < 0):
        raise ValidationError("Threshold values cannot be negative")
    if min_value is not None and max_value is not None and min_value >= max_value:
        raise ValidationError("min_value must be less than max_value")


async def _find_pair(
    session: AsyncSession, sensor_type: SensorType, severity: AlertSeverity
) -> Threshold | None:
    result = await session.execute(
        select(Threshold).where(Threshold.sensor_type == sensor_type, Threshold.severity == severity)
    )
    return result.scalar_one_or_none()


async def create_threshold(session: AsyncSession, data: ThresholdCreate) -> Threshold:
    validate_bounds(data.min_value, data.max_value)
    if await _find_pair(session, data.sensor_type, data.severity):
        raise ConflictError(
            f"Threshold for {data.sensor_type.value} with severity {data.severity.value} already exists"
        )
    threshold = Threshold(**data.model_dump())
    session.add(threshold)
    await session.flush()
    return threshold


async def list_thresholds(session: AsyncSession) -> list[Threshold]:
    result = await session.execute(select(Threshold))
    return sorted(result.scalars().all(), key=_declaration_order)


async def get_threshold(session: AsyncSession, threshold_id: int) -> Threshold:
    threshold = await session.get(Threshold, threshold_id)
    if not threshold:
        raise NotFoundError(f"Threshold with ID {threshold_id} not found")
    return threshold


async def list_active_for_type(session: AsyncSession, sensor_type: SensorType) -> list[Threshold]:
    result = await session.execute(
        select(Threshold)
        .where(Threshold.sensor_type == sensor_type, Threshold.is_active.is_(True))
    )
    return sorted(result.scalars().all(), key=_declaration_order)


async def update_threshold(session: AsyncSession, threshold_id: int, data: ThresholdUpdate) -> Threshold:
    threshold = await get_threshold(session, threshold_id)
    changes = data.model_dump(exclude_unset=True)

    min_value = changes.get("min_value", threshold.min_value)
    max_value = changes.get("max_value", threshold.max_value)
    validate_bounds(min_value, max_value)

    sensor_type = changes.get("sensor_type") or threshold.sensor_type
    severity = changes.get("severity") or threshold.severity
    existing = await _find_pair(session, sensor_type, severity)
    if existing and existing.id != threshold.id:
        raise ConflictError(
            f"Threshold for {SensorType(sensor_type).value} with severity "
            f"{AlertSeverity(severity).value} already exists"
        )

    for field, value in changes.items():
        setattr(threshold, field, value)
    await session.flush()
    return threshold


async def set_threshold_active(session: AsyncSession, threshold_id: int, active: bool) -> Threshold:
    threshold = await get_threshold(session, threshold_id)
    threshold.is_active = active
    await session.flush()
    return threshold


async def delete_threshold(session: AsyncSession, threshold_id: int) -> None:
    threshold = await get_threshold(session, threshold_id)
    await session.delete(threshold)
    await session.flush()


async def validate_sensor_reading(
    session: AsyncSession, sensor_type: SensorType, value: float
) -> list[ThresholdViolation]:
    """Return one violation per active threshold the value falls outside of."""

    violations = []
    for threshold in await list_active_for_type(session, sensor_type):
        below = threshold.min_value is not None and value < threshold.min_value
        above = threshold.max_value is not None and value > threshold.max_value
        if below or above:
            violations.append(
                ThresholdViolation(
                    threshold_id=threshold.id,
                    severity=threshold.severity,
                    min_value=threshold.min_value,
                    max_value=threshold.max_value,
                    description=threshold.description,
                    actual_value=value,
                )
            )
    return violations
