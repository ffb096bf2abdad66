"""Tests for maintenance scheduling, notifications and templates."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app.core.errors import ConflictError, NotFoundError
from app.core.timeutils import utcnow
from app.models.enums import MaintenanceScheduleType, NotificationType
from app.schemas.maintenance import MaintenanceCreate, MaintenanceUpdate
from app.schemas.notification import NotificationCreate, NotificationFromTemplate, TemplateCreate
from app.services import maintenance as maintenance_service
from app.services import notifications as notification_service


def _schedule(start: datetime, **extra) -> MaintenanceCreate:
    return MaintenanceCreate(
        title="Filter swap",
        schedule_type=MaintenanceScheduleType.ROUTINE,
        start_date=start,
        **extra,
    )


def test_render_template_keeps_unknown_placeholders():
    rendered = notification_service.render_template("Station {{ station }} at {{time}}", {"station": "Kyiv"})

    assert rendered == "Station Kyiv at {{time}}"


async def test_assignment_notifies_assignee(db_session, make_user):
    user = await make_user()

    await maintenance_service.create_schedule(db_session, _schedule(utcnow() + timedelta(days=3), assigned_to=user.id))

    notifications = await notification_service.list_user_notifications(db_session, user.id)
    assert len(notifications) == 1
    assert notifications[0].title == "New Maintenance Scheduled: Filter swap"


async def test_notification_storage_error_does_not_block_schedule(db_session, make_user, monkeypatch):
    user = await make_user()

    async def _failing_create(session, data):
        raise OperationalError("INSERT INTO notifications", {}, Exception("database is locked"))

    monkeypatch.setattr(notification_service, "create_notification", _failing_create)

    schedule = await maintenance_service.create_schedule(
        db_session, _schedule(utcnow() + timedelta(days=3), assigned_to=user.id)
    )

    assert schedule.id is not None
    assert await notification_service.list_user_notifications(db_session, user.id) == []


async def test_unknown_assignee_is_rejected(db_session):
    with pytest.raises(NotFoundError):
        await maintenance_service.create_schedule(db_session, _schedule(utcnow(), assigned_to=999))


async def test_reassignment_notifies_new_assignee(db_session, make_user):
    first = await make_user("first@example.com")
    second = await make_user("second@example.com")
    schedule = await maintenance_service.create_schedule(
        db_session, _schedule(utcnow() + timedelta(days=2), assigned_to=first.id)
    )

    await maintenance_service.update_schedule(db_session, schedule.id, MaintenanceUpdate(assigned_to=second.id))

    titles = [n.title for n in await notification_service.list_user_notifications(db_session, second.id)]
    assert titles == ["Maintenance Assigned: Filter swap"]


async def test_complete_sets_timestamp_and_notes(db_session):
    schedule = await maintenance_service.create_schedule(db_session, _schedule(utcnow()))

    done = await maintenance_service.complete_schedule(db_session, schedule.id, "All good")

    assert done.is_completed is True
    assert done.completed_at is not None
    assert done.notes == "All good"


async def test_upcoming_window(db_session, make_user):
    user = await make_user()
    soon = await maintenance_service.create_schedule(
        db_session, _schedule(utcnow() + timedelta(days=2), assigned_to=user.id)
    )
    await maintenance_service.create_schedule(db_session, _schedule(utcnow() + timedelta(days=20), assigned_to=user.id))

    upcoming = await maintenance_service.get_upcoming_for_user(db_session, user.id, days=7)

    assert [item.id for item in upcoming] == [soon.id]


async def test_reminders_for_tomorrow(db_session, make_user):
    user = await make_user()
    tomorrow_noon = (utcnow() + timedelta(days=1)).replace(hour=12, minute=0, second=0, microsecond=0)
    await maintenance_service.create_schedule(db_session, _schedule(tomorrow_noon, assigned_to=user.id))
    await maintenance_service.create_schedule(
        db_session, _schedule(tomorrow_noon + timedelta(days=3), assigned_to=user.id)
    )

    sent = await maintenance_service.check_upcoming_maintenance(db_session)

    assert sent == 1
    reminders = await notification_service.list_user_notifications(db_session, user.id, unread_only=True)
    assert any(n.title == "Upcoming Maintenance: Filter swap" for n in reminders)


async def test_stats_by_type(db_session):
    await maintenance_service.create_schedule(db_session, _schedule(utcnow() + timedelta(days=1)))
    repair = MaintenanceCreate(
        title="Fix mast", schedule_type=MaintenanceScheduleType.REPAIR, start_date=utcnow() + timedelta(days=1)
    )
    done = await maintenance_service.create_schedule(db_session, repair)
    await maintenance_service.complete_schedule(db_session, done.id)

    stats = await maintenance_service.get_stats(db_session)

    assert stats["total"] == 2
    assert stats["completed"] == 1
    assert stats["upcoming"] == 1
    assert stats["by_type"] == {"ROUTINE": 1, "REPAIR": 1}


async def test_notification_for_missing_user(db_session):
    with pytest.raises(NotFoundError):
        await notification_service.create_notification(
            db_session, NotificationCreate(user_id=42, type=NotificationType.INFO, title="Hi", message="There")
        )


async def test_mark_as_read_is_scoped_to_user(db_session, make_user):
    owner = await make_user("owner@example.com")
    other = await make_user("other@example.com")
    for user in (owner, other):
        await notification_service.create_notification(
            db_session, NotificationCreate(user_id=user.id, type=NotificationType.INFO, title="T", message="M")
        )

    assert await notification_service.mark_as_read(db_session, owner.id) == 1
    assert await notification_service.list_user_notifications(db_session, other.id, unread_only=True) != []


async def test_expired_notifications_are_hidden(db_session, make_user):
    user = await make_user()
    await notification_service.create_notification(
        db_session,
        NotificationCreate(
            user_id=user.id,
            type=NotificationType.WARNING,
            title="Old",
            message="Gone",
            expires_at=utcnow() - timedelta(minutes=1),
        ),
    )

    assert await notification_service.list_user_notifications(db_session, user.id) == []


async def test_notification_from_template(db_session, make_user):
    user = await make_user()
    await notification_service.create_template(
        db_session,
        TemplateCreate(
            type=NotificationType.ALERT, language="en", title="Alert at {{station}}", message="Value {{value}}"
        ),
    )

    notification = await notification_service.create_from_template(
        db_session,
        NotificationFromTemplate(
            user_id=user.id, type=NotificationType.ALERT, language="en", variables={"station": "Lviv", "value": 99}
        ),
    )

    assert notification.title == "Alert at Lviv"
    assert notification.message == "Value 99"


async def test_template_pair_is_unique(db_session):
    data = TemplateCreate(type=NotificationType.INFO, language="uk", title="T", message="M")
    await notification_service.create_template(db_session, data)

    with pytest.raises(ConflictError):
        await notification_service.create_template(db_session, data)


async def test_template_falls_back_to_default_language(db_session, make_user):
    user = await make_user()
    await notification_service.create_template(
        db_session, TemplateCreate(type=NotificationType.INFO, language="uk", title="Привіт", message="Повідомлення")
    )

    notification = await notification_service.create_from_template(
        db_session, NotificationFromTemplate(user_id=user.id, type=NotificationType.INFO)
    )

    assert notification.title == "Привіт"
