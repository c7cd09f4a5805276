from __future__ import annotations

from types import SimpleNamespace

import pytest

from app.core.notifications import services
from app.core.notifications.fcm import PushDeliveryError, build_message
from app.core.notifications.messages import get_notification_message, validate_language
from app.core.notifications.models import NotificationLog
from app.core.users.models import User
from flaia_bg_worker.celery_app import celery_app


INTERNAL_HEADERS = {"X-Internal-Secret": "test-internal-secret"}


def _add_user(session_factory, user_id: str = "u1", **fields) -> None:
    values = dict(id=user_id, language_selected="ja", notifications_enabled=True, fcm_token="fcm-token-1")
    values.update(fields)
    db = session_factory()
    db.add(User(**values))
    db.commit()
    db.close()


@pytest.fixture()
def sent_tasks(monkeypatch):
    calls = []

    def send_task(name, kwargs=None, countdown=None, queue=None):
        calls.append({"name": name, "kwargs": kwargs, "countdown": countdown, "queue": queue})
        return SimpleNamespace(id=f"task-{len(calls)}")

    monkeypatch.setattr(celery_app, "send_task", send_task)
    return calls


def test_schedule_queues_three_onboarding_pushes(db, session_factory, sent_tasks) -> None:
    _add_user(session_factory)

    task_ids = services.schedule_onboarding_notifications(db, profile_id="u1")

    assert task_ids == ["task-1", "task-2", "task-3"]
    assert [call["countdown"] for call in sent_tasks] == [86400, 172800, 259200]
    assert [call["kwargs"]["day"] for call in sent_tasks] == ["day1", "day2", "day3"]
    assert {call["kwargs"]["language"] for call in sent_tasks} == {"ja"}
    assert {call["name"] for call in sent_tasks} == {"notifications.send_scheduled"}


def test_schedule_skips_missing_or_opted_out_users(db, session_factory, sent_tasks) -> None:
    _add_user(session_factory, "u2", notifications_enabled=False)

    assert services.schedule_onboarding_notifications(db, profile_id="ghost") == []
    assert services.schedule_onboarding_notifications(db, profile_id="u2") == []
    assert sent_tasks == []


def test_send_delivers_localized_message_and_logs(db, session_factory, push_client) -> None:
    _add_user(session_factory, language_selected="ko")

    result = services.send_scheduled_notification(db, push_client, user_id="u1", language="ko", day="day2")

    assert result == {"success": True, "messageId": "projects/flaia/messages/1"}
    expected = get_notification_message("day2", "ko")
    sent = push_client.sent[0]
    assert sent["token"] == "fcm-token-1"
    assert (sent["title"], sent["body"]) == (expected.title, expected.body)
    assert sent["data"] == {"type": "day2_onboarding", "userId": "u1"}

    log = session_factory().query(NotificationLog).one()
    assert log.success is True
    assert log.type == "day2_onboarding"
    assert log.language == "ko"
    assert log.message_id == "projects/flaia/messages/1"


def test_send_falls_back_to_english(db, session_factory, push_client) -> None:
    _add_user(session_factory)

    services.send_scheduled_notification(db, push_client, user_id="u1", language="de", day="day1")

    assert push_client.sent[0]["title"] == get_notification_message("day1", "en").title


@pytest.mark.parametrize(
    "fields, message",
    [
        ({"notifications_enabled": False}, "Notifications disabled - skipped"),
        ({"fcm_token": None}, "No FCM token - skipped"),
    ],
)
def test_send_skips_ineligible_users(db, session_factory, push_client, fields, message) -> None:
    _add_user(session_factory, **fields)

    result = services.send_scheduled_notification(db, push_client, user_id="u1", language="en", day="day1")

    assert result == {"success": True, "skipped": True, "message": message}
    assert push_client.sent == []


def test_send_skips_deleted_user(db, push_client) -> None:
    result = services.send_scheduled_notification(db, push_client, user_id="ghost", language="en", day="day1")

    assert result["message"] == "User not found - skipped"


def test_send_rejects_unknown_day(db, push_client) -> None:
    result = services.send_scheduled_notification(db, push_client, user_id="u1", language="en", day="day9")

    assert result == {"success": False, "error": "Unknown notification day: day9"}


def test_send_failure_is_logged(db, session_factory, push_client) -> None:
    _add_user(session_factory)
    push_client.error = PushDeliveryError("Requested entity was not found")

    result = services.send_scheduled_notification(db, push_client, user_id="u1", language="en", day="day3")

    assert result == {"success": False, "error": "Requested entity was not found"}
    log = session_factory().query(NotificationLog).one()
    assert log.success is False
    assert log.error == "Requested entity was not found"


def test_dispatch_route_requires_internal_secret(client, session_factory, push_client) -> None:
    _add_user(session_factory)
    payload = {"userId": "u1", "language": "en", "day": "day1"}

    rejected = client.post("/api/v1/notifications/dispatch", json=payload)
    accepted = client.post("/api/v1/notifications/dispatch", json=payload, headers=INTERNAL_HEADERS)

    assert rejected.status_code == 401
    assert accepted.status_code == 200
    assert len(push_client.sent) == 1
    assert accepted.json()["success"] is True


def test_dispatch_route_reports_delivery_failure(client, session_factory, push_client) -> None:
    _add_user(session_factory)
    push_client.error = PushDeliveryError("unavailable")

    response = client.post(
        "/api/v1/notifications/dispatch",
        json={"userId": "u1", "day": "day1"},
        headers=INTERNAL_HEADERS,
    )

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "unavailable"}


def test_onboarding_route_schedules(client, session_factory, sent_tasks) -> None:
    _add_user(session_factory)

    response = client.post("/api/v1/notifications/onboarding/u1", headers=INTERNAL_HEADERS)

    assert response.json() == {"scheduled": 3, "taskIds": ["task-1", "task-2", "task-3"]}


def test_language_validation_and_fcm_payload() -> None:
    assert validate_language("ar") == "ar"
    assert validate_language(None) == "en"
    message = build_message(token="t", title="Hi", body="There", data={"type": "day1_onboarding"})["message"]
    assert message["token"] == "t"
    assert message["notification"] == {"title": "Hi", "body": "There"}
    assert message["android"]["priority"] == "high"
    assert message["apns"]["payload"]["aps"]["badge"] == 1
