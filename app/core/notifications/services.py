from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Dict, List

from loguru import logger
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.notifications.fcm import PushClient
from app.core.notifications.messages import (
    ONBOARDING_NOTIFICATIONS,
    ONBOARDING_SCHEDULE,
    get_notification_message,
    validate_language,
)
from app.core.notifications.models import NotificationLog
from app.core.users.models import User
from flaia_bg_worker.celery_app import celery_app


SEND_TASK_NAME = "notifications.send_scheduled"


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def schedule_onboarding_notifications(db: Session, *, profile_id: str) -> List[str]:
    """
    Queue the day1..day3 onboarding pushes for a freshly created profile.

    Returns the Celery task ids; an empty list means scheduling was skipped.
    """
    started = time.perf_counter()
    logger.info("Checking notification eligibility", user_id=profile_id)

    user = db.get(User, profile_id)
    if user is None:
        logger.warning("User not found, skipping scheduling", user_id=profile_id)
        return []

    if not user.notifications_enabled:
        logger.info("Notifications disabled, skipping scheduling", user_id=profile_id)
        return []

    language = user.language_selected or "en"
    task_ids: List[str] = []
    for day, hours in ONBOARDING_SCHEDULE:
        result = celery_app.send_task(
            SEND_TASK_NAME,
            kwargs={"user_id": profile_id, "language": language, "day": day},
            countdown=hours * 3600,
            queue=settings.notifications_queue,
        )
        task_ids.append(result.id)
        logger.info(
            "Scheduled onboarding notification",
            user_id=profile_id,
            day=day,
            delay_hours=hours,
            task_id=result.id,
        )

    logger.info(
        "Onboarding notifications scheduled",
        user_id=profile_id,
        language=language,
        has_fcm_token=bool(user.fcm_token),
        duration_ms=_elapsed_ms(started),
    )
    return task_ids


def _skipped(message: str) -> Dict[str, Any]:
    return {"success": True, "skipped": True, "message": message}


def send_scheduled_notification(
    db: Session,
    push_client: PushClient,
    *,
    user_id: str,
    language: str,
    day: str,
) -> Dict[str, Any]:
    started = time.perf_counter()
    notification_type = f"{day}_onboarding"
    logger.info("Processing scheduled notification", user_id=user_id, day=day)

    if day not in ONBOARDING_NOTIFICATIONS:
        return {"success": False, "error": f"Unknown notification day: {day}"}

    user = db.get(User, user_id)
    if user is None:
        logger.warning("User no longer exists, skipping notification", user_id=user_id)
        return _skipped("User not found - skipped")

    if not user.notifications_enabled:
        logger.info("Notifications now disabled, skipping", user_id=user_id)
        return _skipped("Notifications disabled - skipped")

    if not user.fcm_token:
        logger.warning("No FCM token available, skipping notification", user_id=user_id)
        return _skipped("No FCM token - skipped")

    valid_language = validate_language(language)
    message = get_notification_message(day, valid_language)

    try:
        message_id = push_client.send(
            token=user.fcm_token,
            title=message.title,
            body=message.body,
            data={"type": notification_type, "userId": user_id},
        )
    except Exception as exc:
        duration = _elapsed_ms(started)
        logger.error(
            "Failed to send notification",
            user_id=user_id,
            day=day,
            error=str(exc),
            duration_ms=duration,
        )
        db.add(
            NotificationLog(
                user_id=user_id,
                type=notification_type,
                date=_today(),
                success=False,
                error=str(exc),
                processing_time_ms=duration,
            )
        )
        db.commit()
        return {"success": False, "error": str(exc)}

    duration = _elapsed_ms(started)
    logger.info(
        "Notification sent",
        user_id=user_id,
        day=day,
        message_id=message_id,
        language=valid_language,
        duration_ms=duration,
    )
    db.add(
        NotificationLog(
            user_id=user_id,
            type=notification_type,
            title=message.title,
            body=message.body,
            language=valid_language,
            date=_today(),
            success=True,
            message_id=message_id,
            processing_time_ms=duration,
        )
    )
    db.commit()
    return {"success": True, "messageId": message_id}


__all__ = [
    "SEND_TASK_NAME",
    "schedule_onboarding_notifications",
    "send_scheduled_notification",
]
