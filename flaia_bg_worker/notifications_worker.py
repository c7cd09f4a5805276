from __future__ import annotations

from typing import Any, Dict

import httpx
from loguru import logger

from app.core.config import settings
from flaia_bg_worker.celery_app import celery_app


def _dispatch(payload: Dict[str, Any]) -> Dict[str, Any]:
    headers = {"X-Internal-Secret": settings.internal_secret_key}
    with httpx.Client(timeout=60) as client:
        response = client.post(
            settings.notification_dispatch_url,
            json=payload,
            headers=headers,
        )
    response.raise_for_status()
    return response.json()


@celery_app.task(name="notifications.send_scheduled")
def send_scheduled(user_id: str, language: str, day: str) -> Dict[str, Any]:
    """Fire the delayed onboarding push through the HTTP dispatcher."""
    logger.info("Dispatching scheduled notification", user_id=user_id, day=day)
    try:
        result = _dispatch({"userId": user_id, "language": language, "day": day})
    except httpx.HTTPError as exc:
        logger.error(
            "Notification dispatch failed",
            user_id=user_id,
            day=day,
            error=str(exc),
        )
        raise
    logger.info("Notification dispatch finished", user_id=user_id, day=day, result=result)
    return result


__all__ = ["send_scheduled"]
