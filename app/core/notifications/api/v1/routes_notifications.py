from __future__ import annotations

from typing import Any, Dict, Literal

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.dependencies import get_db, get_push_client, require_internal_secret
from app.core.notifications.fcm import PushClient
from app.core.notifications.services import (
    schedule_onboarding_notifications,
    send_scheduled_notification,
)


router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
    dependencies=[Depends(require_internal_secret)],
)


class DispatchRequest(BaseModel):
    userId: str
    language: str = "en"
    day: Literal["day1", "day2", "day3"]


@router.post("/dispatch")
def dispatch_notification(
    payload: DispatchRequest,
    db: Session = Depends(get_db),
    push_client: PushClient = Depends(get_push_client),
) -> JSONResponse:
    result = send_scheduled_notification(
        db,
        push_client,
        user_id=payload.userId,
        language=payload.language,
        day=payload.day,
    )
    status_code = 200 if result.get("success") else 500
    return JSONResponse(status_code=status_code, content=result)


@router.post("/onboarding/{profile_id}")
def schedule_onboarding(
    profile_id: str,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    task_ids = schedule_onboarding_notifications(db, profile_id=profile_id)
    return {"scheduled": len(task_ids), "taskIds": task_ids}


__all__ = ["router"]
