from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from app.core.ai.context import AIContext
from app.core.dependencies import (
    CurrentUser,
    get_ai_context,
    get_current_user,
    get_db,
    get_optional_user,
)
from app.core.travel import services
from app.response import StandardResponse


router = APIRouter(prefix="/travel", tags=["travel"])


@router.post(
    "/itineraries/initial",
    response_model=StandardResponse,
)
def generate_initial_itinerary(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    user: CurrentUser = Depends(get_current_user),
    context: AIContext = Depends(get_ai_context),
) -> StandardResponse:
    return services.generate_initial_itinerary(context, user_id=user.uid, payload=payload)


@router.post(
    "/itineraries/advanced",
    response_model=StandardResponse,
)
def generate_advanced_itinerary(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    user: CurrentUser = Depends(get_current_user),
    context: AIContext = Depends(get_ai_context),
) -> StandardResponse:
    return services.generate_advanced_itinerary(context, user_id=user.uid, payload=payload)


@router.post(
    "/activities/shuffle",
    response_model=StandardResponse,
)
def shuffle_activities(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    user: CurrentUser = Depends(get_current_user),
    context: AIContext = Depends(get_ai_context),
) -> StandardResponse:
    return services.shuffle_activities(context, user_id=user.uid, payload=payload)


@router.post(
    "/activities/edit",
    response_model=StandardResponse,
)
def edit_activity(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    user: CurrentUser = Depends(get_current_user),
    context: AIContext = Depends(get_ai_context),
) -> StandardResponse:
    return services.edit_activity(context, user_id=user.uid, payload=payload)


@router.post(
    "/trips/details",
    response_model=StandardResponse,
)
def get_trip_details(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_optional_user),
) -> StandardResponse:
    return services.get_trip_details(
        db,
        payload=payload,
        user_id=user.uid if user else None,
    )


__all__ = ["router"]
