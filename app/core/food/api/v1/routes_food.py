from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from app.core.ai.context import AIContext
from app.core.dependencies import CurrentUser, get_ai_context, get_current_user, get_db
from app.core.food import services


router = APIRouter(prefix="/food", tags=["food"])


@router.post("/meals/analyze-image")
def analyze_meal_image(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    context: AIContext = Depends(get_ai_context),
) -> Dict[str, Any]:
    return services.analyze_meal_image(context, db, user_id=user.uid, payload=payload)


@router.post("/labels/analyze-image")
def analyze_label_image(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    context: AIContext = Depends(get_ai_context),
) -> Dict[str, Any]:
    return services.analyze_label_image(context, db, user_id=user.uid, payload=payload)


@router.post("/meals/analyze-text")
def analyze_meal_text(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    context: AIContext = Depends(get_ai_context),
) -> Dict[str, Any]:
    return services.analyze_meal_text(context, db, user_id=user.uid, payload=payload)


@router.post("/meals")
def save_meal_entry(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> Dict[str, Any]:
    return services.save_meal_entry(db, user_id=user.uid, payload=payload)


__all__ = ["router"]
