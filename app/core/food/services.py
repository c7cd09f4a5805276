from __future__ import annotations

import logging
import os
import secrets
import string
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.core.ai.client import InlineImage, invoke_model
from app.core.ai.context import AIContext
from app.core.ai.prompt_logger import ErrorLogRecord, PromptLogRecord, extract_token_usage
from app.core.config import settings
from app.core.errors import InternalError, NotFoundError, ValidationError
from app.core.food import prompts
from app.core.food.models import AnalysisSession, Meal, UserStats
from app.core.food.output_schemas import MOBILE_ANALYSIS_SCHEMA
from app.core.food.schemas import AnalyzeImageRequest, AnalyzeTextRequest, SaveMealEntryRequest
from app.core.validation import validate_payload
from app.response.response import APIError


logger = logging.getLogger(__name__)

IMAGE_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}

SLOW_ANALYSIS_MS = 15000

TAG_KEYWORDS = (
    ("protein", ("chicken", "beef", "fish", "salmon", "tuna", "egg")),
    ("carbs", ("rice", "pasta", "bread", "potato", "quinoa")),
    ("vegetables", ("vegetable", "carrot", "broccoli", "spinach", "tomato", "lettuce")),
    ("fruits", ("apple", "banana", "berry", "orange", "fruit")),
    ("dairy", ("milk", "cheese", "yogurt", "butter")),
)
COOKING_TAGS = ("grilled", "fried", "baked", "steamed", "raw")

_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class AnalysisMode:
    name: str
    prompt_type: str
    error_code: str


MEAL_MODE = AnalysisMode("meal", "unified_meal_analysis", "meal_analysis_failed")
LABEL_MODE = AnalysisMode("label", "unified_label_analysis", "label_analysis_failed")
TEXT_MODE = AnalysisMode("text", "text_meal_analysis", "text_analysis_failed")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _append(result: Dict[str, Any], key: str, message: str) -> None:
    result[key] = [*(result.get(key) or []), message]


def image_mime_type(storage_path: str) -> str:
    extension = os.path.splitext(storage_path.lower())[1]
    mime_type = IMAGE_MIME_TYPES.get(extension)
    if mime_type is None:
        raise ValidationError("Unsupported image format. Please use JPG, PNG, or WebP.")
    return mime_type


def read_image(storage_path: str) -> bytes:
    root = Path(settings.media_root).resolve()
    path = (root / storage_path.lstrip("/")).resolve()
    if root not in path.parents or not path.is_file():
        raise NotFoundError("Image not found or inaccessible")
    try:
        return path.read_bytes()
    except OSError as exc:
        logger.error("failed to read image %s: %s", storage_path, exc)
        raise NotFoundError("Image not found or inaccessible") from exc


def add_image_findings(result: Dict[str, Any], analysis_ms: int) -> None:
    validity = result.get("foodValidity")
    score = _number(validity.get("score")) if isinstance(validity, dict) else None
    if score is not None and score < 0.25:
        _append(
            result,
            "warnings",
            "Low confidence this is food. Please ensure you are photographing actual food items.",
        )

    if analysis_ms > SLOW_ANALYSIS_MS:
        _append(
            result,
            "suggestions",
            "Analysis took longer than expected. Try taking clearer photos with better lighting.",
        )

    nutrition = result.get("nutrition")
    if not isinstance(nutrition, dict):
        return

    calories = _number(nutrition.get("calories")) or 0.0
    if calories > 2000:
        _append(result, "warnings", "Very high calorie estimate. Please verify portion sizes.")

    # 4 kcal/g protein and carbs, 9 kcal/g fat
    computed = (
        (_number(nutrition.get("protein")) or 0.0) * 4
        + (_number(nutrition.get("carbs")) or 0.0) * 4
        + (_number(nutrition.get("fat")) or 0.0) * 9
    )
    if abs(calories - computed) > calories * 0.2:
        _append(
            result,
            "suggestions",
            "Macronutrient ratios may need adjustment. "
            "Consider the cooking method and hidden ingredients.",
        )


def add_text_findings(result: Dict[str, Any], analysis_ms: int) -> None:
    confidence = _number(result.get("confidence"))
    if confidence is not None and confidence < 0.3:
        _append(
            result,
            "warnings",
            "Very low confidence in food recognition. Please provide more specific details.",
        )
    if confidence is not None and confidence < 0.6:
        _append(
            result,
            "suggestions",
            "For better accuracy, include specific foods, quantities, and cooking methods.",
        )

    nutrition = result.get("nutrition")
    if not isinstance(nutrition, dict):
        return

    calories = _number(nutrition.get("calories"))
    if calories is None:
        return
    if calories > 3000:
        _append(result, "warnings", "Very high calories detected. Please verify the meal description.")
    if calories < 10 and (confidence or 0) > 0.5:
        _append(result, "warnings", "Very low calories detected. Please verify the meal description.")


def _run_analysis(
    context: AIContext,
    db: Session,
    *,
    user_id: str,
    mode: AnalysisMode,
    user_request: Dict[str, Any],
    prompt: str,
    language: str,
    unit_system: str,
    notes: str,
    food_metadata: Dict[str, Any],
    findings: Callable[[Dict[str, Any], int], None],
    image: Optional[InlineImage] = None,
    storage_path: Optional[str] = None,
    text_input: Optional[str] = None,
) -> Dict[str, Any]:
    session_id = prompts.generate_session_id()
    started = time.monotonic()

    try:
        invocation = invoke_model(
            context.transport,
            prompt,
            MOBILE_ANALYSIS_SCHEMA,
            context.config,
            image=image,
        )
    except Exception as exc:
        logger.error("[%s] [%s] [%s] analysis failed: %r", user_id, mode.name, session_id, exc)
        context.prompt_logger.log_error(
            ErrorLogRecord(
                user_id=user_id,
                prompt_type=mode.prompt_type,
                session_id=session_id,
                error_code=mode.error_code,
                error_message=str(exc),
                user_request=user_request,
                prompt_text=prompt,
                performance={"response_time_ms": _elapsed_ms(started), "success": False},
            )
        )
        raise InternalError(
            prompts.error_message("image_analysis_failed", language),
            details={"code": mode.error_code, "sessionId": session_id},
        ) from exc

    result = dict(invocation.data)
    result.update(
        sessionId=session_id,
        mode=mode.name,
        processingTime=invocation.response_time_ms,
        model=context.config.model,
        language=language,
        unitSystem=unit_system,
        success=True,
    )
    if notes:
        result["userNotes"] = notes
    if text_input is not None:
        result["textInput"] = text_input
    findings(result, invocation.response_time_ms)

    nutrition = result.get("nutrition") if isinstance(result.get("nutrition"), dict) else {}
    validity = result.get("foodValidity") if isinstance(result.get("foodValidity"), dict) else {}
    token_usage = extract_token_usage(invocation.usage, includes_image=image is not None)

    log_id = context.prompt_logger.log_prompt(
        PromptLogRecord(
            user_id=user_id,
            prompt_type=mode.prompt_type,
            category="food",
            session_id=session_id,
            user_request=user_request,
            prompt_text=prompt,
            llm_response=result,
            token_usage=token_usage,
            ai_config=context.config.as_log_dict(),
            performance={
                "response_time_ms": invocation.response_time_ms,
                "success": True,
                "confidence_score": result.get("confidence"),
                "food_validity_score": validity.get("score") or 0,
                "total_calories": nutrition.get("calories") or 0,
            },
            food_metadata={
                "meal_name": result.get("mealName"),
                "language": language,
                "unit_system": unit_system,
                "mode": mode.name,
                "has_user_notes": bool(notes),
                **food_metadata,
            },
        )
    )
    context.prompt_logger.record_usage(user_id, token_usage)

    db.add(
        AnalysisSession(
            id=session_id,
            user_id=user_id,
            mode=mode.name,
            storage_path=storage_path,
            language=language,
            unit_system=unit_system,
            result=result,
            saved=False,
        )
    )
    db.commit()

    logger.info(
        "[%s] [%s] [%s] analysis completed: session=%s calories=%s warnings=%s duration=%sms",
        user_id,
        mode.prompt_type,
        log_id or "NO_LOG_ID",
        session_id,
        nutrition.get("calories") or 0,
        len(result.get("warnings") or []),
        _elapsed_ms(started),
    )
    return result


def _unexpected(function_name: str, user_id: str, payload: Any) -> InternalError:
    logger.exception("%s failed for %s", function_name, user_id)
    language = payload.get("language") if isinstance(payload, dict) else None
    return InternalError(
        prompts.error_message("image_analysis_failed", prompts.validate_language(language)),
        details={"code": "unexpected_error"},
    )


def _analyze_image(
    context: AIContext,
    db: Session,
    *,
    user_id: str,
    payload: Any,
    mode: AnalysisMode,
    build_prompt: Callable[[str, str, str], str],
) -> Dict[str, Any]:
    request = validate_payload(AnalyzeImageRequest, payload)
    language = prompts.validate_language(request.language)
    unit_system = prompts.validate_unit_system(request.unitSystem)
    notes = request.notes or ""

    mime_type = image_mime_type(request.storagePath)
    image_bytes = read_image(request.storagePath)

    return _run_analysis(
        context,
        db,
        user_id=user_id,
        mode=mode,
        user_request=request.model_dump(),
        prompt=build_prompt(language, unit_system, notes),
        language=language,
        unit_system=unit_system,
        notes=notes,
        food_metadata={
            "image_size_bytes": len(image_bytes),
            "storage_path": request.storagePath,
        },
        findings=add_image_findings,
        image=InlineImage(data=image_bytes, mime_type=mime_type),
        storage_path=request.storagePath,
    )


def analyze_meal_image(
    context: AIContext,
    db: Session,
    *,
    user_id: str,
    payload: Any,
) -> Dict[str, Any]:
    try:
        return _analyze_image(
            context,
            db,
            user_id=user_id,
            payload=payload,
            mode=MEAL_MODE,
            build_prompt=prompts.meal_image_prompt,
        )
    except APIError:
        raise
    except Exception as exc:
        raise _unexpected("analyze_meal_image", user_id, payload) from exc


def analyze_label_image(
    context: AIContext,
    db: Session,
    *,
    user_id: str,
    payload: Any,
) -> Dict[str, Any]:
    try:
        return _analyze_image(
            context,
            db,
            user_id=user_id,
            payload=payload,
            mode=LABEL_MODE,
            build_prompt=prompts.label_image_prompt,
        )
    except APIError:
        raise
    except Exception as exc:
        raise _unexpected("analyze_label_image", user_id, payload) from exc


def analyze_meal_text(
    context: AIContext,
    db: Session,
    *,
    user_id: str,
    payload: Any,
) -> Dict[str, Any]:
    try:
        request = validate_payload(AnalyzeTextRequest, payload)
        language = prompts.validate_language(request.language)
        unit_system = prompts.validate_unit_system(request.unitSystem)
        notes = request.notes or ""

        return _run_analysis(
            context,
            db,
            user_id=user_id,
            mode=TEXT_MODE,
            user_request=request.model_dump(),
            prompt=prompts.meal_text_prompt(request.text, language, unit_system, notes),
            language=language,
            unit_system=unit_system,
            notes=notes,
            food_metadata={
                "text_length": len(request.text),
                "text_input": request.text[:100],
            },
            findings=add_text_findings,
            text_input=request.text,
        )
    except APIError:
        raise
    except Exception as exc:
        raise _unexpected("analyze_meal_text", user_id, payload) from exc


def generate_meal_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"meal_{int(time.time() * 1000)}_{suffix}"


def meal_tags(meal_name: str, meal_type: str, ingredient_names: Iterable[str]) -> List[str]:
    tags: Dict[str, None] = {meal_type: None}
    for name in ingredient_names:
        lowered = name.lower()
        for tag, keywords in TAG_KEYWORDS:
            if any(keyword in lowered for keyword in keywords):
                tags[tag] = None

    lowered_meal = meal_name.lower()
    for tag in COOKING_TAGS:
        if tag in lowered_meal:
            tags[tag] = None
    return list(tags)


def search_keywords(meal_name: str, ingredient_names: Iterable[str], notes: Optional[str]) -> List[str]:
    keywords: Dict[str, None] = {}
    for source in (meal_name, *ingredient_names, notes or ""):
        for word in source.lower().split():
            if len(word) > 2:
                keywords[word] = None
    return list(keywords)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def save_meal_entry(
    db: Session,
    *,
    user_id: str,
    payload: Any,
) -> Dict[str, Any]:
    started = time.monotonic()
    request = validate_payload(SaveMealEntryRequest, payload)

    try:
        meal_id = generate_meal_id()
        now = _utc_now()
        timestamp = _as_utc(request.timestamp) if request.timestamp else now
        ingredients = [item.model_dump() for item in request.ingredients]
        ingredient_names = [item.name for item in request.ingredients]
        nutrition = request.nutrition.model_dump()
        tags = meal_tags(request.mealName, request.mealType, ingredient_names)

        db.add(
            Meal(
                id=meal_id,
                user_id=user_id,
                meal_name=request.mealName,
                meal_type=request.mealType,
                ingredients=ingredients,
                nutrition=nutrition,
                confidence=request.confidence,
                notes=request.notes or "",
                image_path=request.storagePath,
                source="ai_detection",
                tags=tags,
                search_keywords=search_keywords(request.mealName, ingredient_names, request.notes),
                timestamp=timestamp,
            )
        )

        stats = (
            db.query(UserStats)
            .filter(UserStats.user_id == user_id)
            .with_for_update()
            .first()
        )
        if stats is None:
            stats = UserStats(
                user_id=user_id,
                total_meals=0,
                total_calories=0,
                meals_by_type={},
            )
            db.add(stats)
        stats.total_meals += 1
        stats.total_calories += request.nutrition.calories
        stats.last_meal_at = now
        by_type = dict(stats.meals_by_type or {})
        by_type[request.mealType] = by_type.get(request.mealType, 0) + 1
        stats.meals_by_type = by_type

        if request.sessionId:
            session = db.get(AnalysisSession, request.sessionId)
            if session is None:
                logger.warning(
                    "[%s] meal %s references unknown analysis session %s",
                    user_id,
                    meal_id,
                    request.sessionId,
                )
            else:
                session.saved = True
                session.saved_meal_id = meal_id
                session.saved_at = now

        db.commit()
    except Exception as exc:
        db.rollback()
        logger.exception("[%s] failed to save meal entry", user_id)
        raise InternalError(
            "Failed to save meal entry",
            details={"code": "save_failed"},
        ) from exc

    duration = _elapsed_ms(started)
    logger.info(
        "[%s] meal entry %s saved: %s (%s) calories=%s duration=%sms",
        user_id,
        meal_id,
        request.mealName,
        request.mealType,
        request.nutrition.calories,
        duration,
    )
    return {
        "success": True,
        "mealId": meal_id,
        "data": {
            "id": meal_id,
            "mealName": request.mealName,
            "mealType": request.mealType,
            "totalCalories": request.nutrition.calories,
            "timestamp": timestamp.isoformat(),
            "tags": tags,
        },
        "metadata": {
            "processingTime": duration,
            "saved": True,
        },
    }


__all__ = [
    "IMAGE_MIME_TYPES",
    "image_mime_type",
    "read_image",
    "add_image_findings",
    "add_text_findings",
    "analyze_meal_image",
    "analyze_label_image",
    "analyze_meal_text",
    "generate_meal_id",
    "meal_tags",
    "search_keywords",
    "save_meal_entry",
]
