from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from sqlalchemy.orm import Session

from app.core.ai.client import invoke_model
from app.core.ai.context import AIContext
from app.core.ai.prompt_logger import PromptLogRecord, extract_token_usage
from app.core.config import settings
from app.core.errors import handle_ai_error
from app.core.travel import prompts
from app.core.travel.models import Itinerary
from app.core.travel.normalization import normalize_shuffle_request, normalize_trip
from app.core.travel.output_schemas import select_schema
from app.core.travel.schemas import (
    AdvancedItineraryRequest,
    EditActivityRequest,
    GenerationMetadata,
    InitialItineraryRequest,
    ShuffleActivitiesRequest,
    TripDetailsRequest,
    TripRequest,
)
from app.core.validation import validate_payload
from app.response import StandardResponse, make_error_response, make_success_response


logger = logging.getLogger(__name__)


def _utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _generate(
    context: AIContext,
    *,
    user_id: str,
    request: TripRequest,
    prompt_type: str,
    prompt: str,
    schema_name: str,
    required_keys: Sequence[str] = (),
    list_keys: Sequence[str] = (),
) -> StandardResponse:
    schema = select_schema(schema_name, request.effective_schema_version)
    invocation = invoke_model(
        context.transport,
        prompt,
        schema,
        context.config,
        required_keys=required_keys,
        list_keys=list_keys,
    )

    log_id = context.prompt_logger.log_prompt(
        PromptLogRecord(
            user_id=user_id,
            prompt_type=prompt_type,
            user_request=request.model_dump(exclude_none=True),
            prompt_text=prompt,
            llm_response=invocation.data,
            token_usage=extract_token_usage(invocation.usage),
            ai_config=context.config.as_log_dict(),
            performance={
                "response_time_ms": invocation.response_time_ms,
                "success": True,
            },
        )
    )

    metadata = GenerationMetadata(
        model=context.config.model,
        language=request.language,
        schema_version=request.effective_schema_version,
        generated_at=_utc_iso(),
        user_id=user_id,
        prompt_log_doc_id=log_id,
    )
    logger.info(
        "[%s] [%s] [%s] generated for %s",
        user_id,
        prompt_type,
        log_id or "NO_LOG_ID",
        request.destination,
    )
    return make_success_response(data=invocation.data, metadata=metadata.model_dump())


def generate_initial_itinerary(
    context: AIContext,
    *,
    user_id: str,
    payload: Any,
) -> StandardResponse:
    try:
        request = validate_payload(InitialItineraryRequest, payload)
        return _generate(
            context,
            user_id=user_id,
            request=request,
            prompt_type="initial_search",
            prompt=prompts.build_quick_prompt(request),
            schema_name="itinerary",
            required_keys=("title", "destination", "days"),
        )
    except Exception as exc:
        return handle_ai_error(exc, "generateInitialItinerary")


def generate_advanced_itinerary(
    context: AIContext,
    *,
    user_id: str,
    payload: Any,
) -> StandardResponse:
    try:
        request = validate_payload(AdvancedItineraryRequest, payload)
        return _generate(
            context,
            user_id=user_id,
            request=request,
            prompt_type="advanced_search",
            prompt=prompts.build_personalized_prompt(request, request.questionnaire_answers),
            schema_name="itinerary",
            required_keys=("title", "destination", "days"),
        )
    except Exception as exc:
        return handle_ai_error(exc, "generateAdvancedItinerary")


def shuffle_activities(
    context: AIContext,
    *,
    user_id: str,
    payload: Any,
) -> StandardResponse:
    try:
        request = normalize_shuffle_request(validate_payload(ShuffleActivitiesRequest, payload))
        return _generate(
            context,
            user_id=user_id,
            request=request,
            prompt_type="shuffle",
            prompt=prompts.build_shuffle_prompt(request),
            schema_name="shuffle",
            required_keys=("activities",),
            list_keys=("activities",),
        )
    except Exception as exc:
        return handle_ai_error(exc, "shuffleActivities")


def edit_activity(
    context: AIContext,
    *,
    user_id: str,
    payload: Any,
) -> StandardResponse:
    try:
        request = validate_payload(EditActivityRequest, payload)
        return _generate(
            context,
            user_id=user_id,
            request=request,
            prompt_type="edit",
            prompt=prompts.build_edit_prompt(request),
            schema_name="edit",
            required_keys=("activity",),
        )
    except Exception as exc:
        return handle_ai_error(exc, "editActivity")


def get_trip_details(
    db: Session,
    *,
    payload: Any,
    user_id: Optional[str] = None,
) -> StandardResponse:
    caller = user_id or "ANONYMOUS"
    try:
        request = validate_payload(TripDetailsRequest, payload)
        trip_id = request.tripId
        logger.info("[%s] [get_trip] [%s] fetching trip details", caller, trip_id)

        itinerary = db.query(Itinerary).filter(Itinerary.id == trip_id).first()
        if itinerary is None:
            logger.info("[%s] [get_trip] [%s] trip not found", caller, trip_id)
            return make_error_response(
                code="TRIP_NOT_FOUND",
                message="Trip not found. Please check the trip ID.",
            )

        created_at = itinerary.created_at
        if created_at is not None and created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        trip = normalize_trip(
            itinerary.id,
            itinerary.document or {},
            created_at=created_at,
            share_base_url=settings.public_app_url,
        )
        logger.info(
            "[%s] [get_trip] [%s] trip fetched: %s",
            caller,
            trip_id,
            trip["destination"],
        )
        return make_success_response(
            data=trip,
            metadata={
                "fetched_at": _utc_iso(),
                "trip_id": trip_id,
                "user_id": user_id,
            },
        )
    except Exception as exc:
        return handle_ai_error(exc, "getTripDetails")


__all__ = [
    "generate_initial_itinerary",
    "generate_advanced_itinerary",
    "shuffle_activities",
    "edit_activity",
    "get_trip_details",
]
