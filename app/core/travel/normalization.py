"""Field-name fallbacks for payloads written by older clients.

Every fallback lives in one of the tables below and is applied exactly once,
right after validation (shuffle requests) or right after loading a stored
itinerary (trip details). Business logic only sees canonical names.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from app.core.travel.schemas import ActivityRef, ShuffleActivitiesRequest


@dataclass(frozen=True)
class NameFallback:
    target: str
    # None means "every existing activity".
    source_ids: Optional[str]


SHUFFLE_NAME_FALLBACKS: Tuple[NameFallback, ...] = (
    NameFallback(target="activities_to_replace_names", source_ids="activities_to_replace"),
    NameFallback(target="locked_activity_names", source_ids="locked_activity_ids"),
    NameFallback(target="all_activity_names", source_ids=None),
)


def _names_for_ids(ids: Sequence[str], activities: Sequence[ActivityRef]) -> List[str]:
    by_id = {activity.id: activity.name for activity in activities}
    return [name for name in (by_id.get(item, item) for item in ids) if name]


def normalize_shuffle_request(
    request: ShuffleActivitiesRequest,
) -> ShuffleActivitiesRequest:
    updates: Dict[str, List[str]] = {}
    for fallback in SHUFFLE_NAME_FALLBACKS:
        current = getattr(request, fallback.target) or []
        if current:
            updates[fallback.target] = list(current)
            continue
        if fallback.source_ids is None:
            updates[fallback.target] = [
                activity.name for activity in request.existing_activities if activity.name
            ]
        else:
            updates[fallback.target] = _names_for_ids(
                getattr(request, fallback.source_ids) or [],
                request.existing_activities,
            )
    return request.model_copy(update=updates)


@dataclass(frozen=True)
class FieldFallback:
    target: str
    candidates: Tuple[str, ...]
    default: Any = ""


TRIP_FIELDS: Tuple[FieldFallback, ...] = (
    FieldFallback("title", ("title",)),
    FieldFallback("destination", ("destination",)),
    FieldFallback("summary", ("summary",)),
    FieldFallback("startDate", ("start_date", "startDate")),
    FieldFallback("endDate", ("end_date", "endDate")),
    FieldFallback("countryEmoji", ("country_emoji", "countryEmoji")),
    FieldFallback("backgroundColor", ("background_color", "backgroundColor"), "#8B5CF6"),
)

WEATHER_FIELDS: Tuple[FieldFallback, ...] = (
    FieldFallback("condition", ("condition",)),
    FieldFallback("emoji", ("emoji",)),
    FieldFallback("temperatureRange", ("temperature_range", "temperatureRange")),
)

TIMING_FIELDS: Tuple[FieldFallback, ...] = (
    FieldFallback("startTime", ("startTime", "start_time")),
    FieldFallback("endTime", ("endTime", "end_time")),
    FieldFallback("displayTime", ("displayTime", "display_time"), None),
)

# (target, container, candidates)
ACTIVITY_LINK_FIELDS: Tuple[Tuple[str, str, Tuple[str, ...]], ...] = (
    ("requiresBooking", "booking", ("requires_booking", "requiresBooking")),
    ("bookingUrl", "booking", ("booking_url", "bookingUrl")),
    ("mapUrl", "location", ("map_url", "mapUrl")),
    ("detailsUrl", "booking", ("details_url", "detailsUrl")),
)


def _to_wire(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def pick(source: Optional[Mapping[str, Any]], candidates: Sequence[str], default: Any = "") -> Any:
    """First truthy candidate, otherwise ``default``."""
    if not source:
        return default
    for key in candidates:
        value = source.get(key)
        if value:
            return _to_wire(value)
    return default


def apply_fallbacks(
    source: Optional[Mapping[str, Any]],
    fields: Sequence[FieldFallback],
) -> Dict[str, Any]:
    return {field.target: pick(source, field.candidates, field.default) for field in fields}


def normalize_price(price: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    price = price or {}
    amount = price.get("amount") or 0
    if price.get("isFree") is not None:
        is_free = price["isFree"]
    elif price.get("is_free") is not None:
        is_free = price["is_free"]
    else:
        is_free = not amount
    return {
        "amount": amount,
        "currency": price.get("currency") or "USD",
        "isFree": is_free,
    }


def normalize_activity(activity: Mapping[str, Any]) -> Dict[str, Any]:
    normalized = dict(activity)
    normalized["timing"] = apply_fallbacks(activity.get("timing"), TIMING_FIELDS)
    normalized["price"] = normalize_price(activity.get("price"))
    for target, container, candidates in ACTIVITY_LINK_FIELDS:
        default: Any = False if target == "requiresBooking" else ""
        normalized[target] = pick(activity.get(container), candidates, default)
    return normalized


def normalize_day(day: Mapping[str, Any], index: int) -> Dict[str, Any]:
    normalized = dict(day)
    normalized["dayNumber"] = pick(day, ("dayNumber", "day_number"), index + 1)
    normalized["date"] = pick(day, ("date",))
    normalized["activities"] = [
        normalize_activity(activity) for activity in day.get("activities") or []
    ]
    return normalized


def normalize_trip(
    trip_id: str,
    document: Mapping[str, Any],
    *,
    created_at: Optional[datetime],
    share_base_url: str,
) -> Dict[str, Any]:
    trip = {"id": trip_id}
    trip.update(apply_fallbacks(document, TRIP_FIELDS))
    trip["weather"] = apply_fallbacks(document.get("weather"), WEATHER_FIELDS)
    trip["days"] = [
        normalize_day(day, index) for index, day in enumerate(document.get("days") or [])
    ]
    trip["createdAt"] = pick(document, ("created_at", "createdAt"), _to_wire(created_at) or "")
    trip["shareUrl"] = f"{share_base_url.rstrip('/')}/trips/{trip_id}"
    return trip


__all__ = [
    "NameFallback",
    "SHUFFLE_NAME_FALLBACKS",
    "normalize_shuffle_request",
    "FieldFallback",
    "TRIP_FIELDS",
    "WEATHER_FIELDS",
    "TIMING_FIELDS",
    "pick",
    "apply_fallbacks",
    "normalize_price",
    "normalize_activity",
    "normalize_day",
    "normalize_trip",
]
