"""Structured-output schemas handed to the model, keyed by (name, version)."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple


Schema = Dict[str, Any]

ACTIVITY_CATEGORIES = [
    "historic",
    "food",
    "culture",
    "entertainment",
    "nature",
    "shopping",
    "adventure",
    "sports",
    "wellness",
    "photography",
    "localExperience",
    "education",
    "scenic",
    "markets",
    "accommodation",
]

DEFAULT_SCHEMA_VERSION = 1

_HHMM = "return the value in 24 hour format (HH:MM)"
_EXACT_NAME = "Try to give the exact name of the venue or activity instead of using generic names."
_VENUE_NAME = "The name of the venue or activity without adding any other text"
_TEMPERATURE = "The temperature range for the destination in Celsius (e.g. '20-25°C')"


def _string(description: Optional[str] = None) -> Schema:
    schema: Schema = {"type": "STRING"}
    if description:
        schema["description"] = description
    return schema


def _object(
    properties: Dict[str, Schema],
    required: Optional[List[str]] = None,
    ordering: Optional[List[str]] = None,
) -> Schema:
    schema: Schema = {"type": "OBJECT", "properties": properties}
    if required:
        schema["required"] = required
    schema["propertyOrdering"] = ordering or list(properties)
    return schema


def _array(items: Schema) -> Schema:
    return {"type": "ARRAY", "items": items}


def _timing() -> Schema:
    return _object(
        {"start_time": _string(_HHMM), "end_time": _string(_HHMM)},
        required=["start_time", "end_time"],
    )


def _price() -> Schema:
    return _object(
        {
            "amount": {"type": "NUMBER"},
            "currency": _string(),
            "is_free": {"type": "BOOLEAN"},
        },
        required=["amount", "currency", "is_free"],
    )


def _activity(version: int) -> Schema:
    if version == 2:
        properties: Dict[str, Schema] = {
            "id": _string(),
            "name": _string(_EXACT_NAME),
            "venue_name": _string(_VENUE_NAME),
            "description": _string(),
            "category": {"type": "STRING", "enum": list(ACTIVITY_CATEGORIES)},
            "emoji": _string(),
            "timing": _timing(),
            "price": _price(),
            "booking": _object(
                {"requires_booking": {"type": "BOOLEAN"}},
                required=["requires_booking"],
            ),
        }
        fields = ["id", "name", "description", "category", "emoji", "timing", "price", "booking"]
        return _object(properties, required=fields, ordering=fields)

    properties = {
        "id": _string(),
        "name": _string(_EXACT_NAME),
        "description": _string(),
        "category": {"type": "STRING", "enum": list(ACTIVITY_CATEGORIES)},
        "emoji": _string(),
        "image_url": _string(),
        "timing": _timing(),
        "price": _price(),
        "location": _object({"address": _string(), "map_url": _string()}),
        "booking": _object(
            {
                "requires_booking": {"type": "BOOLEAN"},
                "booking_url": _string(),
                "details_url": _string(),
            },
            required=["requires_booking"],
        ),
    }
    return _object(
        properties,
        required=["id", "name", "description", "category", "emoji", "timing", "price"],
    )


def _cost_breakdown() -> Schema:
    line = _object(
        {"category": _string(), "amount": {"type": "NUMBER"}},
        required=["category", "amount"],
    )
    daily = _object(
        {"day": {"type": "INTEGER"}, "amount": {"type": "NUMBER"}, "breakdown": _array(line)},
        required=["day", "amount", "breakdown"],
    )
    return _object(
        {"total_cost": {"type": "NUMBER"}, "currency": _string(), "daily_costs": _array(daily)},
        required=["total_cost", "currency", "daily_costs"],
    )


def _itinerary_v1() -> Schema:
    weather = _object(
        {
            "condition": _string(),
            "emoji": _string(),
            "temperature_range": _string(_TEMPERATURE),
            "practical_tip": _string(),
        },
        required=["condition", "emoji", "temperature_range", "practical_tip"],
    )
    day = _object(
        {"theme": _string(), "activities": _array(_activity(1))},
        required=["activities"],
    )
    return _object(
        {
            "title": _string(),
            "destination": _string(),
            "summary": _string(),
            "weather": weather,
            "days": _array(day),
            "cost_breakdown": _cost_breakdown(),
            "country_emoji": _string(),
            "background_color": _string(),
        },
        required=["title", "destination", "summary", "weather", "days"],
    )


def _itinerary_v2() -> Schema:
    weather = _object(
        {
            "condition": _string(),
            "emoji": _string(),
            "temperature_range": _string(_TEMPERATURE),
        },
        required=["condition", "emoji", "temperature_range"],
    )
    day = _object({"activities": _array(_activity(2))}, required=["activities"])
    return _object(
        {
            "title": _string(),
            "destination": _string(),
            "weather": weather,
            "days": _array(day),
            "country_emoji": _string(),
            "background_color": _string(),
        },
        required=["title", "destination", "weather", "days", "country_emoji", "background_color"],
    )


def _shuffle(version: int) -> Schema:
    return _object({"activities": _array(_activity(version))}, required=["activities"])


def _edit(version: int) -> Schema:
    return _object({"activity": _activity(version)}, required=["activity"])


SCHEMAS: Dict[Tuple[str, int], Schema] = {
    ("itinerary", 1): _itinerary_v1(),
    ("itinerary", 2): _itinerary_v2(),
    ("shuffle", 1): _shuffle(1),
    ("shuffle", 2): _shuffle(2),
    ("edit", 1): _edit(1),
    ("edit", 2): _edit(2),
}


def select_schema(name: str, version: Optional[int]) -> Schema:
    """Unknown or missing versions fall back to version 1."""
    schema = SCHEMAS.get((name, version)) if version is not None else None
    if schema is None:
        schema = SCHEMAS[(name, DEFAULT_SCHEMA_VERSION)]
    return schema


__all__ = ["ACTIVITY_CATEGORIES", "SCHEMAS", "select_schema", "DEFAULT_SCHEMA_VERSION"]
