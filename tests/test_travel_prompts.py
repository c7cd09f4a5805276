from __future__ import annotations

from typing import Any, Dict

from app.core.travel import prompts
from app.core.travel.normalization import normalize_shuffle_request
from app.core.travel.output_schemas import SCHEMAS, select_schema
from app.core.travel.schemas import (
    AdvancedItineraryRequest,
    InitialItineraryRequest,
    ShuffleActivitiesRequest,
)


def _trip(**overrides: Any) -> Dict[str, Any]:
    payload = {
        "destination": "Paris",
        "check_in_date": "2025-06-01",
        "check_out_date": "2025-06-04",
        "number_of_days": 3,
        "planning_mode": "quick",
        "language": "English",
        "schema_version": 1,
    }
    payload.update(overrides)
    return payload


def test_quick_prompt_is_deterministic() -> None:
    first = prompts.build_quick_prompt(InitialItineraryRequest.model_validate(_trip()))
    second = prompts.build_quick_prompt(InitialItineraryRequest.model_validate(_trip()))
    assert first == second
    assert "{{LANGUAGE}}" not in first
    assert "in English language" in first
    assert first.endswith(
        "TRIP DETAILS:\nDestination: Paris\nDates: 2025-06-01 to 2025-06-04 (3 days)"
    )


def test_notes_are_appended_to_trip_context() -> None:
    request = InitialItineraryRequest.model_validate(_trip(additional_notes="vegan food"))
    assert prompts.trip_context(request).endswith("Notes: vegan food")


def test_v2_prompt_uses_preferred_currency() -> None:
    request = InitialItineraryRequest.model_validate(
        _trip(schema_version=2, preferred_currency="EUR")
    )
    prompt = prompts.build_quick_prompt(request)
    assert "3. CURRENCY: Use EUR for all prices and cost estimates" in prompt
    assert "Use destination's local currency" not in prompt


def test_v1_prompt_ignores_preferred_currency() -> None:
    request = InitialItineraryRequest.model_validate(_trip(preferred_currency="EUR"))
    prompt = prompts.build_quick_prompt(request)
    assert "3. CURRENCY: Use destination's local currency with realistic prices" in prompt
    assert "EUR" not in prompt


def test_currency_substitution_without_anchor_is_a_noop() -> None:
    template = "RULES:\n1. Be concise"
    assert prompts.apply_currency(template, 2, "JPY") == template


def test_personalized_prompt_includes_preferences() -> None:
    request = AdvancedItineraryRequest.model_validate(
        _trip(
            planning_mode="personalized",
            questionnaire_answers={
                "travel_companion": "friends",
                "group_size": 4,
                "budget_preference": {"level": "luxury", "description": "Best of everything"},
                "meal_preferences": ["breakfast", "dinner"],
                "travel_interests": [
                    {"type": "art", "name": "Art", "description": "Museums and galleries"},
                ],
            },
        )
    )
    prompt = prompts.build_personalized_prompt(request, request.questionnaire_answers)
    assert "USER PREFERENCES:" in prompt
    assert "Group Size: 4 people" in prompt
    assert "Budget Level: luxury - Best of everything" in prompt
    assert "Required Meals: breakfast, dinner" in prompt
    assert "1. Art - Museums and galleries" in prompt


def test_preferences_without_meals_skip_dining() -> None:
    request = AdvancedItineraryRequest.model_validate(
        _trip(questionnaire_answers={"travel_companion": "solo"})
    )
    context = prompts.preferences_context(request.questionnaire_answers)
    assert "Meals: None selected - skip all dining activities" in context
    assert "Group Size" not in context


def _shuffle_payload(**overrides: Any) -> Dict[str, Any]:
    payload = _trip(
        existing_activities=[
            {"id": "a1", "name": "Louvre", "category": "culture", "time_slot": "09:00", "day_number": 1, "is_locked": False},
            {"id": "a2", "name": "Eiffel Tower", "category": "sightseeing", "time_slot": "14:00", "day_number": 1, "is_locked": True},
            {"id": "a3", "name": "Montmartre", "category": "walking", "time_slot": "10:00", "day_number": 2, "is_locked": False},
        ],
        activities_to_replace=["a1", "a3"],
        locked_activity_ids=["a2"],
    )
    payload.update(overrides)
    return payload


def test_shuffle_names_fall_back_to_existing_activities() -> None:
    request = normalize_shuffle_request(
        ShuffleActivitiesRequest.model_validate(_shuffle_payload())
    )
    assert request.activities_to_replace_names == ["Louvre", "Montmartre"]
    assert request.locked_activity_names == ["Eiffel Tower"]
    assert request.all_activity_names == ["Louvre", "Eiffel Tower", "Montmartre"]


def test_shuffle_names_from_newer_clients_are_kept() -> None:
    request = normalize_shuffle_request(
        ShuffleActivitiesRequest.model_validate(
            _shuffle_payload(activities_to_replace_names=["Old Museum"])
        )
    )
    assert request.activities_to_replace_names == ["Old Museum"]


def test_shuffle_prompt_lists_slots_and_exclusions() -> None:
    request = normalize_shuffle_request(
        ShuffleActivitiesRequest.model_validate(_shuffle_payload())
    )
    prompt = prompts.build_shuffle_prompt(request)
    assert "Generate 2 COMPLETELY NEW activities" in prompt
    assert "Day 1:\n  09:00 - [REPLACE: Louvre]\nDay 2:\n  10:00 - [REPLACE: Montmartre]" in prompt
    assert "PRESERVE THESE LOCKED ACTIVITIES: Eiffel Tower" in prompt
    assert "NEVER SUGGEST any of these existing activities: Eiffel Tower" in prompt
    assert "Eiffel Tower (14:00) [LOCKED]" in prompt


def test_unknown_schema_version_falls_back_to_v1() -> None:
    for name in ("itinerary", "shuffle", "edit"):
        assert select_schema(name, 7) is SCHEMAS[(name, 1)]
        assert select_schema(name, None) is SCHEMAS[(name, 1)]
        assert select_schema(name, 2) is SCHEMAS[(name, 2)]


def test_fractional_schema_version_resolves_to_v1() -> None:
    request = InitialItineraryRequest.model_validate(
        _trip(schema_version=2.5, preferred_currency="EUR")
    )
    assert request.effective_schema_version == 1
    prompt = prompts.build_quick_prompt(request)
    assert "3. CURRENCY: Use destination's local currency with realistic prices" in prompt

    assert InitialItineraryRequest.model_validate(_trip(schema_version=2)).effective_schema_version == 2
    assert InitialItineraryRequest.model_validate(_trip(schema_version=None)).effective_schema_version == 1
