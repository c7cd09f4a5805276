from __future__ import annotations

import re
from collections import OrderedDict
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from app.core.travel.schemas import (
    ActivityRef,
    EditActivityRequest,
    QuestionnaireAnswers,
    ShuffleActivitiesRequest,
    TripRequest,
)


PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"

LANGUAGE_TOKEN = "{{LANGUAGE}}"
CURRENCY_ANCHOR = re.compile(
    r"3\. CURRENCY: Use destination's local currency with realistic prices"
)
LOCAL_CURRENCY_RULE = "Use destination's local currency with realistic prices"


@lru_cache(maxsize=None)
def _load(name: str) -> str:
    path = PROMPTS_DIR / f"{name}.txt"
    with open(path, "r", encoding="utf-8") as handle:
        return handle.read().strip()


def template_for(task: str, version: Optional[int]) -> str:
    """Core rules plus the task section, V2 only when asked for explicitly."""
    suffix = "v2" if version == 2 else "v1"
    return f"{_load(f'core_{suffix}')}\n\n{_load(f'{task}_{suffix}')}"


def inject_language(prompt: str, language: str) -> str:
    return prompt.replace(LANGUAGE_TOKEN, language)


def apply_currency(prompt: str, version: Optional[int], preferred_currency: Optional[str]) -> str:
    if version == 2 and preferred_currency:
        rule = f"Use {preferred_currency} for all prices and cost estimates"
    else:
        rule = LOCAL_CURRENCY_RULE
    # No-op when the anchor is missing from the template.
    return CURRENCY_ANCHOR.sub(lambda _match: f"3. CURRENCY: {rule}", prompt, count=1)


def system_prompt(task: str, request: TripRequest) -> str:
    version = request.effective_schema_version
    prompt = apply_currency(template_for(task, version), version, request.preferred_currency)
    return inject_language(prompt, request.language)


def trip_context(request: TripRequest) -> str:
    lines = [
        f"Destination: {request.destination}",
        f"Dates: {request.check_in_date} to {request.check_out_date} "
        f"({request.number_of_days} days)",
    ]
    notes = request.additional_notes
    lines.append(f"Notes: {notes}" if notes and notes.strip() else "")
    return "\n".join(lines).strip()


def preferences_context(answers: QuestionnaireAnswers) -> str:
    lines: List[str] = []

    if answers.travel_companion:
        lines.append(f"Travel Style: {answers.travel_companion}")
        if answers.group_size and answers.travel_companion in ("friends", "family"):
            lines.append(f"Group Size: {answers.group_size} people")
            lines.append(
                f"CRITICAL: All activity suggestions must accommodate {answers.group_size} people. "
                "Consider group booking requirements and group-friendly venues."
            )

    schedule = answers.schedule_preference
    if schedule is not None:
        lines.append(f"Schedule Preference: {schedule.name} - {schedule.description}")
        lines.append(f"Preferred Time Range: {schedule.time_range}")
        lines.append(
            "CRITICAL: Optimize activity timing based on this schedule preference. "
            "Adjust start times and activity pacing to match the user's preferred "
            f"{schedule.time_range} schedule."
        )

    budget = answers.budget_preference
    if budget is not None:
        lines.append(f"Budget Level: {budget.level} - {budget.description}")
        lines.append(f"CRITICAL: All activities and dining must match {budget.level} standards")

    if answers.meal_preferences:
        lines.append(f"Required Meals: {', '.join(answers.meal_preferences)}")
    else:
        lines.append("Meals: None selected - skip all dining activities")

    if answers.dietary_preferences:
        restrictions = ", ".join(
            f"{item.name} ({item.description})" for item in answers.dietary_preferences
        )
        lines.append(f"Dietary Restrictions: {restrictions}")
        lines.append(
            "CRITICAL: All restaurant recommendations and food activities must "
            "accommodate these dietary restrictions"
        )

    if answers.travel_interests:
        lines.append("PRIMARY FOCUS AREAS (70%+ of activities):")
        for index, interest in enumerate(answers.travel_interests, start=1):
            lines.append(f"{index}. {interest.name} - {interest.description}")
        lines.append("ENSURE: Maximum variety within each interest category - no repeated activities")

    if answers.additional_details:
        lines.append(f"User Notes: {answers.additional_details}")
        lines.append("INTEGRATE: User's specific requests throughout the itinerary")

    return "\n".join(lines)


def _group_by_day(activities: Iterable[ActivityRef]) -> "OrderedDict[int, List[ActivityRef]]":
    grouped: Dict[int, List[ActivityRef]] = {}
    for activity in activities:
        grouped.setdefault(activity.day_number, []).append(activity)
    return OrderedDict(sorted(grouped.items()))


def _replacement_slots(activities: List[ActivityRef], to_replace: List[str]) -> str:
    wanted = set(to_replace)
    lines: List[str] = []
    for day, items in _group_by_day(a for a in activities if a.id in wanted).items():
        lines.append(f"Day {day}:")
        lines.extend(f"  {a.time_slot} - [REPLACE: {a.name}]" for a in items)
    return "\n".join(lines)


def _locked_activities(activities: List[ActivityRef]) -> str:
    lines: List[str] = []
    for day, items in _group_by_day(a for a in activities if a.is_locked).items():
        lines.append(f"Day {day}:")
        lines.extend(f"  {a.name} ({a.time_slot}) [LOCKED]" for a in items)
    return "\n".join(lines) if lines else "No locked activities to coordinate with"


def _all_activities(activities: List[ActivityRef]) -> str:
    lines: List[str] = []
    for day, items in _group_by_day(activities).items():
        lines.append(f"Day {day}:")
        for activity in items:
            lock = " [LOCKED]" if activity.is_locked else ""
            lines.append(f"  {activity.name} ({activity.time_slot}){lock}")
    return "\n".join(lines)


def shuffle_context(request: ShuffleActivitiesRequest) -> str:
    """Expects a request that already went through ``normalize_shuffle_request``."""
    to_replace = request.activities_to_replace_names or []
    locked = request.locked_activity_names or []
    exclusions = [name for name in request.all_activity_names or [] if name not in to_replace]
    numbered = "\n".join(f"{index}. {name}" for index, name in enumerate(to_replace, start=1))

    return "\n".join(
        [
            f"TRIP: {request.destination}, {request.number_of_days} days",
            "",
            f"TASK: Generate {len(to_replace)} COMPLETELY NEW activities to replace these old ones:",
            numbered,
            "",
            "CRITICAL: You must suggest ENTIRELY DIFFERENT activities. "
            "Do NOT return any of the activities listed above.",
            "",
            "TIME SLOTS TO FILL:",
            _replacement_slots(request.existing_activities, request.activities_to_replace),
            "",
            f"PRESERVE THESE LOCKED ACTIVITIES: {', '.join(locked)}",
            "",
            f"NEVER SUGGEST any of these existing activities: {', '.join(exclusions)}",
            "",
            "CONTEXT - LOCKED ACTIVITIES TO COORDINATE WITH:",
            _locked_activities(request.existing_activities),
        ]
    )


def edit_context(request: EditActivityRequest) -> str:
    current = request.current_activity
    day = ", ".join(f"{a.name} ({a.time_slot})" for a in request.day_context)
    return "\n".join(
        [
            f"TRIP: {request.destination}",
            f"CURRENT ACTIVITY: {current.name} ({current.time_slot})",
            f"USER REQUEST: {request.user_request}",
            "",
            f"DAY CONTEXT: {day}",
            f"ALL ACTIVITIES: {_all_activities(request.all_activities)}",
        ]
    )


def build_quick_prompt(request: TripRequest) -> str:
    return f"{system_prompt('quick', request)}\n\nTRIP DETAILS:\n{trip_context(request)}"


def build_personalized_prompt(request: TripRequest, answers: QuestionnaireAnswers) -> str:
    return (
        f"{system_prompt('personalized', request)}\n\n"
        f"TRIP DETAILS:\n{trip_context(request)}\n\n"
        f"USER PREFERENCES:\n{preferences_context(answers)}"
    )


def build_shuffle_prompt(request: ShuffleActivitiesRequest) -> str:
    return f"{system_prompt('shuffle', request)}\n\n{shuffle_context(request)}"


def build_edit_prompt(request: EditActivityRequest) -> str:
    return f"{system_prompt('edit', request)}\n\n{edit_context(request)}"


__all__ = [
    "template_for",
    "inject_language",
    "apply_currency",
    "trip_context",
    "preferences_context",
    "shuffle_context",
    "edit_context",
    "build_quick_prompt",
    "build_personalized_prompt",
    "build_shuffle_prompt",
    "build_edit_prompt",
]
