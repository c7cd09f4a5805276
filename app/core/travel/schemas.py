from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TripRequest(BaseModel):
    destination: str = Field(min_length=1)
    check_in_date: str = Field(min_length=1)
    check_out_date: str = Field(min_length=1)
    number_of_days: int = Field(ge=1, strict=True)
    planning_mode: str = Field(min_length=1)
    language: str = Field(min_length=1)
    additional_notes: Optional[str] = None
    schema_version: Optional[float] = Field(default=None, strict=True)
    preferred_currency: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @property
    def effective_schema_version(self) -> int:
        """Fractional or missing versions resolve to version 1."""
        version = self.schema_version
        if version is None or not float(version).is_integer():
            return 1
        return int(version)


class SchedulePreference(BaseModel):
    type: str
    name: str
    description: str
    time_range: str


class BudgetPreference(BaseModel):
    level: str
    description: str


class NamedOption(BaseModel):
    type: str
    name: str
    description: str


class QuestionnaireAnswers(BaseModel):
    travel_companion: Optional[str] = None
    group_size: Optional[int] = None
    schedule_preference: Optional[SchedulePreference] = None
    budget_preference: Optional[BudgetPreference] = None
    meal_preferences: Optional[List[str]] = None
    dietary_preferences: Optional[List[NamedOption]] = None
    travel_interests: Optional[List[NamedOption]] = None
    additional_details: Optional[str] = None


class InitialItineraryRequest(TripRequest):
    pass


class AdvancedItineraryRequest(TripRequest):
    questionnaire_answers: QuestionnaireAnswers


class ActivityRef(BaseModel):
    id: str
    name: str
    category: str
    time_slot: str
    day_number: int
    is_locked: bool


class ShuffleActivitiesRequest(TripRequest):
    existing_activities: List[ActivityRef]
    activities_to_replace: List[str] = Field(min_length=1)
    locked_activity_ids: List[str]
    # Newer clients send names directly; older ones only ids.
    activities_to_replace_names: Optional[List[str]] = None
    locked_activity_names: Optional[List[str]] = None
    all_activity_names: Optional[List[str]] = None


class EditActivityRequest(TripRequest):
    current_activity: ActivityRef
    user_request: str = Field(min_length=1)
    day_context: List[ActivityRef]
    all_activities: List[ActivityRef]


class TripDetailsRequest(BaseModel):
    tripId: str = Field(min_length=1)


class GenerationMetadata(BaseModel):
    model: str
    language: str
    schema_version: int
    generated_at: str
    user_id: str
    prompt_log_doc_id: Optional[str] = None


__all__ = [
    "TripRequest",
    "SchedulePreference",
    "BudgetPreference",
    "NamedOption",
    "QuestionnaireAnswers",
    "InitialItineraryRequest",
    "AdvancedItineraryRequest",
    "ActivityRef",
    "ShuffleActivitiesRequest",
    "EditActivityRequest",
    "TripDetailsRequest",
    "GenerationMetadata",
]
