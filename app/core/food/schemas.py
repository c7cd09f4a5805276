from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AnalyzeImageRequest(BaseModel):
    storagePath: str = Field(min_length=1)
    language: Optional[str] = "en"
    unitSystem: Optional[Literal["metric", "imperial"]] = None
    notes: Optional[str] = Field(default="", max_length=200)

    model_config = ConfigDict(extra="ignore")


class AnalyzeTextRequest(BaseModel):
    text: str
    language: Optional[str] = "en"
    unitSystem: Optional[Literal["metric", "imperial"]] = None
    notes: Optional[str] = ""

    model_config = ConfigDict(extra="ignore")

    @field_validator("text")
    @classmethod
    def check_text_length(cls, value: str) -> str:
        length = len(value.strip())
        if length < 2:
            raise ValueError("text must be at least 2 characters long")
        if length > 500:
            raise ValueError("text must be less than 500 characters")
        return value


class MealIngredient(BaseModel):
    name: str

    model_config = ConfigDict(extra="allow")


class MealNutrition(BaseModel):
    calories: float = Field(ge=0)
    protein: float = Field(ge=0)
    carbohydrates: float = Field(ge=0)
    fat: float = Field(ge=0)

    model_config = ConfigDict(extra="allow")


class SaveMealEntryRequest(BaseModel):
    sessionId: Optional[str] = None
    mealName: str = Field(min_length=1)
    mealType: Literal["breakfast", "lunch", "dinner", "snack"]
    ingredients: List[MealIngredient] = Field(min_length=1)
    nutrition: MealNutrition
    confidence: Optional[float] = Field(default=None, ge=0, le=1)
    notes: Optional[str] = None
    storagePath: str = Field(min_length=1)
    timestamp: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")


__all__ = [
    "AnalyzeImageRequest",
    "AnalyzeTextRequest",
    "MealIngredient",
    "MealNutrition",
    "SaveMealEntryRequest",
]
