from __future__ import annotations

from typing import Any, Dict


Schema = Dict[str, Any]


def _field(kind: str, description: str, **extra: Any) -> Schema:
    return {"type": kind, "description": description, **extra}


FOOD_VALIDITY_SCHEMA: Schema = {
    "type": "OBJECT",
    "properties": {
        "score": _field("NUMBER", "Confidence score that this is food (0.0-1.0)"),
        "isFood": _field("BOOLEAN", "Boolean determination if this is food"),
        "warningMessage": _field("STRING", "Warning message if food validity is low"),
        "category": _field(
            "STRING",
            "Category of the analyzed content",
            enum=["meal", "packaged_food", "beverage", "non_food", "unclear"],
        ),
    },
    "required": ["score", "isFood", "category"],
    "propertyOrdering": ["score", "isFood", "category", "warningMessage"],
}

NUTRITION_SCHEMA: Schema = {
    "type": "OBJECT",
    "properties": {
        "calories": _field("NUMBER", "Total calories (kcal)"),
        "protein": _field("NUMBER", "Total protein in grams"),
        "carbs": _field("NUMBER", "Total carbohydrates in grams"),
        "fat": _field("NUMBER", "Total fat in grams"),
    },
    "required": ["calories", "protein", "carbs", "fat"],
    "propertyOrdering": ["calories", "protein", "carbs", "fat"],
}

_SERVING_FIELDS: Schema = {
    "servingSize": _field("STRING", "Detected or estimated serving size"),
    "servingsAnalyzed": _field("NUMBER", "Number of servings analyzed (default 1.0)"),
    "servingsPerContainer": _field(
        "NUMBER", "Number of servings per container/package from label"
    ),
    "nutritionCalculation": _field(
        "STRING", "How nutrition was calculated (per_serving, package_total, etc.)"
    ),
}

MOBILE_ANALYSIS_SCHEMA: Schema = {
    "type": "OBJECT",
    "properties": {
        "mealName": _field("STRING", "Name of the meal or food item"),
        "nutrition": NUTRITION_SCHEMA,
        "confidence": _field("NUMBER", "Overall confidence score (0.0-1.0)"),
        "foodValidity": FOOD_VALIDITY_SCHEMA,
        **_SERVING_FIELDS,
        "language": _field("STRING", "Language used for responses"),
        "unitSystem": _field("STRING", "Unit system used", enum=["metric", "imperial"]),
    },
    "required": ["mealName", "nutrition", "confidence", "foodValidity"],
    "propertyOrdering": [
        "mealName",
        "nutrition",
        "confidence",
        "foodValidity",
        "servingSize",
        "servingsAnalyzed",
        "servingsPerContainer",
        "nutritionCalculation",
        "language",
        "unitSystem",
    ],
}


__all__ = [
    "FOOD_VALIDITY_SCHEMA",
    "NUTRITION_SCHEMA",
    "MOBILE_ANALYSIS_SCHEMA",
]
