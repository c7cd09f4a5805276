from __future__ import annotations

import secrets
import string
import time
from typing import Dict, Optional


SUPPORTED_LANGUAGES: Dict[str, Dict[str, str]] = {
    "en": {"name": "English", "native_name": "English"},
    "ar": {"name": "Arabic", "native_name": "العربية"},
    "es": {"name": "Spanish", "native_name": "Español"},
    "fr": {"name": "French", "native_name": "Français"},
    "de": {"name": "German", "native_name": "Deutsch"},
    "it": {"name": "Italian", "native_name": "Italiano"},
    "pt": {"name": "Portuguese", "native_name": "Português"},
    "ru": {"name": "Russian", "native_name": "Русский"},
    "ja": {"name": "Japanese", "native_name": "日本語"},
    "ko": {"name": "Korean", "native_name": "한국어"},
    "zh": {"name": "Chinese", "native_name": "中文"},
    "hi": {"name": "Hindi", "native_name": "हिन्दी"},
    "tr": {"name": "Turkish", "native_name": "Türkçe"},
    "nl": {"name": "Dutch", "native_name": "Nederlands"},
    "sv": {"name": "Swedish", "native_name": "Svenska"},
}

UNIT_SYSTEMS = ("metric", "imperial")

ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "image_analysis_failed": {
        "en": "Unable to analyze the food image. Please try with a clearer photo.",
        "ar": "تعذر تحليل صورة الطعام. يرجى المحاولة بصورة أوضح.",
        "es": "No se pudo analizar la imagen de comida. Intenta con una foto más clara.",
        "fr": "Impossible d'analyser l'image de nourriture. Essayez avec une photo plus claire.",
        "de": "Lebensmittelbild konnte nicht analysiert werden. Versuchen Sie es mit einem klareren Foto.",
    },
    "nutrition_calculation_failed": {
        "en": "Unable to calculate nutrition information. Please verify the ingredients.",
        "ar": "تعذر حساب المعلومات الغذائية. يرجى التحقق من المكونات.",
        "es": "No se pudo calcular la información nutricional. Verifica los ingredientes.",
        "fr": "Impossible de calculer les informations nutritionnelles. Vérifiez les ingrédients.",
        "de": "Nährwertinformationen konnten nicht berechnet werden. Überprüfen Sie die Zutaten.",
    },
}

_SESSION_ALPHABET = string.ascii_lowercase + string.digits


def validate_language(language: Optional[str]) -> str:
    return language if language in SUPPORTED_LANGUAGES else "en"


def validate_unit_system(unit_system: Optional[str]) -> str:
    return unit_system if unit_system in UNIT_SYSTEMS else "metric"


def error_message(error_code: str, language: str = "en") -> str:
    messages = ERROR_MESSAGES.get(error_code) or {}
    return messages.get(language) or messages.get("en") or "An unexpected error occurred."


def generate_session_id() -> str:
    suffix = "".join(secrets.choice(_SESSION_ALPHABET) for _ in range(9))
    return f"food_{int(time.time() * 1000)}_{suffix}"


def _native_name(language: str) -> str:
    return SUPPORTED_LANGUAGES.get(language, SUPPORTED_LANGUAGES["en"])["native_name"]


def meal_image_prompt(language: str = "en", unit_system: str = "metric", notes: str = "") -> str:
    native = _native_name(language)
    metric = unit_system == "metric"
    context = f'Context: "{notes}" - adjust estimates accordingly.' if notes else ""
    user_note = f'User specified: "{notes}"' if notes else ""

    return f"""Mobile food photo analysis for quick calorie logging.

Response language: {native} ({language})
{context}

**STEP 1 - VALIDATE** (Critical - fail fast):
Food validity score 0.0-1.0:
• 0.0-0.25: Not food → STOP, warn user
• 0.25-0.75: Uncertain → proceed with caution
• 0.75-1.0: Definitely food → full analysis

Categories: meal | packaged_food | beverage | non_food | unclear

**STEP 2 - IDENTIFY**:
• Meal name (specific, in {native})
• Serving size estimate
• Account for mobile photo limitations (angles, lighting, partial view)

**STEP 3 - CALCULATE**:
Total nutrition per visible serving:
• Calories: 50-2000 kcal
• Protein: 0-200g
• Carbs: 0-300g
• Fat: 0-150g

Quick portion references ({unit_system}):
• Protein: palm = {'120g' if metric else '4oz'}
• Carbs: fist = {'150g' if metric else '1 cup'}
• Fat: thumb = {'15g' if metric else '1 tbsp'}

Adjustments:
• Restaurant food: +25% calories
• Fried food: +15% calories
• Poor lighting/angle: be conservative
• {user_note}

**OUTPUT** (JSON only):
{{
  "mealName": "specific dish name",
  "nutrition": {{"calories": 0, "protein": 0, "carbs": 0, "fat": 0}},
  "confidence": 0.0,
  "foodValidity": {{"score": 0.0, "isFood": false, "category": "meal"}},
  "servingSize": "estimated size",
  "language": "{language}",
  "unitSystem": "{unit_system}"
}}

Analyze now."""


def label_image_prompt(language: str = "en", unit_system: str = "metric", notes: str = "") -> str:
    native = _native_name(language)
    portion = f'Portion: "{notes}" - adjust nutrition values accordingly.' if notes else ""
    user_note = f'User note: "{notes}"' if notes else ""

    return f"""Mobile nutrition label OCR for quick calorie logging.

Response language: {native} ({language})
{portion}

**STEP 1 - VALIDATE** (Critical):
Label readability score 0.0-1.0:
• 0.0-0.25: Not a nutrition label → STOP
• 0.25-0.75: Partially readable → estimate missing
• 0.75-1.0: Clear label → extract exact values

Categories: packaged_food | beverage | meal | unclear | non_food

**STEP 2 - EXTRACT**:
Read from nutrition facts panel:
• Product name (in {native})
• Serving size (e.g., "1 cup (40g)", "25 gm")
• Servings per container/package (CRITICAL - look for "0.5", "2.5", etc.)
• Calories per serving (from label)
• Total Fat per serving (g)
• Total Carbs per serving (g)
• Protein per serving (g)

**STEP 2B - CALCULATE ACTUAL PACKAGE NUTRITION**:
Determine what user is consuming:
• If "servings per container" = 1.0 → return per-serving values
• If "servings per container" ≠ 1.0 → multiply all nutrition × servings per container
• This gives nutrition for the ENTIRE package (what user typically consumes)

Example calculation:
• Label: 134 calories per serving, 0.5 servings per container
• Package total: 134 × 0.5 = 67 calories
• Return: 67 calories (actual package content)

**STEP 3 - ADJUST FOR USER CONSUMPTION**:
After calculating package nutrition, apply any additional adjustments:
• "half package" → ×0.5
• "two packages" → ×2.0
• "quarter package" → ×0.25
• {user_note}

Default behavior: Return nutrition for entire package (most common use case)

Mobile photo considerations:
• Blurry text: use context clues
• Partial visibility: estimate from visible
• Poor angle: read what's clear

**OUTPUT** (JSON only):
{{
  "mealName": "product name from label",
  "nutrition": {{"calories": 0, "protein": 0, "carbs": 0, "fat": 0}},
  "confidence": 0.0,
  "foodValidity": {{"score": 0.0, "isFood": false, "category": "packaged_food"}},
  "servingSize": "from label (e.g., 25 gm)",
  "servingsPerContainer": 0.0,
  "nutritionCalculation": "package_total",
  "servingsAnalyzed": 1.0,
  "language": "{language}",
  "unitSystem": "{unit_system}"
}}

Read label now."""


def meal_text_prompt(
    text: str,
    language: str = "en",
    unit_system: str = "metric",
    notes: str = "",
) -> str:
    native = _native_name(language)
    metric = unit_system == "metric"
    context = f'Additional context: "{notes}" - adjust estimates accordingly.' if notes else ""

    return f"""Text-based meal analysis for nutrition estimation.

Response language: {native} ({language})
{context}

**STEP 1 - VALIDATE TEXT** (Critical):
Food relevance score 0.0-1.0:
• 0.8-1.0: Clear food description ("grilled chicken with rice", "2 apples")
• 0.5-0.7: Vague but food-related ("healthy lunch", "something sweet")
• 0.2-0.4: Unclear food reference ("meal", "food")
• 0.0-0.1: Not food-related ("hello world", "my cat", "123")

Categories: meal | snack | beverage | non_food | unclear

**STEP 2 - PARSE MEAL DESCRIPTION**:
Extract from text: "{text}"
• Identify specific foods mentioned
• Parse quantities when specified ("2 slices", "large portion", "cup of")
• Infer cooking methods ("grilled", "fried", "steamed", "raw")
• Estimate portions when not specified using common serving sizes

**STEP 3 - CALCULATE NUTRITION**:
Total nutrition for described meal:
• Calories: 20-2500 kcal (realistic range)
• Protein: 0-200g
• Carbs: 0-300g
• Fat: 0-150g

Standard portion references ({unit_system}):
• Meat/Fish: {'120g (palm size)' if metric else '4oz (palm size)'}
• Rice/Pasta: {'150g (fist size)' if metric else '1 cup (fist size)'}
• Vegetables: {'80g (handful)' if metric else '3oz (handful)'}
• Bread: {'30g (1 slice)' if metric else '1 slice'}

Estimation strategies:
• Use USDA/nutrition database values
• Apply cooking method adjustments (fried +15% calories)
• Default to medium portions if size not specified
• Account for common preparation methods
• Be conservative but realistic with estimates

**STEP 4 - CONFIDENCE ASSESSMENT**:
Rate confidence based on:
• Text specificity (specific foods vs. vague terms)
• Quantity clarity (exact amounts vs. estimated)
• Cooking method clarity (specified vs. assumed)
• Overall completeness of description

**OUTPUT** (JSON only):
{{
  "mealName": "descriptive meal name in {native}",
  "nutrition": {{"calories": 0, "protein": 0, "carbs": 0, "fat": 0}},
  "confidence": 0.0,
  "foodValidity": {{"score": 0.0, "isFood": false, "category": "meal"}},
  "servingSize": "estimated from text",
  "servingsAnalyzed": 1.0,
  "nutritionCalculation": "text_estimation",
  "language": "{language}",
  "unitSystem": "{unit_system}"
}}

Analyze text now."""


__all__ = [
    "SUPPORTED_LANGUAGES",
    "UNIT_SYSTEMS",
    "ERROR_MESSAGES",
    "validate_language",
    "validate_unit_system",
    "error_message",
    "generate_session_id",
    "meal_image_prompt",
    "label_image_prompt",
    "meal_text_prompt",
]
