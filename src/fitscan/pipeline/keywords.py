"""Keyword matching against the fallback tables.

Used by the last recovery stage to rebuild a node tree from prose, and by
the fallback synthesizer to pick a dish or workout type. Keywords match
at word starts in the lower-cased text, so inflected forms still hit.
When several entries match, the one mentioned first in the text wins.
"""

from __future__ import annotations

import functools
import re
from typing import Any

from fitscan.constants import KEYWORD_RECONSTRUCTION_CONFIDENCE
from fitscan.core.types import RecordKind
from fitscan.tables import DishDefault, ExerciseKeyword, FallbackTables, FoodKeyword


# A quoted object key such as `"cardioData":`
_JSON_KEY = re.compile(r'"[^"\\\n]*"\s*:')


@functools.cache
def _pattern(keyword: str) -> re.Pattern[str]:
    return re.compile(r"(?<!\w)" + re.escape(keyword))


def first_position(text: str, keywords: tuple[str, ...]) -> int | None:
    """Return the earliest index at which any keyword starts a word."""
    positions = [
        m.start() for kw in keywords if (m := _pattern(kw).search(text)) is not None
    ]
    return min(positions) if positions else None


def searchable(text: str) -> str:
    """Lower-case `text` and blank out JSON key names."""
    return _JSON_KEY.sub(" ", text.lower())


def match_food(text: str, tables: FallbackTables) -> FoodKeyword | None:
    lowered = searchable(text)
    best: tuple[int, FoodKeyword] | None = None
    for entry in tables.food_keywords:
        pos = first_position(lowered, entry.keywords)
        if pos is not None and (best is None or pos < best[0]):
            best = (pos, entry)
    return best[1] if best else None


def match_exercise(text: str, tables: FallbackTables) -> ExerciseKeyword | None:
    lowered = searchable(text)
    best: tuple[int, ExerciseKeyword] | None = None
    for entry in tables.exercise_keywords:
        pos = first_position(lowered, entry.keywords)
        if pos is not None and (best is None or pos < best[0]):
            best = (pos, entry)
    return best[1] if best else None


def mentions_cardio(text: str | None, tables: FallbackTables) -> bool:
    if not text:
        return False
    return first_position(searchable(text), tables.cardio_keywords) is not None


# --- Node reconstruction ---


def dish_node(dish: DishDefault, confidence: float) -> dict[str, Any]:
    """Render a table dish in the vendor's food item shape."""
    return {
        "name": dish.name,
        "estimatedWeight": dish.weight,
        "weightType": dish.weight_type,
        "description": dish.description,
        "nutritionPer100g": {
            "calories": dish.calories,
            "proteins": dish.proteins,
            "fats": dish.fats,
            "carbs": dish.carbs,
        },
        "totalCalories": dish.total_calories,
        "confidence": confidence,
    }


def _workout_node(entry: ExerciseKeyword, tables: FallbackTables) -> dict[str, Any]:
    if entry.type == "cardio":
        return {
            "type": "cardio",
            "estimatedCalories": tables.cardio.calories,
            "cardioData": {"cardioType": entry.name},
        }
    defaults = tables.strength
    return {
        "type": "strength",
        "estimatedCalories": defaults.calories,
        "strengthData": [
            {
                "name": entry.name,
                "muscleGroup": entry.muscle_group or defaults.muscle_group,
                "equipment": entry.equipment or defaults.equipment,
                "workingWeight": 0,
                "restTimeSeconds": defaults.rest_time_seconds,
                "sets": [
                    {
                        "setNumber": 1,
                        "weight": None,
                        "reps": defaults.reps,
                        "isCompleted": True,
                    }
                ],
            }
        ],
    }


def reconstruct_node(
    text: str, kind: RecordKind, tables: FallbackTables
) -> dict[str, Any] | None:
    """Synthesize a minimal node tree from the first keyword in `text`.

    Returns None when nothing in the text matches, or for body analysis,
    which has no keyword table.
    """
    transcript = text.strip()
    if kind in (RecordKind.FOOD_ANALYSIS, RecordKind.VOICE_FOOD):
        entry = match_food(text, tables)
        if entry is None:
            return None
        item = dish_node(entry.dish, KEYWORD_RECONSTRUCTION_CONFIDENCE)
        if kind is RecordKind.VOICE_FOOD:
            return {
                "transcribedText": transcript,
                "foodItems": [item],
                "estimatedTotalCalories": item["totalCalories"],
            }
        return {
            "foodItems": [item],
            "estimatedCalories": item["totalCalories"],
            "fullDescription": f"{entry.dish.name} (recognized from text)",
        }

    if kind is RecordKind.VOICE_WORKOUT:
        exercise = match_exercise(text, tables)
        if exercise is None:
            return None
        return {
            "transcribedText": transcript,
            "workoutData": _workout_node(exercise, tables),
        }

    return None
