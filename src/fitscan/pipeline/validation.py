"""Domain validation rules, one per record kind.

The validator only checks the semantic minimum a caller needs to use a
record. The calorie-consistency heuristic (kcal ≈ 4p + 9f + 4c) lives in
the prompts and is not checked here.
"""

from __future__ import annotations

from collections.abc import Callable

from fitscan.core.records import (
    BodyAnalysis,
    DomainRecord,
    FoodAnalysis,
    VoiceFood,
    VoiceWorkout,
)
from fitscan.core.types import ValidationOutcome


def validate_food_analysis(record: FoodAnalysis) -> ValidationOutcome:
    if not record.food_items:
        return ValidationOutcome.fail("food item list is empty")
    return ValidationOutcome.ok()


def validate_voice_food(record: VoiceFood) -> ValidationOutcome:
    if not record.food_items:
        return ValidationOutcome.fail("food item list is empty")
    return ValidationOutcome.ok()


def validate_body_analysis(record: BodyAnalysis) -> ValidationOutcome:
    if not record.bmi > 0:
        return ValidationOutcome.fail("BMI must be positive")
    if not record.estimated_body_fat_percentage >= 0:
        return ValidationOutcome.fail("body-fat percentage missing or negative")
    if not record.estimated_muscle_percentage >= 0:
        return ValidationOutcome.fail("muscle percentage missing or negative")
    if not record.basal_metabolic_rate > 0:
        return ValidationOutcome.fail("BMR must be positive")
    return ValidationOutcome.ok()


def validate_voice_workout(record: VoiceWorkout) -> ValidationOutcome:
    if record.workout_data is None:
        return ValidationOutcome.fail("payload missing")
    return ValidationOutcome.ok()


_VALIDATORS: dict[type, Callable[..., ValidationOutcome]] = {
    FoodAnalysis: validate_food_analysis,
    VoiceFood: validate_voice_food,
    BodyAnalysis: validate_body_analysis,
    VoiceWorkout: validate_voice_workout,
}


def validate(record: DomainRecord) -> ValidationOutcome:
    """Check `record` against the rules for its kind."""
    validator = _VALIDATORS.get(type(record))
    if validator is None:
        return ValidationOutcome.fail(f"no validator for {type(record).__name__}")
    return validator(record)
