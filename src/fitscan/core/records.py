"""Canonical domain records, one per analysis kind.

Records are frozen and hold tuples instead of lists, so no stage can
mutate a record produced by an earlier one. Field names are snake_case in
Python and serialize to the camelCase names the vendor prompts use.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime
import math
import typing

from fitscan.core.types import RecordKind, _is_tuple_of, _require

WeightUnit = typing.Literal["g", "ml"]
WorkoutType = typing.Literal["strength", "cardio"]

WEIGHT_UNITS: tuple[str, ...] = ("g", "ml")
WORKOUT_TYPES: tuple[str, ...] = ("strength", "cardio")


def _is_finite(value: object) -> bool:
    return (
        isinstance(value, int | float)
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _require_finite(value: object, field_name: str, *, minimum: float = 0) -> None:
    _require(
        condition=_is_finite(value) and value >= minimum,  # type: ignore[operator]
        message=f"must be a finite number >= {minimum}",
        field_name=field_name,
    )


def _optional(value: typing.Any) -> typing.Any:
    return value.to_dict() if value is not None else None


# --- Food ---


@dataclasses.dataclass(frozen=True, slots=True)
class NutritionPer100g:
    """Macro nutrients per 100 g (or 100 ml for liquids)."""

    calories: float
    proteins: float
    fats: float
    carbs: float

    def __post_init__(self) -> None:
        for name in ("calories", "proteins", "fats", "carbs"):
            _require_finite(getattr(self, name), name)

    def to_dict(self) -> dict[str, float]:
        return {
            "calories": self.calories,
            "proteins": self.proteins,
            "fats": self.fats,
            "carbs": self.carbs,
        }


@dataclasses.dataclass(frozen=True, slots=True)
class FoodItem:
    """A single recognized dish or product."""

    name: str
    estimated_weight: float
    weight_type: WeightUnit
    nutrition_per_100g: NutritionPer100g
    total_calories: int
    confidence: float
    description: str = ""

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.name, str) and self.name.strip() != "",
            message="must be a non-empty str",
            field_name="name",
            exc=TypeError,
        )
        _require_finite(self.estimated_weight, "estimated_weight")
        _require(
            condition=self.weight_type in WEIGHT_UNITS,
            message=f"must be one of {list(WEIGHT_UNITS)}, got {self.weight_type!r}",
            field_name="weight_type",
        )
        _require(
            condition=isinstance(self.nutrition_per_100g, NutritionPer100g),
            message="must be NutritionPer100g",
            field_name="nutrition_per_100g",
            exc=TypeError,
        )
        _require(
            condition=isinstance(self.total_calories, int)
            and not isinstance(self.total_calories, bool)
            and self.total_calories >= 0,
            message="must be an int >= 0",
            field_name="total_calories",
        )
        _require(
            condition=_is_finite(self.confidence) and 0.0 <= self.confidence <= 1.0,
            message="must be within [0, 1]",
            field_name="confidence",
        )

    def to_dict(self) -> dict[str, typing.Any]:
        return {
            "name": self.name,
            "estimatedWeight": self.estimated_weight,
            "weightType": self.weight_type,
            "description": self.description,
            "nutritionPer100g": self.nutrition_per_100g.to_dict(),
            "totalCalories": self.total_calories,
            "confidence": self.confidence,
        }


@dataclasses.dataclass(frozen=True, slots=True)
class FoodAnalysis:
    """Result of a food photo analysis."""

    kind: typing.ClassVar[RecordKind] = RecordKind.FOOD_ANALYSIS

    food_items: tuple[FoodItem, ...]
    estimated_calories: int
    full_description: str = ""

    def __post_init__(self) -> None:
        _require(
            condition=_is_tuple_of(self.food_items, FoodItem),
            message="must be a tuple[FoodItem, ...]",
            field_name="food_items",
            exc=TypeError,
        )

    def to_dict(self) -> dict[str, typing.Any]:
        return {
            "foodItems": [item.to_dict() for item in self.food_items],
            "estimatedCalories": self.estimated_calories,
            "fullDescription": self.full_description,
        }


@dataclasses.dataclass(frozen=True, slots=True)
class VoiceFood:
    """Food items dictated by voice."""

    kind: typing.ClassVar[RecordKind] = RecordKind.VOICE_FOOD

    transcribed_text: str
    food_items: tuple[FoodItem, ...]
    estimated_total_calories: int

    def __post_init__(self) -> None:
        _require(
            condition=_is_tuple_of(self.food_items, FoodItem),
            message="must be a tuple[FoodItem, ...]",
            field_name="food_items",
            exc=TypeError,
        )

    def to_dict(self) -> dict[str, typing.Any]:
        return {
            "transcribedText": self.transcribed_text,
            "foodItems": [item.to_dict() for item in self.food_items],
            "estimatedTotalCalories": self.estimated_total_calories,
        }


# --- Body ---


@dataclasses.dataclass(frozen=True, slots=True)
class BodyAnalysis:
    """Result of a body photo analysis.

    Serializes to the nested `bodyAnalysis` / `recommendations` /
    `fullAnalysis` layout the body prompt asks the vendor for.
    """

    kind: typing.ClassVar[RecordKind] = RecordKind.BODY_ANALYSIS

    estimated_body_fat_percentage: float
    estimated_muscle_percentage: float
    body_type: str
    posture_analysis: str
    overall_condition: str
    bmi: float
    bmi_category: str
    estimated_waist_circumference: float
    estimated_chest_circumference: float
    estimated_hip_circumference: float
    basal_metabolic_rate: int
    metabolic_rate_category: str
    exercise_recommendations: tuple[str, ...] = ()
    nutrition_recommendations: tuple[str, ...] = ()
    training_focus: str = ""
    recommendations: tuple[str, ...] = ()
    full_analysis: str = ""

    def __post_init__(self) -> None:
        for name in (
            "exercise_recommendations",
            "nutrition_recommendations",
            "recommendations",
        ):
            _require(
                condition=_is_tuple_of(getattr(self, name), str),
                message="must be a tuple[str, ...]",
                field_name=name,
                exc=TypeError,
            )

    def to_dict(self) -> dict[str, typing.Any]:
        return {
            "bodyAnalysis": {
                "estimatedBodyFatPercentage": self.estimated_body_fat_percentage,
                "estimatedMusclePercentage": self.estimated_muscle_percentage,
                "bodyType": self.body_type,
                "postureAnalysis": self.posture_analysis,
                "overallCondition": self.overall_condition,
                "bmi": self.bmi,
                "bmiCategory": self.bmi_category,
                "basalMetabolicRate": self.basal_metabolic_rate,
                "metabolicRateCategory": self.metabolic_rate_category,
                "estimatedWaistCircumference": self.estimated_waist_circumference,
                "estimatedChestCircumference": self.estimated_chest_circumference,
                "estimatedHipCircumference": self.estimated_hip_circumference,
                "exerciseRecommendations": list(self.exercise_recommendations),
                "nutritionRecommendations": list(self.nutrition_recommendations),
                "trainingFocus": self.training_focus,
            },
            "recommendations": list(self.recommendations),
            "fullAnalysis": self.full_analysis,
        }


# --- Workout ---


@dataclasses.dataclass(frozen=True, slots=True)
class WorkoutSet:
    set_number: int
    reps: int
    weight: float | None = None
    is_completed: bool = False

    def to_dict(self) -> dict[str, typing.Any]:
        return {
            "setNumber": self.set_number,
            "weight": self.weight,
            "reps": self.reps,
            "isCompleted": self.is_completed,
        }


@dataclasses.dataclass(frozen=True, slots=True)
class StrengthExercise:
    name: str
    muscle_group: str
    equipment: str
    working_weight: float
    rest_time_seconds: int
    sets: tuple[WorkoutSet, ...] = ()

    def __post_init__(self) -> None:
        _require(
            condition=_is_tuple_of(self.sets, WorkoutSet),
            message="must be a tuple[WorkoutSet, ...]",
            field_name="sets",
            exc=TypeError,
        )

    def to_dict(self) -> dict[str, typing.Any]:
        return {
            "name": self.name,
            "muscleGroup": self.muscle_group,
            "equipment": self.equipment,
            "workingWeight": self.working_weight,
            "restTimeSeconds": self.rest_time_seconds,
            "sets": [s.to_dict() for s in self.sets],
        }


@dataclasses.dataclass(frozen=True, slots=True)
class CardioSession:
    cardio_type: str
    distance_km: float | None = None
    avg_pulse: int | None = None
    max_pulse: int | None = None
    avg_pace: str | None = None

    def to_dict(self) -> dict[str, typing.Any]:
        return {
            "cardioType": self.cardio_type,
            "distanceKm": self.distance_km,
            "avgPulse": self.avg_pulse,
            "maxPulse": self.max_pulse,
            "avgPace": self.avg_pace,
        }


@dataclasses.dataclass(frozen=True, slots=True)
class WorkoutPayload:
    """A single workout: either strength exercises or one cardio session."""

    type: WorkoutType
    start_time: datetime
    end_time: datetime
    estimated_calories: int
    strength_data: tuple[StrengthExercise, ...] = ()
    cardio_data: CardioSession | None = None
    notes: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _require(
            condition=self.type in WORKOUT_TYPES,
            message=f"must be one of {list(WORKOUT_TYPES)}, got {self.type!r}",
            field_name="type",
        )
        _require(
            condition=self.end_time >= self.start_time,
            message="must not precede start_time",
            field_name="end_time",
        )
        _require(
            condition=_is_tuple_of(self.strength_data, StrengthExercise),
            message="must be a tuple[StrengthExercise, ...]",
            field_name="strength_data",
            exc=TypeError,
        )
        # Exactly one sub-structure, matching the type tag
        if self.type == "strength":
            _require(
                condition=bool(self.strength_data) and self.cardio_data is None,
                message="strength workouts carry exercises and no cardio session",
                field_name="strength_data",
            )
        else:
            _require(
                condition=self.cardio_data is not None and not self.strength_data,
                message="cardio workouts carry a session and no exercises",
                field_name="cardio_data",
            )

    @property
    def duration_minutes(self) -> float:
        return (self.end_time - self.start_time).total_seconds() / 60

    def to_dict(self) -> dict[str, typing.Any]:
        return {
            "type": self.type,
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat(),
            "estimatedCalories": self.estimated_calories,
            "strengthData": [e.to_dict() for e in self.strength_data] or None,
            "cardioData": _optional(self.cardio_data),
            "notes": list(self.notes),
        }


@dataclasses.dataclass(frozen=True, slots=True)
class VoiceWorkout:
    """A workout dictated by voice."""

    kind: typing.ClassVar[RecordKind] = RecordKind.VOICE_WORKOUT

    transcribed_text: str
    workout_data: WorkoutPayload | None

    def to_dict(self) -> dict[str, typing.Any]:
        return {
            "transcribedText": self.transcribed_text,
            "workoutData": _optional(self.workout_data),
        }


DomainRecord = FoodAnalysis | BodyAnalysis | VoiceWorkout | VoiceFood


def iter_food_items(record: DomainRecord) -> tuple[FoodItem, ...]:
    """Return the food items a record carries (empty for body/workout)."""
    if isinstance(record, FoodAnalysis | VoiceFood):
        return record.food_items
    return ()
