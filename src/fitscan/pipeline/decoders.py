"""Turn recovered JSON nodes into canonical domain records.

Decoders read nodes exclusively through `fitscan.pipeline.coercion`, so
they accept whatever the vendor sent and substitute defaults for missing
or ill-typed values. Out-of-range numbers are normalized here (negative or
overflowing weights, percent-style confidences, unknown units, start times
near `datetime.max`) so that record constructors only ever see
well-formed values.

Absent required data is not invented: a food response without items or
a body response without a body-fat estimate decodes to a record that the
domain validator then rejects, which routes it to the fallback synthesizer.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta
import math

from fitscan.constants import VENDOR_DEFAULT_CONFIDENCE
from fitscan.core.records import (
    BodyAnalysis,
    CardioSession,
    DomainRecord,
    FoodAnalysis,
    FoodItem,
    NutritionPer100g,
    StrengthExercise,
    VoiceFood,
    VoiceWorkout,
    WorkoutPayload,
    WorkoutSet,
)
from fitscan.core.types import InterpretationContext, RecordKind
from fitscan.pipeline import metrics
from fitscan.pipeline.coercion import (
    Node,
    read_bool,
    read_float,
    read_int,
    read_object,
    read_objects,
    read_optional_float,
    read_optional_int,
    read_optional_str,
    read_str,
    read_str_list,
)
from fitscan.pipeline.keywords import mentions_cardio
from fitscan.tables import FallbackTables, StrengthDefaults

# unit -> (canonical unit, multiplier)
_UNITS: dict[str, tuple[str, float]] = {
    "g": ("g", 1.0),
    "gr": ("g", 1.0),
    "gram": ("g", 1.0),
    "grams": ("g", 1.0),
    "г": ("g", 1.0),
    "гр": ("g", 1.0),
    "грамм": ("g", 1.0),
    "kg": ("g", 1000.0),
    "кг": ("g", 1000.0),
    "ml": ("ml", 1.0),
    "milliliter": ("ml", 1.0),
    "milliliters": ("ml", 1.0),
    "millilitre": ("ml", 1.0),
    "millilitres": ("ml", 1.0),
    "мл": ("ml", 1.0),
    "l": ("ml", 1000.0),
    "liter": ("ml", 1000.0),
    "litre": ("ml", 1000.0),
    "л": ("ml", 1000.0),
}

_MISSING = -1.0


def normalize_weight(weight: float, unit: str) -> tuple[float, str]:
    """Map a free-text unit onto `g`/`ml`, scaling kilos and litres."""
    canonical, factor = _UNITS.get(unit.strip().lower().rstrip("."), ("g", 1.0))
    return weight * factor, canonical


def normalize_confidence(value: float) -> float:
    """Clamp to [0, 1], reading values in (1, 100] as percentages."""
    if 1.0 < value <= 100.0:
        value /= 100.0
    return min(max(value, 0.0), 1.0)


def calories_for(per_100: float, weight: float) -> int:
    total = per_100 * weight / 100
    return round(total) if math.isfinite(total) else 0


def _non_negative(value: float, default: float) -> float:
    return value if value >= 0 else default


def vendor_error(node: Node | None) -> str | None:
    """Return the vendor's own `errorMessage`, if it sent one."""
    return read_optional_str(node, "errorMessage")


# --- Food ---


def decode_food_item(node: Node, tables: FallbackTables) -> FoodItem:
    placeholder = tables.unspecified_food
    raw_weight = _non_negative(
        read_float(node, "estimatedWeight", placeholder.weight), placeholder.weight
    )
    weight, unit = normalize_weight(raw_weight, read_str(node, "weightType", "g"))
    if not math.isfinite(weight):
        weight, unit = placeholder.weight, placeholder.weight_type

    per_100 = read_object(node, "nutritionPer100g")
    nutrition = NutritionPer100g(
        calories=_non_negative(
            read_float(per_100, "calories", placeholder.calories), placeholder.calories
        ),
        proteins=_non_negative(
            read_float(per_100, "proteins", placeholder.proteins), placeholder.proteins
        ),
        fats=_non_negative(read_float(per_100, "fats", placeholder.fats), placeholder.fats),
        carbs=_non_negative(
            read_float(per_100, "carbs", placeholder.carbs), placeholder.carbs
        ),
    )

    total = read_optional_int(node, "totalCalories")
    if total is None or total < 0:
        total = calories_for(nutrition.calories, weight)

    return FoodItem(
        name=read_str(node, "name").strip() or placeholder.name,
        estimated_weight=weight,
        weight_type=unit,  # type: ignore[arg-type]
        description=read_str(node, "description"),
        nutrition_per_100g=nutrition,
        total_calories=total,
        confidence=normalize_confidence(
            read_float(node, "confidence", VENDOR_DEFAULT_CONFIDENCE)
        ),
    )


def _decode_items(node: Node, tables: FallbackTables) -> tuple[FoodItem, ...]:
    return tuple(decode_food_item(n, tables) for n in read_objects(node, "foodItems"))


def _total(node: Node, name: str, items: tuple[FoodItem, ...]) -> int:
    total = read_optional_int(node, name)
    if total is None or total < 0:
        return sum(item.total_calories for item in items)
    return total


def decode_food_analysis(
    node: Node, context: InterpretationContext, tables: FallbackTables
) -> FoodAnalysis:
    items = _decode_items(node, tables)
    return FoodAnalysis(
        food_items=items,
        estimated_calories=_total(node, "estimatedCalories", items),
        full_description=read_str(node, "fullDescription"),
    )


def decode_voice_food(
    node: Node, context: InterpretationContext, tables: FallbackTables
) -> VoiceFood:
    items = _decode_items(node, tables)
    return VoiceFood(
        transcribed_text=read_str(node, "transcribedText"),
        food_items=items,
        estimated_total_calories=_total(node, "estimatedTotalCalories", items),
    )


# --- Body ---


def decode_body_analysis(
    node: Node, context: InterpretationContext, tables: FallbackTables
) -> BodyAnalysis:
    """Decode a body analysis, accepting nested or flat layouts.

    BMI and BMR fall back to values computed from the caller's stored
    stats; the body prompt never asks the vendor for a BMR.
    """
    body = read_object(node, "bodyAnalysis") or node

    stored_bmi = metrics.bmi(context.weight_kg, context.height_cm)
    bmi = read_float(body, "bmi", stored_bmi if stored_bmi is not None else 0.0)
    bucket = tables.bucket_for(bmi) if bmi > 0 else None

    computed_bmr = metrics.mifflin_st_jeor(context, tables.bmr)
    bmr = read_int(
        body,
        "basalMetabolicRate",
        round(computed_bmr) if computed_bmr is not None else tables.bmr.fallback,
    )

    def measure(name: str, default: float) -> float:
        return _non_negative(read_float(body, name, default), default)

    return BodyAnalysis(
        estimated_body_fat_percentage=read_float(
            body, "estimatedBodyFatPercentage", _MISSING
        ),
        estimated_muscle_percentage=read_float(body, "estimatedMusclePercentage", _MISSING),
        body_type=read_str(body, "bodyType", bucket.body_type if bucket else ""),
        posture_analysis=read_str(body, "postureAnalysis"),
        overall_condition=read_str(body, "overallCondition"),
        bmi=bmi,
        bmi_category=read_str(body, "bmiCategory", bucket.category if bucket else ""),
        estimated_waist_circumference=measure(
            "estimatedWaistCircumference", bucket.waist if bucket else 0.0
        ),
        estimated_chest_circumference=measure(
            "estimatedChestCircumference", bucket.chest if bucket else 0.0
        ),
        estimated_hip_circumference=measure(
            "estimatedHipCircumference", bucket.hip if bucket else 0.0
        ),
        basal_metabolic_rate=bmr,
        metabolic_rate_category=read_str(
            body, "metabolicRateCategory", tables.bmr.category(bmr)
        ),
        exercise_recommendations=read_str_list(body, "exerciseRecommendations"),
        nutrition_recommendations=read_str_list(body, "nutritionRecommendations"),
        training_focus=read_str(body, "trainingFocus"),
        recommendations=read_str_list(node, "recommendations"),
        full_analysis=read_str(node, "fullAnalysis"),
    )


# --- Workout ---


def parse_timestamp(value: str) -> datetime | None:
    if not value.strip():
        return None
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        return None


def _decode_set(node: Node, index: int, defaults: StrengthDefaults) -> WorkoutSet:
    weight = read_optional_float(node, "weight")
    return WorkoutSet(
        set_number=read_int(node, "setNumber", index),
        weight=weight if weight is None or weight >= 0 else None,
        reps=max(read_int(node, "reps", defaults.reps), 0),
        is_completed=read_bool(node, "isCompleted"),
    )


def _decode_exercise(node: Node, defaults: StrengthDefaults) -> StrengthExercise:
    return StrengthExercise(
        name=read_str(node, "name").strip() or defaults.name,
        muscle_group=read_str(node, "muscleGroup", defaults.muscle_group),
        equipment=read_str(node, "equipment", defaults.equipment),
        working_weight=_non_negative(read_float(node, "workingWeight", 0.0), 0.0),
        rest_time_seconds=max(
            read_int(node, "restTimeSeconds", defaults.rest_time_seconds), 0
        ),
        sets=tuple(
            _decode_set(s, i, defaults)
            for i, s in enumerate(read_objects(node, "sets"), start=1)
        ),
    )


def _decode_cardio(node: Node | None, default_type: str) -> CardioSession:
    distance = read_optional_float(node, "distanceKm")
    avg_pulse = read_optional_int(node, "avgPulse")
    max_pulse = read_optional_int(node, "maxPulse")
    return CardioSession(
        cardio_type=read_str(node, "cardioType").strip() or default_type,
        distance_km=distance if distance is None or distance >= 0 else None,
        avg_pulse=avg_pulse if avg_pulse is None or avg_pulse > 0 else None,
        max_pulse=max_pulse if max_pulse is None or max_pulse > 0 else None,
        avg_pace=read_optional_str(node, "avgPace"),
    )


def _workout_type(data: Node, tables: FallbackTables) -> str:
    declared = read_str(data, "type").strip().lower()
    if declared in ("strength", "cardio"):
        return declared
    if mentions_cardio(declared, tables):
        return "cardio"
    if read_object(data, "cardioData") is not None and not read_objects(
        data, "strengthData"
    ):
        return "cardio"
    return "strength"


def _workout_window(
    data: Node, context: InterpretationContext, duration_minutes: int
) -> tuple[datetime, datetime]:
    start = parse_timestamp(read_str(data, "startTime")) or context.now
    try:
        default_end = start + timedelta(minutes=duration_minutes)
    except OverflowError:
        # startTime too close to datetime.max to hold a default session
        start = context.now
        default_end = start + timedelta(minutes=duration_minutes)
    end = parse_timestamp(read_str(data, "endTime"))
    if end is None or (end.tzinfo is None) != (start.tzinfo is None) or end < start:
        end = default_end
    return start, end


def decode_workout_payload(
    data: Node, context: InterpretationContext, tables: FallbackTables
) -> WorkoutPayload | None:
    """Decode `workoutData`; a strength payload without exercises is None."""
    workout_type = _workout_type(data, tables)
    calories = read_optional_int(data, "estimatedCalories")
    notes = read_str_list(data, "notes") or tuple(
        n for n in (read_str(data, "notes").strip(),) if n
    )

    if workout_type == "cardio":
        start, end = _workout_window(data, context, tables.cardio.duration_minutes)
        return WorkoutPayload(
            type="cardio",
            start_time=start,
            end_time=end,
            estimated_calories=calories
            if calories is not None and calories >= 0
            else tables.cardio.calories,
            cardio_data=_decode_cardio(
                read_object(data, "cardioData"), tables.cardio.cardio_type
            ),
            notes=notes,
        )

    exercises = tuple(
        _decode_exercise(n, tables.strength) for n in read_objects(data, "strengthData")
    )
    if not exercises:
        return None
    start, end = _workout_window(data, context, tables.strength.duration_minutes)
    return WorkoutPayload(
        type="strength",
        start_time=start,
        end_time=end,
        estimated_calories=calories
        if calories is not None and calories >= 0
        else tables.strength.calories,
        strength_data=exercises,
        notes=notes,
    )


def decode_voice_workout(
    node: Node, context: InterpretationContext, tables: FallbackTables
) -> VoiceWorkout:
    data = read_object(node, "workoutData")
    return VoiceWorkout(
        transcribed_text=read_str(node, "transcribedText"),
        workout_data=decode_workout_payload(data, context, tables)
        if data is not None
        else None,
    )


Decoder = Callable[[Node, InterpretationContext, FallbackTables], DomainRecord]

DECODERS: dict[RecordKind, Decoder] = {
    RecordKind.FOOD_ANALYSIS: decode_food_analysis,
    RecordKind.BODY_ANALYSIS: decode_body_analysis,
    RecordKind.VOICE_WORKOUT: decode_voice_workout,
    RecordKind.VOICE_FOOD: decode_voice_food,
}


def decode_record(
    kind: RecordKind,
    node: Node,
    context: InterpretationContext,
    tables: FallbackTables,
) -> DomainRecord:
    """Decode `node` into the record type for `kind`."""
    return DECODERS[kind](node, context, tables)
