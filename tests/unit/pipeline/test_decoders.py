from datetime import datetime, timedelta
import json

import pytest

from fitscan.core.records import BodyAnalysis, FoodAnalysis, VoiceFood, VoiceWorkout
from fitscan.core.types import InterpretationContext, RecordKind
from fitscan.pipeline.decoders import (
    decode_body_analysis,
    decode_food_item,
    decode_record,
    decode_voice_workout,
    normalize_confidence,
    normalize_weight,
    parse_timestamp,
    vendor_error,
)
from tests.fixtures.envelopes import (
    APPLE_ITEM,
    BODY_ANALYSIS,
    CARDIO_WORKOUT,
    FOOD_ANALYSIS,
    STRENGTH_WORKOUT,
    VOICE_FOOD,
)

pytestmark = pytest.mark.unit


# --- Normalization helpers ---


@pytest.mark.parametrize(
    ("weight", "unit", "expected"),
    [
        (150, "g", (150, "g")),
        (0.2, "kg", (200, "g")),
        (250, "мл", (250, "ml")),
        (0.5, "L", (500, "ml")),
        (100, "гр.", (100, "g")),
        (80, "pieces", (80, "g")),
    ],
)
def test_normalize_weight_maps_units_onto_g_or_ml(weight, unit, expected):
    value, canonical = normalize_weight(weight, unit)
    assert value == pytest.approx(expected[0])
    assert canonical == expected[1]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(0.8, 0.8), (85, 0.85), (1.0, 1.0), (-0.2, 0.0), (250, 1.0)],
)
def test_normalize_confidence_clamps_and_reads_percentages(raw, expected):
    assert normalize_confidence(raw) == pytest.approx(expected)


def test_parse_timestamp_rejects_garbage():
    assert parse_timestamp("2024-05-14T18:00:00") == datetime(2024, 5, 14, 18)
    assert parse_timestamp("yesterday evening") is None
    assert parse_timestamp("  ") is None


def test_vendor_error_reads_error_message():
    assert vendor_error({"success": False, "errorMessage": "blurry photo"}) == (
        "blurry photo"
    )
    assert vendor_error({"success": True}) is None


# --- Food ---


def test_decode_food_analysis_reads_complete_payload(context, tables):
    record = decode_record(RecordKind.FOOD_ANALYSIS, FOOD_ANALYSIS, context, tables)
    assert isinstance(record, FoodAnalysis)
    assert record.estimated_calories == 78
    (item,) = record.food_items
    assert item.name == "Apple"
    assert item.weight_type == "g"
    assert item.nutrition_per_100g.carbs == 14
    assert item.confidence == 0.9


def test_food_item_defaults_fill_missing_fields(tables):
    item = decode_food_item({"name": "  "}, tables)
    placeholder = tables.unspecified_food
    assert item.name == placeholder.name
    assert item.estimated_weight == placeholder.weight
    assert item.weight_type == "g"
    assert item.confidence == 0.9
    assert item.total_calories == placeholder.total_calories


def test_food_item_recomputes_negative_or_missing_total(tables):
    node = {**APPLE_ITEM, "totalCalories": -5, "estimatedWeight": "0,2", "weightType": "kg"}
    item = decode_food_item(node, tables)
    assert item.estimated_weight == pytest.approx(200)
    assert item.total_calories == 104


def test_food_item_negative_weight_replaced_by_placeholder(tables):
    item = decode_food_item({**APPLE_ITEM, "estimatedWeight": -10}, tables)
    assert item.estimated_weight == tables.unspecified_food.weight


@pytest.mark.parametrize("unit", ["kg", "l"])
def test_food_item_weight_overflowing_on_scaling_uses_placeholder(tables, unit):
    node = {"name": "Rice", "estimatedWeight": 1e306, "weightType": unit}
    item = decode_food_item(node, tables)
    assert item.name == "Rice"
    assert item.estimated_weight == tables.unspecified_food.weight
    assert item.weight_type == tables.unspecified_food.weight_type


def test_food_analysis_total_summed_when_missing(context, tables):
    node = {"foodItems": [APPLE_ITEM, {**APPLE_ITEM, "totalCalories": 22}]}
    record = decode_record(RecordKind.FOOD_ANALYSIS, node, context, tables)
    assert record.estimated_calories == 100


def test_food_analysis_without_items_decodes_empty(context, tables):
    record = decode_record(RecordKind.FOOD_ANALYSIS, {"foodItems": None}, context, tables)
    assert record.food_items == ()
    assert record.estimated_calories == 0


def test_decode_voice_food(context, tables):
    record = decode_record(RecordKind.VOICE_FOOD, VOICE_FOOD, context, tables)
    assert isinstance(record, VoiceFood)
    assert record.transcribed_text == "I ate an apple"
    assert record.estimated_total_calories == 78


# --- Body ---


def test_decode_body_analysis_nested_layout(body_context, tables):
    record = decode_body_analysis(BODY_ANALYSIS, body_context, tables)
    assert isinstance(record, BodyAnalysis)
    assert record.estimated_body_fat_percentage == 18
    assert record.bmi == 22.86
    assert record.exercise_recommendations == ("Squats",)
    assert record.recommendations == ("Sleep 8 hours",)
    assert record.full_analysis == "Athletic build."
    # Not requested from the vendor; computed from the stored stats
    assert record.basal_metabolic_rate == 1649
    assert record.metabolic_rate_category == "Normal"


def test_decode_body_analysis_flat_layout(body_context, tables):
    flat = dict(BODY_ANALYSIS["bodyAnalysis"])
    record = decode_body_analysis(flat, body_context, tables)
    assert record.body_type == "Mesomorph"
    assert record.estimated_muscle_percentage == 41


def test_body_defaults_come_from_bmi_bucket(body_context, tables):
    node = {"bodyAnalysis": {"estimatedBodyFatPercentage": 20, "estimatedMusclePercentage": 38}}
    record = decode_body_analysis(node, body_context, tables)
    assert record.bmi == 22.86
    assert record.bmi_category == "Normal"
    assert record.body_type == "Mesomorph"
    assert record.estimated_waist_circumference == 80


def test_body_missing_fat_estimate_is_marked_negative(context, tables):
    record = decode_body_analysis({"bodyAnalysis": {"bmi": 24}}, context, tables)
    assert record.estimated_body_fat_percentage < 0
    assert record.basal_metabolic_rate == tables.bmr.fallback


def test_body_without_any_bmi_source_has_zero_bmi(context, tables):
    record = decode_body_analysis({}, context, tables)
    assert record.bmi == 0


# --- Workout ---


def test_decode_strength_workout(context, tables):
    record = decode_voice_workout(STRENGTH_WORKOUT, context, tables)
    assert isinstance(record, VoiceWorkout)
    payload = record.workout_data
    assert payload.type == "strength"
    assert payload.cardio_data is None
    assert payload.duration_minutes == 60
    (exercise,) = payload.strength_data
    assert exercise.working_weight == 60
    assert [s.is_completed for s in exercise.sets] == [True, True, False]
    assert payload.notes == ("felt strong",)


def test_decode_cardio_workout(context, tables):
    payload = decode_voice_workout(CARDIO_WORKOUT, context, tables).workout_data
    assert payload.type == "cardio"
    assert payload.strength_data == ()
    assert payload.cardio_data.distance_km == 5
    assert payload.cardio_data.avg_pace == "6:00"


def test_workout_null_payload_decodes_to_none(context, tables):
    record = decode_voice_workout({"transcribedText": "x", "workoutData": None}, context, tables)
    assert record.workout_data is None


def test_strength_workout_without_exercises_is_none(context, tables):
    node = {"workoutData": {"type": "strength", "strengthData": []}}
    assert decode_voice_workout(node, context, tables).workout_data is None


def test_cardio_type_inferred_from_free_text_type(context, tables):
    node = {"workoutData": {"type": "Running session"}}
    payload = decode_voice_workout(node, context, tables).workout_data
    assert payload.type == "cardio"
    assert payload.cardio_data.cardio_type == tables.cardio.cardio_type


def test_workout_times_default_to_request_clock(context, tables):
    node = {"workoutData": {"type": "cardio", "cardioData": {"cardioType": "Rowing"}}}
    payload = decode_voice_workout(node, context, tables).workout_data
    assert payload.start_time == context.now
    assert payload.end_time == context.now + timedelta(
        minutes=tables.cardio.duration_minutes
    )


def test_end_before_start_is_replaced(context, tables):
    data = json.loads(json.dumps(CARDIO_WORKOUT))
    data["workoutData"]["endTime"] = "2024-05-14T06:00:00"
    payload = decode_voice_workout(data, context, tables).workout_data
    assert payload.end_time >= payload.start_time


def test_mixed_timezone_awareness_does_not_raise(tables):
    ctx = InterpretationContext(now=datetime(2024, 5, 14, 8))
    data = json.loads(json.dumps(CARDIO_WORKOUT))
    data["workoutData"]["startTime"] = "2024-05-14T07:00:00+00:00"
    payload = decode_voice_workout(data, ctx, tables).workout_data
    assert payload.end_time.tzinfo is not None


def test_start_time_near_datetime_max_uses_request_clock(context, tables):
    data = json.loads(json.dumps(STRENGTH_WORKOUT))
    data["workoutData"]["startTime"] = "9999-12-31T23:30:00"
    del data["workoutData"]["endTime"]
    payload = decode_voice_workout(data, context, tables).workout_data
    assert payload.type == "strength"
    assert payload.start_time == context.now
    assert payload.end_time == context.now + timedelta(
        minutes=tables.strength.duration_minutes
    )


def test_set_completion_requires_explicit_true(context, tables):
    data = json.loads(json.dumps(STRENGTH_WORKOUT))
    data["workoutData"]["strengthData"][0]["sets"] = [{"reps": 5, "isCompleted": "yes"}]
    payload = decode_voice_workout(data, context, tables).workout_data
    (workout_set,) = payload.strength_data[0].sets
    assert workout_set.is_completed is False
    assert workout_set.set_number == 1
