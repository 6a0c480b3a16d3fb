"""Deterministic fallback records.

When recovery or validation fails, `FallbackSynthesizer` builds a
complete record from whatever context is available: the requested meal
or workout type, the request clock, the caller's stored body stats, and
keywords in the response text. The same inputs always give the same
record; all numbers come from the fallback tables.
"""

from __future__ import annotations

from datetime import timedelta
import logging

from fitscan.constants import (
    CONTEXT_DEFAULT_CONFIDENCE,
    KEYWORD_RECONSTRUCTION_CONFIDENCE,
)
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
from fitscan.pipeline.coercion import Node, read_str
from fitscan.pipeline.keywords import match_food, mentions_cardio
from fitscan.tables import DishDefault, FallbackTables, default_tables

log = logging.getLogger(__name__)


def dish_item(dish: DishDefault, confidence: float) -> FoodItem:
    return FoodItem(
        name=dish.name,
        estimated_weight=dish.weight,
        weight_type=dish.weight_type,  # type: ignore[arg-type]
        description=dish.description,
        nutrition_per_100g=NutritionPer100g(
            calories=dish.calories,
            proteins=dish.proteins,
            fats=dish.fats,
            carbs=dish.carbs,
        ),
        total_calories=dish.total_calories,
        confidence=confidence,
    )


class FallbackSynthesizer:
    """Build substitute records from context and lookup tables.

    Attributes:
        tables: Read-only lookup tables shared across requests.
    """

    def __init__(self, tables: FallbackTables | None = None) -> None:
        self.tables = tables if tables is not None else default_tables()

    # --- Food ---

    def resolve_meal_type(self, context: InterpretationContext) -> str:
        """Use the requested meal type, or derive one from the request hour."""
        requested = self.tables.canonical_meal(context.meal_type)
        if requested is not None:
            return requested
        return self.tables.meal_for_hour(context.now.hour)

    def meal_default(self, context: InterpretationContext) -> FoodItem:
        dish = self.tables.meals[self.resolve_meal_type(context)]
        return dish_item(dish, CONTEXT_DEFAULT_CONFIDENCE)

    def voice_food_items(
        self, context: InterpretationContext, text: str
    ) -> tuple[FoodItem, ...]:
        """Pick a dish by keyword, then by requested meal, else a placeholder."""
        entry = match_food(text, self.tables)
        if entry is not None:
            return (dish_item(entry.dish, KEYWORD_RECONSTRUCTION_CONFIDENCE),)
        if self.tables.canonical_meal(context.meal_type) is not None:
            return (self.meal_default(context),)
        return (dish_item(self.tables.unspecified_food, CONTEXT_DEFAULT_CONFIDENCE),)

    def food_analysis(self, context: InterpretationContext) -> FoodAnalysis:
        item = self.meal_default(context)
        return FoodAnalysis(
            food_items=(item,),
            estimated_calories=item.total_calories,
            full_description=f"Estimated default portion: {item.name}",
        )

    def voice_food(
        self, context: InterpretationContext, text: str, transcript: str = ""
    ) -> VoiceFood:
        items = self.voice_food_items(context, text)
        return VoiceFood(
            transcribed_text=transcript,
            food_items=items,
            estimated_total_calories=sum(i.total_calories for i in items),
        )

    # --- Body ---

    def body_analysis(self, context: InterpretationContext) -> BodyAnalysis:
        """Estimate body metrics from the BMI bucket of the stored stats."""
        bmi = metrics.bmi(context.weight_kg, context.height_cm)
        if bmi is None:
            bmi = self.tables.body.neutral_bmi
        bucket = self.tables.bucket_for(bmi)

        policy = self.tables.bmr
        computed = metrics.mifflin_st_jeor(context, policy)
        bmr = round(computed) if computed is not None and computed > 0 else policy.fallback

        return BodyAnalysis(
            estimated_body_fat_percentage=bucket.body_fat,
            estimated_muscle_percentage=bucket.muscle,
            body_type=bucket.body_type,
            posture_analysis=self.tables.body.posture_analysis,
            overall_condition=self.tables.body.overall_condition,
            bmi=bmi,
            bmi_category=bucket.category,
            estimated_waist_circumference=bucket.waist,
            estimated_chest_circumference=bucket.chest,
            estimated_hip_circumference=bucket.hip,
            basal_metabolic_rate=bmr,
            metabolic_rate_category=policy.category(bmr),
            exercise_recommendations=bucket.exercise,
            nutrition_recommendations=bucket.nutrition,
            training_focus=bucket.training_focus,
            recommendations=bucket.exercise[:1] + bucket.nutrition[:1],
            full_analysis=(
                f"Estimated from BMI {bmi:.2f} ({bucket.category}); "
                "the photos could not be analyzed."
            ),
        )

    # --- Workout ---

    def is_cardio(self, context: InterpretationContext, text: str) -> bool:
        return mentions_cardio(context.workout_type, self.tables) or mentions_cardio(
            text, self.tables
        )

    def workout_payload(
        self, context: InterpretationContext, text: str
    ) -> WorkoutPayload:
        start = context.now
        if self.is_cardio(context, text):
            defaults = self.tables.cardio
            return WorkoutPayload(
                type="cardio",
                start_time=start,
                end_time=start + timedelta(minutes=defaults.duration_minutes),
                estimated_calories=defaults.calories,
                cardio_data=CardioSession(cardio_type=defaults.cardio_type),
            )

        strength = self.tables.strength
        exercise = StrengthExercise(
            name=strength.name,
            muscle_group=strength.muscle_group,
            equipment=strength.equipment,
            working_weight=0.0,
            rest_time_seconds=strength.rest_time_seconds,
            sets=(
                WorkoutSet(set_number=1, reps=strength.reps, weight=None, is_completed=True),
            ),
        )
        return WorkoutPayload(
            type="strength",
            start_time=start,
            end_time=start + timedelta(minutes=strength.duration_minutes),
            estimated_calories=strength.calories,
            strength_data=(exercise,),
        )

    def voice_workout(
        self, context: InterpretationContext, text: str, transcript: str = ""
    ) -> VoiceWorkout:
        return VoiceWorkout(
            transcribed_text=transcript,
            workout_data=self.workout_payload(context, text),
        )

    # --- Dispatch ---

    def synthesize(
        self,
        kind: RecordKind,
        context: InterpretationContext,
        text: str = "",
        node: Node | None = None,
    ) -> DomainRecord:
        """Build the fallback record for `kind`.

        Args:
            kind: Record kind requested by the caller.
            context: Request context (clock, hints, stored stats).
            text: Extracted response text, scanned for keywords only when
                no node was recovered.
            node: Parsed node, if recovery got that far; only its
                `transcribedText` is reused, and it replaces `text` as the
                keyword source so JSON key names never count as mentions.
        """
        transcript = read_str(node, "transcribedText") if node is not None else ""
        scanned = transcript if node is not None else text
        log.debug("Synthesizing %s fallback", kind.value)
        if kind is RecordKind.FOOD_ANALYSIS:
            return self.food_analysis(context)
        if kind is RecordKind.VOICE_FOOD:
            return self.voice_food(context, scanned, transcript)
        if kind is RecordKind.BODY_ANALYSIS:
            return self.body_analysis(context)
        return self.voice_workout(context, scanned, transcript)
