"""Read-only lookup tables used by the fallback synthesizer.

Tables live in a bundled TOML file so that the defaults can be reviewed
and swapped without touching pipeline code. They are parsed once per
process into frozen dataclasses, tuples and `MappingProxyType` views, so
concurrent requests can share them without locking.
"""

from __future__ import annotations

from collections.abc import Mapping
import dataclasses
import functools
from importlib import resources
import logging
import math
from pathlib import Path
import tomllib
from types import MappingProxyType
from typing import Any

from fitscan.core.exceptions import TableLoadError

log = logging.getLogger(__name__)

_BUNDLED_TABLES = "fallback_tables.toml"
MEAL_TYPES: tuple[str, ...] = ("breakfast", "lunch", "dinner", "snack")


@dataclasses.dataclass(frozen=True, slots=True)
class DishDefault:
    """A dish with fixed per-100 macros and a default portion."""

    name: str
    weight: float
    weight_type: str
    calories: float
    proteins: float
    fats: float
    carbs: float
    description: str = ""

    @property
    def total_calories(self) -> int:
        return round(self.calories * self.weight / 100)


@dataclasses.dataclass(frozen=True, slots=True)
class FoodKeyword:
    category: str
    keywords: tuple[str, ...]
    dish: DishDefault


@dataclasses.dataclass(frozen=True, slots=True)
class ExerciseKeyword:
    keywords: tuple[str, ...]
    type: str
    name: str
    muscle_group: str = ""
    equipment: str = ""


@dataclasses.dataclass(frozen=True, slots=True)
class MealHours:
    meal: str
    start: int
    end: int

    def contains(self, hour: int) -> bool:
        return self.start <= hour <= self.end


@dataclasses.dataclass(frozen=True, slots=True)
class BmiBucket:
    """Body metrics assumed for a BMI range; `upper` is exclusive."""

    upper: float
    category: str
    body_type: str
    body_fat: float
    muscle: float
    waist: float
    chest: float
    hip: float
    training_focus: str
    exercise: tuple[str, ...]
    nutrition: tuple[str, ...]


@dataclasses.dataclass(frozen=True, slots=True)
class StrengthDefaults:
    name: str
    muscle_group: str
    equipment: str
    reps: int
    rest_time_seconds: int
    duration_minutes: int
    calories: int


@dataclasses.dataclass(frozen=True, slots=True)
class CardioDefaults:
    cardio_type: str
    duration_minutes: int
    calories: int


@dataclasses.dataclass(frozen=True, slots=True)
class BodyDefaults:
    neutral_bmi: float
    posture_analysis: str
    overall_condition: str


@dataclasses.dataclass(frozen=True, slots=True)
class BmrPolicy:
    """Mifflin-St Jeor offsets and category thresholds."""

    fallback: int
    low_below: float
    high_above: float
    male_offset: float
    female_offset: float
    unknown_offset: float

    def category(self, bmr: float) -> str:
        if bmr < self.low_below:
            return "Low"
        if bmr > self.high_above:
            return "High"
        return "Normal"


@dataclasses.dataclass(frozen=True, slots=True)
class FallbackTables:
    """All fallback lookup tables, frozen after load."""

    meals: Mapping[str, DishDefault]
    meal_hours: tuple[MealHours, ...]
    default_meal: str
    unspecified_food: DishDefault
    food_keywords: tuple[FoodKeyword, ...]
    exercise_keywords: tuple[ExerciseKeyword, ...]
    cardio_keywords: tuple[str, ...]
    strength: StrengthDefaults
    cardio: CardioDefaults
    body: BodyDefaults
    bmr: BmrPolicy
    bmi_buckets: tuple[BmiBucket, ...]
    meal_aliases: Mapping[str, str] = dataclasses.field(
        default_factory=lambda: MappingProxyType({})
    )

    def canonical_meal(self, meal_type: str | None) -> str | None:
        """Return the meal table key for `meal_type` or one of its aliases."""
        key = (meal_type or "").strip().lower()
        if key in self.meals:
            return key
        return self.meal_aliases.get(key)

    def meal_for_hour(self, hour: int) -> str:
        """Map an hour of day to a meal type using the configured bands."""
        for band in self.meal_hours:
            if band.contains(hour):
                return band.meal
        return self.default_meal

    def bucket_for(self, bmi: float) -> BmiBucket:
        """Return the first bucket whose exclusive upper bound exceeds `bmi`."""
        for bucket in self.bmi_buckets:
            if bmi < bucket.upper:
                return bucket
        return self.bmi_buckets[-1]


# --- Parsing ---


def _dish(data: Mapping[str, Any]) -> DishDefault:
    dish = DishDefault(
        name=str(data["name"]),
        weight=float(data["weight"]),
        weight_type=str(data["weight_type"]),
        calories=float(data["calories"]),
        proteins=float(data["proteins"]),
        fats=float(data["fats"]),
        carbs=float(data["carbs"]),
        description=str(data.get("description", "")),
    )
    if dish.weight_type not in ("g", "ml"):
        raise ValueError(f"dish {dish.name!r} has invalid weight_type {dish.weight_type!r}")
    if dish.weight <= 0:
        raise ValueError(f"dish {dish.name!r} must have a positive weight")
    return dish


def _keywords(values: Any) -> tuple[str, ...]:
    if not isinstance(values, list) or not values:
        raise ValueError("keywords must be a non-empty list")
    return tuple(str(v).lower() for v in values)


def _bucket(data: Mapping[str, Any]) -> BmiBucket:
    return BmiBucket(
        upper=float(data["upper"]),
        category=str(data["category"]),
        body_type=str(data["body_type"]),
        body_fat=float(data["body_fat"]),
        muscle=float(data["muscle"]),
        waist=float(data["waist"]),
        chest=float(data["chest"]),
        hip=float(data["hip"]),
        training_focus=str(data["training_focus"]),
        exercise=tuple(str(s) for s in data["exercise"]),
        nutrition=tuple(str(s) for s in data["nutrition"]),
    )


def parse_tables(data: Mapping[str, Any]) -> FallbackTables:
    """Build `FallbackTables` from a decoded TOML document.

    Raises:
        KeyError, TypeError, ValueError: When the document is incomplete or
            inconsistent. `load_tables` wraps these in `TableLoadError`.
    """
    meals = {name: _dish(entry) for name, entry in data["meals"].items()}
    missing = [m for m in MEAL_TYPES if m not in meals]
    if missing:
        raise ValueError(f"meals table is missing {missing}")

    default_meal = str(data.get("default_meal", "snack"))
    if default_meal not in meals:
        raise ValueError(f"default_meal {default_meal!r} has no dish")

    meal_aliases = {
        str(alias).strip().lower(): str(meal)
        for alias, meal in data.get("meal_aliases", {}).items()
    }
    for alias, meal in meal_aliases.items():
        if meal not in meals:
            raise ValueError(f"meal alias {alias!r} points at unknown meal {meal!r}")

    meal_hours = tuple(
        MealHours(meal=str(h["meal"]), start=int(h["start"]), end=int(h["end"]))
        for h in data["meal_hours"]
    )
    for band in meal_hours:
        if band.meal not in meals or not 0 <= band.start <= band.end <= 23:
            raise ValueError(f"invalid meal hour band {band!r}")

    buckets = tuple(_bucket(b) for b in data["bmi_buckets"])
    uppers = [b.upper for b in buckets]
    if not buckets or uppers != sorted(uppers) or not math.isinf(uppers[-1]):
        raise ValueError("bmi_buckets must be ascending and end with upper = inf")

    exercise_keywords = tuple(
        ExerciseKeyword(
            keywords=_keywords(e["keywords"]),
            type=str(e["type"]),
            name=str(e["name"]),
            muscle_group=str(e.get("muscle_group", "")),
            equipment=str(e.get("equipment", "")),
        )
        for e in data["exercise_keywords"]
    )
    for entry in exercise_keywords:
        if entry.type not in ("strength", "cardio"):
            raise ValueError(f"exercise {entry.name!r} has invalid type {entry.type!r}")

    strength = data["workout_defaults"]["strength"]
    cardio = data["workout_defaults"]["cardio"]
    body = data["body"]
    bmr = data["bmr"]

    return FallbackTables(
        meals=MappingProxyType(meals),
        meal_hours=meal_hours,
        default_meal=default_meal,
        unspecified_food=_dish(data["unspecified_food"]),
        food_keywords=tuple(
            FoodKeyword(
                category=str(entry["category"]),
                keywords=_keywords(entry["keywords"]),
                dish=_dish(entry),
            )
            for entry in data["food_keywords"]
        ),
        exercise_keywords=exercise_keywords,
        cardio_keywords=_keywords(data["cardio_keywords"]),
        strength=StrengthDefaults(
            name=str(strength["name"]),
            muscle_group=str(strength["muscle_group"]),
            equipment=str(strength["equipment"]),
            reps=int(strength["reps"]),
            rest_time_seconds=int(strength["rest_time_seconds"]),
            duration_minutes=int(strength["duration_minutes"]),
            calories=int(strength["calories"]),
        ),
        cardio=CardioDefaults(
            cardio_type=str(cardio["cardio_type"]),
            duration_minutes=int(cardio["duration_minutes"]),
            calories=int(cardio["calories"]),
        ),
        body=BodyDefaults(
            neutral_bmi=float(body["neutral_bmi"]),
            posture_analysis=str(body["posture_analysis"]),
            overall_condition=str(body["overall_condition"]),
        ),
        bmr=BmrPolicy(
            fallback=int(bmr["fallback"]),
            low_below=float(bmr["low_below"]),
            high_above=float(bmr["high_above"]),
            male_offset=float(bmr["male_offset"]),
            female_offset=float(bmr["female_offset"]),
            unknown_offset=float(bmr["unknown_offset"]),
        ),
        bmi_buckets=buckets,
        meal_aliases=MappingProxyType(meal_aliases),
    )


def load_tables(path: str | Path | None = None) -> FallbackTables:
    """Load fallback tables from `path`, or the bundled file when omitted.

    Raises:
        TableLoadError: If the file cannot be read, is not valid TOML, or
            does not describe a complete set of tables.
    """
    if path is None:
        source = f"{__name__}/{_BUNDLED_TABLES}"
        try:
            raw = resources.files(__name__).joinpath(_BUNDLED_TABLES).read_bytes()
        except OSError as e:
            raise TableLoadError(source, f"Failed to read bundled tables: {e}") from e
    else:
        source = str(path)
        try:
            raw = Path(path).read_bytes()
        except OSError as e:
            raise TableLoadError(source, f"Failed to read file: {e}") from e

    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        raise TableLoadError(source, f"Failed to parse TOML: {e}") from e

    try:
        tables = parse_tables(data)
    except KeyError as e:
        raise TableLoadError(source, f"Missing required key {e}") from e
    except (AttributeError, TypeError, ValueError) as e:
        raise TableLoadError(source, str(e)) from e

    log.debug(
        "Loaded fallback tables from %s: %d food keywords, %d exercise keywords",
        source,
        len(tables.food_keywords),
        len(tables.exercise_keywords),
    )
    return tables


@functools.cache
def default_tables() -> FallbackTables:
    """Return the process-wide bundled tables, loading them on first use."""
    return load_tables()


@functools.cache
def tables_from(path: str) -> FallbackTables:
    """Return tables loaded from a file path, cached per path."""
    return load_tables(path)


__all__ = [  # noqa: RUF022
    "BmiBucket",
    "BmrPolicy",
    "BodyDefaults",
    "CardioDefaults",
    "DishDefault",
    "ExerciseKeyword",
    "FallbackTables",
    "FoodKeyword",
    "MEAL_TYPES",
    "MealHours",
    "StrengthDefaults",
    "default_tables",
    "load_tables",
    "parse_tables",
    "tables_from",
]
