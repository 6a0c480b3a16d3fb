"""Body metrics computed from the caller's stored stats."""

from __future__ import annotations

from fitscan.core.types import InterpretationContext
from fitscan.tables import BmrPolicy


def bmi(weight_kg: float | None, height_cm: float | None) -> float | None:
    """Return weight / height² rounded to two decimals, or None if unknown."""
    if not weight_kg or not height_cm:
        return None
    height_m = height_cm / 100
    return round(weight_kg / (height_m * height_m), 2)


def gender_offset(gender: str | None, policy: BmrPolicy) -> float:
    normalized = (gender or "").strip().lower()
    if normalized in ("male", "m", "man", "мужской", "муж", "м"):
        return policy.male_offset
    if normalized in ("female", "f", "woman", "женский", "жен", "ж"):
        return policy.female_offset
    return policy.unknown_offset


def mifflin_st_jeor(context: InterpretationContext, policy: BmrPolicy) -> float | None:
    """Mifflin-St Jeor BMR in kcal/day, or None without weight, height and age.

    Unknown gender uses the midpoint of the male and female offsets.
    """
    if context.weight_kg is None or context.height_cm is None or context.age is None:
        return None
    return (
        10 * context.weight_kg
        + 6.25 * context.height_cm
        - 5 * context.age
        + gender_offset(context.gender, policy)
    )
