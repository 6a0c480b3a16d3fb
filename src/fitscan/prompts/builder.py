"""Build prompts and vendor request bodies per record kind.

These are pure functions: the caller supplies already-encoded media and
an `InterpretationContext`; nothing here performs I/O.
"""

from __future__ import annotations

import base64
import dataclasses
from typing import Any

from fitscan.constants import (
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_K,
    DEFAULT_TOP_P,
)
from fitscan.core.types import InterpretationContext, RecordKind, _require
from fitscan.prompts import templates

_TEMPLATES: dict[RecordKind, str] = {
    RecordKind.FOOD_ANALYSIS: templates.FOOD_ANALYSIS,
    RecordKind.BODY_ANALYSIS: templates.BODY_ANALYSIS,
    RecordKind.VOICE_WORKOUT: templates.VOICE_WORKOUT,
    RecordKind.VOICE_FOOD: templates.VOICE_FOOD,
}

SAFETY_CATEGORIES: tuple[str, ...] = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


@dataclasses.dataclass(frozen=True, slots=True)
class InlineMedia:
    """An image or audio clip sent inline with the prompt."""

    mime_type: str
    data: bytes

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.mime_type, str) and "/" in self.mime_type,
            message="must be a MIME type such as 'image/jpeg'",
            field_name="mime_type",
        )
        _require(
            condition=isinstance(self.data, bytes) and len(self.data) > 0,
            message="must be non-empty bytes",
            field_name="data",
            exc=TypeError,
        )

    def to_part(self) -> dict[str, Any]:
        return {
            "inlineData": {
                "mimeType": self.mime_type,
                "data": base64.b64encode(self.data).decode("ascii"),
            }
        }


def _format_number(value: float) -> str:
    return f"{value:g}"


def _user_info(context: InterpretationContext) -> list[str]:
    info = []
    if context.weight_kg is not None:
        info.append(f"Weight: {_format_number(context.weight_kg)} kg")
    if context.height_cm is not None:
        info.append(f"Height: {_format_number(context.height_cm)} cm")
    if context.age is not None:
        info.append(f"Age: {context.age}")
    if context.gender:
        info.append(f"Gender: {context.gender}")
    if context.goals:
        info.append(f"Goals: {context.goals}")
    return info


def build_prompt(
    kind: RecordKind | str, context: InterpretationContext | None = None
) -> str:
    """Return the instruction text for `kind`, specialized by `context`."""
    kind = RecordKind.parse(kind)
    prompt = _TEMPLATES[kind]
    if context is None:
        return prompt

    extras = []
    if kind is RecordKind.BODY_ANALYSIS:
        info = _user_info(context)
        if info:
            extras.append("User information: " + ", ".join(info))
    elif kind is RecordKind.VOICE_WORKOUT and context.workout_type:
        extras.append(f"Expected workout type: {context.workout_type}")
    elif kind is RecordKind.VOICE_FOOD and context.meal_type:
        extras.append(f"Meal type: {context.meal_type}")
    if context.user_prompt:
        extras.append(f"Additional information from the user: {context.user_prompt}")

    return "\n\n".join([prompt, *extras])


def generation_config() -> dict[str, Any]:
    return {
        "temperature": DEFAULT_TEMPERATURE,
        "topK": DEFAULT_TOP_K,
        "topP": DEFAULT_TOP_P,
        "maxOutputTokens": DEFAULT_MAX_OUTPUT_TOKENS,
    }


def build_request(
    kind: RecordKind | str,
    context: InterpretationContext | None = None,
    media: tuple[InlineMedia, ...] | list[InlineMedia] = (),
) -> dict[str, Any]:
    """Build a `generateContent` request body for `kind`.

    The body uses the vendor's REST field names: a single user turn with
    the prompt text followed by the inline media parts.
    """
    parts: list[dict[str, Any]] = [{"text": build_prompt(kind, context)}]
    parts.extend(m.to_part() for m in media)
    return {
        "contents": [{"role": "user", "parts": parts}],
        "generationConfig": generation_config(),
        "safetySettings": [
            {"category": c, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
            for c in SAFETY_CATEGORIES
        ],
    }
