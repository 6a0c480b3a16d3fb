"""Core data types shared by every pipeline stage.

The interpretation pipeline passes immutable values from stage to stage:
an `InterpretationContext` describing the request, a `ValidationOutcome`
per candidate record, and finally a `ResultEnvelope`, which is the only
value that leaves the core.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime
import enum
from types import MappingProxyType
import typing

if typing.TYPE_CHECKING:
    from fitscan.core.records import DomainRecord

# --- Minimal guard helpers (clarity > boilerplate) ---

T = typing.TypeVar("T")


def _freeze_mapping(
    m: dict[str, T] | typing.Mapping[str, T] | None,
) -> typing.Mapping[str, T] | None:
    """Return an immutable mapping view or None.

    Accepts dict or Mapping; wraps dicts in MappingProxyType.
    """
    if m is None or isinstance(m, MappingProxyType):
        return m
    return MappingProxyType(dict(m))


def _is_tuple_of(value: object, typ: type | tuple[type, ...]) -> bool:
    return isinstance(value, tuple) and all(isinstance(v, typ) for v in value)


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValueError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


def _is_positive_number(value: object) -> bool:
    return (
        isinstance(value, int | float)
        and not isinstance(value, bool)
        and value > 0
    )


# --- Result Monad ---
# Handlers return Success/Failure instead of raising so that the async
# entry points compose the same way the sync builder does.

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success(typing.Generic[TSuccess]):
    """A successful result in the pipeline."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure(typing.Generic[TFailure]):
    """A failure in the pipeline, containing the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]


# --- Request Description ---


class RecordKind(enum.Enum):
    """The four analyses the interpretation layer understands."""

    FOOD_ANALYSIS = "food_analysis"
    BODY_ANALYSIS = "body_analysis"
    VOICE_WORKOUT = "voice_workout"
    VOICE_FOOD = "voice_food"

    @classmethod
    def parse(cls, value: RecordKind | str) -> RecordKind:
        """Accept an enum member, its value, or its name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if normalized in (member.value, member.name.lower()):
                    return member
        raise ValueError(
            f"Invalid record kind: {value!r}. Must be one of: "
            + ", ".join(m.value for m in cls)
        )


@dataclasses.dataclass(frozen=True, slots=True)
class InterpretationContext:
    """Everything the fallback synthesizer may use besides the response.

    `now` is an explicit input so that synthesis stays deterministic; the
    front door fills it from the wall clock when the caller does not.
    """

    now: datetime = dataclasses.field(default_factory=datetime.now)
    meal_type: str | None = None
    workout_type: str | None = None
    weight_kg: float | None = None
    height_cm: float | None = None
    age: int | None = None
    gender: str | None = None
    goals: str | None = None
    user_prompt: str | None = None

    def __post_init__(self) -> None:
        """Validate context invariants."""
        _require(
            condition=isinstance(self.now, datetime),
            message="must be a datetime",
            field_name="now",
            exc=TypeError,
        )
        for name in ("weight_kg", "height_cm"):
            value = getattr(self, name)
            _require(
                condition=value is None or _is_positive_number(value),
                message="must be a positive number when provided",
                field_name=name,
            )
        _require(
            condition=self.age is None
            or (
                isinstance(self.age, int)
                and not isinstance(self.age, bool)
                and self.age > 0
            ),
            message="must be a positive int when provided",
            field_name="age",
        )
        for name in ("meal_type", "workout_type", "gender", "goals", "user_prompt"):
            value = getattr(self, name)
            _require(
                condition=value is None or isinstance(value, str),
                message="must be a str when provided",
                field_name=name,
                exc=TypeError,
            )


@dataclasses.dataclass(frozen=True, slots=True)
class ValidationOutcome:
    """Pass/fail plus a short reason; never returned to callers."""

    passed: bool
    reason: str = ""

    @classmethod
    def ok(cls) -> ValidationOutcome:
        return cls(passed=True)

    @classmethod
    def fail(cls, reason: str) -> ValidationOutcome:
        return cls(passed=False, reason=reason)


@dataclasses.dataclass(frozen=True, slots=True)
class ResultEnvelope:
    """The only value that crosses the interpretation layer's boundary."""

    kind: RecordKind
    success: bool
    is_fallback: bool
    record: DomainRecord | None = None
    reason: str | None = None
    diagnostics: typing.Mapping[str, typing.Any] | None = None

    def __post_init__(self) -> None:
        """Enforce the envelope invariants."""
        _require(
            condition=not self.success or self.record is not None,
            message="a successful envelope must carry a record",
            field_name="record",
        )
        _require(
            condition=not self.is_fallback or bool(self.reason),
            message="a fallback envelope must carry a reason",
            field_name="reason",
        )
        object.__setattr__(self, "diagnostics", _freeze_mapping(self.diagnostics))

    def to_dict(self) -> dict[str, typing.Any]:
        """Serialize to the camelCase wire shape."""
        payload: dict[str, typing.Any] = {
            "success": self.success,
            "isFallback": self.is_fallback,
            "reason": self.reason,
            "record": self.record.to_dict() if self.record is not None else None,
        }
        if self.diagnostics is not None:
            payload["diagnostics"] = dict(self.diagnostics)
        return payload
