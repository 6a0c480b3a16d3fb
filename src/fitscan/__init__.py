"""Resilient interpretation of generative-AI fitness and nutrition analyses."""

import importlib.metadata
import logging

from fitscan.config import InterpreterSettings, resolve_settings
from fitscan.core.exceptions import (
    ConfigurationError,
    EnvelopeError,
    FitscanError,
    JsonSyntaxError,
    SemanticValidationError,
    TableLoadError,
    TransportError,
    UnknownInterpretationError,
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
from fitscan.core.types import (
    Failure,
    InterpretationContext,
    RecordKind,
    Result,
    ResultEnvelope,
    Success,
)
from fitscan.frontdoor import (
    analyze,
    analyze_body_photos,
    analyze_food_photo,
    analyze_voice_food,
    analyze_voice_workout,
    create_builder,
    create_transport,
    interpret,
    interpret_failure,
)
from fitscan.pipeline.result_builder import InterpretationCommand, ResultBuilder
from fitscan.prompts import InlineMedia, build_prompt, build_request
from fitscan.transport import (
    GenAITransport,
    TransportClient,
    generate_with_retries,
    is_retryable,
    should_retry,
)

# Version handling
try:
    __version__ = importlib.metadata.version("fitscan")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Set up a null handler for the library's root logger.
# This prevents 'No handler found' errors if the consuming app has no logging configured.
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Public API
__all__ = [  # noqa: RUF022
    # Front door
    "interpret",
    "interpret_failure",
    "analyze",
    "analyze_food_photo",
    "analyze_body_photos",
    "analyze_voice_workout",
    "analyze_voice_food",
    "create_builder",
    "create_transport",
    # Pipeline
    "ResultBuilder",
    "InterpretationCommand",
    # Configuration
    "InterpreterSettings",
    "resolve_settings",
    # Core Types
    "InterpretationContext",
    "RecordKind",
    "ResultEnvelope",
    "Result",
    "Success",
    "Failure",
    # Records
    "DomainRecord",
    "FoodAnalysis",
    "FoodItem",
    "NutritionPer100g",
    "BodyAnalysis",
    "VoiceWorkout",
    "WorkoutPayload",
    "StrengthExercise",
    "WorkoutSet",
    "CardioSession",
    "VoiceFood",
    # Prompts & transport
    "InlineMedia",
    "build_prompt",
    "build_request",
    "TransportClient",
    "GenAITransport",
    "generate_with_retries",
    "is_retryable",
    "should_retry",
    # Exceptions
    "FitscanError",
    "ConfigurationError",
    "TableLoadError",
    "EnvelopeError",
    "JsonSyntaxError",
    "SemanticValidationError",
    "UnknownInterpretationError",
    "TransportError",
]
