"""Scenario-first convenience helpers for common operations.

These functions provide a minimal "pit of success" entrypoint over the
`ResultBuilder` and the transport retry loop, without changing core
behavior. Every helper returns a `ResultEnvelope`; only a programming
error yields ``success=False``.
"""

from __future__ import annotations

from collections.abc import Iterable
import logging
from typing import TYPE_CHECKING, Any

from fitscan.config import InterpreterSettings, resolve_settings
from fitscan.core.exceptions import TransportError
from fitscan.core.types import InterpretationContext, RecordKind, ResultEnvelope
from fitscan.pipeline.result_builder import ResultBuilder
from fitscan.prompts import InlineMedia, build_request
from fitscan.transport import GenAITransport, generate_with_retries

if TYPE_CHECKING:  # pragma: no cover - typing only
    from google import genai

    from fitscan.transport import TransportClient

log = logging.getLogger(__name__)


def create_builder(settings: InterpreterSettings | None = None) -> ResultBuilder:
    """Create a `ResultBuilder` configured from `settings` (or the environment)."""
    final = settings or resolve_settings()
    return ResultBuilder(
        final.load_tables(),
        enable_diagnostics=final.enable_diagnostics,
        max_text_size=final.max_text_size,
    )


def create_transport(
    client: genai.Client, settings: InterpreterSettings | None = None
) -> GenAITransport:
    """Wrap a google-genai client using the configured model."""
    final = settings or resolve_settings()
    return GenAITransport(client, final.model)


def _context(context: InterpretationContext | None) -> InterpretationContext:
    return context if context is not None else InterpretationContext()


def interpret(
    kind: RecordKind | str,
    envelope: Any,
    context: InterpretationContext | None = None,
    *,
    settings: InterpreterSettings | None = None,
) -> ResultEnvelope:
    """Interpret a vendor envelope the caller already fetched.

    Example:
        ```python
        result = interpret("food_analysis", response_json)
        if result.is_fallback:
            log.info("best-effort record: %s", result.reason)
        payload = result.to_dict()
        ```
    """
    return create_builder(settings).build(kind, envelope, _context(context))


def interpret_failure(
    kind: RecordKind | str,
    reason: str | BaseException,
    context: InterpretationContext | None = None,
    *,
    settings: InterpreterSettings | None = None,
) -> ResultEnvelope:
    """Build a fallback envelope after the transport gave up.

    Args:
        kind: Record kind the caller asked for.
        reason: The exhausted transport error, or its message.
        context: Request context used for synthesis.
        settings: Optional settings; resolved from the environment if omitted.
    """
    if isinstance(reason, TransportError):
        text = reason.reason()
    elif isinstance(reason, BaseException):
        text = f"TransportError: {reason}"
    else:
        text = reason
    return create_builder(settings).build_fallback(kind, text, _context(context))


async def analyze(
    kind: RecordKind | str,
    client: TransportClient,
    context: InterpretationContext | None = None,
    media: Iterable[InlineMedia] = (),
    *,
    settings: InterpreterSettings | None = None,
) -> ResultEnvelope:
    """Send one analysis request and interpret the response.

    Transient transport failures are retried up to
    `settings.max_transport_attempts`; once retries are exhausted the
    error becomes the `reason` of a fallback envelope.

    See Also:
        For custom transports or retry loops, call `ResultBuilder` directly.
    """
    final = settings or resolve_settings()
    kind = RecordKind.parse(kind)
    ctx = _context(context)
    request = build_request(kind, ctx, tuple(media))
    builder = create_builder(final)
    try:
        envelope = await generate_with_retries(
            client,
            request,
            max_attempts=final.max_transport_attempts,
            base_delay=final.retry_base_delay,
        )
    except TransportError as e:
        log.warning("Transport exhausted for %s: %s", kind.value, e)
        return builder.build_fallback(kind, e.reason(), ctx)
    return builder.build(kind, envelope, ctx)


# --- Per-analysis shortcuts ---


async def analyze_food_photo(
    client: TransportClient,
    image: InlineMedia,
    context: InterpretationContext | None = None,
    *,
    settings: InterpreterSettings | None = None,
) -> ResultEnvelope:
    return await analyze(
        RecordKind.FOOD_ANALYSIS, client, context, (image,), settings=settings
    )


async def analyze_body_photos(
    client: TransportClient,
    images: Iterable[InlineMedia],
    context: InterpretationContext | None = None,
    *,
    settings: InterpreterSettings | None = None,
) -> ResultEnvelope:
    """Analyze front/side/back photos together with the caller's stats."""
    return await analyze(
        RecordKind.BODY_ANALYSIS, client, context, tuple(images), settings=settings
    )


async def analyze_voice_workout(
    client: TransportClient,
    audio: InlineMedia,
    context: InterpretationContext | None = None,
    *,
    settings: InterpreterSettings | None = None,
) -> ResultEnvelope:
    return await analyze(
        RecordKind.VOICE_WORKOUT, client, context, (audio,), settings=settings
    )


async def analyze_voice_food(
    client: TransportClient,
    audio: InlineMedia,
    context: InterpretationContext | None = None,
    *,
    settings: InterpreterSettings | None = None,
) -> ResultEnvelope:
    return await analyze(
        RecordKind.VOICE_FOOD, client, context, (audio,), settings=settings
    )
