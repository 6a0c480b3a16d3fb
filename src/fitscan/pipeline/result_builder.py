"""Result builder: vendor envelope in, `ResultEnvelope` out.

Runs the interpretation chain for one response:

    envelope -> text -> recovery -> decoding -> validation
                                  \\-> fallback synthesis (on any failure)

Envelope, JSON and semantic failures never escape; they become the
`reason` of a fallback envelope. Only an unexpected exception (a bug in
decoding or synthesis) produces ``success=False``, and it is logged with
its traceback.

Focus: how to configure and call `ResultBuilder`, what it returns, and
when diagnostics are produced.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from typing import Any, Never

from fitscan.constants import (
    GENERIC_FAILURE_REASON,
    KEYWORD_CONFIDENCE_CEILING,
    MAX_TEXT_SIZE,
)
from fitscan.core.exceptions import (
    EnvelopeError,
    InterpretationError,
    JsonSyntaxError,
    SemanticValidationError,
    UnknownInterpretationError,
)
from fitscan.core.records import DomainRecord, iter_food_items
from fitscan.core.types import (
    InterpretationContext,
    RecordKind,
    Result,
    ResultEnvelope,
    Success,
)
from fitscan.pipeline.base import BaseAsyncHandler
from fitscan.pipeline.coercion import Node
from fitscan.pipeline.decoders import decode_record, vendor_error
from fitscan.pipeline.envelope import read_envelope
from fitscan.pipeline.fallback import FallbackSynthesizer
from fitscan.pipeline.recovery import recover_json
from fitscan.pipeline.validation import validate
from fitscan.tables import FallbackTables, default_tables

log = logging.getLogger(__name__)

KEYWORD_REASON = "JsonSyntaxError: response was not JSON; record rebuilt from keywords"


def _check_fallback_confidence(kind: RecordKind, record: DomainRecord) -> None:
    over = [
        item.name
        for item in iter_food_items(record)
        if item.confidence > KEYWORD_CONFIDENCE_CEILING
    ]
    if over:
        raise UnknownInterpretationError(
            f"fallback {kind.value} items exceed confidence "
            f"{KEYWORD_CONFIDENCE_CEILING}: {', '.join(over)}"
        )


@dataclasses.dataclass
class InterpretationDiagnostics:
    """Per-response trace of what the pipeline tried."""

    attempted_stages: list[str] = dataclasses.field(default_factory=list)
    successful_stage: str | None = None
    stage_errors: dict[str, str] = dataclasses.field(default_factory=dict)
    validation_reason: str | None = None
    flags: set[str] = dataclasses.field(default_factory=set)
    duration_ms: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        data["flags"] = sorted(self.flags)
        return data


@dataclasses.dataclass(frozen=True, slots=True)
class InterpretationCommand:
    """Input for the async handler interface."""

    kind: RecordKind
    envelope: Any
    context: InterpretationContext | None = None


class ResultBuilder(BaseAsyncHandler[InterpretationCommand, ResultEnvelope, Never]):
    """Build `ResultEnvelope` objects from vendor responses.

    Attributes:
        tables: Fallback lookup tables.
        enable_diagnostics: Whether to attach `InterpretationDiagnostics`.
        max_text_size: Maximum response text length processed.
    """

    def __init__(
        self,
        tables: FallbackTables | None = None,
        *,
        enable_diagnostics: bool = False,
        max_text_size: int = MAX_TEXT_SIZE,
    ) -> None:
        """Initialize the ResultBuilder.

        Args:
            tables: Optional lookup tables. Defaults to the bundled tables.
            enable_diagnostics: If True, attach diagnostics to envelopes.
            max_text_size: Max text length to process; longer text is cut.
        """
        self.tables = tables if tables is not None else default_tables()
        self.enable_diagnostics = enable_diagnostics
        self.max_text_size = max_text_size
        self.synthesizer = FallbackSynthesizer(self.tables)

    async def handle(
        self, command: InterpretationCommand
    ) -> Result[ResultEnvelope, Never]:
        """Interpret `command.envelope`; always returns `Success`."""
        return Success(self.build(command.kind, command.envelope, command.context))

    def build(
        self,
        kind: RecordKind | str,
        envelope: Any,
        context: InterpretationContext | None = None,
    ) -> ResultEnvelope:
        """Interpret a raw vendor envelope."""
        extracted = read_envelope(envelope)
        return self.build_from_text(
            kind, extracted.text, context, envelope_error=extracted.error
        )

    def build_from_text(
        self,
        kind: RecordKind | str,
        text: str,
        context: InterpretationContext | None = None,
        *,
        envelope_error: EnvelopeError | None = None,
    ) -> ResultEnvelope:
        """Interpret already-extracted response text.

        Raises:
            ValueError: If `kind` is not a known record kind.
        """
        start_time = time.perf_counter()
        kind = RecordKind.parse(kind)
        context = context if context is not None else InterpretationContext()
        diagnostics = InterpretationDiagnostics() if self.enable_diagnostics else None

        if len(text) > self.max_text_size:
            text = text[: self.max_text_size]
            if diagnostics:
                diagnostics.flags.add("truncated_input")
        if diagnostics and not text.strip():
            diagnostics.flags.add("empty_text")

        try:
            result = self._interpret(kind, text, context, envelope_error, diagnostics)
        except Exception:
            log.exception("Unexpected error while interpreting a %s response", kind.value)
            if diagnostics:
                diagnostics.flags.add("unknown_error")
            result = ResultEnvelope(
                kind=kind,
                success=False,
                is_fallback=False,
                reason=GENERIC_FAILURE_REASON,
            )

        if diagnostics:
            diagnostics.duration_ms = (time.perf_counter() - start_time) * 1000
            result = dataclasses.replace(result, diagnostics=diagnostics.to_dict())
        return result

    def build_fallback(
        self,
        kind: RecordKind | str,
        reason: str,
        context: InterpretationContext | None = None,
    ) -> ResultEnvelope:
        """Build a fallback envelope for a request that never got a response.

        Used after the caller's transport retries are exhausted; `reason`
        is the transport error text.
        """
        kind = RecordKind.parse(kind)
        context = context if context is not None else InterpretationContext()
        try:
            return self._fallback(kind, context, reason or "TransportError")
        except Exception:
            log.exception("Unexpected error while synthesizing a %s fallback", kind.value)
            return ResultEnvelope(
                kind=kind,
                success=False,
                is_fallback=False,
                reason=GENERIC_FAILURE_REASON,
            )

    # --- Internals ---

    def _interpret(
        self,
        kind: RecordKind,
        text: str,
        context: InterpretationContext,
        envelope_error: EnvelopeError | None,
        diagnostics: InterpretationDiagnostics | None,
    ) -> ResultEnvelope:
        if envelope_error is not None:
            if diagnostics:
                diagnostics.flags.add("envelope_error")
            return self._fallback(kind, context, envelope_error.reason(), text)

        recovery = recover_json(text, kind, self.tables)
        if diagnostics:
            diagnostics.attempted_stages.extend(recovery.attempted)
            diagnostics.stage_errors.update(recovery.errors)
            diagnostics.successful_stage = recovery.stage

        if recovery.node is None:
            failure: InterpretationError = JsonSyntaxError(
                "empty response" if not text.strip() else "no JSON object could be recovered"
            )
            return self._fallback(kind, context, failure.reason(), text)

        try:
            record = decode_record(kind, recovery.node, context, self.tables)
        except (ValueError, OverflowError) as e:
            # A record guard rejected a vendor value the decoders let through
            if diagnostics:
                diagnostics.flags.add("decode_error")
            failure = SemanticValidationError(f"record could not be decoded: {e}")
            return self._fallback(kind, context, failure.reason(), text, recovery.node)
        outcome = validate(record)
        if outcome.passed:
            if recovery.reconstructed:
                _check_fallback_confidence(kind, record)
                log.warning("Rebuilt %s record from keywords", kind.value)
                return self._envelope(kind, record, reason=KEYWORD_REASON)
            return self._envelope(kind, record)

        if diagnostics:
            diagnostics.validation_reason = outcome.reason
        detail = outcome.reason
        if message := vendor_error(recovery.node):
            detail = f"{detail} (vendor: {message})"
        failure = SemanticValidationError(detail)
        return self._fallback(kind, context, failure.reason(), text, recovery.node)

    def _fallback(
        self,
        kind: RecordKind,
        context: InterpretationContext,
        reason: str,
        text: str = "",
        node: Node | None = None,
    ) -> ResultEnvelope:
        record = self.synthesizer.synthesize(kind, context, text, node)
        outcome = validate(record)
        if not outcome.passed:
            raise UnknownInterpretationError(
                f"synthesized {kind.value} record failed validation: {outcome.reason}"
            )
        _check_fallback_confidence(kind, record)
        log.warning("Returning %s fallback: %s", kind.value, reason)
        return self._envelope(kind, record, reason=reason)

    @staticmethod
    def _envelope(
        kind: RecordKind, record: DomainRecord, *, reason: str | None = None
    ) -> ResultEnvelope:
        return ResultEnvelope(
            kind=kind,
            success=True,
            is_fallback=reason is not None,
            record=record,
            reason=reason,
        )
