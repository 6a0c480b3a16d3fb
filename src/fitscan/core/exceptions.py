"""Exception hierarchy for the interpretation layer.

Envelope, JSON and semantic errors are absorbed by the result builder and
turned into fallback records; they exist as types so that reasons and log
records carry a stable name. `TransportError` belongs to the caller's
transport loop and `UnknownInterpretationError` marks programming errors.
"""


class FitscanError(Exception):
    """Base exception for all fitscan errors."""


class ConfigurationError(FitscanError):
    """Raised when settings or lookup tables are invalid."""


class TableLoadError(ConfigurationError):
    """Raised when a fallback table file cannot be read or is malformed."""

    def __init__(self, source: str, message: str) -> None:
        """Initialize with the table source and a human-readable message."""
        self.source = source
        self.message = message
        super().__init__(f"Fallback table error in {source}: {message}")


class InterpretationError(FitscanError):
    """Base for errors raised while interpreting a vendor response."""

    code = "InterpretationError"

    def reason(self) -> str:
        """Return the `Code: detail` string used in result envelopes."""
        detail = str(self)
        return f"{self.code}: {detail}" if detail else self.code


class EnvelopeError(InterpretationError):
    """Vendor response is missing the candidates/content/parts nesting."""

    code = "EnvelopeError"


class JsonSyntaxError(InterpretationError):
    """Response text stays unparsable after every recovery stage."""

    code = "JsonSyntaxError"


class SemanticValidationError(InterpretationError):
    """Parsed record violates the domain rules for its kind."""

    code = "SemanticValidationError"


class UnknownInterpretationError(InterpretationError):
    """Unexpected failure while decoding or synthesizing a record."""

    code = "UnknownError"


class TransportError(FitscanError):
    """Failure talking to the generative vendor.

    Raised by transport clients, never by the interpretation pipeline.
    `retryable` is None when the client does not know; the retry policy
    then classifies the error from its message and status code.
    """

    code = "TransportError"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        retryable: bool | None = None,
    ) -> None:
        """Initialize with a message and optional HTTP status and hint."""
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(message)

    def reason(self) -> str:
        """Return the `Code: detail` string used in result envelopes."""
        return f"{self.code}: {self}"
