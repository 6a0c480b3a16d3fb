"""Pull the first text candidate out of a vendor response envelope.

Accepts the plain `{"candidates": [{"content": {"parts": [{"text"}]}}]}`
mapping, objects exposing the same nesting through attributes, and
pydantic models such as `google.genai.types.GenerateContentResponse`.
Nothing here raises: a malformed envelope yields empty text plus an
`EnvelopeError` that is logged and handed back for the fallback reason.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import dataclasses
import logging
from typing import Any

from fitscan.core.exceptions import EnvelopeError

log = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class ExtractedText:
    """Text of the first candidate and the envelope problem, if any."""

    text: str
    error: EnvelopeError | None = None


def _get(obj: Any, key: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def _as_plain(envelope: Any) -> Any:
    # SDK responses are pydantic models; dump them to the dict shape
    dump = getattr(envelope, "model_dump", None)
    if callable(dump) and not isinstance(envelope, Mapping):
        try:
            return dump()
        except (TypeError, ValueError) as e:
            log.debug("model_dump() failed on %s: %s", type(envelope).__name__, e)
    return envelope


def _first(items: Any) -> Any:
    if isinstance(items, Sequence) and not isinstance(items, str | bytes) and items:
        return items[0]
    return None


def read_envelope(envelope: Any) -> ExtractedText:
    """Return the first candidate's first text part.

    Only the first candidate is consulted. Within it, the first part that
    carries a string `text` wins, so inline-data parts ahead of the text
    are skipped.
    """
    plain = _as_plain(envelope)
    candidate = _first(_get(plain, "candidates"))
    if candidate is None:
        error = EnvelopeError("response has no candidates")
    else:
        content = _get(candidate, "content")
        parts = _get(content, "parts") if content is not None else None
        if content is None:
            error = EnvelopeError("first candidate has no content")
        elif _first(parts) is None:
            error = EnvelopeError("first candidate has no parts")
        else:
            for part in parts:
                text = _get(part, "text")
                if isinstance(text, str):
                    return ExtractedText(text=text)
            error = EnvelopeError("first candidate has no text part")

    log.warning("EnvelopeError: %s", error)
    return ExtractedText(text="", error=error)


def extract_text(envelope: Any) -> str:
    """Return the first candidate's text, or "" if the envelope is malformed."""
    return read_envelope(envelope).text
