"""JSON recovery: get an object node out of free-form vendor text.

Stages run in a fixed order and the first one that yields a JSON object
wins:

1. ``strict``: parse the whole text as-is.
2. ``balanced_brace``: parse the minimal ``{...}`` starting at the first
   ``{``, found by depth tracking.
3. ``naive_substring``: parse everything from the first ``{`` to the
   last ``}``.
4. ``repair``: strip comments, normalize single quotes and drop trailing
   commas in the stage 2/3 substrings, then parse again.
5. ``keyword``: rebuild a minimal node tree from keyword tables without
   parsing JSON at all.

Every stage is a pure function of the text. `recover_json` never raises;
total failure is a `RecoveryResult` with ``node=None``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
import dataclasses
import json
import logging
from types import MappingProxyType
from typing import Any

from fitscan.core.types import RecordKind
from fitscan.pipeline.keywords import reconstruct_node
from fitscan.tables import FallbackTables, default_tables

log = logging.getLogger(__name__)

STAGES: tuple[str, ...] = (
    "strict",
    "balanced_brace",
    "naive_substring",
    "repair",
    "keyword",
)


@dataclasses.dataclass(frozen=True, slots=True)
class RecoveryResult:
    """Outcome of the recovery pipeline.

    Attributes:
        node: Parsed (or reconstructed) JSON object, or None on failure.
        stage: Name of the stage that produced `node`.
        attempted: Stages tried, in order.
        errors: Per-stage failure messages.
    """

    node: Mapping[str, Any] | None
    stage: str | None = None
    attempted: tuple[str, ...] = ()
    errors: Mapping[str, str] = dataclasses.field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def ok(self) -> bool:
        return self.node is not None

    @property
    def reconstructed(self) -> bool:
        """True when the node came from keywords rather than JSON text."""
        return self.stage == "keyword"


class _StageFailed(ValueError):
    """Internal signal that a stage produced nothing usable."""


# --- Substring extraction ---


def balanced_brace_fragment(text: str) -> str | None:
    """Return the minimal balanced ``{...}`` starting at the first ``{``.

    Braces inside string literals are ignored. Returns None when the
    object never closes (truncated output).
    """
    start = text.find("{")
    if start < 0:
        return None
    depth = 0
    in_str = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_str:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_str = False
            continue
        if ch == '"':
            in_str = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def naive_fragment(text: str) -> str | None:
    """Return everything from the first ``{`` to the last ``}``."""
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        return None
    return text[start : end + 1]


# --- Textual repair ---


def strip_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments outside string literals.

    Both quote styles delimit strings here, since quote normalization
    runs after this step.
    """
    out: list[str] = []
    quote: str | None = None
    escaped = False
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if quote is not None:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
            i += 1
            continue

        if ch in ('"', "'"):
            quote = ch
            out.append(ch)
            i += 1
            continue

        if ch == "/" and i + 1 < n:
            nxt = text[i + 1]
            if nxt == "/":
                i += 2
                while i < n and text[i] not in "\n\r":
                    i += 1
                continue
            if nxt == "*":
                end = text.find("*/", i + 2)
                i = n if end < 0 else end + 2
                continue

        out.append(ch)
        i += 1
    return "".join(out)


def normalize_quotes(text: str) -> str:
    """Rewrite single-quoted strings as double-quoted JSON strings.

    Apostrophes inside double-quoted strings are left alone, and double
    quotes inside single-quoted strings get escaped.
    """
    out: list[str] = []
    quote: str | None = None
    escaped = False
    for ch in text:
        if quote == '"':
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                quote = None
        elif quote == "'":
            if escaped:
                # \' is not a valid JSON escape
                out.append(ch if ch == "'" else "\\" + ch)
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == "'":
                out.append('"')
                quote = None
            elif ch == '"':
                out.append('\\"')
            else:
                out.append(ch)
        elif ch == "'":
            quote = "'"
            out.append('"')
        else:
            if ch == '"':
                quote = '"'
            out.append(ch)
    return "".join(out)


def remove_trailing_commas(text: str) -> str:
    """Drop commas directly before ``}`` or ``]``, preserving strings."""
    out: list[str] = []
    in_str = False
    escaped = False
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if in_str:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_str = False
            i += 1
            continue

        if ch == '"':
            in_str = True
        elif ch == ",":
            j = i + 1
            while j < n and text[j] in " \t\r\n":
                j += 1
            if j < n and text[j] in "}]":
                i += 1
                continue
        out.append(ch)
        i += 1
    return "".join(out)


def repair_json_text(fragment: str) -> str:
    """Apply comment stripping, quote normalization and comma removal."""
    return remove_trailing_commas(normalize_quotes(strip_comments(fragment)))


# --- Stages ---


def _parse_object(candidate: str | None) -> Mapping[str, Any]:
    if candidate is None:
        raise _StageFailed("no JSON object found in text")
    try:
        value = json.loads(candidate)
    except RecursionError as e:
        raise _StageFailed("JSON nesting too deep") from e
    except json.JSONDecodeError as e:
        raise _StageFailed(str(e)) from e
    if not isinstance(value, dict):
        raise _StageFailed(f"top-level JSON value is {type(value).__name__}, not object")
    return value


def _repair_stage(text: str) -> Mapping[str, Any]:
    fragments: list[str] = []
    for fragment in (balanced_brace_fragment(text), naive_fragment(text)):
        if fragment is not None and fragment not in fragments:
            fragments.append(fragment)
    error = _StageFailed("no JSON object found in text")
    for fragment in fragments:
        try:
            return _parse_object(repair_json_text(fragment))
        except _StageFailed as e:
            error = e
    raise error


def recover_json(
    text: str,
    kind: RecordKind,
    tables: FallbackTables | None = None,
) -> RecoveryResult:
    """Run the recovery stages over `text` and return the first success."""
    tables = tables if tables is not None else default_tables()
    stages: tuple[tuple[str, Callable[[str], Mapping[str, Any] | None]], ...] = (
        ("strict", lambda t: _parse_object(t)),
        ("balanced_brace", lambda t: _parse_object(balanced_brace_fragment(t))),
        ("naive_substring", lambda t: _parse_object(naive_fragment(t))),
        ("repair", _repair_stage),
        ("keyword", lambda t: reconstruct_node(t, kind, tables)),
    )

    attempted: list[str] = []
    errors: dict[str, str] = {}
    for name, stage in stages:
        attempted.append(name)
        try:
            node = stage(text)
        except _StageFailed as e:
            errors[name] = str(e)
            log.debug("Recovery stage %s failed: %s", name, e)
            continue
        if node is None:
            errors[name] = "no keyword matched"
            continue
        log.debug("Recovery stage %s produced a %s node", name, kind.value)
        return RecoveryResult(
            node=node,
            stage=name,
            attempted=tuple(attempted),
            errors=MappingProxyType(errors),
        )

    return RecoveryResult(
        node=None,
        attempted=tuple(attempted),
        errors=MappingProxyType(errors),
    )
