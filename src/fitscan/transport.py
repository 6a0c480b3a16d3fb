"""Transport collaborator: the client protocol and its retry policy.

The interpretation core never talks to the network. Callers own a
`TransportClient`, retry transient failures with `generate_with_retries`
(at most three attempts by default), and hand the final response, or the
exhausted error's reason, to the result builder.
"""

from __future__ import annotations

import asyncio
import base64
from collections.abc import Awaitable, Callable, Mapping
import logging
from random import random
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from google.genai import errors as genai_errors
from google.genai import types as genai_types

from fitscan.constants import (
    DEFAULT_MODEL,
    MAX_TRANSPORT_ATTEMPTS,
    RETRY_BASE_DELAY,
    RETRYABLE_STATUS_MARKERS,
)
from fitscan.core.exceptions import TransportError

if TYPE_CHECKING:
    from google import genai

log = logging.getLogger(__name__)


@runtime_checkable
class TransportClient(Protocol):
    """Anything that can send a request body and return a vendor envelope."""

    async def generate(self, request: Mapping[str, Any]) -> Any: ...  # noqa: D102


def is_retryable(err: BaseException) -> bool:
    """Classify an error as transient (network, timeout, 5xx) or not."""
    if isinstance(err, TransportError):
        if err.retryable is not None:
            return err.retryable
        if err.status_code is not None:
            return err.status_code >= 500
    if isinstance(err, TimeoutError | ConnectionError):
        return True
    text = str(err).lower()
    return any(marker in text for marker in RETRYABLE_STATUS_MARKERS)


def should_retry(
    err: BaseException, attempt: int, max_attempts: int = MAX_TRANSPORT_ATTEMPTS
) -> bool:
    """Return True if `attempt` (1-based) failed transiently and may be retried."""
    return attempt < max_attempts and is_retryable(err)


def backoff_delay(attempt: int, base_delay: float = RETRY_BASE_DELAY) -> float:
    """Exponential backoff with a little jitter."""
    return base_delay * (2 ** (attempt - 1)) * (1 + 0.25 * random())  # noqa: S311


def _as_transport_error(err: Exception) -> TransportError:
    if isinstance(err, TransportError):
        return err
    return TransportError(
        str(err) or type(err).__name__,
        status_code=getattr(err, "code", None)
        if isinstance(getattr(err, "code", None), int)
        else None,
        retryable=is_retryable(err),
    )


async def generate_with_retries(
    client: TransportClient,
    request: Mapping[str, Any],
    *,
    max_attempts: int = MAX_TRANSPORT_ATTEMPTS,
    base_delay: float = RETRY_BASE_DELAY,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> Any:
    """Call `client.generate`, retrying transient failures.

    Raises:
        TransportError: When the error is not retryable or attempts run out.
            Other exception types are wrapped, keeping the original as cause.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    for attempt in range(1, max_attempts + 1):
        try:
            return await client.generate(request)
        except Exception as e:
            if not should_retry(e, attempt, max_attempts):
                log.warning(
                    "Transport failed after %d attempt(s): %s", attempt, e
                )
                raise _as_transport_error(e) from e
            delay = backoff_delay(attempt, base_delay)
            log.info(
                "Transient transport error on attempt %d/%d, retrying in %.2fs: %s",
                attempt,
                max_attempts,
                delay,
                e,
            )
            await sleep(delay)
    raise AssertionError("unreachable")  # pragma: no cover


# --- google-genai adapter ---


def _to_genai_part(part: Mapping[str, Any]) -> genai_types.Part:
    inline = part.get("inlineData")
    if isinstance(inline, Mapping):
        return genai_types.Part.from_bytes(
            data=base64.b64decode(inline["data"]),
            mime_type=inline["mimeType"],
        )
    return genai_types.Part.from_text(text=str(part.get("text", "")))


def to_genai_contents(request: Mapping[str, Any]) -> list[genai_types.Content]:
    return [
        genai_types.Content(
            role=content.get("role", "user"),
            parts=[_to_genai_part(p) for p in content.get("parts", [])],
        )
        for content in request.get("contents", [])
    ]


def to_genai_config(request: Mapping[str, Any]) -> genai_types.GenerateContentConfig:
    config = request.get("generationConfig", {})
    return genai_types.GenerateContentConfig(
        temperature=config.get("temperature"),
        top_k=config.get("topK"),
        top_p=config.get("topP"),
        max_output_tokens=config.get("maxOutputTokens"),
        safety_settings=[
            genai_types.SafetySetting(category=s["category"], threshold=s["threshold"])
            for s in request.get("safetySettings", [])
        ]
        or None,
    )


class GenAITransport:
    """`TransportClient` backed by the google-genai SDK.

    Returns the SDK's `GenerateContentResponse`, which the envelope
    extractor reads through `model_dump()`.
    """

    def __init__(self, client: genai.Client, model: str = DEFAULT_MODEL) -> None:
        self._client = client
        self.model = model

    async def generate(self, request: Mapping[str, Any]) -> Any:
        try:
            return await self._client.aio.models.generate_content(
                model=self.model,
                contents=to_genai_contents(request),
                config=to_genai_config(request),
            )
        except genai_errors.APIError as e:
            raise TransportError(
                f"Gemini API error: {e.code} - {e.message}",
                status_code=e.code,
            ) from e
