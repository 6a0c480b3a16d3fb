from types import SimpleNamespace

import pytest

from fitscan.core.exceptions import TransportError
from fitscan.core.types import InterpretationContext, RecordKind
from fitscan.prompts import InlineMedia, build_request
from fitscan.transport import (
    GenAITransport,
    TransportClient,
    backoff_delay,
    generate_with_retries,
    is_retryable,
    should_retry,
    to_genai_config,
    to_genai_contents,
)

pytestmark = pytest.mark.unit


class ScriptedClient:
    """Transport stub that raises or returns the scripted outcomes in order."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


# --- Classification ---


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (TimeoutError(), True),
        (ConnectionError("reset"), True),
        (RuntimeError("503 Service Unavailable"), True),
        (RuntimeError("request timed out"), True),
        (TransportError("boom", status_code=502), True),
        (TransportError("bad request", status_code=400), False),
        (TransportError("odd", retryable=True), True),
        (TransportError("503", retryable=False), False),
        (ValueError("invalid argument"), False),
    ],
)
def test_is_retryable(error, expected):
    assert is_retryable(error) is expected


def test_should_retry_respects_attempt_cap():
    err = TimeoutError()
    assert should_retry(err, 1)
    assert should_retry(err, 2)
    assert not should_retry(err, 3)
    assert not should_retry(ValueError("x"), 1)


def test_backoff_grows_exponentially():
    assert 1.0 <= backoff_delay(1, 1.0) <= 1.25
    assert 4.0 <= backoff_delay(3, 1.0) <= 5.0


def test_scripted_client_satisfies_protocol():
    assert isinstance(ScriptedClient(), TransportClient)


# --- Retry loop ---


@pytest.mark.asyncio
async def test_transient_failures_are_retried_until_success():
    client = ScriptedClient(TimeoutError(), RuntimeError("502 bad gateway"), {"ok": 1})
    sleep = RecordingSleep()
    result = await generate_with_retries(client, {"r": 1}, base_delay=0.01, sleep=sleep)
    assert result == {"ok": 1}
    assert len(client.requests) == 3
    assert len(sleep.delays) == 2


@pytest.mark.asyncio
async def test_gives_up_after_three_attempts():
    client = ScriptedClient(TimeoutError(), TimeoutError(), TimeoutError("last"), {"ok": 1})
    sleep = RecordingSleep()
    with pytest.raises(TransportError) as exc_info:
        await generate_with_retries(client, {}, base_delay=0, sleep=sleep)
    assert len(client.requests) == 3
    assert exc_info.value.reason() == "TransportError: last"
    assert isinstance(exc_info.value.__cause__, TimeoutError)


@pytest.mark.asyncio
async def test_permanent_failure_is_not_retried():
    client = ScriptedClient(TransportError("bad request", status_code=400))
    sleep = RecordingSleep()
    with pytest.raises(TransportError, match="bad request"):
        await generate_with_retries(client, {}, sleep=sleep)
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_max_attempts_must_be_positive():
    with pytest.raises(ValueError, match="max_attempts"):
        await generate_with_retries(ScriptedClient(), {}, max_attempts=0)


# --- google-genai adapter ---


def test_request_body_converts_to_genai_types():
    request = build_request(
        RecordKind.FOOD_ANALYSIS,
        InterpretationContext(),
        (InlineMedia("image/jpeg", b"\xff\xd8jpeg"),),
    )
    (content,) = to_genai_contents(request)
    assert content.role == "user"
    assert content.parts[0].text.startswith("Analyze this food photo")
    assert content.parts[1].inline_data.data == b"\xff\xd8jpeg"
    assert content.parts[1].inline_data.mime_type == "image/jpeg"

    config = to_genai_config(request)
    assert config.temperature == 1.0
    assert config.top_k == 1
    assert config.max_output_tokens == 2048
    assert len(config.safety_settings) == 4


@pytest.mark.asyncio
async def test_genai_transport_calls_async_models_api():
    calls = []

    async def generate_content(**kwargs):
        calls.append(kwargs)
        return {"candidates": []}

    models = SimpleNamespace(generate_content=generate_content)
    client = SimpleNamespace(aio=SimpleNamespace(models=models))
    transport = GenAITransport(client, model="gemini-test")
    response = await transport.generate(build_request(RecordKind.VOICE_FOOD))
    assert response == {"candidates": []}
    assert calls[0]["model"] == "gemini-test"
    assert isinstance(transport, TransportClient)
