"""
Property-based tests for the async HTTP transport: retries, backoff and
error mapping.
"""

import asyncio

import httpx
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from gitea_cms.exceptions import (
    APIError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    ValidationError,
)
from gitea_cms.request import ApiRequest
from gitea_cms.transport import AsyncHTTPTransport, RetryConfig

API_ROOT = "https://gitea.test/api/v1"

# Test strategies
backoff_factor_strategy = st.floats(min_value=1.1, max_value=5.0)
attempt_strategy = st.integers(min_value=0, max_value=5)
retry_after_strategy = st.integers(min_value=1, max_value=120)


def make_transport(
    handler=None, retry_config: RetryConfig | None = None, token: str | None = "secret-token"
) -> AsyncHTTPTransport:
    return AsyncHTTPTransport(
        api_root=API_ROOT,
        token=token,
        retry_config=retry_config or RetryConfig(max_backoff=0.0, jitter=0.0),
        http_transport=httpx.MockTransport(handler) if handler else None,
    )


@given(
    backoff_factor=backoff_factor_strategy,
    attempt=attempt_strategy,
)
@settings(max_examples=100)
def test_exponential_backoff_timing(backoff_factor: float, attempt: int) -> None:
    """
    Property 1: Exponential backoff timing

    For any backoff factor B and attempt N, the wait before the next attempt
    is B^N seconds within the configured jitter, capped at max_backoff.
    """
    max_backoff = 100.0
    config = RetryConfig(backoff_factor=backoff_factor, jitter=0.1, max_backoff=max_backoff)
    transport = make_transport(retry_config=config)

    expected_base = backoff_factor ** attempt
    actual = transport._get_backoff_time(attempt, None)

    tolerance = 1e-9
    lower = min(expected_base * 0.9, max_backoff)
    upper = min(expected_base * 1.1, max_backoff)
    assert lower - tolerance <= actual <= upper + tolerance, (
        f"Backoff time {actual} not within 10% of {expected_base} capped at {max_backoff}"
    )


@given(retry_after=retry_after_strategy)
@settings(max_examples=100)
def test_retry_after_header_respected(retry_after: int) -> None:
    """
    Property 2: Retry-After header respected

    For any Retry-After value of T seconds the transport waits exactly T.
    """
    transport = make_transport(retry_config=RetryConfig(respect_retry_after=True))

    assert transport._get_backoff_time(0, str(retry_after)) == float(retry_after)


@given(
    status_code=st.sampled_from([400, 401, 403, 404, 409, 422]),
    attempt=st.integers(min_value=0, max_value=2),
)
@settings(max_examples=50)
def test_no_retry_on_client_errors(status_code: int, attempt: int) -> None:
    """
    Property 3: Client errors are never retried

    Any 4xx status other than 429 is returned to the caller immediately.
    """
    transport = make_transport(retry_config=RetryConfig(max_retries=3))

    assert not transport._should_retry(status_code, attempt)


@given(
    status_code=st.sampled_from([429, 500, 502, 503, 504]),
    attempt=st.integers(min_value=0, max_value=2),
)
@settings(max_examples=50)
def test_retry_on_retryable_errors(status_code: int, attempt: int) -> None:
    """Retryable statuses trigger a retry while attempts remain."""
    transport = make_transport(retry_config=RetryConfig(max_retries=3))

    assert transport._should_retry(status_code, attempt)


def test_max_retries_exceeded() -> None:
    """Retries stop once max_retries is reached."""
    transport = make_transport(retry_config=RetryConfig(max_retries=2))

    assert transport._should_retry(500, 0)
    assert transport._should_retry(500, 1)
    assert not transport._should_retry(500, 2)
    assert not transport._should_retry(500, 3)


def test_backoff_respects_max_backoff() -> None:
    """Backoff time is capped at max_backoff."""
    config = RetryConfig(backoff_factor=10.0, max_backoff=5.0, jitter=0.0)
    transport = make_transport(retry_config=config)

    assert transport._get_backoff_time(3, None) == 5.0


def test_retries_until_success() -> None:
    """A 503 followed by a success is retried transparently."""
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503, json={"message": "unavailable"})
        return httpx.Response(200, json={"ok": True})

    transport = make_transport(handler)
    result = asyncio.run(transport.request_json("/user"))

    assert result == {"ok": True}
    assert len(calls) == 3


def test_final_retryable_failure_raises() -> None:
    """When every attempt fails the last response is mapped to an error."""
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(502, json={"message": "bad gateway"})

    transport = make_transport(handler, RetryConfig(max_retries=2, max_backoff=0.0, jitter=0.0))

    with pytest.raises(ServerError) as exc_info:
        asyncio.run(transport.request_json("/user"))

    assert exc_info.value.status == 502
    assert exc_info.value.message == "bad gateway"
    assert len(calls) == 3


def test_network_error_raises_server_error() -> None:
    """Connection failures surface as ServerError without a status."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = make_transport(handler, RetryConfig(max_retries=1, max_backoff=0.0, jitter=0.0))

    with pytest.raises(ServerError) as exc_info:
        asyncio.run(transport.request_json("/user"))

    assert exc_info.value.status is None


@pytest.mark.parametrize(
    "status_code, expected_type",
    [
        (400, ValidationError),
        (401, AuthenticationError),
        (403, AuthorizationError),
        (404, NotFoundError),
        (409, ConflictError),
        (422, ValidationError),
        (429, RateLimitedError),
        (500, ServerError),
        (503, ServerError),
    ],
)
def test_error_response_parsing(status_code: int, expected_type: type) -> None:
    """Error statuses map to typed exceptions carrying status and service name."""
    transport = make_transport()
    response = httpx.Response(
        status_code,
        json={"message": "nope"},
        headers={"Retry-After": "7"},
        request=httpx.Request("GET", f"{API_ROOT}/user"),
    )

    error = transport._parse_error_response(response)

    assert type(error) is expected_type
    assert error.status == status_code
    assert error.api_name == "Gitea"
    assert str(error) == f"[Gitea {status_code}] nope"
    if isinstance(error, RateLimitedError):
        assert error.retry_after == 7


def test_error_message_fallbacks() -> None:
    """Messages come from the JSON body, then the text body, then the status."""
    transport = make_transport()

    text = httpx.Response(400, text="plain failure")
    empty = httpx.Response(400)
    nested = httpx.Response(400, json={"error": {"message": "nested"}})

    assert transport._parse_error_response(text).message == "plain failure"
    assert transport._parse_error_response(empty).message == "HTTP 400"
    assert transport._parse_error_response(nested).message == "nested"


def test_requests_carry_auth_and_cache_headers() -> None:
    """Every request carries the bearer token and a no-cache policy by default."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="raw")

    transport = make_transport(handler)

    async def scenario() -> None:
        await transport.request_text("/user")
        await transport.request_text(ApiRequest(url="/user", cache="no-store"))

    asyncio.run(scenario())

    assert seen[0].headers["Authorization"] == "Bearer secret-token"
    assert seen[0].headers["Cache-Control"] == "no-cache"
    assert seen[1].headers["Cache-Control"] == "no-store"


def test_anonymous_requests_have_no_authorization() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={})

    transport = make_transport(handler, token=None)
    asyncio.run(transport.request_json("/user"))

    assert "Authorization" not in seen[0].headers


def test_empty_json_body_is_none() -> None:
    transport = make_transport(lambda request: httpx.Response(204))

    assert asyncio.run(transport.request_json("/anything")) is None


def test_invalid_json_raises_api_error() -> None:
    transport = make_transport(lambda request: httpx.Response(200, text="{not json"))

    with pytest.raises(APIError, match="Invalid JSON"):
        asyncio.run(transport.request_json("/anything"))
