"""
Async HTTP Transport for the Gitea CMS backend.

Handles async HTTP communication with automatic retry logic, response
decoding and error mapping using the httpx async client.
"""

import asyncio
import random
import time
from dataclasses import dataclass, field
from typing import Any

import httpx

from gitea_cms.exceptions import (
    API_NAME,
    APIError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    ValidationError,
)
from gitea_cms.logging import log_http_request, log_http_response
from gitea_cms.request import ApiRequest, RequestBuilder


@dataclass
class RetryConfig:
    """Configuration for automatic retry behavior."""

    max_retries: int = 3
    backoff_factor: float = 2.0
    retry_on: list[int] = field(default_factory=lambda: [429, 500, 502, 503, 504])
    respect_retry_after: bool = True
    max_backoff: float = 60.0  # Maximum backoff time in seconds
    jitter: float = 0.1  # Jitter factor (0.1 = ±10%)


class AsyncHTTPTransport:
    """
    Async HTTP transport layer with retry logic and response decoding.

    Handles:
    - Request construction through a RequestBuilder
    - Exponential backoff with jitter for retries
    - Retry-After header respect for rate limiting
    - Error response parsing into typed exceptions
    """

    def __init__(
        self,
        api_root: str,
        token: str | None = None,
        timeout: float = 30.0,
        retry_config: RetryConfig | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
        api_name: str = API_NAME,
    ) -> None:
        """
        Initialize async HTTP transport.

        Args:
            api_root: API root URL (e.g., "https://gitea.com/api/v1")
            token: Bearer token (optional)
            timeout: Request timeout in seconds
            retry_config: Configuration for retry behavior
            http_transport: Custom httpx transport (e.g. httpx.MockTransport in tests)
            api_name: Service name reported on errors
        """
        self.api_root = api_root.rstrip("/")
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()
        self.api_name = api_name
        self.builder = RequestBuilder(self.api_root, token)

        self._client = httpx.AsyncClient(timeout=timeout, transport=http_transport)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHTTPTransport":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def send(self, req: ApiRequest | str) -> httpx.Response:
        """
        Send a request with automatic retry on retryable errors.

        The final response is returned whatever its status; use the
        ``parse_*`` methods to turn failures into exceptions.

        Raises:
            ServerError: When the service could not be reached after all retries
        """
        if isinstance(req, str):
            req = ApiRequest.from_url(req)

        response: httpx.Response | None = None

        for attempt in range(self.retry_config.max_retries + 1):
            request = self.builder.build(self._client, req)
            log_http_request(request.method, str(request.url), dict(request.headers), req.body)
            started = time.monotonic()

            try:
                response = await self._client.send(request)
            except httpx.RequestError as e:
                # Network errors are retryable
                if attempt >= self.retry_config.max_retries:
                    raise ServerError(str(e), None, self.api_name) from e

                await asyncio.sleep(self._get_backoff_time(attempt, None))
                continue

            log_http_response(
                response.status_code,
                str(request.url),
                (time.monotonic() - started) * 1000,
            )

            if not self._should_retry(response.status_code, attempt):
                return response

            retry_after = response.headers.get("Retry-After")
            await asyncio.sleep(self._get_backoff_time(attempt, retry_after))

        # Should not reach here, but just in case
        if response is not None:
            return response
        raise ServerError("Request failed with no response", None, self.api_name)

    async def request_json(self, req: ApiRequest | str) -> Any:
        """Send a request and decode a JSON body."""
        return self.parse_json(await self.send(req))

    async def request_text(self, req: ApiRequest | str) -> str:
        """Send a request and decode a text body."""
        return self.parse_text(await self.send(req))

    async def request_bytes(self, req: ApiRequest | str) -> bytes:
        """Send a request and return the raw body."""
        return self.parse_bytes(await self.send(req))

    def parse_json(self, response: httpx.Response) -> Any:
        """
        Decode a JSON response.

        Raises:
            APIError: On failure statuses or an undecodable body
        """
        self._raise_for_status(response)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise APIError(
                f"Invalid JSON in response: {e}", response.status_code, self.api_name
            ) from e

    def parse_text(self, response: httpx.Response) -> str:
        self._raise_for_status(response)
        return response.text

    def parse_bytes(self, response: httpx.Response) -> bytes:
        self._raise_for_status(response)
        return response.content

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.status_code >= 400:
            raise self._parse_error_response(response)

    def _should_retry(self, status_code: int, attempt: int) -> bool:
        """
        Determine if a request should be retried.

        Args:
            status_code: HTTP status code
            attempt: Current attempt number (0-indexed)

        Returns:
            True if the request should be retried
        """
        if attempt >= self.retry_config.max_retries:
            return False

        return status_code in self.retry_config.retry_on

    def _get_backoff_time(
        self, attempt: int, retry_after: str | None
    ) -> float:
        """
        Calculate backoff time for retry.

        Uses exponential backoff with jitter, respecting Retry-After header
        if present.

        Args:
            attempt: Current attempt number (0-indexed)
            retry_after: Value of Retry-After header (if present)

        Returns:
            Time to wait in seconds
        """
        if retry_after and self.retry_config.respect_retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass  # Fall through to exponential backoff

        # Exponential backoff: backoff_factor ^ attempt
        base_wait = self.retry_config.backoff_factor ** attempt

        # Apply jitter (±jitter%)
        jitter_range = base_wait * self.retry_config.jitter
        jitter = random.uniform(-jitter_range, jitter_range)
        wait_time = base_wait + jitter

        # Cap at max_backoff
        return max(0.0, min(wait_time, self.retry_config.max_backoff))

    def _parse_error_response(self, response: httpx.Response) -> APIError:
        """
        Parse an error response into a typed exception.

        Args:
            response: HTTP response with error status

        Returns:
            Appropriate APIError subclass
        """
        message = _error_message(response)
        status_code = response.status_code

        if status_code == 401:
            return AuthenticationError(message, status_code, self.api_name)
        elif status_code == 403:
            return AuthorizationError(message, status_code, self.api_name)
        elif status_code == 404:
            return NotFoundError(message, status_code, self.api_name)
        elif status_code == 409:
            return ConflictError(message, status_code, self.api_name)
        elif status_code == 429:
            retry_after_str = response.headers.get("Retry-After", "60")
            try:
                retry_after = int(retry_after_str)
            except ValueError:
                retry_after = 60
            return RateLimitedError(message, retry_after, status_code, self.api_name)
        elif status_code >= 500:
            return ServerError(message, status_code, self.api_name)
        else:
            return ValidationError(message, status_code, self.api_name)


def _error_message(response: httpx.Response) -> str:
    fallback = f"HTTP {response.status_code}"
    if not response.content:
        return fallback

    try:
        data = response.json()
    except ValueError:
        return response.text.strip() or fallback

    if isinstance(data, dict):
        for key in ("message", "error"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and value.get("message"):
                return str(value["message"])
    return fallback
