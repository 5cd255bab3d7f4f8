"""Base async HTTP client with rate limiting and retries.

Upstream clients inherit from this base to get consistent behavior:
- Async/await so a scrape can be cancelled mid-request
- Connection pooling for the lifetime of one scrape
- Token bucket rate limiting to respect API quotas
- Retries with exponential backoff on transient failures
- A single error type (APIProviderError) for every failure mode

Usage:
    class MyAPIClient(BaseAsyncClient):
        def __init__(self, token: str):
            super().__init__(
                base_url="https://api.example.com",
                headers={"Authorization": f"Bearer {token}"},
            )

        async def get_data(self, key: str) -> dict:
            return await self.get(f"/data/{key}")
"""

import asyncio
import logging
from typing import Any

import httpx


logger = logging.getLogger(__name__)

# Retry configuration
_RETRYABLE_STATUS_CODES = {429, 502, 503, 504}
_MAX_RETRIES = 3
_BASE_BACKOFF = 1.0  # seconds
_MAX_BACKOFF = 30.0  # seconds, also caps Retry-After


class RateLimiter:
    """Token bucket rate limiter for async operations.

    Args:
        rate: Maximum requests per second
    """

    def __init__(self, rate: int) -> None:
        self.rate = rate
        self.tokens = rate
        self.updated_at: float = 0.0
        self._initialized: bool = False
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Acquire a token, waiting if necessary."""
        async with self._lock:
            loop = asyncio.get_running_loop()

            if not self._initialized:
                self.updated_at = loop.time()
                self._initialized = True

            while self.tokens < 1:
                now = loop.time()
                elapsed = now - self.updated_at
                self.tokens = min(self.rate, self.tokens + elapsed * self.rate)
                self.updated_at = now

                if self.tokens < 1:
                    await asyncio.sleep((1 - self.tokens) / self.rate)

            self.tokens -= 1
            self.updated_at = loop.time()


class APIProviderError(Exception):
    """Any failure reaching the upstream API or reading its response."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


def _backoff_delay(attempt: int, response: httpx.Response | None = None) -> float:
    """Seconds to wait before retry number `attempt + 1`.

    Honors a numeric Retry-After header when the server sends one.
    """
    if response is not None:
        retry_after = response.headers.get("Retry-After")
        if retry_after is not None and retry_after.isdigit():
            return min(float(retry_after), _MAX_BACKOFF)
    return min(_BASE_BACKOFF * (2 ** attempt), _MAX_BACKOFF)


class BaseAsyncClient:
    """Base async HTTP client with rate limiting and connection pooling.

    Args:
        base_url: Base URL for all API requests
        headers: Default headers for all requests
        rate_limit: Maximum requests per second (default: 10)
        timeout: Request timeout in seconds (default: 30)
    """

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        rate_limit: int = 10,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers = headers or {}
        self.timeout = timeout
        self._rate_limiter = RateLimiter(rate=rate_limit)
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "BaseAsyncClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _send(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send a request with rate limiting and retries.

        Retries on transient failures (429, 502, 503, 504, timeouts, network
        errors) with exponential backoff. Non-retryable errors raise immediately.

        Returns:
            The successful (status < 400) response, body not yet parsed

        Raises:
            APIProviderError: If the request fails after all retries
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use async with context manager.")

        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"

        last_error: APIProviderError | None = None

        for attempt in range(_MAX_RETRIES + 1):
            await self._rate_limiter.acquire()

            logger.debug(
                "%s %s%s params=%s (attempt %d/%d)",
                method, self.base_url, endpoint, params, attempt + 1, _MAX_RETRIES + 1,
            )

            try:
                response = await self._client.request(
                    method=method,
                    url=endpoint,
                    params=params,
                    json=json_data,
                )
            except httpx.TimeoutException as e:
                last_error = APIProviderError(f"Request timeout: {e}")
                if attempt < _MAX_RETRIES:
                    backoff = _backoff_delay(attempt)
                    logger.warning(
                        "Timeout for %s, retrying in %.1fs (attempt %d/%d)",
                        endpoint, backoff, attempt + 1, _MAX_RETRIES + 1,
                    )
                    await asyncio.sleep(backoff)
                    continue
                logger.error("Request timeout for %s: %s", endpoint, e)
                raise last_error from e
            except httpx.NetworkError as e:
                last_error = APIProviderError(f"Network error: {e}")
                if attempt < _MAX_RETRIES:
                    backoff = _backoff_delay(attempt)
                    logger.warning(
                        "Network error for %s, retrying in %.1fs (attempt %d/%d)",
                        endpoint, backoff, attempt + 1, _MAX_RETRIES + 1,
                    )
                    await asyncio.sleep(backoff)
                    continue
                logger.error("Network error for %s: %s", endpoint, e)
                raise last_error from e
            except httpx.HTTPError as e:
                logger.error("HTTP error for %s: %s", endpoint, e)
                raise APIProviderError(f"HTTP error: {e}") from e

            logger.debug("Response: %d for %s", response.status_code, endpoint)

            if response.status_code < 400:
                return response

            error_body = response.text[:500]
            last_error = APIProviderError(
                message=f"API request failed: {response.status_code}",
                status_code=response.status_code,
                response_body=error_body,
            )

            if response.status_code in _RETRYABLE_STATUS_CODES and attempt < _MAX_RETRIES:
                backoff = _backoff_delay(attempt, response)
                logger.warning(
                    "Retryable %d for %s, retrying in %.1fs (attempt %d/%d)",
                    response.status_code, endpoint, backoff,
                    attempt + 1, _MAX_RETRIES + 1,
                )
                await asyncio.sleep(backoff)
                continue

            logger.error(
                "API error: %d %s - %s",
                response.status_code, endpoint, error_body,
            )
            raise last_error

        # Exhausted retries
        raise last_error or APIProviderError("Request failed after retries")

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and parse the JSON body.

        Raises:
            APIProviderError: If the request fails or the body is not JSON
        """
        response = await self._send(method, endpoint, params=params, json_data=json_data)
        return self._parse_json(response)

    @staticmethod
    def _parse_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            logger.error("Failed to parse JSON response: %s", e)
            raise APIProviderError(
                message=f"Invalid JSON response: {e}",
                status_code=response.status_code,
                response_body=response.text[:500],
            ) from e

    async def get(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Convenience method for GET requests."""
        return await self._request("GET", endpoint, params=params)
