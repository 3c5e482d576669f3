"""Shared async HTTP plumbing for the ARM and Azure DevOps clients.

One attempt is a single ``httpx`` round trip guarded by a circuit breaker.
Attempts are repeated by tenacity while they fail with a transient error
(throttling, 5xx, a dropped connection). Anything else surfaces at once, and
every failure reaches callers as a ``ProviderError``.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from circuitbreaker import CircuitBreakerError, circuit
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from pipewright.core.errors import ProviderError

logger = structlog.get_logger()

TRANSIENT_STATUSES = frozenset({408, 429, 500, 502, 503, 504})

JsonBody = dict[str, Any] | list[Any] | None


class RetryableHTTPError(ProviderError):
    """A transient failure; the same request may succeed later."""


class PermanentHTTPError(ProviderError):
    """The service rejected the request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message, details={"status": status_code} if status_code else None)
        self.status_code = status_code


def is_retryable_status(status_code: int) -> bool:
    return status_code in TRANSIENT_STATUSES


def _error_text(response: httpx.Response) -> str:
    # ARM nests the message under "error", Azure DevOps puts it at the top
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if body.get("message"):
            return str(body["message"])
    return response.text


class BaseHTTPClient:
    """JSON client bound to one service root and one bearer token.

    ``path`` may be absolute (``https://...``) for APIs served from a
    different host than ``base_url``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff_factor: float = 2.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff_factor = backoff_factor

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self._base_url}{path}"

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            retry=retry_if_exception_type(RetryableHTTPError),
            stop=stop_after_attempt(max(1, self._max_retries)),
            wait=wait_exponential(multiplier=self._backoff_factor, min=1, max=30),
            reraise=True,
        )

    @circuit(failure_threshold=5, recovery_timeout=60, expected_exception=RetryableHTTPError, name="azure_http")
    async def _send(self, method: str, url: str, params: dict[str, Any] | None, body: JsonBody) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(method, url, params=params, json=body, headers=self._headers())
        except httpx.TransportError as exc:
            logger.warning("azure_http_unreachable", method=method, url=url, error=str(exc))
            raise RetryableHTTPError(str(exc)) from exc

        if is_retryable_status(response.status_code):
            logger.warning("azure_http_transient", method=method, url=url, status=response.status_code)
            raise RetryableHTTPError(f"HTTP {response.status_code}: {_error_text(response)}")
        return response

    @staticmethod
    def _decode(method: str, response: httpx.Response) -> dict[str, Any]:
        if response.is_error:
            logger.error(
                "azure_http_rejected", method=method, url=str(response.request.url), status=response.status_code
            )
            raise PermanentHTTPError(
                f"HTTP {response.status_code}: {_error_text(response)}", status_code=response.status_code
            )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise PermanentHTTPError(
                f"HTTP {response.status_code}: response is not JSON", status_code=response.status_code
            ) from exc

    async def _call(
        self, method: str, path: str, *, params: dict[str, Any] | None = None, json: JsonBody = None
    ) -> dict[str, Any]:
        url = self._url(path)
        try:
            async for attempt in self._retrying():
                with attempt:
                    response = await self._send(method, url, params, json)
        except CircuitBreakerError as exc:
            logger.error("azure_http_circuit_open", method=method, url=url)
            raise ProviderError(
                "Azure is not responding; too many recent requests failed. Try again in a minute.",
                details={"url": url},
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("azure_http_failed", method=method, url=url, error=str(exc))
            raise ProviderError(f"{method} {url} failed: {exc}") from exc
        return self._decode(method, response)

    async def get(self, path: str, *, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self._call("GET", path, params=params)

    async def post(self, path: str, *, json: JsonBody = None, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self._call("POST", path, params=params, json=json)

    async def put(self, path: str, *, json: JsonBody = None, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self._call("PUT", path, params=params, json=json)

    async def patch(self, path: str, *, json: JsonBody = None, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self._call("PATCH", path, params=params, json=json)
