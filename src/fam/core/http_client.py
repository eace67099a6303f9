"""
HTTP client for the FAM API.

Wraps httpx with JSON encoding, authentication headers, typed errors and
automatic retries for transient failures.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, replace
from typing import Any, TypeVar

import httpx

from fam.core.config import FamOptions
from fam.core.exceptions import ApiError, NetworkError, RequestTimeoutError, create_api_error
from fam.core.logging import get_logger
from fam.resilience.retry import DEFAULT_POLICY, execute_with_retry
from fam.utils.helpers import build_url

T = TypeVar("T")


@dataclass(frozen=True)
class RequestOptions:
    """Per-request overrides."""

    params: Mapping[str, str | None] | None = None
    headers: Mapping[str, str] | None = None
    # Overrides FamOptions.timeout for this request, in seconds
    timeout: float | None = None
    skip_retry: bool = False


class HttpClient:
    """
    Async HTTP client with automatic retries and error handling.

    Example:
        >>> client = HttpClient(FamOptions(base_url="https://api.fam.example.com", token="tok"))
        >>> user = await client.get("/users/user_123")
        >>> await client.close()
    """

    def __init__(
        self,
        options: FamOptions,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
    ) -> None:
        """
        Initialize the HTTP client.

        Args:
            options: Client-wide options (base URL, token, timeout, retries)
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests
            sleep: Backoff sleep between retries, asyncio.sleep by default
        """
        self._options = options
        self._transport = transport
        self._sleep = sleep
        self._logger = get_logger("http")
        self._http_client: httpx.AsyncClient | None = None

    @property
    def options(self) -> FamOptions:
        return self._options

    def with_token(self, token: str) -> HttpClient:
        """Return a new client handle authenticating with ``token``."""
        return HttpClient(
            self._options.with_token(token), transport=self._transport, sleep=self._sleep
        )

    def without_token(self) -> HttpClient:
        """Return a new client handle without an Authorization header."""
        return HttpClient(
            self._options.without_token(), transport=self._transport, sleep=self._sleep
        )

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the underlying httpx client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self._options.timeout, transport=self._transport
            )
        return self._http_client

    async def close(self) -> None:
        """Close the underlying connection pool."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def get(
        self,
        path: str,
        *,
        options: RequestOptions | None = None,
        from_json: Callable[[Any], T] | None = None,
    ) -> Any:
        """Perform a GET request."""
        return await self.request("GET", path, options=options, from_json=from_json)

    async def post(
        self,
        path: str,
        *,
        body: Any = None,
        options: RequestOptions | None = None,
        from_json: Callable[[Any], T] | None = None,
    ) -> Any:
        """Perform a POST request."""
        return await self.request("POST", path, body=body, options=options, from_json=from_json)

    async def put(
        self,
        path: str,
        *,
        body: Any = None,
        options: RequestOptions | None = None,
        from_json: Callable[[Any], T] | None = None,
    ) -> Any:
        """Perform a PUT request."""
        return await self.request("PUT", path, body=body, options=options, from_json=from_json)

    async def patch(
        self,
        path: str,
        *,
        body: Any = None,
        options: RequestOptions | None = None,
        from_json: Callable[[Any], T] | None = None,
    ) -> Any:
        """Perform a PATCH request."""
        return await self.request("PATCH", path, body=body, options=options, from_json=from_json)

    async def delete(
        self,
        path: str,
        *,
        options: RequestOptions | None = None,
        from_json: Callable[[Any], T] | None = None,
    ) -> Any:
        """Perform a DELETE request."""
        return await self.request("DELETE", path, options=options, from_json=from_json)

    async def request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        options: RequestOptions | None = None,
        from_json: Callable[[Any], T] | None = None,
    ) -> Any:
        """
        Perform a request with retries.

        Returns:
            ``from_json(data)`` when a decoder is given, the decoded body
            otherwise. A 2xx response with an empty body returns None and
            the decoder is not called.

        Raises:
            ApiError: (or a subclass) for non-2xx responses
            NetworkError: for transport failures, RequestTimeoutError on timeout
        """
        options = options or RequestOptions()
        url = build_url(self._options.base_url, path, options.params)
        timeout = options.timeout if options.timeout is not None else self._options.timeout

        policy = replace(
            DEFAULT_POLICY,
            max_attempts=1 if options.skip_retry else self._options.retries,
            base_delay=self._options.base_delay,
            max_delay=self._options.max_delay,
        )

        return await execute_with_retry(
            lambda: self._execute_request(
                method,
                url,
                body=body,
                timeout=timeout,
                extra_headers=options.headers,
                from_json=from_json,
            ),
            policy,
            sleep=self._sleep,
        )

    async def _execute_request(
        self,
        method: str,
        url: str,
        *,
        timeout: float,
        body: Any = None,
        extra_headers: Mapping[str, str] | None = None,
        from_json: Callable[[Any], T] | None = None,
    ) -> Any:
        client = self._get_client()
        headers = self._build_headers(extra_headers)
        content = json.dumps(body) if body is not None else None

        self._logger.debug(f"{method} {url}")
        try:
            response = await client.request(
                method, url, headers=headers, content=content, timeout=timeout
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(
                f"Request timed out after {timeout:g}s", original_error=e, duration=timeout
            ) from e
        except httpx.RequestError as e:
            raise NetworkError(f"Connection failed: {e}", original_error=e) from e

        return self._handle_response(response, from_json)

    def _build_headers(self, extra: Mapping[str, str] | None) -> httpx.Headers:
        # httpx.Headers merges case-insensitively, later sources replace earlier ones
        headers = httpx.Headers(
            {
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": self._options.user_agent,
            }
        )
        headers.update(self._options.headers)
        if self._options.token:
            headers["Authorization"] = f"Bearer {self._options.token}"
        if extra:
            headers.update(extra)
        return headers

    def _handle_response(
        self, response: httpx.Response, from_json: Callable[[Any], T] | None
    ) -> Any:
        text = response.text
        data: Any = None
        if text:
            try:
                data = json.loads(text)
            except ValueError:
                # Not JSON, keep the raw body
                data = text

        if response.is_success:
            if data is None:
                return None
            return from_json(data) if from_json else data

        raise self._build_api_error(response.status_code, data, response.headers)

    def _build_api_error(
        self, status_code: int, data: Any, headers: Mapping[str, str]
    ) -> ApiError:
        code = None
        details = None
        validation_errors = None
        retry_after = None

        if isinstance(data, dict):
            message = data.get("message") or data.get("error") or "Request failed"
            code = data.get("code")
            details = data.get("details")

            errors = data.get("errors")
            if isinstance(errors, dict):
                validation_errors = {
                    field: [str(item) for item in value]
                    if isinstance(value, list)
                    else [str(value)]
                    for field, value in errors.items()
                }
        elif data:
            message = str(data)
        else:
            message = f"Request failed with status {status_code}"

        if status_code == 429:
            header = headers.get("retry-after")
            if header is not None and header.strip().isdigit():
                retry_after = int(header.strip())

        self._logger.debug(f"API error {status_code}: {message}")
        return create_api_error(
            status_code,
            str(message),
            code=str(code) if code is not None else None,
            details=details,
            validation_errors=validation_errors,
            retry_after=retry_after,
        )
