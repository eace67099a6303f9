"""
Exception hierarchy for the FAM SDK.

All SDK-specific exceptions inherit from FamError for easy catching.
Every error also carries a closed ``kind`` tag, so callers can branch on
``error.kind`` instead of walking the class hierarchy.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of error kinds raised by the SDK."""

    API = "api"
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    TIMEOUT = "timeout"
    WEBHOOK_SIGNATURE = "webhook_signature"


class FamError(Exception):
    """
    Base exception for all FAM SDK errors.

    Catch this to handle any SDK-related exception.

    Example:
        >>> try:
        ...     await fam.http.get("/users/user_123")
        ... except FamError as e:
        ...     print(f"FAM error ({e.kind.value}): {e.message}")
    """

    kind: ErrorKind = ErrorKind.API

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ApiError(FamError):
    """
    The API answered with a non-2xx status code.

    Raised directly for status codes without a dedicated subclass
    (500, 502, 503, 418, ...).

    Example:
        >>> try:
        ...     await fam.http.get("/users/invalid_id")
        ... except ApiError as e:
        ...     print(f"API error {e.status_code}: {e.message}")
    """

    kind = ErrorKind.API

    def __init__(
        self,
        message: str,
        status_code: int,
        code: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.details = details

    def is_server_error(self) -> bool:
        """Check if this is a server-side error."""
        return self.status_code >= 500

    def is_client_error(self) -> bool:
        """Check if this is a client-side error."""
        return 400 <= self.status_code < 500

    def __str__(self) -> str:
        text = f"[{self.status_code}] {self.message}"
        if self.code:
            text += f" (code: {self.code})"
        return text


class ValidationError(ApiError):
    """
    The request was rejected as invalid (400 Bad Request or 422 Unprocessable Entity).

    Example:
        >>> try:
        ...     await fam.http.post("/users/natural", body=data)
        ... except ValidationError as e:
        ...     for field, messages in e.errors.items():
        ...         print(f"{field}: {', '.join(messages)}")
    """

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str | None = None,
        details: Any = None,
        errors: dict[str, list[str]] | None = None,
    ) -> None:
        super().__init__(message, status_code, code, details)
        self.errors = errors or {}

    def __str__(self) -> str:
        if not self.errors:
            return self.message
        fields = "; ".join(f"{name}: {', '.join(msgs)}" for name, msgs in self.errors.items())
        return f"{self.message} ({fields})"


class AuthenticationError(ApiError):
    """The request lacks valid authentication credentials (401)."""

    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str, code: str | None = None, details: Any = None) -> None:
        super().__init__(message, 401, code, details)


class AuthorizationError(ApiError):
    """The authenticated caller may not access the resource (403)."""

    kind = ErrorKind.AUTHORIZATION

    def __init__(self, message: str, code: str | None = None, details: Any = None) -> None:
        super().__init__(message, 403, code, details)


class NotFoundError(ApiError):
    """The requested resource does not exist (404)."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str, code: str | None = None, details: Any = None) -> None:
        super().__init__(message, 404, code, details)


class RateLimitError(ApiError):
    """
    Too many requests (429).

    ``retry_after`` holds the server's suggested wait in seconds, when sent.

    Example:
        >>> try:
        ...     await fam.http.get("/users/user_123")
        ... except RateLimitError as e:
        ...     await asyncio.sleep(e.retry_after or 60)
    """

    kind = ErrorKind.RATE_LIMIT

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: Any = None,
        retry_after: int | None = None,
    ) -> None:
        super().__init__(message, 429, code, details)
        self.retry_after = retry_after

    def __str__(self) -> str:
        if self.retry_after is not None:
            return f"{self.message} (retry after {self.retry_after}s)"
        return self.message


class NetworkError(FamError):
    """
    Network or transport communication error.

    Raised when:
    - DNS resolution or connection fails
    - The connection is reset mid-request
    """

    kind = ErrorKind.NETWORK

    def __init__(self, message: str, original_error: BaseException | None = None) -> None:
        super().__init__(message)
        self.original_error = original_error


class RequestTimeoutError(NetworkError):
    """
    A single request attempt exceeded its timeout.

    ``duration`` is the timeout in seconds that was exceeded.
    """

    kind = ErrorKind.TIMEOUT

    def __init__(
        self,
        message: str,
        original_error: BaseException | None = None,
        duration: float | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.duration = duration

    def __str__(self) -> str:
        if self.duration is not None:
            return f"{self.message} ({int(self.duration * 1000)}ms)"
        return self.message


class WebhookSignatureError(FamError):
    """
    A webhook delivery could not be authenticated or parsed.

    Covers bad signatures, stale timestamps and malformed payloads alike.
    The only sensible reaction is to reject the delivery with a 400.
    """

    kind = ErrorKind.WEBHOOK_SIGNATURE


def create_api_error(
    status_code: int,
    message: str,
    code: str | None = None,
    details: Any = None,
    validation_errors: dict[str, list[str]] | None = None,
    retry_after: int | None = None,
) -> ApiError:
    """
    Build the error matching an HTTP status code.

    Total over all status codes: codes without a dedicated subclass
    produce a plain ApiError carrying the status.
    """
    if status_code in (400, 422):
        return ValidationError(
            message,
            status_code=status_code,
            code=code,
            details=details,
            errors=validation_errors,
        )
    if status_code == 401:
        return AuthenticationError(message, code=code, details=details)
    if status_code == 403:
        return AuthorizationError(message, code=code, details=details)
    if status_code == 404:
        return NotFoundError(message, code=code, details=details)
    if status_code == 429:
        return RateLimitError(message, code=code, details=details, retry_after=retry_after)
    return ApiError(message, status_code=status_code, code=code, details=details)
