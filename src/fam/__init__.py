"""
FAM SDK - Python client for the FAM payments API

Usage:
    >>> from fam import Fam, FamOptions
    >>>
    >>> async with Fam(FamOptions(base_url="https://api.fam.example.com", token="...")) as fam:
    ...     wallet = await fam.http.get("/wallets/wallet_123")

Webhooks:
    >>> from fam import Webhooks, WebhookHandlerConfig, WebhookSignatureError
    >>>
    >>> webhooks = Webhooks(WebhookHandlerConfig(secret="whsec_..."))
    >>> event = webhooks.construct_event(raw_body, headers["x-fam-signature"])
"""

from fam.client import Fam
from fam.core.config import FamOptions
from fam.core.exceptions import (
    ApiError,
    AuthenticationError,
    AuthorizationError,
    ErrorKind,
    FamError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RequestTimeoutError,
    ValidationError,
    WebhookSignatureError,
    create_api_error,
)
from fam.core.http_client import HttpClient, RequestOptions
from fam.core.logging import configure_logging, get_logger
from fam.resilience import RetryPolicy, execute_with_retry, is_retryable_error, retrying
from fam.webhooks import (
    PlatformEvent,
    PlatformEventType,
    ProviderEvent,
    ProviderEventType,
    WebhookEvent,
    WebhookHandlerConfig,
    Webhooks,
)

__version__ = "0.1.0"
__all__ = [
    # Main Client
    "Fam",
    "FamOptions",
    "HttpClient",
    "RequestOptions",
    # Resilience
    "RetryPolicy",
    "execute_with_retry",
    "is_retryable_error",
    "retrying",
    # Webhooks
    "Webhooks",
    "WebhookHandlerConfig",
    "WebhookEvent",
    "ProviderEvent",
    "ProviderEventType",
    "PlatformEvent",
    "PlatformEventType",
    # Exceptions
    "FamError",
    "ErrorKind",
    "ApiError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "RateLimitError",
    "NetworkError",
    "RequestTimeoutError",
    "WebhookSignatureError",
    "create_api_error",
    # Logging
    "configure_logging",
    "get_logger",
]
