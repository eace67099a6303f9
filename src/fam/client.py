"""Fam - Main SDK entry point."""

from __future__ import annotations

import copy
import os
from typing import Any

import httpx

from fam.core.config import FamOptions
from fam.core.http_client import HttpClient
from fam.core.logging import configure_logging, get_logger
from fam.webhooks import WebhookHandlerConfig, Webhooks


class Fam:
    """
    Main client for the FAM SDK.

    Holds the HTTP client used by API calls and the webhook handler.

    Example:
        >>> async with Fam(FamOptions(base_url="https://api.fam.example.com", token="tok")) as fam:
        ...     user = await fam.http.get("/users/user_123")
        ...     event = fam.webhooks.construct_event(raw_body, signature)
    """

    def __init__(
        self,
        options: FamOptions | None = None,
        *,
        webhook_config: WebhookHandlerConfig | None = None,
        log_level: int | str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the FAM client.

        Args:
            options: Client options (or loaded from FAM_* environment variables)
            webhook_config: Webhook secret and tolerance (or from FAM_WEBHOOK_* env)
            log_level: Configure SDK logging at this level (or FAM_LOG_LEVEL env)
            transport: Optional httpx transport override
        """
        if log_level is None:
            log_level = os.environ.get("FAM_LOG_LEVEL")
        if log_level is not None:
            configure_logging(level=log_level)

        self._logger = get_logger("client")
        self._options = options or FamOptions.from_env()
        self._http = HttpClient(self._options, transport=transport)
        self._webhooks = Webhooks(webhook_config or WebhookHandlerConfig.from_env())

        self._logger.info(
            f"Initializing FAM SDK (base_url: {self._options.base_url}, "
            f"token: {self._options.masked_token()})"
        )

    @property
    def options(self) -> FamOptions:
        """Get client options."""
        return self._options

    @property
    def http(self) -> HttpClient:
        """Get the HTTP client for API calls."""
        return self._http

    @property
    def webhooks(self) -> Webhooks:
        """Get the webhook handler for verifying and parsing events."""
        return self._webhooks

    def with_token(self, token: str) -> Fam:
        """
        Return a new client authenticating with ``token``.

        The current client is left untouched, so requests already in flight
        keep their credentials.
        """
        rotated = copy.copy(self)
        rotated._options = self._options.with_token(token)
        rotated._http = self._http.with_token(token)
        return rotated

    async def close(self) -> None:
        """Release HTTP resources."""
        await self._http.close()

    async def __aenter__(self) -> Fam:
        """Async context manager entry."""
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        """Async context manager exit."""
        await self.close()
