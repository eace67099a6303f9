"""
Webhook Verification.

Authenticates FAM webhook deliveries with HMAC-SHA256 and parses them into
typed events.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable, Mapping
from typing import Any

from cryptography.hazmat.primitives import hashes, hmac

from fam.core.exceptions import WebhookSignatureError
from fam.core.logging import get_logger
from fam.utils.helpers import timing_safe_equals
from fam.webhooks.events import WebhookEvent, WebhookHandlerConfig, parse_webhook_event

SIGNATURE_HEADER = "x-fam-signature"


class Webhooks:
    """
    Framework-agnostic webhook handler.

    Verifies signatures against the raw request body and converts payloads
    into ProviderEvent or PlatformEvent. Does NOT handle HTTP transport.

    Example:
        >>> webhooks = Webhooks(WebhookHandlerConfig(secret="whsec_..."))
        >>> try:
        ...     event = webhooks.construct_event(raw_body, request.headers.get("x-fam-signature"))
        ... except WebhookSignatureError:
        ...     return Response(status_code=400)
        >>> if isinstance(event, PlatformEvent):
        ...     ...
    """

    def __init__(
        self,
        config: WebhookHandlerConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize handler.

        Args:
            config: Secret and replay tolerance. Without a secret every
                signature is accepted.
            clock: Returns the current Unix time in seconds.
        """
        self._config = config or WebhookHandlerConfig()
        self._clock = clock
        self._logger = get_logger("webhooks")

    @property
    def config(self) -> WebhookHandlerConfig:
        return self._config

    def verify(self, payload: str | bytes, signature: str | None) -> bool:
        """
        Verify a webhook signature.

        Args:
            payload: Raw request body, exactly as received
            signature: Lowercase hex HMAC-SHA256 digest from the signature header

        Returns:
            True if the signature matches or no secret is configured.
        """
        if self._config.secret is None:
            return True

        if not signature:
            return False

        # Only the raw body can be authenticated
        if not isinstance(payload, (str, bytes)):
            return False

        expected = self._compute_signature(payload)
        return timing_safe_equals(signature, expected)

    def verify_with_timestamp(
        self, payload: str | bytes, signature: str | None, timestamp: int
    ) -> bool:
        """
        Verify a webhook signature and that ``timestamp`` is within tolerance.

        Rejects replays of a captured, validly signed payload.
        """
        if not self.verify(payload, signature):
            return False

        if self._config.tolerance is not None:
            now = int(self._clock())
            if abs(now - timestamp) > self._config.tolerance.total_seconds():
                return False

        return True

    def parse(self, payload: str | bytes | Mapping[str, Any] | None) -> WebhookEvent:
        """
        Parse a webhook payload into a typed event.

        Does not verify the signature. Use construct_event for deliveries
        received over the network.

        Raises:
            WebhookSignatureError: If the payload is empty, not JSON, or not
                a recognizable event
        """
        if payload is None or (isinstance(payload, (str, bytes)) and not payload):
            raise WebhookSignatureError("Empty webhook payload")

        if isinstance(payload, (str, bytes)):
            try:
                data = json.loads(payload)
            except (json.JSONDecodeError, UnicodeDecodeError):
                raise WebhookSignatureError("Invalid JSON in webhook payload") from None
        elif isinstance(payload, Mapping):
            data = payload
        else:
            raise WebhookSignatureError("Invalid webhook payload type")

        if not isinstance(data, Mapping):
            raise WebhookSignatureError("Webhook payload is not a JSON object")

        if "EventType" not in data:
            raise WebhookSignatureError("Missing EventType in webhook")

        return parse_webhook_event(data)

    def construct_event(self, payload: str | bytes, signature: str | None) -> WebhookEvent:
        """
        Verify the signature, then parse.

        Raises:
            WebhookSignatureError: If verification or parsing fails
        """
        if not self.verify(payload, signature):
            self._logger.debug("Rejected webhook: signature mismatch")
            raise WebhookSignatureError("Invalid webhook signature")

        return self.parse(payload)

    def construct_event_with_timestamp(
        self, payload: str | bytes, signature: str | None, timestamp: int
    ) -> WebhookEvent:
        """
        Verify the signature and timestamp, then parse.

        Raises:
            WebhookSignatureError: If verification or parsing fails
        """
        if not self.verify_with_timestamp(payload, signature, timestamp):
            self._logger.debug(f"Rejected webhook: bad signature or timestamp {timestamp}")
            raise WebhookSignatureError("Invalid webhook signature or timestamp")

        return self.parse(payload)

    def construct_event_from_headers(
        self, payload: str | bytes, headers: Mapping[str, str]
    ) -> WebhookEvent:
        """Read the signature from the x-fam-signature header, then construct_event."""
        signature = None
        for name, value in headers.items():
            if name.lower() == SIGNATURE_HEADER:
                signature = value
                break
        return self.construct_event(payload, signature)

    @staticmethod
    def is_event_type(event: WebhookEvent, event_type: str) -> bool:
        """Check if an event has the given wire event type."""
        return event.event_type == event_type

    def _compute_signature(self, payload: str | bytes) -> str:
        secret = self._config.secret or ""
        payload_bytes = payload.encode("utf-8") if isinstance(payload, str) else payload
        mac = hmac.HMAC(secret.encode("utf-8"), hashes.SHA256())
        mac.update(payload_bytes)
        return mac.finalize().hex()
