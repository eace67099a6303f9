"""Webhook verification and event types."""

from fam.webhooks.events import (
    PlatformEvent,
    PlatformEventType,
    ProviderEvent,
    ProviderEventType,
    WebhookEvent,
    WebhookHandlerConfig,
    is_platform_event,
    is_provider_event,
    parse_webhook_event,
)
from fam.webhooks.handler import SIGNATURE_HEADER, Webhooks

__all__ = [
    "SIGNATURE_HEADER",
    "PlatformEvent",
    "PlatformEventType",
    "ProviderEvent",
    "ProviderEventType",
    "WebhookEvent",
    "WebhookHandlerConfig",
    "Webhooks",
    "is_platform_event",
    "is_provider_event",
    "parse_webhook_event",
]
