"""
Webhook event types for the FAM SDK.

Deliveries carry either a Mangopay (provider) event or a FAM (platform)
subscription event. Both share the same wire envelope:

    {"EventType": "...", "ResourceId": "...", "Id": "...", "Date": 1704067200,
     "CustomData": "..."}
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from fam.core.exceptions import WebhookSignatureError
from fam.utils.helpers import from_unix_timestamp


class ProviderEventType(str, Enum):
    """Mangopay webhook event types."""

    # PayIn
    PAYIN_NORMAL_CREATED = "PAYIN_NORMAL_CREATED"
    PAYIN_NORMAL_SUCCEEDED = "PAYIN_NORMAL_SUCCEEDED"
    PAYIN_NORMAL_FAILED = "PAYIN_NORMAL_FAILED"
    PAYIN_REFUND_CREATED = "PAYIN_REFUND_CREATED"
    PAYIN_REFUND_SUCCEEDED = "PAYIN_REFUND_SUCCEEDED"
    PAYIN_REFUND_FAILED = "PAYIN_REFUND_FAILED"

    # PayOut
    PAYOUT_NORMAL_CREATED = "PAYOUT_NORMAL_CREATED"
    PAYOUT_NORMAL_SUCCEEDED = "PAYOUT_NORMAL_SUCCEEDED"
    PAYOUT_NORMAL_FAILED = "PAYOUT_NORMAL_FAILED"
    PAYOUT_REFUND_CREATED = "PAYOUT_REFUND_CREATED"
    PAYOUT_REFUND_SUCCEEDED = "PAYOUT_REFUND_SUCCEEDED"
    PAYOUT_REFUND_FAILED = "PAYOUT_REFUND_FAILED"

    # Transfer
    TRANSFER_NORMAL_CREATED = "TRANSFER_NORMAL_CREATED"
    TRANSFER_NORMAL_SUCCEEDED = "TRANSFER_NORMAL_SUCCEEDED"
    TRANSFER_NORMAL_FAILED = "TRANSFER_NORMAL_FAILED"
    TRANSFER_REFUND_CREATED = "TRANSFER_REFUND_CREATED"
    TRANSFER_REFUND_SUCCEEDED = "TRANSFER_REFUND_SUCCEEDED"
    TRANSFER_REFUND_FAILED = "TRANSFER_REFUND_FAILED"

    # KYC
    KYC_CREATED = "KYC_CREATED"
    KYC_VALIDATION_ASKED = "KYC_VALIDATION_ASKED"
    KYC_SUCCEEDED = "KYC_SUCCEEDED"
    KYC_FAILED = "KYC_FAILED"
    KYC_OUTDATED = "KYC_OUTDATED"

    # UBO
    UBO_DECLARATION_CREATED = "UBO_DECLARATION_CREATED"
    UBO_DECLARATION_VALIDATION_ASKED = "UBO_DECLARATION_VALIDATION_ASKED"
    UBO_DECLARATION_VALIDATED = "UBO_DECLARATION_VALIDATED"
    UBO_DECLARATION_REFUSED = "UBO_DECLARATION_REFUSED"
    UBO_DECLARATION_INCOMPLETE = "UBO_DECLARATION_INCOMPLETE"

    # Preauthorization
    PREAUTHORIZATION_CREATED = "PREAUTHORIZATION_CREATED"
    PREAUTHORIZATION_SUCCEEDED = "PREAUTHORIZATION_SUCCEEDED"
    PREAUTHORIZATION_FAILED = "PREAUTHORIZATION_FAILED"

    # Card validation
    CARD_VALIDATION_CREATED = "CARD_VALIDATION_CREATED"
    CARD_VALIDATION_SUCCEEDED = "CARD_VALIDATION_SUCCEEDED"
    CARD_VALIDATION_FAILED = "CARD_VALIDATION_FAILED"

    # User
    USER_KYC_REGULAR = "USER_KYC_REGULAR"
    USER_KYC_LIGHT = "USER_KYC_LIGHT"
    USER_INFLOWS_BLOCKED = "USER_INFLOWS_BLOCKED"
    USER_INFLOWS_UNBLOCKED = "USER_INFLOWS_UNBLOCKED"
    USER_OUTFLOWS_BLOCKED = "USER_OUTFLOWS_BLOCKED"
    USER_OUTFLOWS_UNBLOCKED = "USER_OUTFLOWS_UNBLOCKED"

    # Recurring registration
    RECURRING_REGISTRATION_CREATED = "RECURRING_REGISTRATION_CREATED"
    RECURRING_REGISTRATION_AUTH_NEEDED = "RECURRING_REGISTRATION_AUTH_NEEDED"
    RECURRING_REGISTRATION_IN_PROGRESS = "RECURRING_REGISTRATION_IN_PROGRESS"
    RECURRING_REGISTRATION_ENDED = "RECURRING_REGISTRATION_ENDED"


class PlatformEventType(str, Enum):
    """FAM subscription event types."""

    FAM_SUBSCRIPTION_CREATED = "FAM_SUBSCRIPTION_CREATED"
    FAM_SUBSCRIPTION_UPDATED = "FAM_SUBSCRIPTION_UPDATED"
    FAM_SUBSCRIPTION_CANCELLED = "FAM_SUBSCRIPTION_CANCELLED"
    FAM_SUBSCRIPTION_PAYMENT_SCHEDULED = "FAM_SUBSCRIPTION_PAYMENT_SCHEDULED"
    FAM_SUBSCRIPTION_PAYMENT_SUCCEEDED = "FAM_SUBSCRIPTION_PAYMENT_SUCCEEDED"
    FAM_SUBSCRIPTION_PAYMENT_FAILED = "FAM_SUBSCRIPTION_PAYMENT_FAILED"


# Wire string -> enum member lookups
PROVIDER_EVENT_TYPES: dict[str, ProviderEventType] = {t.value: t for t in ProviderEventType}
PLATFORM_EVENT_TYPES: dict[str, PlatformEventType] = {t.value: t for t in PlatformEventType}


def is_provider_event(event_type: str) -> bool:
    """Check if an event type string is a Mangopay event."""
    return event_type in PROVIDER_EVENT_TYPES


def is_platform_event(event_type: str) -> bool:
    """Check if an event type string is a FAM event."""
    return event_type in PLATFORM_EVENT_TYPES


@dataclass(frozen=True)
class WebhookEvent(ABC):
    """Base webhook event. Use ProviderEvent or PlatformEvent."""

    id: str
    date: int
    resource_id: str
    custom_data: str | None = None

    @property
    @abstractmethod
    def event_type(self) -> str:
        """Wire string of the event type."""

    @property
    def date_time(self) -> datetime:
        """Event date as a UTC datetime."""
        return from_unix_timestamp(self.date)

    def to_dict(self) -> dict[str, Any]:
        """Wire representation of the event."""
        data: dict[str, Any] = {
            "Id": self.id,
            "Date": self.date,
            "EventType": self.event_type,
            "ResourceId": self.resource_id,
        }
        if self.custom_data is not None:
            data["CustomData"] = self.custom_data
        return data


@dataclass(frozen=True, kw_only=True)
class ProviderEvent(WebhookEvent):
    """Event emitted by Mangopay."""

    type: ProviderEventType

    @property
    def event_type(self) -> str:
        return self.type.value


@dataclass(frozen=True, kw_only=True)
class PlatformEvent(WebhookEvent):
    """Event emitted by FAM's subscription layer."""

    type: PlatformEventType

    @property
    def event_type(self) -> str:
        return self.type.value


def _require(data: Mapping[str, Any], key: str, expected: type) -> Any:
    value = data.get(key)
    # bool is an int subclass but never a valid Date
    if not isinstance(value, expected) or isinstance(value, bool):
        raise WebhookSignatureError(f"Missing or invalid {key} in webhook")
    return value


def parse_webhook_event(data: Mapping[str, Any]) -> WebhookEvent:
    """
    Build a typed event from a decoded webhook envelope.

    FAM event types are matched first, then Mangopay ones.

    Raises:
        WebhookSignatureError: If the event type is unknown or a required
            field is missing or has the wrong type
    """
    event_type = data.get("EventType")
    if not isinstance(event_type, str) or not event_type:
        raise WebhookSignatureError("Missing EventType in webhook")

    event_id = _require(data, "Id", str)
    resource_id = _require(data, "ResourceId", str)
    date = _require(data, "Date", int)

    custom_data = data.get("CustomData")
    if custom_data is not None and not isinstance(custom_data, str):
        raise WebhookSignatureError("Invalid CustomData in webhook")

    platform_type = PLATFORM_EVENT_TYPES.get(event_type)
    if platform_type is not None:
        return PlatformEvent(
            id=event_id,
            date=date,
            resource_id=resource_id,
            custom_data=custom_data,
            type=platform_type,
        )

    provider_type = PROVIDER_EVENT_TYPES.get(event_type)
    if provider_type is not None:
        return ProviderEvent(
            id=event_id,
            date=date,
            resource_id=resource_id,
            custom_data=custom_data,
            type=provider_type,
        )

    raise WebhookSignatureError(f"Unknown webhook event type: {event_type}")


@dataclass(frozen=True)
class WebhookHandlerConfig:
    """
    Webhook handler configuration.

    Attributes:
        secret: Signing secret. When None, every signature is accepted.
        tolerance: Maximum clock skew between the event timestamp and
            verification time. None disables the timestamp window.
    """

    secret: str | None = None
    tolerance: timedelta | None = timedelta(minutes=5)

    @classmethod
    def from_env(cls) -> WebhookHandlerConfig:
        """Load from FAM_WEBHOOK_SECRET and FAM_WEBHOOK_TOLERANCE (seconds)."""
        secret = os.environ.get("FAM_WEBHOOK_SECRET") or None
        tolerance = os.environ.get("FAM_WEBHOOK_TOLERANCE")
        if tolerance is None:
            return cls(secret=secret)
        return cls(secret=secret, tolerance=timedelta(seconds=float(tolerance)))
