"""Unit tests for webhook event types."""

import os
from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from fam.core.exceptions import WebhookSignatureError
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


def envelope(event_type: str, **extra) -> dict:
    data = {"EventType": event_type, "ResourceId": "res_1", "Id": "evt_1", "Date": 1704067200}
    data.update(extra)
    return data


class TestEventTypeLookup:
    """Tests for event type classification."""

    def test_provider_types(self) -> None:
        assert is_provider_event("PAYIN_NORMAL_SUCCEEDED") is True
        assert is_provider_event("RECURRING_REGISTRATION_ENDED") is True
        assert is_provider_event("FAM_SUBSCRIPTION_CREATED") is False

    def test_platform_types(self) -> None:
        assert is_platform_event("FAM_SUBSCRIPTION_PAYMENT_FAILED") is True
        assert is_platform_event("KYC_FAILED") is False

    def test_type_sets_are_disjoint(self) -> None:
        provider = {t.value for t in ProviderEventType}
        platform = {t.value for t in PlatformEventType}
        assert provider.isdisjoint(platform)

    def test_lookup_is_case_sensitive(self) -> None:
        assert is_provider_event("payin_normal_succeeded") is False


class TestParseWebhookEvent:
    """Tests for parse_webhook_event."""

    def test_every_platform_type_parses_as_platform_event(self) -> None:
        for event_type in PlatformEventType:
            event = parse_webhook_event(envelope(event_type.value))
            assert isinstance(event, PlatformEvent)
            assert event.type is event_type

    def test_every_provider_type_parses_as_provider_event(self) -> None:
        for event_type in ProviderEventType:
            event = parse_webhook_event(envelope(event_type.value))
            assert isinstance(event, ProviderEvent)
            assert event.type is event_type

    def test_unknown_type_fails(self) -> None:
        with pytest.raises(WebhookSignatureError, match="Unknown webhook event type"):
            parse_webhook_event(envelope("PAYIN_TELEPORTED"))

    @pytest.mark.parametrize("missing", ["Id", "ResourceId", "Date"])
    def test_missing_required_field(self, missing: str) -> None:
        data = envelope("KYC_CREATED")
        del data[missing]
        with pytest.raises(WebhookSignatureError, match=missing):
            parse_webhook_event(data)

    @pytest.mark.parametrize(
        "field, value",
        [("Date", "1704067200"), ("Date", True), ("Id", 123), ("ResourceId", None)],
    )
    def test_wrong_field_type(self, field: str, value) -> None:
        data = envelope("KYC_CREATED", **{field: value})
        with pytest.raises(WebhookSignatureError):
            parse_webhook_event(data)

    def test_non_string_custom_data(self) -> None:
        with pytest.raises(WebhookSignatureError, match="CustomData"):
            parse_webhook_event(envelope("KYC_CREATED", CustomData={"a": 1}))

    def test_non_string_event_type(self) -> None:
        with pytest.raises(WebhookSignatureError, match="Missing EventType"):
            parse_webhook_event(envelope(None))  # type: ignore[arg-type]


class TestWebhookEvent:
    """Tests for event records."""

    def test_base_event_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            WebhookEvent(id="evt_1", date=1704067200, resource_id="pay_1")

    def test_event_type_and_date_time(self) -> None:
        event = ProviderEvent(
            id="evt_1",
            date=1704067200,
            resource_id="pay_1",
            type=ProviderEventType.PAYIN_NORMAL_CREATED,
        )
        assert event.event_type == "PAYIN_NORMAL_CREATED"
        assert event.date_time == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_to_dict_omits_missing_custom_data(self) -> None:
        event = PlatformEvent(
            id="evt_1", date=1, resource_id="sub_1", type=PlatformEventType.FAM_SUBSCRIPTION_UPDATED
        )
        assert event.to_dict() == {
            "Id": "evt_1",
            "Date": 1,
            "EventType": "FAM_SUBSCRIPTION_UPDATED",
            "ResourceId": "sub_1",
        }

    def test_to_dict_includes_custom_data(self) -> None:
        event = parse_webhook_event(envelope("KYC_OUTDATED", CustomData="ref-9"))
        assert event.to_dict()["CustomData"] == "ref-9"

    def test_event_is_immutable(self) -> None:
        event = parse_webhook_event(envelope("KYC_OUTDATED"))
        with pytest.raises(FrozenInstanceError):
            event.resource_id = "other"  # type: ignore[misc]


class TestWebhookHandlerConfig:
    """Tests for WebhookHandlerConfig."""

    def test_defaults(self) -> None:
        config = WebhookHandlerConfig()
        assert config.secret is None
        assert config.tolerance == timedelta(minutes=5)

    def test_from_env(self) -> None:
        env_vars = {"FAM_WEBHOOK_SECRET": "whsec_env", "FAM_WEBHOOK_TOLERANCE": "60"}
        with patch.dict(os.environ, env_vars, clear=False):
            config = WebhookHandlerConfig.from_env()

        assert config.secret == "whsec_env"
        assert config.tolerance == timedelta(seconds=60)

    def test_from_env_empty_secret_disables_verification(self) -> None:
        with patch.dict(os.environ, {"FAM_WEBHOOK_SECRET": ""}, clear=False):
            config = WebhookHandlerConfig.from_env()
        assert config.secret is None
