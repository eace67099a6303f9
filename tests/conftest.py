import hashlib
import hmac
import json

import pytest

WEBHOOK_SECRET = "whsec_test"
FIXED_NOW = 1704067200


def sign_payload(secret: str, payload: str | bytes) -> str:
    """Lowercase hex HMAC-SHA256, as the FAM API signs deliveries."""
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


@pytest.fixture
def sign():
    return sign_payload


@pytest.fixture
def fixed_clock():
    """Clock frozen at 2024-01-01T00:00:00Z."""
    return lambda: float(FIXED_NOW)


@pytest.fixture
def provider_payload() -> str:
    return json.dumps(
        {
            "EventType": "PAYIN_NORMAL_FAILED",
            "ResourceId": "pay_456",
            "Id": "evt_789",
            "Date": FIXED_NOW,
        }
    )


@pytest.fixture
def platform_payload() -> str:
    return json.dumps(
        {
            "EventType": "FAM_SUBSCRIPTION_CREATED",
            "ResourceId": "sub_123",
            "Id": "evt_456",
            "Date": FIXED_NOW,
            "CustomData": "plan=pro",
        }
    )
