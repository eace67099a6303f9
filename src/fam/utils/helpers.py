"""
General helpers for the FAM SDK.

URL building, amount conversion, ID checks, timestamps, and the
constant-time comparison used for webhook signatures.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from urllib.parse import urlencode

from cryptography.hazmat.primitives import constant_time

# Currencies without minor units
NO_DECIMAL_CURRENCIES = frozenset({"JPY", "KRW", "VND"})

ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")


def build_url(base_url: str, path: str, params: Mapping[str, str | None] | None = None) -> str:
    """
    Join a base URL and a path, appending query parameters.

    Parameters whose value is None or an empty string are left out entirely.

    Example:
        >>> build_url("https://api.example.com", "/users", {"page": "1", "sort": ""})
        'https://api.example.com/users?page=1'
    """
    url = base_url.rstrip("/") + "/" + path.lstrip("/") if path else base_url

    if not params:
        return url

    filtered = {key: value for key, value in params.items() if value}
    if not filtered:
        return url

    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(filtered)}"


def timing_safe_equals(a: str, b: str) -> bool:
    """
    Compare two strings in constant time.

    Unequal lengths return False immediately; digest lengths are public.
    For equal lengths every position is compared, so the duration does not
    depend on where the first mismatch occurs.
    """
    if len(a) != len(b):
        return False
    return constant_time.bytes_eq(a.encode("utf-8"), b.encode("utf-8"))


def format_amount(amount_in_cents: int, currency: str = "EUR") -> str:
    """
    Format an amount in minor units for display.

    Example:
        >>> format_amount(1234, "EUR")
        '12.34 EUR'
        >>> format_amount(1000, "JPY")
        '1000 JPY'
    """
    if currency.upper() in NO_DECIMAL_CURRENCIES:
        return f"{amount_in_cents} {currency}"

    major = Decimal(amount_in_cents) / 100
    return f"{major.quantize(Decimal('0.01'))} {currency}"


def parse_amount(amount: Decimal | int | float | str) -> int:
    """Convert a major-unit amount to cents, rounding half up."""
    cents = Decimal(str(amount)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def is_valid_id(value: str | None) -> bool:
    """Check that a resource ID is non-empty and alphanumeric (with _ and -)."""
    if not value:
        return False
    return ID_PATTERN.match(value) is not None


def to_unix_timestamp(value: datetime) -> int:
    """Seconds since the epoch. Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def from_unix_timestamp(timestamp: int) -> datetime:
    """Timezone-aware UTC datetime for a Unix timestamp."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)
