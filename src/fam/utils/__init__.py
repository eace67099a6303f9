"""Utility functions for the FAM SDK."""

from fam.utils.helpers import (
    build_url,
    format_amount,
    from_unix_timestamp,
    is_valid_id,
    parse_amount,
    timing_safe_equals,
    to_unix_timestamp,
)

__all__ = [
    "build_url",
    "format_amount",
    "from_unix_timestamp",
    "is_valid_id",
    "parse_amount",
    "timing_safe_equals",
    "to_unix_timestamp",
]
