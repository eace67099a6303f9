"""
Configuration management for the FAM SDK.

Handles loading configuration from environment variables and validation.
Options are immutable: token rotation produces a new instance instead of
mutating one that concurrent requests may be reading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any

DEFAULT_USER_AGENT = "FAM-Python-SDK/0.1.0"


def _get_env_var(name: str, default: str | None = None, required: bool = False) -> str | None:
    """Get environment variable with optional default."""
    value = os.environ.get(name, default)
    if required and not value:
        raise ValueError(f"Required environment variable {name} is not set")
    return value


@dataclass(frozen=True)
class FamOptions:
    """Client options shared by every request."""

    base_url: str
    token: str | None = None
    # Per-attempt request timeout in seconds
    timeout: float = 30.0
    # Total attempts per request, first try included
    retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    headers: dict[str, str] = field(default_factory=dict)
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url is required")
        if self.retries < 1:
            raise ValueError("retries must be at least 1")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.base_delay < 0 or self.max_delay < self.base_delay:
            raise ValueError("delays must satisfy 0 <= base_delay <= max_delay")

    @classmethod
    def from_env(cls, **overrides: Any) -> FamOptions:
        """Load options from environment variables."""
        base_url = overrides.pop("base_url", None) or _get_env_var("FAM_BASE_URL", required=True)
        token = overrides.pop("token", None) or _get_env_var("FAM_API_TOKEN")

        timeout = overrides.pop("timeout", None)
        if timeout is None:
            timeout = float(_get_env_var("FAM_TIMEOUT", default="30"))  # type: ignore[arg-type]

        retries = overrides.pop("retries", None)
        if retries is None:
            retries = int(_get_env_var("FAM_RETRIES", default="3"))  # type: ignore[arg-type]

        return cls(
            base_url=base_url,  # type: ignore[arg-type]
            token=token,
            timeout=timeout,
            retries=retries,
            **overrides,
        )

    def with_updates(self, **updates: Any) -> FamOptions:
        """Create a new FamOptions with updated values."""
        return replace(self, **updates)

    def with_token(self, token: str) -> FamOptions:
        """Create a new FamOptions authenticating with ``token``."""
        return replace(self, token=token)

    def without_token(self) -> FamOptions:
        """Create a new FamOptions that sends no Authorization header."""
        return replace(self, token=None)

    def masked_token(self) -> str:
        """Return the token with most characters masked for safe logging."""
        if not self.token:
            return "<none>"
        if len(self.token) <= 8:
            return "****"
        return self.token[:4] + "..." + self.token[-4:]
