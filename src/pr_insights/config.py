"""Configuration parsing and validation for PR event insights."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError

API_URL_ENV_VAR = "PR_INSIGHTS_API_URL"
API_TOKEN_ENV_VAR = "PR_INSIGHTS_API_TOKEN"


@dataclass(frozen=True)
class Config:
    """Validated runtime settings used by the insights CLI."""

    range_days: int
    prev_days: int
    width: int
    api_base_url: Optional[str]
    api_token: Optional[str]


def load_config(
    range_days: int,
    prev_days: int = 0,
    width: int = 1,
    api_base_url: Optional[str] = None,
) -> Config:
    """Build and validate application configuration.

    Args:
        range_days: Positive window length in days.
        prev_days: Non-negative number of days to move the window anchor into the past.
        width: Positive histogram bucket width in days.
        api_base_url: Base URL of the repo-search / list API. Falls back to the
            ``PR_INSIGHTS_API_URL`` environment variable.

    Returns:
        A validated ``Config`` instance.

    Raises:
        ConfigurationError: If any numeric value is out of range or the API
            base URL is not an http(s) URL.
    """
    if range_days <= 0:
        raise ConfigurationError("Invalid value for 'range': expected an integer greater than 0.")

    if prev_days < 0:
        raise ConfigurationError("Invalid value for 'prev-days': expected an integer of at least 0.")

    if width <= 0:
        raise ConfigurationError("Invalid value for 'width': expected an integer greater than 0.")

    base_url = (api_base_url or os.getenv(API_URL_ENV_VAR, "")).strip() or None
    if base_url is not None and not base_url.startswith(("http://", "https://")):
        raise ConfigurationError(f"Invalid API base URL '{base_url}': expected an http(s) URL.")

    token = os.getenv(API_TOKEN_ENV_VAR, "").strip() or None

    return Config(
        range_days=range_days,
        prev_days=prev_days,
        width=width,
        api_base_url=base_url.rstrip("/") if base_url else None,
        api_token=token,
    )
