"""Utility functions for pyshoptheme."""

import json
from typing import Any

import httpx

# =============================================================================
# Constants for theme layout
# =============================================================================

# Name of the configuration file, never synced
CONFIG_FILE_NAME: str = "config.yml"

# Top-level directories a theme may contain
DEFAULT_WHITELIST: tuple[str, ...] = (
    "layout/",
    "assets/",
    "config/",
    "snippets/",
    "templates/",
    "locales/",
)

# Retry configuration for transport errors
DEFAULT_MAX_RETRIES: int = 3
DEFAULT_RETRY_DELAY: float = 1.0  # seconds


# =============================================================================
# Response helpers
# =============================================================================


def _flatten_errors(errors: Any) -> list[str]:
    if isinstance(errors, dict):
        return [msg for value in errors.values() for msg in _flatten_errors(value)]
    if isinstance(errors, (list, tuple)):
        return [msg for value in errors for msg in _flatten_errors(value)]
    return [str(errors)]


def extract_error_message(response: httpx.Response) -> str:
    """Extract a human-readable error message from an API response.

    Args:
        response: Response of a failed request

    Returns:
        The ``errors`` field joined with ", " when the body is JSON, the
        stripped body text otherwise, or an empty string when there is
        nothing to report

    Examples:
        >>> r = httpx.Response(422, json={"errors": {"asset": ["is invalid"]}})
        >>> extract_error_message(r)
        'is invalid'
    """
    if not response.content:
        return ""

    try:
        parsed = json.loads(response.content)
    except ValueError:
        return response.text.strip()

    if not isinstance(parsed, dict):
        return ""
    errors = parsed.get("errors")
    if errors is None:
        return ""
    if isinstance(errors, str):
        return errors.strip()
    return ", ".join(_flatten_errors(errors))


def normalize_key(key: str) -> str:
    """Normalize an asset key to a slash-separated relative path.

    Examples:
        >>> normalize_key("./templates\\\\index.liquid")
        'templates/index.liquid'
    """
    key = key.replace("\\", "/")
    while key.startswith("./"):
        key = key[2:]
    return key.lstrip("/")
