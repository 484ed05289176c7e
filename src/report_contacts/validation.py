"""Validation and runtime guardrails."""

from __future__ import annotations

import math
from urllib.parse import urlparse

from .errors import ConfigError

FORM_PREFIXES = ("http://", "https://")


def is_supported_url(url: str) -> bool:
    """Allow only absolute HTTP(S) URLs with a hostname."""
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def looks_like_form(value: str) -> bool:
    """Return True when a contact value points at a web form."""
    return value.strip().lower().startswith(FORM_PREFIXES)


def clean_text(value: object) -> str:
    """Return a stripped string for string input and an empty string otherwise."""
    if not isinstance(value, str):
        return ""
    return value.strip()


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_loader_constraints(
    *,
    name: str,
    url: str,
    cache_ttl: float,
    timeout: float,
    retry_attempts: int,
    retry_delay: float,
) -> None:
    """Validate one loader's configuration and raise ConfigError on invalid values."""
    if not isinstance(url, str) or not is_supported_url(url):
        raise ConfigError(f"{name}: url must be an absolute http(s) URL, got {url!r}.")
    for label, value in (
        ("cache TTL", cache_ttl),
        ("timeout", timeout),
        ("retry delay", retry_delay),
    ):
        if not _is_number(value) or not math.isfinite(value):
            raise ConfigError(f"{name}: {label} must be a finite number, got {value!r}.")
    if isinstance(retry_attempts, bool) or not isinstance(retry_attempts, int):
        raise ConfigError(f"{name}: retry attempts must be an integer, got {retry_attempts!r}.")
    if cache_ttl < 0:
        raise ConfigError(f"{name}: cache TTL must be >= 0.")
    if timeout <= 0:
        raise ConfigError(f"{name}: timeout must be > 0.")
    if retry_attempts < 1:
        raise ConfigError(f"{name}: retry attempts must be >= 1.")
    if retry_delay < 0:
        raise ConfigError(f"{name}: retry delay must be >= 0.")
