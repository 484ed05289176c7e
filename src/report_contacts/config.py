"""Runtime configuration model."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from .errors import ConfigError
from .logging_utils import get_logger
from .validation import validate_loader_constraints

CONFIG_ENV_VAR = "REPORT_CONTACTS_CONFIG"

COMPANY_DATA_URL = "https://github.com/ravenastar-js/gd/raw/refs/heads/main/report.json"
VENDOR_DATA_URL = "https://github.com/ravenastar-js/gd/raw/refs/heads/main/db/vtfp.json"
VENDOR_SOURCE_URL = "https://docs.virustotal.com/docs/false-positive-contacts"

DEFAULT_COMPANY_USER_AGENT = "report-contacts/1.0.0"
DEFAULT_VENDOR_USER_AGENT = "report-contacts-vendors/1.0.0"
DEFAULT_COMPANY_CACHE_TTL = 60 * 60.0
DEFAULT_VENDOR_CACHE_TTL = 24 * 60 * 60.0
DEFAULT_COMPANY_TIMEOUT = 10.0
DEFAULT_VENDOR_TIMEOUT = 15.0
DEFAULT_COMPANY_RETRY_ATTEMPTS = 3
DEFAULT_VENDOR_RETRY_ATTEMPTS = 1
DEFAULT_RETRY_DELAY = 2.0


def _frozen(data: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(data or {}))


@dataclass(frozen=True)
class LoaderConfig:
    """Validated settings for one directory loader. Durations are in seconds."""

    name: str
    url: str
    cache_ttl: float
    timeout: float
    retry_attempts: int
    retry_delay: float
    user_agent: str
    fallback_data: Mapping[str, Any] = field(default_factory=lambda: _frozen(None))

    def __post_init__(self) -> None:
        validate_loader_constraints(
            name=self.name,
            url=self.url,
            cache_ttl=self.cache_ttl,
            timeout=self.timeout,
            retry_attempts=self.retry_attempts,
            retry_delay=self.retry_delay,
        )
        if not isinstance(self.fallback_data, Mapping):
            raise ConfigError(f"{self.name}: fallback data must be a JSON object.")
        object.__setattr__(self, "fallback_data", _frozen(self.fallback_data))


def default_company_config(**overrides: Any) -> LoaderConfig:
    """Company directory defaults: 1 hour TTL, 3 attempts, 2 s between attempts."""
    values: dict[str, Any] = {
        "name": "companies",
        "url": COMPANY_DATA_URL,
        "cache_ttl": DEFAULT_COMPANY_CACHE_TTL,
        "timeout": DEFAULT_COMPANY_TIMEOUT,
        "retry_attempts": DEFAULT_COMPANY_RETRY_ATTEMPTS,
        "retry_delay": DEFAULT_RETRY_DELAY,
        "user_agent": DEFAULT_COMPANY_USER_AGENT,
    }
    values.update(overrides)
    return LoaderConfig(**values)


def default_vendor_config(**overrides: Any) -> LoaderConfig:
    """Vendor directory defaults: 24 hour TTL, single attempt."""
    values: dict[str, Any] = {
        "name": "vendors",
        "url": VENDOR_DATA_URL,
        "cache_ttl": DEFAULT_VENDOR_CACHE_TTL,
        "timeout": DEFAULT_VENDOR_TIMEOUT,
        "retry_attempts": DEFAULT_VENDOR_RETRY_ATTEMPTS,
        "retry_delay": DEFAULT_RETRY_DELAY,
        "user_agent": DEFAULT_VENDOR_USER_AGENT,
    }
    values.update(overrides)
    return LoaderConfig(**values)


@dataclass(frozen=True)
class Settings:
    """Configuration for both directories."""

    companies: LoaderConfig = field(default_factory=default_company_config)
    vendors: LoaderConfig = field(default_factory=default_vendor_config)


def _pick(section: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in section:
            return section[key]
    return None


def _millis(section: Mapping[str, Any], *keys: str) -> float | None:
    value = _pick(section, *keys)
    if value is None:
        return None
    try:
        return float(value) / 1000.0
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{keys[0]} must be a number of milliseconds, got {value!r}.") from exc


def _overrides(section: Mapping[str, Any]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    url = _pick(section, "url")
    if url is not None:
        overrides["url"] = str(url)
    user_agent = _pick(section, "userAgent")
    if user_agent is not None:
        overrides["user_agent"] = str(user_agent)
    attempts = _pick(section, "retryAttempts")
    if attempts is not None:
        overrides["retry_attempts"] = attempts
    for target, keys in (
        ("cache_ttl", ("cacheTtlMs", "cacheDuration")),
        ("timeout", ("timeoutMs", "timeout")),
        ("retry_delay", ("retryDelayMs", "retryDelay")),
    ):
        seconds = _millis(section, *keys)
        if seconds is not None:
            overrides[target] = seconds
    fallback = _pick(section, "fallbackData")
    if fallback is not None:
        overrides["fallback_data"] = fallback
    return overrides


def _section(raw: Mapping[str, Any], *keys: str) -> Mapping[str, Any]:
    value = _pick(raw, *keys)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"Config section {keys[0]!r} must be a JSON object.")
    return value


def settings_from_mapping(raw: Mapping[str, Any]) -> Settings:
    """Build validated Settings from a parsed config document."""
    company = dict(_overrides(_section(raw, "data", "companies")))
    if "fallback_data" not in company and "fallbackData" in raw:
        company["fallback_data"] = raw["fallbackData"]
    vendor = _overrides(_section(raw, "vendors", "virustotal"))
    return Settings(
        companies=default_company_config(**company),
        vendors=default_vendor_config(**vendor),
    )


def load_settings(
    path: str | os.PathLike[str] | None = None, *, logger: logging.Logger | None = None
) -> Settings:
    """Load Settings from a JSON file, falling back to defaults when it cannot be read."""
    logger = logger or get_logger()
    location = path or os.getenv(CONFIG_ENV_VAR)
    if not location:
        return Settings()
    config_path = Path(location)
    if not config_path.exists():
        logger.debug("Config file %s not found; using defaults.", config_path)
        return Settings()
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.error("Failed to load config %s: %s", config_path, exc)
        return Settings()
    if not isinstance(raw, Mapping):
        logger.error("Config %s must contain a JSON object; using defaults.", config_path)
        return Settings()
    return settings_from_mapping(raw)
