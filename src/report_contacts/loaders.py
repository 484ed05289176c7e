"""Directory loaders: cache, retrying fetch and offline fallback."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from datetime import date
from threading import Lock
from typing import Any

from .cache import CacheCell, Clock
from .config import (
    VENDOR_SOURCE_URL,
    LoaderConfig,
    default_company_config,
    default_vendor_config,
)
from .errors import FetchError, NoDataAvailable
from .fetchers import RetryingFetcher, SleepFn, make_session
from .logging_utils import get_logger
from .models import Directory, Entity, Fallback, Fatal, HttpSession, LoadResult, Ok, find
from .normalizer import parse_company_payload, parse_vendor_payload


class DirectoryLoader(ABC):
    """Serve one directory from cache, the network, or the bundled fallback.

    Subclasses turn decoded JSON into a Directory (``parse``) and decide what an
    empty fallback means (``empty_fallback``).
    """

    label = "directory"

    def __init__(
        self,
        config: LoaderConfig,
        *,
        session: HttpSession | None = None,
        logger: logging.Logger | None = None,
        clock: Clock = time.time,
        sleep_fn: SleepFn = time.sleep,
    ) -> None:
        self._config = config
        self._logger = logger or get_logger()
        self._cache: CacheCell[LoadResult] = CacheCell(config.cache_ttl, clock=clock)
        self._lock = Lock()
        self._fetcher = RetryingFetcher(
            session=session or make_session(config.user_agent),
            timeout=config.timeout,
            attempts=config.retry_attempts,
            delay=config.retry_delay,
            logger=self._logger,
            sleep_fn=sleep_fn,
        )

    @property
    def config(self) -> LoaderConfig:
        return self._config

    @abstractmethod
    def parse(self, payload: Any) -> Directory:
        """Turn decoded JSON into a Directory; raise ValueError for unusable documents."""

    @abstractmethod
    def empty_fallback(self) -> LoadResult:
        """Result to use when the offline dataset has no entries."""

    def is_cache_valid(self) -> bool:
        return self._cache.is_valid()

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def get_fallback_data(self) -> Directory:
        """Parse the bundled offline dataset with the same rules as live data."""
        return self.parse(dict(self._config.fallback_data))

    def load(self) -> LoadResult:
        """Return the directory tagged with where it came from.

        Fallback results are cached for the full TTL like fetched ones, so the
        network is not retried until the TTL elapses. Call clear_cache() to
        force the next call back to the network sooner. Fatal results are
        never cached.
        """
        with self._lock:
            cached = self._cache.value
            if cached is not None and self._cache.is_valid():
                self._logger.info("Using cached %s", self.label)
                if isinstance(cached, Ok):
                    return Ok(cached.directory, cached=True)
                return cached

            try:
                directory = self._fetcher.fetch(self._config.url, self.parse)
            except FetchError as exc:
                self._logger.warning("Failed to load remote %s: %s", self.label, exc)
                result = self._fallback()
            else:
                self._logger.info("Loaded %d %s entries", len(directory), self.label)
                result = Ok(directory)

            if not isinstance(result, Fatal):
                self._cache.store(result)
            return result

    def load_data(self) -> Directory:
        """Return the directory, raising NoDataAvailable when there is none."""
        result = self.load()
        if isinstance(result, Fatal):
            raise result.error
        return result.directory

    def find(self, term: str) -> Entity | None:
        return find(term, self.load_data())

    def _fallback(self) -> LoadResult:
        try:
            directory = self.get_fallback_data()
        except ValueError as exc:
            self._logger.error("Fallback %s is invalid: %s", self.label, exc)
            return self.empty_fallback()
        if not directory.entities:
            return self.empty_fallback()
        self._logger.warning(
            "Using fallback %s with %d entries", self.label, len(directory.entities)
        )
        return Fallback(directory)


class CompanyDirectoryLoader(DirectoryLoader):
    """General company directory; an empty fallback is fatal."""

    label = "company directory"

    def __init__(self, config: LoaderConfig | None = None, **kwargs: Any) -> None:
        super().__init__(config or default_company_config(), **kwargs)

    def parse(self, payload: Any) -> Directory:
        return parse_company_payload(payload, source_url=self._config.url, logger=self._logger)

    def empty_fallback(self) -> LoadResult:
        return Fatal(NoDataAvailable("No data available (remote or fallback)."))


class VendorDirectoryLoader(DirectoryLoader):
    """Security-vendor directory; an empty fallback yields an empty Directory."""

    label = "vendor directory"

    def __init__(self, config: LoaderConfig | None = None, **kwargs: Any) -> None:
        super().__init__(config or default_vendor_config(), **kwargs)

    def parse(self, payload: Any) -> Directory:
        return parse_vendor_payload(payload, logger=self._logger)

    def get_fallback_data(self) -> Directory:
        if not self._config.fallback_data:
            return self._empty_directory()
        return super().get_fallback_data()

    def empty_fallback(self) -> Fallback:
        self._logger.warning("No fallback %s available; continuing with 0 vendors", self.label)
        return Fallback(self._empty_directory())

    def _empty_directory(self) -> Directory:
        return Directory(source_url=VENDOR_SOURCE_URL, last_updated=date.today())
