"""HTTP session factory and the retrying JSON fetcher."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar

from requests import Session
from requests.exceptions import RequestException

from .errors import FetchError
from .models import HttpSession

T = TypeVar("T")

SleepFn = Callable[[float], None]


def make_session(user_agent: str) -> Session:
    """Create a requests session that asks for JSON with our user agent."""
    session = Session()
    session.headers.update({"User-Agent": user_agent, "Accept": "application/json"})
    return session


class RetryingFetcher:
    """GET a JSON document with a bounded number of attempts and a fixed delay."""

    def __init__(
        self,
        *,
        session: HttpSession,
        timeout: float,
        attempts: int,
        delay: float,
        logger: logging.Logger,
        sleep_fn: SleepFn = time.sleep,
    ) -> None:
        self._session = session
        self._timeout = timeout
        self._attempts = attempts
        self._delay = delay
        self._logger = logger
        self._sleep_fn = sleep_fn

    @property
    def attempts(self) -> int:
        return self._attempts

    def fetch(self, url: str, parse: Callable[[Any], T]) -> T:
        """Return ``parse(payload)`` for the first attempt that succeeds.

        Network errors, non-2xx statuses, malformed JSON and payloads that
        ``parse`` rejects with ValueError all count as a failed attempt.
        Raises FetchError once every attempt has failed.
        """
        last_error: Exception | None = None
        for attempt in range(1, self._attempts + 1):
            self._logger.info("Loading %s (attempt %d/%d)", url, attempt, self._attempts)
            try:
                response = self._session.get(url, timeout=self._timeout)
                response.raise_for_status()
                return parse(response.json())
            except (RequestException, ValueError) as exc:
                last_error = exc
                self._logger.debug("Attempt %d for %s failed: %s", attempt, url, exc)
            if attempt < self._attempts:
                self._sleep_fn(self._delay)
        raise FetchError(url, self._attempts, last_error)
