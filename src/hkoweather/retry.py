"""Bounded retry around the single-attempt upstream client.

RetryingFetcher calls HKOClient.fetch() up to ``attempts`` times. After a
failed attempt ``n`` it waits ``backoff(n)`` seconds; the default backoff
is linear (``n * delay``), so with a 1 s delay the waits are 1 s, 2 s, 3 s.
Only UpstreamError is retried. Anything else propagates from the attempt
that raised it.

Every attempt produces a FetchAttempt event, logged and passed to the
optional ``on_attempt`` callback.

Example:
    Unit-testing with a fake sleep::

        sleep = AsyncMock()
        fetcher = RetryingFetcher(client, attempts=3, delay=1.0, sleep=sleep)
        data = await fetcher.fetch(DataType.CURRENT_WEATHER, Language.TC)
        # sleep.await_args_list == [call(1.0), call(2.0)] after two failures
"""

import asyncio
import logging
import time
from datetime import timedelta
from typing import Any, Awaitable, Callable, Optional, Union

from .client import HKOClient
from .exceptions import FetchExhaustedError, UpstreamError
from .models import FetchAttempt
from .types import DEFAULT_RETRY_ATTEMPTS, DEFAULT_RETRY_DELAY, DataType, Language

logger = logging.getLogger(__name__)

Backoff = Callable[[int], float]
Sleep = Callable[[float], Awaitable[Any]]


def linear_backoff(delay: float) -> Backoff:
    """Backoff that waits ``attempt * delay`` seconds after ``attempt``.

    Example:
        >>> backoff = linear_backoff(1.0)
        >>> [backoff(n) for n in (1, 2, 3)]
        [1.0, 2.0, 3.0]
    """

    def backoff(attempt: int) -> float:
        return delay * attempt

    return backoff


class RetryingFetcher:
    """Fetch upstream data with bounded retries.

    Args:
        client: Upstream client providing ``fetch(data_type, language)``.
        attempts: Maximum number of attempts (at least 1). Defaults to 3.
        delay: Backoff base, in seconds or as a timedelta. Defaults to 1 s.
            Ignored when ``backoff`` is given.
        backoff: Function from the failed attempt number to the wait in
            seconds. Defaults to linear_backoff(delay).
        sleep: Awaitable sleep. Defaults to asyncio.sleep.
        clock: Monotonic clock used to time attempts.
        on_attempt: Callback invoked with each FetchAttempt.

    Raises:
        ValueError: If ``attempts`` is less than 1.
    """

    def __init__(
        self,
        client: HKOClient,
        *,
        attempts: int = DEFAULT_RETRY_ATTEMPTS,
        delay: Union[float, timedelta] = DEFAULT_RETRY_DELAY,
        backoff: Optional[Backoff] = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        on_attempt: Optional[Callable[[FetchAttempt], None]] = None,
    ) -> None:
        if attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {attempts}")
        if isinstance(delay, timedelta):
            delay = delay.total_seconds()
        self._client = client
        self.attempts = attempts
        self._backoff = backoff if backoff is not None else linear_backoff(delay)
        self._sleep = sleep
        self._clock = clock
        self._on_attempt = on_attempt

    async def fetch(self, data_type: DataType, language: Language) -> dict[str, Any]:
        """Fetch a data type, retrying upstream failures.

        Args:
            data_type: Upstream resource to fetch.
            language: Localization of the content.

        Returns:
            Parsed JSON object from the first successful attempt.

        Raises:
            FetchExhaustedError: If every attempt failed. Chained from the
                last UpstreamError.
        """
        started = self._clock()
        last_error: Optional[UpstreamError] = None

        for attempt in range(1, self.attempts + 1):
            logger.debug(
                f"Fetching {data_type.value} ({language.value}) "
                f"attempt {attempt}/{self.attempts}"
            )
            attempt_started = self._clock()
            try:
                data = await self._client.fetch(data_type, language)
            except UpstreamError as e:
                last_error = e
                self._record(
                    FetchAttempt(
                        data_type=data_type.value,
                        language=language.value,
                        attempt=attempt,
                        success=False,
                        elapsed=self._clock() - attempt_started,
                        error=str(e),
                    )
                )
                if attempt < self.attempts:
                    await self._sleep(self._backoff(attempt))
                continue

            self._record(
                FetchAttempt(
                    data_type=data_type.value,
                    language=language.value,
                    attempt=attempt,
                    success=True,
                    elapsed=self._clock() - attempt_started,
                )
            )
            logger.info(
                f"Weather API call {data_type.value} ({language.value}) succeeded "
                f"in {(self._clock() - started) * 1000:.0f}ms"
            )
            return data

        logger.error(
            f"Weather API call {data_type.value} ({language.value}) failed after "
            f"{self.attempts} attempts in {(self._clock() - started) * 1000:.0f}ms: "
            f"{last_error}"
        )
        raise FetchExhaustedError(
            data_type.value, language.value, self.attempts, last_error
        ) from last_error

    def _record(self, event: FetchAttempt) -> None:
        if event.success:
            logger.debug(
                f"Attempt {event.attempt} for {event.data_type} succeeded",
                extra=event.model_dump(),
            )
        else:
            logger.warning(
                f"Attempt {event.attempt} failed for {event.data_type}: {event.error}",
                extra=event.model_dump(),
            )
        if self._on_attempt is not None:
            self._on_attempt(event)
