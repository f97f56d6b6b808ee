"""
Повтор запросов при временных сбоях
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from email.utils import parsedate_to_datetime
from typing import Awaitable, Callable, FrozenSet, Optional

from ..types.models import AttemptOutcome, RawResponse, ResolvedRequest, RetryAttemptState
from .transport import Transport, TransportFailure

logger = logging.getLogger(__name__)

MAX_RETRY = 3
RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})
DEFAULT_RETRY_DELAY = 1.0
MIN_RETRY_DELAY = 1.0
MAX_RETRY_DELAY = 60.0


@dataclass(frozen=True)
class RetryPolicy:
    """
    Политика повторов.

    max_retry - число повторов после первой попытки, всего попыток max_retry + 1.
    Задержки в секундах.
    """

    max_retry: int = MAX_RETRY
    retry_statuses: FrozenSet[int] = field(default_factory=lambda: RETRY_STATUSES)
    default_delay: float = DEFAULT_RETRY_DELAY
    min_delay: float = MIN_RETRY_DELAY
    max_delay: float = MAX_RETRY_DELAY

    def __post_init__(self):
        if self.max_retry < 0:
            raise ValueError(f"max_retry must be >= 0, got {self.max_retry}")

    @property
    def max_attempts(self) -> int:
        return self.max_retry + 1

    def is_retryable(self, outcome: AttemptOutcome) -> bool:
        if outcome.error is not None:
            return True
        return outcome.response is not None and outcome.response.status in self.retry_statuses

    def get_delay(self, response: Optional[RawResponse], now: Optional[float] = None) -> float:
        """Задержка перед следующей попыткой"""
        if now is None:
            now = time.time()
        delay = self._header_delay(response, now) if response is not None else None
        if delay is None:
            delay = self.default_delay
        return min(delay, self.max_delay)

    def _header_delay(self, response: RawResponse, now: float) -> Optional[float]:
        retry_after = response.header("Retry-After")
        if retry_after:
            retry_after = retry_after.strip()
            try:
                return max(float(retry_after), 0.0)
            except ValueError:
                pass
            try:
                retry_at = parsedate_to_datetime(retry_after).timestamp()
            except (TypeError, ValueError):
                logger.debug(f"Unparseable Retry-After header: {retry_after!r}")
            else:
                return max(retry_at - now, 0.0)

        rate_limit_reset = response.header("X-RateLimit-Reset")
        if rate_limit_reset:
            try:
                return max(float(rate_limit_reset) - now, self.min_delay)
            except ValueError:
                logger.debug(f"Unparseable X-RateLimit-Reset header: {rate_limit_reset!r}")

        return None


class RetryEngine:
    """Выполнение запроса через транспорт с ограниченным числом попыток"""

    def __init__(
        self,
        transport: Transport,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.transport = transport
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    async def _attempt(self, request: ResolvedRequest, state: RetryAttemptState) -> AttemptOutcome:
        try:
            response = await self.transport.send(request)
        except TransportFailure as exc:
            return AttemptOutcome(state=state, error=exc.cause)
        return AttemptOutcome(state=state, response=response)

    async def execute(self, request: ResolvedRequest) -> AttemptOutcome:
        """
        Попытки строго последовательны: следующая начинается только после
        результата предыдущей и паузы.
        """
        max_attempts = self.policy.max_attempts
        for index in range(max_attempts):
            state = RetryAttemptState(attempt_index=index, max_attempts=max_attempts)
            outcome = await self._attempt(request, state)

            if not self.policy.is_retryable(outcome) or state.exhausted:
                return outcome

            delay = self.policy.get_delay(outcome.response)
            reason = outcome.error if outcome.error is not None else outcome.response.status
            logger.warning(
                f"{request.method} {request.url} failed ({reason}), "
                f"retries left: {max_attempts - index - 1}, waiting {delay:.2f}s"
            )
            await self._sleep(delay)

        return outcome
