"""
Tab Grouper - Retrying Upstream Invoker

Calls the completion client with a per-attempt timeout and retries
failures with a linearly growing wait (1s, 2s, ... by default).
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from tenacity import AsyncRetrying, RetryCallState, retry_if_result, stop_after_attempt, wait_incrementing

from .errors import UpstreamError
from .llm_client import CompletionClient
from .models import CompletionRequest

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of a single upstream attempt: a response or the error raised."""
    attempt: int
    response: Any = None
    error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


def _attempt_failed(outcome: AttemptOutcome) -> bool:
    return outcome.failed


def _log_wait(retry_state: RetryCallState) -> None:
    outcome: AttemptOutcome = retry_state.outcome.result()
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(f"Attempt {outcome.attempt} failed: {outcome.error!r}; waiting {wait:.1f}s before retry")


def _last_outcome(retry_state: RetryCallState) -> AttemptOutcome:
    return retry_state.outcome.result()


class RetryingInvoker:
    """
    Bounded-retry wrapper around a CompletionClient.

    Every client failure, including a timed out attempt, is retried. After
    ``max_attempts`` failures the last error is raised inside an UpstreamError.
    """

    def __init__(
        self,
        client: CompletionClient,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        timeout: Optional[float] = 60.0,
        sleep: Sleep = asyncio.sleep,
    ):
        self.client = client
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.timeout = timeout
        self._sleep = sleep

    async def _attempt(self, request: CompletionRequest, attempt: int) -> AttemptOutcome:
        try:
            response = await asyncio.wait_for(self.client.generate(request), timeout=self.timeout)
        except asyncio.TimeoutError:
            return AttemptOutcome(attempt, error=TimeoutError(f"No response within {self.timeout}s"))
        except Exception as e:
            return AttemptOutcome(attempt, error=e)
        return AttemptOutcome(attempt, response=response)

    async def invoke(self, request: CompletionRequest) -> Any:
        """
        Call the upstream client until it succeeds or attempts run out.

        Returns:
            The raw completion response from the first successful attempt

        Raises:
            UpstreamError: If every attempt failed
        """
        attempts = 0

        async def attempt_once() -> AttemptOutcome:
            nonlocal attempts
            attempts += 1
            logger.info(f"Calling completion model {request.model} (attempt {attempts}/{self.max_attempts})")
            return await self._attempt(request, attempts)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_incrementing(start=self.base_delay, increment=self.base_delay),
            retry=retry_if_result(_attempt_failed),
            before_sleep=_log_wait,
            retry_error_callback=_last_outcome,
            sleep=self._sleep,
        )
        outcome: AttemptOutcome = await retrying(attempt_once)

        if outcome.failed:
            logger.error(f"Giving up after {outcome.attempt} attempts: {outcome.error!r}")
            raise UpstreamError(outcome.error, outcome.attempt)

        logger.info(f"Got response from completion model on attempt {outcome.attempt}")
        return outcome.response
