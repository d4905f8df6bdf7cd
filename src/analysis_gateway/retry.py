"""Rate-limit retry loop on tenacity.

Outcome per attempt:
- success: first successful result ends the loop.
- retryable: status in retry_statuses and budget left; sleep the next
  scheduled delay, then try again.
- terminal: any other failure (surfaced verbatim), or the budget ran out
  while still rate-limited (fixed cool-down message).

Attempts are strictly sequential. Exceptions raised by the call itself are
not retried; they propagate unchanged.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, FrozenSet, Tuple

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    wait_chain,
    wait_fixed,
    wait_none,
)

from .errors import GENERIC_UPSTREAM_MESSAGE, UpstreamRateLimited, UpstreamTransportError
from .logging_util import get_logger
from .types import UpstreamCallResult

logger = get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 5
    delays: Tuple[float, ...] = (1, 2, 4, 8, 16)
    retry_statuses: FrozenSet[int] = frozenset({429})

    def delay_for(self, retry_index: int) -> float:
        """Delay before retry #retry_index (0-based). Last entry repeats."""
        if not self.delays:
            return 0.0
        return self.delays[min(retry_index, len(self.delays) - 1)]

    def is_retryable(self, result: UpstreamCallResult) -> bool:
        return (not result.succeeded) and result.http_status in self.retry_statuses

    def wait_strategy(self):
        # wait_chain repeats its last strategy, same as delay_for
        if not self.delays:
            return wait_none()
        return wait_chain(*[wait_fixed(d) for d in self.delays])


def _log_attempt(retry_state: RetryCallState) -> None:
    logger.info("[RETRY] attempting attempt=%d", retry_state.attempt_number)


def _log_backoff(retry_state: RetryCallState) -> None:
    result = retry_state.outcome.result()
    logger.warning(
        "[RETRY] rate limited status=%d attempt=%d, sleeping %.1fs",
        result.http_status, retry_state.attempt_number, retry_state.next_action.sleep,
    )


def _exhausted(retry_state: RetryCallState) -> UpstreamCallResult:
    result = retry_state.outcome.result()
    logger.error(
        "[RETRY] budget exhausted after %d attempts (status=%d)",
        retry_state.attempt_number, result.http_status,
    )
    raise UpstreamRateLimited(attempts=retry_state.attempt_number)


class RetryController:
    def __init__(self, policy: RetryPolicy, sleep: Callable[[float], None] = time.sleep):
        self.policy = policy
        self._sleep = sleep

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.policy.max_attempts),
            wait=self.policy.wait_strategy(),
            retry=retry_if_result(self.policy.is_retryable),
            sleep=self._sleep,
            before=_log_attempt,
            before_sleep=_log_backoff,
            retry_error_callback=_exhausted,
        )

    def run(self, call: Callable[[], UpstreamCallResult]) -> UpstreamCallResult:
        result = self._retrying()(call)

        if result.succeeded:
            logger.info("[RETRY] success status=%d", result.http_status)
            return result

        logger.error("[RETRY] terminal status=%d: %s", result.http_status, result.error_message)
        raise UpstreamTransportError(
            result.error_message or GENERIC_UPSTREAM_MESSAGE,
            http_status=result.http_status,
        )
