from dataclasses import dataclass      # Simplifies creation of simple data classes
from typing import Tuple, Union

from exceptions import LLMRateLimitError


# -----------------------------------
# Outcomes of a failed attempt
# -----------------------------------
@dataclass(frozen=True)
class Retryable:
    delay: float          # Seconds to wait before the next attempt


@dataclass(frozen=True)
class Exhausted:
    last_error: Exception


@dataclass(frozen=True)
class RetryState:
    attempt: int = 0         # Attempts made so far
    hard_failures: int = 0   # Non-429 failures; only these grow the backoff


@dataclass(frozen=True)
class RetryPolicy:
    """
    Pure retry rules for the LLM call.

    Every attempt counts toward max_attempts. A rate limit waits a fixed
    cooldown and leaves the backoff where it was; any other failure waits
    backoff_seconds times the number of hard failures seen so far.
    """

    max_attempts: int = 3
    rate_limit_delay: float = 10.0
    backoff_seconds: float = 2.0

    def next_step(self, state: RetryState, error: Exception) -> Tuple[Union[Retryable, Exhausted], RetryState]:
        rate_limited = isinstance(error, LLMRateLimitError)
        new_state = RetryState(
            attempt=state.attempt + 1,
            hard_failures=state.hard_failures if rate_limited else state.hard_failures + 1,
        )

        if new_state.attempt >= self.max_attempts:
            return Exhausted(error), new_state
        if rate_limited:
            return Retryable(self.rate_limit_delay), new_state
        return Retryable(self.backoff_seconds * new_state.hard_failures), new_state
