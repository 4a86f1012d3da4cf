from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 3
    base_delay_s: float = 0.05
    max_delay_s: float = 0.25

    def __post_init__(self):
        if self.attempts < 1:
            raise ValueError("attempts must be at least 1")

def with_retries(
    fn: Callable[[], T],
    policy: RetryPolicy,
    retry_on: tuple[type[BaseException], ...] = (TimeoutError,),
) -> T:
    """
    Call fn until it succeeds or the policy runs out of attempts, backing off
    exponentially up to max_delay_s. Only exceptions in retry_on are retried.
    The interfaces never retry on their own; this is for their callers.
    """
    last_exc: BaseException | None = None
    delay = policy.base_delay_s
    for attempt in range(1, policy.attempts + 1):
        try:
            return fn()
        except retry_on as e:
            last_exc = e
            logger.debug("attempt %d/%d failed: %s", attempt, policy.attempts, e)
            if attempt < policy.attempts:
                time.sleep(delay)
                delay = min(policy.max_delay_s, delay * 2)
    assert last_exc is not None
    raise last_exc
