"""Bounded fixed-interval polling.

There is no push notification for "SUT healthy", "node runtime up" or
"service programmed"; readiness is inferred by retrying a check with a
sleep in between.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PollOutcome(str, Enum):
    """Tri-state result of a poll."""

    READY = "ready"
    NOT_READY = "not-ready"
    ERRED = "erred"


@dataclass
class PollResult:
    """What a poll observed and how many checks it took."""

    outcome: PollOutcome
    attempts: int
    error: Optional[Exception] = None

    @property
    def ready(self) -> bool:
        return self.outcome == PollOutcome.READY


def poll(
    check: Callable[[], bool],
    interval: float,
    max_attempts: Optional[int] = None,
    description: str = "condition",
) -> PollResult:
    """Call `check` until it returns True.

    Args:
        check: Zero-argument callable; True means ready. An exception means
            the thing being polled is broken and ends the poll as ERRED.
        interval: Seconds to sleep between attempts.
        max_attempts: Attempt budget. None waits forever.
        description: What is being waited for, used in debug logs.

    Returns:
        PollResult with the outcome and the number of checks made.
    """
    attempt = 0
    while max_attempts is None or attempt < max_attempts:
        attempt += 1
        try:
            if check():
                logger.debug(f"{description} ready after {attempt} attempt(s)")
                return PollResult(PollOutcome.READY, attempt)
        except Exception as e:
            logger.debug(f"{description} check raised on attempt {attempt}: {e}")
            return PollResult(PollOutcome.ERRED, attempt, e)

        if max_attempts is None or attempt < max_attempts:
            time.sleep(interval)

    logger.debug(f"{description} not ready after {attempt} attempt(s)")
    return PollResult(PollOutcome.NOT_READY, attempt)
