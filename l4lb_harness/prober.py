"""Traffic probing against load-balancer frontends."""

import logging

import requests

from l4lb_harness.errors import ProbeFailedError
from l4lb_harness.models import Endpoint
from l4lb_harness.polling import PollResult, poll

logger = logging.getLogger(__name__)


class TrafficProber:
    """Issues HTTP requests from the host towards a frontend.

    Only connectivity matters: any HTTP response counts as success, the
    body and status code are ignored.
    """

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout

    def http_probe(self, target: Endpoint) -> bool:
        try:
            response = requests.get(target.url, timeout=self.timeout)
            response.close()
            return True
        except requests.RequestException as e:
            logger.debug(f"Request to {target} failed: {e}")
            return False

    def probe(self, target: Endpoint, attempts: int = 10) -> None:
        """Every one of `attempts` requests must succeed.

        Raises:
            ProbeFailedError: on the first failed attempt.
        """
        for attempt in range(1, attempts + 1):
            if not self.http_probe(target):
                logger.error(f"Failed {attempt}")
                raise ProbeFailedError(str(target), attempt, attempts)
        logger.info(f"{attempts}/{attempts} requests to {target} succeeded")

    def wait_ready(
        self, target: Endpoint, max_attempts: int = 10, interval: float = 1.0
    ) -> PollResult:
        """Retry until the first successful request or the budget runs out."""
        result = poll(
            lambda: self.http_probe(target),
            interval=interval,
            max_attempts=max_attempts,
            description=f"service {target}",
        )
        if result.ready:
            logger.info(f"{target} reachable after {result.attempts} attempt(s)")
        return result
