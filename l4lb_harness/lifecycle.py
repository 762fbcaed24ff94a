"""SUT install / reinstall lifecycle."""

import logging
import time
from typing import List, Optional, Sequence

from l4lb_harness.client.base import SUTClient
from l4lb_harness.config import BASE_AGENT_OPTIONS
from l4lb_harness.errors import InstallError
from l4lb_harness.models import SUTConfiguration
from l4lb_harness.polling import PollOutcome, poll
from l4lb_harness.settings import HarnessSettings

logger = logging.getLogger(__name__)


class SUTLifecycleManager:
    """Replaces the running SUT with a freshly configured instance.

    There is no hot-patch path: every install removes the previous
    instance. Services survive only through the SUT's own restore from
    pinned datapath state.
    """

    def __init__(self, client: SUTClient, settings: HarnessSettings):
        self._client = client
        self._settings = settings
        self.current: Optional[SUTConfiguration] = None

    def build_options(
        self, config: SUTConfiguration, extra_args: Sequence[str] = ()
    ) -> List[str]:
        return [*BASE_AGENT_OPTIONS, *config.to_args(), *extra_args]

    def install(self, config: SUTConfiguration, extra_args: Sequence[str] = ()) -> int:
        """Install the SUT with `config` and wait until it is healthy.

        Returns:
            Number of status polls it took to become healthy.

        Raises:
            InstallError: if the instance cannot be started, the status
                query itself breaks, or the poll budget is exhausted.
        """
        logger.info(f"Installing SUT with {config.label}")
        self.current = None

        self._client.remove()
        self._client.install(self.build_options(config, extra_args))

        max_attempts = self._settings.install_max_attempts or None
        result = poll(
            self._client.status,
            interval=self._settings.status_interval,
            max_attempts=max_attempts,
            description="SUT status",
        )
        if result.outcome == PollOutcome.ERRED:
            raise InstallError(f"SUT status query failed: {result.error}") from result.error
        if result.outcome == PollOutcome.NOT_READY:
            raise InstallError(
                f"SUT not healthy after {result.attempts} status checks "
                f"({self._settings.status_interval}s apart) with {config.label}"
            )

        # Some subsystems finish initializing after status turns healthy
        time.sleep(self._settings.settle_delay)

        self.current = config
        logger.info(f"SUT healthy after {result.attempts} status check(s)")
        return result.attempts
