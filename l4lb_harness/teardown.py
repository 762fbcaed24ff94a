"""Best-effort, fault-isolated reclamation of everything a scenario created."""

import logging
from typing import List, Sequence

from l4lb_harness.context import HarnessContext
from l4lb_harness.errors import CleanupError
from l4lb_harness.provisioner import EnvironmentProvisioner, TeardownAction

logger = logging.getLogger(__name__)


class TeardownController:
    """Runs independent cleanup steps; a failing step never stops the others.

    run() executes the steps once. Later calls return the errors collected
    by the first call without touching anything. `stale_prefixes` are
    routes left behind by an earlier aborted run.
    """

    def __init__(self, ctx: HarnessContext, stale_prefixes: Sequence[str] = ()):
        self._ctx = ctx
        self._stale_prefixes = list(stale_prefixes)
        self._completed = False
        self.errors: List[CleanupError] = []

    @property
    def completed(self) -> bool:
        return self._completed

    def actions(self) -> List[TeardownAction]:
        ctx = self._ctx
        actions: List[TeardownAction] = []

        for service_id in sorted(ctx.services):
            actions.append(
                (f"delete service {service_id}",
                 lambda sid=service_id: ctx.client.service_delete(sid))
            )

        prefixes = [str(route.prefix) for route in reversed(ctx.routes)]
        prefixes.extend(p for p in self._stale_prefixes if p not in prefixes)
        for prefix in prefixes:
            actions.append(
                (f"delete route {prefix}", lambda p=prefix: ctx.host.delete_route(p))
            )

        provisioner = EnvironmentProvisioner(ctx.runtime, ctx.host, ctx.settings)
        actions.extend(provisioner.teardown_actions())
        return actions

    def run(self, quiet: bool = False) -> List[CleanupError]:
        """Execute every action, collecting failures instead of raising.

        Args:
            quiet: Log failures at debug level (used when pre-cleaning an
                environment that may not exist).
        """
        if self._completed:
            logger.debug("Teardown already ran; skipping")
            return self.errors

        self._completed = True
        for step, action in self.actions():
            try:
                action()
                logger.debug(f"Teardown step ok: {step}")
            except Exception as e:
                error = CleanupError(step, e)
                self.errors.append(error)
                if quiet:
                    logger.debug(f"Ignoring cleanup failure: {error}")
                else:
                    logger.warning(f"Cleanup failed: {error}")

        self._ctx.services.clear()
        self._ctx.routes.clear()
        if not quiet:
            logger.info(f"Teardown finished with {len(self.errors)} error(s)")
        return self.errors
