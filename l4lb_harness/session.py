"""Scoped acquisition of the test environment with guaranteed release."""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional, Sequence

from l4lb_harness.client.base import NodeRuntime, SUTClient
from l4lb_harness.client.cilium import CiliumClient
from l4lb_harness.client.host import HostNetwork
from l4lb_harness.context import HarnessContext
from l4lb_harness.prober import TrafficProber
from l4lb_harness.provisioner import EnvironmentProvisioner
from l4lb_harness.settings import HarnessSettings
from l4lb_harness.snapshot import SnapshotStore
from l4lb_harness.teardown import TeardownController

logger = logging.getLogger(__name__)

HOLD_PROMPT = "Hold the environment for debugging? [y/n]"


def _is_interactive() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def ask_hold(settings: HarnessSettings, interactive: Optional[bool] = None) -> bool:
    """Ask the operator whether to keep the environment instead of tearing it down."""
    if not settings.hold_prompt:
        return False
    if interactive is None:
        interactive = _is_interactive()
    if not interactive:
        return False
    try:
        answer = input(HOLD_PROMPT + " ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


@contextmanager
def harness_session(
    settings: HarnessSettings,
    runtime: NodeRuntime,
    host: HostNetwork,
    client: Optional[SUTClient] = None,
    prober: Optional[TrafficProber] = None,
    stale_prefixes: Sequence[str] = (),
    interactive: Optional[bool] = None,
) -> Iterator[HarnessContext]:
    """Provision the environment, yield its context, always finalize.

    Leftovers of an earlier aborted run (nodes, network, `stale_prefixes` routes)
    are removed quietly first. The finalizer runs exactly once on normal
    exit, failure or interruption, unless the operator chooses to hold the
    environment.

    Raises:
        ProvisioningError: if the environment cannot be built; the
            finalizer has already run when it propagates.
    """
    if client is None:
        client = CiliumClient(runtime, settings)
    if prober is None:
        prober = TrafficProber(timeout=settings.probe_timeout)

    ctx = HarnessContext(
        settings=settings,
        runtime=runtime,
        host=host,
        client=client,
        prober=prober,
        snapshots=SnapshotStore(client),
    )

    logger.info("Removing leftovers of previous runs")
    TeardownController(ctx, stale_prefixes=stale_prefixes).run(quiet=True)

    finalizer = TeardownController(ctx)
    try:
        ctx.topology = EnvironmentProvisioner(runtime, host, settings).provision()
        yield ctx
    finally:
        if ask_hold(settings, interactive):
            ctx.held = True
            logger.warning(
                f"Holding environment: nodes {settings.lb_node_name}, "
                f"{settings.target_node_name} and network {settings.network_name} left running"
            )
        else:
            ctx.teardown_errors = [str(e) for e in finalizer.run()]
