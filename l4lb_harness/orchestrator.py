"""Sequential execution of scenario phases."""

import logging
import time
from typing import Callable, Dict, Sequence

from l4lb_harness.context import HarnessContext
from l4lb_harness.errors import HarnessError, ScenarioAssertionError
from l4lb_harness.invariants import InvariantChecker
from l4lb_harness.lifecycle import SUTLifecycleManager
from l4lb_harness.models import (
    DumpTarget,
    Phase,
    PhaseKind,
    PhaseResult,
    PhaseStatus,
    ScenarioSummary,
)
from l4lb_harness.recorder import RecorderFilterManager

logger = logging.getLogger(__name__)

PhaseHandler = Callable[[HarnessContext, Phase], None]


class PhaseOrchestrator:
    """Runs phases strictly in order, stopping at the first failure.

    A phase's side effects are complete before the next phase starts. Any
    HarnessError raised by a handler fails the phase and marks every
    remaining phase as skipped; other exceptions are bugs and propagate.
    """

    def __init__(self, ctx: HarnessContext):
        self.ctx = ctx
        self.lifecycle = SUTLifecycleManager(ctx.client, ctx.settings)
        self.invariants = InvariantChecker(ctx.client)
        self.recorders = RecorderFilterManager(ctx.client)
        self._handlers: Dict[PhaseKind, PhaseHandler] = {
            PhaseKind.INSTALL: self._install,
            PhaseKind.DEFINE_SERVICE: self._define_service,
            PhaseKind.DELETE_SERVICE: self._delete_service,
            PhaseKind.SNAPSHOT: self._snapshot,
            PhaseKind.ASSERT_SNAPSHOT_EQUAL: self._assert_snapshot_equal,
            PhaseKind.ASSERT_INVARIANT: self._assert_invariant,
            PhaseKind.PROBE: self._probe,
            PhaseKind.WAIT_READY: self._wait_ready,
            PhaseKind.DEFINE_RECORDER: self._define_recorder,
            PhaseKind.DELETE_RECORDER: self._delete_recorder,
            PhaseKind.ADD_ROUTE: self._add_route,
            PhaseKind.DUMP: self._dump,
        }

    def run(self, phases: Sequence[Phase], scenario: str = "scenario") -> ScenarioSummary:
        summary = ScenarioSummary(scenario=scenario, image=self.ctx.settings.sut_image)
        started = time.monotonic()
        total = len(phases)
        aborted = False

        for index, phase in enumerate(phases, start=1):
            if aborted:
                summary.phases.append(
                    PhaseResult(index=index, label=phase.label, kind=phase.kind,
                                status=PhaseStatus.SKIPPED)
                )
                continue

            logger.info(f"[{index}/{total}] {phase.label}")
            phase_started = time.monotonic()
            try:
                self._handlers[phase.kind](self.ctx, phase)
            except HarnessError as e:
                aborted = True
                logger.error(f"[{index}/{total}] {phase.label} FAILED: {e}")
                summary.phases.append(
                    PhaseResult(index=index, label=phase.label, kind=phase.kind,
                                status=PhaseStatus.FAILED,
                                duration_seconds=time.monotonic() - phase_started,
                                error=str(e))
                )
            else:
                summary.phases.append(
                    PhaseResult(index=index, label=phase.label, kind=phase.kind,
                                status=PhaseStatus.PASSED,
                                duration_seconds=time.monotonic() - phase_started)
                )

        summary.duration_seconds = time.monotonic() - started
        return summary

    # Handlers

    def _install(self, ctx: HarnessContext, phase: Phase) -> None:
        ctx.current_config = None
        self.lifecycle.install(phase.config, phase.extra_args)
        ctx.current_config = phase.config

    def _define_service(self, ctx: HarnessContext, phase: Phase) -> None:
        service = phase.service
        if service.id in ctx.services:
            logger.info(f"Replacing live definition of service {service.id}")
        ctx.client.service_update(service)
        ctx.services[service.id] = service
        logger.info(
            f"Service {service.id}: {service.frontend} -> "
            f"{', '.join(str(b) for b in service.backends)}"
        )

    def _delete_service(self, ctx: HarnessContext, phase: Phase) -> None:
        ctx.client.service_delete(phase.service_id)
        ctx.services.pop(phase.service_id, None)
        if phase.service_id in ctx.client.service_ids():
            raise ScenarioAssertionError(f"Service {phase.service_id} still listed after delete")

    def _snapshot(self, ctx: HarnessContext, phase: Phase) -> None:
        ctx.snapshots.capture(phase.snapshot)

    def _assert_snapshot_equal(self, ctx: HarnessContext, phase: Phase) -> None:
        ctx.snapshots.assert_equal(phase.snapshot, phase.compare_to)

    def _assert_invariant(self, ctx: HarnessContext, phase: Phase) -> None:
        service = ctx.services.get(phase.service_id)
        if service is None:
            raise HarnessError(f"Service {phase.service_id} is not defined in this scenario")
        self.invariants.assert_maglev_sane(service.id, service.backends)

    def _probe(self, ctx: HarnessContext, phase: Phase) -> None:
        ctx.prober.probe(phase.target, attempts=phase.attempts or ctx.settings.probe_attempts)

    def _wait_ready(self, ctx: HarnessContext, phase: Phase) -> None:
        result = ctx.prober.wait_ready(
            phase.target,
            max_attempts=phase.attempts or ctx.settings.ready_max_attempts,
            interval=phase.interval or ctx.settings.ready_interval,
        )
        if not result.ready:
            raise ScenarioAssertionError(
                f"{phase.target} not reachable after {result.attempts} attempt(s)"
            )

    def _define_recorder(self, ctx: HarnessContext, phase: Phase) -> None:
        self.recorders.define_recorder(phase.recorder)
        ctx.recorders[phase.recorder.id] = phase.recorder

    def _delete_recorder(self, ctx: HarnessContext, phase: Phase) -> None:
        self.recorders.delete_recorder(phase.recorder_id)
        ctx.recorders.pop(phase.recorder_id, None)

    def _add_route(self, ctx: HarnessContext, phase: Phase) -> None:
        ctx.host.add_route(phase.route)
        ctx.routes.append(phase.route)

    def _dump(self, ctx: HarnessContext, phase: Phase) -> None:
        listings: Dict[DumpTarget, Callable[[], str]] = {
            DumpTarget.SERVICES: ctx.client.service_list,
            DumpTarget.LB_MAPS: ctx.client.lb_map_list,
            DumpTarget.MAGLEV: ctx.client.hash_table_dump,
            DumpTarget.RECORDERS: ctx.client.recorder_list,
            DumpTarget.RECORDER_MAPS: ctx.client.recorder_map_list,
        }
        logger.info(f"{phase.dump.value}:\n{listings[phase.dump]()}")
