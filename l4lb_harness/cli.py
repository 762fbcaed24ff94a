"""
Harness entry point

Provisions the two-node environment, runs the NAT46/64 scenario against the
selected SUT image and always tears the environment down afterwards.

Usage:
    l4lb-harness [OWNER] [TAG] [--suite NAME ...] [--no-hold] [--verbose]
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from l4lb_harness.client.base import NodeRuntime, SUTClient
from l4lb_harness.client.docker_runtime import DockerNodeRuntime
from l4lb_harness.client.host import HostNetwork
from l4lb_harness.errors import NodeRuntimeError, ProvisioningError
from l4lb_harness.models import ScenarioSummary
from l4lb_harness.orchestrator import PhaseOrchestrator
from l4lb_harness.prober import TrafficProber
from l4lb_harness.results import render_summary, save_summary
from l4lb_harness.scenarios import STALE_ROUTE_PREFIXES, SUITES, build_scenario
from l4lb_harness.session import harness_session
from l4lb_harness.settings import HarnessSettings

logger = logging.getLogger(__name__)

SCENARIO_NAME = "nat46x64"

EXIT_OK = 0
EXIT_PHASE_FAILED = 1
EXIT_PROVISIONING_FAILED = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="l4lb-harness",
        description="Standalone L4LB / NAT46x64 gateway conformance harness",
    )

    parser.add_argument(
        "owner",
        nargs="?",
        default=None,
        help="Registry organisation of the SUT image (default: cilium)"
    )

    parser.add_argument(
        "tag",
        nargs="?",
        default=None,
        help="Tag of the SUT image (default: latest)"
    )

    parser.add_argument(
        "--suite",
        action="append",
        choices=list(SUITES),
        help="Suite to run; repeat to run several (default: all)"
    )

    parser.add_argument(
        "--no-hold",
        action="store_true",
        help="Never offer to hold the environment for debugging"
    )

    parser.add_argument(
        "--results-dir",
        type=Path,
        default=None,
        help="Directory for the scenario summary JSON"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )

    return parser


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def settings_from_args(args: argparse.Namespace) -> HarnessSettings:
    """Environment-backed settings with command-line overrides applied."""
    overrides = {}
    if args.owner:
        overrides["image_owner"] = args.owner
    if args.tag:
        overrides["image_tag"] = args.tag
    if args.no_hold:
        overrides["hold_prompt"] = False
    if args.results_dir is not None:
        overrides["results_dir"] = args.results_dir
    return HarnessSettings(**overrides)


def run_scenario(
    settings: HarnessSettings,
    runtime: NodeRuntime,
    host: HostNetwork,
    suites: Optional[Sequence[str]] = None,
    client: Optional[SUTClient] = None,
    prober: Optional[TrafficProber] = None,
    interactive: Optional[bool] = None,
) -> ScenarioSummary:
    """Run the scenario inside a session and return its summary.

    Raises:
        ProvisioningError: if the environment could not be built.
    """
    with harness_session(
        settings,
        runtime,
        host,
        client=client,
        prober=prober,
        stale_prefixes=STALE_ROUTE_PREFIXES,
        interactive=interactive,
    ) as ctx:
        phases = build_scenario(ctx.topology, suites)
        logger.info(f"Running {len(phases)} phases of scenario {SCENARIO_NAME}")
        summary = PhaseOrchestrator(ctx).run(phases, scenario=SCENARIO_NAME)

    summary.teardown_errors = list(ctx.teardown_errors)
    summary.held = ctx.held
    return summary


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    settings = settings_from_args(args)
    suites = args.suite or list(SUITES)

    print("\n" + "="*60)
    print("STANDALONE L4LB / NAT46x64 CONFORMANCE")
    print("="*60)
    print(f"Image: {settings.sut_image}")
    print(f"Suites: {', '.join(suites)}")
    print(f"Network: {settings.network_name} ({', '.join(settings.network_subnets)})")
    print("="*60 + "\n")

    try:
        runtime = DockerNodeRuntime.from_env()
    except NodeRuntimeError as e:
        logger.error(str(e))
        return EXIT_PROVISIONING_FAILED

    try:
        summary = run_scenario(settings, runtime, HostNetwork(), suites=suites)
    except ProvisioningError as e:
        logger.error(f"Provisioning failed: {e}")
        return EXIT_PROVISIONING_FAILED

    print("\n" + "="*60)
    print("SCENARIO SUMMARY")
    print("="*60)
    print(render_summary(summary))
    print("="*60)

    summary_file = save_summary(summary, settings.results_dir)
    print(f"\nScenario summary saved to: {summary_file}")

    if not summary.success:
        return EXIT_PHASE_FAILED
    print("\nYAY!")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
