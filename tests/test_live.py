"""
Live scenario against the local Docker host

Needs root, Docker with IPv6 enabled, ip and ethtool. Run with:
    pytest tests/test_live.py --live --image-owner cilium --image-tag latest
"""
import pytest

from l4lb_harness.cli import run_scenario
from l4lb_harness.client.docker_runtime import DockerNodeRuntime
from l4lb_harness.client.host import HostNetwork
from l4lb_harness.settings import HarnessSettings


@pytest.fixture
def live_settings(request, tmp_path) -> HarnessSettings:
    return HarnessSettings(
        image_owner=request.config.getoption("--image-owner"),
        image_tag=request.config.getoption("--image-tag"),
        hold_prompt=False,
        results_dir=tmp_path,
    )


@pytest.mark.integration
@pytest.mark.parametrize("suite", ["compile", "nat46", "nat64", "recorder"])
def test_suite_passes(live_settings, suite):
    summary = run_scenario(
        live_settings,
        DockerNodeRuntime.from_env(),
        HostNetwork(),
        suites=[suite],
        interactive=False,
    )

    failure = summary.failed_phase
    assert summary.success, f"[{failure.index}] {failure.label}: {failure.error}" if failure else ""
    assert summary.teardown_errors == []
