"""Pytest configuration and shared fixtures for the L4LB harness tests."""

import time
from pathlib import Path

import pytest

from l4lb_harness.context import HarnessContext
from l4lb_harness.models import Topology
from l4lb_harness.settings import HarnessSettings
from l4lb_harness.snapshot import SnapshotStore
from tests.fakes import (
    LB_HOST_LINK,
    LB_IPV4,
    LB_IPV6,
    TARGET_IPV4,
    TARGET_IPV6,
    FakeHost,
    FakeNodeRuntime,
    FakeProber,
    FakeSUTClient,
)


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add custom command-line options."""
    parser.addoption(
        "--live",
        action="store_true",
        default=False,
        help="Run integration tests against the local Docker host (needs root, ip, ethtool)",
    )
    parser.addoption(
        "--image-owner",
        action="store",
        default="cilium",
        help="Registry organisation of the SUT image for live runs",
    )
    parser.addoption(
        "--image-tag",
        action="store",
        default="latest",
        help="Tag of the SUT image for live runs",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Tests that run entirely against in-memory fakes")
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring Docker, root and host networking"
    )


def pytest_collection_modifyitems(config: pytest.Config, items) -> None:
    """Skip integration tests unless --live is given."""
    if config.getoption("--live"):
        return
    skip_live = pytest.mark.skip(reason="needs --live")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_live)


@pytest.fixture(autouse=True)
def patch_time_sleep(request: pytest.FixtureRequest, monkeypatch):
    """Make polling loops instant when running against fakes."""
    if not request.config.getoption("--live"):
        monkeypatch.setattr(time, "sleep", lambda x: None)


@pytest.fixture
def settings(tmp_path: Path) -> HarnessSettings:
    """Default settings with a small install budget and no .env file."""
    return HarnessSettings(
        _env_file=None,
        hold_prompt=False,
        install_max_attempts=5,
        node_ready_max_attempts=5,
        results_dir=tmp_path / "results",
    )


@pytest.fixture
def sut_client() -> FakeSUTClient:
    return FakeSUTClient()


@pytest.fixture
def runtime() -> FakeNodeRuntime:
    return FakeNodeRuntime()


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def prober(sut_client: FakeSUTClient, host: FakeHost) -> FakeProber:
    return FakeProber(sut_client, host)


@pytest.fixture
def topology() -> Topology:
    return Topology(
        network="cilium-l4lb",
        lb_node="lb-node",
        target_node="nginx",
        lb_ipv4=LB_IPV4,
        lb_ipv6=LB_IPV6,
        target_ipv4=TARGET_IPV4,
        target_ipv6=TARGET_IPV6,
        lb_host_link=LB_HOST_LINK,
    )


@pytest.fixture
def ctx(settings, runtime, host, sut_client, prober, topology) -> HarnessContext:
    """Context of a provisioned environment with the SUT not yet installed."""
    runtime.create_network(settings.network_name, settings.network_subnets)
    runtime.create_node(settings.lb_node_name, settings.lb_node_image, settings.network_name)
    runtime.create_node(settings.target_node_name, settings.target_node_image, settings.network_name)
    return HarnessContext(
        settings=settings,
        runtime=runtime,
        host=host,
        client=sut_client,
        prober=prober,
        snapshots=SnapshotStore(sut_client),
        topology=topology,
    )
