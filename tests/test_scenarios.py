"""Scenario definition tests"""
import pytest

from l4lb_harness.models import Acceleration, Algorithm, PhaseKind
from l4lb_harness.scenarios import STALE_ROUTE_PREFIXES, SUITES, build_scenario
from l4lb_harness.scenarios.nat46x64 import nat46_suite, nat64_suite, recorder_suite


def kinds(phases):
    return [phase.kind for phase in phases]


@pytest.mark.unit
class TestBuildScenario:

    def test_baseline_install_first(self, topology):
        phases = build_scenario(topology)
        first = phases[0]
        assert first.kind == PhaseKind.INSTALL
        assert first.config.acceleration == Acceleration.DISABLED
        assert first.config.algorithm == Algorithm.MAGLEV

    def test_suites_run_in_canonical_order(self, topology):
        selected = build_scenario(topology, ["recorder", "compile"])
        expected = build_scenario(topology, ["compile"]) + build_scenario(topology, ["recorder"])[1:]
        assert [p.label for p in selected] == [p.label for p in expected]

    def test_all_suites_by_default(self, topology):
        assert len(build_scenario(topology)) == 1 + sum(len(s(topology)) for s in SUITES.values())

    def test_unknown_suite(self, topology):
        with pytest.raises(KeyError, match="bogus"):
            build_scenario(topology, ["nat46", "bogus"])

    def test_stale_routes_cover_every_frontend(self, topology):
        routes = {
            str(phase.route.prefix)
            for phase in build_scenario(topology)
            if phase.kind == PhaseKind.ADD_ROUTE
        }
        assert routes == set(STALE_ROUTE_PREFIXES)


@pytest.mark.unit
class TestTranslationSuites:

    def test_nat46_service_uses_ipv6_backend(self, topology):
        phases = nat46_suite(topology)
        service = phases[0].service
        assert service.id == 1
        assert str(service.frontend) == "10.0.0.4:80"
        assert [str(b) for b in service.backends] == ["[2001:db8:1::3]:80"]

    def test_nat64_service_uses_ipv4_backend(self, topology):
        phases = nat64_suite(topology)
        service = phases[0].service
        assert str(service.frontend) == "[fd00:cafe::1]:80"
        assert [str(b) for b in service.backends] == ["172.12.42.3:80"]

    def test_routes_point_at_lb_node(self, topology):
        routes = [p.route for p in nat46_suite(topology) if p.kind == PhaseKind.ADD_ROUTE]
        assert [str(r) for r in routes] == [
            "10.0.0.4/32 via 172.12.42.2",
            "fd00:dead:beef:15:bad::1/128 via 2001:db8:1::2",
        ]

    def test_restore_check_follows_xdp_reinstall(self, topology):
        phases = nat46_suite(topology)
        xdp = next(i for i, p in enumerate(phases)
                   if p.kind == PhaseKind.INSTALL and p.config.acceleration == Acceleration.NATIVE)
        compare = next(i for i, p in enumerate(phases) if p.kind == PhaseKind.ASSERT_SNAPSHOT_EQUAL)
        assert xdp < compare
        assert phases[compare].snapshot == "nat46-before"
        assert phases[compare].compare_to == "nat46-after"

    def test_new_service_waits_before_probing(self, topology):
        phases = nat64_suite(topology)
        wait = next(i for i, p in enumerate(phases) if p.kind == PhaseKind.WAIT_READY)
        assert str(phases[wait].target) == "10.0.0.8:80"
        assert phases[wait + 1].kind == PhaseKind.PROBE
        assert phases[wait + 1].target == phases[wait].target

    def test_suite_ends_with_service_deletion(self, topology):
        tail = nat46_suite(topology)[-2:]
        assert kinds(tail) == [PhaseKind.DELETE_SERVICE] * 2
        assert [p.service_id for p in tail] == [1, 2]


@pytest.mark.unit
def test_recorder_suite_shape(topology):
    phases = recorder_suite(topology)
    assert phases[0].config.recorder is True
    recorders = [p.recorder for p in phases if p.kind == PhaseKind.DEFINE_RECORDER]
    assert [(r.id, r.capture_length, len(r.filters)) for r in recorders] == [(1, 100, 34), (2, 100, 34)]
    assert [p.recorder_id for p in phases if p.kind == PhaseKind.DELETE_RECORDER] == [1, 2]
