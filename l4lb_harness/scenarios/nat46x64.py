"""Standalone L4LB with the NAT46/64 gateway.

Each translation suite programs a service whose frontend and backend are
in different address families, checks that reinstalling with a different
datapath variant restores it unchanged, and that traffic keeps flowing
through the reinstalls.
"""

from typing import Callable, Dict, List, Optional, Sequence

from l4lb_harness.models import DumpTarget, Endpoint, Phase, Topology
from l4lb_harness.scenarios import phases as p

SERVICE_PORT = 80

# NAT 4->6: IPv4 frontend, IPv6 backend; the alternate service is 6->6
NAT46_VIP = "10.0.0.4"
NAT46_ALT = "fd00:dead:beef:15:bad::1"

# NAT 6->4: IPv6 frontend, IPv4 backend; the alternate service is 4->4
NAT64_VIP = "fd00:cafe::1"
NAT64_ALT = "10.0.0.8"

# Host routes a previous run may have left behind
STALE_ROUTE_PREFIXES = [
    f"{NAT46_VIP}/32",
    f"{NAT46_ALT}/128",
    f"{NAT64_VIP}/128",
    f"{NAT64_ALT}/32",
]

RECORDER_FILTERS_V4 = "recorder_filters_v4.txt"
RECORDER_FILTERS_V6 = "recorder_filters_v6.txt"


def _endpoint(address: str) -> Endpoint:
    return Endpoint(address=address, port=SERVICE_PORT)


def translation_suite(topology: Topology, name: str, vip: str, alt: str) -> List[Phase]:
    """Service 1 on `vip` and service 2 on `alt`, both backed by the target node.

    The backend family is the family of `alt`, so service 1 crosses families
    and service 2 does not.
    """
    frontend = _endpoint(vip)
    alt_frontend = _endpoint(alt)
    backend = _endpoint(str(topology.target_address(alt_frontend.family)))
    before, after = f"{name}-before", f"{name}-after"

    return [
        p.define_service(1, frontend, [backend]),
        p.snapshot(before),
        p.dump(DumpTarget.LB_MAPS),
        # Only the backend family's table may be populated: v6 for NAT 4->6,
        # v4 for NAT 6->4
        p.assert_maglev_sane(1),
        p.add_route(vip, topology.lb_address(frontend.family)),
        p.probe(frontend),
        # Runtime traffic is not checked under XDP: veth + XDP breaks when
        # switching protocols
        p.install(p.XDP_MAGLEV),
        p.snapshot(after),
        p.dump(DumpTarget.LB_MAPS),
        p.assert_snapshots_equal(before, after),
        p.install(p.TC_MAGLEV),
        p.probe(frontend),
        p.install(p.TC_RANDOM),
        p.probe(frontend),
        p.define_service(2, alt_frontend, [backend]),
        p.dump(DumpTarget.SERVICES),
        p.dump(DumpTarget.LB_MAPS),
        p.add_route(alt, topology.lb_address(alt_frontend.family)),
        p.probe(frontend),
        p.wait_ready(alt_frontend),
        p.probe(alt_frontend),
        # Restore of both services with the gateway enabled
        p.install(p.TC_MAGLEV),
        p.probe(frontend),
        p.probe(alt_frontend),
        p.delete_service(1),
        p.delete_service(2),
    ]


def nat46_suite(topology: Topology) -> List[Phase]:
    return translation_suite(topology, "nat46", NAT46_VIP, NAT46_ALT)


def nat64_suite(topology: Topology) -> List[Phase]:
    return translation_suite(topology, "nat64", NAT64_VIP, NAT64_ALT)


def compile_suite(topology: Topology) -> List[Phase]:
    return [
        p.install(p.TC_MAGLEV, "Install Cilium as standalone L4LB & NAT46/64 GW: tc"),
        p.install(p.XDP_MAGLEV, "Install Cilium as standalone L4LB & NAT46/64 GW: XDP"),
        p.install(p.TC_MAGLEV, "Install Cilium as standalone L4LB & NAT46/64 GW: restore"),
    ]


def recorder_suite(topology: Topology) -> List[Phase]:
    """Recorders with one filter per prefix length force capture program recompiles."""
    return [
        p.install(p.XDP_MAGLEV_RECORDER),
        p.define_recorder(1, p.load_filters(RECORDER_FILTERS_V4)),
        p.define_recorder(2, p.load_filters(RECORDER_FILTERS_V6)),
        p.dump(DumpTarget.RECORDERS),
        p.dump(DumpTarget.RECORDER_MAPS),
        p.delete_recorder(1),
        p.delete_recorder(2),
        p.dump(DumpTarget.RECORDERS),
    ]


SUITES: Dict[str, Callable[[Topology], List[Phase]]] = {
    "nat46": nat46_suite,
    "nat64": nat64_suite,
    "compile": compile_suite,
    "recorder": recorder_suite,
}


def build_scenario(topology: Topology, suites: Optional[Sequence[str]] = None) -> List[Phase]:
    """Baseline TC/Maglev install followed by the selected suites, in canonical order.

    Raises:
        KeyError: for an unknown suite name.
    """
    selected = list(SUITES) if not suites else list(suites)
    unknown = [name for name in selected if name not in SUITES]
    if unknown:
        raise KeyError(f"Unknown suite(s): {', '.join(unknown)}")

    scenario = [p.install(p.TC_MAGLEV)]
    for name in SUITES:
        if name in selected:
            scenario.extend(SUITES[name](topology))
    return scenario
