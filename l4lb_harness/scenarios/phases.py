"""Phase constructors and the SUT variants scenarios install."""

from typing import Any, Iterable, List, Optional

from l4lb_harness.common.paths import paths
from l4lb_harness.models import (
    Acceleration,
    Algorithm,
    DumpTarget,
    Endpoint,
    Phase,
    PhaseKind,
    RecorderDefinition,
    RecorderFilter,
    Route,
    ServiceDefinition,
    SUTConfiguration,
)

TC_MAGLEV = SUTConfiguration(acceleration=Acceleration.DISABLED, algorithm=Algorithm.MAGLEV)
XDP_MAGLEV = SUTConfiguration(acceleration=Acceleration.NATIVE, algorithm=Algorithm.MAGLEV)
TC_RANDOM = SUTConfiguration(acceleration=Acceleration.DISABLED, algorithm=Algorithm.RANDOM)
XDP_MAGLEV_RECORDER = SUTConfiguration(
    acceleration=Acceleration.NATIVE, algorithm=Algorithm.MAGLEV, recorder=True
)


def install(config: SUTConfiguration, label: Optional[str] = None) -> Phase:
    return Phase(
        label=label or f"Installing Cilium with {config.label}",
        kind=PhaseKind.INSTALL,
        config=config,
    )


def define_service(service_id: int, frontend: Any, backends: Iterable[Any]) -> Phase:
    service = ServiceDefinition(
        id=service_id,
        frontend=Endpoint.model_validate(frontend),
        backends=[Endpoint.model_validate(b) for b in backends],
    )
    return Phase(
        label=f"Define service {service_id}: {service.frontend} -> "
        f"{','.join(str(b) for b in service.backends)}",
        kind=PhaseKind.DEFINE_SERVICE,
        service=service,
    )


def delete_service(service_id: int) -> Phase:
    return Phase(
        label=f"Delete service {service_id}", kind=PhaseKind.DELETE_SERVICE, service_id=service_id
    )


def snapshot(label: str) -> Phase:
    return Phase(label=f"Snapshot service table as '{label}'", kind=PhaseKind.SNAPSHOT,
                 snapshot=label)


def assert_snapshots_equal(label_a: str, label_b: str) -> Phase:
    return Phase(
        label=f"Check restore: '{label_a}' == '{label_b}'",
        kind=PhaseKind.ASSERT_SNAPSHOT_EQUAL,
        snapshot=label_a,
        compare_to=label_b,
    )


def assert_maglev_sane(service_id: int) -> Phase:
    return Phase(
        label=f"Check Maglev table of service {service_id}",
        kind=PhaseKind.ASSERT_INVARIANT,
        service_id=service_id,
    )


def probe(target: Any, attempts: Optional[int] = None) -> Phase:
    target = Endpoint.model_validate(target)
    return Phase(label=f"Issue requests to {target}", kind=PhaseKind.PROBE, target=target,
                 attempts=attempts)


def wait_ready(target: Any) -> Phase:
    target = Endpoint.model_validate(target)
    return Phase(label=f"Wait for {target} to come up", kind=PhaseKind.WAIT_READY, target=target)


def add_route(address: Any, via: Any) -> Phase:
    route = Route.to_host(address, via)
    return Phase(label=f"Route {route}", kind=PhaseKind.ADD_ROUTE, route=route)


def define_recorder(recorder_id: int, filters: List[RecorderFilter],
                    capture_length: int = 100) -> Phase:
    recorder = RecorderDefinition(id=recorder_id, capture_length=capture_length, filters=filters)
    return Phase(
        label=f"Define recorder {recorder_id} with {len(filters)} filters",
        kind=PhaseKind.DEFINE_RECORDER,
        recorder=recorder,
    )


def delete_recorder(recorder_id: int) -> Phase:
    return Phase(
        label=f"Delete recorder {recorder_id}",
        kind=PhaseKind.DELETE_RECORDER,
        recorder_id=recorder_id,
    )


def dump(target: DumpTarget) -> Phase:
    return Phase(label=f"Dump {target.value}", kind=PhaseKind.DUMP, dump=target)


def load_filters(name: str) -> List[RecorderFilter]:
    """Read a filter fixture: one `SRC SPORT DST DPORT PROTO` rule per line."""
    filters = []
    with open(paths.fixture(name)) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                filters.append(RecorderFilter.model_validate(line))
    return filters
