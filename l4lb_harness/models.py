"""Pydantic models for type-safe configuration and data structures."""

from datetime import datetime, timezone
from enum import Enum
from ipaddress import IPv4Address, IPv6Address, ip_address
from typing import Any, Dict, FrozenSet, List, Optional, Set, Tuple

from pydantic import (
    BaseModel,
    Field,
    IPvAnyAddress,
    IPvAnyInterface,
    IPvAnyNetwork,
    model_validator,
)


class AddressFamily(str, Enum):
    """IP address families the data plane keeps separate tables for."""

    V4 = "v4"
    V6 = "v6"

    @classmethod
    def of(cls, address: Any) -> "AddressFamily":
        """Family of an address, interface or network object."""
        return cls.V4 if address.version == 4 else cls.V6


class Acceleration(str, Enum):
    """Where the SUT attaches its packet processing."""

    NATIVE = "native"  # driver-level XDP hook
    BEST_EFFORT = "best-effort"
    DISABLED = "disabled"  # tc hook


class Algorithm(str, Enum):
    """Backend selection algorithm."""

    MAGLEV = "maglev"
    RANDOM = "random"


class ServiceFlag(str, Enum):
    """Service type flags accepted by the SUT's service update command."""

    K8S_LOAD_BALANCER = "k8s-load-balancer"
    K8S_CLUSTER_INTERNAL = "k8s-cluster-internal"
    K8S_EXTERNAL = "k8s-external"
    K8S_NODE_PORT = "k8s-node-port"
    K8S_HOST_PORT = "k8s-host-port"


class Protocol(str, Enum):
    """L4 protocol matched by a recorder filter."""

    TCP = "TCP"
    UDP = "UDP"
    ANY = "ANY"


def split_host_port(text: str) -> Dict[str, Any]:
    """Split `a.b.c.d:port` or `[v6]:port` into model fields."""
    text = text.strip()
    if text.startswith("["):
        host, sep, port = text[1:].partition("]:")
    else:
        host, sep, port = text.rpartition(":")
    if not sep or not host:
        raise ValueError(f"expected address:port, got {text!r}")
    return {"address": host, "port": port}


# ============================================================================
# Addressing
# ============================================================================


class Endpoint(BaseModel):
    """An address:port pair, used for frontends, backends and probe targets."""

    address: IPvAnyAddress = Field(description="IPv4 or IPv6 address")
    port: int = Field(ge=0, le=65535, description="L4 port")

    @model_validator(mode="before")
    @classmethod
    def parse_text(cls, value: Any) -> Any:
        """Accept the textual `addr:port` / `[addr]:port` form."""
        if isinstance(value, str):
            return split_host_port(value)
        return value

    @property
    def family(self) -> AddressFamily:
        return AddressFamily.of(self.address)

    @property
    def url(self) -> str:
        return f"http://{self}"

    def __str__(self) -> str:
        if self.address.version == 6:
            return f"[{self.address}]:{self.port}"
        return f"{self.address}:{self.port}"

    class Config:
        """Pydantic configuration."""

        frozen = True


class Route(BaseModel):
    """Host route steering probe traffic for a frontend towards the LB node."""

    prefix: IPvAnyNetwork = Field(description="Destination prefix")
    via: IPvAnyAddress = Field(description="Next hop")

    @model_validator(mode="after")
    def check_family(self) -> "Route":
        if self.prefix.version != self.via.version:
            raise ValueError(f"route {self.prefix} via {self.via} mixes address families")
        return self

    @classmethod
    def to_host(cls, address: Any, via: Any) -> "Route":
        """Route for a single host address (/32 or /128)."""
        address = ip_address(str(address))
        return cls(prefix=f"{address}/{address.max_prefixlen}", via=str(via))

    @property
    def family(self) -> AddressFamily:
        return AddressFamily.of(self.prefix)

    def __str__(self) -> str:
        return f"{self.prefix} via {self.via}"

    class Config:
        """Pydantic configuration."""

        frozen = True


class Topology(BaseModel):
    """Addresses and names resolved after the environment is provisioned."""

    network: str = Field(description="Isolated network name")
    lb_node: str = Field(description="Node hosting the SUT")
    target_node: str = Field(description="Node serving the workload")
    lb_ipv4: IPv4Address = Field(description="LB node IPv4 address")
    lb_ipv6: IPv6Address = Field(description="LB node IPv6 address")
    target_ipv4: IPv4Address = Field(description="Target node IPv4 address")
    target_ipv6: IPv6Address = Field(description="Target node IPv6 address")
    lb_host_link: Optional[str] = Field(
        default=None, description="Host-side link of the LB node with offload disabled"
    )

    def lb_address(self, family: AddressFamily) -> Any:
        return self.lb_ipv4 if family == AddressFamily.V4 else self.lb_ipv6

    def target_address(self, family: AddressFamily) -> Any:
        return self.target_ipv4 if family == AddressFamily.V4 else self.target_ipv6


# ============================================================================
# SUT state
# ============================================================================


class SUTConfiguration(BaseModel):
    """One acceleration/algorithm variant of the SUT. Changing it means reinstalling."""

    acceleration: Acceleration = Field(
        default=Acceleration.DISABLED, description="Datapath attach mode"
    )
    algorithm: Algorithm = Field(default=Algorithm.MAGLEV, description="Backend selection")
    nat46x64_gateway: bool = Field(default=True, description="Enable the NAT46/64 gateway")
    recorder: bool = Field(default=False, description="Enable the PCAP recorder")
    extra_options: Dict[str, str] = Field(
        default_factory=dict, description="Additional agent options (name -> value)"
    )

    @property
    def mode(self) -> str:
        return "TC" if self.acceleration == Acceleration.DISABLED else "XDP"

    @property
    def label(self) -> str:
        """Human-readable description used in logs."""
        recorder = "Enabled" if self.recorder else "Disabled"
        return (
            f"Mode:{self.mode:<3}  Algorithm:{self.algorithm.value.capitalize()}  "
            f"Recorder:{recorder}"
        )

    def to_args(self) -> List[str]:
        """Render as agent command-line options."""
        args = [
            f"--bpf-lb-acceleration={self.acceleration.value}",
            f"--bpf-lb-algorithm={self.algorithm.value}",
            f"--enable-nat46x64-gateway={str(self.nat46x64_gateway).lower()}",
        ]
        if self.recorder:
            args.append("--enable-recorder=true")
        args.extend(f"--{name}={value}" for name, value in sorted(self.extra_options.items()))
        return args

    class Config:
        """Pydantic configuration."""

        frozen = True


class ServiceDefinition(BaseModel):
    """A frontend and the backends the SUT balances it across."""

    id: int = Field(gt=0, le=65535, description="Service id, unique among live services")
    frontend: Endpoint = Field(description="Virtual address:port")
    backends: List[Endpoint] = Field(min_length=1, description="Ordered backend list")
    flags: FrozenSet[ServiceFlag] = Field(
        default_factory=lambda: frozenset({ServiceFlag.K8S_LOAD_BALANCER}),
        description="Service type flags",
    )

    def backend_families(self) -> Set[AddressFamily]:
        return {backend.family for backend in self.backends}

    @property
    def translates_family(self) -> bool:
        """Whether the service crosses address families (NAT46 or NAT64)."""
        return any(family != self.frontend.family for family in self.backend_families())


class HashTableView(BaseModel):
    """Per-family content of the consistent-hash table for one service."""

    v4: str = Field(default="", description="Raw IPv4 table content")
    v6: str = Field(default="", description="Raw IPv6 table content")

    def for_family(self, family: AddressFamily) -> str:
        return self.v4 if family == AddressFamily.V4 else self.v6

    def populated(self, family: AddressFamily) -> bool:
        return bool(self.for_family(family).strip())


class RecorderFilter(BaseModel):
    """One 5-tuple capture rule: `SRC/len SPORT DST/len DPORT PROTO`."""

    src_prefix: IPvAnyInterface = Field(description="Source prefix (host bits allowed)")
    src_port: int = Field(default=0, ge=0, le=65535, description="Source port, 0 = any")
    dst_prefix: IPvAnyInterface = Field(description="Destination prefix (host bits allowed)")
    dst_port: int = Field(default=0, ge=0, le=65535, description="Destination port, 0 = any")
    protocol: Protocol = Field(default=Protocol.ANY, description="L4 protocol")

    @model_validator(mode="before")
    @classmethod
    def parse_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            parts = value.split()
            if len(parts) != 5:
                raise ValueError(f"expected 5 fields in recorder filter, got {value!r}")
            src, sport, dst, dport, proto = parts
            return {
                "src_prefix": src,
                "src_port": sport,
                "dst_prefix": dst,
                "dst_port": dport,
                "protocol": proto.upper(),
            }
        return value

    @model_validator(mode="after")
    def check_family(self) -> "RecorderFilter":
        if self.src_prefix.version != self.dst_prefix.version:
            raise ValueError(
                f"filter mixes address families: {self.src_prefix} -> {self.dst_prefix}"
            )
        return self

    @property
    def family(self) -> AddressFamily:
        return AddressFamily.of(self.src_prefix)

    def __str__(self) -> str:
        return (
            f"{self.src_prefix} {self.src_port} "
            f"{self.dst_prefix} {self.dst_port} {self.protocol.value}"
        )

    class Config:
        """Pydantic configuration."""

        frozen = True


class RecorderDefinition(BaseModel):
    """A capture definition with an arbitrary-length ordered filter list."""

    id: int = Field(gt=0, description="Capture id")
    capture_length: int = Field(default=100, ge=0, description="Max bytes captured per packet")
    filters: List[RecorderFilter] = Field(min_length=1, description="Ordered filter list")

    def filters_argument(self) -> str:
        return ",".join(str(f) for f in self.filters)


# ============================================================================
# Scenario phases
# ============================================================================


class PhaseKind(str, Enum):
    """Actions a scenario phase can perform."""

    INSTALL = "install"
    DEFINE_SERVICE = "define-service"
    DELETE_SERVICE = "delete-service"
    SNAPSHOT = "snapshot"
    ASSERT_SNAPSHOT_EQUAL = "assert-snapshot-equal"
    ASSERT_INVARIANT = "assert-invariant"
    PROBE = "probe"
    WAIT_READY = "wait-ready"
    DEFINE_RECORDER = "define-recorder"
    DELETE_RECORDER = "delete-recorder"
    ADD_ROUTE = "add-route"
    DUMP = "dump"


class DumpTarget(str, Enum):
    """Diagnostic listings a dump phase can print."""

    SERVICES = "services"
    LB_MAPS = "lb-maps"
    MAGLEV = "maglev"
    RECORDERS = "recorders"
    RECORDER_MAPS = "recorder-maps"


_REQUIRED_PARAMETERS: Dict[PhaseKind, Tuple[str, ...]] = {
    PhaseKind.INSTALL: ("config",),
    PhaseKind.DEFINE_SERVICE: ("service",),
    PhaseKind.DELETE_SERVICE: ("service_id",),
    PhaseKind.SNAPSHOT: ("snapshot",),
    PhaseKind.ASSERT_SNAPSHOT_EQUAL: ("snapshot", "compare_to"),
    PhaseKind.ASSERT_INVARIANT: ("service_id",),
    PhaseKind.PROBE: ("target",),
    PhaseKind.WAIT_READY: ("target",),
    PhaseKind.DEFINE_RECORDER: ("recorder",),
    PhaseKind.DELETE_RECORDER: ("recorder_id",),
    PhaseKind.ADD_ROUTE: ("route",),
    PhaseKind.DUMP: ("dump",),
}


class Phase(BaseModel):
    """One named step of a scenario."""

    label: str = Field(min_length=1, description="Log label")
    kind: PhaseKind = Field(description="Action performed")
    config: Optional[SUTConfiguration] = Field(default=None, description="Install target")
    extra_args: List[str] = Field(default_factory=list, description="Extra agent options")
    service: Optional[ServiceDefinition] = Field(default=None, description="Service to define")
    service_id: Optional[int] = Field(default=None, gt=0, description="Service to act on")
    snapshot: Optional[str] = Field(default=None, description="Snapshot label")
    compare_to: Optional[str] = Field(default=None, description="Second snapshot label")
    target: Optional[Endpoint] = Field(default=None, description="Probe target")
    attempts: Optional[int] = Field(default=None, gt=0, description="Attempt override")
    interval: Optional[float] = Field(default=None, gt=0, description="Retry interval override")
    recorder: Optional[RecorderDefinition] = Field(default=None, description="Recorder to define")
    recorder_id: Optional[int] = Field(default=None, gt=0, description="Recorder to delete")
    route: Optional[Route] = Field(default=None, description="Host route to inject")
    dump: Optional[DumpTarget] = Field(default=None, description="Listing to print")

    @model_validator(mode="after")
    def check_parameters(self) -> "Phase":
        missing = [
            name for name in _REQUIRED_PARAMETERS[self.kind] if getattr(self, name) is None
        ]
        if missing:
            raise ValueError(f"{self.kind.value} phase '{self.label}' requires {', '.join(missing)}")
        return self


# ============================================================================
# Results
# ============================================================================


class PhaseStatus(str, Enum):
    """Outcome of a single phase."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class PhaseResult(BaseModel):
    """Result of executing (or skipping) one phase."""

    index: int = Field(ge=1, description="1-based position in the scenario")
    label: str = Field(description="Phase label")
    kind: PhaseKind = Field(description="Phase kind")
    status: PhaseStatus = Field(description="Outcome")
    duration_seconds: float = Field(default=0.0, ge=0, description="Wall time spent")
    error: Optional[str] = Field(default=None, description="Failure evidence")

    class Config:
        """Pydantic configuration."""

        use_enum_values = True


class ScenarioSummary(BaseModel):
    """Summary of one scenario run."""

    scenario: str = Field(description="Scenario name")
    image: str = Field(description="SUT image under test")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Run start"
    )
    duration_seconds: float = Field(default=0.0, ge=0, description="Total scenario duration")
    phases: List[PhaseResult] = Field(default_factory=list, description="Per-phase results")
    teardown_errors: List[str] = Field(default_factory=list, description="Collected cleanup errors")
    held: bool = Field(default=False, description="Environment kept for debugging")

    @property
    def passed(self) -> int:
        return sum(1 for p in self.phases if p.status == PhaseStatus.PASSED)

    @property
    def failed(self) -> int:
        return sum(1 for p in self.phases if p.status == PhaseStatus.FAILED)

    @property
    def skipped(self) -> int:
        return sum(1 for p in self.phases if p.status == PhaseStatus.SKIPPED)

    @property
    def success(self) -> bool:
        return bool(self.phases) and self.failed == 0 and self.skipped == 0

    @property
    def failed_phase(self) -> Optional[PhaseResult]:
        return next((p for p in self.phases if p.status == PhaseStatus.FAILED), None)

    class Config:
        """Pydantic configuration."""

        use_enum_values = True
