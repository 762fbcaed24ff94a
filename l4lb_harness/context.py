"""Scenario-scoped state, threaded explicitly through every phase."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from l4lb_harness.client.base import NodeRuntime, SUTClient
from l4lb_harness.client.host import HostNetwork
from l4lb_harness.models import (
    RecorderDefinition,
    Route,
    ServiceDefinition,
    SUTConfiguration,
    Topology,
)
from l4lb_harness.prober import TrafficProber
from l4lb_harness.settings import HarnessSettings
from l4lb_harness.snapshot import SnapshotStore


@dataclass
class HarnessContext:
    """Everything one scenario run owns.

    Created at session start; there is no process-wide instance.
    """

    settings: HarnessSettings
    runtime: NodeRuntime
    host: HostNetwork
    client: SUTClient
    prober: TrafficProber
    snapshots: SnapshotStore
    topology: Optional[Topology] = None
    current_config: Optional[SUTConfiguration] = None
    services: Dict[int, ServiceDefinition] = field(default_factory=dict)
    recorders: Dict[int, RecorderDefinition] = field(default_factory=dict)
    routes: List[Route] = field(default_factory=list)
    teardown_errors: List[str] = field(default_factory=list)
    held: bool = False
