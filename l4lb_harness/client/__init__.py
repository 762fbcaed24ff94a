"""Control interfaces to the SUT, the node runtime and the host network."""

from l4lb_harness.client.base import ExecResult, NodeRuntime, SUTClient
from l4lb_harness.client.cilium import CiliumClient
from l4lb_harness.client.docker_runtime import DockerNodeRuntime
from l4lb_harness.client.host import HostNetwork

__all__ = [
    "CiliumClient",
    "DockerNodeRuntime",
    "ExecResult",
    "HostNetwork",
    "NodeRuntime",
    "SUTClient",
]
