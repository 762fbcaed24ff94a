"""Isolated two-node environment: LB node (nested container runtime) and target node."""

import logging
from typing import Callable, List, Tuple

from l4lb_harness.client.base import NodeRuntime
from l4lb_harness.client.host import HostNetwork
from l4lb_harness.config import LB_NODE_INTERFACE, LB_NODE_VOLUMES
from l4lb_harness.errors import HarnessError, ProvisioningError
from l4lb_harness.models import Topology
from l4lb_harness.polling import poll
from l4lb_harness.settings import HarnessSettings

logger = logging.getLogger(__name__)

TeardownAction = Tuple[str, Callable[[], object]]


class EnvironmentProvisioner:
    """Builds the topology the SUT is tested in.

    Provisioning never repairs partial state: the first failure raises
    ProvisioningError and cleanup is left to the session finalizer.
    """

    def __init__(self, runtime: NodeRuntime, host: HostNetwork, settings: HarnessSettings):
        self._runtime = runtime
        self._host = host
        self._settings = settings

    def provision(self) -> Topology:
        settings = self._settings
        logger.info("Initializing docker environment...")
        try:
            self._runtime.create_network(settings.network_name, settings.network_subnets)
            self._runtime.create_node(
                settings.lb_node_name,
                image=settings.lb_node_image,
                network=settings.network_name,
                privileged=True,
                volumes=LB_NODE_VOLUMES,
            )
            self._mount_bpffs()
            self._runtime.create_node(
                settings.target_node_name,
                image=settings.target_node_image,
                network=settings.network_name,
            )
            self._wait_for_node_runtime()
            link = self._disable_offload()
            topology = self._resolve_topology(link)
        except ProvisioningError:
            raise
        except HarnessError as e:
            raise ProvisioningError(f"Environment setup failed: {e}") from e
        except Exception as e:
            raise ProvisioningError(
                f"Environment setup failed unexpectedly: {type(e).__name__}: {e}"
            ) from e

        logger.info(
            f"Topology ready: LB node {topology.lb_ipv4} / {topology.lb_ipv6}, "
            f"target {topology.target_ipv4} / {topology.target_ipv6}"
        )
        return topology

    def _mount_bpffs(self) -> None:
        result = self._runtime.exec_in_node(
            self._settings.lb_node_name, ["mount", "bpffs", "/sys/fs/bpf", "-t", "bpf"]
        )
        if not result.ok:
            raise ProvisioningError(f"Cannot mount bpffs in LB node: {result.details}")

    def _wait_for_node_runtime(self) -> None:
        name = self._settings.lb_node_name
        result = poll(
            lambda: self._runtime.exec_in_node(name, ["docker", "ps"]).ok,
            interval=self._settings.node_ready_interval,
            max_attempts=self._settings.node_ready_max_attempts,
            description=f"container runtime in {name}",
        )
        if not result.ready:
            detail = f": {result.error}" if result.error else ""
            raise ProvisioningError(
                f"Container runtime in {name} not reachable after {result.attempts} attempt(s){detail}"
            )

    def _disable_offload(self) -> str:
        name = self._settings.lb_node_name
        result = self._runtime.exec_in_node(
            name, ["cat", f"/sys/class/net/{LB_NODE_INTERFACE}/ifindex"]
        )
        if not result.ok or not result.output.strip().isdigit():
            raise ProvisioningError(
                f"Cannot read {LB_NODE_INTERFACE} ifindex in {name}: {result.details}"
            )

        ifindex = int(result.output.strip())
        link = self._host.find_peer_link(ifindex)
        if link is None:
            raise ProvisioningError(f"No host veth peered with {name}/{LB_NODE_INTERFACE} (if{ifindex})")

        self._host.disable_offload(link)
        return link

    def _resolve_topology(self, link: str) -> Topology:
        settings = self._settings
        lb_ipv4, lb_ipv6 = self._runtime.node_addresses(settings.lb_node_name, settings.network_name)
        target_ipv4, target_ipv6 = self._runtime.node_addresses(
            settings.target_node_name, settings.network_name
        )
        return Topology(
            network=settings.network_name,
            lb_node=settings.lb_node_name,
            target_node=settings.target_node_name,
            lb_ipv4=lb_ipv4,
            lb_ipv6=lb_ipv6,
            target_ipv4=target_ipv4,
            target_ipv6=target_ipv6,
            lb_host_link=link,
        )

    def teardown_actions(self) -> List[TeardownAction]:
        """Independent removal steps for everything provision() creates."""
        settings = self._settings
        return [
            (f"remove node {settings.lb_node_name}",
             lambda: self._runtime.remove_node(settings.lb_node_name)),
            (f"remove node {settings.target_node_name}",
             lambda: self._runtime.remove_node(settings.target_node_name)),
            (f"remove network {settings.network_name}",
             lambda: self._runtime.remove_network(settings.network_name)),
        ]
