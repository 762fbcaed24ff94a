"""Docker-backed node runtime."""

import logging
from ipaddress import ip_network
from typing import Dict, List, Optional, Sequence, Tuple

import docker
from docker.errors import APIError, DockerException, NotFound

from l4lb_harness.client.base import ExecResult, NodeRuntime
from l4lb_harness.errors import NodeRuntimeError

logger = logging.getLogger(__name__)


def _decode(stream: Optional[bytes]) -> str:
    return (stream or b"").decode(errors="replace").replace("\r", "")


class DockerNodeRuntime(NodeRuntime):
    """Nodes are containers on a user-defined dual-stack bridge network."""

    def __init__(self, client: docker.DockerClient):
        self._client = client

    @classmethod
    def from_env(cls, timeout: int = 60) -> "DockerNodeRuntime":
        try:
            return cls(docker.from_env(timeout=timeout))
        except DockerException as e:
            raise NodeRuntimeError(f"Cannot connect to Docker: {e}") from e

    def create_network(self, name: str, subnets: Sequence[str]) -> str:
        pools = [docker.types.IPAMPool(subnet=subnet) for subnet in subnets]
        enable_ipv6 = any(ip_network(subnet, strict=False).version == 6 for subnet in subnets)
        try:
            network = self._client.networks.create(
                name=name,
                driver="bridge",
                ipam=docker.types.IPAMConfig(pool_configs=pools),
                enable_ipv6=enable_ipv6,
            )
        except APIError as e:
            raise NodeRuntimeError(f"Failed to create network {name}: {e}") from e

        logger.info(f"Created network {name}: {', '.join(subnets)}")
        return network.id

    def create_node(
        self,
        name: str,
        image: str,
        network: str,
        privileged: bool = False,
        volumes: Optional[Dict[str, Dict[str, str]]] = None,
        command: Optional[List[str]] = None,
    ) -> str:
        try:
            container = self._client.containers.run(
                image,
                command=command,
                name=name,
                detach=True,
                privileged=privileged,
                network=network,
                volumes=volumes or {},
            )
        except APIError as e:
            raise NodeRuntimeError(f"Failed to start node {name} ({image}): {e}") from e

        logger.info(f"Started node {name} ({image}) on {network}")
        return container.id

    def remove_node(self, name: str) -> bool:
        try:
            self._client.containers.get(name).remove(force=True)
        except NotFound:
            return False
        except APIError as e:
            raise NodeRuntimeError(f"Failed to remove node {name}: {e}") from e

        logger.info(f"Removed node {name}")
        return True

    def remove_network(self, name: str) -> bool:
        try:
            self._client.networks.get(name).remove()
        except NotFound:
            return False
        except APIError as e:
            raise NodeRuntimeError(f"Failed to remove network {name}: {e}") from e

        logger.info(f"Removed network {name}")
        return True

    def exec_in_node(self, name: str, command: Sequence[str]) -> ExecResult:
        try:
            container = self._client.containers.get(name)
            result = container.exec_run(list(command), demux=True)
        except (NotFound, APIError) as e:
            raise NodeRuntimeError(f"Failed to exec in {name}: {e}") from e

        stdout, stderr = result.output or (None, None)
        return ExecResult(
            output=_decode(stdout),
            exit_code=result.exit_code,
            stderr=_decode(stderr),
        )

    def node_addresses(self, name: str, network: str) -> Tuple[str, str]:
        try:
            container = self._client.containers.get(name)
            container.reload()
        except (NotFound, APIError) as e:
            raise NodeRuntimeError(f"Failed to inspect node {name}: {e}") from e

        settings = container.attrs.get("NetworkSettings", {}).get("Networks", {}).get(network)
        if not settings:
            raise NodeRuntimeError(f"Node {name} is not attached to {network}")

        ipv4 = settings.get("IPAddress")
        ipv6 = settings.get("GlobalIPv6Address")
        if not ipv4 or not ipv6:
            raise NodeRuntimeError(
                f"Node {name} lacks a dual-stack address on {network}: v4={ipv4!r} v6={ipv6!r}"
            )
        return ipv4, ipv6
