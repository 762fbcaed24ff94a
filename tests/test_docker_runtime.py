"""Docker node runtime tests against a MagicMock Docker SDK client"""
from unittest.mock import MagicMock, patch

import docker
import pytest
from docker.errors import APIError, DockerException, NotFound

from l4lb_harness.client.docker_runtime import DockerNodeRuntime
from l4lb_harness.errors import NodeRuntimeError


@pytest.fixture
def docker_client():
    return MagicMock()


@pytest.fixture
def node_runtime(docker_client):
    return DockerNodeRuntime(docker_client)


@pytest.mark.unit
class TestNetworks:

    def test_create_dual_stack_network(self, node_runtime, docker_client):
        docker_client.networks.create.return_value = MagicMock(id="net123")

        network_id = node_runtime.create_network("cilium-l4lb", ["172.12.42.0/24", "2001:db8:1::/64"])

        assert network_id == "net123"
        kwargs = docker_client.networks.create.call_args.kwargs
        assert kwargs["name"] == "cilium-l4lb"
        assert kwargs["enable_ipv6"] is True
        subnets = [pool["Subnet"] for pool in kwargs["ipam"]["Config"]]
        assert subnets == ["172.12.42.0/24", "2001:db8:1::/64"]

    def test_ipv4_only_network_disables_ipv6(self, node_runtime, docker_client):
        node_runtime.create_network("v4only", ["10.1.0.0/16"])
        assert docker_client.networks.create.call_args.kwargs["enable_ipv6"] is False

    def test_create_network_api_error(self, node_runtime, docker_client):
        docker_client.networks.create.side_effect = APIError("network exists")
        with pytest.raises(NodeRuntimeError, match="cilium-l4lb"):
            node_runtime.create_network("cilium-l4lb", ["172.12.42.0/24"])

    def test_remove_missing_network(self, node_runtime, docker_client):
        docker_client.networks.get.side_effect = NotFound("no such network")
        assert node_runtime.remove_network("cilium-l4lb") is False

    def test_remove_network(self, node_runtime, docker_client):
        assert node_runtime.remove_network("cilium-l4lb") is True
        docker_client.networks.get.return_value.remove.assert_called_once_with()


@pytest.mark.unit
class TestNodes:

    def test_create_privileged_node(self, node_runtime, docker_client):
        docker_client.containers.run.return_value = MagicMock(id="c1")
        volumes = {"/lib/modules": {"bind": "/lib/modules", "mode": "rw"}}

        assert node_runtime.create_node(
            "lb-node", "docker:dind", "cilium-l4lb", privileged=True, volumes=volumes
        ) == "c1"

        docker_client.containers.run.assert_called_once_with(
            "docker:dind",
            command=None,
            name="lb-node",
            detach=True,
            privileged=True,
            network="cilium-l4lb",
            volumes=volumes,
        )

    def test_create_node_failure(self, node_runtime, docker_client):
        docker_client.containers.run.side_effect = APIError("pull access denied")
        with pytest.raises(NodeRuntimeError, match="nginx"):
            node_runtime.create_node("nginx", "nginx", "cilium-l4lb")

    def test_remove_node(self, node_runtime, docker_client):
        assert node_runtime.remove_node("nginx") is True
        docker_client.containers.get.return_value.remove.assert_called_once_with(force=True)

    def test_remove_missing_node(self, node_runtime, docker_client):
        docker_client.containers.get.side_effect = NotFound("no such container")
        assert node_runtime.remove_node("nginx") is False

    def test_exec_decodes_and_strips_carriage_returns(self, node_runtime, docker_client):
        container = docker_client.containers.get.return_value
        container.exec_run.return_value = MagicMock(output=(b"17\r\n", None), exit_code=0)

        result = node_runtime.exec_in_node("lb-node", ("cat", "/sys/class/net/eth0/ifindex"))

        assert result.ok
        assert result.output == "17\n"
        assert result.stderr == ""
        container.exec_run.assert_called_once_with(
            ["cat", "/sys/class/net/eth0/ifindex"], demux=True
        )

    def test_exec_keeps_stderr_out_of_output(self, node_runtime, docker_client):
        container = docker_client.containers.get.return_value
        container.exec_run.return_value = MagicMock(
            output=(b'[{"spec": {"id": 1}}]\n', b'level=warning msg="deprecated flag"\n'),
            exit_code=0,
        )

        result = node_runtime.exec_in_node("lb-node", ["cilium-dbg", "service", "list", "-o", "json"])

        assert result.output == '[{"spec": {"id": 1}}]\n'
        assert result.stderr == 'level=warning msg="deprecated flag"\n'
        assert result.details == 'level=warning msg="deprecated flag"\n[{"spec": {"id": 1}}]'

    def test_exec_without_output(self, node_runtime, docker_client):
        container = docker_client.containers.get.return_value
        container.exec_run.return_value = MagicMock(output=None, exit_code=1)

        result = node_runtime.exec_in_node("lb-node", ["docker", "ps"])

        assert not result.ok
        assert result.output == ""
        assert result.details == ""

    def test_exec_in_missing_node(self, node_runtime, docker_client):
        docker_client.containers.get.side_effect = NotFound("no such container")
        with pytest.raises(NodeRuntimeError):
            node_runtime.exec_in_node("lb-node", ["docker", "ps"])

    def test_node_addresses(self, node_runtime, docker_client):
        container = docker_client.containers.get.return_value
        container.attrs = {
            "NetworkSettings": {
                "Networks": {
                    "cilium-l4lb": {"IPAddress": "172.12.42.2", "GlobalIPv6Address": "2001:db8:1::2"}
                }
            }
        }
        assert node_runtime.node_addresses("lb-node", "cilium-l4lb") == ("172.12.42.2", "2001:db8:1::2")
        container.reload.assert_called_once_with()

    def test_node_addresses_requires_dual_stack(self, node_runtime, docker_client):
        container = docker_client.containers.get.return_value
        container.attrs = {
            "NetworkSettings": {"Networks": {"cilium-l4lb": {"IPAddress": "172.12.42.2"}}}
        }
        with pytest.raises(NodeRuntimeError, match="dual-stack"):
            node_runtime.node_addresses("lb-node", "cilium-l4lb")


@pytest.mark.unit
def test_from_env_wraps_connection_errors():
    with patch.object(docker, "from_env", side_effect=DockerException("socket not found")):
        with pytest.raises(NodeRuntimeError, match="Cannot connect to Docker"):
            DockerNodeRuntime.from_env()
