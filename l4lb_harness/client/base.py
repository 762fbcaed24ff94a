"""Control interfaces the harness consumes.

Every operation the harness issues against the outside world goes through
one of these. Tests substitute in-memory fakes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from l4lb_harness.models import HashTableView, RecorderDefinition, ServiceDefinition


@dataclass
class ExecResult:
    """Output and exit code of a command executed inside a node.

    `output` is stdout only; machine-readable listings are parsed from it.
    """

    output: str
    exit_code: int
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def details(self) -> str:
        """Both streams, for error messages."""
        return "\n".join(s.strip() for s in (self.stderr, self.output) if s.strip())


class NodeRuntime(ABC):
    """Node/network control: containers acting as the topology's nodes."""

    @abstractmethod
    def create_network(self, name: str, subnets: Sequence[str]) -> str:
        """Create an isolated network carrying `subnets`; returns its id."""

    @abstractmethod
    def create_node(
        self,
        name: str,
        image: str,
        network: str,
        privileged: bool = False,
        volumes: Optional[Dict[str, Dict[str, str]]] = None,
        command: Optional[List[str]] = None,
    ) -> str:
        """Start a node attached to `network`; returns its id."""

    @abstractmethod
    def remove_node(self, name: str) -> bool:
        """Force-remove a node. Returns False if it did not exist."""

    @abstractmethod
    def remove_network(self, name: str) -> bool:
        """Remove a network. Returns False if it did not exist."""

    @abstractmethod
    def exec_in_node(self, name: str, command: Sequence[str]) -> ExecResult:
        """Run `command` inside node `name`."""

    @abstractmethod
    def node_addresses(self, name: str, network: str) -> Tuple[str, str]:
        """IPv4 and IPv6 address of node `name` on `network`."""


class SUTClient(ABC):
    """Control plane of the load balancer under test, one method per action."""

    @abstractmethod
    def remove(self) -> None:
        """Remove the running SUT instance; absence is not an error."""

    @abstractmethod
    def install(self, options: Sequence[str]) -> None:
        """Start a fresh SUT instance with the given agent options."""

    @abstractmethod
    def status(self) -> bool:
        """True when the SUT reports healthy."""

    @abstractmethod
    def service_list(self) -> str:
        """Full service table as text."""

    @abstractmethod
    def service_ids(self) -> Set[int]:
        """Ids of all services currently known to the SUT."""

    @abstractmethod
    def service_update(self, service: ServiceDefinition) -> None:
        """Create or replace a service."""

    @abstractmethod
    def service_delete(self, service_id: int) -> None:
        """Delete a service."""

    @abstractmethod
    def hash_table_list(self, service_id: int) -> HashTableView:
        """Per-family consistent-hash table content for a service."""

    @abstractmethod
    def hash_table_dump(self) -> str:
        """Raw consistent-hash table content for every service."""

    @abstractmethod
    def lb_map_list(self) -> str:
        """Raw datapath service/backend map content."""

    @abstractmethod
    def recorder_update(self, recorder: RecorderDefinition) -> None:
        """Create or replace a recorder."""

    @abstractmethod
    def recorder_delete(self, recorder_id: int) -> None:
        """Delete a recorder."""

    @abstractmethod
    def recorder_list(self) -> str:
        """Recorder definitions as text."""

    @abstractmethod
    def recorder_ids(self) -> Set[int]:
        """Ids of all recorders currently known to the SUT."""

    @abstractmethod
    def recorder_map_list(self) -> str:
        """Raw datapath recorder map content."""
