"""Cilium control plane, driven through `cilium-dbg` inside the LB node."""

import json
import logging
from typing import List, Sequence, Set

from l4lb_harness.client.base import ExecResult, NodeRuntime, SUTClient
from l4lb_harness.config import DUMP_COMMANDS, SUT_AGENT_BINARY, SUT_DEBUG_BINARY, SUT_MOUNTS
from l4lb_harness.errors import InstallError, SUTCommandError
from l4lb_harness.models import AddressFamily, HashTableView, RecorderDefinition, ServiceDefinition
from l4lb_harness.settings import HarnessSettings

logger = logging.getLogger(__name__)


class CiliumClient(SUTClient):
    """SUT client for a cilium-agent container running inside the LB node.

    The LB node runs its own container runtime, so every command is
    `docker ...` executed in the node.
    """

    def __init__(self, runtime: NodeRuntime, settings: HarnessSettings):
        self._runtime = runtime
        self.node = settings.lb_node_name
        self.container = settings.sut_container_name
        self.image = settings.sut_image

    def _docker(self, args: Sequence[str]) -> ExecResult:
        return self._runtime.exec_in_node(self.node, ["docker", *args])

    def _dbg(self, *args: str, check: bool = True) -> str:
        cmd = ["docker", "exec", self.container, SUT_DEBUG_BINARY, *args]
        result = self._runtime.exec_in_node(self.node, cmd)
        if check and not result.ok:
            raise SUTCommandError([SUT_DEBUG_BINARY, *args], result.exit_code, result.details)
        return result.output

    def _ids(self, *args: str) -> Set[int]:
        """Ids from a `-o json` listing: a list of objects with spec.id."""
        args = (*args, "-o", "json")
        output = self._dbg(*args)
        if not output.strip():
            return set()
        try:
            entries = json.loads(output) or []
            return {int(entry["spec"]["id"]) for entry in entries}
        except (ValueError, KeyError, TypeError) as e:
            raise SUTCommandError(
                [SUT_DEBUG_BINARY, *args], 0, f"unparseable listing ({e}): {output.strip()}"
            ) from e

    # Lifecycle

    def remove(self) -> None:
        result = self._docker(["rm", "-f", self.container])
        if result.ok or "no such container" in result.details.lower():
            return
        raise InstallError(f"Failed to remove {self.container} in {self.node}: {result.details}")

    def install(self, options: Sequence[str]) -> None:
        mounts: List[str] = []
        for source, target in SUT_MOUNTS.items():
            mounts.extend(["-v", f"{source}:{target}"])

        result = self._docker([
            "run", "--name", self.container, "-td",
            *mounts,
            "--privileged=true",
            "--network=host",
            self.image,
            SUT_AGENT_BINARY, *options,
        ])
        if not result.ok:
            raise InstallError(
                f"Failed to start {self.image} in {self.node}: {result.details}"
            )

    def status(self) -> bool:
        return self._runtime.exec_in_node(
            self.node, ["docker", "exec", self.container, SUT_DEBUG_BINARY, "status"]
        ).ok

    # Services

    def service_list(self) -> str:
        return self._dbg(*DUMP_COMMANDS["services"])

    def service_ids(self) -> Set[int]:
        return self._ids("service", "list")

    def service_update(self, service: ServiceDefinition) -> None:
        args = [
            "service", "update",
            "--id", str(service.id),
            "--frontend", str(service.frontend),
            "--backends", ",".join(str(b) for b in service.backends),
        ]
        args.extend(f"--{flag.value}" for flag in sorted(service.flags, key=lambda f: f.value))
        self._dbg(*args)

    def service_delete(self, service_id: int) -> None:
        self._dbg("service", "delete", str(service_id))

    # Datapath maps

    def hash_table_list(self, service_id: int) -> HashTableView:
        views = {}
        for family in AddressFamily:
            jsonpath = f"-o=jsonpath={{.\\[{service_id}\\]/{family.value}}}"
            views[family.value] = self._dbg("bpf", "lb", "maglev", "list", jsonpath).strip()
        return HashTableView(**views)

    def hash_table_dump(self) -> str:
        return self._dbg(*DUMP_COMMANDS["maglev"])

    def lb_map_list(self) -> str:
        return self._dbg(*DUMP_COMMANDS["lb-maps"])

    # Recorders

    def recorder_update(self, recorder: RecorderDefinition) -> None:
        self._dbg(
            "recorder", "update",
            "--id", str(recorder.id),
            "--caplen", str(recorder.capture_length),
            f"--filters={recorder.filters_argument()}",
        )

    def recorder_delete(self, recorder_id: int) -> None:
        self._dbg("recorder", "delete", str(recorder_id))

    def recorder_list(self) -> str:
        return self._dbg(*DUMP_COMMANDS["recorders"])

    def recorder_ids(self) -> Set[int]:
        return self._ids("recorder", "list")

    def recorder_map_list(self) -> str:
        return self._dbg(*DUMP_COMMANDS["recorder-maps"])
