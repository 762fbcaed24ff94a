"""Static harness configuration shared by the SUT client and the scenarios."""

from typing import Dict, List

# Agent options applied to every install, before the variant options
BASE_AGENT_OPTIONS: List[str] = [
    "--enable-ipv4=true",
    "--enable-ipv6=true",
    "--devices=eth0",
    "--datapath-mode=lb-only",
    "--bpf-lb-dsr-dispatch=ipip",
    "--bpf-lb-mode=snat",
]

# Host paths bind-mounted into the SUT container inside the LB node
SUT_MOUNTS: Dict[str, str] = {
    "/sys/fs/bpf": "/sys/fs/bpf",
    "/lib/modules": "/lib/modules",
}

# Host paths bind-mounted into the LB node itself
LB_NODE_VOLUMES: Dict[str, Dict[str, str]] = {
    "/lib/modules": {"bind": "/lib/modules", "mode": "rw"},
}

SUT_AGENT_BINARY = "cilium-agent"
SUT_DEBUG_BINARY = "cilium-dbg"

# Interface of the LB node attached to the isolated network
LB_NODE_INTERFACE = "eth0"

# Diagnostic listings available to dump phases
DUMP_COMMANDS: Dict[str, List[str]] = {
    "services": ["service", "list"],
    "lb-maps": ["bpf", "lb", "list"],
    "maglev": ["bpf", "lb", "maglev", "list"],
    "recorders": ["recorder", "list"],
    "recorder-maps": ["bpf", "recorder", "list"],
}
