"""Host-side network control: routes towards the LB node and veth offload."""

import logging
import re
import subprocess
from ipaddress import ip_network
from typing import List, Optional, Sequence

from l4lb_harness.errors import HostCommandError
from l4lb_harness.models import Route

logger = logging.getLogger(__name__)

# `ip -o link` line: "123: veth1a2b3c@if2: <BROADCAST,...> ..."
_LINK_LINE = re.compile(r"^\d+:\s+(?P<name>[^@:\s]+)@if(?P<peer>\d+):")


class HostNetwork:
    """Runs `ip` and `ethtool` on the machine hosting the nodes."""

    def __init__(self, timeout: int = 30):
        self.timeout = timeout

    def _run(self, cmd: Sequence[str]) -> str:
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                list(cmd),
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as e:
            raise HostCommandError(cmd, e.returncode, e.stderr or "") from e
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            raise HostCommandError(cmd, -1, str(e)) from e
        return result.stdout

    @staticmethod
    def _family_flag(prefix: str) -> str:
        return "-6" if ip_network(prefix, strict=False).version == 6 else "-4"

    def add_route(self, route: Route) -> None:
        prefix = str(route.prefix)
        self._run(["ip", self._family_flag(prefix), "route", "add", prefix, "via", str(route.via)])
        logger.info(f"Added host route {route}")

    def delete_route(self, prefix: str) -> None:
        self._run(["ip", self._family_flag(prefix), "route", "del", prefix])
        logger.info(f"Deleted host route {prefix}")

    def list_links(self) -> List[str]:
        return self._run(["ip", "-o", "link"]).splitlines()

    def find_peer_link(self, peer_ifindex: int) -> Optional[str]:
        """Host veth whose peer is interface `peer_ifindex` inside a node."""
        for line in self.list_links():
            match = _LINK_LINE.match(line.strip())
            if match and int(match.group("peer")) == peer_ifindex:
                return match.group("name")
        return None

    def disable_offload(self, link: str) -> None:
        """Turn off rx/tx checksum offload; veth cannot do it for forwarded packets."""
        self._run(["ethtool", "-K", link, "rx", "off", "tx", "off"])
        logger.info(f"Disabled checksum offload on {link}")
