"""Harness settings and configuration management."""

from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class HarnessSettings(BaseSettings):
    """Harness settings loaded from environment variables."""

    # SUT image selection
    image_registry: str = Field(
        default="quay.io",
        description="Registry hosting the SUT image",
    )

    image_owner: str = Field(
        default="cilium",
        description="Registry organisation owning the SUT image",
    )

    image_repository: str = Field(
        default="cilium-ci",
        description="SUT image repository name",
    )

    image_tag: str = Field(
        default="latest",
        description="SUT image tag",
    )

    # Topology
    network_name: str = Field(
        default="cilium-l4lb",
        description="Name of the isolated dual-stack network",
    )

    network_subnets: List[str] = Field(
        default_factory=lambda: ["172.12.42.0/24", "2001:db8:1::/64"],
        description="Subnets of the isolated network (one IPv4, one IPv6)",
    )

    lb_node_name: str = Field(
        default="lb-node",
        description="Node hosting the SUT",
    )

    lb_node_image: str = Field(
        default="docker:dind",
        description="Image of the LB node (must run its own container runtime)",
    )

    target_node_name: str = Field(
        default="nginx",
        description="Node serving the backend workload",
    )

    target_node_image: str = Field(
        default="nginx",
        description="Image of the target node",
    )

    sut_container_name: str = Field(
        default="cilium-lb",
        description="Name of the SUT container inside the LB node",
    )

    # Polling
    status_interval: float = Field(
        default=3.0,
        gt=0,
        description="Seconds between SUT status polls",
    )

    settle_delay: float = Field(
        default=1.0,
        ge=0,
        description="Seconds to wait after the SUT reports healthy",
    )

    install_max_attempts: int = Field(
        default=200,
        ge=0,
        description="Status polls before an install is declared failed (0 = wait forever)",
    )

    node_ready_interval: float = Field(
        default=1.0,
        gt=0,
        description="Seconds between LB node container runtime polls",
    )

    node_ready_max_attempts: int = Field(
        default=120,
        gt=0,
        description="LB node container runtime polls before provisioning fails",
    )

    # Traffic
    probe_attempts: int = Field(
        default=10,
        gt=0,
        description="Consecutive requests issued per probe",
    )

    ready_interval: float = Field(
        default=1.0,
        gt=0,
        description="Seconds between readiness requests for a new service",
    )

    ready_max_attempts: int = Field(
        default=10,
        gt=0,
        description="Readiness requests before a new service is declared unreachable",
    )

    probe_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Per-request HTTP timeout in seconds",
    )

    # Operator interaction
    hold_prompt: bool = Field(
        default=True,
        description="Offer to hold the environment when attached to a terminal",
    )

    # Results directory
    results_dir: Optional[Path] = Field(
        default=None,
        description="Directory for storing scenario summaries",
    )

    @property
    def sut_image(self) -> str:
        """Fully qualified SUT image reference."""
        return f"{self.image_registry}/{self.image_owner}/{self.image_repository}:{self.image_tag}"

    class Config:
        """Pydantic settings configuration."""

        env_prefix = "L4LB_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
