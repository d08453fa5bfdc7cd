"""Azure control-plane collaborators.

Fetches AKS cluster credentials through the ``az`` CLI and builds the ARM
resource id reported in deploy results.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from typing import Protocol

from .errors import CredentialsError
from .shared.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ClusterCredentials:
    """Kubeconfig documents returned by a credential fetch."""

    kubeconfigs: list[str] = field(default_factory=list)


class ManagedClustersService(Protocol):
    def get_user_credentials(
        self,
        subscription_id: str,
        resource_group: str,
        cluster_name: str,
    ) -> ClusterCredentials: ...


class AzCliManagedClustersService:
    """Fetch AKS credentials with ``az aks get-credentials``."""

    def __init__(self, admin: bool = False, timeout: float = 120.0):
        """Initialize the service.

        Args:
            admin: Request cluster admin credentials instead of user credentials.
            timeout: Timeout for the az call in seconds.
        """
        self.admin = admin
        self.timeout = timeout

    def get_user_credentials(
        self,
        subscription_id: str,
        resource_group: str,
        cluster_name: str,
    ) -> ClusterCredentials:
        cmd = [
            "az",
            "aks",
            "get-credentials",
            "--subscription",
            subscription_id,
            "--resource-group",
            resource_group,
            "--name",
            cluster_name,
            "--file",
            "-",
            "--only-show-errors",
        ]
        if self.admin:
            cmd.append("--admin")

        logger.info("fetching cluster credentials", cluster=cluster_name, resource_group=resource_group)
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise CredentialsError(
                message="az not found",
                hint="Install the Azure CLI: https://aka.ms/azure-cli",
            ) from e
        except subprocess.TimeoutExpired as e:
            raise CredentialsError(message="az aks get-credentials timed out") from e

        if result.returncode != 0:
            raise CredentialsError(message=f"az aks get-credentials failed: {result.stderr.strip()}")

        blob = result.stdout.strip()
        return ClusterCredentials(kubeconfigs=[blob] if blob else [])


def kubernetes_service_rid(subscription_id: str, resource_group: str, cluster_name: str) -> str:
    """Build the ARM resource id of a managed cluster."""
    return (
        f"/subscriptions/{subscription_id}/resourceGroups/{resource_group}"
        f"/providers/Microsoft.ContainerService/managedClusters/{cluster_name}"
    )
