"""Doubles for the Azure credential provider and the container helper."""

from __future__ import annotations

from dataclasses import dataclass, field

from aks_deployer.azure import ClusterCredentials

KUBECONFIG_BLOB = """\
apiVersion: v1
kind: Config
clusters:
- name: aks-todo
  cluster:
    server: https://aks-todo.hcp.eastus.azmk8s.io:443
    certificate-authority-data: Y2VydA==
contexts:
- name: aks-todo-admin
  context:
    cluster: aks-todo
    user: clusterAdmin_rg-todo_aks-todo
current-context: aks-todo-admin
users:
- name: clusterAdmin_rg-todo_aks-todo
  user:
    token: secret-token
"""


@dataclass
class FakeCredentials:
    """Credential provider returning scripted kubeconfigs."""

    kubeconfigs: list[str] = field(default_factory=lambda: [KUBECONFIG_BLOB])
    error: Exception | None = None
    calls: list[tuple[str, str, str]] = field(default_factory=list)

    def get_user_credentials(self, subscription_id: str, resource_group: str, cluster_name: str):
        self.calls.append((subscription_id, resource_group, cluster_name))
        if self.error:
            raise self.error
        return ClusterCredentials(kubeconfigs=list(self.kubeconfigs))


@dataclass
class FakeContainerHelper:
    """Container helper that records pushes instead of running docker."""

    pushed: list[str] = field(default_factory=list)
    error: Exception | None = None

    async def deploy(self, service_config, package, target_resource, progress=None) -> str:
        if progress:
            progress.publish("Pushing container image to registry")
        if self.error:
            raise self.error
        self.pushed.append(package.image)
        return f"crtodo.azurecr.io/{package.image}"
