"""Test mocks for aks-deployer.

Provides:
- FakeKubectl: scripted stand-in for KubectlCli
- Builders for Deployment, Service and Ingress snapshots
- FakeCredentials / FakeContainerHelper: collaborator doubles
"""

from .collaborators import KUBECONFIG_BLOB, FakeContainerHelper, FakeCredentials
from .kubectl import (
    FakeKubectl,
    cluster_ip_service,
    deployment,
    ingress,
    kubectl_failure,
    load_balancer_service,
)

__all__ = [
    "KUBECONFIG_BLOB",
    "FakeContainerHelper",
    "FakeCredentials",
    "FakeKubectl",
    "cluster_ip_service",
    "deployment",
    "ingress",
    "kubectl_failure",
    "load_balancer_service",
]
