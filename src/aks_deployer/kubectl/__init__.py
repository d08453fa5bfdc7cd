"""kubectl integration: command wrapper, resource snapshots, polling, kubeconfig store."""

from .cli import (
    KUBECONFIG_ENV_VAR,
    CommandResult,
    DryRunType,
    KubeCliFlags,
    KubectlCli,
    OutputType,
)
from .kubeconfig import (
    KubeCluster,
    KubeConfig,
    KubeConfigManager,
    KubeContext,
    KubeContextData,
    KubeUser,
    parse_kube_config,
)
from .resources import (
    SERVICE_TYPE_CLUSTER_IP,
    SERVICE_TYPE_LOAD_BALANCER,
    Deployment,
    Ingress,
    Resource,
    ResourceKind,
    Service,
)
from .wait import ResourceReader, name_contains, wait_for_resource

__all__ = [
    # CLI
    "KUBECONFIG_ENV_VAR",
    "CommandResult",
    "DryRunType",
    "KubeCliFlags",
    "KubectlCli",
    "OutputType",
    # Kubeconfig
    "KubeCluster",
    "KubeConfig",
    "KubeConfigManager",
    "KubeContext",
    "KubeContextData",
    "KubeUser",
    "parse_kube_config",
    # Resources
    "SERVICE_TYPE_CLUSTER_IP",
    "SERVICE_TYPE_LOAD_BALANCER",
    "Deployment",
    "Ingress",
    "Resource",
    "ResourceKind",
    "Service",
    # Polling
    "ResourceReader",
    "name_contains",
    "wait_for_resource",
]
