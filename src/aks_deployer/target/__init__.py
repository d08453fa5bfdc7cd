"""AKS service target.

This package deploys a packaged service to an AKS cluster:
1. Bootstraps the cluster context (credentials, kubeconfig, namespace)
2. Pushes the container image
3. Applies the Kubernetes manifests
4. Waits for the deployment rollout
5. Resolves service and ingress endpoints
"""

from .aks import ENDPOINT_URL_PROPERTY, AksTarget
from .container import ContainerHelper, DockerContainerHelper
from .context import ClusterContextBootstrapper, ContextResult, ContextSettings, ContextState
from .endpoints import (
    EndpointResolver,
    endpoint_url,
    ingress_endpoints,
    ingress_ready,
    join_url_path,
    service_endpoints,
    service_ready,
    url_host,
)
from .models import (
    POSTPROVISION_EVENT,
    PREDEPLOY_EVENT,
    AksOptions,
    DeployResult,
    ProjectConfig,
    ServiceConfig,
    ServicePackageResult,
    TargetResource,
)
from .prerequisites import AzCliDetector, DockerDetector, KubectlDetector, ToolDetector, ToolInfo
from .progress import ProgressChannel
from .resource_manager import EnvironmentResourceManager
from .rollout import RolloutVerifier, deployment_ready

__all__ = [
    # Orchestrator
    "AksTarget",
    "ENDPOINT_URL_PROPERTY",
    # Models
    "AksOptions",
    "DeployResult",
    "ProjectConfig",
    "ServiceConfig",
    "ServicePackageResult",
    "TargetResource",
    "POSTPROVISION_EVENT",
    "PREDEPLOY_EVENT",
    # Cluster context
    "ClusterContextBootstrapper",
    "ContextResult",
    "ContextSettings",
    "ContextState",
    # Rollout
    "RolloutVerifier",
    "deployment_ready",
    # Endpoints
    "EndpointResolver",
    "endpoint_url",
    "ingress_endpoints",
    "ingress_ready",
    "join_url_path",
    "service_endpoints",
    "service_ready",
    "url_host",
    # Collaborators
    "ContainerHelper",
    "DockerContainerHelper",
    "EnvironmentResourceManager",
    "ProgressChannel",
    # Prerequisites
    "AzCliDetector",
    "DockerDetector",
    "KubectlDetector",
    "ToolDetector",
    "ToolInfo",
]
