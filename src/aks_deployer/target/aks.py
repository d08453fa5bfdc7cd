"""AKS service target.

Pushes the service image, applies its Kubernetes manifests, waits for the
deployment to roll out and reports the service and ingress endpoints.
"""

from __future__ import annotations

import asyncio
from typing import Callable

from ..azure import ManagedClustersService, kubernetes_service_rid
from ..environment import AKS_CLUSTER_ENV_VAR, Environment
from ..errors import (
    ConfigurationError,
    EnvironmentSaveError,
    KubectlError,
    ManifestApplyError,
    ResourceNotFoundError,
)
from ..kubectl.cli import KUBECONFIG_ENV_VAR, KubectlCli
from ..kubectl.kubeconfig import KubeConfigManager
from ..kubectl.resources import Deployment
from ..kubectl.wait import DEFAULT_POLL_INTERVAL, DEFAULT_POLL_TIMEOUT
from ..shared.logging import get_logger
from .container import ContainerHelper
from .context import ClusterContextBootstrapper, ContextResult, ContextSettings
from .endpoints import EndpointResolver, endpoint_url
from .models import (
    POSTPROVISION_EVENT,
    PREDEPLOY_EVENT,
    DeployResult,
    ServiceConfig,
    ServicePackageResult,
    TargetResource,
)
from .prerequisites import AzCliDetector, DockerDetector, KubectlDetector, ToolDetector
from .progress import ProgressChannel
from .resource_manager import EnvironmentResourceManager
from .rollout import RolloutVerifier

logger = get_logger(__name__)

ENDPOINT_URL_PROPERTY = "ENDPOINT_URL"


class AksTarget:
    """Deploy a service to an AKS cluster."""

    def __init__(
        self,
        env: Environment,
        kubectl: KubectlCli,
        credentials: ManagedClustersService,
        kube_config_manager: KubeConfigManager,
        container_helper: ContainerHelper,
        resource_manager: EnvironmentResourceManager,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        poll_timeout: float = DEFAULT_POLL_TIMEOUT,
        rollout_timeout: float | None = None,
        on_message: Callable[[str], None] | None = None,
    ):
        """Initialize the target.

        Args:
            env: Environment values for the deploy.
            kubectl: kubectl wrapper used for every cluster call.
            credentials: Cluster credential provider.
            kube_config_manager: Persistent kubeconfig store.
            container_helper: Pushes the service image.
            resource_manager: Resolves the target cluster of a service.
            poll_interval: Seconds between resource polls.
            poll_timeout: Deadline in seconds for each resource wait.
            rollout_timeout: Timeout for ``kubectl rollout status`` (None: no limit).
            on_message: Receives user-facing warnings.
        """
        self.env = env
        self.kubectl = kubectl
        self.credentials = credentials
        self.kube_config_manager = kube_config_manager
        self.container_helper = container_helper
        self.resource_manager = resource_manager
        self.on_message = on_message or (lambda message: None)
        self.rollout = RolloutVerifier(kubectl, poll_interval, poll_timeout, rollout_timeout)
        self.endpoint_resolver = EndpointResolver(kubectl, poll_interval, poll_timeout)

    def required_external_tools(self) -> list[ToolDetector]:
        """Detectors for the tools a deploy needs."""
        return [DockerDetector(), AzCliDetector(), KubectlDetector()]

    def initialize(self, service_config: ServiceConfig) -> None:
        """Hook the cluster context bootstrap into the service lifecycle.

        Runs after provisioning so later hooks can use kubectl, and before
        deploy so the context exists by the time manifests are applied.

        Raises:
            ConfigurationError: A handler could not be registered.
        """

        async def on_postprovision() -> None:
            await self.set_k8s_context(service_config, POSTPROVISION_EVENT)

        async def on_predeploy() -> None:
            await self.set_k8s_context(service_config, PREDEPLOY_EVENT)

        if service_config.project is not None:
            try:
                service_config.project.add_handler(POSTPROVISION_EVENT, on_postprovision)
            except ValueError as e:
                raise ConfigurationError(message=f"failed adding postprovision handler, {e}") from e
        try:
            service_config.add_handler(PREDEPLOY_EVENT, on_predeploy)
        except ValueError as e:
            raise ConfigurationError(message=f"failed adding predeploy handler, {e}") from e

    async def set_k8s_context(self, service_config: ServiceConfig, event: str) -> ContextResult:
        """Run the cluster context bootstrap for a service."""
        self.kubectl.set_env(self.env.dotenv())
        kube_config_override = self.env.getenv(KUBECONFIG_ENV_VAR)
        cluster_name, _ = self.env.lookup_env(AKS_CLUSTER_ENV_VAR)

        target_resource = self.resource_manager.get_target_resource(
            self.env.get_subscription_id(), service_config
        )
        bootstrapper = ClusterContextBootstrapper(
            self.kubectl,
            self.credentials,
            self.kube_config_manager,
            ContextSettings(
                namespace=service_config.namespace,
                kube_config_override=kube_config_override or None,
                cluster_name=cluster_name or None,
            ),
        )
        result = await asyncio.to_thread(bootstrapper.run, target_resource)

        # Standard deploys should not need a custom KUBECONFIG
        if result.used_override and event == PREDEPLOY_EVENT:
            self.on_message(f"Using KUBECONFIG @ {kube_config_override}")
        return result

    async def package(
        self,
        service_config: ServiceConfig,
        package: ServicePackageResult,
    ) -> ServicePackageResult:
        """The image built by the package step is deployed as is."""
        return package

    def validate_target_resource(self, target_resource: TargetResource) -> None:
        if not target_resource.resource_group_name:
            raise ConfigurationError(
                message="missing resource group name",
                hint="set resourceGroup in the project file or AZURE_RESOURCE_GROUP in the environment",
            )

    async def deploy(
        self,
        service_config: ServiceConfig,
        package: ServicePackageResult | None,
        target_resource: TargetResource,
        progress: ProgressChannel | None = None,
        cancel: asyncio.Event | None = None,
    ) -> DeployResult:
        """Deploy a packaged service to the cluster.

        Raises:
            ConfigurationError: Missing resource group or package.
            DeployError: Any step failed.
        """
        progress = progress or ProgressChannel()

        try:
            self.validate_target_resource(target_resource)
        except ConfigurationError as e:
            raise ConfigurationError(message=f"validating target resource: {e.message}", hint=e.hint) from e
        if package is None:
            raise ConfigurationError(message="missing package output", hint="package the service before deploying")

        progress.publish("Pushing container image")
        await self.container_helper.deploy(service_config, package, target_resource, progress)

        # Manifests may reference values written by the push
        self.kubectl.set_env(self.env.dotenv())

        progress.publish("Applying k8s manifests")
        try:
            await asyncio.to_thread(self.kubectl.apply, service_config.deployment_path)
        except KubectlError as e:
            raise ManifestApplyError(message=f"failed applying kube manifests: {e.message}") from e

        # A deploy does not have to contain a deployment object
        progress.publish("Verifying deployment")
        deployment: Deployment | None
        try:
            deployment = await self.rollout.verify(service_config.deployment_name, cancel)
        except ResourceNotFoundError:
            logger.info("no deployment found", name_filter=service_config.deployment_name)
            deployment = None

        progress.publish("Fetching endpoints for AKS service")
        endpoints = await self.endpoints(service_config, target_resource, cancel)

        if endpoints:
            # The last endpoint is the most publicly exposed one
            self.env.set_service_property(service_config.name, ENDPOINT_URL_PROPERTY, endpoint_url(endpoints[-1]))
            try:
                self.env.save()
            except EnvironmentSaveError as e:
                raise EnvironmentSaveError(
                    message=f"failed updating environment with endpoint url, {e.message}"
                ) from e

        return DeployResult(
            package=package,
            target_resource_id=kubernetes_service_rid(
                target_resource.subscription_id,
                target_resource.resource_group_name,
                target_resource.resource_name,
            ),
            details=deployment,
            endpoints=endpoints,
        )

    async def endpoints(
        self,
        service_config: ServiceConfig,
        target_resource: TargetResource,
        cancel: asyncio.Event | None = None,
    ) -> list[str]:
        """Service endpoints followed by ingress endpoints."""
        return await self.endpoint_resolver.resolve(
            service_config.service_name,
            service_config.ingress_name,
            service_config.k8s.ingress.relative_path,
            cancel,
        )
