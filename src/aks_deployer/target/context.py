"""Cluster context bootstrap.

Establishes kubectl access to the target cluster before any deploy:

1. An explicit kubeconfig override short-circuits to the namespace step
2. Otherwise cluster credentials are fetched for the provisioned cluster
3. The first kubeconfig is merged into the kubeconfig store and activated
4. The target namespace is rendered with a client dry-run and applied

Each failure is raised as ``ClusterContextError`` tagged with the last state
reached.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..azure import ManagedClustersService
from ..environment import AKS_CLUSTER_ENV_VAR
from ..errors import (
    ClusterContextError,
    ConfigurationError,
    CredentialsError,
    DeployError,
    KubectlError,
)
from ..kubectl.cli import DryRunType, KubeCliFlags, KubectlCli, OutputType
from ..kubectl.kubeconfig import KubeConfig, KubeConfigManager, parse_kube_config
from ..shared.logging import get_logger
from .models import TargetResource

logger = get_logger(__name__)


class ContextState(Enum):
    """Bootstrap progress."""

    NO_CONFIG = "no_config"
    CREDENTIALS_FETCHED = "credentials_fetched"
    CONTEXT_MERGED = "context_merged"
    NAMESPACE_ENSURED = "namespace_ensured"
    READY = "ready"


@dataclass
class ContextSettings:
    """Explicit inputs of the bootstrap."""

    namespace: str
    # Path from KUBECONFIG; skips credential fetch and merge when set
    kube_config_override: str | None = None
    # Cluster name published by provisioning (AZURE_AKS_CLUSTER_NAME)
    cluster_name: str | None = None


@dataclass
class ContextResult:
    """Outcome of a successful bootstrap."""

    state: ContextState
    kube_config_path: str | None = None
    used_override: bool = False


class ClusterContextBootstrapper:
    """Run the cluster context state machine."""

    def __init__(
        self,
        kubectl: KubectlCli,
        credentials: ManagedClustersService,
        kube_config_manager: KubeConfigManager,
        settings: ContextSettings,
    ):
        self.kubectl = kubectl
        self.credentials = credentials
        self.kube_config_manager = kube_config_manager
        self.settings = settings
        self.state = ContextState.NO_CONFIG

    def run(self, target_resource: TargetResource) -> ContextResult:
        """Bring the cluster context to READY.

        Blocking; async callers run it in a worker thread.

        Raises:
            ClusterContextError: Any step failed.
        """
        self.state = ContextState.NO_CONFIG
        try:
            if self.settings.kube_config_override:
                kube_config_path = self.settings.kube_config_override
                self.kubectl.set_kube_config(kube_config_path)
                used_override = True
                logger.info("using kubeconfig override", path=kube_config_path)
            else:
                kube_config_path = str(self._login(target_resource))
                used_override = False

            self._ensure_namespace(self.settings.namespace)
            self.state = ContextState.NAMESPACE_ENSURED
        except DeployError as e:
            raise ClusterContextError(message=e.message, hint=e.hint, state=self.state.value) from e

        self.state = ContextState.READY
        return ContextResult(self.state, kube_config_path, used_override)

    def _login(self, target_resource: TargetResource) -> Path:
        cluster_name = self.settings.cluster_name
        if not cluster_name:
            raise ConfigurationError(
                message="could not determine AKS cluster",
                hint=f"ensure {AKS_CLUSTER_ENV_VAR} is set as an output of your infrastructure",
            )

        logger.info("getting AKS credentials", cluster=cluster_name)
        try:
            creds = self.credentials.get_user_credentials(
                target_resource.subscription_id,
                target_resource.resource_group_name,
                cluster_name,
            )
        except CredentialsError as e:
            raise CredentialsError(
                message=f"failed retrieving cluster admin credentials, {e.message}",
                hint="Ensure your cluster has been configured to support admin credentials",
            ) from e

        if not creds.kubeconfigs:
            raise ConfigurationError(
                message="cluster credentials is empty",
                hint="Ensure your cluster has been configured to support admin credentials",
            )
        self.state = ContextState.CREDENTIALS_FETCHED

        # Only the first kubeconfig is used
        kube_config = parse_kube_config(creds.kubeconfigs[0])
        path = self._merge_context(cluster_name, kube_config)
        self.state = ContextState.CONTEXT_MERGED
        return path

    def _merge_context(self, cluster_name: str, kube_config: KubeConfig) -> Path:
        if not kube_config.contexts:
            raise ConfigurationError(
                message="cluster credentials contain no context",
                hint="Ensure your configuration is a valid kubeconfig",
            )

        # One context per cluster login, keyed by the cluster name, with the
        # default namespace set so every kubectl call targets it
        context = kube_config.contexts[0]
        context.name = cluster_name
        context.context.namespace = self.settings.namespace
        kube_config.contexts = [context]
        kube_config.current_context = cluster_name

        path = self.kube_config_manager.add_or_update_context(cluster_name, kube_config)
        self.kubectl.set_kube_config(str(path))
        try:
            self.kubectl.config_use_context(cluster_name)
        except KubectlError as e:
            raise KubectlError(
                message=f"failed setting kube context '{cluster_name}', {e.message}",
                hint="Ensure the specified context exists",
                command=e.command,
                stderr=e.stderr,
                returncode=e.returncode,
            ) from e
        return path

    def _ensure_namespace(self, namespace: str) -> None:
        try:
            rendered = self.kubectl.create_namespace(
                namespace,
                KubeCliFlags(dry_run=DryRunType.CLIENT, output=OutputType.YAML),
            )
        except KubectlError as e:
            raise KubectlError(message=f"failed creating kube namespace: {e.message}", stderr=e.stderr) from e

        # Applying the rendered namespace is a no-op when it already exists
        try:
            self.kubectl.apply_with_stdin(rendered.stdout)
        except KubectlError as e:
            raise KubectlError(message=f"failed applying kube namespace: {e.message}", stderr=e.stderr) from e
        logger.info("namespace ensured", namespace=namespace)
