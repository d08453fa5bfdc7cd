"""Target resource resolution from environment values."""

from __future__ import annotations

from ..environment import AKS_CLUSTER_ENV_VAR, RESOURCE_GROUP_ENV_VAR, Environment
from ..errors import ConfigurationError
from .models import ServiceConfig, TargetResource


class EnvironmentResourceManager:
    """Resolve the cluster a service deploys to.

    The resource group comes from the project file or ``AZURE_RESOURCE_GROUP``;
    the cluster name from the service ``resourceName`` or
    ``AZURE_AKS_CLUSTER_NAME``. The resource group may be empty here: deploy
    validation reports it.
    """

    def __init__(self, env: Environment):
        self.env = env

    def get_target_resource(self, subscription_id: str, service_config: ServiceConfig) -> TargetResource:
        if not subscription_id:
            raise ConfigurationError(
                message="could not determine Azure subscription",
                hint="set AZURE_SUBSCRIPTION_ID in the environment",
            )
        project = service_config.project
        resource_group = (project.resource_group if project else "") or self.env.getenv(RESOURCE_GROUP_ENV_VAR)
        resource_name = service_config.resource_name or self.env.getenv(AKS_CLUSTER_ENV_VAR)
        return TargetResource(
            subscription_id=subscription_id,
            resource_group_name=resource_group,
            resource_name=resource_name,
        )
