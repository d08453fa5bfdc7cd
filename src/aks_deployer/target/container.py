"""Container image push to the project registry."""

from __future__ import annotations

import asyncio
import subprocess
from typing import Protocol

from ..environment import CONTAINER_REGISTRY_ENV_VAR, Environment
from ..errors import ConfigurationError, ContainerDeployError
from ..shared.logging import get_logger
from .models import ServiceConfig, ServicePackageResult, TargetResource
from .progress import ProgressChannel

logger = get_logger(__name__)


class ContainerHelper(Protocol):
    async def deploy(
        self,
        service_config: ServiceConfig,
        package: ServicePackageResult,
        target_resource: TargetResource,
        progress: ProgressChannel | None = None,
    ) -> str: ...


class DockerContainerHelper:
    """Log in to the registry, tag the local image and push it."""

    def __init__(self, env: Environment, timeout: float = 1800.0):
        """Initialize the helper.

        Args:
            env: Environment holding the registry endpoint.
            timeout: Timeout for each docker/az call in seconds.
        """
        self.env = env
        self.timeout = timeout

    def remote_image(self, service_config: ServiceConfig, package: ServicePackageResult) -> str:
        """Registry-qualified name of the image, e.g. ``cr.azurecr.io/todo/api:latest``."""
        registry = self.env.getenv(CONTAINER_REGISTRY_ENV_VAR)
        if not registry:
            raise ConfigurationError(
                message="could not determine container registry endpoint",
                hint=f"ensure {CONTAINER_REGISTRY_ENV_VAR} is set as an output of your infrastructure",
            )
        name = package.image.rsplit("/", 1)[-1]
        tag = name.split(":", 1)[1] if ":" in name else "latest"
        project = service_config.project.name if service_config.project else service_config.name
        return f"{registry}/{project}/{service_config.name}-{self.env.name}:{tag}"

    def _run(self, cmd: list[str]) -> None:
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise ContainerDeployError(message=f"{cmd[0]} not found") from e
        except subprocess.TimeoutExpired as e:
            raise ContainerDeployError(message=f"{' '.join(cmd[:2])} timed out") from e
        if result.returncode != 0:
            raise ContainerDeployError(message=f"{' '.join(cmd[:2])} failed: {result.stderr.strip()}")

    async def deploy(
        self,
        service_config: ServiceConfig,
        package: ServicePackageResult,
        target_resource: TargetResource,
        progress: ProgressChannel | None = None,
    ) -> str:
        remote = self.remote_image(service_config, package)
        registry = remote.split("/", 1)[0]
        registry_name = registry.split(".", 1)[0]

        steps = [
            ("Logging into container registry", ["az", "acr", "login", "--name", registry_name]),
            ("Tagging container image", ["docker", "tag", package.image, remote]),
            ("Uploading image to container registry", ["docker", "push", remote]),
        ]
        for label, cmd in steps:
            if progress:
                progress.publish(label)
            await asyncio.to_thread(self._run, cmd)

        # Manifests reference the pushed image through this value
        self.env.set_service_property(service_config.name, "IMAGE_NAME", remote)
        logger.info("image pushed", image=remote, resource_group=target_resource.resource_group_name)
        return remote
