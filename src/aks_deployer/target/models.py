"""Data model for AKS service deployments."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable

from ..kubectl.resources import Deployment

DEFAULT_DEPLOYMENT_PATH = "manifests"

# Lifecycle events the AKS target hooks into
POSTPROVISION_EVENT = "postprovision"
PREDEPLOY_EVENT = "predeploy"

EventHandler = Callable[[], Awaitable[None]]


class EventDispatcher:
    """Named lifecycle events with async handlers.

    Subclasses provide a ``_handlers`` dict.
    """

    _handlers: dict[str, list[EventHandler]]

    def add_handler(self, event: str, handler: EventHandler) -> None:
        """Register ``handler`` for ``event``.

        Raises:
            ValueError: The same handler is already registered for the event.
        """
        handlers = self._handlers.setdefault(event, [])
        if handler in handlers:
            raise ValueError(f"handler already registered for event '{event}'")
        handlers.append(handler)

    async def raise_event(self, event: str) -> None:
        """Run the handlers of ``event`` in registration order."""
        for handler in self._handlers.get(event, []):
            await handler()


@dataclass
class AksIngressOptions:
    name: str = ""
    relative_path: str = ""


@dataclass
class AksDeploymentOptions:
    name: str = ""


@dataclass
class AksServiceOptions:
    name: str = ""


@dataclass
class AksOptions:
    """Kubernetes options of a service (all optional)."""

    # Namespace for the k8s resources; defaults to the project name
    namespace: str = ""
    # Folder with the manifests, relative to the service; defaults to "manifests"
    deployment_path: str = ""
    ingress: AksIngressOptions = field(default_factory=AksIngressOptions)
    deployment: AksDeploymentOptions = field(default_factory=AksDeploymentOptions)
    service: AksServiceOptions = field(default_factory=AksServiceOptions)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> AksOptions:
        data = data or {}
        ingress = data.get("ingress") or {}
        return cls(
            namespace=data.get("namespace") or "",
            deployment_path=data.get("deploymentPath") or "",
            ingress=AksIngressOptions(
                name=ingress.get("name") or "",
                relative_path=ingress.get("relativePath") or "",
            ),
            deployment=AksDeploymentOptions(name=(data.get("deployment") or {}).get("name") or ""),
            service=AksServiceOptions(name=(data.get("service") or {}).get("name") or ""),
        )


@dataclass
class ProjectConfig(EventDispatcher):
    """A project: a named set of services sharing infrastructure."""

    name: str
    path: Path = field(default_factory=Path.cwd)
    resource_group: str = ""
    services: dict[str, ServiceConfig] = field(default_factory=dict)
    _handlers: dict[str, list[EventHandler]] = field(default_factory=dict, repr=False)


@dataclass
class ServiceConfig(EventDispatcher):
    """A deployable service of a project."""

    name: str
    relative_path: str = "."
    image: str = ""
    resource_name: str = ""
    k8s: AksOptions = field(default_factory=AksOptions)
    project: ProjectConfig | None = field(default=None, repr=False, compare=False)
    _handlers: dict[str, list[EventHandler]] = field(default_factory=dict, repr=False)

    @property
    def path(self) -> Path:
        """Absolute service directory."""
        base = self.project.path if self.project else Path.cwd()
        return base / self.relative_path

    @property
    def namespace(self) -> str:
        if self.k8s.namespace:
            return self.k8s.namespace
        return self.project.name if self.project else self.name

    @property
    def deployment_path(self) -> Path:
        return self.path / (self.k8s.deployment_path or DEFAULT_DEPLOYMENT_PATH)

    @property
    def deployment_name(self) -> str:
        return self.k8s.deployment.name or self.name

    @property
    def service_name(self) -> str:
        return self.k8s.service.name or self.name

    @property
    def ingress_name(self) -> str:
        return self.k8s.ingress.name or self.name


@dataclass
class TargetResource:
    """Cloud resource a service deploys to."""

    subscription_id: str
    resource_group_name: str
    resource_name: str
    resource_type: str = "Microsoft.ContainerService/managedClusters"


@dataclass
class ServicePackageResult:
    """Output of the package step: the locally built image to push."""

    image: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class DeployResult:
    """Aggregate outcome of a deploy."""

    package: ServicePackageResult
    target_resource_id: str
    kind: str = "aks"
    details: Deployment | None = None
    endpoints: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "package": self.package.image,
            "targetResourceId": self.target_resource_id,
            "kind": self.kind,
            "deployment": self.details.metadata.name if self.details else None,
            "endpoints": list(self.endpoints),
        }
