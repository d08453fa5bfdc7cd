"""Error taxonomy for aks-deployer.

Every failure that crosses a component boundary is one of these. Configuration
errors carry a remediation hint for the user; ``ResourceNotFoundError`` is the
one condition callers are allowed to tolerate.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class DeployError(Exception):
    """Base error class for deploy errors."""

    message: str
    hint: str | None = None

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} ({self.hint})"
        return self.message


@dataclass
class ConfigurationError(DeployError):
    """Missing or invalid user configuration (fatal, user-actionable)."""


@dataclass
class ResourceNotFoundError(DeployError):
    """No resource matching the filter appeared before the deadline."""

    message: str = "Resource not found"
    kind: str = ""
    name_filter: str = ""


@dataclass
class ResourceNotReadyError(DeployError):
    """A matching resource was found but never became ready."""

    message: str = "Resource did not become ready"
    kind: str = ""
    name: str = ""


@dataclass
class OperationCancelledError(DeployError):
    """Polling was cancelled between cycles."""

    message: str = "Operation cancelled"


@dataclass
class KubectlError(DeployError):
    """A kubectl invocation failed."""

    message: str = "kubectl command failed"
    command: list[str] | None = None
    stderr: str = ""
    returncode: int | None = None


@dataclass
class KubeConfigError(DeployError):
    """A kubeconfig document could not be parsed or persisted."""


@dataclass
class CredentialsError(DeployError):
    """Fetching cluster credentials failed."""


@dataclass
class ManifestApplyError(DeployError):
    """Applying the service manifests failed."""


@dataclass
class ResourceWaitError(DeployError):
    """Listing resources failed while waiting for one."""


@dataclass
class EndpointResolutionError(DeployError):
    """Resolving service or ingress endpoints failed."""


@dataclass
class EnvironmentSaveError(DeployError):
    """Persisting environment values failed."""


@dataclass
class ContainerDeployError(DeployError):
    """Tagging or pushing the container image failed."""


@dataclass
class ClusterContextError(DeployError):
    """Cluster context bootstrap failed in a given state."""

    state: str = ""

    def __str__(self) -> str:
        text = f"[{self.state}] {self.message}" if self.state else self.message
        if self.hint:
            return f"{text} ({self.hint})"
        return text
