"""kubectl command wrapper.

Runs kubectl as a subprocess. Every method is blocking; async callers run them
in a worker thread.
"""

from __future__ import annotations

import json
import os
import subprocess
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path

from ..errors import KubectlError, ResourceNotFoundError
from ..shared.logging import get_logger
from .resources import Resource, ResourceKind, parse_resource_list

logger = get_logger(__name__)

KUBECONFIG_ENV_VAR = "KUBECONFIG"

# Markers kubectl prints when the object or type does not exist
_NOT_FOUND_MARKERS = ("NotFound", "the server doesn't have a resource type")


class DryRunType(Enum):
    """Values for ``--dry-run``."""

    NONE = "none"
    CLIENT = "client"
    SERVER = "server"


class OutputType(Enum):
    """Values for ``-o``."""

    JSON = "json"
    YAML = "yaml"


@dataclass
class KubeCliFlags:
    """Common flags appended to a kubectl command."""

    namespace: str | None = None
    dry_run: DryRunType | None = None
    output: OutputType | None = None

    def to_args(self) -> list[str]:
        args: list[str] = []
        if self.namespace:
            args.extend(["-n", self.namespace])
        if self.dry_run and self.dry_run != DryRunType.NONE:
            args.append(f"--dry-run={self.dry_run.value}")
        if self.output:
            args.extend(["-o", self.output.value])
        return args


@dataclass
class CommandResult:
    """Captured output of a successful kubectl call."""

    stdout: str
    stderr: str = ""
    returncode: int = 0


class KubectlCli:
    """Run kubectl commands against the configured cluster."""

    def __init__(
        self,
        kubeconfig: str | None = None,
        env: dict[str, str] | None = None,
        cwd: str | Path | None = None,
        timeout: float | None = None,
    ):
        """Initialize the kubectl wrapper.

        Args:
            kubeconfig: Path to kubeconfig file.
            env: Extra environment variables for every invocation.
            cwd: Working directory for relative manifest paths.
            timeout: Per-command timeout in seconds (None waits forever).
        """
        self.kubeconfig = kubeconfig
        self.env: dict[str, str] = dict(env or {})
        self.cwd = cwd
        self.timeout = timeout

    def set_env(self, env: dict[str, str]) -> None:
        """Merge environment values into the subprocess environment."""
        self.env.update(env)

    def set_kube_config(self, path: str) -> None:
        """Point every subsequent command at the given kubeconfig."""
        self.kubeconfig = path

    def _kubectl_cmd(self) -> list[str]:
        """Build base kubectl command."""
        cmd = ["kubectl"]
        if self.kubeconfig:
            cmd.extend(["--kubeconfig", self.kubeconfig])
        return cmd

    def _run(
        self,
        args: list[str],
        flags: KubeCliFlags | None = None,
        stdin: str | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        cmd = self._kubectl_cmd() + args + (flags.to_args() if flags else [])
        logger.debug("running kubectl", command=cmd)
        try:
            result = subprocess.run(
                cmd,
                input=stdin,
                capture_output=True,
                text=True,
                cwd=self.cwd,
                env={**os.environ, **self.env},
                timeout=timeout or self.timeout,
            )
        except FileNotFoundError as e:
            raise KubectlError(
                message="kubectl not found",
                hint="Install kubectl: https://kubernetes.io/docs/tasks/tools/",
                command=cmd,
            ) from e
        except subprocess.TimeoutExpired as e:
            raise KubectlError(message=f"kubectl timed out: {' '.join(args)}", command=cmd) from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise KubectlError(
                message=f"kubectl {args[0]} failed: {stderr}",
                command=cmd,
                stderr=stderr,
                returncode=result.returncode,
            )
        return CommandResult(result.stdout or "", result.stderr or "", result.returncode)

    def apply(self, path: str | Path, flags: KubeCliFlags | None = None) -> CommandResult:
        """Apply the manifest file or directory at ``path``."""
        return self._run(["apply", "-f", str(path)], flags)

    def apply_with_stdin(self, content: str, flags: KubeCliFlags | None = None) -> CommandResult:
        """Apply manifests passed on stdin."""
        return self._run(["apply", "-f", "-"], flags, stdin=content)

    def create_namespace(self, name: str, flags: KubeCliFlags | None = None) -> CommandResult:
        """Create a namespace (use a client dry-run to only render it)."""
        return self._run(["create", "namespace", name], flags)

    def config_use_context(self, name: str, flags: KubeCliFlags | None = None) -> CommandResult:
        """Switch the current context."""
        return self._run(["config", "use-context", name], flags)

    def rollout_status(
        self,
        deployment_name: str,
        flags: KubeCliFlags | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        """Block until the deployment rollout finishes or fails."""
        return self._run(["rollout", "status", f"deployment/{deployment_name}"], flags, timeout=timeout)

    def get_resources(
        self,
        kind: ResourceKind,
        flags: KubeCliFlags | None = None,
    ) -> list[Resource]:
        """List resources of a kind in the current namespace.

        Raises:
            ResourceNotFoundError: kubectl reports the kind or object does not exist.
            KubectlError: Any other kubectl failure or unparseable output.
        """
        flags = replace(flags or KubeCliFlags(), output=OutputType.JSON)
        try:
            result = self._run(["get", kind.value], flags)
        except KubectlError as e:
            if any(marker in e.stderr for marker in _NOT_FOUND_MARKERS):
                raise ResourceNotFoundError(message=e.message, kind=kind.value) from e
            raise

        try:
            data = json.loads(result.stdout or "{}")
        except json.JSONDecodeError as e:
            raise KubectlError(message=f"failed parsing kubectl output for '{kind.value}': {e}") from e
        return parse_resource_list(kind, data)
