"""External tool detection for the AKS target.

Deploying to AKS needs kubectl for the cluster, the Azure CLI for
credentials and registry login, and Docker to push images.
"""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass


@dataclass
class ToolInfo:
    """Tool detection result."""

    name: str
    available: bool
    version: str | None = None
    error: str | None = None


class ToolDetector:
    """Detect a command line tool by running its version command."""

    name: str = ""
    version_args: list[str] = []
    install_url: str = ""

    def detect(self) -> ToolInfo:
        """Check the tool is on PATH and responds."""
        if not shutil.which(self.name):
            return ToolInfo(
                name=self.name,
                available=False,
                error=f"{self.name} not found. Install {self.name}: {self.install_url}",
            )

        try:
            result = subprocess.run(
                [self.name, *self.version_args],
                capture_output=True,
                text=True,
                timeout=10,
            )
        except subprocess.TimeoutExpired:
            return ToolInfo(name=self.name, available=False, error=f"{self.name} not responding (timeout)")

        if result.returncode != 0:
            return ToolInfo(
                name=self.name,
                available=False,
                error=f"{self.name} error: {result.stderr.strip()}",
            )
        lines = result.stdout.strip().splitlines()
        return ToolInfo(name=self.name, available=True, version=lines[0] if lines else None)


class KubectlDetector(ToolDetector):
    """Detect kubectl."""

    name = "kubectl"
    version_args = ["version", "--client"]
    install_url = "https://kubernetes.io/docs/tasks/tools/"


class AzCliDetector(ToolDetector):
    """Detect the Azure CLI."""

    name = "az"
    version_args = ["version", "--output", "tsv", "--query", '"azure-cli"']
    install_url = "https://aka.ms/azure-cli"


class DockerDetector(ToolDetector):
    """Detect the Docker client."""

    name = "docker"
    version_args = ["version", "--format", "{{.Client.Version}}"]
    install_url = "https://docs.docker.com/get-docker/"
