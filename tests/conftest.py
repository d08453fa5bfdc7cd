"""Shared test fixtures for aks-deployer tests.

This module provides:
- fake_kubectl / fake_credentials: collaborator doubles
- project / service: a one-service project rooted in tmp_path
- env: an Environment backed by a temp .env file
"""

from __future__ import annotations

from pathlib import Path

import pytest

from aks_deployer.environment import Environment
from aks_deployer.errors import CredentialsError
from aks_deployer.target import AksOptions, ProjectConfig, ServiceConfig
from tests.mocks import FakeCredentials, FakeKubectl

ENV_FILE_CONTENT = (
    "AZURE_SUBSCRIPTION_ID=00000000-0000-0000-0000-000000000000\n"
    "AZURE_AKS_CLUSTER_NAME=aks-todo\n"
    "AZURE_CONTAINER_REGISTRY_ENDPOINT=crtodo.azurecr.io\n"
)


@pytest.fixture(autouse=True)
def clean_azure_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's shell environment out of the tests."""
    for key in (
        "KUBECONFIG",
        "AZURE_AKS_CLUSTER_NAME",
        "AZURE_SUBSCRIPTION_ID",
        "AZURE_RESOURCE_GROUP",
        "AZURE_CONTAINER_REGISTRY_ENDPOINT",
        "AKS_DEPLOYER_ENV",
        "AKS_DEPLOYER_POLL_INTERVAL",
        "AKS_DEPLOYER_POLL_TIMEOUT",
        "AKS_DEPLOYER_ROLLOUT_TIMEOUT",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def fake_kubectl() -> FakeKubectl:
    return FakeKubectl()


@pytest.fixture
def fake_credentials() -> FakeCredentials:
    return FakeCredentials()


@pytest.fixture
def credentials_error() -> CredentialsError:
    return CredentialsError(message="az aks get-credentials failed: AuthorizationFailed")


@pytest.fixture
def project(tmp_path: Path) -> ProjectConfig:
    project = ProjectConfig(name="todo", path=tmp_path, resource_group="rg-todo")
    project.services["api"] = ServiceConfig(
        name="api",
        relative_path="src/api",
        image="todo-api:latest",
        k8s=AksOptions.from_dict({"ingress": {"relativePath": "/api"}}),
        project=project,
    )
    return project


@pytest.fixture
def service(project: ProjectConfig) -> ServiceConfig:
    return project.services["api"]


@pytest.fixture
def env(tmp_path: Path) -> Environment:
    env_file = tmp_path / ".aks-deployer" / "dev" / ".env"
    env_file.parent.mkdir(parents=True)
    env_file.write_text(ENV_FILE_CONTENT)
    return Environment.load("dev", env_file)
