"""Configuration management.

Handles deployer settings stored in ~/.aks-deployer/config.yaml (with
environment variable overrides) and the YAML project file describing the
services to deploy.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigurationError
from .shared.logging import get_logger
from .shared.paths import CONFIG_FILE, PROJECT_FILE
from .target.models import AksOptions, ProjectConfig, ServiceConfig

logger = get_logger(__name__)

# Default values
DEFAULT_POLL_INTERVAL = 10.0
DEFAULT_POLL_TIMEOUT = 600.0
DEFAULT_PROGRESS_BUFFER = 100

# Environment variable mappings
ENV_VARS = {
    "poll_interval": "AKS_DEPLOYER_POLL_INTERVAL",
    "poll_timeout": "AKS_DEPLOYER_POLL_TIMEOUT",
    "rollout_timeout": "AKS_DEPLOYER_ROLLOUT_TIMEOUT",
}

_NUMERIC_KEYS = ("poll_interval", "poll_timeout", "rollout_timeout")


@dataclass
class DeployerSettings:
    """Polling and progress settings."""

    poll_interval: float = DEFAULT_POLL_INTERVAL
    poll_timeout: float = DEFAULT_POLL_TIMEOUT
    # None lets ``kubectl rollout status`` block until it returns
    rollout_timeout: float | None = None
    progress_buffer: int = DEFAULT_PROGRESS_BUFFER


def get_config_path() -> Path:
    """Get the settings file path.

    Returns:
        Path to ~/.aks-deployer/config.yaml
    """
    return CONFIG_FILE


def load_settings(config_path: Path | None = None) -> DeployerSettings:
    """Load deployer settings.

    Precedence (highest to lowest):
    1. Environment variables
    2. Settings file (~/.aks-deployer/config.yaml)
    3. Defaults

    Raises:
        ConfigurationError: A value is not a number or a valid buffer size.
    """
    settings = DeployerSettings()

    path = config_path or get_config_path()
    if path.exists():
        try:
            with open(path) as f:
                file_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.warning("ignoring unreadable settings file", path=str(path), error=str(e))
            file_config = {}

        for key in _NUMERIC_KEYS:
            if key in file_config:
                setattr(settings, key, _as_float(key, file_config[key], str(path)))
        if "progress_buffer" in file_config:
            settings.progress_buffer = _as_buffer_size(file_config["progress_buffer"], str(path))

    for key, env_var in ENV_VARS.items():
        if os.environ.get(env_var):
            setattr(settings, key, _as_float(key, os.environ[env_var], env_var))

    logger.debug(
        "settings loaded",
        poll_interval=settings.poll_interval,
        poll_timeout=settings.poll_timeout,
        rollout_timeout=settings.rollout_timeout,
        progress_buffer=settings.progress_buffer,
    )
    return settings


def _as_float(key: str, value: Any, origin: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            message=f"invalid value for '{key}' in {origin}: {value!r}",
            hint="Use a number of seconds",
        ) from e


def _as_buffer_size(value: Any, origin: str) -> int:
    # YAML booleans load as bool, an int subclass
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    if isinstance(value, str) and value.strip().isdigit() and int(value) > 0:
        return int(value)
    raise ConfigurationError(
        message=f"invalid value for 'progress_buffer' in {origin}: {value!r}",
        hint="Use a positive whole number of progress messages",
    )


def find_project_file(start: Path | None = None) -> Path:
    """Find the project file in ``start`` or one of its parents.

    Raises:
        ConfigurationError: No project file exists.
    """
    current = (start or Path.cwd()).resolve()
    for directory in [current, *current.parents]:
        candidate = directory / PROJECT_FILE
        if candidate.exists():
            return candidate
    raise ConfigurationError(
        message=f"no {PROJECT_FILE} found in {current} or its parents",
        hint="Run from the project directory or pass --project",
    )


def load_project(path: Path) -> ProjectConfig:
    """Load a project file.

    Example::

        name: todo
        resourceGroup: rg-todo
        services:
          api:
            project: ./src/api
            image: todo-api:latest
            k8s:
              deploymentPath: manifests
              ingress:
                relativePath: /api

    Raises:
        ConfigurationError: The file is missing, invalid YAML or lacks a name.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise ConfigurationError(message=f"project file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            message=f"failed parsing project file {path}: {e}",
            hint="Ensure the project file is valid yaml",
        ) from e

    if not isinstance(data, dict) or not data.get("name"):
        raise ConfigurationError(
            message=f"project file {path} is missing 'name'",
            hint="Add a top-level 'name' to the project file",
        )

    project = ProjectConfig(
        name=str(data["name"]),
        path=path.parent.resolve(),
        resource_group=data.get("resourceGroup") or "",
    )
    for name, service_data in (data.get("services") or {}).items():
        service_data = service_data or {}
        project.services[name] = ServiceConfig(
            name=name,
            relative_path=service_data.get("project") or ".",
            image=service_data.get("image") or "",
            resource_name=service_data.get("resourceName") or "",
            k8s=AksOptions.from_dict(service_data.get("k8s")),
            project=project,
        )
    return project


def get_service(project: ProjectConfig, name: str) -> ServiceConfig:
    """Look up a service by name.

    Raises:
        ConfigurationError: The project has no such service.
    """
    if name not in project.services:
        known = ", ".join(sorted(project.services)) or "none"
        raise ConfigurationError(
            message=f"service '{name}' not found in project '{project.name}'",
            hint=f"Known services: {known}",
        )
    return project.services[name]
