"""Environment value store backed by a ``.env`` file.

Values written by infrastructure provisioning (cluster name, registry, ...) are
read from here, and deploy outputs such as service endpoint URLs are written
back.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from .errors import EnvironmentSaveError
from .shared.logging import get_logger

logger = get_logger(__name__)

# Well-known keys
AKS_CLUSTER_ENV_VAR = "AZURE_AKS_CLUSTER_NAME"
SUBSCRIPTION_ID_ENV_VAR = "AZURE_SUBSCRIPTION_ID"
RESOURCE_GROUP_ENV_VAR = "AZURE_RESOURCE_GROUP"
CONTAINER_REGISTRY_ENV_VAR = "AZURE_CONTAINER_REGISTRY_ENDPOINT"

_KEY_CHARS = re.compile(r"[^A-Z0-9_]")


def load_env_file(path: Path) -> dict[str, str]:
    """Parse a .env file into a dict.

    Blank lines and ``#`` comments are skipped, inline comments after a space
    are stripped, and surrounding quotes are removed.
    """
    values: dict[str, str] = {}
    if not path.exists():
        return values

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1].replace('\\"', '"') if value[0] == '"' else value[1:-1]
        elif " #" in value:
            value = value.split(" #", 1)[0].rstrip()
        values[key.strip()] = value
    return values


def _quote(value: str) -> str:
    if value == "" or any(c in value for c in " #\"'"):
        escaped = value.replace('"', '\\"')
        return f'"{escaped}"'
    return value


def service_property_key(service_name: str, key: str) -> str:
    """Key under which a per-service property is stored.

    ``service_property_key("web-api", "ENDPOINT_URL")`` is
    ``SERVICE_WEB_API_ENDPOINT_URL``.
    """
    normalized = _KEY_CHARS.sub("_", service_name.upper())
    return f"SERVICE_{normalized}_{key}"


class Environment:
    """A named deployment environment and its values."""

    def __init__(self, name: str, path: Path, values: dict[str, str] | None = None):
        """Initialize the environment.

        Args:
            name: Environment name.
            path: The .env file backing this environment.
            values: Initial values (default: empty).
        """
        self.name = name
        self.path = path
        self._values: dict[str, str] = dict(values or {})
        self._dirty: dict[str, str] = {}

    @classmethod
    def load(cls, name: str, path: Path) -> Environment:
        """Load an environment from its .env file."""
        return cls(name, path, load_env_file(path))

    def getenv(self, key: str) -> str:
        """Value from the environment, falling back to the process env."""
        return self._values.get(key) or os.environ.get(key, "")

    def lookup_env(self, key: str) -> tuple[str, bool]:
        """Value and whether it was present (env file or process env)."""
        if key in self._values:
            return self._values[key], True
        if key in os.environ:
            return os.environ[key], True
        return "", False

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
        self._dirty[key] = value

    def set_service_property(self, service_name: str, key: str, value: str) -> None:
        """Set a property scoped to a service."""
        self.set(service_property_key(service_name, key), value)

    def get_service_property(self, service_name: str, key: str) -> str:
        return self._values.get(service_property_key(service_name, key), "")

    def get_subscription_id(self) -> str:
        return self.getenv(SUBSCRIPTION_ID_ENV_VAR)

    def dotenv(self) -> dict[str, str]:
        """Copy of the values stored in the .env file."""
        return dict(self._values)

    def save(self) -> Path:
        """Persist changed values.

        The file is re-read first so values written by another process since
        load are kept; keys changed here win.
        """
        try:
            current = load_env_file(self.path)
            current.update(self._dirty)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            lines = [f"{key}={_quote(value)}" for key, value in current.items()]
            self.path.write_text("\n".join(lines) + "\n")
        except OSError as e:
            raise EnvironmentSaveError(message=f"failed saving environment '{self.name}': {e}") from e

        self._values.update(current)
        logger.debug("environment saved", environment=self.name, keys=sorted(self._dirty))
        self._dirty.clear()
        return self.path
