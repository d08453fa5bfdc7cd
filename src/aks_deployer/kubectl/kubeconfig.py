"""Kubeconfig parsing and the persistent kubeconfig store.

Cluster logins are saved as ``~/.kube/<name>`` and upserted into
``~/.kube/config`` keyed by name. Upserts hold ``~/.kube/config.lock`` so
concurrent deploys, in this process or another, never drop each other's entries.
Fields the model does not know about are written back as they were read.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from filelock import FileLock, Timeout

from ..errors import KubeConfigError
from ..shared.logging import get_logger
from ..shared.paths import KUBE_DIR

logger = get_logger(__name__)

DEFAULT_CONFIG_NAME = "config"
LOCK_NAME = "config.lock"
LOCK_TIMEOUT = 60.0

# Top-level keys modelled by KubeConfig; anything else is carried in ``extra``
_KNOWN_KEYS = frozenset(
    {"apiVersion", "kind", "preferences", "clusters", "contexts", "users", "current-context"}
)


@dataclass
class KubeContextData:
    cluster: str = ""
    user: str = ""
    namespace: str | None = None
    # Remaining context fields (extensions, ...) written back untouched
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class KubeContext:
    name: str
    context: KubeContextData = field(default_factory=KubeContextData)


@dataclass
class KubeCluster:
    name: str
    cluster: dict[str, Any] = field(default_factory=dict)


@dataclass
class KubeUser:
    name: str
    user: dict[str, Any] = field(default_factory=dict)


@dataclass
class KubeConfig:
    """Structured kubeconfig document."""

    clusters: list[KubeCluster] = field(default_factory=list)
    contexts: list[KubeContext] = field(default_factory=list)
    users: list[KubeUser] = field(default_factory=list)
    current_context: str = ""
    api_version: str = "v1"
    kind: str = "Config"
    preferences: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KubeConfig:
        contexts = []
        for item in data.get("contexts") or []:
            ctx = item.get("context") or {}
            contexts.append(
                KubeContext(
                    name=item.get("name", ""),
                    context=KubeContextData(
                        cluster=ctx.get("cluster", ""),
                        user=ctx.get("user", ""),
                        namespace=ctx.get("namespace"),
                        extra={k: v for k, v in ctx.items() if k not in ("cluster", "user", "namespace")},
                    ),
                )
            )
        return cls(
            clusters=[
                KubeCluster(name=c.get("name", ""), cluster=c.get("cluster") or {})
                for c in data.get("clusters") or []
            ],
            contexts=contexts,
            users=[KubeUser(name=u.get("name", ""), user=u.get("user") or {}) for u in data.get("users") or []],
            current_context=data.get("current-context") or "",
            api_version=data.get("apiVersion") or "v1",
            kind=data.get("kind") or "Config",
            preferences=data.get("preferences") or {},
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        contexts = []
        for ctx in self.contexts:
            body: dict[str, Any] = {"cluster": ctx.context.cluster, "user": ctx.context.user}
            if ctx.context.namespace:
                body["namespace"] = ctx.context.namespace
            body.update(ctx.context.extra)
            contexts.append({"name": ctx.name, "context": body})
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "preferences": self.preferences,
            "clusters": [{"name": c.name, "cluster": c.cluster} for c in self.clusters],
            "contexts": contexts,
            "users": [{"name": u.name, "user": u.user} for u in self.users],
            "current-context": self.current_context,
            **self.extra,
        }

    def merge(self, other: KubeConfig) -> None:
        """Upsert clusters, users and contexts of ``other`` by name."""
        self.clusters = _upsert(self.clusters, other.clusters)
        self.users = _upsert(self.users, other.users)
        self.contexts = _upsert(self.contexts, other.contexts)


def _upsert(existing: list, incoming: list) -> list:
    merged = {item.name: item for item in existing}
    for item in incoming:
        merged[item.name] = item
    return list(merged.values())


def parse_kube_config(raw: str | bytes) -> KubeConfig:
    """Parse a kubeconfig YAML document.

    Raises:
        KubeConfigError: The content is not a valid kubeconfig mapping.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise KubeConfigError(
            message=f"failed parsing kube config: {e}",
            hint="Ensure your configuration is valid yaml",
        ) from e
    if not isinstance(data, dict):
        raise KubeConfigError(
            message="failed parsing kube config: document is not a mapping",
            hint="Ensure your configuration is valid yaml",
        )
    return KubeConfig.from_dict(data)


class KubeConfigManager:
    """Persistent kubeconfig store."""

    def __init__(self, config_dir: Path | None = None, lock_timeout: float = LOCK_TIMEOUT):
        """Initialize the store.

        Args:
            config_dir: Directory holding kubeconfig files (default: ~/.kube)
            lock_timeout: Seconds to wait for another upsert to release the store
        """
        self.config_dir = config_dir or KUBE_DIR
        self.lock_timeout = lock_timeout

    @property
    def config_path(self) -> Path:
        return self.config_dir / DEFAULT_CONFIG_NAME

    def load(self, name: str = DEFAULT_CONFIG_NAME) -> KubeConfig:
        """Load a kubeconfig from the store (empty config when absent)."""
        path = self.config_dir / name
        if not path.exists():
            return KubeConfig()
        return parse_kube_config(path.read_text())

    def save(self, name: str, config: KubeConfig) -> Path:
        """Write a kubeconfig into the store atomically."""
        path = self.config_dir / name
        self.config_dir.mkdir(parents=True, exist_ok=True)
        content = yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False)
        fd, tmp = tempfile.mkstemp(dir=self.config_dir, prefix=f".{name}.")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(content)
            os.chmod(tmp, 0o600)
            os.replace(tmp, path)
        except OSError as e:
            Path(tmp).unlink(missing_ok=True)
            raise KubeConfigError(message=f"failed writing kube config '{path}': {e}") from e
        return path

    def add_or_update_context(self, name: str, config: KubeConfig) -> Path:
        """Save ``config`` as ``<name>`` and upsert it into the main config.

        Re-running with the same name replaces the previous entries instead of
        adding duplicates.

        Returns:
            Path to the merged main kubeconfig.
        """
        self.config_dir.mkdir(parents=True, exist_ok=True)
        lock_path = self.config_dir / LOCK_NAME
        try:
            with FileLock(str(lock_path), timeout=self.lock_timeout):
                self.save(name, config)
                merged = self.load()
                merged.merge(config)
                path = self.save(DEFAULT_CONFIG_NAME, merged)
        except Timeout as e:
            raise KubeConfigError(
                message=f"timed out waiting for kube config lock '{lock_path}'",
                hint="Another deploy is updating the kube config; retry when it finishes",
            ) from e
        logger.info("kube context merged", context=name, path=str(path))
        return path
