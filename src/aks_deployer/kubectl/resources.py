"""Read-only snapshots of the Kubernetes resources the deployer waits on.

Snapshots are parsed from ``kubectl get <kind> -o json`` output. Absent
optional fields take the defaults the API server would report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

SERVICE_TYPE_LOAD_BALANCER = "LoadBalancer"
SERVICE_TYPE_CLUSTER_IP = "ClusterIP"


class ResourceKind(Enum):
    """Resource kinds supported by the poller."""

    DEPLOYMENT = "deployment"
    SERVICE = "svc"
    INGRESS = "ing"


@dataclass
class Metadata:
    """Resource identity."""

    name: str
    namespace: str | None = None
    annotations: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Metadata:
        return cls(
            name=data.get("name", ""),
            namespace=data.get("namespace"),
            annotations=data.get("annotations") or {},
        )


@dataclass
class LoadBalancerIngress:
    """Cluster-assigned external address of a Service or Ingress."""

    ip: str = ""
    hostname: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LoadBalancerIngress:
        return cls(ip=data.get("ip") or "", hostname=data.get("hostname") or "")


def _load_balancer_ingress(status: dict[str, Any]) -> list[LoadBalancerIngress]:
    entries = (status.get("loadBalancer") or {}).get("ingress") or []
    return [LoadBalancerIngress.from_dict(entry) for entry in entries]


# Deployment


@dataclass
class DeploymentSpec:
    replicas: int = 1


@dataclass
class DeploymentStatus:
    available_replicas: int = 0
    ready_replicas: int = 0
    replicas: int = 0
    updated_replicas: int = 0


@dataclass
class Deployment:
    """Deployment snapshot."""

    metadata: Metadata
    spec: DeploymentSpec = field(default_factory=DeploymentSpec)
    status: DeploymentStatus = field(default_factory=DeploymentStatus)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Deployment:
        spec = data.get("spec") or {}
        status = data.get("status") or {}
        return cls(
            metadata=Metadata.from_dict(data.get("metadata") or {}),
            spec=DeploymentSpec(replicas=int(spec.get("replicas", 1))),
            status=DeploymentStatus(
                available_replicas=int(status.get("availableReplicas", 0)),
                ready_replicas=int(status.get("readyReplicas", 0)),
                replicas=int(status.get("replicas", 0)),
                updated_replicas=int(status.get("updatedReplicas", 0)),
            ),
        )


# Service


@dataclass
class ServicePort:
    port: int
    name: str | None = None
    protocol: str = "TCP"
    target_port: int | str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ServicePort:
        return cls(
            port=int(data["port"]),
            name=data.get("name"),
            protocol=data.get("protocol", "TCP"),
            target_port=data.get("targetPort"),
        )


@dataclass
class ServiceSpec:
    type: str = SERVICE_TYPE_CLUSTER_IP
    cluster_ips: list[str] = field(default_factory=list)
    ports: list[ServicePort] = field(default_factory=list)


@dataclass
class ServiceStatus:
    load_balancer_ingress: list[LoadBalancerIngress] = field(default_factory=list)


@dataclass
class Service:
    """Service snapshot."""

    metadata: Metadata
    spec: ServiceSpec = field(default_factory=ServiceSpec)
    status: ServiceStatus = field(default_factory=ServiceStatus)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Service:
        spec = data.get("spec") or {}
        cluster_ips = list(spec.get("clusterIPs") or [])
        if not cluster_ips and spec.get("clusterIP") and spec["clusterIP"] != "None":
            cluster_ips = [spec["clusterIP"]]
        return cls(
            metadata=Metadata.from_dict(data.get("metadata") or {}),
            spec=ServiceSpec(
                type=spec.get("type") or SERVICE_TYPE_CLUSTER_IP,
                cluster_ips=cluster_ips,
                ports=[ServicePort.from_dict(p) for p in spec.get("ports") or []],
            ),
            status=ServiceStatus(
                load_balancer_ingress=_load_balancer_ingress(data.get("status") or {})
            ),
        )


# Ingress


@dataclass
class IngressTLS:
    hosts: list[str] = field(default_factory=list)
    secret_name: str | None = None


@dataclass
class IngressRule:
    host: str | None = None


@dataclass
class IngressSpec:
    tls: list[IngressTLS] = field(default_factory=list)
    rules: list[IngressRule] = field(default_factory=list)
    ingress_class_name: str | None = None


@dataclass
class IngressStatus:
    load_balancer_ingress: list[LoadBalancerIngress] = field(default_factory=list)


@dataclass
class Ingress:
    """Ingress snapshot."""

    metadata: Metadata
    spec: IngressSpec = field(default_factory=IngressSpec)
    status: IngressStatus = field(default_factory=IngressStatus)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Ingress:
        spec = data.get("spec") or {}
        return cls(
            metadata=Metadata.from_dict(data.get("metadata") or {}),
            spec=IngressSpec(
                tls=[
                    IngressTLS(hosts=t.get("hosts") or [], secret_name=t.get("secretName"))
                    for t in spec.get("tls") or []
                ],
                rules=[IngressRule(host=r.get("host") or None) for r in spec.get("rules") or []],
                ingress_class_name=spec.get("ingressClassName"),
            ),
            status=IngressStatus(
                load_balancer_ingress=_load_balancer_ingress(data.get("status") or {})
            ),
        )


Resource = Union[Deployment, Service, Ingress]

_PARSERS = {
    ResourceKind.DEPLOYMENT: Deployment.from_dict,
    ResourceKind.SERVICE: Service.from_dict,
    ResourceKind.INGRESS: Ingress.from_dict,
}


def parse_resource_list(kind: ResourceKind, data: dict[str, Any]) -> list[Resource]:
    """Parse a ``kind: List`` document into snapshots of the given kind."""
    parser = _PARSERS[kind]
    return [parser(item) for item in data.get("items") or []]
