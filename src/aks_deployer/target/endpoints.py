"""Endpoint resolution for services and ingresses.

Endpoints are display strings of the form ``<url>, (<Kind>, Type: <Type>)``.
Order matters: service endpoints come first and ingress endpoints last, and
callers treat the last endpoint as the most public one.
"""

from __future__ import annotations

import asyncio
import posixpath
from urllib.parse import urlsplit, urlunsplit

from ..errors import (
    DeployError,
    EndpointResolutionError,
    OperationCancelledError,
    ResourceNotFoundError,
)
from ..kubectl.cli import KubectlCli
from ..kubectl.resources import (
    SERVICE_TYPE_CLUSTER_IP,
    SERVICE_TYPE_LOAD_BALANCER,
    Ingress,
    ResourceKind,
    Service,
)
from ..kubectl.wait import DEFAULT_POLL_INTERVAL, DEFAULT_POLL_TIMEOUT, name_contains, wait_for_resource
from ..shared.logging import get_logger

logger = get_logger(__name__)


def format_endpoint(url: str, kind: str, resource_type: str) -> str:
    return f"{url}, ({kind}, Type: {resource_type})"


def endpoint_url(endpoint: str) -> str:
    """URL part of an endpoint string (text before the first comma)."""
    return endpoint.split(",", 1)[0]


def url_host(address: str) -> str:
    """Host part of a URL for a hostname or IP; IPv6 literals are bracketed."""
    if ":" in address and not address.startswith("["):
        return f"[{address}]"
    return address


def join_url_path(base_url: str, *elements: str) -> str:
    """Join path elements onto a URL, normalizing duplicate slashes.

    ``join_url_path("http://example.com", "/app")`` is ``http://example.com/app``.
    """
    elements = tuple(e for e in elements if e)
    if not elements:
        return base_url

    parts = urlsplit(base_url)
    path = posixpath.join("/", parts.path, *(e.lstrip("/") for e in elements))
    normalized = posixpath.normpath(path)
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    if path.endswith("/") and normalized != "/":
        normalized += "/"
    return urlunsplit((parts.scheme, parts.netloc, normalized, parts.query, parts.fragment))


def service_ready(service: Service) -> bool:
    """Non load-balancer services are ready immediately; load balancers need an IP."""
    if service.spec.type != SERVICE_TYPE_LOAD_BALANCER:
        return True
    return any(entry.ip for entry in service.status.load_balancer_ingress)


def ingress_ready(ingress: Ingress) -> bool:
    """The ingress load balancer has assigned at least one IP."""
    return any(entry.ip for entry in ingress.status.load_balancer_ingress)


def service_endpoints(service: Service) -> list[str]:
    """Endpoints of a LoadBalancer or ClusterIP service.

    Cluster IPs are paired with ports by position. Cluster IPs beyond the
    number of ports get no endpoint.
    """
    endpoints: list[str] = []
    if service.spec.type == SERVICE_TYPE_LOAD_BALANCER:
        for entry in service.status.load_balancer_ingress:
            if entry.ip:
                url = f"http://{url_host(entry.ip)}"
                endpoints.append(format_endpoint(url, "Service", SERVICE_TYPE_LOAD_BALANCER))
    elif service.spec.type == SERVICE_TYPE_CLUSTER_IP:
        cluster_ips = service.spec.cluster_ips
        ports = service.spec.ports
        if len(cluster_ips) != len(ports):
            logger.warning(
                "cluster IPs and ports differ in length",
                service=service.metadata.name,
                cluster_ips=len(cluster_ips),
                ports=len(ports),
            )
        for ip, port in zip(cluster_ips, ports):
            url = f"http://{url_host(ip)}:{port.port}"
            endpoints.append(format_endpoint(url, "Service", SERVICE_TYPE_CLUSTER_IP))
    return endpoints


def ingress_endpoints(ingress: Ingress, relative_path: str = "") -> list[str]:
    """Endpoints of an ingress, one per load balancer entry.

    Entry ``i`` is paired with rule ``i``: the rule host is used when set,
    otherwise the entry IP. Entries without a matching rule use their IP.
    """
    protocol = "https" if ingress.spec.tls else "http"
    rules = ingress.spec.rules
    if len(rules) != len(ingress.status.load_balancer_ingress):
        logger.warning(
            "ingress rules and load balancer entries differ in length",
            ingress=ingress.metadata.name,
            rules=len(rules),
            entries=len(ingress.status.load_balancer_ingress),
        )

    endpoints: list[str] = []
    for index, entry in enumerate(ingress.status.load_balancer_ingress):
        host = rules[index].host if index < len(rules) else None
        address = host or entry.ip
        if not address:
            continue
        url = join_url_path(f"{protocol}://{url_host(address)}", relative_path)
        endpoints.append(format_endpoint(url, "Ingress", SERVICE_TYPE_LOAD_BALANCER))
    return endpoints


class EndpointResolver:
    """Wait for a service and an ingress and turn them into endpoints."""

    def __init__(
        self,
        kubectl: KubectlCli,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        poll_timeout: float = DEFAULT_POLL_TIMEOUT,
    ):
        self.kubectl = kubectl
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout

    async def wait_for_service(self, name_filter: str, cancel: asyncio.Event | None = None) -> Service:
        return await wait_for_resource(
            self.kubectl,
            ResourceKind.SERVICE,
            name_contains(name_filter),
            service_ready,
            timeout=self.poll_timeout,
            interval=self.poll_interval,
            cancel=cancel,
        )

    async def wait_for_ingress(self, name_filter: str, cancel: asyncio.Event | None = None) -> Ingress:
        return await wait_for_resource(
            self.kubectl,
            ResourceKind.INGRESS,
            name_contains(name_filter),
            ingress_ready,
            timeout=self.poll_timeout,
            interval=self.poll_interval,
            cancel=cancel,
        )

    async def resolve(
        self,
        service_filter: str,
        ingress_filter: str,
        relative_path: str = "",
        cancel: asyncio.Event | None = None,
    ) -> list[str]:
        """Service endpoints followed by ingress endpoints.

        A service or ingress that never appears contributes no endpoints.

        Raises:
            EndpointResolutionError: Any other failure in either branch.
        """
        # Typically internal, cluster-accessible endpoints
        try:
            service = await self.wait_for_service(service_filter, cancel)
            endpoints = service_endpoints(service)
        except ResourceNotFoundError:
            logger.info("no service found", name_filter=service_filter)
            endpoints = []
        except OperationCancelledError:
            raise
        except DeployError as e:
            raise EndpointResolutionError(message=f"failed retrieving service endpoints, {e}") from e

        # Typically publicly accessible endpoints
        try:
            ingress = await self.wait_for_ingress(ingress_filter, cancel)
            endpoints.extend(ingress_endpoints(ingress, relative_path))
        except ResourceNotFoundError:
            logger.info("no ingress found", name_filter=ingress_filter)
        except OperationCancelledError:
            raise
        except DeployError as e:
            raise EndpointResolutionError(message=f"failed retrieving ingress endpoints, {e}") from e

        return endpoints
