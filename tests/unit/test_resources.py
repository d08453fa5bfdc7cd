"""Unit tests for Kubernetes resource snapshots."""

from __future__ import annotations

from aks_deployer.kubectl import Deployment, Ingress, ResourceKind, Service
from aks_deployer.kubectl.resources import parse_resource_list


class TestDeployment:
    """Tests for Deployment.from_dict."""

    def test_defaults(self):
        """Test absent replica counts take the API defaults."""
        d = Deployment.from_dict({"metadata": {"name": "api"}})

        assert d.spec.replicas == 1
        assert d.status.available_replicas == 0

    def test_status(self):
        d = Deployment.from_dict(
            {
                "metadata": {"name": "api", "namespace": "todo"},
                "spec": {"replicas": 3},
                "status": {"availableReplicas": 2, "readyReplicas": 3, "updatedReplicas": 3, "replicas": 3},
            }
        )

        assert d.metadata.namespace == "todo"
        assert d.spec.replicas == 3
        assert d.status.available_replicas == 2
        assert d.status.ready_replicas == 3


class TestService:
    """Tests for Service.from_dict."""

    def test_type_defaults_to_cluster_ip(self):
        s = Service.from_dict({"metadata": {"name": "api"}, "spec": {}})

        assert s.spec.type == "ClusterIP"
        assert s.spec.cluster_ips == []

    def test_headless_service_has_no_ip(self):
        s = Service.from_dict({"metadata": {"name": "api"}, "spec": {"clusterIP": "None"}})

        assert s.spec.cluster_ips == []

    def test_load_balancer_status(self):
        s = Service.from_dict(
            {
                "metadata": {"name": "api"},
                "spec": {"type": "LoadBalancer", "ports": [{"port": 80, "targetPort": 8080, "name": "http"}]},
                "status": {"loadBalancer": {"ingress": [{"ip": "20.1.2.3"}, {"hostname": "lb.example.com"}]}},
            }
        )

        assert s.spec.ports[0].port == 80
        assert s.spec.ports[0].target_port == 8080
        assert [e.ip for e in s.status.load_balancer_ingress] == ["20.1.2.3", ""]
        assert s.status.load_balancer_ingress[1].hostname == "lb.example.com"


class TestIngress:
    """Tests for Ingress.from_dict."""

    def test_rules_and_tls(self):
        ing = Ingress.from_dict(
            {
                "metadata": {"name": "api"},
                "spec": {
                    "ingressClassName": "webapprouting.kubernetes.azure.com",
                    "tls": [{"hosts": ["todo.example.com"], "secretName": "todo-tls"}],
                    "rules": [{"host": "todo.example.com"}, {"http": {"paths": []}}],
                },
                "status": {"loadBalancer": {"ingress": [{"ip": "20.1.2.3"}]}},
            }
        )

        assert ing.spec.tls[0].secret_name == "todo-tls"
        assert [r.host for r in ing.spec.rules] == ["todo.example.com", None]
        assert ing.status.load_balancer_ingress[0].ip == "20.1.2.3"

    def test_empty_status(self):
        ing = Ingress.from_dict({"metadata": {"name": "api"}, "status": {"loadBalancer": {}}})

        assert ing.status.load_balancer_ingress == []
        assert ing.spec.tls == []


class TestParseResourceList:
    """Tests for parse_resource_list."""

    def test_parses_by_kind(self):
        items = parse_resource_list(ResourceKind.INGRESS, {"items": [{"metadata": {"name": "a"}}]})

        assert isinstance(items[0], Ingress)

    def test_missing_items(self):
        assert parse_resource_list(ResourceKind.DEPLOYMENT, {}) == []
