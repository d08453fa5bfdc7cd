"""Unit tests for the wait-for-resource poller."""

from __future__ import annotations

import asyncio

import pytest

from aks_deployer.errors import (
    OperationCancelledError,
    ResourceNotFoundError,
    ResourceNotReadyError,
    ResourceWaitError,
)
from aks_deployer.kubectl import ResourceKind, name_contains, wait_for_resource
from tests.mocks import FakeKubectl, deployment, ingress, kubectl_failure

FAST = {"timeout": 0.05, "interval": 0.01}


def always(_resource) -> bool:
    return True


def fully_available(d) -> bool:
    return d.status.available_replicas == d.spec.replicas


class TestNameContains:
    """Tests for the name match predicate."""

    def test_substring_match(self):
        """Test filter matches any name containing it."""
        match = name_contains("api")
        assert match(deployment("todo-api-7f9c"))
        assert not match(deployment("todo-web"))

    def test_empty_filter_matches_everything(self):
        """Test empty filter is a substring of every name."""
        assert name_contains("")(deployment("anything"))


class TestWaitForResource:
    """Tests for wait_for_resource."""

    @pytest.mark.asyncio
    async def test_returns_first_ready_match(self):
        """Test the first matching ready resource is returned."""
        kubectl = FakeKubectl()
        kubectl.script(
            ResourceKind.DEPLOYMENT,
            [deployment("web", 1, 1), deployment("api-a", 2, 1), deployment("api-b", 2, 2)],
        )

        result = await wait_for_resource(
            kubectl, ResourceKind.DEPLOYMENT, name_contains("api"), fully_available, **FAST
        )

        assert result.metadata.name == "api-b"
        assert kubectl.calls == [("get", ResourceKind.DEPLOYMENT)]

    @pytest.mark.asyncio
    async def test_keeps_polling_until_resource_appears(self):
        """Test an absent resource is not an error before the deadline."""
        kubectl = FakeKubectl()
        kubectl.script(ResourceKind.DEPLOYMENT, [], [], [deployment("api", 1, 1)])

        result = await wait_for_resource(
            kubectl,
            ResourceKind.DEPLOYMENT,
            name_contains("api"),
            fully_available,
            timeout=5,
            interval=0.01,
        )

        assert result.metadata.name == "api"
        assert len(kubectl.calls) == 3

    @pytest.mark.asyncio
    async def test_keeps_polling_until_ready(self):
        """Test a matched but unready resource is polled again."""
        kubectl = FakeKubectl()
        kubectl.script(
            ResourceKind.DEPLOYMENT,
            [deployment("api", 3, 1)],
            [deployment("api", 3, 2)],
            [deployment("api", 3, 3)],
        )

        result = await wait_for_resource(
            kubectl,
            ResourceKind.DEPLOYMENT,
            name_contains("api"),
            fully_available,
            timeout=5,
            interval=0.01,
        )

        assert result.status.available_replicas == 3
        assert len(kubectl.calls) == 3

    @pytest.mark.asyncio
    async def test_not_found_when_nothing_matches(self):
        """Test deadline with no match raises ResourceNotFoundError."""
        kubectl = FakeKubectl()
        kubectl.script(ResourceKind.DEPLOYMENT, [deployment("web", 1, 1)])

        with pytest.raises(ResourceNotFoundError) as exc_info:
            await wait_for_resource(kubectl, ResourceKind.DEPLOYMENT, name_contains("api"), always, **FAST)

        assert exc_info.value.kind == "deployment"
        assert len(kubectl.calls) >= 2

    @pytest.mark.asyncio
    async def test_not_ready_when_match_never_ready(self):
        """Test deadline with an unready match raises ResourceNotReadyError."""
        kubectl = FakeKubectl()
        kubectl.script(ResourceKind.DEPLOYMENT, [deployment("api", 2, 1)])

        with pytest.raises(ResourceNotReadyError) as exc_info:
            await wait_for_resource(
                kubectl, ResourceKind.DEPLOYMENT, name_contains("api"), fully_available, **FAST
            )

        assert exc_info.value.name == "api"
        assert not isinstance(exc_info.value, ResourceNotFoundError)

    @pytest.mark.asyncio
    async def test_zero_timeout_makes_one_attempt(self):
        """Test a zero deadline still lists once."""
        kubectl = FakeKubectl()

        with pytest.raises(ResourceNotFoundError):
            await wait_for_resource(
                kubectl, ResourceKind.SERVICE, always, always, timeout=0, interval=0.01
            )

        assert kubectl.calls == [("get", ResourceKind.SERVICE)]

    @pytest.mark.asyncio
    async def test_reader_not_found_counts_as_empty(self):
        """Test a not-found listing is treated as no resources yet."""
        kubectl = FakeKubectl()
        kubectl.script(
            ResourceKind.INGRESS,
            ResourceNotFoundError(message="the server doesn't have a resource type"),
            [ingress("api", ["20.1.2.3"], ["example.com"])],
        )

        result = await wait_for_resource(
            kubectl, ResourceKind.INGRESS, name_contains("api"), always, timeout=5, interval=0.01
        )

        assert result.metadata.name == "api"

    @pytest.mark.asyncio
    async def test_listing_failure_is_wrapped(self):
        """Test transport errors abort the wait."""
        kubectl = FakeKubectl()
        kubectl.script(ResourceKind.SERVICE, kubectl_failure("connection refused"))

        with pytest.raises(ResourceWaitError) as exc_info:
            await wait_for_resource(kubectl, ResourceKind.SERVICE, always, always, timeout=5, interval=0.01)

        assert "connection refused" in str(exc_info.value)
        assert len(kubectl.calls) == 1

    @pytest.mark.asyncio
    async def test_cancel_before_first_cycle(self):
        """Test a set token stops polling before listing."""
        kubectl = FakeKubectl()
        cancel = asyncio.Event()
        cancel.set()

        with pytest.raises(OperationCancelledError):
            await wait_for_resource(kubectl, ResourceKind.DEPLOYMENT, always, always, cancel=cancel)

        assert kubectl.calls == []

    @pytest.mark.asyncio
    async def test_cancel_between_cycles(self):
        """Test cancelling interrupts the pause between cycles."""
        kubectl = FakeKubectl()
        cancel = asyncio.Event()

        async def cancel_soon():
            await asyncio.sleep(0.05)
            cancel.set()

        canceller = asyncio.create_task(cancel_soon())
        with pytest.raises(OperationCancelledError):
            await asyncio.wait_for(
                wait_for_resource(
                    kubectl,
                    ResourceKind.DEPLOYMENT,
                    name_contains("api"),
                    always,
                    timeout=60,
                    interval=30,
                    cancel=cancel,
                ),
                timeout=5,
            )
        await canceller

        assert len(kubectl.calls) == 1
