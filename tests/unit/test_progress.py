"""Unit tests for the deploy progress channel."""

from __future__ import annotations

import asyncio

import pytest

from aks_deployer.target import ProgressChannel


class TestProgressChannel:
    """Tests for ProgressChannel."""

    @pytest.mark.asyncio
    async def test_labels_in_order(self):
        channel = ProgressChannel()
        channel.publish("Applying k8s manifests")
        channel.publish("Verifying deployment")
        channel.close()

        assert [label async for label in channel] == ["Applying k8s manifests", "Verifying deployment"]

    @pytest.mark.asyncio
    async def test_full_buffer_drops_new_labels(self):
        """Test publishing never blocks when the buffer is full."""
        channel = ProgressChannel(max_queue_size=2)
        for label in ("a", "b", "c", "d"):
            channel.publish(label)

        assert channel.dropped == 2
        channel.close()
        # The end marker displaces the oldest buffered label
        assert [label async for label in channel] == ["b"]
        assert channel.dropped == 3

    @pytest.mark.asyncio
    async def test_publish_after_close_ignored(self):
        channel = ProgressChannel()
        channel.close()
        channel.publish("late")
        channel.close()

        assert channel.closed
        assert [label async for label in channel] == []

    @pytest.mark.asyncio
    async def test_concurrent_consumer(self):
        """Test a consumer task receives labels as they are published."""
        channel = ProgressChannel()
        received: list[str] = []

        async def consume():
            async for label in channel:
                received.append(label)

        consumer = asyncio.create_task(consume())
        channel.publish("Pushing container image")
        await asyncio.sleep(0)
        channel.publish("Fetching endpoints for AKS service")
        channel.close()
        await asyncio.wait_for(consumer, timeout=1)

        assert received == ["Pushing container image", "Fetching endpoints for AKS service"]
