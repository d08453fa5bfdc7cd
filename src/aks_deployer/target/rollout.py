"""Deployment rollout verification."""

from __future__ import annotations

import asyncio

from ..kubectl.cli import KubectlCli
from ..kubectl.resources import Deployment, ResourceKind
from ..kubectl.wait import DEFAULT_POLL_INTERVAL, DEFAULT_POLL_TIMEOUT, name_contains, wait_for_resource
from ..shared.logging import get_logger

logger = get_logger(__name__)


def deployment_ready(deployment: Deployment) -> bool:
    """All desired replicas are available, no more and no fewer."""
    return deployment.status.available_replicas == deployment.spec.replicas


class RolloutVerifier:
    """Wait for a deployment to settle, then confirm its rollout status."""

    def __init__(
        self,
        kubectl: KubectlCli,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        poll_timeout: float = DEFAULT_POLL_TIMEOUT,
        rollout_timeout: float | None = None,
    ):
        self.kubectl = kubectl
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout
        self.rollout_timeout = rollout_timeout

    async def verify(self, name_filter: str, cancel: asyncio.Event | None = None) -> Deployment:
        """Find the deployment whose name contains ``name_filter`` and wait for it.

        A deployment can look ready while the previous revision is still
        serving, so ``kubectl rollout status`` is checked as well. That call may
        block for a long time (e.g. an ImagePullBackOff loop) and its failure is
        raised as is.

        Raises:
            ResourceNotFoundError: No deployment matched before the deadline.
            KubectlError: The rollout status check failed.
        """
        deployment: Deployment = await wait_for_resource(
            self.kubectl,
            ResourceKind.DEPLOYMENT,
            name_contains(name_filter),
            deployment_ready,
            timeout=self.poll_timeout,
            interval=self.poll_interval,
            cancel=cancel,
        )

        name = deployment.metadata.name
        logger.info("checking rollout status", deployment=name)
        await asyncio.to_thread(self.kubectl.rollout_status, name, None, self.rollout_timeout)
        return deployment
