"""Generic wait-for-resource polling.

Every readiness check in the deployer goes through ``wait_for_resource``: the
caller supplies a kind plus a match predicate (is this the resource I want?) and
a ready predicate (may polling stop?).
"""

from __future__ import annotations

import asyncio
from typing import Callable, Protocol, TypeVar

from ..errors import (
    DeployError,
    OperationCancelledError,
    ResourceNotFoundError,
    ResourceNotReadyError,
    ResourceWaitError,
)
from ..shared.logging import get_logger
from .resources import Resource, ResourceKind

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL = 10.0
DEFAULT_POLL_TIMEOUT = 600.0

T = TypeVar("T")


class ResourceReader(Protocol):
    """Anything that can list resources of a kind (KubectlCli does)."""

    def get_resources(self, kind: ResourceKind) -> list[Resource]: ...


def name_contains(name_filter: str) -> Callable[[Resource], bool]:
    """Match predicate selecting resources whose name contains ``name_filter``."""

    def match(resource: Resource) -> bool:
        return name_filter in resource.metadata.name

    return match


async def _fetch(reader: ResourceReader, kind: ResourceKind) -> list[Resource]:
    try:
        return await asyncio.to_thread(reader.get_resources, kind)
    except ResourceNotFoundError:
        # The kind itself may not be served yet; same as an empty list
        return []
    except DeployError as e:
        raise ResourceWaitError(message=f"failed waiting for resource '{kind.value}': {e}") from e


async def _pause(seconds: float, cancel: asyncio.Event | None) -> None:
    if seconds <= 0:
        return
    if cancel is None:
        await asyncio.sleep(seconds)
        return
    try:
        await asyncio.wait_for(cancel.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        pass


async def wait_for_resource(
    reader: ResourceReader,
    kind: ResourceKind,
    match: Callable[[T], bool],
    ready: Callable[[T], bool],
    *,
    timeout: float = DEFAULT_POLL_TIMEOUT,
    interval: float = DEFAULT_POLL_INTERVAL,
    cancel: asyncio.Event | None = None,
) -> T:
    """Poll until a resource of ``kind`` matches and is ready.

    Each cycle is a fresh list call. No match is not an error while the
    deadline has not passed: the resource may simply not exist yet.

    Args:
        reader: Resource reader (usually KubectlCli).
        kind: Kind to list.
        match: Predicate selecting the wanted resource.
        ready: Predicate deciding whether polling may stop.
        timeout: Overall deadline in seconds.
        interval: Delay between cycles in seconds.
        cancel: Optional cancellation token checked between cycles.

    Returns:
        The first matching resource that is ready.

    Raises:
        ResourceNotFoundError: Nothing matched before the deadline.
        ResourceNotReadyError: Something matched but never became ready.
        ResourceWaitError: Listing failed for another reason.
        OperationCancelledError: The cancellation token was set.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    seen: str | None = None
    attempt = 0

    while True:
        if cancel is not None and cancel.is_set():
            raise OperationCancelledError(message=f"waiting for '{kind.value}' was cancelled")

        attempt += 1
        matches = [resource for resource in await _fetch(reader, kind) if match(resource)]
        for resource in matches:
            if ready(resource):
                logger.debug("resource ready", kind=kind.value, name=resource.metadata.name, attempts=attempt)
                return resource
        if matches:
            seen = matches[0].metadata.name

        remaining = deadline - loop.time()
        if remaining <= 0:
            if seen is None:
                raise ResourceNotFoundError(
                    message=f"cannot find resource for '{kind.value}'",
                    kind=kind.value,
                )
            raise ResourceNotReadyError(
                message=f"resource '{seen}' of kind '{kind.value}' did not become ready in {timeout:.0f}s",
                kind=kind.value,
                name=seen,
            )

        logger.debug("resource not ready", kind=kind.value, matched=seen, attempt=attempt)
        await _pause(min(interval, remaining), cancel)
