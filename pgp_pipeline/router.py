"""
Execution router: run a pipeline operation in-process or on the worker.
"""

import asyncio
from collections.abc import Callable
from typing import Any

import structlog

from pgp_pipeline import pipeline
from pgp_pipeline.config import OpenPGPConfig
from pgp_pipeline.crypto.capability import native_aead
from pgp_pipeline.worker.registry import WorkerRegistry

logger = structlog.get_logger(__name__)

# Only these depend on the native authenticated-encryption capability.
CAPABILITY_DEPENDENT = frozenset({"encrypt", "decrypt"})


class ExecutionRouter:
    """
    Decides, per call, where an operation runs.

    An operation is delegated when a worker is registered and either it does
    not depend on native AEAD, or native AEAD is unavailable. The decision is
    recomputed on every call. Local operations run in a thread so blocking
    key and cipher work does not stall the event loop.

    Args:
        registry: Source of the current worker handle.
        capability: Predicate over the call's config reporting native AEAD support.
    """

    def __init__(
        self, registry: WorkerRegistry, capability: Callable[[OpenPGPConfig], bool] = native_aead
    ) -> None:
        self._registry = registry
        self._capability = capability

    def should_delegate(self, operation: str, config: OpenPGPConfig) -> bool:
        if self._registry.get() is None:
            return False
        if operation not in CAPABILITY_DEPENDENT:
            return True
        return not self._capability(config)

    async def route(self, operation: str, arguments: dict[str, Any], config: OpenPGPConfig) -> Any:
        worker = self._registry.get()
        delegated = worker is not None and self.should_delegate(operation, config)
        logger.debug("Routing operation", operation=operation, delegated=delegated)
        if delegated:
            return await worker.delegate(operation, arguments)
        return await asyncio.to_thread(getattr(pipeline, operation), **arguments)
