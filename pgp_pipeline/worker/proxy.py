"""
Worker transport: runs pipeline operations on a dedicated executor thread.
"""

import asyncio
import functools
import importlib
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any

import structlog

from pgp_pipeline.exceptions import OpenPGPError, WorkerError

logger = structlog.get_logger(__name__)

DEFAULT_WORKER_PATH = "pgp_pipeline.pipeline"


class WorkerProxy:
    """
    Delegates named operations to a pipeline module off the event loop.

    Args:
        path: Dotted path of the module providing the operations.
        executor: Executor to run on. A private single-thread pool is created
            (and owned) when omitted.

    Raises:
        ImportError: If ``path`` cannot be imported.
    """

    def __init__(self, path: str = DEFAULT_WORKER_PATH, executor: Executor | None = None) -> None:
        self._module = importlib.import_module(path)
        self._path = path
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="pgp-worker")
        self._terminated = False

    def __repr__(self) -> str:
        state = "terminated" if self._terminated else "running"
        return f"WorkerProxy(path={self._path!r}, {state})"

    @property
    def path(self) -> str:
        return self._path

    @property
    def is_terminated(self) -> bool:
        return self._terminated

    async def delegate(self, operation: str, arguments: dict[str, Any]) -> Any:
        """
        Run ``operation(**arguments)`` on the worker thread.

        Raises:
            OpenPGPError: Propagated unchanged from the operation.
            WorkerError: If the worker is terminated, the operation is unknown,
                or the call failed with a non-pipeline error.
        """
        if self._terminated:
            msg = "Worker has been terminated"
            raise WorkerError(msg, operation=operation)

        func = getattr(self._module, operation, None)
        allowed = getattr(self._module, "OPERATIONS", None)
        if func is None or (allowed is not None and operation not in allowed):
            msg = "Unknown worker operation"
            raise WorkerError(msg, operation=operation)

        logger.debug("Delegating operation", operation=operation)
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, functools.partial(func, **arguments))
        except OpenPGPError:
            raise
        except Exception as e:
            msg = f"Delegated call failed: {e}"
            raise WorkerError(msg, operation=operation) from e

    def terminate(self) -> None:
        """Refuse further work and shut down an owned executor. Idempotent."""
        if self._terminated:
            return
        self._terminated = True
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
        logger.info("Worker terminated", path=self._path)
