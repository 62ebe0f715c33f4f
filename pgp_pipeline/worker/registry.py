"""
Process-wide worker handle.

The registry is the only shared mutable state in the package. A handle is
replaced wholesale on re-registration, never mutated field by field.
"""

import structlog

from pgp_pipeline.crypto.protocol import WorkerTransport
from pgp_pipeline.worker.proxy import DEFAULT_WORKER_PATH, WorkerProxy

logger = structlog.get_logger(__name__)


class WorkerRegistry:
    """
    Holds at most one worker handle.

    Example:
        ```python
        registry = WorkerRegistry()
        registry.init()
        worker = registry.get()
        registry.destroy()
        assert registry.get() is None
        ```
    """

    def __init__(self) -> None:
        self._worker: WorkerTransport | None = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(worker={self._worker!r})"

    def init(self, path: str | None = None, worker: WorkerTransport | None = None) -> bool:
        """
        Register a worker.

        Args:
            path: Dotted module path for a new WorkerProxy.
            worker: Ready-made transport; takes precedence over ``path``.

        Returns:
            True on success, False when the worker could not be created.
        """
        if worker is None:
            try:
                worker = WorkerProxy(path or DEFAULT_WORKER_PATH)
            except ImportError as e:
                logger.warning("Worker initialisation failed", path=path, error_type=type(e).__name__)
                return False
        self._worker = worker
        logger.info("Worker registered", worker=repr(worker))
        return True

    def get(self) -> WorkerTransport | None:
        return self._worker

    def destroy(self) -> None:
        """Terminate the current handle and drop the reference."""
        if self._worker is None:
            return
        worker, self._worker = self._worker, None
        worker.terminate()
        logger.info("Worker destroyed")


default_registry = WorkerRegistry()
