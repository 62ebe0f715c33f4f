from unittest.mock import Mock

from structlog.testing import capture_logs

from pgp_pipeline.worker.proxy import WorkerProxy
from pgp_pipeline.worker.registry import WorkerRegistry


def test_empty_registry_has_no_worker(registry: WorkerRegistry) -> None:
    assert registry.get() is None


def test_init_creates_default_proxy(registry: WorkerRegistry) -> None:
    assert registry.init() is True

    worker = registry.get()
    assert isinstance(worker, WorkerProxy)
    assert worker.path == "pgp_pipeline.pipeline"


def test_init_accepts_ready_made_worker(registry: WorkerRegistry) -> None:
    worker = Mock()

    assert registry.init(worker=worker) is True
    assert registry.get() is worker


def test_init_replaces_existing_handle(registry: WorkerRegistry) -> None:
    first, second = Mock(), Mock()
    registry.init(worker=first)

    registry.init(worker=second)

    assert registry.get() is second


def test_init_with_bad_path_returns_false(registry: WorkerRegistry) -> None:
    with capture_logs() as logs:
        assert registry.init(path="pgp_pipeline.missing_module") is False

    assert registry.get() is None
    assert logs[0]["event"] == "Worker initialisation failed"
    assert logs[0]["log_level"] == "warning"


def test_destroy_terminates_and_clears(registry: WorkerRegistry) -> None:
    worker = Mock()
    registry.init(worker=worker)

    registry.destroy()

    worker.terminate.assert_called_once_with()
    assert registry.get() is None


def test_destroy_without_worker_is_a_no_op(registry: WorkerRegistry) -> None:
    registry.destroy()

    assert registry.get() is None
