from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest

from pgp_pipeline import pipeline
from pgp_pipeline.exceptions import InvalidFormatError, WorkerError
from pgp_pipeline.worker.proxy import DEFAULT_WORKER_PATH, WorkerProxy


def test_defaults_to_pipeline_module() -> None:
    proxy = WorkerProxy()

    assert proxy.path == DEFAULT_WORKER_PATH
    assert not proxy.is_terminated
    proxy.terminate()


def test_unknown_module_raises_import_error() -> None:
    with pytest.raises(ImportError):
        WorkerProxy("pgp_pipeline.does_not_exist")


@pytest.mark.asyncio
async def test_delegate_runs_operation_on_executor() -> None:
    proxy = WorkerProxy()

    with patch.object(pipeline, "decrypt_session_keys", return_value=None) as operation:
        result = await proxy.delegate("decrypt_session_keys", {"message": "m", "private_keys": [], "passwords": []})

    assert result is None
    operation.assert_called_once_with(message="m", private_keys=[], passwords=[])
    proxy.terminate()


@pytest.mark.asyncio
async def test_delegate_rejects_unknown_operation() -> None:
    proxy = WorkerProxy()

    with pytest.raises(WorkerError, match="Unknown worker operation") as exc_info:
        await proxy.delegate("create_message", {})

    assert exc_info.value.operation == "create_message"
    proxy.terminate()


@pytest.mark.asyncio
async def test_delegate_passes_pipeline_errors_through() -> None:
    proxy = WorkerProxy()

    with patch.object(pipeline, "sign", side_effect=InvalidFormatError(format="hex")):
        with pytest.raises(InvalidFormatError):
            await proxy.delegate("sign", {})

    proxy.terminate()


@pytest.mark.asyncio
async def test_delegate_wraps_foreign_errors() -> None:
    proxy = WorkerProxy()

    with patch.object(pipeline, "sign", side_effect=RuntimeError("boom")):
        with pytest.raises(WorkerError, match="Delegated call failed: boom") as exc_info:
            await proxy.delegate("sign", {})

    assert isinstance(exc_info.value.__cause__, RuntimeError)
    proxy.terminate()


@pytest.mark.asyncio
async def test_terminated_proxy_refuses_work() -> None:
    proxy = WorkerProxy()
    proxy.terminate()

    with pytest.raises(WorkerError, match="terminated"):
        await proxy.delegate("sign", {})


def test_terminate_is_idempotent() -> None:
    proxy = WorkerProxy()
    proxy.terminate()
    proxy.terminate()

    assert proxy.is_terminated


def test_injected_executor_is_not_shut_down() -> None:
    executor = ThreadPoolExecutor(max_workers=1)
    proxy = WorkerProxy(executor=executor)

    proxy.terminate()

    assert executor.submit(lambda: 42).result() == 42
    executor.shutdown()
