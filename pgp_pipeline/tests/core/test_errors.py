import pytest
from structlog.testing import capture_logs

from pgp_pipeline.core.errors import translate_errors
from pgp_pipeline.exceptions import ErrorKind, MissingCredentialError, PrimitiveError


def test_openpgp_error_keeps_kind_and_gains_description() -> None:
    with pytest.raises(MissingCredentialError) as exc_info:
        with translate_errors("Error encrypting message"):
            raise MissingCredentialError("No public keys or passwords given")

    assert exc_info.value.kind is ErrorKind.MISSING_CREDENTIAL
    assert str(exc_info.value) == "Error encrypting message: No public keys or passwords given"


def test_foreign_error_is_wrapped_as_primitive_failure() -> None:
    with pytest.raises(PrimitiveError) as exc_info:
        with translate_errors("Error decrypting message"):
            raise ValueError("bad packet header")

    error = exc_info.value
    assert error.description == "Error decrypting message"
    assert error.message == "bad packet header"
    assert isinstance(error.__cause__, ValueError)


def test_foreign_error_without_message_uses_type_name() -> None:
    with pytest.raises(PrimitiveError, match="KeyError"):
        with translate_errors("Error signing cleartext message"):
            raise KeyError()


def test_no_logging_without_debug() -> None:
    with capture_logs() as logs:
        with pytest.raises(PrimitiveError):
            with translate_errors("Error encrypting message"):
                raise RuntimeError("boom")

    assert logs == []


def test_debug_logs_failure_details() -> None:
    with capture_logs() as logs:
        with pytest.raises(PrimitiveError):
            with translate_errors("Error encrypting message", debug=True):
                raise RuntimeError("boom")

    assert len(logs) == 1
    assert logs[0]["event"] == "Pipeline operation failed"
    assert logs[0]["log_level"] == "error"
    assert logs[0]["error_type"] == "RuntimeError"


def test_success_passes_through() -> None:
    with translate_errors("Error encrypting message"):
        value = 1 + 1

    assert value == 2
