from pgp_pipeline.exceptions import (
    ErrorKind,
    InvalidFormatError,
    InvalidInputTypeError,
    InvalidUserIdError,
    KeyLockedError,
    KeyStrengthError,
    MissingCredentialError,
    OpenPGPError,
    PrimitiveError,
    ResolutionError,
    WorkerError,
)


def test_openpgp_error_str_without_context() -> None:
    error = OpenPGPError("Something failed")

    assert str(error) == "Something failed"


def test_openpgp_error_str_with_context() -> None:
    error = OpenPGPError("Failed", key_id="ABCD", attempt=3)

    assert "Failed" in str(error)
    assert "key_id='ABCD'" in str(error)
    assert "attempt=3" in str(error)


def test_description_is_prefixed_when_set() -> None:
    error = MissingCredentialError("No public keys or passwords given")
    error.description = "Error encrypting message"

    assert str(error) == "Error encrypting message: No public keys or passwords given"


def test_each_error_carries_its_kind() -> None:
    assert InvalidInputTypeError("bad", parameter="data").kind is ErrorKind.INVALID_INPUT_TYPE
    assert InvalidUserIdError().kind is ErrorKind.INVALID_USER_ID
    assert InvalidFormatError(format="hex").kind is ErrorKind.INVALID_FORMAT
    assert MissingCredentialError("none").kind is ErrorKind.MISSING_CREDENTIAL
    assert ResolutionError("none").kind is ErrorKind.RESOLUTION_FAILURE
    assert PrimitiveError("boom").kind is ErrorKind.PRIMITIVE_FAILURE
    assert WorkerError("gone", operation="encrypt").kind is ErrorKind.WORKER_FAILURE


def test_key_strength_error_is_an_input_type_error() -> None:
    error = KeyStrengthError(1024)

    assert isinstance(error, InvalidInputTypeError)
    assert error.num_bits == 1024
    assert error.message == "numBits should be 2048 or 4096, found: 1024"


def test_key_locked_error_is_a_primitive_failure() -> None:
    error = KeyLockedError(key_id="0123456789ABCDEF")

    assert isinstance(error, PrimitiveError)
    assert error.message == "Private key is not decrypted"
    assert error.key_id == "0123456789ABCDEF"


def test_error_kind_values_match_wire_names() -> None:
    assert ErrorKind.MISSING_CREDENTIAL == "MissingCredential"
    assert ErrorKind.RESOLUTION_FAILURE == "ResolutionFailure"
