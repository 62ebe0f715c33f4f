"""
OpenPGP pipeline exception hierarchy.

All exceptions inherit from OpenPGPError for easy catching. Each one carries
a structured ``kind``; the operation-level description is attached only at the
client boundary, so the same error renders as::

    Error encrypting message: No public keys or passwords given
"""

from enum import StrEnum
from typing import Any, ClassVar


class ErrorKind(StrEnum):
    """Structured error classification."""

    INVALID_INPUT_TYPE = "InvalidInputType"
    INVALID_USER_ID = "InvalidUserId"
    INVALID_FORMAT = "InvalidFormat"
    MISSING_CREDENTIAL = "MissingCredential"
    RESOLUTION_FAILURE = "ResolutionFailure"
    PRIMITIVE_FAILURE = "PrimitiveFailure"
    WORKER_FAILURE = "WorkerFailure"


class OpenPGPError(Exception):
    """Base exception for all pgp_pipeline errors."""

    kind: ClassVar[ErrorKind] = ErrorKind.PRIMITIVE_FAILURE

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context
        self.description: str | None = None

    def __str__(self) -> str:
        text = f"{self.description}: {self.message}" if self.description else self.message
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{text} ({ctx})"
        return text


class InvalidInputTypeError(OpenPGPError):
    """A payload or parameter has the wrong shape."""

    kind = ErrorKind.INVALID_INPUT_TYPE

    def __init__(self, message: str, *, parameter: str | None = None) -> None:
        super().__init__(message, parameter=parameter)
        self.parameter = parameter


class KeyStrengthError(InvalidInputTypeError):
    """Requested key size is below the configured floor."""

    def __init__(self, num_bits: int) -> None:
        super().__init__(
            f"numBits should be 2048 or 4096, found: {num_bits}", parameter="num_bits"
        )
        self.num_bits = num_bits


class InvalidUserIdError(OpenPGPError):
    """Malformed user identity."""

    kind = ErrorKind.INVALID_USER_ID

    def __init__(self, message: str = "Invalid user id format") -> None:
        super().__init__(message)


class InvalidFormatError(OpenPGPError):
    """Unsupported decrypt output format."""

    kind = ErrorKind.INVALID_FORMAT

    def __init__(self, message: str = "Invalid format", *, format: str | None = None) -> None:
        super().__init__(message, format=format)
        self.format = format


class MissingCredentialError(OpenPGPError):
    """Neither keys nor passwords were supplied where required."""

    kind = ErrorKind.MISSING_CREDENTIAL


class ResolutionError(OpenPGPError):
    """No supplied credential could decrypt a session key."""

    kind = ErrorKind.RESOLUTION_FAILURE


class PrimitiveError(OpenPGPError):
    """An underlying cryptographic or packet operation failed."""

    kind = ErrorKind.PRIMITIVE_FAILURE


class KeyLockedError(PrimitiveError):
    """Private key secret material is still passphrase protected."""

    def __init__(self, message: str = "Private key is not decrypted", *, key_id: str | None = None) -> None:
        super().__init__(message, key_id=key_id)
        self.key_id = key_id


class WorkerError(OpenPGPError):
    """The delegated call failed or the transport errored."""

    kind = ErrorKind.WORKER_FAILURE

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        super().__init__(message, operation=operation)
        self.operation = operation
