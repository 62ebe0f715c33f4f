"""
Collaborator protocol definitions.

The pipeline only talks to messages, keys and the worker transport through
these shapes, so alternative primitives or transports can be swapped in
without touching the orchestration code.
"""

from datetime import datetime
from typing import Any, Protocol, Self, runtime_checkable

from pgp_pipeline.config import OpenPGPConfig
from pgp_pipeline.models.crypto import CompressionAlgorithm, SessionKey
from pgp_pipeline.models.results import VerificationResult


@runtime_checkable
class KeyPrimitives(Protocol):
    """Protocol for an OpenPGP key object."""

    @property
    def key_id(self) -> str:
        """Get the primary key ID."""
        ...

    def armor(self, config: OpenPGPConfig | None = None) -> str:
        """ASCII-armor the key."""
        ...

    def to_public(self) -> "KeyPrimitives":
        """Return the public half of the key."""
        ...

    def decrypt(self, passphrase: str) -> Self:
        """
        Unlock secret key material in place.

        Raises:
            PrimitiveError: If the passphrase is incorrect.
        """
        ...


@runtime_checkable
class MessagePrimitives(Protocol):
    """
    Protocol for an OpenPGP message.

    sign, compress and encrypt return new values; the receiver is never mutated.
    """

    def sign(self, private_keys: list[Any], signature: Any = None, *, date: datetime, config: OpenPGPConfig) -> Self:
        ...

    def sign_detached(
        self, private_keys: list[Any], signature: Any = None, *, date: datetime, config: OpenPGPConfig
    ) -> Any:
        ...

    def compress(self, algorithm: CompressionAlgorithm) -> Self:
        ...

    def encrypt(
        self,
        public_keys: list[Any],
        passwords: list[str],
        session_key: SessionKey | None = None,
        *,
        wildcard: bool = False,
        config: OpenPGPConfig,
    ) -> Any:
        """
        Returns:
            An object exposing ``message`` and ``session_key``.
        """
        ...

    def decrypt(
        self, private_keys: list[Any], passwords: list[str], session_keys: list[SessionKey] | None = None
    ) -> Self:
        ...

    def decrypt_session_keys(self, private_keys: list[Any], passwords: list[str]) -> list[SessionKey]:
        ...

    def verify(self, public_keys: list[Any], date: datetime) -> list[VerificationResult]:
        ...

    def verify_detached(self, signature: Any, public_keys: list[Any], date: datetime) -> list[VerificationResult]:
        ...

    def get_literal_data(self) -> bytes:
        ...

    def get_text(self) -> str:
        ...

    def get_filename(self) -> str:
        ...

    def armor(self, config: OpenPGPConfig | None = None) -> str:
        ...


@runtime_checkable
class WorkerTransport(Protocol):
    """A worker handle: executes a named pipeline operation elsewhere."""

    async def delegate(self, operation: str, arguments: dict[str, Any]) -> Any:
        """
        Run ``operation`` with ``arguments`` and return its result verbatim.

        Raises:
            OpenPGPError: Whatever the pipeline raised.
            WorkerError: If the transport itself failed.
        """
        ...

    def terminate(self) -> None:
        """Stop accepting work and release resources."""
        ...
