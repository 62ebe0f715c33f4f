"""
OpenPGP client facade.

This is the main entry point for users of the library. Each public method
validates its input synchronously, so shape errors are raised before any
coroutine exists, and returns an awaitable that runs the operation through
the execution router.
"""

from collections.abc import Callable, Coroutine
from datetime import datetime, timezone
from typing import Any

from pgp_pipeline.config import OpenPGPConfig, get_config
from pgp_pipeline.core.errors import translate_errors
from pgp_pipeline.core.validation import (
    check_binary,
    check_cleartext_or_message,
    check_data,
    check_message,
    check_string,
    format_user_ids,
    to_list,
)
from pgp_pipeline.crypto.capability import native_aead, native_crypto_available
from pgp_pipeline.crypto.key import Key
from pgp_pipeline.crypto.message import CleartextMessage, Message, Signature
from pgp_pipeline.crypto.protocol import WorkerTransport
from pgp_pipeline.exceptions import (
    InvalidFormatError,
    InvalidInputTypeError,
    InvalidUserIdError,
    KeyStrengthError,
    MissingCredentialError,
)
from pgp_pipeline.models.crypto import CompressionAlgorithm, SessionKey
from pgp_pipeline.models.results import (
    DecryptResult,
    EncryptResult,
    KeyPairResult,
    KeyResult,
    SessionKeyMessageResult,
    SignResult,
    VerifyResult,
)
from pgp_pipeline.router import ExecutionRouter
from pgp_pipeline.worker.registry import WorkerRegistry, default_registry

_DESCRIPTIONS = {
    "generate_key": "Error generating keypair",
    "reformat_key": "Error reformatting keypair",
    "decrypt_key": "Error decrypting private key",
    "encrypt": "Error encrypting message",
    "decrypt": "Error decrypting message",
    "sign": "Error signing cleartext message",
    "verify": "Error verifying cleartext signed message",
    "encrypt_session_key": "Error encrypting session key",
    "decrypt_session_keys": "Error decrypting session keys",
}

_FORMATS = ("utf8", "binary")


def _check_keys(keys: list[Any] | None, name: str) -> list[Key]:
    keys = keys or []
    if not all(isinstance(key, Key) for key in keys):
        msg = f"Parameter [{name}] must contain Key objects"
        raise InvalidInputTypeError(msg, parameter=name)
    return keys


def _check_private_key(key: Any) -> Key:
    if not isinstance(key, Key) or not key.is_private:
        msg = "Parameter [private_key] must be a private Key"
        raise InvalidInputTypeError(msg, parameter="private_key")
    return key


def _check_passwords(passwords: list[Any] | None, name: str = "passwords") -> list[str]:
    passwords = passwords or []
    for password in passwords:
        check_string(password, name)
    return passwords


def _check_session_keys(session_keys: list[Any] | None) -> list[SessionKey]:
    session_keys = session_keys or []
    if not all(isinstance(key, SessionKey) for key in session_keys):
        msg = "Parameter [session_keys] must contain SessionKey objects"
        raise InvalidInputTypeError(msg, parameter="session_keys")
    return session_keys


def _check_signature(signature: Any) -> None:
    if signature is not None and not isinstance(signature, (Signature, str, bytes)):
        msg = "Parameter [signature] must be a Signature or armored text"
        raise InvalidInputTypeError(msg, parameter="signature")


class OpenPGPClient:
    """
    Async OpenPGP operations.

    Example:
        ```python
        client = OpenPGPClient()
        pair = await client.generate_key(user_ids=[{"name": "Ada", "email": "ada@example.org"}], curve="curve25519")
        encrypted = await client.encrypt("hello", public_keys=pair.key.to_public())
        decrypted = await client.decrypt(Message.from_armored(encrypted.data), private_keys=pair.key)
        ```

    Args:
        config: Configuration for this client. The process-wide configuration
            is read at call time when omitted.
        registry: Worker registry; the process-wide one by default.
        capability: Native AEAD predicate used by the router.
    """

    def __init__(
        self,
        config: OpenPGPConfig | None = None,
        *,
        registry: WorkerRegistry | None = None,
        capability: Callable[[OpenPGPConfig], bool] = native_aead,
    ) -> None:
        self._config = config
        self._registry = registry or default_registry
        self._router = ExecutionRouter(self._registry, capability)

    @property
    def config(self) -> OpenPGPConfig:
        return self._config or get_config()

    # Worker lifecycle

    def init_worker(self, path: str | None = None, worker: WorkerTransport | None = None) -> bool:
        return self._registry.init(path=path, worker=worker)

    def get_worker(self) -> WorkerTransport | None:
        return self._registry.get()

    def destroy_worker(self) -> None:
        self._registry.destroy()

    async def _execute(self, operation: str, arguments: dict[str, Any], config: OpenPGPConfig) -> Any:
        with translate_errors(_DESCRIPTIONS[operation], debug=config.debug):
            return await self._router.route(operation, arguments, config)

    # Key lifecycle

    def generate_key(
        self,
        *,
        user_ids: Any,
        passphrase: str | None = None,
        num_bits: int = 2048,
        unlocked: bool = False,
        key_expiration_time: int = 0,
        curve: str = "",
    ) -> Coroutine[Any, Any, KeyPairResult]:
        """
        Generate a new key pair.

        Args:
            user_ids: One or more ``{"name", "email"}`` records, UserId values
                or ``"Name <email>"`` strings.
            passphrase: Protects the private key when set.
            num_bits: RSA modulus size; ignored when ``curve`` is set.
            unlocked: Return the private key already decrypted.
            key_expiration_time: Seconds until expiry, 0 for never.
            curve: Elliptic curve name, e.g. ``curve25519`` or ``p256``.

        Raises:
            InvalidUserIdError: If an identity is malformed or none is given.
            KeyStrengthError: If ``num_bits`` is under the configured floor.
        """
        config = self.config
        formatted = format_user_ids(user_ids)
        if not formatted:
            msg = "At least one user id is required"
            raise InvalidUserIdError(msg)
        if native_crypto_available() and num_bits < config.min_rsa_bits:
            raise KeyStrengthError(num_bits)
        if passphrase is not None:
            check_string(passphrase, "passphrase")

        arguments = {
            "user_ids": formatted,
            "passphrase": passphrase,
            "num_bits": num_bits,
            "unlocked": unlocked,
            "key_expiration_time": key_expiration_time,
            "curve": curve,
            "date": datetime.now(timezone.utc),
            "config": config,
        }
        return self._execute("generate_key", arguments, config)

    def reformat_key(
        self,
        *,
        private_key: Key,
        user_ids: Any,
        passphrase: str = "",
        unlocked: bool = False,
        key_expiration_time: int = 0,
    ) -> Coroutine[Any, Any, KeyPairResult]:
        """Re-issue self-signatures for new user ids on the same key material."""
        config = self.config
        _check_private_key(private_key)
        formatted = format_user_ids(user_ids)
        if not formatted:
            msg = "At least one user id is required"
            raise InvalidUserIdError(msg)
        check_string(passphrase, "passphrase")

        arguments = {
            "private_key": private_key,
            "user_ids": formatted,
            "passphrase": passphrase,
            "unlocked": unlocked,
            "key_expiration_time": key_expiration_time,
            "date": datetime.now(timezone.utc),
            "config": config,
        }
        return self._execute("reformat_key", arguments, config)

    def decrypt_key(self, *, private_key: Key, passphrase: str) -> Coroutine[Any, Any, KeyResult]:
        """Unlock ``private_key`` in place; the result holds the same object."""
        _check_private_key(private_key)
        check_string(passphrase, "passphrase")
        arguments = {"private_key": private_key, "passphrase": passphrase}
        return self._execute("decrypt_key", arguments, self.config)

    # Messages

    def encrypt(
        self,
        data: str | bytes,
        *,
        public_keys: Key | list[Key] | None = None,
        private_keys: Key | list[Key] | None = None,
        passwords: str | list[str] | None = None,
        session_key: SessionKey | None = None,
        filename: str | None = None,
        compression: CompressionAlgorithm | None = None,
        armor: bool = True,
        detached: bool = False,
        signature: Signature | str | None = None,
        return_session_key: bool = False,
        wildcard: bool = False,
        date: datetime | None = None,
    ) -> Coroutine[Any, Any, EncryptResult]:
        """
        Sign (optionally), compress and encrypt ``data``.

        Raises:
            InvalidInputTypeError: If an argument has the wrong type.
            MissingCredentialError: If neither public keys nor passwords are given.
        """
        config = self.config
        check_data(data)
        public_keys = _check_keys(to_list(public_keys), "public_keys")
        private_keys = _check_keys(to_list(private_keys), "private_keys")
        passwords = _check_passwords(to_list(passwords))
        if session_key is not None and not isinstance(session_key, SessionKey):
            msg = "Parameter [session_key] must be a SessionKey"
            raise InvalidInputTypeError(msg, parameter="session_key")
        _check_signature(signature)
        if not public_keys and not passwords:
            msg = "No public keys or passwords given"
            raise MissingCredentialError(msg)

        arguments = {
            "data": data,
            "public_keys": public_keys,
            "private_keys": private_keys,
            "passwords": passwords,
            "session_key": session_key,
            "filename": filename,
            "compression": CompressionAlgorithm(compression if compression is not None else config.compression),
            "armor": armor,
            "detached": detached,
            "signature": signature,
            "return_session_key": return_session_key,
            "wildcard": wildcard,
            "date": date or datetime.now(timezone.utc),
            "config": config,
        }
        return self._execute("encrypt", arguments, config)

    def decrypt(
        self,
        message: Message,
        *,
        private_keys: Key | list[Key] | None = None,
        passwords: str | list[str] | None = None,
        session_keys: SessionKey | list[SessionKey] | None = None,
        public_keys: Key | list[Key] | None = None,
        format: str = "utf8",
        signature: Signature | str | None = None,
        date: datetime | None = None,
    ) -> Coroutine[Any, Any, DecryptResult]:
        """
        Decrypt ``message`` and verify any signatures.

        Raises:
            InvalidInputTypeError: If an argument has the wrong type.
            InvalidFormatError: If ``format`` is not ``utf8`` or ``binary``.
            MissingCredentialError: If no key, password or session key is given.
        """
        config = self.config
        check_message(message)
        private_keys = _check_keys(to_list(private_keys), "private_keys")
        passwords = _check_passwords(to_list(passwords))
        session_keys = _check_session_keys(to_list(session_keys))
        public_keys = _check_keys(to_list(public_keys), "public_keys")
        _check_signature(signature)
        if format not in _FORMATS:
            raise InvalidFormatError(format=format)
        if not private_keys and not passwords and not session_keys:
            msg = "No private keys, passwords or session keys given"
            raise MissingCredentialError(msg)

        arguments = {
            "message": message,
            "private_keys": private_keys,
            "passwords": passwords,
            "session_keys": session_keys,
            "public_keys": public_keys,
            "format": format,
            "signature": signature,
            "date": date or datetime.now(timezone.utc),
        }
        return self._execute("decrypt", arguments, config)

    def sign(
        self,
        data: str | bytes,
        *,
        private_keys: Key | list[Key],
        armor: bool = True,
        detached: bool = False,
        date: datetime | None = None,
    ) -> Coroutine[Any, Any, SignResult]:
        """Sign text as a cleartext message or bytes as a binary message."""
        config = self.config
        check_data(data)
        private_keys = _check_keys(to_list(private_keys), "private_keys")
        if not private_keys:
            msg = "No private keys given for signing"
            raise MissingCredentialError(msg)

        arguments = {
            "data": data,
            "private_keys": private_keys,
            "armor": armor,
            "detached": detached,
            "date": date or datetime.now(timezone.utc),
            "config": config,
        }
        return self._execute("sign", arguments, config)

    def verify(
        self,
        message: Message | CleartextMessage,
        *,
        public_keys: Key | list[Key] | None = None,
        signature: Signature | str | None = None,
        date: datetime | None = None,
    ) -> Coroutine[Any, Any, VerifyResult]:
        """Verify inline or detached signatures; invalid ones come back as ``valid=False``."""
        config = self.config
        check_cleartext_or_message(message)
        public_keys = _check_keys(to_list(public_keys), "public_keys")
        _check_signature(signature)

        arguments = {
            "message": message,
            "public_keys": public_keys,
            "signature": signature,
            "date": date or datetime.now(timezone.utc),
        }
        return self._execute("verify", arguments, config)

    # Session keys

    def encrypt_session_key(
        self,
        data: bytes,
        algorithm: str,
        *,
        public_keys: Key | list[Key] | None = None,
        passwords: str | list[str] | None = None,
        wildcard: bool = False,
    ) -> Coroutine[Any, Any, SessionKeyMessageResult]:
        """Wrap raw session key bytes in a message of session key packets only."""
        config = self.config
        check_binary(data)
        check_string(algorithm, "algorithm")
        public_keys = _check_keys(to_list(public_keys), "public_keys")
        passwords = _check_passwords(to_list(passwords))
        if not public_keys and not passwords:
            msg = "No public keys or passwords given"
            raise MissingCredentialError(msg)

        arguments = {
            "data": bytes(data),
            "algorithm": algorithm,
            "public_keys": public_keys,
            "passwords": passwords,
            "wildcard": wildcard,
            "config": config,
        }
        return self._execute("encrypt_session_key", arguments, config)

    def decrypt_session_keys(
        self,
        message: Message,
        *,
        private_keys: Key | list[Key] | None = None,
        passwords: str | list[str] | None = None,
    ) -> Coroutine[Any, Any, list[SessionKey] | None]:
        """Resolve the message's session keys; ``None`` when nothing resolves."""
        config = self.config
        check_message(message)
        private_keys = _check_keys(to_list(private_keys), "private_keys")
        passwords = _check_passwords(to_list(passwords))
        if not private_keys and not passwords:
            msg = "No private keys or passwords given"
            raise MissingCredentialError(msg)

        arguments = {"message": message, "private_keys": private_keys, "passwords": passwords}
        return self._execute("decrypt_session_keys", arguments, config)
