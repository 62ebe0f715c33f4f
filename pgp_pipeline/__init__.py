"""
PGP Pipeline.

An async OpenPGP orchestration layer: key generation and reformatting,
encryption, decryption, signing, verification and session-key handling,
optionally delegated to a worker.

Example:
    ```python
    import pgp_pipeline

    pair = await pgp_pipeline.generate_key(
        user_ids=[{"name": "Ada", "email": "ada@example.org"}], curve="curve25519"
    )
    encrypted = await pgp_pipeline.encrypt("hello", public_keys=pair.key.to_public())
    message = pgp_pipeline.Message.from_armored(encrypted.data)
    decrypted = await pgp_pipeline.decrypt(message, private_keys=pair.key)
    print(decrypted.data)
    ```
"""

from pgp_pipeline.client import OpenPGPClient
from pgp_pipeline.config import OpenPGPConfig, configure, get_config, set_config
from pgp_pipeline.crypto.key import Key
from pgp_pipeline.crypto.message import CleartextMessage, Message, Signature
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
from pgp_pipeline.models.crypto import (
    CompressionAlgorithm,
    HashAlgorithm,
    SessionKey,
    SymmetricAlgorithm,
    UserId,
)
from pgp_pipeline.models.results import (
    DecryptResult,
    EncryptResult,
    KeyPairResult,
    KeyResult,
    SessionKeyMessageResult,
    SignResult,
    VerificationResult,
    VerifyResult,
)

__version__ = "0.1.0"

# Module-level API bound to a client that reads the process-wide config.
_default_client = OpenPGPClient()

init_worker = _default_client.init_worker
get_worker = _default_client.get_worker
destroy_worker = _default_client.destroy_worker
generate_key = _default_client.generate_key
reformat_key = _default_client.reformat_key
decrypt_key = _default_client.decrypt_key
encrypt = _default_client.encrypt
decrypt = _default_client.decrypt
sign = _default_client.sign
verify = _default_client.verify
encrypt_session_key = _default_client.encrypt_session_key
decrypt_session_keys = _default_client.decrypt_session_keys

__all__ = [
    # Client
    "OpenPGPClient",
    "OpenPGPConfig",
    "configure",
    "get_config",
    "set_config",
    # Operations
    "init_worker",
    "get_worker",
    "destroy_worker",
    "generate_key",
    "reformat_key",
    "decrypt_key",
    "encrypt",
    "decrypt",
    "sign",
    "verify",
    "encrypt_session_key",
    "decrypt_session_keys",
    # Primitives
    "Key",
    "Message",
    "CleartextMessage",
    "Signature",
    # Models
    "SymmetricAlgorithm",
    "CompressionAlgorithm",
    "HashAlgorithm",
    "SessionKey",
    "UserId",
    "KeyPairResult",
    "KeyResult",
    "EncryptResult",
    "DecryptResult",
    "SignResult",
    "VerifyResult",
    "VerificationResult",
    "SessionKeyMessageResult",
    # Exceptions
    "ErrorKind",
    "OpenPGPError",
    "InvalidInputTypeError",
    "KeyStrengthError",
    "InvalidUserIdError",
    "InvalidFormatError",
    "MissingCredentialError",
    "ResolutionError",
    "PrimitiveError",
    "KeyLockedError",
    "WorkerError",
]
