"""
Domain models for the OpenPGP pipeline.

These are immutable (frozen) dataclasses and enums shared by the client,
the pipeline operations and the worker.
"""

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

__all__ = [
    # Crypto
    "SymmetricAlgorithm",
    "CompressionAlgorithm",
    "HashAlgorithm",
    "SessionKey",
    "UserId",
    # Results
    "VerificationResult",
    "KeyPairResult",
    "KeyResult",
    "EncryptResult",
    "DecryptResult",
    "SignResult",
    "VerifyResult",
    "SessionKeyMessageResult",
]
