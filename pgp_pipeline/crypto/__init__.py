"""
OpenPGP primitives used by the pipeline.

This module provides:
- Key objects (generation, reformatting, unlocking)
- Message and cleartext message objects (sign, compress, encrypt, decrypt, verify)
- Session key wrapping and resolution
- Native crypto capability probing
"""

from pgp_pipeline.crypto.capability import native_aead, native_crypto_available
from pgp_pipeline.crypto.key import Key
from pgp_pipeline.crypto.message import CleartextMessage, EncryptedMessage, Message, Signature
from pgp_pipeline.crypto.protocol import KeyPrimitives, MessagePrimitives, WorkerTransport
from pgp_pipeline.crypto.secure_bytes import SecureBytes

__all__ = [
    "Key",
    "Message",
    "CleartextMessage",
    "Signature",
    "EncryptedMessage",
    "SecureBytes",
    "KeyPrimitives",
    "MessagePrimitives",
    "WorkerTransport",
    "native_crypto_available",
    "native_aead",
]
