"""
Pipeline result records.

Each operation returns one of these. Optional fields are ``None`` when the
caller did not request them (``armor``, ``detached``, ``return_session_key``).
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pgp_pipeline.models.crypto import SessionKey

if TYPE_CHECKING:
    from pgp_pipeline.crypto.key import Key
    from pgp_pipeline.crypto.message import CleartextMessage, Message, Signature


@dataclass(frozen=True, kw_only=True)
class VerificationResult:
    """
    Outcome of checking a single signature.

    Attributes:
        keyid: Issuer key id of the signature, 16 uppercase hex digits.
        valid: Whether a supplied public key verified the signature.
    """

    keyid: str
    valid: bool


@dataclass(frozen=True, kw_only=True)
class KeyPairResult:
    key: "Key"
    private_key_armored: str
    public_key_armored: str


@dataclass(frozen=True, kw_only=True)
class KeyResult:
    key: "Key"


@dataclass(frozen=True, kw_only=True)
class EncryptResult:
    data: str | None = None
    message: "Message | None" = None
    signature: "str | Signature | None" = None
    session_key: SessionKey | None = None


@dataclass(frozen=True, kw_only=True)
class DecryptResult:
    data: str | bytes
    filename: str
    signatures: list[VerificationResult] = field(default_factory=list)


@dataclass(frozen=True, kw_only=True)
class SignResult:
    data: str | None = None
    message: "Message | CleartextMessage | None" = None
    signature: "str | Signature | None" = None


@dataclass(frozen=True, kw_only=True)
class VerifyResult:
    data: str | bytes
    signatures: list[VerificationResult] = field(default_factory=list)


@dataclass(frozen=True, kw_only=True)
class SessionKeyMessageResult:
    message: "Message"
