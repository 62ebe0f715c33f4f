"""
OpenPGP message primitives over pgpy.

Message and CleartextMessage are treated as values: sign, compress and encrypt
return a new instance and leave the receiver untouched.
"""

import copy
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Self

import pgpy
import structlog
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives.ciphers import Cipher, modes
from pgpy.constants import CompressionAlgorithm as PgpyCompressionAlgorithm
from pgpy.errors import PGPDecryptionError, PGPError
from pgpy.packet import Packet
from pgpy.packet.packets import IntegrityProtectedSKEDataV1, PKESessionKey
from pgpy.packet.packets import Signature as SignaturePacket
from pgpy.types import Armorable, SorteDeque

from pgp_pipeline.config import OpenPGPConfig
from pgp_pipeline.crypto import session_key as session_keys_lib
from pgp_pipeline.crypto.key import Key
from pgp_pipeline.exceptions import PrimitiveError, ResolutionError
from pgp_pipeline.models.crypto import CompressionAlgorithm, SessionKey
from pgp_pipeline.models.results import VerificationResult

logger = structlog.get_logger(__name__)

_VERIFY_ERRORS = (PGPError, ValueError, TypeError, NotImplementedError)
_BODY_ERRORS = (PGPDecryptionError, PGPError, ValueError, TypeError, NotImplementedError)


class _PacketArmor(Armorable):
    """Armors raw packet bytes that pgpy has no composite type for."""

    def __init__(self, magic: str, data: bytes, headers: dict[str, str]) -> None:
        super().__init__()
        self._magic = magic
        self._bytes = data
        self.ascii_headers.clear()
        self.ascii_headers.update(headers)

    @property
    def magic(self) -> str:
        return self._magic

    def parse(self, packet: bytes) -> None:
        self._bytes = packet

    def __bytes__(self) -> bytes:
        return self._bytes


class _AttachmentOrder(SorteDeque):
    """Signature list that keeps packets in the order they were attached."""

    def insort(self, item: pgpy.PGPSignature) -> None:
        self.append(item)


class _OrderedMessage(pgpy.PGPMessage):
    """
    PGPMessage whose signatures follow attachment order.

    pgpy sorts signatures by creation time and puts equal times at the front,
    so signers sharing a timestamp come back reversed after every copy or parse.
    """

    def __init__(self) -> None:
        super().__init__()
        self._signatures = _AttachmentOrder()


def _ordered(message: pgpy.PGPMessage) -> pgpy.PGPMessage:
    if isinstance(message, _OrderedMessage):
        return message
    ordered = _OrderedMessage()
    ordered |= message
    ordered.ascii_headers = message.ascii_headers.copy()
    return ordered


def _passes_quick_check(session_key: SessionKey, ciphertext: bytes) -> bool:
    """
    Check the repeated prefix octets of an encrypted body.

    A wrong session key fails this check except by chance, so a candidate that
    passes it but fails full decryption points at a damaged body.
    """
    algorithm = session_key.algorithm.to_pgpy()
    if not algorithm.is_supported:
        return False
    block_size = algorithm.block_size // 8
    if len(ciphertext) < block_size + 2:
        return False
    try:
        cipher = Cipher(
            algorithm.cipher(session_key.key_data), modes.CFB(bytes(block_size)), backend=default_backend()
        )
    except (ValueError, TypeError, UnsupportedAlgorithm):
        return False
    decryptor = cipher.decryptor()
    prefix = decryptor.update(bytes(ciphertext[: block_size + 2])) + decryptor.finalize()
    return prefix[block_size - 2 : block_size] == prefix[block_size : block_size + 2]


def _apply_headers(obj: Armorable, config: OpenPGPConfig | None) -> None:
    if config is None:
        return
    obj.ascii_headers.clear()
    obj.ascii_headers.update(config.armor_headers())


def _normalize_content(content: bytes | str | bytearray) -> bytes:
    if isinstance(content, (bytes, bytearray)):
        return bytes(content)
    return content.encode("utf-8")


def _sign_with(
    private_keys: list[Key], subject: object, *, date: datetime, config: OpenPGPConfig
) -> list[pgpy.PGPSignature]:
    signatures = []
    for private_key in private_keys:
        with private_key.unlocked() as key:
            signatures.append(
                key.sign(subject, created=date, hash=config.prefer_hash_algorithm.to_pgpy())
            )
    return signatures


def verify_signatures(
    signatures: list[pgpy.PGPSignature],
    content: object,
    public_keys: list[Key],
    date: datetime,
) -> list[VerificationResult]:
    """
    Check each signature against the supplied keys.

    Failures are reported as ``valid=False``, never raised.
    """
    results = []
    for signature in signatures:
        keyid = str(signature.signer)
        valid = False
        for public_key in public_keys:
            if keyid not in public_key.key_ids or public_key.is_expired_at(date):
                continue
            try:
                valid = bool(public_key.pgpy_key.verify(content, signature))
            except _VERIFY_ERRORS:
                valid = False
            break
        results.append(VerificationResult(keyid=keyid, valid=valid))
    logger.debug("Signatures verified", total=len(results), valid=sum(r.valid for r in results))
    return results


class Signature:
    """One or more detached signature packets."""

    def __init__(self, packets: list[pgpy.PGPSignature]) -> None:
        self._packets = list(packets)

    def __iter__(self) -> Iterator[pgpy.PGPSignature]:
        return iter(self._packets)

    def __len__(self) -> int:
        return len(self._packets)

    def __repr__(self) -> str:
        return f"Signature(signers={self.signers})"

    @property
    def packets(self) -> list[pgpy.PGPSignature]:
        return list(self._packets)

    @property
    def signers(self) -> list[str]:
        return [str(p.signer) for p in self._packets]

    @classmethod
    def from_armored(cls, armored: str | bytes) -> Self:
        """
        Parse an armored or binary signature block holding any number of packets.

        Raises:
            PrimitiveError: If the block is not a signature.
        """
        try:
            data = Armorable.ascii_unarmor(armored)["body"]
            packets = []
            while len(data) > 0:
                packet = Packet(data)
                if not isinstance(packet, SignaturePacket):
                    msg = f"Unexpected packet in signature: {type(packet).__name__}"
                    raise PrimitiveError(msg)
                packets.append(pgpy.PGPSignature() | packet)
        except PrimitiveError:
            raise
        except Exception as e:
            msg = f"Failed to parse signature: {e}"
            raise PrimitiveError(msg) from e
        return cls(packets)

    def __bytes__(self) -> bytes:
        return b"".join(bytes(p) for p in self._packets)

    def armor(self, config: OpenPGPConfig | None = None) -> str:
        headers = config.armor_headers() if config else {}
        return str(_PacketArmor("SIGNATURE", bytes(self), headers))


@dataclass(frozen=True, kw_only=True)
class EncryptedMessage:
    """Output of Message.encrypt: the encrypted message and its session key."""

    message: "Message"
    session_key: SessionKey


class Message:
    """
    A binary OpenPGP message: literal data, optionally signed, compressed
    or encrypted, or a bare list of encrypted session key packets.
    """

    def __init__(self, message: pgpy.PGPMessage) -> None:
        self._message = _ordered(message)

    def __repr__(self) -> str:
        return f"Message(encrypted={self.is_encrypted}, signed={bool(self._message.signatures)})"

    @classmethod
    def from_text(cls, text: str, filename: str = "", date: datetime | None = None) -> Self:
        return cls(cls._literal(text, "u", filename, date))

    @classmethod
    def from_binary(cls, data: bytes, filename: str = "", date: datetime | None = None) -> Self:
        return cls(cls._literal(bytes(data), "b", filename, date))

    @staticmethod
    def _literal(payload: str | bytes, format: str, filename: str, date: datetime | None) -> pgpy.PGPMessage:
        message = pgpy.PGPMessage.new(payload, format=format, compression=PgpyCompressionAlgorithm.Uncompressed)
        literal = message._message
        literal.filename = filename or ""
        if date is not None:
            literal.mtime = date
        literal.update_hlen()
        return message

    @classmethod
    def from_armored(cls, armored: str | bytes) -> Self:
        """
        Parse an armored or binary message.

        Raises:
            PrimitiveError: If the data is not an OpenPGP message.
        """
        try:
            return cls(_OrderedMessage.from_blob(armored))
        except Exception as e:
            msg = f"Failed to parse message: {e}"
            raise PrimitiveError(msg) from e

    @property
    def pgpy_message(self) -> pgpy.PGPMessage:
        return self._message

    @property
    def is_encrypted(self) -> bool:
        return self._message.is_encrypted

    @property
    def has_body(self) -> bool:
        return self._message._message is not None

    @property
    def signatures(self) -> list[pgpy.PGPSignature]:
        return self._message.signatures

    @property
    def session_key_packets(self) -> list:
        return list(self._message._sessionkeys)

    @property
    def encryption_key_ids(self) -> list[str]:
        """Recipient ids of the PKESK packets, in packet order."""
        return [str(p.encrypter) for p in self._message._sessionkeys if isinstance(p, PKESessionKey)]

    def _literal_content(self) -> object:
        if self.is_encrypted or not self.has_body:
            msg = "Message has no literal data"
            raise PrimitiveError(msg)
        return self._message.message

    def get_literal_data(self) -> bytes:
        return _normalize_content(self._literal_content())

    def get_text(self) -> str:
        content = self._literal_content()
        if isinstance(content, str):
            return content
        return bytes(content).decode("utf-8")

    def get_filename(self) -> str:
        return self._message.filename

    def sign(
        self,
        private_keys: list[Key],
        signature: Signature | None = None,
        *,
        date: datetime,
        config: OpenPGPConfig,
    ) -> "Message":
        """Return a new message embedding one-pass signatures from each key."""
        signed = copy.copy(self._message)
        for packet in signature or ():
            signed |= copy.copy(packet)
        for sig in _sign_with(private_keys, signed, date=date, config=config):
            signed |= sig
        return Message(signed)

    def sign_detached(
        self,
        private_keys: list[Key],
        signature: Signature | None = None,
        *,
        date: datetime,
        config: OpenPGPConfig,
    ) -> Signature:
        existing = signature.packets if signature else []
        return Signature(existing + _sign_with(private_keys, self._message, date=date, config=config))

    def compress(self, algorithm: CompressionAlgorithm) -> "Message":
        compressed = copy.copy(self._message)
        compressed._compression = algorithm.to_pgpy()
        return Message(compressed)

    def encrypt(
        self,
        public_keys: list[Key],
        passwords: list[str],
        session_key: SessionKey | None = None,
        *,
        wildcard: bool = False,
        config: OpenPGPConfig,
    ) -> EncryptedMessage:
        """
        Encrypt the body once and wrap its session key for every credential.

        Raises:
            PrimitiveError: If no credential is given or a key cannot encrypt.
        """
        if not public_keys and not passwords:
            msg = "No public keys or passwords given"
            raise PrimitiveError(msg)

        if session_key is None:
            session_key = SessionKey.generate(session_keys_lib.select_cipher(public_keys, config))

        body = IntegrityProtectedSKEDataV1()
        body.encrypt(session_key.key_data, session_key.algorithm.to_pgpy(), bytes(self._message))

        encrypted = pgpy.PGPMessage()
        for packet in session_keys_lib.wrap_session_key(
            session_key, public_keys=public_keys, passwords=passwords, wildcard=wildcard, config=config
        ):
            encrypted |= packet
        encrypted |= body
        return EncryptedMessage(message=Message(encrypted), session_key=session_key)

    def _decrypt_body(self, session_key: SessionKey) -> pgpy.PGPMessage | None:
        try:
            plaintext = self._message.message.decrypt(session_key.key_data, session_key.algorithm.to_pgpy())
        except _BODY_ERRORS:
            return None
        decrypted = _OrderedMessage()
        decrypted.parse(plaintext)
        return decrypted

    def decrypt(
        self,
        private_keys: list[Key],
        passwords: list[str],
        session_keys: list[SessionKey] | None = None,
    ) -> "Message":
        """
        Resolve the session key and return the decrypted, decompressed message.

        The first candidate that decrypts the body wins.

        Raises:
            PrimitiveError: If the message is not encrypted, its contents are malformed
                or a session key passes the prefix check but the body does not decrypt.
            ResolutionError: If no credential yields a working session key.
        """
        if not self.is_encrypted:
            msg = "Message is not encrypted"
            raise PrimitiveError(msg)

        candidates = session_keys_lib.iter_session_keys(
            self.session_key_packets,
            private_keys=private_keys,
            passwords=passwords,
            session_keys=session_keys or (),
        )
        damaged = False
        for candidate in candidates:
            decrypted = self._decrypt_body(candidate)
            if decrypted is not None:
                logger.debug("Message decrypted", algorithm=candidate.algorithm.openpgp_name)
                return Message(decrypted)
            damaged = damaged or _passes_quick_check(candidate, self._message.message.ct)

        if damaged:
            logger.warning("Encrypted body failed its integrity check")
            msg = "Message integrity check failed"
            raise PrimitiveError(msg)
        msg = "Session key decryption failed"
        raise ResolutionError(msg)

    def decrypt_session_keys(self, private_keys: list[Key], passwords: list[str]) -> list[SessionKey]:
        """
        Unwrap every session key reachable with the given credentials.

        When the message carries an encrypted body, candidates that do not
        decrypt it are discarded.
        """
        candidates = session_keys_lib.iter_session_keys(
            self.session_key_packets, private_keys=private_keys, passwords=passwords
        )
        resolved = session_keys_lib.unique_session_keys(candidates)
        if self.is_encrypted:
            resolved = [key for key in resolved if self._decrypt_body(key) is not None]
        return resolved

    def verify(self, public_keys: list[Key], date: datetime) -> list[VerificationResult]:
        return verify_signatures(self.signatures, self._literal_content(), public_keys, date)

    def verify_detached(
        self, signature: Signature, public_keys: list[Key], date: datetime
    ) -> list[VerificationResult]:
        return verify_signatures(signature.packets, self._literal_content(), public_keys, date)

    def __bytes__(self) -> bytes:
        if not self.has_body:
            return b"".join(bytes(p) for p in self._message._sessionkeys)
        return bytes(self._message)

    def armor(self, config: OpenPGPConfig | None = None) -> str:
        if not self.has_body:
            headers = config.armor_headers() if config else {}
            return str(_PacketArmor("MESSAGE", bytes(self), headers))
        _apply_headers(self._message, config)
        return str(self._message)

    @classmethod
    def from_session_key_packets(cls, packets: list) -> Self:
        message = pgpy.PGPMessage()
        for packet in packets:
            message |= packet
        return cls(message)


class CleartextMessage:
    """Text with inline cleartext signatures."""

    def __init__(self, message: pgpy.PGPMessage) -> None:
        self._message = _ordered(message)

    def __repr__(self) -> str:
        return f"CleartextMessage(signatures={len(self._message.signatures)})"

    @classmethod
    def from_text(cls, text: str) -> Self:
        return cls(pgpy.PGPMessage.new(text, cleartext=True))

    @classmethod
    def from_armored(cls, armored: str) -> Self:
        try:
            message = _OrderedMessage.from_blob(armored)
        except Exception as e:
            msg = f"Failed to parse cleartext message: {e}"
            raise PrimitiveError(msg) from e
        if message.type != "cleartext":
            msg = "Not a cleartext signed message"
            raise PrimitiveError(msg)
        return cls(message)

    @property
    def pgpy_message(self) -> pgpy.PGPMessage:
        return self._message

    @property
    def signatures(self) -> list[pgpy.PGPSignature]:
        return self._message.signatures

    def get_text(self) -> str:
        return self._message.message

    def sign(
        self,
        private_keys: list[Key],
        signature: Signature | None = None,
        *,
        date: datetime,
        config: OpenPGPConfig,
    ) -> "CleartextMessage":
        signed = copy.copy(self._message)
        for packet in signature or ():
            signed |= copy.copy(packet)
        for sig in _sign_with(private_keys, signed, date=date, config=config):
            signed |= sig
        return CleartextMessage(signed)

    def sign_detached(
        self,
        private_keys: list[Key],
        signature: Signature | None = None,
        *,
        date: datetime,
        config: OpenPGPConfig,
    ) -> Signature:
        existing = signature.packets if signature else []
        return Signature(existing + _sign_with(private_keys, self._message, date=date, config=config))

    def verify(self, public_keys: list[Key], date: datetime) -> list[VerificationResult]:
        return verify_signatures(self.signatures, self.get_text(), public_keys, date)

    def verify_detached(
        self, signature: Signature, public_keys: list[Key], date: datetime
    ) -> list[VerificationResult]:
        return verify_signatures(signature.packets, self.get_text(), public_keys, date)

    def armor(self, config: OpenPGPConfig | None = None) -> str:
        _apply_headers(self._message, config)
        return str(self._message)
