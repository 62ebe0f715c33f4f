"""
Pipeline operations.

Each function runs one operation end to end in the current thread, taking
already validated and normalized arguments. Time and configuration are always
passed in explicitly; nothing here reads the clock or the process-wide config.
The same functions run in-process or on a worker, so they must stay free of
caller-visible side effects other than decrypt_key's documented key mutation.
"""

from datetime import datetime

import structlog

from pgp_pipeline.config import OpenPGPConfig
from pgp_pipeline.crypto import key as key_lib
from pgp_pipeline.crypto import session_key as session_keys_lib
from pgp_pipeline.crypto.key import Key
from pgp_pipeline.crypto.message import CleartextMessage, Message, Signature
from pgp_pipeline.crypto.protocol import KeyPrimitives, MessagePrimitives
from pgp_pipeline.exceptions import InvalidFormatError
from pgp_pipeline.models.crypto import CompressionAlgorithm, SessionKey, SymmetricAlgorithm
from pgp_pipeline.models.results import (
    DecryptResult,
    EncryptResult,
    KeyPairResult,
    KeyResult,
    SessionKeyMessageResult,
    SignResult,
    VerifyResult,
)

logger = structlog.get_logger(__name__)

OPERATIONS = frozenset(
    {
        "generate_key",
        "reformat_key",
        "decrypt_key",
        "encrypt",
        "decrypt",
        "sign",
        "verify",
        "encrypt_session_key",
        "decrypt_session_keys",
    }
)


def create_message(data: str | bytes, filename: str | None, date: datetime) -> Message:
    if isinstance(data, str):
        return Message.from_text(data, filename or "", date)
    return Message.from_binary(bytes(data), filename or "", date)


def _as_signature(signature: Signature | str | bytes | None) -> Signature | None:
    if signature is None or isinstance(signature, Signature):
        return signature
    return Signature.from_armored(signature)


def _key_pair(key: Key, config: OpenPGPConfig) -> KeyPairResult:
    return KeyPairResult(
        key=key,
        private_key_armored=key.armor(config),
        public_key_armored=key.to_public().armor(config),
    )


def generate_key(
    *,
    user_ids: list[str],
    passphrase: str | None,
    num_bits: int,
    unlocked: bool,
    key_expiration_time: int,
    curve: str,
    date: datetime,
    config: OpenPGPConfig,
) -> KeyPairResult:
    key = key_lib.generate(
        user_ids=user_ids,
        passphrase=passphrase,
        num_bits=num_bits,
        unlocked=unlocked,
        key_expiration_time=key_expiration_time,
        curve=curve,
        date=date,
        config=config,
    )
    return _key_pair(key, config)


def reformat_key(
    *,
    private_key: Key,
    user_ids: list[str],
    passphrase: str,
    unlocked: bool,
    key_expiration_time: int,
    date: datetime,
    config: OpenPGPConfig,
) -> KeyPairResult:
    key = key_lib.reformat(
        private_key=private_key,
        user_ids=user_ids,
        passphrase=passphrase,
        unlocked=unlocked,
        key_expiration_time=key_expiration_time,
        date=date,
        config=config,
    )
    return _key_pair(key, config)


def decrypt_key(*, private_key: KeyPrimitives, passphrase: str) -> KeyResult:
    """Unlock ``private_key`` in place and hand the same object back."""
    return KeyResult(key=private_key.decrypt(passphrase))


def encrypt(
    *,
    data: str | bytes,
    public_keys: list[Key],
    private_keys: list[Key],
    passwords: list[str],
    session_key: SessionKey | None,
    filename: str | None,
    compression: CompressionAlgorithm,
    armor: bool,
    detached: bool,
    signature: Signature | str | None,
    return_session_key: bool,
    wildcard: bool,
    date: datetime,
    config: OpenPGPConfig,
) -> EncryptResult:
    """
    Sign, then compress, then encrypt.

    The order is fixed: signatures cover the literal data, compression covers
    the signed message, and encryption covers the compressed message.
    """
    message: MessagePrimitives = create_message(data, filename, date)
    co_signature = _as_signature(signature)
    detached_signature = None

    if private_keys or co_signature:
        logger.debug("Signing message", signers=len(private_keys), detached=detached)
        if detached:
            detached_signature = message.sign_detached(private_keys, co_signature, date=date, config=config)
        else:
            message = message.sign(private_keys, co_signature, date=date, config=config)

    logger.debug("Compressing message", algorithm=compression.name)
    message = message.compress(compression)

    logger.debug(
        "Encrypting message", recipients=len(public_keys), passwords=len(passwords), wildcard=wildcard
    )
    encrypted = message.encrypt(public_keys, passwords, session_key, wildcard=wildcard, config=config)

    return EncryptResult(
        data=encrypted.message.armor(config) if armor else None,
        message=None if armor else encrypted.message,
        signature=_render_signature(detached_signature, armor, config),
        session_key=encrypted.session_key if return_session_key else None,
    )


def _render_signature(signature: Signature | None, armor: bool, config: OpenPGPConfig) -> Signature | str | None:
    if signature is None:
        return None
    return signature.armor(config) if armor else signature


def _parse_message(message: MessagePrimitives, format: str) -> tuple[str | bytes, str]:
    match format:
        case "binary":
            return message.get_literal_data(), message.get_filename()
        case "utf8":
            return message.get_text(), message.get_filename()
        case _:
            raise InvalidFormatError(format=format)


def decrypt(
    *,
    message: MessagePrimitives,
    private_keys: list[Key],
    passwords: list[str],
    session_keys: list[SessionKey],
    public_keys: list[Key],
    format: str,
    signature: Signature | str | None,
    date: datetime,
) -> DecryptResult:
    """Decrypt, decompress, then verify; signature validity is data, not failure."""
    logger.debug(
        "Decrypting message",
        private_keys=len(private_keys),
        passwords=len(passwords),
        session_keys=len(session_keys),
    )
    decrypted = message.decrypt(private_keys, passwords, session_keys)
    data, filename = _parse_message(decrypted, format)

    detached = _as_signature(signature)
    if detached is not None:
        signatures = decrypted.verify_detached(detached, public_keys, date)
    else:
        signatures = decrypted.verify(public_keys, date)
    return DecryptResult(data=data, filename=filename, signatures=signatures)


def sign(
    *,
    data: str | bytes,
    private_keys: list[Key],
    armor: bool,
    detached: bool,
    date: datetime,
    config: OpenPGPConfig,
) -> SignResult:
    """Text becomes a cleartext signed message, bytes a binary signed message."""
    message: Message | CleartextMessage
    if isinstance(data, str):
        message = CleartextMessage.from_text(data)
    else:
        message = Message.from_binary(bytes(data), date=date)

    logger.debug("Signing", signers=len(private_keys), detached=detached, cleartext=isinstance(data, str))
    if detached:
        signature = message.sign_detached(private_keys, date=date, config=config)
        return SignResult(signature=_render_signature(signature, armor, config))

    signed = message.sign(private_keys, date=date, config=config)
    if armor:
        return SignResult(data=signed.armor(config))
    return SignResult(message=signed)


def verify(
    *,
    message: Message | CleartextMessage,
    public_keys: list[Key],
    signature: Signature | str | None,
    date: datetime,
) -> VerifyResult:
    match message:
        case CleartextMessage():
            data: str | bytes = message.get_text()
        case Message():
            data = message.get_literal_data()

    detached = _as_signature(signature)
    if detached is not None:
        signatures = message.verify_detached(detached, public_keys, date)
    else:
        signatures = message.verify(public_keys, date)
    return VerifyResult(data=data, signatures=signatures)


def encrypt_session_key(
    *,
    data: bytes,
    algorithm: str,
    public_keys: list[Key],
    passwords: list[str],
    wildcard: bool,
    config: OpenPGPConfig,
) -> SessionKeyMessageResult:
    """Wrap a caller-supplied session key into a message with no body."""
    session_key = SessionKey(algorithm=SymmetricAlgorithm.from_name(algorithm), key_data=bytes(data))
    packets = session_keys_lib.wrap_session_key(
        session_key, public_keys=public_keys, passwords=passwords, wildcard=wildcard, config=config
    )
    return SessionKeyMessageResult(message=Message.from_session_key_packets(packets))


def decrypt_session_keys(
    *,
    message: MessagePrimitives,
    private_keys: list[Key],
    passwords: list[str],
) -> list[SessionKey] | None:
    """Return every resolvable session key, or ``None`` when none resolves."""
    resolved = message.decrypt_session_keys(private_keys, passwords)
    logger.debug("Session keys resolved", count=len(resolved))
    return resolved or None
