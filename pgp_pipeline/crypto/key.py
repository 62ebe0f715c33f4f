"""
OpenPGP key wrapper and key lifecycle primitives over pgpy.
"""

import itertools
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Self

import pgpy
import structlog
from pgpy.constants import (
    CompressionAlgorithm,
    EllipticCurveOID,
    HashAlgorithm,
    KeyFlags,
    PubKeyAlgorithm,
    SymmetricKeyAlgorithm,
)
from pgpy.packet.fields import String2Key

from pgp_pipeline.config import OpenPGPConfig
from pgp_pipeline.crypto.secure_bytes import SecureBytes
from pgp_pipeline.exceptions import InvalidUserIdError, KeyLockedError, PrimitiveError

logger = structlog.get_logger(__name__)

_SIGN_FLAGS = {KeyFlags.Certify, KeyFlags.Sign}
_ENCRYPT_FLAGS = {KeyFlags.EncryptCommunications, KeyFlags.EncryptStorage}

_PREFERRED_HASHES = [HashAlgorithm.SHA256, HashAlgorithm.SHA512, HashAlgorithm.SHA384, HashAlgorithm.SHA224]
_PREFERRED_CIPHERS = [
    SymmetricKeyAlgorithm.AES256,
    SymmetricKeyAlgorithm.AES192,
    SymmetricKeyAlgorithm.AES128,
]
_PREFERRED_COMPRESSION = [
    CompressionAlgorithm.ZLIB,
    CompressionAlgorithm.BZ2,
    CompressionAlgorithm.ZIP,
    CompressionAlgorithm.Uncompressed,
]

# curve name -> (primary algorithm, primary curve, subkey curve)
_CURVES = {
    "curve25519": (PubKeyAlgorithm.EdDSA, EllipticCurveOID.Ed25519, EllipticCurveOID.Curve25519),
    "ed25519": (PubKeyAlgorithm.EdDSA, EllipticCurveOID.Ed25519, EllipticCurveOID.Curve25519),
    "p256": (PubKeyAlgorithm.ECDSA, EllipticCurveOID.NIST_P256, EllipticCurveOID.NIST_P256),
    "p384": (PubKeyAlgorithm.ECDSA, EllipticCurveOID.NIST_P384, EllipticCurveOID.NIST_P384),
    "p521": (PubKeyAlgorithm.ECDSA, EllipticCurveOID.NIST_P521, EllipticCurveOID.NIST_P521),
    "brainpoolP256r1": (PubKeyAlgorithm.ECDSA, EllipticCurveOID.Brainpool_P256, EllipticCurveOID.Brainpool_P256),
    "brainpoolP384r1": (PubKeyAlgorithm.ECDSA, EllipticCurveOID.Brainpool_P384, EllipticCurveOID.Brainpool_P384),
    "brainpoolP512r1": (PubKeyAlgorithm.ECDSA, EllipticCurveOID.Brainpool_P512, EllipticCurveOID.Brainpool_P512),
    "secp256k1": (PubKeyAlgorithm.ECDSA, EllipticCurveOID.SECP256K1, EllipticCurveOID.SECP256K1),
}


class Key:
    """
    An OpenPGP public or private key.

    A private key starts locked when its secret material is passphrase
    protected. decrypt() switches it to unlocked in place by keeping the
    passphrase, so every later sign or decrypt can expose the material for
    the duration of that single operation.
    """

    def __init__(self, key: pgpy.PGPKey) -> None:
        self._key = key
        self._passphrase: SecureBytes | None = None

    def __repr__(self) -> str:
        kind = "private" if self.is_private else "public"
        return f"Key({kind}, key_id={self.key_id})"

    @classmethod
    def from_armored(cls, armored: str | bytes) -> Self:
        """
        Parse an ASCII-armored or binary key.

        Raises:
            PrimitiveError: If the key cannot be parsed.
        """
        try:
            key, _ = pgpy.PGPKey.from_blob(armored)
        except Exception as e:
            msg = f"Failed to load key: {e}"
            raise PrimitiveError(msg) from e
        return cls(key)

    @property
    def pgpy_key(self) -> pgpy.PGPKey:
        return self._key

    @property
    def key_id(self) -> str:
        return str(self._key.fingerprint.keyid)

    @property
    def fingerprint(self) -> str:
        return str(self._key.fingerprint)

    @property
    def key_ids(self) -> set[str]:
        """Primary key id together with every subkey id."""
        return {self.key_id} | {str(keyid) for keyid in self._key.subkeys}

    @property
    def user_ids(self) -> list[str]:
        return [uid.userid for uid in self._key.userids]

    @property
    def is_private(self) -> bool:
        return not self._key.is_public

    @property
    def is_decrypted(self) -> bool:
        if not self.is_private:
            return False
        return (not self._key.is_protected) or bool(self._passphrase)

    @property
    def expires_at(self) -> datetime | None:
        return self._key.expires_at

    def is_expired_at(self, date: datetime) -> bool:
        expires = self.expires_at
        return expires is not None and expires <= date

    def armor(self, config: OpenPGPConfig | None = None) -> str:
        if config is not None:
            self._key.ascii_headers.clear()
            self._key.ascii_headers.update(config.armor_headers())
        return str(self._key)

    def to_public(self) -> "Key":
        if not self.is_private:
            return self
        return Key(self._key.pubkey)

    def decrypt(self, passphrase: str) -> Self:
        """
        Unlock the secret key material in place.

        Raises:
            PrimitiveError: If this is a public key or the passphrase is wrong.
        """
        if not self.is_private:
            msg = "Nothing to decrypt in a public key"
            raise PrimitiveError(msg)
        if not self._key.is_protected:
            return self
        try:
            with self._key.unlock(passphrase):
                pass
        except pgpy.errors.PGPDecryptionError as e:
            msg = "Incorrect key passphrase"
            raise PrimitiveError(msg) from e
        self.lock()
        self._passphrase = SecureBytes.from_string(passphrase)
        logger.debug("Private key decrypted", key_id=self.key_id)
        return self

    def lock(self) -> None:
        """Forget the held passphrase; the key is locked again."""
        if self._passphrase is not None:
            self._passphrase.clear()
            self._passphrase = None

    @contextmanager
    def unlocked(self) -> Iterator[pgpy.PGPKey]:
        """
        Expose the secret key material for one operation.

        Raises:
            KeyLockedError: If the key is protected and was not decrypted.
        """
        if not self.is_private:
            msg = "Operation requires a private key"
            raise PrimitiveError(msg, key_id=self.key_id)
        if not self._key.is_protected:
            yield self._key
            return
        if not self._passphrase:
            raise KeyLockedError(key_id=self.key_id)
        with self._key.unlock(self._passphrase.decode()):
            yield self._key


def _format_expiration(seconds: int) -> timedelta | None:
    return timedelta(seconds=seconds) if seconds else None


def _add_user_ids(
    key: pgpy.PGPKey, user_ids: list[str], key_expiration_time: int, date: datetime, config: OpenPGPConfig
) -> None:
    for index, user_id in enumerate(user_ids):
        key.add_uid(
            pgpy.PGPUID.new(user_id),
            usage=_SIGN_FLAGS,
            hashes=_PREFERRED_HASHES,
            ciphers=_PREFERRED_CIPHERS,
            compression=_PREFERRED_COMPRESSION,
            key_expiration=_format_expiration(key_expiration_time),
            primary=index == 0,
            hash=config.prefer_hash_algorithm.to_pgpy(),
            created=date,
        )


def _new_key_pair(num_bits: int, curve: str, date: datetime) -> tuple[pgpy.PGPKey, pgpy.PGPKey]:
    if not curve:
        primary = pgpy.PGPKey.new(PubKeyAlgorithm.RSAEncryptOrSign, num_bits, created=date)
        subkey = pgpy.PGPKey.new(PubKeyAlgorithm.RSAEncryptOrSign, num_bits, created=date)
        return primary, subkey
    try:
        algorithm, primary_curve, subkey_curve = _CURVES[curve]
    except KeyError:
        msg = f"Unknown curve: {curve}"
        raise PrimitiveError(msg) from None
    primary = pgpy.PGPKey.new(algorithm, primary_curve, created=date)
    subkey = pgpy.PGPKey.new(PubKeyAlgorithm.ECDH, subkey_curve, created=date)
    return primary, subkey


def _protect(key: pgpy.PGPKey, passphrase: str, config: OpenPGPConfig) -> None:
    key.protect(passphrase, config.encryption_cipher.to_pgpy(), config.prefer_hash_algorithm.to_pgpy())


def _unprotect(key: pgpy.PGPKey) -> None:
    """Store the unlocked secret material of the key and its subkeys in the clear."""
    for part in itertools.chain([key], key.subkeys.values()):
        material = part._key.keymaterial
        material.s2k = String2Key()
        material.encbytes = bytearray()
        material._compute_chksum()
        part._key.update_hlen()


def generate(
    *,
    user_ids: list[str],
    passphrase: str | None,
    num_bits: int,
    unlocked: bool,
    key_expiration_time: int,
    curve: str,
    date: datetime,
    config: OpenPGPConfig,
) -> Key:
    """
    Generate a primary signing key with one encryption subkey.

    Raises:
        InvalidUserIdError: If no user id is given.
        PrimitiveError: If the curve is unknown.
    """
    if not user_ids:
        msg = "At least one user id is required"
        raise InvalidUserIdError(msg)

    primary, subkey = _new_key_pair(num_bits, curve, date)
    _add_user_ids(primary, user_ids, key_expiration_time, date, config)
    primary.add_subkey(
        subkey, usage=_ENCRYPT_FLAGS, hash=config.prefer_hash_algorithm.to_pgpy(), created=date
    )

    key = Key(primary)
    if passphrase:
        _protect(primary, passphrase, config)
        if unlocked:
            key._passphrase = SecureBytes.from_string(passphrase)
    logger.debug("Key generated", key_id=key.key_id, curve=curve or None, num_bits=None if curve else num_bits)
    return key


def reformat(
    *,
    private_key: Key,
    user_ids: list[str],
    passphrase: str,
    unlocked: bool,
    key_expiration_time: int,
    date: datetime,
    config: OpenPGPConfig,
) -> Key:
    """
    Rebuild user id self-signatures and subkey bindings on the same key material.

    The result is protected with the given passphrase, or stored unprotected
    when the passphrase is empty.

    Raises:
        InvalidUserIdError: If no user id is given.
        KeyLockedError: If the source key is protected and not decrypted.
    """
    if not user_ids:
        msg = "At least one user id is required"
        raise InvalidUserIdError(msg)
    if not private_key.is_private:
        msg = "Reformatting requires a private key"
        raise PrimitiveError(msg, key_id=private_key.key_id)

    rebuilt = Key.from_armored(str(private_key.pgpy_key))
    rebuilt._passphrase = private_key._passphrase and SecureBytes.from_string(private_key._passphrase.decode())
    key = rebuilt.pgpy_key
    subkey_flags = {
        keyid: next(subkey.self_signatures).key_flags for keyid, subkey in key.subkeys.items()
    }

    unprotected = None
    with rebuilt.unlocked():
        key._uids.clear()
        _add_user_ids(key, user_ids, key_expiration_time, date, config)
        for keyid, subkey in list(key.subkeys.items()):
            subkey._signatures.clear()
            key.add_subkey(
                subkey,
                usage=subkey_flags[keyid] or _ENCRYPT_FLAGS,
                hash=config.prefer_hash_algorithm.to_pgpy(),
                created=date,
            )
        if passphrase:
            _protect(key, passphrase, config)
        elif key.is_protected:
            _unprotect(key)
            unprotected = str(key)

    rebuilt.lock()
    if unprotected is not None:
        # Secret material is wiped when the unlock scope exits.
        rebuilt = Key.from_armored(unprotected)
    if passphrase and unlocked:
        rebuilt._passphrase = SecureBytes.from_string(passphrase)

    logger.debug("Key reformatted", key_id=rebuilt.key_id, user_ids=len(user_ids))
    return rebuilt
