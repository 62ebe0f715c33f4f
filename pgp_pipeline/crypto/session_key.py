"""
Session key fan-out and resolution.

Encryption wraps one session key once per recipient (PKESK packet) and once per
password (SKESK packet). Decryption walks the supplied credentials lazily and in
order: private keys, then passwords, then already extracted session keys.
"""

import binascii
from collections.abc import Iterable, Iterator

import pgpy
import structlog
from pgpy.constants import HashAlgorithm as PgpyHashAlgorithm
from pgpy.constants import KeyFlags
from pgpy.errors import PGPDecryptionError, PGPError
from pgpy.packet.packets import PKESessionKey, PKESessionKeyV3, SKESessionKey, SKESessionKeyV4

from pgp_pipeline.config import OpenPGPConfig
from pgp_pipeline.crypto.key import Key
from pgp_pipeline.exceptions import PrimitiveError
from pgp_pipeline.models.crypto import SessionKey, SymmetricAlgorithm

logger = structlog.get_logger(__name__)

WILDCARD_KEY_ID = "0000000000000000"

_ENCRYPT_FLAGS = {KeyFlags.EncryptCommunications, KeyFlags.EncryptStorage}
_UNWRAP_ERRORS = (PGPDecryptionError, PGPError, ValueError, TypeError, NotImplementedError)
# RFC 4880 mandatory-to-implement fallback
_FALLBACK_CIPHER = SymmetricAlgorithm.AES_128


def _can_encrypt(key: pgpy.PGPKey) -> bool:
    return key.key_algorithm.can_encrypt


def _find_encryption_key(key: pgpy.PGPKey) -> pgpy.PGPKey:
    """Prefer a subkey flagged for encryption, fall back to the primary key."""
    for subkey in key.subkeys.values():
        if not _can_encrypt(subkey):
            continue
        binding = next(iter(subkey.self_signatures), None)
        if binding is None or not binding.key_flags or (binding.key_flags & _ENCRYPT_FLAGS):
            return subkey
    if _can_encrypt(key):
        return key
    msg = "Could not find valid key packet for encryption in key"
    raise PrimitiveError(msg, key_id=str(key.fingerprint.keyid))


def _key_components(key: pgpy.PGPKey) -> Iterator[pgpy.PGPKey]:
    yield key
    yield from key.subkeys.values()


def select_cipher(public_keys: Iterable[Key], config: OpenPGPConfig) -> SymmetricAlgorithm:
    """
    Choose the session cipher every recipient advertises.

    Walks our preference order (configured cipher first) and keeps the first
    algorithm present in the self-signature preferences of all recipients.
    """
    preferences = list(
        dict.fromkeys(
            [
                config.encryption_cipher,
                SymmetricAlgorithm.AES_256,
                SymmetricAlgorithm.AES_192,
                SymmetricAlgorithm.AES_128,
            ]
        )
    )
    candidates = set(preferences)
    for key in public_keys:
        advertised = set()
        for uid in key.pgpy_key.userids:
            if uid.selfsig and uid.selfsig.cipherprefs:
                advertised.update(SymmetricAlgorithm(int(c)) for c in uid.selfsig.cipherprefs)
        candidates &= advertised
    return next((c for c in preferences if c in candidates), _FALLBACK_CIPHER)


def build_pkesk(public_key: Key, session_key: SessionKey, *, wildcard: bool) -> PKESessionKeyV3:
    encryption_key = _find_encryption_key(public_key.pgpy_key)
    pkesk = PKESessionKeyV3()
    if wildcard:
        pkesk.encrypter = bytearray(8)
    else:
        pkesk.encrypter = bytearray(binascii.unhexlify(encryption_key.fingerprint.keyid.encode("latin-1")))
    pkesk.pkalg = encryption_key.key_algorithm
    pkesk.encrypt_sk(encryption_key._key, session_key.algorithm.to_pgpy(), session_key.key_data)
    return pkesk


def build_skesk(password: str, session_key: SessionKey, config: OpenPGPConfig) -> SKESessionKeyV4:
    skesk = SKESessionKeyV4()
    skesk.s2k.usage = 255
    skesk.s2k.specifier = 3
    skesk.s2k.halg = PgpyHashAlgorithm(int(config.prefer_hash_algorithm))
    skesk.s2k.encalg = session_key.algorithm.to_pgpy()
    skesk.s2k.count = skesk.s2k.halg.tuned_count
    skesk.encrypt_sk(password, session_key.key_data)
    return skesk


def wrap_session_key(
    session_key: SessionKey,
    *,
    public_keys: list[Key],
    passwords: list[str],
    wildcard: bool,
    config: OpenPGPConfig,
) -> list[PKESessionKeyV3 | SKESessionKeyV4]:
    """Build one PKESK per recipient, then one SKESK per password, in input order."""
    packets: list[PKESessionKeyV3 | SKESessionKeyV4] = [
        build_pkesk(key, session_key, wildcard=wildcard) for key in public_keys
    ]
    packets.extend(build_skesk(password, session_key, config) for password in passwords)
    logger.debug(
        "Session key wrapped",
        algorithm=session_key.algorithm.openpgp_name,
        recipients=len(public_keys),
        passwords=len(passwords),
        wildcard=wildcard,
    )
    return packets


def _to_session_key(algorithm: object, key_data: bytes | bytearray) -> SessionKey:
    return SessionKey(algorithm=SymmetricAlgorithm(int(algorithm)), key_data=bytes(key_data))


def _matching_components(pkesk: PKESessionKey, key: pgpy.PGPKey) -> list[pgpy.PGPKey]:
    encrypter = str(pkesk.encrypter)
    if encrypter == WILDCARD_KEY_ID:
        return [c for c in _key_components(key) if c.key_algorithm == pkesk.pkalg and _can_encrypt(c)]
    return [c for c in _key_components(key) if str(c.fingerprint.keyid) == encrypter]


def _unwrap_with_private_key(packets: list, private_key: Key) -> list[SessionKey]:
    pkesks = [p for p in packets if isinstance(p, PKESessionKey)]
    if not any(_matching_components(p, private_key.pgpy_key) for p in pkesks):
        return []

    resolved = []
    try:
        with private_key.unlocked() as key:
            for pkesk in pkesks:
                for component in _matching_components(pkesk, key):
                    try:
                        algorithm, key_data = pkesk.decrypt_sk(component._key)
                        resolved.append(_to_session_key(algorithm, key_data))
                    except _UNWRAP_ERRORS:
                        continue
    except PGPError as e:
        msg = f"Failed to unlock private key: {e}"
        raise PrimitiveError(msg, key_id=private_key.key_id) from e
    return resolved


def _unwrap_with_password(packets: list, password: str) -> list[SessionKey]:
    resolved = []
    for skesk in (p for p in packets if isinstance(p, SKESessionKey)):
        try:
            algorithm, key_data = skesk.decrypt_sk(password)
            resolved.append(_to_session_key(algorithm, key_data))
        except _UNWRAP_ERRORS:
            continue
    return resolved


def iter_session_keys(
    packets: list,
    *,
    private_keys: list[Key],
    passwords: list[str],
    session_keys: Iterable[SessionKey] = (),
) -> Iterator[SessionKey]:
    """
    Yield candidate session keys lazily, in credential order.

    Raises:
        KeyLockedError: If a matching private key was never decrypted.
    """
    for private_key in private_keys:
        yield from _unwrap_with_private_key(packets, private_key)
    for password in passwords:
        yield from _unwrap_with_password(packets, password)
    yield from session_keys


def unique_session_keys(keys: Iterable[SessionKey]) -> list[SessionKey]:
    seen = set()
    unique = []
    for key in keys:
        marker = (key.algorithm, key.key_data)
        if marker in seen:
            continue
        seen.add(marker)
        unique.append(key)
    return unique
