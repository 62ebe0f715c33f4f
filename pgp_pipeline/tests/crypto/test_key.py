from collections.abc import Callable
from datetime import datetime, timedelta

import pytest

from pgp_pipeline.config import OpenPGPConfig
from pgp_pipeline.crypto import key as key_lib
from pgp_pipeline.crypto.key import Key
from pgp_pipeline.exceptions import InvalidUserIdError, KeyLockedError, PrimitiveError


def test_generate_returns_private_key_with_user_ids(make_key: Callable[..., Key]) -> None:
    key = make_key(user_id="Ada <ada@example.org>")

    assert key.is_private
    assert key.is_decrypted
    assert key.user_ids == ["Ada <ada@example.org>"]
    assert len(key.key_id) == 16
    assert len(key.key_ids) == 2


def test_generate_requires_a_user_id(config: OpenPGPConfig, now: datetime) -> None:
    with pytest.raises(InvalidUserIdError):
        key_lib.generate(
            user_ids=[],
            passphrase=None,
            num_bits=2048,
            unlocked=False,
            key_expiration_time=0,
            curve="curve25519",
            date=now,
            config=config,
        )


def test_generate_rejects_unknown_curve(config: OpenPGPConfig, now: datetime) -> None:
    with pytest.raises(PrimitiveError, match="Unknown curve: curve448"):
        key_lib.generate(
            user_ids=["<a@example.org>"],
            passphrase=None,
            num_bits=2048,
            unlocked=False,
            key_expiration_time=0,
            curve="curve448",
            date=now,
            config=config,
        )


def test_protected_key_starts_locked(locked_key: Key) -> None:
    assert locked_key.is_private
    assert not locked_key.is_decrypted

    with pytest.raises(KeyLockedError) as exc_info:
        with locked_key.unlocked():
            pass

    assert exc_info.value.key_id == locked_key.key_id


def test_generate_unlocked_holds_passphrase(make_key: Callable[..., Key], passphrase: str) -> None:
    key = make_key(passphrase=passphrase, unlocked=True)

    assert key.is_decrypted


def test_decrypt_unlocks_in_place(locked_key: Key, passphrase: str) -> None:
    result = locked_key.decrypt(passphrase)

    assert result is locked_key
    assert locked_key.is_decrypted
    with locked_key.unlocked() as pgpy_key:
        assert pgpy_key.is_unlocked


def test_decrypt_with_wrong_passphrase_fails(locked_key: Key) -> None:
    with pytest.raises(PrimitiveError, match="Incorrect key passphrase"):
        locked_key.decrypt("wrong")

    assert not locked_key.is_decrypted


def test_decrypt_public_key_fails(alice: Key) -> None:
    with pytest.raises(PrimitiveError, match="public key"):
        alice.to_public().decrypt("anything")


def test_lock_forgets_passphrase(locked_key: Key, passphrase: str) -> None:
    locked_key.decrypt(passphrase)
    locked_key.lock()

    assert not locked_key.is_decrypted


def test_to_public_strips_secret_material(alice: Key) -> None:
    public = alice.to_public()

    assert not public.is_private
    assert not public.is_decrypted
    assert public.key_id == alice.key_id
    assert public.to_public() is public


def test_armor_round_trip_keeps_identity(alice: Key, config: OpenPGPConfig) -> None:
    armored = alice.to_public().armor(config)
    parsed = Key.from_armored(armored)

    assert armored.startswith("-----BEGIN PGP PUBLIC KEY BLOCK-----")
    assert "Version: pgp-pipeline v0.1.0" in armored
    assert parsed.fingerprint == alice.fingerprint
    assert not parsed.is_private


def test_from_armored_rejects_garbage() -> None:
    with pytest.raises(PrimitiveError, match="Failed to load key"):
        Key.from_armored("not a key")


def test_expiration(make_key: Callable[..., Key], now: datetime) -> None:
    key = make_key(key_expiration_time=3600)

    assert key.expires_at is not None
    assert not key.is_expired_at(now)
    assert key.is_expired_at(now + timedelta(hours=2))


def test_key_without_expiration_never_expires(alice: Key, now: datetime) -> None:
    assert alice.expires_at is None
    assert not alice.is_expired_at(now + timedelta(days=3650))


def test_reformat_replaces_user_ids_on_same_material(
    make_key: Callable[..., Key], config: OpenPGPConfig, now: datetime
) -> None:
    key = make_key(user_id="Old <old@example.org>")

    reformatted = key_lib.reformat(
        private_key=key,
        user_ids=["New <new@example.org>", "Alt <alt@example.org>"],
        passphrase="",
        unlocked=False,
        key_expiration_time=0,
        date=now,
        config=config,
    )

    assert reformatted is not key
    assert reformatted.fingerprint == key.fingerprint
    assert reformatted.key_ids == key.key_ids
    assert reformatted.user_ids == ["New <new@example.org>", "Alt <alt@example.org>"]
    assert key.user_ids == ["Old <old@example.org>"]


def test_reformat_protects_with_new_passphrase(
    make_key: Callable[..., Key], config: OpenPGPConfig, now: datetime
) -> None:
    key = make_key()

    reformatted = key_lib.reformat(
        private_key=key,
        user_ids=["<new@example.org>"],
        passphrase="new passphrase",
        unlocked=False,
        key_expiration_time=0,
        date=now,
        config=config,
    )

    assert not reformatted.is_decrypted
    reformatted.decrypt("new passphrase")
    assert reformatted.is_decrypted


def test_reformat_locked_key_fails(locked_key: Key, config: OpenPGPConfig, now: datetime) -> None:
    with pytest.raises(KeyLockedError):
        key_lib.reformat(
            private_key=locked_key,
            user_ids=["<new@example.org>"],
            passphrase="",
            unlocked=False,
            key_expiration_time=0,
            date=now,
            config=config,
        )


def test_reformat_without_passphrase_removes_protection(
    locked_key: Key, passphrase: str, config: OpenPGPConfig, now: datetime
) -> None:
    locked_key.decrypt(passphrase)

    reformatted = key_lib.reformat(
        private_key=locked_key,
        user_ids=["<new@example.org>"],
        passphrase="",
        unlocked=False,
        key_expiration_time=0,
        date=now,
        config=config,
    )

    assert not reformatted.pgpy_key.is_protected
    assert reformatted.is_decrypted
    assert locked_key.pgpy_key.is_protected
    with reformatted.unlocked() as key:
        signature = key.sign("hello")
    assert reformatted.pgpy_key.pubkey.verify("hello", signature)


def test_reformat_requires_private_key(alice: Key, config: OpenPGPConfig, now: datetime) -> None:
    with pytest.raises(PrimitiveError, match="private key"):
        key_lib.reformat(
            private_key=alice.to_public(),
            user_ids=["<new@example.org>"],
            passphrase="",
            unlocked=False,
            key_expiration_time=0,
            date=now,
            config=config,
        )
