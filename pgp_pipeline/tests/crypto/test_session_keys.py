from collections.abc import Callable

import pytest
from pgpy.packet.packets import PKESessionKeyV3, SKESessionKeyV4

from pgp_pipeline.config import OpenPGPConfig
from pgp_pipeline.crypto import session_key as session_keys_lib
from pgp_pipeline.crypto.key import Key
from pgp_pipeline.exceptions import KeyLockedError, PrimitiveError
from pgp_pipeline.models.crypto import SessionKey, SymmetricAlgorithm


@pytest.fixture
def session_key() -> SessionKey:
    return SessionKey.generate(SymmetricAlgorithm.AES_256)


def test_wrap_builds_one_packet_per_credential_in_order(
    alice: Key, bob: Key, session_key: SessionKey, config: OpenPGPConfig
) -> None:
    packets = session_keys_lib.wrap_session_key(
        session_key,
        public_keys=[alice.to_public(), bob.to_public()],
        passwords=["first", "second"],
        wildcard=False,
        config=config,
    )

    assert [type(p) for p in packets] == [PKESessionKeyV3, PKESessionKeyV3, SKESessionKeyV4, SKESessionKeyV4]
    assert str(packets[0].encrypter) in alice.key_ids
    assert str(packets[1].encrypter) in bob.key_ids


def test_wildcard_hides_recipient_ids(alice: Key, session_key: SessionKey, config: OpenPGPConfig) -> None:
    packets = session_keys_lib.wrap_session_key(
        session_key, public_keys=[alice.to_public()], passwords=[], wildcard=True, config=config
    )

    assert str(packets[0].encrypter) == session_keys_lib.WILDCARD_KEY_ID


def test_wildcard_packets_still_resolve(alice: Key, session_key: SessionKey, config: OpenPGPConfig) -> None:
    packets = session_keys_lib.wrap_session_key(
        session_key, public_keys=[alice.to_public()], passwords=[], wildcard=True, config=config
    )

    resolved = list(session_keys_lib.iter_session_keys(packets, private_keys=[alice], passwords=[]))

    assert resolved == [session_key]


def test_resolution_order_is_keys_then_passwords_then_session_keys(
    alice: Key, session_key: SessionKey, config: OpenPGPConfig
) -> None:
    extra = SessionKey.generate(SymmetricAlgorithm.AES_128)
    packets = session_keys_lib.wrap_session_key(
        session_key, public_keys=[alice.to_public()], passwords=["pw"], wildcard=False, config=config
    )

    resolved = list(
        session_keys_lib.iter_session_keys(packets, private_keys=[alice], passwords=["pw"], session_keys=[extra])
    )

    assert resolved == [session_key, session_key, extra]


def test_wrong_credentials_resolve_nothing(
    alice: Key, bob: Key, session_key: SessionKey, config: OpenPGPConfig
) -> None:
    packets = session_keys_lib.wrap_session_key(
        session_key, public_keys=[alice.to_public()], passwords=["pw"], wildcard=False, config=config
    )

    resolved = list(session_keys_lib.iter_session_keys(packets, private_keys=[bob], passwords=["nope"]))

    assert resolved == []


def test_iteration_is_lazy(alice: Key, locked_key: Key, session_key: SessionKey, config: OpenPGPConfig) -> None:
    packets = session_keys_lib.wrap_session_key(
        session_key,
        public_keys=[alice.to_public(), locked_key.to_public()],
        passwords=[],
        wildcard=False,
        config=config,
    )
    candidates = session_keys_lib.iter_session_keys(packets, private_keys=[alice, locked_key], passwords=[])

    assert next(candidates) == session_key
    with pytest.raises(KeyLockedError):
        next(candidates)


def test_unique_session_keys_keeps_first_occurrence(session_key: SessionKey) -> None:
    other = SessionKey.generate(SymmetricAlgorithm.AES_128)

    unique = session_keys_lib.unique_session_keys([session_key, other, session_key])

    assert unique == [session_key, other]


def test_select_cipher_prefers_configured_cipher(alice: Key, bob: Key, config: OpenPGPConfig) -> None:
    assert session_keys_lib.select_cipher([alice, bob], config) is SymmetricAlgorithm.AES_256


def test_select_cipher_honours_recipient_preferences(alice: Key) -> None:
    config = OpenPGPConfig(encryption_cipher=SymmetricAlgorithm.CAST5)

    assert session_keys_lib.select_cipher([alice], config) is SymmetricAlgorithm.AES_256


def test_select_cipher_without_recipients_uses_config() -> None:
    config = OpenPGPConfig(encryption_cipher=SymmetricAlgorithm.AES_128)

    assert session_keys_lib.select_cipher([], config) is SymmetricAlgorithm.AES_128


def test_key_without_encryption_capability_is_rejected(
    make_key: Callable[..., Key], session_key: SessionKey
) -> None:
    key = make_key()
    key.pgpy_key._children.clear()

    with pytest.raises(PrimitiveError, match="Could not find valid key packet for encryption"):
        session_keys_lib.build_pkesk(key.to_public(), session_key, wildcard=False)
