from collections.abc import Callable, Iterator
from datetime import datetime, timezone

import pytest

from pgp_pipeline.config import OpenPGPConfig
from pgp_pipeline.crypto import key as key_lib
from pgp_pipeline.crypto.key import Key
from pgp_pipeline.worker.registry import WorkerRegistry

PASSPHRASE = "correct horse battery staple"


@pytest.fixture(scope="session")
def config() -> OpenPGPConfig:
    return OpenPGPConfig()


@pytest.fixture(scope="session")
def now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture
def make_key(config: OpenPGPConfig, now: datetime) -> Callable[..., Key]:
    def _make(
        user_id: str = "Test <test@example.org>",
        passphrase: str | None = None,
        unlocked: bool = False,
        key_expiration_time: int = 0,
        date: datetime | None = None,
    ) -> Key:
        return key_lib.generate(
            user_ids=[user_id],
            passphrase=passphrase,
            num_bits=2048,
            unlocked=unlocked,
            key_expiration_time=key_expiration_time,
            curve="curve25519",
            date=date or now,
            config=config,
        )

    return _make


@pytest.fixture(scope="session")
def alice(config: OpenPGPConfig, now: datetime) -> Key:
    return key_lib.generate(
        user_ids=["Alice <alice@example.org>"],
        passphrase=None,
        num_bits=2048,
        unlocked=False,
        key_expiration_time=0,
        curve="curve25519",
        date=now,
        config=config,
    )


@pytest.fixture(scope="session")
def bob(config: OpenPGPConfig, now: datetime) -> Key:
    return key_lib.generate(
        user_ids=["Bob <bob@example.org>"],
        passphrase=None,
        num_bits=2048,
        unlocked=False,
        key_expiration_time=0,
        curve="curve25519",
        date=now,
        config=config,
    )


@pytest.fixture(scope="session")
def passphrase() -> str:
    return PASSPHRASE


@pytest.fixture
def locked_key(make_key: Callable[..., Key]) -> Key:
    return make_key(user_id="Carol <carol@example.org>", passphrase=PASSPHRASE)


@pytest.fixture
def registry() -> Iterator[WorkerRegistry]:
    registry = WorkerRegistry()
    yield registry
    registry.destroy()
