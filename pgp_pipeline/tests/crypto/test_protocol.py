from pgp_pipeline.crypto.key import Key
from pgp_pipeline.crypto.message import CleartextMessage, Message
from pgp_pipeline.crypto.protocol import KeyPrimitives, MessagePrimitives, WorkerTransport
from pgp_pipeline.worker.proxy import WorkerProxy


def test_key_satisfies_key_protocol(alice: Key) -> None:
    assert isinstance(alice, KeyPrimitives)
    assert isinstance(alice.to_public(), KeyPrimitives)


def test_message_satisfies_message_protocol() -> None:
    assert isinstance(Message.from_text("hello"), MessagePrimitives)


def test_cleartext_message_is_not_a_full_message() -> None:
    assert not isinstance(CleartextMessage.from_text("hello"), MessagePrimitives)


def test_worker_proxy_satisfies_transport_protocol() -> None:
    proxy = WorkerProxy()

    assert isinstance(proxy, WorkerTransport)
    proxy.terminate()
