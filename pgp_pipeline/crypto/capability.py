"""
Native cryptographic capability detection.

Evaluated fresh on every routed call; nothing here is cached.
"""

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives.ciphers import algorithms, modes

from pgp_pipeline.config import OpenPGPConfig

_PROBE_KEY = bytes(32)
_PROBE_NONCE = bytes(12)


def native_crypto_available() -> bool:
    """True when the linked OpenSSL provides AES-256-GCM."""
    try:
        return bool(
            default_backend().cipher_supported(algorithms.AES(_PROBE_KEY), modes.GCM(_PROBE_NONCE))
        )
    except UnsupportedAlgorithm:
        return False


def native_aead(config: OpenPGPConfig) -> bool:
    """True when authenticated encryption is both natively available and enabled."""
    return config.aead_protect and native_crypto_available()
