"""
OpenPGP pipeline configuration.
"""

import dataclasses
from dataclasses import dataclass
from typing import Any

from pgp_pipeline.models.crypto import CompressionAlgorithm, HashAlgorithm, SymmetricAlgorithm

_UNSAFE_CIPHERS = frozenset({SymmetricAlgorithm.PLAINTEXT, SymmetricAlgorithm.IDEA})


@dataclass(frozen=True, kw_only=True)
class OpenPGPConfig:
    """
    Attributes:
        encryption_cipher: Preferred symmetric cipher for new session keys.
        prefer_hash_algorithm: Hash used for signatures and password S2K.
        compression: Default compression applied by encrypt.
        aead_protect: Enable authenticated encryption when natively available.
        debug: Log full failure details in the error translator.
        min_rsa_bits: Smallest RSA modulus accepted by generate_key.
        show_version: Emit a Version armor header.
        show_comment: Emit a Comment armor header.
        version_string: Value of the Version armor header.
        comment_string: Value of the Comment armor header.
    """

    encryption_cipher: SymmetricAlgorithm = SymmetricAlgorithm.AES_256
    prefer_hash_algorithm: HashAlgorithm = HashAlgorithm.SHA256
    compression: CompressionAlgorithm = CompressionAlgorithm.UNCOMPRESSED
    aead_protect: bool = False
    debug: bool = False
    min_rsa_bits: int = 2048
    show_version: bool = True
    show_comment: bool = False
    version_string: str = "pgp-pipeline v0.1.0"
    comment_string: str = ""

    def __post_init__(self) -> None:
        if self.encryption_cipher in _UNSAFE_CIPHERS:
            msg = f"encryption_cipher {self.encryption_cipher.name} is not allowed"
            raise ValueError(msg)
        if self.min_rsa_bits <= 0:
            msg = "min_rsa_bits must be positive"
            raise ValueError(msg)
        if self.show_comment and not self.comment_string:
            msg = "comment_string must be set when show_comment is enabled"
            raise ValueError(msg)

    def armor_headers(self) -> dict[str, str]:
        headers = {}
        if self.show_version:
            headers["Version"] = self.version_string
        if self.show_comment:
            headers["Comment"] = self.comment_string
        return headers


_config = OpenPGPConfig()


def get_config() -> OpenPGPConfig:
    """Return the process-wide configuration."""
    return _config


def set_config(config: OpenPGPConfig) -> None:
    global _config
    _config = config


def configure(**changes: Any) -> OpenPGPConfig:
    """
    Replace selected fields of the process-wide configuration.

    Returns:
        The new configuration.

    Raises:
        ValueError: If the resulting configuration is invalid.
    """
    set_config(dataclasses.replace(_config, **changes))
    return _config
