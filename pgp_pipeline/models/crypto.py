"""
Cryptographic domain models.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Self

import pgpy.constants


class SymmetricAlgorithm(IntEnum):
    """OpenPGP symmetric algorithm identifiers."""

    PLAINTEXT = 0
    IDEA = 1
    TRIPLE_DES = 2
    CAST5 = 3
    BLOWFISH = 4
    AES_128 = 7
    AES_192 = 8
    AES_256 = 9
    TWOFISH = 10
    CAMELLIA_128 = 11
    CAMELLIA_192 = 12
    CAMELLIA_256 = 13

    @property
    def key_size(self) -> int:
        """Get key size in bytes for this algorithm."""
        match self:
            case self.AES_128 | self.CAST5 | self.BLOWFISH | self.CAMELLIA_128 | self.IDEA:
                return 16
            case self.AES_192 | self.TRIPLE_DES | self.CAMELLIA_192:
                return 24
            case self.AES_256 | self.TWOFISH | self.CAMELLIA_256:
                return 32
            case _:
                return 0

    @property
    def openpgp_name(self) -> str:
        """Lowercase name used on the caller surface, e.g. ``aes256``."""
        return _OPENPGP_NAMES[self]

    @classmethod
    def from_name(cls, name: str) -> Self:
        """
        Resolve a caller-facing algorithm name.

        Raises:
            ValueError: If the name is unknown.
        """
        for algorithm, known in _OPENPGP_NAMES.items():
            if known == name.lower():
                return cls(algorithm)
        msg = f"Unknown symmetric algorithm: {name}"
        raise ValueError(msg)

    def to_pgpy(self) -> pgpy.constants.SymmetricKeyAlgorithm:
        return pgpy.constants.SymmetricKeyAlgorithm(int(self))


_OPENPGP_NAMES = {
    SymmetricAlgorithm.PLAINTEXT: "plaintext",
    SymmetricAlgorithm.IDEA: "idea",
    SymmetricAlgorithm.TRIPLE_DES: "tripledes",
    SymmetricAlgorithm.CAST5: "cast5",
    SymmetricAlgorithm.BLOWFISH: "blowfish",
    SymmetricAlgorithm.AES_128: "aes128",
    SymmetricAlgorithm.AES_192: "aes192",
    SymmetricAlgorithm.AES_256: "aes256",
    SymmetricAlgorithm.TWOFISH: "twofish",
    SymmetricAlgorithm.CAMELLIA_128: "camellia128",
    SymmetricAlgorithm.CAMELLIA_192: "camellia192",
    SymmetricAlgorithm.CAMELLIA_256: "camellia256",
}


class CompressionAlgorithm(IntEnum):
    """OpenPGP compression algorithm identifiers."""

    UNCOMPRESSED = 0
    ZIP = 1
    ZLIB = 2
    BZ2 = 3

    def to_pgpy(self) -> pgpy.constants.CompressionAlgorithm:
        return pgpy.constants.CompressionAlgorithm(int(self))


class HashAlgorithm(IntEnum):
    """OpenPGP hash algorithm identifiers."""

    SHA1 = 2
    SHA256 = 8
    SHA384 = 9
    SHA512 = 10
    SHA224 = 11

    def to_pgpy(self) -> pgpy.constants.HashAlgorithm:
        return pgpy.constants.HashAlgorithm(int(self))


@dataclass(frozen=True, kw_only=True)
class SessionKey:
    """
    Symmetric key that encrypts a message body.

    Attributes:
        algorithm: The symmetric algorithm used.
        key_data: The raw key bytes.
    """

    algorithm: SymmetricAlgorithm
    key_data: bytes

    def __post_init__(self) -> None:
        """Validate key size matches algorithm."""
        expected = self.algorithm.key_size
        if not expected or (len(self.key_data) == expected):
            return
        msg = f"Key size mismatch: {self.algorithm.name} expects {expected} bytes, got {len(self.key_data)}"
        raise ValueError(msg)

    def __repr__(self) -> str:
        return f"SessionKey(algorithm={self.algorithm.openpgp_name}, key_data=<{len(self.key_data)} bytes>)"

    @classmethod
    def generate(cls, algorithm: SymmetricAlgorithm) -> Self:
        return cls(algorithm=algorithm, key_data=bytes(algorithm.to_pgpy().gen_key()))


@dataclass(frozen=True, kw_only=True)
class UserId:
    """A user identity record, rendered as ``name <email>``."""

    name: str = ""
    email: str = ""
