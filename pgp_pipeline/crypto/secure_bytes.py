"""Zeroable container for key passphrases."""

import ctypes
import hmac
import warnings
from typing import Self


def _secure_zero(data: bytearray) -> None:
    if len(data) == 0:
        return
    try:
        address = ctypes.addressof((ctypes.c_char * len(data)).from_buffer(data))
        ctypes.memset(address, 0, len(data))
    except (TypeError, ValueError, BufferError) as exc:
        warnings.warn(f"ctypes.memset failed, using fallback: {exc}", RuntimeWarning)
        for i in range(len(data)):
            data[i] = 0


class SecureBytes:
    """
    Passphrase holder whose buffer is zeroed on clear() or garbage collection.

    A decrypted Key keeps one of these so the secret material can be
    re-exposed for each sign or decrypt call.
    """

    __slots__ = ("_data", "_cleared")

    def __init__(self, data: bytes | bytearray) -> None:
        self._data = bytearray(data)
        self._cleared = False

    def __del__(self) -> None:
        self.clear()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *_: object) -> None:
        self.clear()

    def clear(self) -> None:
        """Zero memory. Idempotent."""
        if self._cleared:
            return
        _secure_zero(self._data)
        self._cleared = True

    def __len__(self) -> int:
        return len(self._data)

    def __bool__(self) -> bool:
        return not self._cleared and len(self._data) > 0

    def __repr__(self) -> str:
        if self._cleared:
            return "SecureBytes(<cleared>)"
        return f"SecureBytes(<{len(self._data)} bytes>)"

    def __eq__(self, other: object) -> bool:
        """Constant-time comparison."""
        if isinstance(other, SecureBytes):
            if self._cleared or other._cleared:
                return False
            return hmac.compare_digest(self._data, other._data)
        if isinstance(other, (bytes, bytearray)):
            if self._cleared:
                return False
            return hmac.compare_digest(self._data, other)
        return NotImplemented

    def __hash__(self) -> int:
        raise TypeError("SecureBytes is not hashable")

    @property
    def is_cleared(self) -> bool:
        return self._cleared

    def decode(self, encoding: str = "utf-8") -> str:
        """Warning: returned string is not securely managed."""
        if self._cleared:
            raise RuntimeError("SecureBytes has been cleared")
        return self._data.decode(encoding)

    @classmethod
    def from_string(cls, s: str, encoding: str = "utf-8") -> Self:
        """Create from string. Zeros intermediate bytearray."""
        encoded = bytearray(s, encoding)
        try:
            return cls(encoded)
        finally:
            _secure_zero(encoded)
