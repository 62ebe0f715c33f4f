"""
Input normalization for pipeline operations.

Everything here runs before any cryptographic work, so a failure has no side
effects.
"""

import re
from collections.abc import Mapping
from typing import Any, TypeVar

from pgp_pipeline.crypto.message import CleartextMessage, Message
from pgp_pipeline.exceptions import InvalidInputTypeError, InvalidUserIdError
from pgp_pipeline.models.crypto import UserId

T = TypeVar("T")

_EMAIL_RE = re.compile(
    r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+@[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)+$"
)
_USER_ID_RE = re.compile(r"^.*<(.*)>$")


def to_list(value: T | list[T] | tuple[T, ...] | None) -> list[T] | None:
    """
    Normalize a "zero or more" parameter.

    ``None`` stays ``None``, a single item becomes a one-element list and a
    list or tuple passes through as a list in the same order.
    """
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def check_data(data: Any, name: str = "data") -> None:
    if not isinstance(data, (str, bytes, bytearray)):
        msg = f"Parameter [{name}] must be of type str or bytes"
        raise InvalidInputTypeError(msg, parameter=name)


def check_binary(data: Any, name: str = "data") -> None:
    if not isinstance(data, (bytes, bytearray)):
        msg = f"Parameter [{name}] must be of type bytes"
        raise InvalidInputTypeError(msg, parameter=name)


def check_string(data: Any, name: str = "data") -> None:
    if not isinstance(data, str):
        msg = f"Parameter [{name}] must be of type str"
        raise InvalidInputTypeError(msg, parameter=name)


def check_message(message: Any) -> None:
    if not isinstance(message, Message):
        msg = "Parameter [message] needs to be of type Message"
        raise InvalidInputTypeError(msg, parameter="message")


def check_cleartext_or_message(message: Any) -> None:
    match message:
        case Message() | CleartextMessage():
            return
        case _:
            msg = "Parameter [message] needs to be of type Message or CleartextMessage"
            raise InvalidInputTypeError(msg, parameter="message")


def is_email_address(value: str) -> bool:
    return bool(_EMAIL_RE.match(value))


def is_user_id(value: Any) -> bool:
    """True for a pre-formatted ``Name <email>`` string."""
    if not isinstance(value, str):
        return False
    return bool(_USER_ID_RE.match(value))


def format_user_id(user_id: str | UserId | Mapping[str, Any]) -> str:
    """
    Render one identity as ``Name <email>``.

    Raises:
        InvalidUserIdError: If the identity is malformed.
    """
    if isinstance(user_id, str):
        if not is_user_id(user_id):
            raise InvalidUserIdError()
        return user_id

    match user_id:
        case UserId(name=name, email=email):
            pass
        case Mapping():
            name = user_id.get("name") or ""
            email = user_id.get("email") or ""
        case _:
            raise InvalidUserIdError()

    if not isinstance(name, str) or not isinstance(email, str):
        raise InvalidUserIdError()
    if email and not is_email_address(email):
        raise InvalidUserIdError()

    name = name.strip()
    if name:
        name += " "
    return f"{name}<{email}>"


def format_user_ids(user_ids: Any) -> list[str]:
    """Normalize one or many identities. Absent input yields an empty list."""
    normalized = to_list(user_ids)
    if not normalized:
        return []
    return [format_user_id(user_id) for user_id in normalized]
