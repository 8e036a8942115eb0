"""
Cursor abstraction for seekpager.

A cursor is the opaque start token handed to clients. Two variants exist:

- KeysetCursor: seek-method token holding the sort key values of the last row
- OffsetCursor: LIMIT/OFFSET fallback dressed up as a token

Both are carried on the wire as URL-safe, unpadded base64. An empty string
always means "start of the dataset".
"""

from __future__ import annotations

import base64
import binascii
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from ._logging import logger
from .exceptions import Base64DecodeError

if TYPE_CHECKING:
    from sqlalchemy import Select

    from .ordering import Orderings

# RFC 4648 section 5; the standard alphabet's "+" and "/" are rejected.
_URLSAFE_ALPHABET = re.compile(r"[A-Za-z0-9_-]*")


class Cursor(ABC):
    """Base class for all cursor variants."""

    @abstractmethod
    def serialize(self) -> str:
        """Canonical token form; round-trips through the matching decode()."""
        pass

    @abstractmethod
    def is_empty(self) -> bool:
        """True when the cursor points at the start of the dataset."""
        pass

    @abstractmethod
    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Contributes the resume condition to a statement. No-op when empty."""
        pass

    @abstractmethod
    def validate(self, orderings: Orderings) -> None:
        """Raises a PaginationValidationError if the cursor cannot resume under orderings."""
        pass

    def __str__(self) -> str:
        return self.serialize()


def encode_token(data: bytes) -> str:
    """URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def decode_token(token: str) -> bytes:
    """
    Reverses encode_token.

    Raises:
        Base64DecodeError: If the token is not valid URL-safe base64
    """
    try:
        if not _URLSAFE_ALPHABET.fullmatch(token.rstrip("=")):
            raise binascii.Error("Token contains characters outside the URL-safe alphabet")
        padded = token + "=" * (-len(token) % 4)
        return base64.b64decode(padded, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as e:
        logger.warning("Rejected malformed cursor token", extra={"token_length": len(token)})
        raise Base64DecodeError(token, original_error=e) from e
