"""
Offset cursor.

Used when an API promises cursor-based pagination but the data source only
supports LIMIT/OFFSET. The token wraps the number of rows already served.

Offset pagination offers no protection against rows inserted or deleted
between requests; a stable ordering is entirely the caller's responsibility.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from ._logging import logger
from .cursor import Cursor, decode_token, encode_token
from .exceptions import OffsetParseError

if TYPE_CHECKING:
    from sqlalchemy import Select

    from .ordering import Orderings

_DECIMAL_PATTERN = re.compile(r"[+-]?[0-9]+")


class OffsetCursor(Cursor):
    """Token holding the number of rows to skip. Zero means the start of the dataset."""

    def __init__(self, offset: int = 0) -> None:
        if offset < 0:
            raise ValueError(f"Offset must be non-negative, got {offset}")
        self._offset = offset

    @classmethod
    def decode(cls, token: str) -> OffsetCursor:
        """
        Parses a token produced by serialize(). An empty token is an empty cursor.

        Raises:
            Base64DecodeError: If the token is not valid base64
            OffsetParseError: If the payload is not a non-negative decimal integer
        """
        if not token:
            return cls()

        raw = decode_token(token)
        try:
            text = raw.decode("ascii")
        except UnicodeDecodeError as e:
            raise OffsetParseError(token, original_error=e) from e

        if not _DECIMAL_PATTERN.fullmatch(text):
            logger.warning("Rejected malformed offset cursor", extra={"token_length": len(token)})
            raise OffsetParseError(token, raw=text)

        offset = int(text)
        if offset < 0:
            raise OffsetParseError(token, raw=text)
        return cls(offset)

    @property
    def offset(self) -> int:
        return self._offset

    def with_offset(self, offset: int) -> OffsetCursor:
        return OffsetCursor(offset)

    def serialize(self) -> str:
        if self._offset == 0:
            return ""
        return encode_token(str(self._offset).encode("ascii"))

    def is_empty(self) -> bool:
        return self._offset == 0

    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Skips the rows already served."""
        if self.is_empty():
            return statement
        return statement.offset(self._offset)

    def to_sql(self) -> str:
        """
        Usage:
            query = f"SELECT * FROM users OFFSET {cursor.to_sql()}"
        """
        return str(self._offset)

    def validate(self, orderings: Orderings) -> None:
        # Offsets impose no constraint on the ordering.
        return None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OffsetCursor):
            return NotImplemented
        return self._offset == other._offset

    def __hash__(self) -> int:
        return hash(self._offset)

    def __repr__(self) -> str:
        return f"OffsetCursor({self._offset})"
