"""
Keyset (seek-method) cursor.

The token holds one element per sort column: the column, the value of that
column in the last row of the previous page, and the operator that selects
rows after it ('>' for ASC, '<' for DESC).

IMPORTANT:
The ordering MUST include a unique column, otherwise rows sharing the whole
sort key with the last row of a page are skipped.

Wire format:
    base64url(json([{"c": "created_at", "v": "2025-01-15T10:30:00Z", "o": "<"},
                    {"c": "id", "v": 42, "o": ">"}]))
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Annotated, Any, TypeVar
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError

from ._logging import logger
from .conditions import DNF, coerce_value
from .cursor import Cursor, decode_token, encode_token
from .exceptions import (
    CursorColumnCountMismatchError,
    CursorPayloadError,
    InvalidCursorOperatorError,
    UnexpectedCursorColumnError,
    UnexpectedCursorOperatorError,
)
from .ordering import Operator, operator_to_direction

if TYPE_CHECKING:
    from sqlalchemy import Select

    from .ordering import Orderings

T = TypeVar("T")

# Tagged union of the value domains a cursor carries. Checked left to right so
# JSON true stays a bool and 1 stays an int. Timestamps travel as ISO 8601
# text and are restored to datetime when the element is validated.
CursorValue = Annotated[
    StrictBool | StrictInt | StrictFloat | StrictStr | datetime | None,
    Field(union_mode="left_to_right"),
]

# Column name -> function extracting that column's value from a result row.
Getters = Mapping[str, Callable[[T], Any]]


class CursorElement(BaseModel):
    """
    A triplet (c, v, o):

    - c: the column
    - v: the value the column is compared against
    - o: the operator applied to the pair (c, v)

    The operator is kept as plain text so that tokens carrying a foreign
    operator decode fine and are rejected by KeysetCursor.validate().
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    column: str = Field(alias="c")
    value: CursorValue = Field(default=None, alias="v")
    operator: str = Field(alias="o")

    @field_validator("operator", mode="before")
    @classmethod
    def operator_as_text(cls, v: Any) -> Any:
        if isinstance(v, Enum):
            return v.value
        return v

    @field_validator("value", mode="before")
    @classmethod
    def normalize_row_value(cls, v: Any) -> Any:
        """Converts row values (UUID, Enum, Decimal, date) into the supported domains."""
        if isinstance(v, Enum):
            v = v.value
        if isinstance(v, datetime):
            return v
        if isinstance(v, date):
            return v.isoformat()
        if isinstance(v, UUID):
            return str(v)
        if isinstance(v, Decimal):
            if v % 1 == 0:
                return int(v)
            return float(v)
        return v

    @field_validator("value", mode="after")
    @classmethod
    def restore_timestamp(cls, v: Any) -> Any:
        if isinstance(v, str):
            return coerce_value(v)
        return v


_ELEMENTS_ADAPTER = TypeAdapter(list[CursorElement])


class KeysetCursor(Cursor):
    """
    Pagination token defining the position the requested page starts from.
    An empty cursor means the beginning of the dataset.
    """

    def __init__(self, elements: Iterable[CursorElement] = ()) -> None:
        self._elements: tuple[CursorElement, ...] = tuple(elements)

    @classmethod
    def decode(cls, token: str) -> KeysetCursor:
        """
        Parses a token produced by serialize(). An empty token is an empty cursor.

        Raises:
            Base64DecodeError: If the token is not valid base64
            CursorPayloadError: If the payload is not a JSON array of elements
        """
        if not token:
            return cls()

        raw = decode_token(token)
        try:
            elements = _ELEMENTS_ADAPTER.validate_json(raw)
        except PydanticValidationError as e:
            logger.warning(
                "Rejected malformed keyset cursor payload",
                extra={"token_length": len(token), "errors": e.error_count()},
            )
            raise CursorPayloadError(token, original_error=e) from e
        return cls(elements)

    @property
    def elements(self) -> tuple[CursorElement, ...]:
        """
        Token elements: a compressed set of filter conditions.

        IMPORTANT:
        Do not apply them to data directly, they are incomplete. During
        pagination they are inflated into a full DNF filter.
        """
        return self._elements

    def with_elements(self, elements: Iterable[CursorElement]) -> KeysetCursor:
        return KeysetCursor(elements)

    def serialize(self) -> str:
        if not self._elements:
            return ""
        return encode_token(_ELEMENTS_ADAPTER.dump_json(list(self._elements), by_alias=True))

    def is_empty(self) -> bool:
        return len(self._elements) == 0

    def to_dnf(self) -> DNF:
        return DNF.inflate(self._elements)

    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Adds the inflated DNF as a WHERE condition with bound parameters."""
        if self.is_empty():
            return statement
        return statement.where(self.to_dnf().to_expression())

    def to_sql(self) -> tuple[str, list[Any]]:
        """
        Returns the filter as raw SQL with '?' placeholders and its values.

        Usage:
            where, params = cursor.to_sql()
            query = f"SELECT * FROM users WHERE {where}"
        """
        if self.is_empty():
            return "TRUE", []
        return self.to_dnf().to_sql()

    def validate(self, orderings: Orderings) -> None:
        """
        Checks the cursor is consistent with the ordering it resumes.

        Raises:
            CursorColumnCountMismatchError: Element count differs from ordering count
            UnexpectedCursorColumnError: Column at position i differs from the ordering
            InvalidCursorOperatorError: Operator at position i is not '>' or '<'
            UnexpectedCursorOperatorError: Operator at position i contradicts the direction
        """
        if self.is_empty():
            return

        if len(self._elements) != len(orderings):
            raise CursorColumnCountMismatchError(expected=len(orderings), actual=len(self._elements))

        for position, (element, order_by) in enumerate(zip(self._elements, orderings)):
            if element.column != order_by.column:
                raise UnexpectedCursorColumnError(position, element.column, order_by.column)
            if not Operator.is_valid(element.operator):
                raise InvalidCursorOperatorError(position, element.operator)
            if operator_to_direction(element.operator) != order_by.direction:
                direction = getattr(order_by.direction, "value", order_by.direction)
                raise UnexpectedCursorOperatorError(position, element.operator, direction)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeysetCursor):
            return NotImplemented
        return self._elements == other._elements

    def __hash__(self) -> int:
        return hash(self._elements)

    def __repr__(self) -> str:
        return f"KeysetCursor({list(self._elements)!r})"
