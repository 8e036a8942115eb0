"""
Cursor pager for seekpager.

CursorPager orchestrates pagination: it validates that the ordering and the
cursor agree, contributes ORDER BY, the resume filter and LIMIT to a
SQLAlchemy statement, and turns the fetched rows into the page returned to
the client plus the token for the next page.

Usage:
    pager = CursorPager.decode_keyset(
        payload.limit, payload.start_token, OrderBy.desc("score"), OrderBy.asc("id")
    ).with_lookahead()

    stmt = pager.paginate(select(users))
    rows = session.execute(stmt).all()

    page, next_cursor = next_page_cursor(
        pager, rows, {"score": lambda r: r.score, "id": lambda r: r.id}
    )
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from ._logging import logger, redact_elements
from .config import NO_LIMIT
from .cursor import Cursor
from .exceptions import (
    LookaheadRequiresLimitError,
    MissingPagerError,
    MissingValueExtractorError,
    UnsupportedCursorValueError,
)
from .keyset import CursorElement, Getters, KeysetCursor
from .limits import normalize_limit
from .offset import OffsetCursor
from .ordering import OrderBy, Orderings, direction_to_operator

if TYPE_CHECKING:
    from sqlalchemy import Select

C = TypeVar("C", bound=Cursor)
T = TypeVar("T")


class CursorPager(Generic[C]):
    """
    Implements the Builder Pattern for paginated statements.
    Configuration methods mutate the pager and return it, so calls chain
    (e.g., .with_limit(20).with_lookahead().with_sort(...)) and may come in
    any order. Consistency is only checked when the pager is applied.

    A freshly constructed pager is the empty configuration: no cursor, no
    ordering, limit 0, lookahead off.
    """

    def __init__(self, cursor: C | None = None) -> None:
        self._lookahead = False
        self._limit = 0
        self._cursor: C | None = cursor
        self._sort = Orderings()

    # --- DECODING ---

    @classmethod
    def decode_keyset(
        cls, limit: int, start_token: str, *order_by: OrderBy
    ) -> CursorPager[KeysetCursor]:
        """
        Builds a keyset pager from a raw (limit, token) pair.

        Raises:
            CursorDecodeError: If the token cannot be decoded
        """
        cursor = KeysetCursor.decode(start_token)
        return cls(cursor).with_substituted_sort(*order_by).with_limit(limit)

    @classmethod
    def decode_offset(
        cls, limit: int, start_token: str, *order_by: OrderBy
    ) -> CursorPager[OffsetCursor]:
        """
        Builds an offset pager from a raw (limit, token) pair.

        Raises:
            CursorDecodeError: If the token cannot be decoded
        """
        cursor = OffsetCursor.decode(start_token)
        return cls(cursor).with_substituted_sort(*order_by).with_limit(limit)

    # --- CONFIGURATION (Builder Interface) ---

    def with_lookahead(self) -> CursorPager[C]:
        """
        Fetches one extra row to tell whether the current page is the last one.

        IMPORTANT: Cannot be combined with with_unlimited() / with_limit(NO_LIMIT).
        """
        self._lookahead = True
        return self

    def with_unlimited(self) -> CursorPager[C]:
        """
        Returns every row, no LIMIT.

        IMPORTANT: Cannot be combined with with_lookahead().
        """
        self._limit = NO_LIMIT
        return self

    def with_limit(self, limit: int) -> CursorPager[C]:
        """
        Sets the page size. NO_LIMIT switches to unlimited mode; any other value
        is normalized against the system-wide maximum.
        """
        if limit == NO_LIMIT:
            return self.with_unlimited()
        self._limit = normalize_limit(limit)
        return self

    def with_cursor(self, cursor: C | None) -> CursorPager[C]:
        """Sets (or clears) the cursor explicitly."""
        self._cursor = cursor
        return self

    def with_sort(self, *order_by: OrderBy) -> CursorPager[C]:
        """
        Appends orderings without dropping existing ones. An ordering on a
        column that is already sorted on replaces the earlier entry.
        """
        self._sort.upsert(*order_by)
        return self

    def with_substituted_sort(self, *order_by: OrderBy) -> CursorPager[C]:
        """Drops previous orderings and applies the provided ones."""
        self._sort = Orderings()
        return self.with_sort(*order_by)

    # --- ACCESSORS ---

    @property
    def sort(self) -> Orderings:
        """Orderings that will be applied to the dataset."""
        return Orderings(self._sort)

    @property
    def limit(self) -> int:
        """Limit as stored; NO_LIMIT means unbounded."""
        return self._limit

    @property
    def cursor(self) -> C | None:
        return self._cursor

    @property
    def is_lookahead(self) -> bool:
        return self._lookahead

    @property
    def is_unlimited(self) -> bool:
        return self._limit == NO_LIMIT

    @property
    def dataset_limit(self) -> int:
        """Rows to request from the data source: limit + 1 with lookahead."""
        return self._limit + 1 if self._lookahead else self._limit

    # --- APPLICATION ---

    def validate(self) -> None:
        """
        Raises:
            LookaheadRequiresLimitError: If lookahead is combined with unlimited paging
            PaginationValidationError: If the ordering or the cursor is inconsistent
        """
        if self._limit == NO_LIMIT and self._lookahead:
            raise LookaheadRequiresLimitError()
        self._sort.validate()
        if self._cursor is not None:
            self._cursor.validate(self._sort)

    def paginate(self, statement: Select[Any]) -> Select[Any]:
        """
        Applies pagination to a statement: ORDER BY, then the cursor, then LIMIT.

        Returns:
            The new statement

        Raises:
            PaginationValidationError: If the pager cannot be applied
        """
        self.validate()

        logger.debug(
            "Applying pagination",
            extra={
                "sort": self._sort.to_sql(),
                "limit": self._limit,
                "lookahead": self._lookahead,
                "has_cursor": self._cursor is not None and not self._cursor.is_empty(),
            },
        )

        statement = self._sort.apply(statement)
        if self._cursor is not None:
            statement = self._cursor.apply(statement)

        if self._limit != NO_LIMIT:
            statement = statement.limit(self.dataset_limit)
        return statement

    def __repr__(self) -> str:
        return (
            f"CursorPager(cursor={self._cursor!r}, limit={self._limit}, "
            f"lookahead={self._lookahead}, sort={self._sort.to_sql()!r})"
        )


class RawPagerPayload(BaseModel):
    """
    Pagination fields of an API request.

    Attributes:
        limit: Maximum number of records to return
        start_token: Token from a previous response; empty for the first page
    """

    model_config = ConfigDict(populate_by_name=True)

    limit: int = Field(default=0, description="Maximum number of records to return")
    start_token: str = Field(
        default="",
        alias="startToken",
        description="Token of the page to start from; empty for the first page",
    )

    def decode(self, *order_by: OrderBy) -> CursorPager[KeysetCursor]:
        """Keyset pager with the limit normalized and the token validated."""
        return CursorPager.decode_keyset(self.limit, self.start_token, *order_by)

    def decode_offset(self, *order_by: OrderBy) -> CursorPager[OffsetCursor]:
        """Offset pager with the limit normalized and the token validated."""
        return CursorPager.decode_offset(self.limit, self.start_token, *order_by)


# --- PAGE BOUNDARIES ---


def _require(pager: CursorPager[Any] | None) -> CursorPager[Any]:
    if pager is None:
        raise MissingPagerError()
    return pager


def is_last_page(pager: CursorPager[Any] | None, result_set: Sequence[Any]) -> bool:
    """
    True if result_set is the last page of the dataset:

    1. fewer rows than the limit came back, or
    2. lookahead is on and no more than the limit came back.

    Without lookahead a full page is ambiguous: only the next query can tell
    whether it is empty. Unlimited pagers always return the whole dataset.
    """
    pager = _require(pager)
    if pager.is_unlimited:
        return True
    size = len(result_set)
    return size < pager.limit or (pager.is_lookahead and size <= pager.limit)


def trim_result_set(pager: CursorPager[Any] | None, result_set: Sequence[T]) -> list[T]:
    """
    Drops the lookahead row, which only signals that more data exists.

    result_set = [a, b, c]:
    - with lookahead    -> [a, b]
    - without lookahead -> [a, b, c]
    """
    pager = _require(pager)
    if pager.is_lookahead:
        return list(result_set[:-1])
    return list(result_set)


def next_page_cursor(
    pager: CursorPager[KeysetCursor] | None,
    result_set: Sequence[T],
    getters: Getters[T],
) -> tuple[list[T], KeysetCursor | None]:
    """
    Builds the keyset cursor for the page after result_set.

    Args:
        pager: The pager the result set was fetched with
        result_set: Rows as returned by the data source
        getters: Column name -> value extractor, for every ordering column

    Returns:
        (rows to return to the client, next cursor or None on the last page)

    Raises:
        PaginationValidationError: If the pager is inconsistent
        MissingValueExtractorError: If a sort column has no getter
        UnsupportedCursorValueError: If a getter returns a value a cursor cannot carry
    """
    pager = _require(pager)
    pager.validate()

    if is_last_page(pager, result_set):
        return list(result_set), None

    rows = trim_result_set(pager, result_set)
    if not rows:
        return rows, None

    last = rows[-1]
    elements = []
    for order_by in pager.sort:
        getter = getters.get(order_by.column)
        if getter is None:
            raise MissingValueExtractorError(order_by.column)
        value = getter(last)
        try:
            element = CursorElement(
                column=order_by.column,
                value=value,
                operator=direction_to_operator(order_by.direction),
            )
        except PydanticValidationError as e:
            raise UnsupportedCursorValueError(
                order_by.column, type(value).__name__, original_error=e
            ) from e
        elements.append(element)

    logger.debug(
        "Built next page cursor",
        extra={
            "values": redact_elements(elements),
            "page_size": len(rows),
        },
    )
    return rows, KeysetCursor(elements)


def next_page_offset_cursor(
    pager: CursorPager[OffsetCursor] | None,
    result_set: Sequence[T],
) -> tuple[list[T], OffsetCursor | None]:
    """
    Builds the offset cursor for the page after result_set.

    Returns:
        (rows to return to the client, next cursor or None on the last page)

    Raises:
        PaginationValidationError: If the pager is inconsistent
    """
    pager = _require(pager)
    pager.validate()

    if is_last_page(pager, result_set):
        return list(result_set), None

    rows = trim_result_set(pager, result_set)
    if not rows:
        return rows, None

    previous = pager.cursor.offset if pager.cursor is not None else 0
    logger.debug(
        "Built next page offset cursor",
        extra={"previous_offset": previous, "page_size": len(rows)},
    )
    return rows, OffsetCursor(previous + len(rows))
