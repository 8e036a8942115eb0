"""
Sort orderings for seekpager.

An ordering is a list of (column, direction) pairs, primary sort key first.
The same list drives the ORDER BY clause and the shape of the keyset filter,
so its validation guards both.

Usage:
    from seekpager import Direction, OrderBy, Orderings, parse_sort

    sort = Orderings([OrderBy("created_at", Direction.DESC), OrderBy("id", Direction.ASC)])
    sort.to_sql()  # "created_at DESC, id ASC"

    # From untrusted request input, through an alias mapping
    sort = parse_sort(["age desc", "name asc"], {"age": "users.age", "name": "users.name"})
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import literal_column

from .exceptions import (
    EmptyOrderingError,
    ForbiddenColumnCharactersError,
    InvalidDirectionError,
    InvariantViolation,
    MalformedOrderingStringError,
    UnknownColumnAliasError,
)

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.sql.elements import UnaryExpression

# Letters, digits, underscore, dot and quoting marks. Guards against SQL
# injection through column names, which are rendered as raw SQL.
_COLUMN_NAME_PATTERN = re.compile(r"[A-Za-z0-9_.'`\"]*")

# External alias -> internal (qualified) column name.
ColumnMapping = Mapping[str, str]


class Direction(str, Enum):
    """Sort direction for the requested dataset."""

    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        """True only for the two defined directions."""
        return value in (cls.ASC, cls.DESC)

    def for_operator(self) -> Operator:
        """ASC -> '>', DESC -> '<'."""
        return direction_to_operator(self)


class Operator(str, Enum):
    """Comparison operator a cursor element applies to its column."""

    GT = ">"
    LT = "<"

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        """True only for '>' and '<'."""
        return value in (cls.GT, cls.LT)

    def for_ordering(self) -> Direction:
        """'>' -> ASC, '<' -> DESC."""
        return operator_to_direction(self)


def direction_to_operator(direction: Direction | str) -> Operator:
    """
    Maps a direction to the operator that selects rows after a reference row.

    Raises:
        InvariantViolation: For anything but ASC/DESC. Callers validate first.
    """
    if direction == Direction.ASC:
        return Operator.GT
    if direction == Direction.DESC:
        return Operator.LT
    raise InvariantViolation(f"Cannot map direction '{direction}' to operator")


def operator_to_direction(operator: Operator | str) -> Direction:
    """
    Maps a cursor operator back to the sort direction it was built for.

    Raises:
        InvariantViolation: For anything but '>'/'<'. Callers validate first.
    """
    if operator == Operator.GT:
        return Direction.ASC
    if operator == Operator.LT:
        return Direction.DESC
    raise InvariantViolation(f"Cannot map operator '{operator}' to ordering")


def _text(value: Any) -> str:
    return value.value if isinstance(value, Enum) else str(value)


@dataclass(frozen=True)
class OrderBy:
    """A single sort key: column name and direction."""

    column: str
    direction: Direction | str = Direction.ASC

    @classmethod
    def asc(cls, column: str) -> OrderBy:
        return cls(column, Direction.ASC)

    @classmethod
    def desc(cls, column: str) -> OrderBy:
        return cls(column, Direction.DESC)

    def validate(self) -> None:
        """
        Raises:
            InvalidDirectionError: If direction is not ASC/DESC
            ForbiddenColumnCharactersError: If the column name has forbidden characters
        """
        if not Direction.is_valid(self.direction):
            raise InvalidDirectionError(self.column, self.direction)
        if not _COLUMN_NAME_PATTERN.fullmatch(self.column):
            raise ForbiddenColumnCharactersError(self.column)

    def to_sql(self) -> str:
        return f"{self.column} {_text(self.direction)}"

    def to_clause(self) -> UnaryExpression[Any]:
        column = literal_column(self.column)
        return column.desc() if self.direction == Direction.DESC else column.asc()


class Orderings(list[OrderBy]):
    """
    Ordered list of OrderBy, primary sort key first.

    Adding an OrderBy through upsert() removes a previous entry for the same
    column and appends the new one at the end.
    """

    def upsert(self, *order_by: OrderBy) -> Orderings:
        """
        Appends orderings, replacing earlier entries on the same column.

        Order is preserved as if chaining: order_by(o1).then_by(o2).then_by(o3)...
        """
        for o in order_by:
            for idx, processed in enumerate(self):
                if processed.column == o.column:
                    del self[idx]
                    break
            self.append(o)
        return self

    def validate(self) -> None:
        """
        Raises:
            EmptyOrderingError: If there are no orderings
            InvalidDirectionError, ForbiddenColumnCharactersError: For the first offending element
        """
        if len(self) == 0:
            raise EmptyOrderingError()
        for ordering in self:
            ordering.validate()

    def to_sql_slice(self) -> list[str]:
        """[{"a", ASC}, {"b", DESC}] -> ["a ASC", "b DESC"]"""
        return [ordering.to_sql() for ordering in self]

    def to_sql(self) -> str:
        """
        Renders the orderings for embedding into a raw ORDER BY clause.

        Usage:
            query = f"SELECT * FROM users ORDER BY {orderings.to_sql()}"
        """
        return ", ".join(self.to_sql_slice())

    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Appends the ORDER BY clauses to a SQLAlchemy statement, primary key first."""
        if not self:
            return statement
        return statement.order_by(*(ordering.to_clause() for ordering in self))


def parse_sort(raw_orderings: Iterable[str], column_mapping: ColumnMapping) -> Orderings:
    """
    Builds Orderings from strings of the form "<alias> asc|desc".

    Aliases are resolved through column_mapping, so clients never send raw
    column names. The direction is upper-cased; an unknown direction is kept
    as-is and rejected when the ordering is validated.

    Args:
        raw_orderings: Sort strings, e.g. ["age desc", "name asc"]
        column_mapping: External alias -> internal column name

    Raises:
        MalformedOrderingStringError: If a string is not exactly two tokens
        UnknownColumnAliasError: If an alias is not mapped; carries the closest alias
    """
    ret = Orderings()
    for raw in raw_orderings:
        parts = raw.split()
        if len(parts) != 2:
            raise MalformedOrderingStringError(raw)

        alias, raw_direction = parts
        column = column_mapping.get(alias)
        if not column:
            raise UnknownColumnAliasError(alias, closest_alias(alias, column_mapping))

        direction: Direction | str = raw_direction.upper()
        if Direction.is_valid(direction):
            direction = Direction(direction)
        ret.append(OrderBy(column, direction))
    return ret


def closest_alias(alias: str, candidates: Iterable[str]) -> str | None:
    """Returns the candidate with the smallest edit distance; first one wins ties."""
    closest = None
    min_dist = None
    for candidate in candidates:
        dist = levenshtein(candidate, alias)
        if min_dist is None or dist < min_dist:
            min_dist = dist
            closest = candidate
    return closest


def levenshtein(a: str, b: str) -> int:
    """Classic Levenshtein distance over code points."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]
