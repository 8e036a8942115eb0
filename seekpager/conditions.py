"""
Keyset filter conditions for seekpager.

A keyset cursor is a compressed filter [(C1, O1, V1), ..., (Cn, On, Vn)].
Inflating it yields the disjunctive normal form (DNF) selecting every row
strictly after the reference row under the n-column lexicographic order:

    (C1 O1 V1)
    OR (C1 = V1 AND C2 O2 V2)
    OR ...
    OR (C1 = V1 AND ... AND Cn-1 = Vn-1 AND Cn On Vn)

Disjunct i holds i-1 equality conjuncts followed by one inequality conjunct.
The shape is exact: any approximation skips or repeats rows.

Two renderings are provided:
- to_expression(): a SQLAlchemy ColumnElement with bound parameters
- to_sql(): a raw SQL string with '?' placeholders plus the value list
"""

from __future__ import annotations

import operator as py_operator
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, literal_column, or_, true

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement

# Only used while inflating a cursor; never part of a public token.
EQUALITY = "="

_COMPARATORS: dict[str, Callable[[Any, Any], Any]] = {
    ">": py_operator.gt,
    "<": py_operator.lt,
    EQUALITY: py_operator.eq,
}

# A date followed by a time of day; bare dates and numbers stay text.
_TIMESTAMP_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}")


def coerce_value(value: Any) -> Any:
    """
    Restores timestamps that travelled through a token as text.

    Strings (and bytes) holding an ISO 8601 date-time, with or without a UTC
    offset, become datetime objects. Anything else, including date-only or
    numeric strings, is returned unchanged.
    """
    if isinstance(value, bytes):
        try:
            text = value.decode("utf-8")
        except UnicodeDecodeError:
            return value
    elif isinstance(value, str):
        text = value
    else:
        return value

    if not _TIMESTAMP_PATTERN.match(text):
        return value
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return value


@dataclass(frozen=True)
class Conjunct:
    """Operator(column, value), rendered as 'column operator ?'."""

    column: str
    operator: str
    value: Any = None

    def to_sql(self) -> tuple[str, Any]:
        """(id, '>', 123) -> ("id > ?", 123)"""
        return f"{self.column} {self.operator} ?", coerce_value(self.value)

    def to_expression(self) -> ColumnElement[bool]:
        compare = _COMPARATORS[self.operator]
        return compare(literal_column(self.column), coerce_value(self.value))


@dataclass(frozen=True)
class Disjunct:
    """Conjuncts joined by AND."""

    conjuncts: tuple[Conjunct, ...] = ()

    def __len__(self) -> int:
        return len(self.conjuncts)

    def to_sql(self) -> tuple[str, list[Any]]:
        """
        Example:
            [(id, '>', 5), (name, '<', 'abc')] -> ("(id > ? AND name < ?)", [5, "abc"])
        """
        if not self.conjuncts:
            return "", []
        clauses = []
        values = []
        for conjunct in self.conjuncts:
            clause, value = conjunct.to_sql()
            clauses.append(clause)
            values.append(value)
        return f"({' AND '.join(clauses)})", values

    def to_expression(self) -> ColumnElement[bool] | None:
        expressions = [conjunct.to_expression() for conjunct in self.conjuncts]
        if not expressions:
            return None
        if len(expressions) == 1:
            return expressions[0]
        return and_(*expressions)


@dataclass(frozen=True)
class DNF:
    """Disjuncts joined by OR. An empty DNF matches every row."""

    disjuncts: tuple[Disjunct, ...] = field(default_factory=tuple)

    @classmethod
    def inflate(cls, elements: Sequence[Any]) -> DNF:
        """
        Builds the DNF for cursor elements (anything with column/operator/value).

        The i-th disjunct equates every preceding column to its value and
        applies the element's own operator to the i-th column.
        """
        disjuncts = []
        for i, element in enumerate(elements):
            equalities = [Conjunct(prev.column, EQUALITY, prev.value) for prev in elements[:i]]
            own = Conjunct(element.column, _operator_text(element.operator), element.value)
            disjuncts.append(Disjunct((*equalities, own)))
        return cls(tuple(disjuncts))

    def __len__(self) -> int:
        return len(self.disjuncts)

    def to_sql(self) -> tuple[str, list[Any]]:
        """
        Example:
            ("((id < ?) OR (id = ? AND name < ?))", [10, 10, "abc"])

        An empty DNF renders as ("TRUE", []).
        """
        clauses = []
        values: list[Any] = []
        for disjunct in self.disjuncts:
            clause, disjunct_values = disjunct.to_sql()
            if not clause:
                continue
            clauses.append(clause)
            values.extend(disjunct_values)
        if not clauses:
            return "TRUE", []
        return f"({' OR '.join(clauses)})", values

    def to_expression(self) -> ColumnElement[bool]:
        expressions = [
            expression
            for expression in (disjunct.to_expression() for disjunct in self.disjuncts)
            if expression is not None
        ]
        if not expressions:
            return true()
        if len(expressions) == 1:
            return expressions[0]
        return or_(*expressions)


def _operator_text(value: Any) -> str:
    return getattr(value, "value", value)
